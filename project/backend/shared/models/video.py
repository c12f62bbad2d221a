"""
Composition data models.

Defines VisualTiming, FinalVideo, CompositionDetails and ComposerOutput.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from shared.errors import ValidationError

KenBurnsDirection = Literal["in", "out"]


class VisualTiming(BaseModel):
    """Where one segment's image sits on the visual track."""

    model_config = ConfigDict(frozen=True)

    segment_index: int = Field(ge=0)
    asset_path: str
    start_time: float = Field(ge=0, description="Seconds from video start")
    end_time: float = Field(ge=0)
    duration: float = Field(gt=0)
    text_overlay: Optional[str] = None
    ken_burns_direction: KenBurnsDirection = "in"


class FinalVideo(BaseModel):
    """Finished, muxed video on local disk."""

    local_path: str
    remote_url: Optional[str] = None
    duration: float = Field(description="Final duration in seconds (shortest-wins)")
    resolution: str = Field(description="e.g. '1080x1920'")
    aspect_ratio: str = Field(description="e.g. '9:16'")
    file_size: int = Field(ge=0, description="Bytes on disk")
    processed_at: datetime

    def attach_remote_url(self, url: str) -> None:
        """Record the published URL. Allowed exactly once."""
        if self.remote_url is not None:
            raise ValidationError(
                f"Final video already published at {self.remote_url}",
                stage="publish"
            )
        if not url:
            raise ValidationError("Published URL is empty", stage="publish")
        self.remote_url = url

    @field_serializer("processed_at")
    def serialize_datetime(self, value: datetime) -> str:
        return value.isoformat()


class CompositionDetails(BaseModel):
    """Timing manifest returned alongside the final video."""

    visual_timings: List[VisualTiming]
    audio_path: str
    audio_duration: float
    has_text_overlays: bool
    intro_duration: float = Field(default=0.0, description="0 when no intro clip was rendered")
    engine: Literal["ffmpeg", "stub"] = "ffmpeg"

    @property
    def visual_track_duration(self) -> float:
        return self.intro_duration + sum(t.duration for t in self.visual_timings)


class ComposerOutput(BaseModel):
    """Everything the composer hands back for one content item."""

    content_id: str
    final_video: FinalVideo
    composition: CompositionDetails
    output_dir: str
    generated_at: datetime
    total_cost: Decimal = Decimal("0.00")
    total_time_ms: int = Field(ge=0)

    @field_serializer("total_cost")
    def serialize_decimal(self, value: Decimal) -> str:
        """Serialize Decimal to string."""
        return str(value)

    @field_serializer("generated_at")
    def serialize_datetime(self, value: datetime) -> str:
        return value.isoformat()
