"""
Narration data models.

Voiceover file plus the per-segment timing measured during synthesis.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class VoiceoverResult(BaseModel):
    """Single narration track."""

    model_config = ConfigDict(frozen=True)

    local_path: str = Field(min_length=1)
    duration: float = Field(gt=0, description="Total spoken duration in seconds")
    speed: float = Field(default=1.0, gt=0, description="Synthesis speed multiplier")
    voice_id: Optional[str] = None


class SegmentTiming(BaseModel):
    """Authoritative start/end of one narrated segment."""

    model_config = ConfigDict(frozen=True)

    segment_index: int = Field(ge=0)
    start_time: float = Field(ge=0)
    end_time: float = Field(ge=0)
    duration: float = Field(gt=0)
    narration: str = ""

    @model_validator(mode="after")
    def check_bounds(self) -> "SegmentTiming":
        if self.end_time < self.start_time:
            raise ValueError(
                f"Segment {self.segment_index} ends ({self.end_time}s) before it starts ({self.start_time}s)"
            )
        return self


class AudioResult(BaseModel):
    """Output of the narration stage."""

    model_config = ConfigDict(frozen=True)

    content_id: str
    voiceover: VoiceoverResult
    segment_timings: List[SegmentTiming] = Field(default_factory=list)
