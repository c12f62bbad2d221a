"""
Script data models.

Ordered narration segments produced by the script stage. Read-only here.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

VisualType = Literal["ai_image", "text_card", "stock"]


class ScriptSegment(BaseModel):
    """One narrated beat of the video."""

    model_config = ConfigDict(frozen=True)

    segment_index: int = Field(ge=0)
    duration: float = Field(gt=0, description="Nominal duration in seconds")
    narration: str = Field(min_length=1)
    text_overlay: Optional[str] = Field(default=None, description="Caption burned onto the segment")
    visual_type: VisualType = "ai_image"
    timestamp: Optional[str] = Field(default=None, description="e.g. '0:00-0:03'")

    @field_validator("text_overlay")
    @classmethod
    def blank_overlay_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v


class Script(BaseModel):
    """Full script for one content item."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(min_length=1)
    segments: List[ScriptSegment] = Field(min_length=1)
    intro_text: Optional[str] = Field(default=None, description="Intro phrase, falls back to title")
    intro_subtext: Optional[str] = None

    @property
    def total_duration(self) -> float:
        return sum(segment.duration for segment in self.segments)

    @property
    def intro_phrase(self) -> str:
        return self.intro_text or self.title
