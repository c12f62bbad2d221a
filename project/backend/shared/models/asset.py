"""
Visual asset data models.

One static image per script segment, produced by the image stage.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .script import VisualType


class GeneratedAsset(BaseModel):
    """Static image reference for one segment."""

    model_config = ConfigDict(frozen=True)

    segment_index: int = Field(ge=0)
    local_path: str = Field(min_length=1)
    width: int = Field(gt=0)
    height: int = Field(gt=0)
    duration: float = Field(gt=0, description="Nominal duration in seconds")
    type: VisualType = "ai_image"
    prompt: Optional[str] = None


class AssetSet(BaseModel):
    """Ordered asset collection for one content item."""

    model_config = ConfigDict(frozen=True)

    content_id: str
    assets: List[GeneratedAsset]

    @property
    def ordered(self) -> List[GeneratedAsset]:
        return sorted(self.assets, key=lambda a: a.segment_index)
