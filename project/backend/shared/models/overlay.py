"""
Text overlay configuration models.

The composer receives a fully resolved TextOverlayConfig and never merges
defaults itself. Presets and get_text_overlay_config are for callers that
need to build one.
"""

import os
from pathlib import Path
from typing import Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

TextPosition = Literal[
    "top-left",
    "top-center",
    "top-right",
    "center-left",
    "center",
    "center-right",
    "bottom-left",
    "bottom-center",
    "bottom-right",
]

TextAnimation = Literal["none", "fade-in", "fade-out", "fade-both"]

LabelTiming = Literal["start", "full-duration", "end"]


class IntroConfig(BaseModel):
    """Standalone title card prepended to the segments."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    duration: float = Field(default=2.5, gt=0, description="Seconds")
    background_color: str = Field(default="#1a1a2e", description="Used when no video background")
    text_color: str = "#ffffff"
    font: str = "Montserrat-Bold.ttf"
    font_size: float = Field(default=5.5, gt=0, description="Percent of video height")
    subtext_font_size: float = Field(default=3.5, gt=0, description="Percent of video height")
    position: TextPosition = "center"
    animation: TextAnimation = "fade-both"
    fade_duration: float = Field(default=0.5, ge=0)
    use_video_background: bool = True
    background_overlay_opacity: float = Field(default=0.5, ge=0, le=1)
    title_prefix: str = Field(default="", description="Small line above the intro phrase")
    title_prefix_font_size: float = Field(default=4.0, gt=0)


class SegmentLabelConfig(BaseModel):
    """Caption burned onto segments that declare a text overlay."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    position: TextPosition = "bottom-center"
    font: str = "Montserrat-SemiBold.ttf"
    font_size: float = Field(default=5.0, gt=0, description="Percent of video height")
    text_color: str = "#ffffff"
    background_color: str = Field(default="#000000", description="Empty string for no pill")
    background_opacity: float = Field(default=0.6, ge=0, le=1)
    padding: int = Field(default=20, ge=0, description="Pixels")
    animation: TextAnimation = "fade-both"
    fade_duration: float = Field(default=0.3, ge=0)
    timing: LabelTiming = "start"
    display_duration: float = Field(default=2.0, gt=0, description="Seconds, ignored for full-duration")


class TextOverlayConfig(BaseModel):
    """Complete, immutable overlay configuration for one run."""

    model_config = ConfigDict(frozen=True)

    intro: IntroConfig = Field(default_factory=IntroConfig)
    segment_labels: SegmentLabelConfig = Field(default_factory=SegmentLabelConfig)
    font_directory: str = Field(default_factory=lambda: os.getenv("TEXT_FONT_DIRECTORY", "./assets/fonts"))

    def font_path(self, font_name: str) -> str:
        """Resolve a font file name against font_directory."""
        if os.path.isabs(font_name):
            return font_name
        return str(Path(self.font_directory) / font_name)

    @classmethod
    def disabled(cls) -> "TextOverlayConfig":
        return cls(
            intro=IntroConfig(enabled=False),
            segment_labels=SegmentLabelConfig(enabled=False),
        )


_DEFAULT_INTRO = IntroConfig()
_DEFAULT_LABELS = SegmentLabelConfig()

PRESETS: Dict[str, TextOverlayConfig] = {
    "minimal": TextOverlayConfig(
        intro=_DEFAULT_INTRO.model_copy(update={
            "background_color": "#000000",
            "fade_duration": 0.8,
            "use_video_background": False,
        }),
        segment_labels=_DEFAULT_LABELS.model_copy(update={
            "background_color": "",
            "background_opacity": 0.0,
        }),
    ),
    "bold": TextOverlayConfig(
        intro=_DEFAULT_INTRO.model_copy(update={
            "background_color": "#2d3436",
            "font_size": 6.0,
            "animation": "none",
            "use_video_background": False,
        }),
        segment_labels=_DEFAULT_LABELS.model_copy(update={
            "font_size": 6.0,
            "background_color": "#e17055",
            "background_opacity": 0.9,
        }),
    ),
    "elegant": TextOverlayConfig(
        intro=_DEFAULT_INTRO.model_copy(update={
            "background_color": "#2c3e50",
            "text_color": "#ecf0f1",
            "fade_duration": 1.0,
            "background_overlay_opacity": 0.6,
        }),
        segment_labels=_DEFAULT_LABELS.model_copy(update={
            "text_color": "#f5f5dc",
            "background_color": "#2c3e50",
            "background_opacity": 0.7,
            "fade_duration": 0.5,
        }),
    ),
    "modern": TextOverlayConfig(
        intro=_DEFAULT_INTRO.model_copy(update={
            "background_color": "#0f0f0f",
            "text_color": "#00d4ff",
            "background_overlay_opacity": 0.7,
        }),
        segment_labels=_DEFAULT_LABELS.model_copy(update={
            "text_color": "#00d4ff",
            "background_color": "#0f0f0f",
            "background_opacity": 0.8,
            "position": "top-center",
        }),
    ),
}


def get_text_overlay_config(preset: Optional[str] = None) -> TextOverlayConfig:
    """
    Build a resolved overlay config, optionally from a named preset.

    Args:
        preset: One of PRESETS, or None for defaults

    Returns:
        TextOverlayConfig

    Raises:
        ValueError: If preset is unknown
    """
    if preset is None:
        return TextOverlayConfig()
    if preset not in PRESETS:
        raise ValueError(f"Unknown text overlay preset '{preset}' (expected one of {sorted(PRESETS)})")
    return PRESETS[preset]
