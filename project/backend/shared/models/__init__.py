"""
Data models for the composition pipeline.

This module exports all Pydantic models used across pipeline modules.
"""

from .script import Script, ScriptSegment, VisualType
from .asset import AssetSet, GeneratedAsset
from .audio import AudioResult, SegmentTiming, VoiceoverResult
from .overlay import (
    IntroConfig,
    SegmentLabelConfig,
    TextOverlayConfig,
    TextPosition,
    TextAnimation,
    LabelTiming,
    PRESETS,
    get_text_overlay_config
)
from .video import (
    VisualTiming,
    FinalVideo,
    CompositionDetails,
    ComposerOutput,
    KenBurnsDirection
)

__all__ = [
    # Script models
    "Script",
    "ScriptSegment",
    "VisualType",
    # Asset models
    "AssetSet",
    "GeneratedAsset",
    # Audio models
    "AudioResult",
    "SegmentTiming",
    "VoiceoverResult",
    # Overlay config
    "IntroConfig",
    "SegmentLabelConfig",
    "TextOverlayConfig",
    "TextPosition",
    "TextAnimation",
    "LabelTiming",
    "PRESETS",
    "get_text_overlay_config",
    # Composition models
    "VisualTiming",
    "FinalVideo",
    "CompositionDetails",
    "ComposerOutput",
    "KenBurnsDirection",
]
