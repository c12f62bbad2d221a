"""
Composer module.

Final stage of the short-form video pipeline. Turns per-segment images, one
narration track and optional text overlays into a single muxed MP4 whose
length is the shorter of the visual track and the narration.
"""

from modules.composer.process import process

__all__ = ["process"]
