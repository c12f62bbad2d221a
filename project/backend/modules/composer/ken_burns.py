"""
Ken Burns segment rendering for composer module.

Turns one static image into a silent clip of exactly the segment's duration,
with a slow linear zoom so the frame never looks frozen.
"""
from pathlib import Path
from typing import Optional

from shared.errors import InternalConsistencyError
from shared.logging import get_logger
from shared.models.video import KenBurnsDirection
from .utils import run_ffmpeg_command, video_encode_args
from .config import (
    FFMPEG_BINARY,
    FFMPEG_THREADS,
    KEN_BURNS_ZOOM,
    OUTPUT_FPS,
    OUTPUT_HEIGHT,
    OUTPUT_WIDTH,
    ffmpeg_timeout
)

logger = get_logger("composer.ken_burns")


def frame_count(duration: float, fps: int = OUTPUT_FPS) -> int:
    """Number of output frames for a clip of `duration` seconds."""
    return max(1, int(round(duration * fps)))


def zoom_increment(duration: float, end_zoom: float = KEN_BURNS_ZOOM, fps: int = OUTPUT_FPS) -> float:
    """Per-frame zoom step that reaches end_zoom on the last frame."""
    return (end_zoom - 1.0) / frame_count(duration, fps)


def build_ken_burns_filter(
    duration: float,
    width: int = OUTPUT_WIDTH,
    height: int = OUTPUT_HEIGHT,
    fps: int = OUTPUT_FPS,
    end_zoom: float = KEN_BURNS_ZOOM,
    direction: KenBurnsDirection = "in"
) -> str:
    """
    Build the FFmpeg filter chain for one segment.

    The image is scaled to cover the frame (aspect preserved), center-cropped,
    then zoompan interpolates linearly between 1.0 and end_zoom over the
    clip's frame count, anchored on the center.

    Args:
        duration: Clip duration in seconds
        width: Output width
        height: Output height
        fps: Output frame rate
        end_zoom: Zoom level at the far end of the motion (1.08 = 8%)
        direction: "in" zooms 1.0 -> end_zoom, "out" zooms end_zoom -> 1.0

    Returns:
        Filter string for -vf
    """
    increment = zoom_increment(duration, end_zoom, fps)
    if direction == "out":
        zoom_expr = f"max({end_zoom}-{increment:.8f}*on,1)"
    else:
        zoom_expr = f"min(1+{increment:.8f}*on,{end_zoom})"

    return (
        f"scale={width}:{height}:force_original_aspect_ratio=increase,"
        f"crop={width}:{height},"
        f"zoompan=z='{zoom_expr}'"
        f":x='iw/2-(iw/zoom/2)':y='ih/2-(ih/zoom/2)'"
        f":d=1:s={width}x{height}:fps={fps},"
        f"setsar=1"
    )


async def render_segment_clip(
    image_path: Path,
    output_path: Path,
    duration: float,
    content_id: Optional[str] = None,
    segment_index: Optional[int] = None,
    direction: KenBurnsDirection = "in"
) -> Path:
    """
    Render one segment clip from a static image.

    Args:
        image_path: Source image
        output_path: Clip to write (inside the run's scratch arena)
        duration: Segment duration in seconds
        content_id: Content ID for logging
        segment_index: Segment index for logging
        direction: Zoom direction

    Returns:
        output_path

    Raises:
        EncodeFailureError / EncodeTimeoutError: From FFmpeg
        InternalConsistencyError: If FFmpeg succeeded but wrote nothing
    """
    video_filter = build_ken_burns_filter(duration, direction=direction)

    ffmpeg_cmd = [
        FFMPEG_BINARY,
        "-y",
        "-threads", str(FFMPEG_THREADS),
        "-loop", "1",
        "-framerate", str(OUTPUT_FPS),
        "-i", str(image_path),
        "-vf", video_filter,
        "-t", f"{duration:.3f}",
        *video_encode_args(OUTPUT_FPS),
        str(output_path)
    ]

    logger.info(
        f"Rendering segment {segment_index} ({duration:.2f}s, zoom {direction})",
        extra={"content_id": content_id, "segment_index": segment_index, "duration": duration}
    )

    await run_ffmpeg_command(
        ffmpeg_cmd,
        content_id=content_id,
        timeout=ffmpeg_timeout(duration),
        stage=f"motion[{segment_index}]"
    )

    if not output_path.exists():
        raise InternalConsistencyError(
            f"Segment clip not created: {output_path}",
            content_id=content_id,
            stage=f"motion[{segment_index}]"
        )

    return output_path
