"""
Composer configuration.

Centralized configuration for FFmpeg settings, output geometry and timeouts.
Every segment clip and the intro clip are encoded with the same parameters so
that concatenation can stream-copy.
"""
import os
from typing import Tuple

# Storage bucket for published videos
VIDEO_OUTPUTS_BUCKET = "video-outputs"

# FFmpeg settings
FFMPEG_BINARY = os.getenv("FFMPEG_BINARY", "ffmpeg")
FFMPEG_THREADS = int(os.getenv("FFMPEG_THREADS", "2"))
FFMPEG_PRESET = os.getenv("FFMPEG_PRESET", "fast")
FFMPEG_CRF = int(os.getenv("FFMPEG_CRF", "23"))

# Per-call timeout: base + seconds of output * factor
FFMPEG_TIMEOUT_BASE = float(os.getenv("FFMPEG_TIMEOUT_BASE", "30"))
FFMPEG_TIMEOUT_PER_SECOND = float(os.getenv("FFMPEG_TIMEOUT_PER_SECOND", "10"))

# Launch failures (binary could not start) are retried once after this delay
FFMPEG_LAUNCH_RETRY_DELAY = float(os.getenv("FFMPEG_LAUNCH_RETRY_DELAY", "1.0"))

# Video output settings (one vertical format per deployment)
OUTPUT_ASPECT_RATIO = os.getenv("COMPOSER_ASPECT_RATIO", "9:16")
OUTPUT_FPS = int(os.getenv("COMPOSER_FPS", "30"))
OUTPUT_VIDEO_CODEC = "libx264"
OUTPUT_PIX_FMT = "yuv420p"
VIDEO_TRACK_TIMESCALE = 90000
OUTPUT_AUDIO_CODEC = "aac"
OUTPUT_AUDIO_BITRATE = "192k"
OUTPUT_AUDIO_SAMPLE_RATE = 44100

# Ken Burns: image ends this much more zoomed-in than it started (1.08 = 8%)
KEN_BURNS_ZOOM = float(os.getenv("KEN_BURNS_ZOOM", "1.08"))

# Text layout
TEXT_EDGE_MARGIN = 50  # px from left/right edges
TEXT_TOP_MARGIN = 80
TEXT_BOTTOM_MARGIN = 150
INTRO_LINE_GAP = 15
INTRO_SUBTEXT_OPACITY = 0.7

# Final video file name inside the content output directory
FINAL_VIDEO_NAME = "final_video.mp4"


def get_output_dimensions_from_aspect_ratio(aspect_ratio: str = "9:16") -> Tuple[int, int]:
    """
    Get output width and height from aspect ratio.

    Uses standard resolutions for each aspect ratio:
    - 9:16 -> 1080x1920 (vertical/portrait)
    - 16:9 -> 1920x1080 (1080p)
    - 1:1 -> 1080x1080 (square)
    - 4:5 -> 1080x1350 (portrait feed)

    Args:
        aspect_ratio: Aspect ratio string (e.g., "9:16")

    Returns:
        Tuple of (width, height) in pixels

    Raises:
        ValueError: If aspect ratio is not parseable
    """
    try:
        parts = aspect_ratio.split(":")
        if len(parts) != 2:
            raise ValueError(f"Invalid aspect ratio format: {aspect_ratio}")
        width_ratio = float(parts[0])
        height_ratio = float(parts[1])
    except (ValueError, IndexError) as e:
        raise ValueError(f"Invalid aspect ratio format: {aspect_ratio}") from e

    if width_ratio <= 0 or height_ratio <= 0:
        raise ValueError(f"Invalid aspect ratio format: {aspect_ratio}")

    aspect_ratio_map = {
        "9:16": (1080, 1920),
        "16:9": (1920, 1080),
        "1:1": (1080, 1080),
        "4:5": (1080, 1350),
    }

    if aspect_ratio in aspect_ratio_map:
        return aspect_ratio_map[aspect_ratio]

    # Custom ratios: keep the short side at 1080 and round to even (required by libx264)
    if width_ratio >= height_ratio:
        height = 1080
        width = int(height * (width_ratio / height_ratio))
        width = (width // 2) * 2
    else:
        width = 1080
        height = int(width * (height_ratio / width_ratio))
        height = (height // 2) * 2

    return (width, height)


OUTPUT_WIDTH, OUTPUT_HEIGHT = get_output_dimensions_from_aspect_ratio(OUTPUT_ASPECT_RATIO)
OUTPUT_RESOLUTION = f"{OUTPUT_WIDTH}x{OUTPUT_HEIGHT}"


def ffmpeg_timeout(duration: float) -> float:
    """Timeout in seconds for one FFmpeg call producing `duration` seconds of output."""
    return FFMPEG_TIMEOUT_BASE + max(duration, 0.0) * FFMPEG_TIMEOUT_PER_SECOND
