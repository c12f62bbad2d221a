"""
Audio muxing for composer module.

Lays the voiceover under the concatenated video. The output ends at the
shorter of the two tracks (shortest-wins), passed in precomputed.
"""
from pathlib import Path
from typing import Optional

from shared.errors import InternalConsistencyError
from shared.logging import get_logger
from .utils import run_ffmpeg_command
from .config import (
    FFMPEG_BINARY,
    OUTPUT_AUDIO_BITRATE,
    OUTPUT_AUDIO_CODEC,
    OUTPUT_AUDIO_SAMPLE_RATE,
    ffmpeg_timeout
)

logger = get_logger("composer.audio_syncer")


async def mux_audio(
    video_path: Path,
    audio_path: Path,
    output_path: Path,
    duration: float,
    content_id: Optional[str] = None
) -> Path:
    """
    Combine the silent video with the voiceover.

    Args:
        video_path: Concatenated video (no audio)
        audio_path: Voiceover file
        output_path: Final video to write
        duration: Output duration, min(visual track, audio)
        content_id: Content ID for logging

    Returns:
        output_path

    Raises:
        InternalConsistencyError: If the output is missing or empty
    """
    ffmpeg_cmd = [
        FFMPEG_BINARY,
        "-y",
        "-i", str(video_path),
        "-i", str(audio_path),
        "-map", "0:v:0",
        "-map", "1:a:0",
        "-c:v", "copy",
        "-c:a", OUTPUT_AUDIO_CODEC,
        "-b:a", OUTPUT_AUDIO_BITRATE,
        "-ar", str(OUTPUT_AUDIO_SAMPLE_RATE),
        "-t", f"{duration:.3f}",
        "-movflags", "+faststart",
        str(output_path)
    ]

    logger.info(
        f"Muxing audio ({duration:.2f}s)",
        extra={"content_id": content_id, "duration": duration}
    )

    await run_ffmpeg_command(
        ffmpeg_cmd,
        content_id=content_id,
        timeout=ffmpeg_timeout(duration),
        stage="mux"
    )

    if not output_path.exists() or output_path.stat().st_size == 0:
        raise InternalConsistencyError(
            f"Final video missing or empty: {output_path}",
            content_id=content_id,
            stage="mux"
        )

    return output_path
