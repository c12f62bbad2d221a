"""
Utility functions for composer module.

FFmpeg command execution and availability checks.
"""
import asyncio
import shutil
from typing import List, Optional

from shared.errors import EncodeFailureError, EncodeTimeoutError, EngineLaunchError
from shared.logging import get_logger
from shared.retry import retry_with_backoff
from .config import (
    FFMPEG_BINARY,
    FFMPEG_LAUNCH_RETRY_DELAY,
    FFMPEG_PRESET,
    FFMPEG_CRF,
    OUTPUT_VIDEO_CODEC,
    OUTPUT_PIX_FMT,
    VIDEO_TRACK_TIMESCALE
)

logger = get_logger("composer.utils")

# Keep error messages readable; FFmpeg prints the useful part last
STDERR_TAIL_CHARS = 1500


def check_ffmpeg_available() -> bool:
    """
    Check if FFmpeg is installed and available in PATH.

    Returns:
        True if FFmpeg is available, False otherwise
    """
    return shutil.which(FFMPEG_BINARY) is not None


async def _terminate(process: asyncio.subprocess.Process) -> None:
    """Kill a running FFmpeg process and reap it."""
    if process.returncode is None:
        try:
            process.kill()
        except ProcessLookupError:
            pass
        await process.wait()


@retry_with_backoff(
    max_attempts=2,
    base_delay=FFMPEG_LAUNCH_RETRY_DELAY,
    retryable_exceptions=(EngineLaunchError,)
)
async def run_ffmpeg_command(
    cmd: List[str],
    content_id: Optional[str] = None,
    timeout: float = 300,
    stage: Optional[str] = None
) -> None:
    """
    Run FFmpeg command.

    Only a launch failure is retried (once). A non-zero exit or a timeout is
    final: the content is bad or the process is stuck, and another attempt
    would not change that.

    Args:
        cmd: FFmpeg command as list of strings
        content_id: Content ID for logging and error context
        timeout: Timeout in seconds
        stage: Pipeline stage name for error context

    Raises:
        EngineLaunchError: If the binary could not be started (after retry)
        EncodeFailureError: If FFmpeg exits non-zero
        EncodeTimeoutError: If FFmpeg exceeds the timeout (process is killed)
    """
    logger.debug(
        f"Running FFmpeg command: {' '.join(cmd)}",
        extra={"content_id": content_id, "stage": stage, "timeout": timeout}
    )

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE
        )
    except OSError as e:
        raise EngineLaunchError(
            f"Could not start {cmd[0]}: {e}",
            content_id=content_id,
            stage=stage
        ) from e

    try:
        _, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        await _terminate(process)
        raise EncodeTimeoutError(
            f"FFmpeg command timeout after {timeout:.0f}s",
            content_id=content_id,
            stage=stage
        )
    except asyncio.CancelledError:
        await _terminate(process)
        raise

    if process.returncode != 0:
        error_msg = stderr.decode(errors="replace")[-STDERR_TAIL_CHARS:] if stderr else "Unknown FFmpeg error"
        logger.error(
            f"FFmpeg command failed with exit code {process.returncode}",
            extra={"content_id": content_id, "stage": stage, "error": error_msg}
        )
        raise EncodeFailureError(
            f"FFmpeg exited with code {process.returncode}: {error_msg.strip()}",
            content_id=content_id,
            stage=stage
        )


def video_encode_args(fps: int, include_audio: bool = False) -> List[str]:
    """
    Output options shared by every clip the composer renders.

    Segment clips, labeled clips and the intro clip all use these, which is
    what lets the concatenator stream-copy instead of re-encoding.
    """
    args = [
        "-c:v", OUTPUT_VIDEO_CODEC,
        "-preset", FFMPEG_PRESET,
        "-crf", str(FFMPEG_CRF),
        "-pix_fmt", OUTPUT_PIX_FMT,
        "-r", str(fps),
        "-video_track_timescale", str(VIDEO_TRACK_TIMESCALE),
    ]
    if not include_audio:
        args.append("-an")
    return args
