"""
Clip concatenation for composer module.

Joins the intro clip (if any) and segment clips, in segment index order, into
one silent video. All inputs share encode parameters, so the join is a stream
copy.
"""
from pathlib import Path
from typing import Dict, List, Optional

from shared.errors import InternalConsistencyError
from shared.logging import get_logger
from .utils import run_ffmpeg_command
from .config import FFMPEG_BINARY, ffmpeg_timeout

logger = get_logger("composer.concatenator")


def order_concat_inputs(
    intro_clip: Optional[Path],
    segment_clips: Dict[int, Path],
    content_id: Optional[str] = None
) -> List[Path]:
    """
    Order clips for concatenation regardless of completion order.

    Args:
        intro_clip: Intro clip, or None
        segment_clips: Final clip per segment index
        content_id: Content ID for error context

    Returns:
        [intro?, segment 0, segment 1, ...]

    Raises:
        InternalConsistencyError: If indices have gaps or a clip is missing on disk
    """
    indices = sorted(segment_clips)
    if indices != list(range(len(indices))):
        raise InternalConsistencyError(
            f"Segment clip indices are not contiguous: {indices}",
            content_id=content_id,
            stage="concat"
        )

    ordered = [segment_clips[i] for i in indices]
    if intro_clip is not None:
        ordered.insert(0, intro_clip)

    missing = [str(p) for p in ordered if not p.exists()]
    if missing:
        raise InternalConsistencyError(
            f"Clips missing before concatenation: {missing}",
            content_id=content_id,
            stage="concat"
        )

    return ordered


def write_concat_list(clip_paths: List[Path], list_path: Path) -> Path:
    """Write an FFmpeg concat demuxer list file."""
    with open(list_path, "w", encoding="utf-8") as f:
        for clip_path in clip_paths:
            escaped = str(clip_path.absolute()).replace("'", "'\\''")
            f.write(f"file '{escaped}'\n")
    return list_path


async def concatenate_clips(
    clip_paths: List[Path],
    list_path: Path,
    output_path: Path,
    content_id: Optional[str] = None,
    expected_duration: float = 0.0
) -> Path:
    """
    Concatenate clips with stream copy.

    Args:
        clip_paths: Ordered clips (see order_concat_inputs)
        list_path: Where to write the concat list
        output_path: Joined video to write
        content_id: Content ID for logging
        expected_duration: Sum of clip durations, used for the timeout

    Returns:
        output_path
    """
    write_concat_list(clip_paths, list_path)

    ffmpeg_cmd = [
        FFMPEG_BINARY,
        "-y",
        "-f", "concat",
        "-safe", "0",
        "-i", str(list_path),
        "-c", "copy",
        str(output_path)
    ]

    logger.info(
        f"Concatenating {len(clip_paths)} clips",
        extra={"content_id": content_id, "clip_count": len(clip_paths)}
    )

    # Stream copy is far faster than real time; the duration term is generous
    await run_ffmpeg_command(
        ffmpeg_cmd,
        content_id=content_id,
        timeout=ffmpeg_timeout(expected_duration),
        stage="concat"
    )

    if not output_path.exists():
        raise InternalConsistencyError(
            f"Concatenated video not created: {output_path}",
            content_id=content_id,
            stage="concat"
        )

    return output_path
