"""
Segment timing resolution for composer module.

Turns the script, the generated assets and the narration's measured segment
boundaries into the visual track layout. Pure functions: no I/O besides the
existence checks in validate_inputs, no randomness.
"""
from pathlib import Path
from typing import List, Optional, Sequence

from shared.errors import InputMismatchError
from shared.logging import get_logger
from shared.models.asset import GeneratedAsset
from shared.models.audio import SegmentTiming, VoiceoverResult
from shared.models.script import Script
from shared.models.video import VisualTiming

logger = get_logger("composer.timing")


def validate_inputs(
    script: Script,
    assets: Sequence[GeneratedAsset],
    voiceover: VoiceoverResult,
    content_id: Optional[str] = None
) -> None:
    """
    Fail fast on inputs that can never compose.

    Args:
        script: Script with ordered segments
        assets: One generated image per segment
        voiceover: Narration track
        content_id: Content ID for error context

    Raises:
        InputMismatchError: Count mismatch, non-contiguous indices, or a missing file
    """
    def mismatch(message: str) -> InputMismatchError:
        return InputMismatchError(message, content_id=content_id, stage="validate")

    if len(script.segments) != len(assets):
        raise mismatch(
            f"Script has {len(script.segments)} segments but {len(assets)} assets were generated"
        )

    asset_indices = sorted(a.segment_index for a in assets)
    if asset_indices != list(range(len(assets))):
        raise mismatch(f"Asset indices must be contiguous 0..{len(assets) - 1}, got {asset_indices}")

    segment_indices = sorted(s.segment_index for s in script.segments)
    if segment_indices != list(range(len(script.segments))):
        raise mismatch(
            f"Script segment indices must be contiguous 0..{len(script.segments) - 1}, got {segment_indices}"
        )

    missing = [a.local_path for a in assets if not Path(a.local_path).is_file()]
    if missing:
        raise mismatch(f"Asset file(s) not found: {', '.join(missing)}")

    if not Path(voiceover.local_path).is_file():
        raise mismatch(f"Voiceover file not found: {voiceover.local_path}")


def resolve_visual_timings(
    script: Script,
    assets: Sequence[GeneratedAsset],
    segment_timings: Optional[Sequence[SegmentTiming]] = None
) -> List[VisualTiming]:
    """
    Build the ordered visual timing table.

    Narration timing is authoritative: where a SegmentTiming exists for an
    index its start/end/duration are used unchanged. Otherwise the asset's
    declared duration d places the segment at [i * d, (i + 1) * d].

    Args:
        script: Script (source of per-segment text overlays)
        assets: Generated assets, any order
        segment_timings: Measured narration timings, possibly shorter than the script

    Returns:
        VisualTiming list ordered by segment index
    """
    by_index = {t.segment_index: t for t in (segment_timings or [])}
    overlays = {s.segment_index: s.text_overlay for s in script.segments}

    timings: List[VisualTiming] = []
    for asset in sorted(assets, key=lambda a: a.segment_index):
        i = asset.segment_index
        audio_timing = by_index.get(i)

        if audio_timing is not None:
            start, end, duration = audio_timing.start_time, audio_timing.end_time, audio_timing.duration
        else:
            logger.warning(
                f"No audio timing for segment {i}, using asset duration {asset.duration}s",
                extra={"segment_index": i}
            )
            start = i * asset.duration
            end = (i + 1) * asset.duration
            duration = asset.duration

        timings.append(VisualTiming(
            segment_index=i,
            asset_path=asset.local_path,
            start_time=start,
            end_time=end,
            duration=duration,
            text_overlay=overlays.get(i),
            ken_burns_direction="in"
        ))

    return timings


def visual_track_duration(timings: Sequence[VisualTiming], intro_duration: float = 0.0) -> float:
    """Length of the concatenated visual stream: intro plus every segment clip."""
    return intro_duration + sum(t.duration for t in timings)


def final_duration(visual_duration: float, audio_duration: float) -> float:
    """Shortest wins: no frozen last frame, no trailing silence."""
    return min(visual_duration, audio_duration)
