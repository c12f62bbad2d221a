"""
Main entry point for composer module.

Orchestrates video composition: validates inputs, resolves the visual
timing table, renders segment clips (and the intro clip) in parallel,
concatenates them in segment order, muxes the voiceover, and optionally
publishes the result.
"""
import asyncio
import os
import shutil
import time
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Awaitable, Dict, List, Optional

from shared.config import settings
from shared.errors import CompositionError, PipelineError
from shared.logging import get_logger, set_content_id
from shared.models.asset import GeneratedAsset
from shared.models.audio import AudioResult
from shared.models.overlay import TextOverlayConfig
from shared.models.script import Script
from shared.models.video import ComposerOutput, CompositionDetails, FinalVideo, VisualTiming

from .config import FINAL_VIDEO_NAME, OUTPUT_ASPECT_RATIO, OUTPUT_RESOLUTION
from .concatenator import order_concat_inputs
from .engine import MediaEngine, get_engine
from .publisher import ArtifactPublisher, publish_final_video
from .scratch import ScratchArena, scratch_arena
from .timing import final_duration, resolve_visual_timings, validate_inputs, visual_track_duration

logger = get_logger("composer.process")


async def gather_or_cancel(*aws: Awaitable[Any]) -> List[Any]:
    """
    Run awaitables concurrently; on the first failure cancel the rest.

    Unlike asyncio.gather, siblings never keep running (and keep writing
    scratch files) after one of them has failed.

    Returns:
        Results in argument order

    Raises:
        The first exception raised by any awaitable
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    if not tasks:
        return []

    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    except asyncio.CancelledError:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    if pending:
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    for task in tasks:
        if task in done and not task.cancelled() and task.exception() is not None:
            raise task.exception()

    return [task.result() for task in tasks]


class _RenderPlan:
    """Shared state for one run's render fan-out."""

    def __init__(
        self,
        content_id: str,
        engine: MediaEngine,
        arena: ScratchArena,
        overlay_config: TextOverlayConfig,
        max_parallel: int
    ):
        self.content_id = content_id
        self.engine = engine
        self.arena = arena
        self.overlay_config = overlay_config
        self.slots = asyncio.Semaphore(max_parallel)
        self.first_clip_ready = asyncio.Event()
        self.final_clips: Dict[int, Path] = {}

    async def render_segment(self, timing: VisualTiming) -> Path:
        """Motion clip, then the caption burn when the segment has one."""
        i = timing.segment_index
        async with self.slots:
            clip = await self.engine.render_segment_clip(
                Path(timing.asset_path),
                self.arena.segment_clip(i),
                timing.duration,
                content_id=self.content_id,
                segment_index=i,
                direction=timing.ken_burns_direction
            )
        if i == 0:
            self.first_clip_ready.set()

        labels = self.overlay_config.segment_labels
        if labels.enabled and timing.text_overlay:
            async with self.slots:
                clip = await self.engine.burn_segment_label(
                    clip,
                    self.arena.labeled_clip(i),
                    timing.text_overlay,
                    timing.duration,
                    self.overlay_config,
                    content_id=self.content_id,
                    segment_index=i
                )

        self.final_clips[i] = clip
        return clip

    async def render_intro(self, script: Script, first_segment: VisualTiming) -> Path:
        """Intro card; samples segment 0's raw clip when it uses a video background."""
        intro = self.overlay_config.intro
        background_frame = None

        if intro.use_video_background:
            await self.first_clip_ready.wait()
            async with self.slots:
                background_frame = await self.engine.extract_background_frame(
                    self.arena.segment_clip(first_segment.segment_index),
                    self.arena.intro_background_frame(),
                    first_segment.duration / 2,
                    content_id=self.content_id
                )

        async with self.slots:
            return await self.engine.render_intro_clip(
                self.arena.intro_clip(),
                script.intro_phrase,
                script.intro_subtext,
                self.overlay_config,
                background_frame=background_frame,
                content_id=self.content_id
            )


def _move_into_place(source: Path, final_path: Path) -> None:
    """
    Replace final_path with a finished file.

    The file is staged beside the destination first so the swap is a single
    rename even when the scratch directory is on another filesystem.
    """
    final_path.parent.mkdir(parents=True, exist_ok=True)
    staged = final_path.with_name(f".{final_path.name}.partial")
    try:
        shutil.move(str(source), str(staged))
        os.replace(staged, final_path)
    except OSError:
        staged.unlink(missing_ok=True)
        raise


async def process(
    content_id: str,
    script: Script,
    assets: List[GeneratedAsset],
    audio: AudioResult,
    overlay_config: TextOverlayConfig,
    *,
    output_dir: Optional[str] = None,
    mock_mode: Optional[bool] = None,
    publisher: Optional[ArtifactPublisher] = None,
    max_parallel: Optional[int] = None
) -> ComposerOutput:
    """
    Main composition function.

    Args:
        content_id: Content identifier (names the output directory and scratch arena)
        script: Script with ordered segments and optional intro text
        assets: One generated image per segment
        audio: Voiceover and measured per-segment timings
        overlay_config: Fully resolved overlay configuration (TextOverlayConfig.disabled() for none)
        output_dir: Directory for final_video.mp4 (COMPOSER_OUTPUT_DIR/content_id when None)
        mock_mode: Use the stub engine (COMPOSER_MOCK_MODE when None)
        publisher: Upload the result when given
        max_parallel: Concurrent renders within this run (COMPOSER_MAX_PARALLEL when None)

    Returns:
        ComposerOutput with the final video and its timing manifest

    Raises:
        InputMismatchError: Inputs can never compose (raised before any rendering)
        EncodeFailureError / EncodeTimeoutError: A render step failed
        InternalConsistencyError: A stage's expected artifact is missing
        CompositionError: Any other failure during composition
        PublishError: Upload failed; .output holds the valid, unpublished result
    """
    set_content_id(content_id)
    start_time = time.time()

    max_parallel = max_parallel or settings.composer_max_parallel
    video_dir = Path(output_dir) if output_dir else Path(settings.composer_output_dir) / content_id
    final_path = video_dir / FINAL_VIDEO_NAME
    voiceover = audio.voiceover

    stage = "validate"
    try:
        # Step 1: Fail fast before anything touches the disk
        validate_inputs(script, assets, voiceover, content_id)

        # Step 2: Timing table and shortest-wins duration
        stage = "resolve"
        visual_timings = resolve_visual_timings(script, assets, audio.segment_timings)
        intro_enabled = overlay_config.intro.enabled
        intro_duration = overlay_config.intro.duration if intro_enabled else 0.0
        visual_duration = visual_track_duration(visual_timings, intro_duration)
        output_duration = final_duration(visual_duration, voiceover.duration)
        has_text_overlays = overlay_config.segment_labels.enabled and any(
            t.text_overlay for t in visual_timings
        )

        logger.info(
            f"Composing {len(visual_timings)} segments: visual {visual_duration:.2f}s, "
            f"audio {voiceover.duration:.2f}s, final {output_duration:.2f}s",
            extra={
                "content_id": content_id,
                "segment_count": len(visual_timings),
                "intro_duration": intro_duration,
                "visual_duration": visual_duration,
                "audio_duration": voiceover.duration,
                "final_duration": output_duration
            }
        )
        if abs(visual_duration - voiceover.duration) > 0.5:
            logger.warning(
                f"Visual track and narration differ by {abs(visual_duration - voiceover.duration):.2f}s, "
                f"output will be cut to {output_duration:.2f}s",
                extra={"content_id": content_id}
            )

        # Step 3: One engine for the whole run
        stage = "preflight"
        engine = get_engine(mock_mode)
        engine.preflight()

        async with scratch_arena(content_id, settings.composer_scratch_dir) as arena:
            # Step 4: Parallel renders
            stage = "render"
            plan = _RenderPlan(content_id, engine, arena, overlay_config, max_parallel)
            render_tasks = [plan.render_segment(t) for t in visual_timings]
            if intro_enabled:
                render_tasks.append(plan.render_intro(script, visual_timings[0]))
            await gather_or_cancel(*render_tasks)

            # Step 5: Barrier passed, join in segment order
            stage = "concat"
            ordered_clips = order_concat_inputs(
                arena.intro_clip() if intro_enabled else None,
                plan.final_clips,
                content_id
            )
            concatenated = await engine.concatenate(
                ordered_clips,
                arena.concat_list(),
                arena.concatenated(),
                content_id=content_id,
                expected_duration=visual_duration
            )

            # Step 6: Voiceover, cut to the shorter track
            stage = "mux"
            await engine.mux_audio(
                concatenated,
                Path(voiceover.local_path),
                arena.final_video(),
                output_duration,
                content_id=content_id
            )

            # Step 7: Only a finished video replaces an earlier run's output
            stage = "output"
            _move_into_place(arena.final_video(), final_path)

        total_time_ms = int((time.time() - start_time) * 1000)
        output = ComposerOutput(
            content_id=content_id,
            final_video=FinalVideo(
                local_path=str(final_path),
                duration=output_duration,
                resolution=OUTPUT_RESOLUTION,
                aspect_ratio=OUTPUT_ASPECT_RATIO,
                file_size=final_path.stat().st_size,
                processed_at=datetime.now(timezone.utc)
            ),
            composition=CompositionDetails(
                visual_timings=visual_timings,
                audio_path=voiceover.local_path,
                audio_duration=voiceover.duration,
                has_text_overlays=has_text_overlays,
                intro_duration=intro_duration,
                engine=engine.name
            ),
            output_dir=str(video_dir),
            generated_at=datetime.now(timezone.utc),
            total_cost=Decimal("0.00"),
            total_time_ms=total_time_ms
        )

    except asyncio.CancelledError:
        logger.warning(f"Composition cancelled during {stage}", extra={"content_id": content_id, "stage": stage})
        raise
    except PipelineError as e:
        e.tag(content_id, stage)
        logger.error(
            f"Composition failed: {e}",
            extra={"content_id": content_id, "stage": e.stage, "error_kind": e.kind}
        )
        raise
    except Exception as e:
        logger.error(
            f"Unexpected error in composer: {e}",
            exc_info=True,
            extra={"content_id": content_id, "stage": stage}
        )
        raise CompositionError(f"Unexpected error: {e}", content_id=content_id, stage=stage) from e

    logger.info(
        f"Composition complete in {output.total_time_ms / 1000:.2f}s ({output_duration:.2f}s video)",
        extra={
            "content_id": content_id,
            "final_path": str(final_path),
            "file_size": output.final_video.file_size,
            "engine": engine.name,
            "total_time_ms": output.total_time_ms
        }
    )

    # Step 8: Optional publish; a failure leaves the local file in place
    if publisher is not None:
        output = await publish_final_video(output, publisher)

    return output
