"""
Media engines for composer module.

The orchestrator drives every stage through a MediaEngine chosen once per
run: FFmpegEngine renders for real, StubEngine writes placeholder files so the
whole pipeline (timing, ordering, cleanup, output shape) runs without FFmpeg.
"""
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

from shared.config import settings
from shared.errors import EncodeFailureError
from shared.logging import get_logger
from shared.models.overlay import TextOverlayConfig
from shared.models.video import KenBurnsDirection
from . import audio_syncer, concatenator, ken_burns, text_overlay
from .utils import check_ffmpeg_available

logger = get_logger("composer.engine")

# Smallest well-formed ISO-BMFF file: an isom ftyp box and an empty mdat box
PLACEHOLDER_MP4 = bytes([
    0x00, 0x00, 0x00, 0x1C, 0x66, 0x74, 0x79, 0x70,
    0x69, 0x73, 0x6F, 0x6D, 0x00, 0x00, 0x02, 0x00,
    0x69, 0x73, 0x6F, 0x6D, 0x69, 0x73, 0x6F, 0x32,
    0x6D, 0x70, 0x34, 0x31,
    0x00, 0x00, 0x00, 0x08, 0x6D, 0x64, 0x61, 0x74,
])


class MediaEngine(ABC):
    """Stage operations the orchestrator needs from a media backend."""

    name: str = ""

    @abstractmethod
    def preflight(self) -> None:
        """Fail fast if the engine cannot run at all."""

    @abstractmethod
    async def render_segment_clip(
        self,
        image_path: Path,
        output_path: Path,
        duration: float,
        content_id: Optional[str] = None,
        segment_index: Optional[int] = None,
        direction: KenBurnsDirection = "in"
    ) -> Path:
        ...

    @abstractmethod
    async def burn_segment_label(
        self,
        input_path: Path,
        output_path: Path,
        label: str,
        segment_duration: float,
        overlay_config: TextOverlayConfig,
        content_id: Optional[str] = None,
        segment_index: Optional[int] = None
    ) -> Path:
        ...

    @abstractmethod
    async def extract_background_frame(
        self,
        clip_path: Path,
        frame_path: Path,
        at_time: float,
        content_id: Optional[str] = None
    ) -> Path:
        ...

    @abstractmethod
    async def render_intro_clip(
        self,
        output_path: Path,
        intro_text: str,
        intro_subtext: Optional[str],
        overlay_config: TextOverlayConfig,
        background_frame: Optional[Path] = None,
        content_id: Optional[str] = None
    ) -> Path:
        ...

    @abstractmethod
    async def concatenate(
        self,
        clip_paths: List[Path],
        list_path: Path,
        output_path: Path,
        content_id: Optional[str] = None,
        expected_duration: float = 0.0
    ) -> Path:
        ...

    @abstractmethod
    async def mux_audio(
        self,
        video_path: Path,
        audio_path: Path,
        output_path: Path,
        duration: float,
        content_id: Optional[str] = None
    ) -> Path:
        ...


class FFmpegEngine(MediaEngine):
    """Renders with FFmpeg subprocesses."""

    name = "ffmpeg"

    def preflight(self) -> None:
        if not check_ffmpeg_available():
            raise EncodeFailureError(
                "FFmpeg not found in PATH (set COMPOSER_MOCK_MODE=true to run without it)",
                stage="preflight"
            )

    async def render_segment_clip(self, image_path, output_path, duration, content_id=None,
                                  segment_index=None, direction="in"):
        return await ken_burns.render_segment_clip(
            image_path, output_path, duration, content_id, segment_index, direction
        )

    async def burn_segment_label(self, input_path, output_path, label, segment_duration,
                                 overlay_config, content_id=None, segment_index=None):
        return await text_overlay.burn_segment_label(
            input_path, output_path, label, segment_duration, overlay_config, content_id, segment_index
        )

    async def extract_background_frame(self, clip_path, frame_path, at_time, content_id=None):
        return await text_overlay.extract_background_frame(clip_path, frame_path, at_time, content_id)

    async def render_intro_clip(self, output_path, intro_text, intro_subtext, overlay_config,
                                background_frame=None, content_id=None):
        return await text_overlay.render_intro_clip(
            output_path, intro_text, intro_subtext, overlay_config, background_frame, content_id
        )

    async def concatenate(self, clip_paths, list_path, output_path, content_id=None, expected_duration=0.0):
        return await concatenator.concatenate_clips(
            clip_paths, list_path, output_path, content_id, expected_duration
        )

    async def mux_audio(self, video_path, audio_path, output_path, duration, content_id=None):
        return await audio_syncer.mux_audio(video_path, audio_path, output_path, duration, content_id)


class StubEngine(MediaEngine):
    """Writes placeholder files; never launches a subprocess."""

    name = "stub"

    def preflight(self) -> None:
        logger.info("Composer running in mock mode, no FFmpeg calls will be made")

    @staticmethod
    def _write_placeholder(output_path: Path) -> Path:
        output_path.write_bytes(PLACEHOLDER_MP4)
        return output_path

    async def render_segment_clip(self, image_path, output_path, duration, content_id=None,
                                  segment_index=None, direction="in"):
        return self._write_placeholder(output_path)

    async def burn_segment_label(self, input_path, output_path, label, segment_duration,
                                 overlay_config, content_id=None, segment_index=None):
        return self._write_placeholder(output_path)

    async def extract_background_frame(self, clip_path, frame_path, at_time, content_id=None):
        return self._write_placeholder(frame_path)

    async def render_intro_clip(self, output_path, intro_text, intro_subtext, overlay_config,
                                background_frame=None, content_id=None):
        return self._write_placeholder(output_path)

    async def concatenate(self, clip_paths, list_path, output_path, content_id=None, expected_duration=0.0):
        concatenator.write_concat_list(clip_paths, list_path)
        return self._write_placeholder(output_path)

    async def mux_audio(self, video_path, audio_path, output_path, duration, content_id=None):
        return self._write_placeholder(output_path)


def get_engine(mock_mode: Optional[bool] = None) -> MediaEngine:
    """
    Pick the engine for one run.

    Args:
        mock_mode: Explicit choice; falls back to COMPOSER_MOCK_MODE when None
    """
    if mock_mode is None:
        mock_mode = settings.composer_mock_mode
    return StubEngine() if mock_mode else FFmpegEngine()
