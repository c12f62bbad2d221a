"""
Unit tests for media engine selection and the stub engine.
"""
import pytest
from pathlib import Path
from unittest.mock import patch

from modules.composer.engine import PLACEHOLDER_MP4, FFmpegEngine, StubEngine, get_engine
from shared.errors import EncodeFailureError
from shared.models.overlay import TextOverlayConfig


class TestGetEngine:
    """Tests for get_engine function."""

    def test_explicit_choice(self):
        assert isinstance(get_engine(True), StubEngine)
        assert isinstance(get_engine(False), FFmpegEngine)

    def test_falls_back_to_settings(self, monkeypatch):
        from shared.config import settings
        monkeypatch.setattr(settings, "composer_mock_mode", True)

        assert get_engine().name == "stub"


class TestPreflight:
    """Tests for engine preflight checks."""

    @patch("modules.composer.engine.check_ffmpeg_available", return_value=False)
    def test_ffmpeg_missing(self, _):
        with pytest.raises(EncodeFailureError, match="FFmpeg not found") as exc_info:
            FFmpegEngine().preflight()

        assert exc_info.value.stage == "preflight"

    @patch("modules.composer.engine.check_ffmpeg_available", return_value=False)
    def test_stub_needs_no_ffmpeg(self, _):
        StubEngine().preflight()


class TestStubEngine:
    """Tests for StubEngine outputs."""

    def test_placeholder_is_iso_bmff(self):
        assert PLACEHOLDER_MP4[4:8] == b"ftyp"
        assert PLACEHOLDER_MP4[8:12] == b"isom"
        assert PLACEHOLDER_MP4[-4:] == b"mdat"
        assert len(PLACEHOLDER_MP4) == 0x1C + 8

    @pytest.mark.asyncio
    @patch("modules.composer.utils.asyncio.create_subprocess_exec")
    async def test_never_launches_subprocess(self, mock_subprocess, tmp_path):
        engine = StubEngine()
        clip = await engine.render_segment_clip(tmp_path / "img.png", tmp_path / "segment_000.mp4", 3.0)
        labeled = await engine.burn_segment_label(
            clip, tmp_path / "segment_000_labeled.mp4", "Tides", 3.0, TextOverlayConfig()
        )
        joined = await engine.concatenate([labeled], tmp_path / "concat_list.txt", tmp_path / "concatenated.mp4")
        final = await engine.mux_audio(joined, tmp_path / "voice.mp3", tmp_path / "final_video.mp4", 3.0)

        mock_subprocess.assert_not_called()
        assert final.read_bytes() == PLACEHOLDER_MP4
        assert (tmp_path / "concat_list.txt").exists()
