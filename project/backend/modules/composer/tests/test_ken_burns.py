"""
Unit tests for Ken Burns segment rendering.
"""
import pytest
from pathlib import Path

from modules.composer.ken_burns import (
    build_ken_burns_filter,
    frame_count,
    render_segment_clip,
    zoom_increment
)
from shared.errors import EncodeFailureError, InternalConsistencyError


class TestFrameMath:
    """Tests for frame_count and zoom_increment."""

    def test_frame_count(self):
        assert frame_count(3.0, 30) == 90
        assert frame_count(0.01, 30) == 1

    def test_zoom_reaches_end_on_last_frame(self):
        increment = zoom_increment(4.0, 1.08, 30)
        assert increment * frame_count(4.0, 30) == pytest.approx(0.08)


class TestBuildKenBurnsFilter:
    """Tests for build_ken_burns_filter function."""

    def test_zoom_in_filter(self):
        vf = build_ken_burns_filter(5.0, 1080, 1920, 30, 1.08, "in")

        assert vf.startswith("scale=1080:1920:force_original_aspect_ratio=increase,crop=1080:1920,")
        assert "zoompan=z='min(1+" in vf
        assert ",1.08)'" in vf
        assert ":s=1080x1920:fps=30" in vf
        assert vf.endswith("setsar=1")

    def test_zoom_out_filter(self):
        vf = build_ken_burns_filter(5.0, direction="out")

        assert "z='max(1.08-" in vf

    def test_centered_pan(self):
        vf = build_ken_burns_filter(2.0)

        assert "x='iw/2-(iw/zoom/2)'" in vf
        assert "y='ih/2-(ih/zoom/2)'" in vf


class TestRenderSegmentClip:
    """Tests for render_segment_clip function."""

    @pytest.mark.asyncio
    async def test_command_shape(self, tmp_path, fake_ffmpeg):
        image = tmp_path / "image.png"
        image.write_bytes(b"png")
        output = tmp_path / "segment_000.mp4"

        result = await render_segment_clip(image, output, 3.5, content_id="c1", segment_index=0)

        assert result == output
        assert output.exists()
        cmd = fake_ffmpeg.commands[0]
        assert cmd[cmd.index("-loop") + 1] == "1"
        assert cmd[cmd.index("-t") + 1] == "3.500"
        assert cmd[cmd.index("-c:v") + 1] == "libx264"
        assert cmd[cmd.index("-pix_fmt") + 1] == "yuv420p"
        assert "-an" in cmd
        assert cmd[-1] == str(output)

    @pytest.mark.asyncio
    async def test_failure_is_tagged_with_segment_stage(self, tmp_path, fake_ffmpeg):
        fake_ffmpeg.fail_on = "segment_002"

        with pytest.raises(EncodeFailureError) as exc_info:
            await render_segment_clip(tmp_path / "i.png", tmp_path / "segment_002.mp4", 2.0, "c1", 2)

        assert exc_info.value.stage == "motion[2]"
        assert exc_info.value.content_id == "c1"

    @pytest.mark.asyncio
    async def test_missing_output_raises(self, tmp_path, monkeypatch):
        async def no_output(*args, **kwargs):
            return None

        monkeypatch.setattr("modules.composer.ken_burns.run_ffmpeg_command", no_output)

        with pytest.raises(InternalConsistencyError):
            await render_segment_clip(tmp_path / "i.png", tmp_path / "segment_000.mp4", 2.0, "c1", 0)
