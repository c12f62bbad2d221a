"""
Unit tests for audio muxing.
"""
import pytest
from pathlib import Path

from modules.composer.audio_syncer import mux_audio
from shared.errors import InternalConsistencyError


@pytest.mark.asyncio
async def test_mux_audio_command(tmp_path, fake_ffmpeg):
    """Video copied, voiceover encoded to AAC, output cut to the given duration."""
    video = tmp_path / "concatenated.mp4"
    audio = tmp_path / "voiceover.mp3"
    output = tmp_path / "final_video.mp4"

    result = await mux_audio(video, audio, output, 18.5, content_id="c1")

    assert result == output
    cmd = fake_ffmpeg.commands[0]
    maps = [cmd[i + 1] for i, arg in enumerate(cmd) if arg == "-map"]
    assert maps == ["0:v:0", "1:a:0"]
    assert cmd[cmd.index("-c:v") + 1] == "copy"
    assert cmd[cmd.index("-c:a") + 1] == "aac"
    assert cmd[cmd.index("-b:a") + 1] == "192k"
    assert cmd[cmd.index("-ar") + 1] == "44100"
    assert cmd[cmd.index("-t") + 1] == "18.500"
    assert cmd[cmd.index("-movflags") + 1] == "+faststart"
    assert "-shortest" not in cmd


@pytest.mark.asyncio
async def test_mux_audio_empty_output(tmp_path, monkeypatch):
    """An empty final file is never reported as success."""
    output = tmp_path / "final_video.mp4"

    async def empty_output(cmd, **kwargs):
        Path(cmd[-1]).write_bytes(b"")

    monkeypatch.setattr("modules.composer.audio_syncer.run_ffmpeg_command", empty_output)

    with pytest.raises(InternalConsistencyError) as exc_info:
        await mux_audio(tmp_path / "v.mp4", tmp_path / "a.mp3", output, 10.0, content_id="c1")

    assert exc_info.value.stage == "mux"
