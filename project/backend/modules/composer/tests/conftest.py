"""
Pytest fixtures for composer tests.
"""
import asyncio
import pytest
from pathlib import Path
from typing import List, Optional, Sequence
from unittest.mock import MagicMock, AsyncMock, patch

from shared.config import settings
from shared.models.asset import GeneratedAsset
from shared.models.audio import AudioResult, SegmentTiming, VoiceoverResult
from shared.models.overlay import IntroConfig, SegmentLabelConfig, TextOverlayConfig
from shared.models.script import Script, ScriptSegment


def create_placeholder_file(path: Path, content: bytes = b"\x00") -> Path:
    """Write a small non-empty file (image/audio stand-in)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return path


@pytest.fixture
def content_id():
    return "content-test-001"


@pytest.fixture
def scratch_base(tmp_path, monkeypatch):
    """Route scratch arenas into tmp_path so tests can inspect leftovers."""
    base = tmp_path / "scratch"
    base.mkdir()
    monkeypatch.setattr(settings, "composer_scratch_dir", str(base))
    return base


@pytest.fixture
def make_inputs(tmp_path, content_id):
    """
    Build script, assets and audio for a run.

    durations: per-segment seconds; audio_duration defaults to their sum;
    overlays: optional caption per segment; asset_count lets a test drop assets.
    """
    def _make(
        durations: Sequence[float],
        audio_duration: Optional[float] = None,
        overlays: Optional[Sequence[Optional[str]]] = None,
        asset_count: Optional[int] = None,
        with_timings: bool = True
    ):
        overlays = overlays or [None] * len(durations)
        segments = [
            ScriptSegment(
                segment_index=i,
                duration=d,
                narration=f"Narration for segment {i}.",
                text_overlay=overlays[i]
            )
            for i, d in enumerate(durations)
        ]
        script = Script(title="how tides work", segments=segments, intro_subtext="A quick look")

        count = len(durations) if asset_count is None else asset_count
        assets: List[GeneratedAsset] = []
        for i in range(count):
            image = create_placeholder_file(tmp_path / "assets" / f"image_{i}.png")
            assets.append(GeneratedAsset(
                segment_index=i,
                local_path=str(image),
                width=1080,
                height=1920,
                duration=durations[i]
            ))

        voice_path = create_placeholder_file(tmp_path / "audio" / "voiceover.mp3")
        timings = []
        if with_timings:
            cursor = 0.0
            for i, d in enumerate(durations):
                timings.append(SegmentTiming(segment_index=i, start_time=cursor, end_time=cursor + d, duration=d))
                cursor += d

        audio = AudioResult(
            content_id=content_id,
            voiceover=VoiceoverResult(
                local_path=str(voice_path),
                duration=audio_duration if audio_duration is not None else sum(durations)
            ),
            segment_timings=timings
        )
        return script, assets, audio

    return _make


@pytest.fixture
def no_overlays():
    return TextOverlayConfig.disabled()


@pytest.fixture
def intro_overlays(tmp_path):
    """Intro on a flat color (no dependency on segment 0), labels enabled."""
    return TextOverlayConfig(
        intro=IntroConfig(duration=2.5, use_video_background=False),
        segment_labels=SegmentLabelConfig(),
        font_directory=str(tmp_path / "fonts")
    )


class FakeFFmpeg:
    """Stands in for asyncio.create_subprocess_exec; writes each command's output file."""

    def __init__(self, fail_on: Optional[str] = None, delay: float = 0.0):
        self.commands: List[List[str]] = []
        self.concat_lists: List[str] = []
        self.fail_on = fail_on
        self.delay = delay

    async def __call__(self, *cmd, **kwargs):
        cmd = [str(c) for c in cmd]
        self.commands.append(cmd)
        if "concat" in cmd:
            self.concat_lists.append(Path(cmd[cmd.index("-i") + 1]).read_text())
        failing = self.fail_on is not None and any(self.fail_on in c for c in cmd)
        delay = self.delay

        process = MagicMock()
        process.returncode = None

        async def communicate():
            if delay:
                await asyncio.sleep(delay)
            if failing:
                process.returncode = 1
                return b"", b"Conversion failed!"
            Path(cmd[-1]).write_bytes(b"rendered")
            process.returncode = 0
            return b"", b""

        process.communicate = communicate
        process.kill = MagicMock()
        process.wait = AsyncMock(return_value=0)
        return process

    def outputs(self) -> List[str]:
        return [Path(c[-1]).name for c in self.commands]


@pytest.fixture
def fake_ffmpeg():
    """Patch subprocess creation and the PATH check for FFmpeg-engine runs."""
    fake = FakeFFmpeg()
    with patch("modules.composer.utils.asyncio.create_subprocess_exec", new=fake), \
         patch("modules.composer.engine.check_ffmpeg_available", return_value=True):
        yield fake
