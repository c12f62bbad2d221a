"""
Unit tests for composer utils.
"""
import asyncio
import pytest
from unittest.mock import patch, MagicMock, AsyncMock

from modules.composer.utils import (
    check_ffmpeg_available,
    run_ffmpeg_command,
    video_encode_args
)
from shared.errors import EncodeFailureError, EncodeTimeoutError, EngineLaunchError


class TestCheckFFmpegAvailable:
    """Tests for check_ffmpeg_available function."""

    @patch('modules.composer.utils.shutil.which')
    def test_ffmpeg_available(self, mock_which):
        """Test when FFmpeg is available."""
        mock_which.return_value = "/usr/bin/ffmpeg"
        assert check_ffmpeg_available() is True

    @patch('modules.composer.utils.shutil.which')
    def test_ffmpeg_not_available(self, mock_which):
        """Test when FFmpeg is not available."""
        mock_which.return_value = None
        assert check_ffmpeg_available() is False


def _process(returncode=0, stderr=b""):
    process = MagicMock()
    process.communicate = AsyncMock(return_value=(b"", stderr))
    process.returncode = returncode
    process.wait = AsyncMock(return_value=returncode)
    return process


class TestRunFFmpegCommand:
    """Tests for run_ffmpeg_command function."""

    @pytest.mark.asyncio
    @patch('modules.composer.utils.asyncio.create_subprocess_exec')
    async def test_run_ffmpeg_success(self, mock_subprocess):
        """Test successful FFmpeg command execution."""
        mock_subprocess.return_value = _process()

        await run_ffmpeg_command(["ffmpeg", "-i", "in.mp4", "out.mp4"], content_id="c1", timeout=30)

        mock_subprocess.assert_called_once()

    @pytest.mark.asyncio
    @patch('modules.composer.utils.asyncio.create_subprocess_exec')
    async def test_run_ffmpeg_failure_not_retried(self, mock_subprocess):
        """Non-zero exit is final and carries the stderr tail."""
        mock_subprocess.return_value = _process(returncode=1, stderr=b"Invalid data found")

        with pytest.raises(EncodeFailureError, match="Invalid data found") as exc_info:
            await run_ffmpeg_command(["ffmpeg", "out.mp4"], content_id="c1", stage="concat")

        assert not isinstance(exc_info.value, EngineLaunchError)
        assert exc_info.value.stage == "concat"
        assert mock_subprocess.call_count == 1

    @pytest.mark.asyncio
    @patch('shared.retry.asyncio.sleep', new_callable=AsyncMock)
    @patch('modules.composer.utils.asyncio.create_subprocess_exec')
    async def test_launch_failure_retried_once(self, mock_subprocess, mock_sleep):
        """A binary that cannot start gets exactly one more attempt."""
        mock_subprocess.side_effect = [FileNotFoundError("ffmpeg"), _process()]

        await run_ffmpeg_command(["ffmpeg", "out.mp4"], content_id="c1", stage="motion[0]")

        assert mock_subprocess.call_count == 2
        mock_sleep.assert_awaited_once()

    @pytest.mark.asyncio
    @patch('shared.retry.asyncio.sleep', new_callable=AsyncMock)
    @patch('modules.composer.utils.asyncio.create_subprocess_exec')
    async def test_launch_failure_gives_up(self, mock_subprocess, mock_sleep):
        mock_subprocess.side_effect = PermissionError("denied")

        with pytest.raises(EngineLaunchError):
            await run_ffmpeg_command(["ffmpeg", "out.mp4"])

        assert mock_subprocess.call_count == 2

    @pytest.mark.asyncio
    @patch('modules.composer.utils.asyncio.create_subprocess_exec')
    async def test_timeout_kills_process(self, mock_subprocess):
        """A stuck process is killed and the timeout is not retried."""
        async def hang():
            await asyncio.sleep(10)

        process = _process()
        process.returncode = None
        process.communicate = hang
        mock_subprocess.return_value = process

        with pytest.raises(EncodeTimeoutError) as exc_info:
            await run_ffmpeg_command(["ffmpeg", "out.mp4"], content_id="c1", timeout=0.05, stage="motion[3]")

        process.kill.assert_called_once()
        process.wait.assert_awaited()
        assert exc_info.value.stage == "motion[3]"
        assert mock_subprocess.call_count == 1

    @pytest.mark.asyncio
    @patch('modules.composer.utils.asyncio.create_subprocess_exec')
    async def test_cancellation_kills_process(self, mock_subprocess):
        started = asyncio.Event()

        async def hang():
            started.set()
            await asyncio.sleep(10)

        process = _process()
        process.returncode = None
        process.communicate = hang
        mock_subprocess.return_value = process

        task = asyncio.ensure_future(run_ffmpeg_command(["ffmpeg", "out.mp4"], timeout=30))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        process.kill.assert_called_once()


def test_video_encode_args_are_concat_compatible():
    args = video_encode_args(30)

    assert args[args.index("-r") + 1] == "30"
    assert args[args.index("-video_track_timescale") + 1] == "90000"
    assert args[-1] == "-an"
    assert "-an" not in video_encode_args(30, include_audio=True)
