"""
Unit tests for publishing finished videos.
"""
import pytest
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

from modules.composer.publisher import ArtifactPublisher, StoragePublisher, publish_final_video
from shared.errors import PublishError, RetryableError
from shared.models.video import ComposerOutput, CompositionDetails, FinalVideo


@pytest.fixture
def composer_output(tmp_path):
    video = tmp_path / "final_video.mp4"
    video.write_bytes(b"video-bytes")
    return ComposerOutput(
        content_id="c1",
        final_video=FinalVideo(
            local_path=str(video),
            duration=12.0,
            resolution="1080x1920",
            aspect_ratio="9:16",
            file_size=11,
            processed_at=datetime.now(timezone.utc)
        ),
        composition=CompositionDetails(
            visual_timings=[],
            audio_path=str(tmp_path / "voice.mp3"),
            audio_duration=12.0,
            has_text_overlays=False
        ),
        output_dir=str(tmp_path),
        generated_at=datetime.now(timezone.utc),
        total_time_ms=5
    )


class TestStoragePublisher:
    """Tests for StoragePublisher."""

    @pytest.mark.asyncio
    async def test_uploads_to_video_outputs(self, tmp_path):
        video = tmp_path / "final_video.mp4"
        video.write_bytes(b"video-bytes")
        storage = MagicMock()
        storage.upload_file = AsyncMock(return_value="https://storage/videos/c1.mp4")

        url = await StoragePublisher(storage=storage).publish(video, "c1")

        assert url == "https://storage/videos/c1.mp4"
        storage.upload_file.assert_awaited_once_with(
            bucket="video-outputs",
            path="videos/c1.mp4",
            file_data=b"video-bytes",
            content_type="video/mp4",
            overwrite=True
        )


class TestPublishFinalVideo:
    """Tests for publish_final_video function."""

    @pytest.mark.asyncio
    async def test_attaches_url(self, composer_output):
        publisher = MagicMock(spec=ArtifactPublisher)
        publisher.publish = AsyncMock(return_value="https://cdn/videos/c1.mp4")

        output = await publish_final_video(composer_output, publisher)

        assert output.final_video.remote_url == "https://cdn/videos/c1.mp4"

    @pytest.mark.asyncio
    async def test_failure_carries_output(self, composer_output):
        publisher = MagicMock(spec=ArtifactPublisher)
        publisher.publish = AsyncMock(side_effect=RetryableError("upload failed"))

        with pytest.raises(PublishError) as exc_info:
            await publish_final_video(composer_output, publisher)

        assert exc_info.value.output is composer_output
        assert exc_info.value.stage == "publish"
        assert exc_info.value.content_id == "c1"
        assert Path(composer_output.final_video.local_path).exists()
        assert composer_output.final_video.remote_url is None

    @pytest.mark.asyncio
    async def test_second_publish_rejected(self, composer_output):
        publisher = MagicMock(spec=ArtifactPublisher)
        publisher.publish = AsyncMock(return_value="https://cdn/videos/c1.mp4")
        await publish_final_video(composer_output, publisher)

        with pytest.raises(PublishError, match="already published"):
            await publish_final_video(composer_output, publisher)
