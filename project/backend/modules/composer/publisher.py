"""
Publishing for composer module.

Uploads a finished video and records its URL. Publishing is optional and
happens after composition; a failure here never invalidates the local file.
"""
import asyncio
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from shared.errors import PublishError
from shared.logging import get_logger
from shared.models.video import ComposerOutput
from shared.storage import StorageClient
from .config import VIDEO_OUTPUTS_BUCKET

logger = get_logger("composer.publisher")


class ArtifactPublisher(ABC):
    """Somewhere finished videos can be uploaded to."""

    @abstractmethod
    async def publish(self, local_path: Path, content_id: str) -> str:
        """Upload the file and return its URL."""


class StoragePublisher(ArtifactPublisher):
    """Publishes to Supabase Storage."""

    def __init__(self, storage: Optional[StorageClient] = None, bucket: str = VIDEO_OUTPUTS_BUCKET):
        self.storage = storage or StorageClient()
        self.bucket = bucket

    async def publish(self, local_path: Path, content_id: str) -> str:
        video_bytes = await asyncio.to_thread(Path(local_path).read_bytes)
        return await self.storage.upload_file(
            bucket=self.bucket,
            path=f"videos/{content_id}.mp4",
            file_data=video_bytes,
            content_type="video/mp4",
            overwrite=True
        )


async def publish_final_video(output: ComposerOutput, publisher: ArtifactPublisher) -> ComposerOutput:
    """
    Publish a composed video and attach the remote URL.

    Args:
        output: Result of a successful composition
        publisher: Where to upload

    Returns:
        The same output with final_video.remote_url set

    Raises:
        PublishError: On any upload failure; .output holds the unpublished result
    """
    content_id = output.content_id
    local_path = Path(output.final_video.local_path)

    try:
        url = await publisher.publish(local_path, content_id)
        output.final_video.attach_remote_url(url)
    except Exception as e:
        logger.error(
            f"Failed to publish final video: {e}",
            extra={"content_id": content_id, "local_path": str(local_path)}
        )
        raise PublishError(
            f"Failed to publish final video: {e}",
            content_id=content_id,
            output=output
        ) from e

    logger.info(
        "Published final video",
        extra={"content_id": content_id, "remote_url": url}
    )
    return output
