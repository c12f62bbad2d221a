"""
Storage utilities.

Supabase Storage operations for publishing finished videos.
"""

import asyncio
import mimetypes
from typing import Any, Callable, Dict, Optional

from supabase import create_client

from shared.config import settings
from shared.errors import ConfigError, RetryableError, ValidationError
from shared.logging import get_logger
from shared.retry import retry_with_backoff

logger = get_logger("storage")

# Default file size limits per bucket (in bytes)
DEFAULT_BUCKET_LIMITS: Dict[str, int] = {
    "video-outputs": 100 * 1024 * 1024,  # 100MB
}

# Signed URLs handed back for published videos stay valid for a year
SIGNED_URL_EXPIRY = 31536000


class StorageClient:
    """Supabase Storage client for file operations."""

    def __init__(
        self,
        bucket_limits: Optional[Dict[str, int]] = None,
        client: Optional[Any] = None
    ):
        """
        Initialize storage client.

        Args:
            bucket_limits: Optional dict of bucket name to max file size in bytes
            client: Pre-built Supabase client (built from settings when omitted)
        """
        if client is None:
            if not settings.storage_configured:
                raise ConfigError(
                    "SUPABASE_URL and SUPABASE_SERVICE_KEY are required for storage uploads"
                )
            try:
                client = create_client(settings.supabase_url, settings.supabase_service_key)
            except Exception as e:
                raise ConfigError(f"Failed to initialize storage client: {str(e)}") from e
        self.client = client
        self.storage = client.storage
        self.bucket_limits = bucket_limits or DEFAULT_BUCKET_LIMITS.copy()

    async def _execute_sync(self, func: Callable[[], Any]) -> Any:
        """
        Execute a synchronous Supabase storage operation in an async context.

        Args:
            func: Synchronous function to execute

        Returns:
            Function result
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func)

    def _detect_content_type(self, path: str, default: Optional[str] = None) -> str:
        content_type, _ = mimetypes.guess_type(path)
        if content_type:
            return content_type
        return default or "application/octet-stream"

    @retry_with_backoff(max_attempts=3, base_delay=2)
    async def upload_file(
        self,
        bucket: str,
        path: str,
        file_data: bytes,
        content_type: Optional[str] = None,
        overwrite: bool = False
    ) -> str:
        """
        Upload a file to Supabase Storage.

        Args:
            bucket: Storage bucket name
            path: File path in bucket
            file_data: File data as bytes
            content_type: Content type (auto-detected if not provided)
            overwrite: Replace an existing object at the same path

        Returns:
            URL of uploaded file (signed, falling back to public)

        Raises:
            RetryableError: If upload fails after retries
            ValidationError: If file size exceeds limit
        """
        if not content_type:
            content_type = self._detect_content_type(path)

        max_size = self.bucket_limits.get(bucket, 10 * 1024 * 1024)
        if len(file_data) > max_size:
            max_size_mb = max_size / (1024 * 1024)
            file_size_mb = len(file_data) / (1024 * 1024)
            raise ValidationError(
                f"File size ({file_size_mb:.2f} MB) exceeds maximum of {max_size_mb:.2f} MB for bucket {bucket}"
            )

        try:
            def _upload():
                file_options = {"content-type": content_type}
                if overwrite:
                    file_options["upsert"] = "true"
                return self.storage.from_(bucket).upload(
                    path=path,
                    file=file_data,
                    file_options=file_options
                )

            await self._execute_sync(_upload)

            def _get_url():
                signed_url_response = self.storage.from_(bucket).create_signed_url(
                    path,
                    SIGNED_URL_EXPIRY
                )
                if isinstance(signed_url_response, dict):
                    return signed_url_response.get("signedURL") or signed_url_response.get("signedUrl") or ""
                return str(signed_url_response) if signed_url_response else ""

            file_url = await self._execute_sync(_get_url)

            # Public buckets don't need a signature
            if not file_url:
                file_url = await self._execute_sync(
                    lambda: self.storage.from_(bucket).get_public_url(path)
                )

            logger.info(
                f"Uploaded file to {bucket}/{path}",
                extra={"bucket": bucket, "path": path, "size": len(file_data)}
            )

            return file_url

        except Exception as e:
            logger.error(
                f"Failed to upload file to {bucket}/{path}: {str(e)}",
                extra={"bucket": bucket, "path": path, "error": str(e)}
            )
            raise RetryableError(f"Failed to upload file: {str(e)}") from e
