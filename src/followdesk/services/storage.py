"""Storage service for profile images kept in Supabase object storage.

This module provides a service class (ProfileImageStorage) that encapsulates
the upload path for profile images:
- Validation of size and MIME type
- Object key generation under the profile image prefix
- Upload through the S3-compatible storage endpoint, or through the Supabase
  Storage API when no S3 credentials are configured
- Public URL construction
- Monitoring metrics
"""

import asyncio
import mimetypes
import time
import uuid
from pathlib import Path
from typing import Any

import boto3
import httpx
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from prometheus_client import Counter, Histogram
from storage3.utils import StorageException

from ..core.exceptions import StorageError, UploadValidationError
from ..core.logging import ContextLogger
from ..core.settings import settings

logger = ContextLogger(__name__)

storage_upload_requests = Counter(
    "profile_image_upload_requests_total",
    "Total number of profile image upload requests",
    ["status"],
)

storage_upload_bytes = Counter(
    "profile_image_upload_bytes_sum",
    "Total bytes of profile images uploaded",
)

storage_upload_duration = Histogram(
    "profile_image_upload_duration_seconds",
    "Upload duration in seconds",
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0],
)

storage_upload_failures = Counter(
    "profile_image_upload_failures_total",
    "Total number of profile image upload failures",
    ["error_type"],
)

# Extensions used when the uploaded filename carries none.
IMAGE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


class ProfileImageStorage:
    """Service for storing profile images in the upload bucket.

    Attributes:
        client: Boto3 S3 client pointed at the storage endpoint, or None when
            S3 credentials are missing.
        supabase_client: Supabase client whose Storage API is used when there
            is no S3 client.
        bucket: Name of the upload bucket.
        public_base_url: Prefix joined with object keys to form public URLs.
    """

    def __init__(
        self,
        client: Any | None = None,
        bucket: str | None = None,
        public_base_url: str | None = None,
        supabase_client: Any | None = None,
    ) -> None:
        """Initialize the storage service.

        Args:
            client: Preconfigured S3 client. Built from settings when omitted.
            bucket: Bucket override, defaults to the configured bucket.
            public_base_url: Public URL prefix override.
            supabase_client: Fallback uploader when no S3 client is available.
        """
        self.bucket = bucket or settings.storage.bucket_name
        self.public_base_url = public_base_url or settings.storage_public_base_url
        self.max_bytes = settings.storage.max_image_bytes
        self.allowed_types = list(settings.storage.allowed_image_types)
        self.prefix = settings.storage.image_prefix.strip("/")
        self.supabase_client = supabase_client

        if client is not None:
            self.client = client
            return

        if not (settings.storage.is_configured and settings.storage_endpoint):
            self.client = None
            if supabase_client is None:
                logger.warning(
                    "Storage configuration incomplete, uploads will be disabled"
                )
            else:
                logger.info(
                    "ProfileImageStorage using the Supabase Storage API",
                    extra={"bucket": self.bucket},
                )
            return

        config = Config(
            retries={
                "max_attempts": 3,
                "mode": "adaptive",
            },
            s3={"addressing_style": "path"},
        )

        self.client = boto3.client(
            "s3",
            endpoint_url=settings.storage_endpoint,
            region_name=settings.storage.region,
            aws_access_key_id=settings.storage.access_key_id,
            aws_secret_access_key=settings.storage.secret_access_key,
            config=config,
        )

        logger.info(
            "ProfileImageStorage initialized",
            extra={"bucket": self.bucket, "endpoint": settings.storage_endpoint},
        )

    def validate_image(self, size: int, content_type: str | None) -> None:
        """Reject images that are too large or of an unsupported type.

        Raises:
            UploadValidationError: If either check fails.
        """
        if size > self.max_bytes:
            limit_mb = self.max_bytes // (1024 * 1024)
            raise UploadValidationError(
                f"File size too large. Maximum {limit_mb}MB allowed.",
                details={"size": size, "max_bytes": self.max_bytes},
            )

        if content_type not in self.allowed_types:
            raise UploadValidationError(
                "Invalid file type. Only JPEG, PNG, and WebP are allowed.",
                details={"content_type": content_type},
            )

    def generate_image_key(self, original_filename: str, content_type: str) -> str:
        """Generate a unique object key for a profile image.

        Keys have the form:
        {prefix}/{epoch_ms}-{random12}.{ext}
        """
        ext = Path(original_filename or "").suffix.lower().lstrip(".")
        if not ext:
            ext = IMAGE_EXTENSIONS.get(content_type) or (
                mimetypes.guess_extension(content_type, strict=False) or ".bin"
            ).lstrip(".")

        timestamp_ms = int(time.time() * 1000)
        suffix = uuid.uuid4().hex[:12]
        key = f"{self.prefix}/{timestamp_ms}-{suffix}.{ext}"

        logger.debug(
            "Generated profile image key",
            extra={
                "original_filename": original_filename,
                "content_type": content_type,
                "key": key,
            },
        )
        return key

    def public_url(self, key: str) -> str:
        if not self.public_base_url and self.supabase_client is not None:
            return self.supabase_client.storage.from_(self.bucket).get_public_url(key)
        if not self.public_base_url:
            raise StorageError(
                "Public URL base is not configured",
                error_code="STORAGE_NOT_CONFIGURED",
            )
        return f"{self.public_base_url.rstrip('/')}/{key}"

    async def upload_profile_image(
        self, content: bytes, filename: str, content_type: str | None
    ) -> str:
        """Validate and store a profile image, returning its public URL.

        Args:
            content: Raw file bytes.
            filename: Name the client gave the file.
            content_type: MIME type the client declared.

        Returns:
            str: Public URL of the stored object.

        Raises:
            UploadValidationError: If the file fails validation.
            StorageError: If storage is disabled or the upload fails.
        """
        self.validate_image(len(content), content_type)

        if self.client is None and self.supabase_client is None:
            raise StorageError(
                "Storage service is disabled due to missing configuration",
                error_code="STORAGE_NOT_CONFIGURED",
            )

        key = self.generate_image_key(filename, content_type)

        start_time = time.time()
        try:
            logger.info(
                "Starting profile image upload",
                extra={
                    "key": key,
                    "content_type": content_type,
                    "bucket": self.bucket,
                    "size_bytes": len(content),
                    "backend": "s3" if self.client is not None else "supabase",
                },
            )

            if self.client is not None:
                await asyncio.to_thread(
                    self.client.put_object,
                    Bucket=self.bucket,
                    Key=key,
                    Body=content,
                    ContentType=content_type,
                    CacheControl=f"max-age={settings.storage.cache_control_seconds}",
                )
            else:
                # upsert "false" makes the Storage API refuse to replace a key.
                await asyncio.to_thread(
                    self.supabase_client.storage.from_(self.bucket).upload,
                    key,
                    content,
                    {
                        "content-type": content_type,
                        "cache-control": str(settings.storage.cache_control_seconds),
                        "upsert": "false",
                    },
                )

        except (BotoCoreError, ClientError, StorageException, httpx.HTTPError) as e:
            storage_upload_requests.labels(status="error").inc()
            storage_upload_failures.labels(error_type=type(e).__name__).inc()

            logger.exception(
                "Upload failed",
                extra={"key": key, "error": str(e)},
            )
            raise StorageError(f"Upload failed: {str(e)}") from e

        duration = time.time() - start_time
        storage_upload_requests.labels(status="success").inc()
        storage_upload_bytes.inc(len(content))
        storage_upload_duration.observe(duration)

        url = self.public_url(key)
        logger.info(
            "Profile image uploaded",
            extra={"key": key, "duration_seconds": round(duration, 3), "url": url},
        )
        return url
