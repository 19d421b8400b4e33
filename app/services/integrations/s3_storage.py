"""AWS S3 media storage.

Uploaded course media and profile photos are stored under
`{S3_MEDIA_PREFIX}/{uuid4}-{original_name}` and addressed by their public URL.

Usage:
    from app.services.integrations.s3_storage import s3_service

    url = await s3_service.upload_media(
        content=b"...",
        content_type="image/png",
        original_name="avatar.png",
    )
"""

from __future__ import annotations

import re
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import uuid4

import aioboto3
from botocore.exceptions import ClientError
from loguru import logger

from app.app_config import AppEnvironConfig, get_app_environ_config
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

ALLOWED_MEDIA_TYPES = frozenset(
    {
        # Images
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
        # Video
        "video/mp4",
        "video/mpeg",
        "video/quicktime",
        "video/x-msvideo",
        "video/webm",
        # Audio
        "audio/mpeg",
        "audio/wav",
        "audio/ogg",
        "audio/webm",
        # Documents
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-powerpoint",
        "application/vnd.openxmlformats-officedocument.presentationml.presentation",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "text/plain",
    }
)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def safe_object_name(original_name: str | None) -> str:
    name = (original_name or "").rsplit("/", 1)[-1].rsplit("\\", 1)[-1]
    return _UNSAFE_KEY_CHARS.sub("_", name).strip("._") or "file"


class S3Service:
    """Service wrapper for S3 media uploads."""

    def __init__(self, cfg: AppEnvironConfig | None = None) -> None:
        self._cfg = cfg or get_app_environ_config()
        self._session: aioboto3.Session | None = None
        logger.info("S3Service initialized")

    def _get_session(self) -> aioboto3.Session:
        if self._session is None:
            if not self._cfg.AWS_ACCESS_KEY_ID or not self._cfg.AWS_SECRET_ACCESS_KEY:
                raise AppError(
                    errcode=AppErrorCode.E_NOT_CONFIGURED,
                    errmesg="AWS credentials not configured",
                    status_code=HttpStatusCode.INTERNAL_SERVER_ERROR,
                )

            self._session = aioboto3.Session(
                aws_access_key_id=self._cfg.AWS_ACCESS_KEY_ID,
                aws_secret_access_key=self._cfg.AWS_SECRET_ACCESS_KEY,
                region_name=self._cfg.AWS_REGION,
            )
            logger.info("S3 session created for region: {}", self._cfg.AWS_REGION)

        return self._session

    @asynccontextmanager
    async def _get_client(self) -> AsyncIterator:  # type: ignore[misc]
        session = self._get_session()
        async with session.client("s3") as client:  # type: ignore[attr-defined]
            yield client

    def _bucket_name(self) -> str:
        if self._cfg.DEMO_MODE:
            return self._cfg.S3_MEDIA_BUCKET or "demo-bucket"
        if not self._cfg.S3_MEDIA_BUCKET:
            raise AppError(
                errcode=AppErrorCode.E_NOT_CONFIGURED,
                errmesg="S3_MEDIA_BUCKET not configured",
                status_code=HttpStatusCode.INTERNAL_SERVER_ERROR,
            )
        return self._cfg.S3_MEDIA_BUCKET

    def make_object_key(self, original_name: str | None) -> str:
        return f"{self._cfg.S3_MEDIA_PREFIX}/{uuid4()}-{safe_object_name(original_name)}"

    def public_url(self, key: str) -> str:
        return f"https://{self._bucket_name()}.s3.{self._cfg.AWS_REGION}.amazonaws.com/{key}"

    def validate_media(self, content_type: str | None, size: int) -> None:
        if content_type not in ALLOWED_MEDIA_TYPES:
            raise AppError(
                errcode=AppErrorCode.E_UNSUPPORTED_MEDIA,
                errmesg=f"File type not allowed: {content_type}",
                status_code=HttpStatusCode.BAD_REQUEST,
            )
        if size > self._cfg.MAX_UPLOAD_BYTES:
            raise AppError(
                errcode=AppErrorCode.E_FILE_TOO_LARGE,
                errmesg=f"File exceeds the {self._cfg.MAX_UPLOAD_BYTES} byte upload limit",
                status_code=HttpStatusCode.PAYLOAD_TOO_LARGE,
            )

    async def upload_media(self, content: bytes, content_type: str, original_name: str | None) -> str:
        """Validate and upload a media file, returning its public URL.

        Raises:
            AppError: unsupported type, oversized file, missing configuration,
                or a storage failure (E_UPSTREAM_ERROR).
        """
        self.validate_media(content_type, len(content))
        key = self.make_object_key(original_name)

        if self._cfg.DEMO_MODE:
            url = self.public_url(key)
            logger.info("S3Service DEMO_MODE=true: stubbed upload {} -> {}", key, url)
            return url

        bucket = self._bucket_name()
        try:
            async with self._get_client() as client:
                await client.put_object(
                    Bucket=bucket,
                    Key=key,
                    Body=content,
                    ContentType=content_type,
                )
        except ClientError as e:
            logger.error("Failed to upload media {}: {}", key, e)
            raise AppError(
                errcode=AppErrorCode.E_UPSTREAM_ERROR,
                errmesg="Failed to upload file",
                status_code=HttpStatusCode.INTERNAL_SERVER_ERROR,
            ) from e

        url = self.public_url(key)
        logger.info("Uploaded media: {} -> {}", key, url)
        return url


# Singleton instance
s3_service = S3Service()
