"""Toolkit storage for templates too large to send inline."""

from __future__ import annotations

import asyncio
import hashlib
from typing import Any

import structlog
from botocore.exceptions import ClientError

from stack_deployer.domain.ports.services import ToolkitInfo, UploadResult
from stack_deployer.infrastructure.observability.metrics import TEMPLATE_UPLOADS_TOTAL


logger = structlog.get_logger(__name__)


def content_key(content: str, key_prefix: str, key_suffix: str) -> str:
    """Derive a deterministic object key from content."""
    digest = hashlib.md5(content.encode("utf-8")).hexdigest()  # noqa: S324
    return f"{key_prefix}{digest}{key_suffix}"


class S3ToolkitInfo(ToolkitInfo):
    """Toolkit bucket backed by S3."""

    def __init__(self, s3_client: Any, bucket_name: str, bucket_url: str | None = None) -> None:
        self._s3 = s3_client
        self._bucket_name = bucket_name
        self._bucket_url = bucket_url or f"https://{bucket_name}.s3.amazonaws.com"

    @property
    def bucket_name(self) -> str:
        return self._bucket_name

    @property
    def bucket_url(self) -> str:
        return self._bucket_url

    async def upload_if_changed(
        self,
        content: str,
        key_prefix: str,
        key_suffix: str,
        content_type: str,
    ) -> UploadResult:
        key = content_key(content, key_prefix, key_suffix)

        if await self._object_exists(key):
            logger.debug("toolkit_object_unchanged", bucket=self._bucket_name, key=key)
            TEMPLATE_UPLOADS_TOTAL.labels(result="unchanged").inc()
            return UploadResult(key=key, changed=False)

        await asyncio.to_thread(
            self._s3.put_object,
            Bucket=self._bucket_name,
            Key=key,
            Body=content.encode("utf-8"),
            ContentType=content_type,
        )
        logger.info("toolkit_object_uploaded", bucket=self._bucket_name, key=key)
        TEMPLATE_UPLOADS_TOTAL.labels(result="uploaded").inc()
        return UploadResult(key=key, changed=True)

    async def _object_exists(self, key: str) -> bool:
        try:
            await asyncio.to_thread(self._s3.head_object, Bucket=self._bucket_name, Key=key)
        except ClientError as e:
            if e.response["Error"]["Code"] in ("404", "NoSuchKey", "NotFound"):
                return False
            raise
        return True


class InMemoryToolkitInfo(ToolkitInfo):
    """In-memory toolkit storage for development/testing."""

    def __init__(self, bucket_url: str = "https://toolkit-bucket.s3.amazonaws.com") -> None:
        self._bucket_url = bucket_url
        self._objects: dict[str, tuple[str, str]] = {}

    @property
    def bucket_url(self) -> str:
        return self._bucket_url

    async def upload_if_changed(
        self,
        content: str,
        key_prefix: str,
        key_suffix: str,
        content_type: str,
    ) -> UploadResult:
        key = content_key(content, key_prefix, key_suffix)
        if key in self._objects:
            TEMPLATE_UPLOADS_TOTAL.labels(result="unchanged").inc()
            return UploadResult(key=key, changed=False)

        self._objects[key] = (content, content_type)
        TEMPLATE_UPLOADS_TOTAL.labels(result="uploaded").inc()
        return UploadResult(key=key, changed=True)

    def get_by_url(self, url: str) -> str | None:
        """Resolve a URL under this bucket back to the stored content."""
        prefix = f"{self._bucket_url}/"
        if not url.startswith(prefix):
            return None
        stored = self._objects.get(url[len(prefix):])
        return stored[0] if stored else None

    @property
    def objects(self) -> dict[str, tuple[str, str]]:
        return dict(self._objects)
