"""Object storage collaborator used for profile picture uploads."""
from __future__ import annotations

import asyncio
import io
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable
from urllib.parse import quote, urlparse

from boto3.session import Session
from botocore.client import BaseClient
from botocore.exceptions import BotoCoreError, ClientError

from ..config import Settings
from ..errors import StorageConfigurationError, UploadFailed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredObject:
    """Handle returned by an upload."""

    key: str
    bucket: str
    content_type: str
    size: int


def _sanitize_segments(parts: Iterable[str]) -> list[str]:
    """Sanitize path segments to be safe for object keys."""

    sanitized: list[str] = []
    for part in parts:
        if part in {"", ".", ".."}:
            continue
        cleaned = re.sub(r"[^A-Za-z0-9._-]", "-", part.strip())
        cleaned = re.sub(r"-+", "-", cleaned).strip("-")
        if cleaned and cleaned not in {".", ".."}:
            sanitized.append(cleaned)
    return sanitized


def object_key(path: str) -> str:
    key = "/".join(_sanitize_segments(path.replace("\\", "/").split("/")))
    if not key:
        raise UploadFailed("Upload path is empty")
    return key


class ObjectStorage(ABC):
    @abstractmethod
    async def upload(self, path: str, data: bytes, content_type: str | None = None) -> StoredObject:
        """Store ``data`` under ``path`` and return a handle."""

    @abstractmethod
    def get_public_url(self, handle: StoredObject) -> str:
        """Return the publicly readable URL of an uploaded object."""


class InMemoryObjectStorage(ObjectStorage):
    """Keeps uploads in a dict; URLs point at ``base_url``."""

    def __init__(self, base_url: str = "http://localhost:8000", bucket: str = "local") -> None:
        self.base_url = base_url.rstrip("/")
        self.bucket = bucket
        self.objects: dict[str, bytes] = {}

    async def upload(self, path: str, data: bytes, content_type: str | None = None) -> StoredObject:
        key = object_key(path)
        self.objects[key] = bytes(data)
        return StoredObject(
            key=key,
            bucket=self.bucket,
            content_type=content_type or "application/octet-stream",
            size=len(data),
        )

    def get_public_url(self, handle: StoredObject) -> str:
        return f"{self.base_url}/{self.bucket}/{quote(handle.key)}"


@dataclass(frozen=True)
class SpacesConfig:
    """S3-compatible bucket settings extracted from ``Settings``."""

    key: str
    secret: str
    region: str
    bucket: str
    api_endpoint: str
    public_endpoint: str


def load_spaces_config(settings: Settings) -> SpacesConfig:
    required = {
        "STORAGE_KEY": settings.storage_key,
        "STORAGE_SECRET": settings.storage_secret,
        "STORAGE_REGION": settings.storage_region,
        "STORAGE_BUCKET": settings.storage_bucket,
        "STORAGE_ENDPOINT": settings.storage_endpoint,
    }
    missing = [name for name, value in required.items() if not value or not value.strip()]
    if missing:
        raise StorageConfigurationError(
            "Missing required object storage configuration: " + ", ".join(sorted(missing))
        )

    region = str(settings.storage_region).strip()
    bucket = str(settings.storage_bucket).strip()
    public_endpoint = str(settings.storage_endpoint).strip().rstrip("/")
    parsed = urlparse(public_endpoint)
    if not parsed.scheme:
        public_endpoint = f"https://{public_endpoint.lstrip(':/')}"
        parsed = urlparse(public_endpoint)
    if not (parsed.netloc or parsed.path):
        raise StorageConfigurationError("STORAGE_ENDPOINT must include a hostname.")

    return SpacesConfig(
        key=str(settings.storage_key).strip(),
        secret=str(settings.storage_secret).strip(),
        region=region,
        bucket=bucket,
        api_endpoint=f"https://{region}.digitaloceanspaces.com",
        public_endpoint=parsed.geturl().rstrip("/"),
    )


class SpacesObjectStorage(ObjectStorage):
    """DigitalOcean Spaces (or any S3-compatible bucket) through boto3."""

    def __init__(self, config: SpacesConfig, *, client: BaseClient | None = None) -> None:
        self.config = config
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "SpacesObjectStorage":
        return cls(load_spaces_config(settings))

    @property
    def client(self) -> BaseClient:
        if self._client is None:
            session = Session()
            self._client = session.client(
                "s3",
                region_name=self.config.region,
                endpoint_url=self.config.api_endpoint,
                aws_access_key_id=self.config.key,
                aws_secret_access_key=self.config.secret,
            )
        return self._client

    async def upload(self, path: str, data: bytes, content_type: str | None = None) -> StoredObject:
        key = object_key(path)
        resolved_type = (content_type or "application/octet-stream").strip() or "application/octet-stream"

        def _upload() -> None:
            try:
                self.client.upload_fileobj(
                    io.BytesIO(data),
                    self.config.bucket,
                    key,
                    ExtraArgs={"ACL": "public-read", "ContentType": resolved_type},
                )
            except (ClientError, BotoCoreError) as exc:
                logger.exception("Upload to object storage failed: %s", exc)
                raise UploadFailed("Upload to object storage failed") from exc

        await asyncio.to_thread(_upload)
        return StoredObject(key=key, bucket=self.config.bucket, content_type=resolved_type, size=len(data))

    def get_public_url(self, handle: StoredObject) -> str:
        return f"{self.config.public_endpoint}/{handle.key.lstrip('/')}"


def build_object_storage(settings: Settings) -> ObjectStorage:
    if settings.storage_backend == "spaces":
        return SpacesObjectStorage.from_settings(settings)
    return InMemoryObjectStorage(base_url=settings.public_base_url)


__all__ = [
    "ObjectStorage",
    "StoredObject",
    "InMemoryObjectStorage",
    "SpacesConfig",
    "SpacesObjectStorage",
    "load_spaces_config",
    "build_object_storage",
    "object_key",
]
