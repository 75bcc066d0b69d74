"""Remote audio blob storage backed by Cloudinary.

Blobs are addressed by a ``public_id`` of the form ``songs/<hex>``. The
Cloudinary SDK is blocking, so every call is pushed onto a worker thread to
keep the event loop free for other requests.
"""

from __future__ import annotations

import asyncio
import io
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Protocol

import cloudinary
import cloudinary.uploader

from app.settings import settings

logger = logging.getLogger(__name__)

STORAGE_FOLDER = "songs"

# Cloudinary files audio under the "video" resource type.
AUDIO_RESOURCE_TYPE = "video"


class StorageError(Exception):
    """Raised when an object storage call fails or returns an unusable result."""


@dataclass(frozen=True)
class StoredObject:
    """What the storage provider reports back after a successful upload."""

    public_id: str
    secure_url: str
    duration: float | None = None


class ObjectStorage(Protocol):
    async def upload(
        self,
        data: bytes,
        *,
        public_id: str,
        resource_type: str = "auto",
        format: str = "mp3",
        overwrite: bool = True,
    ) -> StoredObject: ...

    async def delete(self, public_id: str) -> bool: ...


def new_storage_key() -> str:
    """Generate a collision-free storage key unrelated to the client filename."""
    return f"{STORAGE_FOLDER}/{uuid.uuid4().hex}"


def _parse_upload_result(result: dict[str, Any]) -> StoredObject:
    public_id = result.get("public_id")
    secure_url = result.get("secure_url")
    if not public_id or not secure_url:
        raise StorageError("Upload response is missing public_id or secure_url")

    duration = result.get("duration")
    return StoredObject(
        public_id=public_id,
        secure_url=secure_url,
        duration=float(duration) if duration is not None else None,
    )


class CloudinaryStorage:
    """:class:`ObjectStorage` implementation over the Cloudinary uploader API."""

    def __init__(self, cloud_name: str, api_key: str, api_secret: str) -> None:
        if not (cloud_name and api_key and api_secret):
            logger.warning("Cloudinary credentials are not fully configured")
        cloudinary.config(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            secure=True,
        )

    async def upload(
        self,
        data: bytes,
        *,
        public_id: str,
        resource_type: str = "auto",
        format: str = "mp3",
        overwrite: bool = True,
    ) -> StoredObject:
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.upload,
                io.BytesIO(data),
                resource_type=resource_type,
                public_id=public_id,
                format=format,
                overwrite=overwrite,
            )
        except Exception as exc:
            raise StorageError(f"Cloudinary upload failed: {exc}") from exc

        stored = _parse_upload_result(result)
        logger.info("Uploaded %d bytes to Cloudinary as %s", len(data), stored.public_id)
        return stored

    async def delete(self, public_id: str) -> bool:
        """Destroy a blob. Returns False when Cloudinary did not find it."""
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.destroy,
                public_id,
                resource_type=AUDIO_RESOURCE_TYPE,
                invalidate=True,
            )
        except Exception as exc:
            raise StorageError(f"Cloudinary delete failed: {exc}") from exc

        outcome = result.get("result")
        if outcome != "ok":
            logger.warning("Cloudinary delete of %s returned %r", public_id, outcome)
            return False
        return True


def get_cloudinary_storage() -> CloudinaryStorage:
    """Build the storage client from application settings."""
    return CloudinaryStorage(
        cloud_name=settings.cloudinary_cloud_name,
        api_key=settings.cloudinary_api_key,
        api_secret=settings.cloudinary_api_secret,
    )
