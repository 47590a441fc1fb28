"""Media storage client backed by Cloudinary.

Audio and avatar bytes never live in the database: they are pushed to
Cloudinary and only the returned secure URL and public id are persisted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Protocol

import cloudinary
import cloudinary.uploader

from audora.core.errors import AudoraError
from audora.core.settings import Settings, settings

logger = logging.getLogger(__name__)

# Cloudinary files audio under the "video" resource type for codec support.
AUDIO_RESOURCE_TYPE = "video"
IMAGE_RESOURCE_TYPE = "image"
AVATAR_TRANSFORMATION = [{"width": 300, "height": 300, "crop": "fill", "gravity": "face"}]


class MediaStorageError(AudoraError):
    """Raised when the remote media service rejects or fails a request."""

    default_message = "Media storage request failed."


@dataclass(frozen=True)
class StoredAsset:
    """Location of an uploaded asset."""

    url: str
    public_id: str


class MediaStorage(Protocol):
    """Operations the API needs from a media backend."""

    def upload_audio(self, path: Path, *, owner_id: int) -> StoredAsset: ...

    def upload_avatar(self, path: Path, *, owner_id: int) -> StoredAsset: ...

    def destroy(self, public_id: str, *, resource_type: str) -> None: ...


class CloudinaryStorage:
    """`MediaStorage` implementation using the Cloudinary SDK."""

    def __init__(self, config: Settings | None = None) -> None:
        self._settings = config or settings
        self._configured = False

    def _ensure_configured(self) -> None:
        if self._configured:
            return
        if not self._settings.cloudinary_configured:
            raise MediaStorageError("Cloudinary credentials are not configured.")
        cloudinary.config(
            cloud_name=self._settings.cloudinary_cloud_name,
            api_key=self._settings.cloudinary_api_key,
            api_secret=self._settings.cloudinary_api_secret,
            secure=True,
        )
        self._configured = True

    def _upload(self, path: Path, **options: Any) -> StoredAsset:
        self._ensure_configured()
        try:
            result = cloudinary.uploader.upload(str(path), **options)
        except Exception as exc:
            logger.error("Cloudinary upload of %s failed: %s", path.name, exc)
            raise MediaStorageError("Failed to upload media.") from exc
        return StoredAsset(url=result["secure_url"], public_id=result["public_id"])

    def upload_audio(self, path: Path, *, owner_id: int) -> StoredAsset:
        """Upload an audio clip into the owner's `audio_posts/` folder."""
        return self._upload(
            path,
            resource_type=AUDIO_RESOURCE_TYPE,
            folder=f"audio_posts/{owner_id}",
        )

    def upload_avatar(self, path: Path, *, owner_id: int) -> StoredAsset:
        """Upload an avatar cropped to a 300x300 face-centred square."""
        return self._upload(
            path,
            resource_type=IMAGE_RESOURCE_TYPE,
            folder=f"avatars/{owner_id}",
            transformation=AVATAR_TRANSFORMATION,
        )

    def destroy(self, public_id: str, *, resource_type: str) -> None:
        """Delete a remote asset."""
        self._ensure_configured()
        try:
            cloudinary.uploader.destroy(public_id, resource_type=resource_type)
        except Exception as exc:
            raise MediaStorageError(f"Failed to delete media asset {public_id}.") from exc


def destroy_quietly(storage: MediaStorage, public_id: str | None, *, resource_type: str) -> bool:
    """Best-effort asset deletion; failures are logged and reported as False."""
    if not public_id:
        return False
    try:
        storage.destroy(public_id, resource_type=resource_type)
    except MediaStorageError as exc:
        logger.warning("Media deletion failed for %s: %s", public_id, exc)
        return False
    return True


@lru_cache(maxsize=1)
def get_media_storage() -> MediaStorage:
    """Return the process-wide media storage client."""
    return CloudinaryStorage()
