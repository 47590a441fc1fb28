"""Local staging of multipart uploads.

Incoming files are written to `settings.upload_dir` before being pushed to
media storage, and must be removed on every exit path.
"""

from __future__ import annotations

import logging
import secrets
import shutil
import time
from dataclasses import dataclass
from pathlib import Path

from fastapi import UploadFile

from audora.core.errors import ValidationError
from audora.core.settings import settings

logger = logging.getLogger(__name__)

AUDIO_MIME_TYPES = frozenset(
    {"audio/mpeg", "audio/wav", "audio/ogg", "audio/aac", "audio/mp4", "audio/webm"}
)
IMAGE_MIME_TYPES = frozenset({"image/jpeg", "image/png", "image/gif", "image/webp"})

_CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class UploadPolicy:
    """Accepted MIME types and size ceiling for one kind of upload."""

    field_name: str
    allowed_mimes: frozenset[str]
    max_bytes: int
    rejection_message: str


def audio_policy() -> UploadPolicy:
    return UploadPolicy(
        field_name="audioFile",
        allowed_mimes=AUDIO_MIME_TYPES,
        max_bytes=settings.max_audio_upload_bytes,
        rejection_message="Invalid file type. Only audio files are allowed.",
    )


def image_policy() -> UploadPolicy:
    return UploadPolicy(
        field_name="avatarFile",
        allowed_mimes=IMAGE_MIME_TYPES,
        max_bytes=settings.max_image_upload_bytes,
        rejection_message="Invalid file type. Only JPG, PNG, GIF, WEBP images are allowed.",
    )


def _staged_name(field_name: str, original: str | None) -> str:
    suffix = Path(original or "").suffix
    return f"{field_name}-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{suffix}"


def stage_upload(upload: UploadFile, policy: UploadPolicy, *, upload_dir: Path | None = None) -> Path:
    """Write `upload` to the staging directory and return its path.

    Raises:
        ValidationError: If the MIME type is not allowed or the file is too large.
    """
    if upload.content_type not in policy.allowed_mimes:
        raise ValidationError(policy.rejection_message)

    target_dir = upload_dir or settings.upload_dir
    target_dir.mkdir(parents=True, exist_ok=True)
    destination = target_dir / _staged_name(policy.field_name, upload.filename)

    written = 0
    with destination.open("wb") as out:
        while chunk := upload.file.read(_CHUNK_SIZE):
            written += len(chunk)
            if written > policy.max_bytes:
                break
            out.write(chunk)

    if written > policy.max_bytes:
        discard_staged(destination)
        raise ValidationError(
            f"File too large. Maximum size is {policy.max_bytes // (1024 * 1024)} MB."
        )
    return destination


def discard_staged(path: Path | None) -> None:
    """Delete a staged file, logging instead of raising on failure."""
    if path is None:
        return
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.error("Error deleting staged upload %s: %s", path, exc)


def clear_staging_dir(upload_dir: Path | None = None) -> None:
    """Remove the whole staging directory (used by tests and maintenance)."""
    shutil.rmtree(upload_dir or settings.upload_dir, ignore_errors=True)
