"""
Photo uploads for memories.

One image per memory. Both the declared content type and the file extension
must be in the allow-list; the body is streamed to disk and rejected as soon
as it passes the size cap.

Files are stored as ``<upload_dir>/photos/memory-<ms timestamp>-<random><ext>``
and served at ``/uploads/photos/<name>``.
"""
from __future__ import annotations

import random
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from loguru import logger

from config import get_settings

ALLOWED_IMAGE_TYPES = frozenset({"jpeg", "jpg", "png", "gif", "webp"})
PHOTO_SUBDIR = "photos"
URL_PREFIX = "/uploads"
CHUNK_SIZE = 64 * 1024

_TYPE_RE = re.compile("|".join(sorted(ALLOWED_IMAGE_TYPES)))


class PhotoUploadError(ValueError):
    """Base class for rejected uploads."""


class PhotoValidationError(PhotoUploadError):
    """Not an allowed image type."""


class PhotoTooLargeError(PhotoUploadError):
    """Exceeds the configured size cap."""


@dataclass
class StoredPhoto:
    filename: str
    path: Path
    url: str
    size: int


def validate_photo(filename: str | None, content_type: str | None) -> str:
    """
    Check content type and extension against the allow-list.

    Returns:
        The lowercased extension including the dot

    Raises:
        PhotoValidationError: If either check fails
    """
    extension = Path(filename or "").suffix.lower()
    type_ok = bool(content_type) and content_type.lower().startswith("image/") and bool(
        _TYPE_RE.search(content_type.lower())
    )
    extension_ok = extension.lstrip(".") in ALLOWED_IMAGE_TYPES
    if not (type_ok and extension_ok):
        raise PhotoValidationError("Only image files are allowed")
    return extension


def photo_dir(upload_dir: str | Path | None = None) -> Path:
    return Path(upload_dir or get_settings().upload_dir) / PHOTO_SUBDIR


def _unique_name(extension: str) -> str:
    return f"memory-{int(time.time() * 1000)}-{random.randint(0, 10**9)}{extension}"


def save_photo(
    stream: BinaryIO,
    filename: str | None,
    content_type: str | None,
    upload_dir: str | Path | None = None,
    max_bytes: int | None = None,
) -> StoredPhoto:
    """
    Validate and store one uploaded image.

    Raises:
        PhotoValidationError: Wrong type or extension
        PhotoTooLargeError: Body larger than ``max_bytes``
    """
    extension = validate_photo(filename, content_type)
    max_bytes = max_bytes if max_bytes is not None else get_settings().upload_max_bytes

    target_dir = photo_dir(upload_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    name = _unique_name(extension)
    path = target_dir / name

    size = 0
    try:
        with path.open("wb") as out:
            while chunk := stream.read(CHUNK_SIZE):
                size += len(chunk)
                if size > max_bytes:
                    raise PhotoTooLargeError(
                        f"File too large (max {max_bytes // (1024 * 1024)}MB)"
                    )
                out.write(chunk)
    except PhotoTooLargeError:
        path.unlink(missing_ok=True)
        raise

    logger.info("Saved photo {} ({} bytes)", name, size)
    return StoredPhoto(filename=name, path=path, url=f"{URL_PREFIX}/{PHOTO_SUBDIR}/{name}", size=size)


def delete_photo(url: str | None, upload_dir: str | Path | None = None) -> bool:
    """Remove a stored photo by its public URL; False if it was not ours or is gone."""
    prefix = f"{URL_PREFIX}/{PHOTO_SUBDIR}/"
    if not url or not url.startswith(prefix):
        return False
    name = Path(url[len(prefix):]).name
    path = photo_dir(upload_dir) / name
    if not path.exists():
        return False
    path.unlink()
    logger.info("Deleted photo {}", name)
    return True
