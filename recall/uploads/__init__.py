"""
Photo upload validation and storage.
"""
from recall.uploads.photos import (
    PhotoTooLargeError,
    PhotoUploadError,
    PhotoValidationError,
    StoredPhoto,
    delete_photo,
    save_photo,
    validate_photo,
)

__all__ = [
    "PhotoTooLargeError",
    "PhotoUploadError",
    "PhotoValidationError",
    "StoredPhoto",
    "delete_photo",
    "save_photo",
    "validate_photo",
]
