"""
Unit tests for photo upload validation and storage.
"""

import io

import pytest

from recall.uploads import (
    PhotoTooLargeError,
    PhotoValidationError,
    delete_photo,
    save_photo,
    validate_photo,
)
from recall.uploads.photos import photo_dir


class TestValidatePhoto:
    @pytest.mark.parametrize("filename,content_type,extension", [
        ("dog.png", "image/png", ".png"),
        ("beach.JPG", "image/jpeg", ".jpg"),
        ("party.webp", "image/webp", ".webp"),
    ])
    def test_allowed(self, filename, content_type, extension):
        assert validate_photo(filename, content_type) == extension

    @pytest.mark.parametrize("filename,content_type", [
        ("notes.txt", "text/plain"),
        ("dog.png", "text/plain"),
        ("dog.exe", "image/png"),
        ("dog.svg", "image/svg+xml"),
        ("dog.png", None),
        (None, "image/png"),
    ])
    def test_rejected(self, filename, content_type):
        with pytest.raises(PhotoValidationError, match="Only image files are allowed"):
            validate_photo(filename, content_type)


class TestSavePhoto:
    """Tests for streaming an upload to disk."""

    def test_saves_under_photos_dir(self, tmp_path):
        stored = save_photo(io.BytesIO(b"x" * 100), "dog.JPG", "image/jpeg", upload_dir=tmp_path, max_bytes=1000)

        assert stored.path.exists()
        assert stored.path.parent == tmp_path / "photos"
        assert stored.size == 100
        assert stored.url.startswith("/uploads/photos/memory-")
        assert stored.url.endswith(".jpg")
        assert stored.filename == stored.path.name

    def test_too_large_leaves_nothing_behind(self, tmp_path):
        with pytest.raises(PhotoTooLargeError):
            save_photo(io.BytesIO(b"x" * 100), "dog.png", "image/png", upload_dir=tmp_path, max_bytes=10)

        assert list(photo_dir(tmp_path).iterdir()) == []

    def test_invalid_type_writes_nothing(self, tmp_path):
        with pytest.raises(PhotoValidationError):
            save_photo(io.BytesIO(b"hello"), "notes.txt", "text/plain", upload_dir=tmp_path)

        assert not photo_dir(tmp_path).exists()


class TestDeletePhoto:
    def test_delete_stored_photo(self, tmp_path):
        stored = save_photo(io.BytesIO(b"img"), "dog.png", "image/png", upload_dir=tmp_path)

        assert delete_photo(stored.url, upload_dir=tmp_path)
        assert not stored.path.exists()
        assert not delete_photo(stored.url, upload_dir=tmp_path)

    @pytest.mark.parametrize("url", [None, "", "/elsewhere/dog.png", "https://example.com/dog.png"])
    def test_ignores_foreign_urls(self, tmp_path, url):
        assert not delete_photo(url, upload_dir=tmp_path)
