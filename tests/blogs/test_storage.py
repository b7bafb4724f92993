"""Tests for image validation before upload."""

import pytest

from inkwell.config.settings import Settings
from inkwell.storage.service import (
    FileTooLargeError,
    FirebaseStorageService,
    InvalidContentTypeError,
    StorageNotConfiguredError,
    StorageValidationError,
)
from inkwell.utils.magic_bytes import detect_image_type, validate_image_content


PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16
JPEG = b"\xff\xd8\xff\xe0" + b"\x00" * 16
WEBP = b"RIFF\x00\x00\x00\x00WEBPVP8 "


@pytest.fixture
def storage() -> FirebaseStorageService:
    return FirebaseStorageService(
        Settings(upload_max_file_size_mb=1, firebase_enabled=False)
    )


class TestMagicBytes:
    @pytest.mark.parametrize(
        ("data", "expected"),
        [(PNG, "image/png"), (JPEG, "image/jpeg"), (WEBP, "image/webp"), (b"MZ\x90\x00", None)],
    )
    def test_detect(self, data: bytes, expected: str | None) -> None:
        assert detect_image_type(data) == expected

    def test_detected_type_wins_over_declared_image_type(self) -> None:
        valid, detected, error = validate_image_content(
            PNG, "image/jpeg", frozenset({"image/png", "image/jpeg"})
        )
        assert (valid, detected, error) == (True, "image/png", None)

    def test_non_image_declared_type(self) -> None:
        valid, _, error = validate_image_content(
            PNG, "application/pdf", frozenset({"image/png"})
        )
        assert valid is False
        assert "mismatch" in error


class TestValidateImage:
    def test_accepts_png(self, storage: FirebaseStorageService) -> None:
        assert storage.validate_image(PNG, "image/png") == "image/png"

    def test_too_large(self, storage: FirebaseStorageService) -> None:
        with pytest.raises(FileTooLargeError):
            storage.validate_image(PNG + b"\x00" * (1024 * 1024), "image/png")

    def test_disallowed_declared_type(self, storage: FirebaseStorageService) -> None:
        with pytest.raises(InvalidContentTypeError):
            storage.validate_image(PNG, "image/tiff")

    def test_renamed_executable(self, storage: FirebaseStorageService) -> None:
        with pytest.raises(StorageValidationError):
            storage.validate_image(b"MZ\x90\x00" + b"\x00" * 60, "image/png")

    @pytest.mark.asyncio
    async def test_upload_requires_configuration(
        self, storage: FirebaseStorageService
    ) -> None:
        assert storage.is_configured is False
        with pytest.raises(StorageNotConfiguredError):
            await storage.upload_image(PNG, "image/png", "featured", "blog", "alt")
