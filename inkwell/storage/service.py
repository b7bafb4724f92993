"""Firebase Storage service for blog images.

Uploads are validated (size, declared type, magic bytes) before they
reach the bucket. Blogs only keep the returned reference:
``{public_id, secure_url, alt_text}`` where ``public_id`` is the object
path inside the bucket.
"""

from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import quote
from uuid import uuid4

import structlog

from inkwell.config.settings import Settings
from inkwell.core.exceptions import AppError
from inkwell.utils.magic_bytes import validate_image_content


if TYPE_CHECKING:
    from google.cloud.storage import Blob, Bucket


logger = structlog.get_logger(__name__)


class StorageError(AppError):
    """Base error for storage operations."""

    def __init__(self, message: str, code: str = "storage_error") -> None:
        super().__init__(message, code)


class StorageNotConfiguredError(StorageError):
    def __init__(self, message: str = "Image storage is not configured") -> None:
        super().__init__(message, "storage_not_configured")


class StorageUploadError(StorageError):
    def __init__(self, message: str) -> None:
        super().__init__(message, "upload_error")


class StorageValidationError(StorageError):
    def __init__(self, message: str) -> None:
        super().__init__(message, "validation_error")


class FileTooLargeError(StorageError):
    def __init__(self, size: int, max_size: int) -> None:
        message = (
            f"File size ({size / 1024 / 1024:.2f} MB) exceeds "
            f"maximum allowed ({max_size / 1024 / 1024:.2f} MB)"
        )
        super().__init__(message, "file_too_large")


class InvalidContentTypeError(StorageError):
    def __init__(self, content_type: str, allowed: list[str]) -> None:
        message = f"Content type '{content_type}' is not allowed. Allowed: {', '.join(allowed)}"
        super().__init__(message, "invalid_content_type")


# Firebase app singleton
_firebase_app = None
_storage_bucket: "Bucket | None" = None


def _init_firebase(settings: Settings) -> "Bucket":
    """Initialize Firebase Admin SDK and return the storage bucket.

    Raises:
        StorageNotConfiguredError: If Firebase is not configured.
    """
    global _firebase_app, _storage_bucket  # noqa: PLW0603

    if _storage_bucket is not None:
        return _storage_bucket

    if not settings.firebase_configured:
        raise StorageNotConfiguredError

    # Lazy import to avoid loading Firebase SDK unless needed
    import firebase_admin  # noqa: PLC0415
    from firebase_admin import credentials, storage  # noqa: PLC0415

    creds_path = settings.firebase_credentials_path
    if not creds_path or not Path(creds_path).exists():
        raise StorageNotConfiguredError(
            f"Firebase credentials file not found: {creds_path}"
        )

    try:
        if _firebase_app is None:
            _firebase_app = firebase_admin.initialize_app(
                credentials.Certificate(creds_path),
                {
                    "storageBucket": settings.firebase_storage_bucket,
                    "projectId": settings.firebase_project_id,
                },
            )
            logger.info(
                "firebase_initialized",
                project_id=settings.firebase_project_id,
                bucket=settings.firebase_storage_bucket,
            )

        _storage_bucket = storage.bucket()
        return _storage_bucket

    except Exception as e:
        logger.exception("firebase_init_failed", error=str(e))
        raise StorageNotConfiguredError(f"Failed to initialize Firebase: {e}") from e


class FirebaseStorageService:
    """Uploads and deletes blog images in Firebase Storage."""

    EXTENSION_MAP: dict[str, str] = {
        "image/jpeg": ".jpg",
        "image/png": ".png",
        "image/webp": ".webp",
        "image/gif": ".gif",
        "image/bmp": ".bmp",
        "image/avif": ".avif",
    }

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._bucket: Bucket | None = None

    @property
    def is_configured(self) -> bool:
        return self.settings.firebase_configured

    @property
    def max_file_size(self) -> int:
        """Maximum file size in bytes."""
        return self.settings.upload_max_file_size_mb * 1024 * 1024

    @property
    def allowed_types(self) -> list[str]:
        return self.settings.upload_allowed_image_types

    def _ensure_configured(self) -> None:
        if not self.is_configured:
            raise StorageNotConfiguredError

    def _get_bucket(self) -> "Bucket":
        if self._bucket is None:
            self._bucket = _init_firebase(self.settings)
        return self._bucket

    def _build_storage_path(self, folder: str, entity_id: str, content_type: str) -> str:
        """Build the object path.

        Format: inkwell/blog/{folder}/{entity_id}_{timestamp}_{suffix}{ext}
        """
        timestamp = datetime.now(UTC).strftime("%Y%m%d%H%M%S")
        ext = self.EXTENSION_MAP.get(content_type, "")
        return f"inkwell/blog/{folder}/{entity_id}_{timestamp}_{uuid4().hex[:8]}{ext}"

    def _generate_public_url(self, storage_path: str) -> str:
        bucket_name = self.settings.firebase_storage_bucket
        encoded_path = "/".join(
            quote(part, safe="") for part in storage_path.split("/")
        )
        return f"https://storage.googleapis.com/{bucket_name}/{encoded_path}"

    def validate_image(self, content: bytes, content_type: str) -> str:
        """Validate an image and return its detected MIME type.

        Raises:
            FileTooLargeError: If file exceeds size limit.
            InvalidContentTypeError: If declared type is not allowed.
            StorageValidationError: If magic bytes do not match an allowed image.
        """
        file_size = len(content)
        if file_size > self.max_file_size:
            raise FileTooLargeError(file_size, self.max_file_size)

        if content_type not in self.allowed_types:
            raise InvalidContentTypeError(content_type, self.allowed_types)

        is_valid, detected_type, error_msg = validate_image_content(
            content[:64],
            content_type,
            allowed_types=frozenset(self.allowed_types),
        )
        if not is_valid:
            logger.warning(
                "magic_bytes_validation_failed",
                declared_type=content_type,
                detected_type=detected_type,
                error=error_msg,
            )
            raise StorageValidationError(error_msg or "Invalid file content")

        return detected_type or content_type

    async def upload_image(
        self,
        content: bytes,
        content_type: str,
        folder: str,
        entity_id: str,
        alt_text: str,
    ) -> dict[str, str]:
        """Upload an image and return its reference.

        Args:
            content: File content as bytes.
            content_type: Declared Content-Type.
            folder: Sub-folder, e.g. "featured" or "content".
            entity_id: Owning blog id.
            alt_text: Alternative text stored with the reference.

        Returns:
            Dict with public_id, secure_url, alt_text.
        """
        self._ensure_configured()
        actual_type = self.validate_image(content, content_type)
        storage_path = self._build_storage_path(folder, entity_id, actual_type)

        try:
            blob: Blob = self._get_bucket().blob(storage_path)
            blob.cache_control = "public, max-age=31536000, immutable"
            blob.upload_from_string(content, content_type=actual_type)
            blob.make_public()
        except Exception as e:
            logger.exception("image_upload_failed", storage_path=storage_path, error=str(e))
            raise StorageUploadError(f"Failed to upload image: {e}") from e

        logger.info(
            "image_uploaded",
            storage_path=storage_path,
            content_type=actual_type,
            file_size=len(content),
            entity_id=entity_id,
        )
        return {
            "public_id": storage_path,
            "secure_url": self._generate_public_url(storage_path),
            "alt_text": alt_text,
        }

    async def delete_image(self, public_id: str) -> bool:
        """Delete an image by its ``public_id``.

        Returns:
            True if deleted, False if it did not exist.
        """
        self._ensure_configured()

        try:
            blob = self._get_bucket().blob(public_id)
            if not blob.exists():
                logger.warning("image_not_found", storage_path=public_id)
                return False
            blob.delete()
        except Exception as e:
            logger.exception("image_delete_failed", storage_path=public_id, error=str(e))
            raise StorageUploadError(f"Failed to delete image: {e}") from e

        logger.info("image_deleted", storage_path=public_id)
        return True
