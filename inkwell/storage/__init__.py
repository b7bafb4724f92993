"""Image storage module (Firebase Storage)."""

from .service import FirebaseStorageService, StorageError


__all__ = ["FirebaseStorageService", "StorageError"]
