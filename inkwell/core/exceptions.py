"""Domain error taxonomy and its HTTP translation.

Services raise ``AppError`` subclasses; routers convert them with
``handle_app_error`` so that business code never depends on FastAPI.
"""

from fastapi import HTTPException, status


class AppError(Exception):
    """Base application error."""

    def __init__(self, message: str, code: str = "app_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class NotFoundError(AppError):
    """Referenced document does not exist."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, "not_found")


class BlogNotFoundError(NotFoundError):
    """Blog not found. Shared by the blog and comment services."""

    def __init__(self, message: str = "Blog not found"):
        super().__init__(message)


class InvalidArgumentError(AppError):
    """Request data failed a domain rule."""

    def __init__(self, message: str = "Invalid argument"):
        super().__init__(message, "invalid_argument")


class PermissionDeniedError(AppError):
    """Requester is not allowed to perform the operation."""

    def __init__(self, message: str = "Permission denied"):
        super().__init__(message, "permission_denied")


class AlreadyFlaggedError(AppError):
    """User has already flagged this comment."""

    def __init__(self, message: str = "You have already flagged this comment"):
        super().__init__(message, "already_flagged")


class ConflictError(AppError):
    """Conditional write kept losing to concurrent writers."""

    def __init__(self, message: str = "Concurrent update conflict, please retry"):
        super().__init__(message, "conflict")


class RateLimitExceededError(AppError):
    """Too many requests in the current window."""

    def __init__(self, message: str = "Rate limit exceeded"):
        super().__init__(message, "rate_limit_exceeded")


STATUS_MAP: dict[str, int] = {
    "not_found": status.HTTP_404_NOT_FOUND,
    "invalid_argument": status.HTTP_400_BAD_REQUEST,
    "permission_denied": status.HTTP_403_FORBIDDEN,
    "already_flagged": status.HTTP_409_CONFLICT,
    "conflict": status.HTTP_409_CONFLICT,
    "rate_limit_exceeded": status.HTTP_429_TOO_MANY_REQUESTS,
    # Auth
    "invalid_credentials": status.HTTP_401_UNAUTHORIZED,
    "user_inactive": status.HTTP_403_FORBIDDEN,
    "user_exists": status.HTTP_409_CONFLICT,
    # Storage
    "storage_not_configured": status.HTTP_503_SERVICE_UNAVAILABLE,
    "upload_error": status.HTTP_502_BAD_GATEWAY,
    "validation_error": status.HTTP_400_BAD_REQUEST,
    "file_too_large": status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    "invalid_content_type": status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
}


def handle_app_error(error: AppError) -> HTTPException:
    """Convert an application error to an HTTP exception.

    Args:
        error: Application error

    Returns:
        HTTPException with the mapped status code (500 for unknown codes)
    """
    status_code = STATUS_MAP.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR)
    return HTTPException(status_code=status_code, detail=error.message)
