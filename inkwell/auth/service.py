"""Authentication service layer.

Business logic for:
- User registration and login
- Access token issuing
- User queries
"""

from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from inkwell.auth.models import User
from inkwell.auth.schemas import RegisterRequest, TokenResponse, UserResponse
from inkwell.auth.security import create_access_token, hash_password, verify_password
from inkwell.config.settings import get_settings
from inkwell.core.exceptions import AppError


if TYPE_CHECKING:
    from inkwell.core.database.collection import CassandraCollection


logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class AuthError(AppError):
    """Base authentication error."""

    def __init__(self, message: str, code: str = "auth_error"):
        super().__init__(message, code)


class InvalidCredentialsError(AuthError):
    """Invalid email or password."""

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message, "invalid_credentials")


class UserExistsError(AuthError):
    """Email already registered."""

    def __init__(self, message: str = "User already exists"):
        super().__init__(message, "user_exists")


class UserNotFoundError(AuthError):
    """User not found."""

    def __init__(self, message: str = "User not found"):
        super().__init__(message, "not_found")


class UserInactiveError(AuthError):
    """User account is deactivated."""

    def __init__(self, message: str = "Account is deactivated"):
        super().__init__(message, "user_inactive")


# ==============================================================================
# Auth Service
# ==============================================================================


class AuthService:
    """Authentication service for user management and token operations."""

    def __init__(self, users: "CassandraCollection"):
        """Initialize with the users collection."""
        self.users = users

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        row = await self.users.find_by_id(user_id)
        return User.from_row(row) if row else None

    async def get_user_by_email(self, email: str) -> User | None:
        rows = await self.users.find(email=email.lower())
        return User.from_row(rows[0]) if rows else None

    async def register_user(self, data: RegisterRequest) -> User:
        """Register a new user.

        Raises:
            UserExistsError: If the email is already registered
        """
        if await self.get_user_by_email(data.email):
            raise UserExistsError("A user with this email already exists")

        user = User(
            username=data.username,
            email=data.email,
            password_hash=hash_password(data.password),
            role=data.role.value,
        )
        await self.users.insert(user.to_row())

        logger.info("user_registered", user_id=str(user.id), role=user.role)
        return user

    async def authenticate_user(self, email: str, password: str) -> User:
        """Check credentials and return the user.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password
            UserInactiveError: Account is deactivated
        """
        user = await self.get_user_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            logger.info("login_failed", email=email.lower())
            raise InvalidCredentialsError

        if not user.is_active:
            raise UserInactiveError

        logger.info("user_logged_in", user_id=str(user.id))
        return user

    def create_token(self, user: User) -> TokenResponse:
        """Issue an access token carrying the user's identity and role."""
        settings = get_settings()
        token = create_access_token(
            {
                "sub": str(user.id),
                "email": user.email,
                "name": user.username,
                "role": user.role,
            }
        )
        return TokenResponse(
            access_token=token,
            expires_in=settings.auth_access_token_expire_minutes * 60,
            user=UserResponse.from_user(user),
        )

    async def list_users(self) -> list[User]:
        """List all users, newest first."""
        rows = await self.users.find()
        users = [User.from_row(row) for row in rows]
        users.sort(key=lambda u: u.created_at, reverse=True)
        return users
