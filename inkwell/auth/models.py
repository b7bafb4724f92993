"""Database models for authentication.

Users live in a single table looked up by id, with a secondary index on
email for login.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from inkwell.auth.permissions import UserRole


USER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.users (
    id UUID PRIMARY KEY,
    username TEXT,
    email TEXT,
    password_hash TEXT,
    role TEXT,
    is_active BOOLEAN,
    avatar_url TEXT,
    bio TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP,
    version INT
)
"""

USER_EMAIL_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS users_email_idx ON {keyspace}.users (email)
"""

AUTH_TABLES_CQL = [
    USER_TABLE_CQL,
    USER_EMAIL_INDEX_CQL,
]


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


class User:
    """User entity for authentication and authorization.

    Attributes:
        id: Unique identifier (UUID)
        username: Display name used as comment/blog author name
        email: Unique email address (lower-cased)
        password_hash: Argon2id hashed password
        role: User role (user, admin)
        is_active: Inactive accounts cannot log in
        avatar_url: Profile picture URL
        bio: Short profile text
        created_at: Account creation timestamp
        updated_at: Last update timestamp
    """

    def __init__(
        self,
        id: UUID | None = None,
        username: str = "",
        email: str = "",
        password_hash: str = "",
        role: str = UserRole.USER.value,
        is_active: bool = True,
        avatar_url: str | None = None,
        bio: str | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        now = datetime.now(UTC)
        self.id = id or uuid4()
        self.username = username
        self.email = email.lower()
        self.password_hash = password_hash
        self.role = role
        self.is_active = is_active
        self.avatar_url = avatar_url
        self.bio = bio
        self.created_at = created_at or now
        self.updated_at = updated_at or now

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "User":
        """Create User from a stored document."""
        return cls(
            id=row["id"],
            username=row.get("username") or "",
            email=row.get("email") or "",
            password_hash=row.get("password_hash") or "",
            role=row.get("role") or UserRole.USER.value,
            is_active=row.get("is_active") is not False,
            avatar_url=row.get("avatar_url"),
            bio=row.get("bio"),
            created_at=ensure_utc_aware(row.get("created_at")),
            updated_at=ensure_utc_aware(row.get("updated_at")),
        )

    def to_row(self) -> dict[str, Any]:
        """Convert to the stored document shape."""
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "password_hash": self.password_hash,
            "role": self.role,
            "is_active": self.is_active,
            "avatar_url": self.avatar_url,
            "bio": self.bio,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    def __repr__(self) -> str:
        return f"<User {self.email} role={self.role}>"
