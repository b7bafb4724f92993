"""Role-based access control for Inkwell.

Two roles exist: USER (readers and commenters) and ADMIN (authors and
moderators). The role carried in the access token is trusted as-is.
"""

from enum import Enum


class UserRole(str, Enum):
    """User roles."""

    USER = "user"
    ADMIN = "admin"


def is_admin(role: UserRole | str) -> bool:
    """Check if role is ADMIN."""
    if isinstance(role, str):
        return role == UserRole.ADMIN.value
    return role == UserRole.ADMIN


def can_modify(owner_id: object, requester_id: object, role: UserRole | str) -> bool:
    """Owners may modify their own resources; admins may modify anything."""
    return str(owner_id) == str(requester_id) or is_admin(role)
