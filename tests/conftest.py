"""Shared fixtures.

Cassandra, Redis and Firebase are never contacted: services run against
in-memory collections and the app is used without its lifespan.
"""

import os
import tempfile
from uuid import UUID, uuid4

import pytest


os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="inkwell-logs-"))
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("FIREBASE_ENABLED", "false")

from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from inkwell.auth.permissions import UserRole  # noqa: E402
from inkwell.auth.security import create_access_token  # noqa: E402
from inkwell.auth.service import AuthService  # noqa: E402
from inkwell.blogs.service import BlogService  # noqa: E402
from inkwell.comments.service import CommentService  # noqa: E402
from tests.fakes import InMemoryCollection  # noqa: E402


@pytest.fixture
def users() -> InMemoryCollection:
    return InMemoryCollection("users")


@pytest.fixture
def blogs() -> InMemoryCollection:
    return InMemoryCollection("blogs")


@pytest.fixture
def comments() -> InMemoryCollection:
    return InMemoryCollection("comments")


@pytest.fixture
def admin_id() -> UUID:
    return uuid4()


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


@pytest.fixture
def auth_service(users: InMemoryCollection) -> AuthService:
    return AuthService(users)


@pytest.fixture
def blog_service(blogs: InMemoryCollection, comments: InMemoryCollection) -> BlogService:
    return BlogService(blogs, comments)


@pytest.fixture
def comment_service(
    comments: InMemoryCollection, blogs: InMemoryCollection
) -> CommentService:
    return CommentService(comments, blogs)


@pytest.fixture
def app(
    auth_service: AuthService,
    blog_service: BlogService,
    comment_service: CommentService,
) -> FastAPI:
    """Application with in-memory services on its state."""
    from inkwell.main import create_app  # noqa: PLC0415

    application = create_app()
    application.state.auth_service = auth_service
    application.state.blog_service = blog_service
    application.state.comment_service = comment_service
    return application


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Test client; not used as a context manager so the lifespan never runs."""
    return TestClient(app)


def bearer(user_id: UUID, role: UserRole = UserRole.USER, name: str = "tester") -> dict[str, str]:
    """Authorization header for a user with the given role."""
    token = create_access_token(
        {
            "sub": str(user_id),
            "email": f"{name}@example.com",
            "name": name,
            "role": role.value,
        }
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers(user_id: UUID) -> dict[str, str]:
    return bearer(user_id, UserRole.USER, "reader")


@pytest.fixture
def admin_headers(admin_id: UUID) -> dict[str, str]:
    return bearer(admin_id, UserRole.ADMIN, "admin")
