"""Authentication API endpoints."""

from fastapi import APIRouter, status

from inkwell.auth.dependencies import AdminUser, AuthServiceDep, CurrentUser
from inkwell.auth.schemas import (
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UserListResponse,
    UserResponse,
)
from inkwell.auth.service import UserNotFoundError
from inkwell.core.exceptions import AppError, handle_app_error


router = APIRouter(prefix="/v1/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
async def register(data: RegisterRequest, auth_service: AuthServiceDep) -> TokenResponse:
    """Create an account and return an access token for it."""
    try:
        user = await auth_service.register_user(data)
    except AppError as e:
        raise handle_app_error(e) from e
    return auth_service.create_token(user)


@router.post("/login", response_model=TokenResponse, summary="Login")
async def login(data: LoginRequest, auth_service: AuthServiceDep) -> TokenResponse:
    try:
        user = await auth_service.authenticate_user(data.email, data.password)
    except AppError as e:
        raise handle_app_error(e) from e
    return auth_service.create_token(user)


@router.get("/me", response_model=UserResponse, summary="Current user profile")
async def me(user: CurrentUser, auth_service: AuthServiceDep) -> UserResponse:
    """Return the stored profile of the authenticated user."""
    stored = await auth_service.get_user_by_id(user.id)
    if stored is None:
        raise handle_app_error(UserNotFoundError())
    return UserResponse.from_user(stored)


@router.get("/users", response_model=UserListResponse, summary="List users (admin)")
async def list_users(_admin: AdminUser, auth_service: AuthServiceDep) -> UserListResponse:
    users = await auth_service.list_users()
    return UserListResponse(
        items=[UserResponse.from_user(u) for u in users],
        total=len(users),
    )
