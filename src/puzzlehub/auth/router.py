"""Authentication router: all /api/v1/auth/* endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from puzzlehub.auth.dependencies import get_authenticator, get_current_user
from puzzlehub.auth.schemas import LoginRequest, RegisterRequest, TokenResponse, UserResponse
from puzzlehub.auth.service import Authenticator, register_user
from puzzlehub.config import Settings, get_settings
from puzzlehub.db.models import User
from puzzlehub.db.protocols import Storage
from puzzlehub.dependencies import get_storage

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


def _token_response(user: User, token: str, settings: Settings) -> TokenResponse:
    return TokenResponse(
        access_token=token,
        token_type="bearer",
        expires_in=settings.jwt_access_token_expire_minutes * 60,
        user=UserResponse.model_validate(user),
    )


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(
    body: RegisterRequest,
    storage: Storage = Depends(get_storage),
    authenticator: Authenticator = Depends(get_authenticator),
    settings: Settings = Depends(get_settings),
) -> TokenResponse:
    """Create an account and return an access token for it."""
    user = await register_user(
        storage.users,
        body.email,
        body.password,
        body.display_name,
        min_password_length=settings.password_min_length,
        max_password_length=settings.password_max_length,
    )
    await storage.commit()
    token = authenticator.signer.create_access_token(user.id)
    return _token_response(user, token, settings)


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    storage: Storage = Depends(get_storage),
    authenticator: Authenticator = Depends(get_authenticator),
    settings: Settings = Depends(get_settings),
) -> TokenResponse:
    """Email + password login."""
    result = await authenticator.login(body.email, body.password)
    await storage.commit()  # persists a password rehash, if any
    return _token_response(result.user, result.token, settings)


@router.get("/me", response_model=UserResponse)
async def me(user: User = Depends(get_current_user)) -> UserResponse:
    """Profile of the authenticated user."""
    return UserResponse.model_validate(user)
