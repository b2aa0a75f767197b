"""FastAPI authentication dependencies."""

from __future__ import annotations

from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from puzzlehub.auth.jwt import TokenSigner
from puzzlehub.auth.service import Authenticator
from puzzlehub.config import Settings, get_settings
from puzzlehub.db.models import User
from puzzlehub.db.protocols import Storage
from puzzlehub.dependencies import get_storage

# auto_error=False so a missing header surfaces as our own Unauthorized
_bearer = HTTPBearer(auto_error=False)


def get_token_signer(settings: Settings = Depends(get_settings)) -> TokenSigner:
    """Build the token signer from configuration."""
    return TokenSigner(
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expire_minutes=settings.jwt_access_token_expire_minutes,
        issuer=settings.jwt_issuer,
    )


def get_authenticator(
    signer: TokenSigner = Depends(get_token_signer),
    storage: Storage = Depends(get_storage),
) -> Authenticator:
    return Authenticator(signer, storage.users)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    authenticator: Authenticator = Depends(get_authenticator),
) -> User:
    """
    Verify the bearer token and load the user it names.

    Raises Unauthorized (401) when the token is missing, invalid or expired,
    or when its user no longer exists.
    """
    token = credentials.credentials if credentials is not None else None
    return await authenticator.authenticate(token)


def get_current_user_id(user: User = Depends(get_current_user)) -> int:
    return user.id
