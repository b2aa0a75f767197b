"""
Authentication business logic.

Handles registration, email/password login and token verification.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from datetime import datetime, timezone

import jwt
import structlog

from puzzlehub.auth.jwt import TokenSigner
from puzzlehub.auth.password import (
    PasswordStrengthError,
    check_needs_rehash,
    hash_password,
    validate_password_strength,
    verify_password,
)
from puzzlehub.db.models import User
from puzzlehub.db.protocols import UserStore
from puzzlehub.errors import InvalidArgument, Unauthorized

logger = structlog.get_logger()

_LOGIN_FAILED = "Email or password is wrong"


def email_fingerprint(email: str) -> str:
    """Short stable hash of an address, for log lines that must not carry it."""
    return hashlib.sha256(email.strip().lower().encode()).hexdigest()[:16]


@dataclass(frozen=True)
class LoginResult:
    user: User
    token: str


class Authenticator:
    """Credential checks and token verification."""

    def __init__(self, signer: TokenSigner, users: UserStore | None = None) -> None:
        self.signer = signer
        self.users = users

    def _user_store(self) -> UserStore:
        if self.users is None:
            msg = "Authenticator was built without a user store"
            raise RuntimeError(msg)
        return self.users

    def verify(self, token: str | None) -> int:
        """Return the user id carried by ``token``.

        Only the signature, expiry and token type are checked; see
        ``authenticate`` for the check that the user still exists.

        Raises:
            Unauthorized: If the token is missing, invalid or expired.
        """
        if not token:
            msg = "Token is missing"
            raise Unauthorized(msg)
        try:
            payload = self.signer.verify_token(token, expected_type="access")
            return int(payload["sub"])
        except (jwt.InvalidTokenError, ValueError) as e:
            raise Unauthorized(str(e) or "Invalid token") from e

    async def authenticate(self, token: str | None) -> User:
        """Verify ``token`` and load its user.

        Raises:
            Unauthorized: If the token is missing, invalid or expired, or its
                user no longer exists.
        """
        user_id = self.verify(token)
        user = await self._user_store().get(user_id)
        if user is None:
            logger.info("token_for_unknown_user", user_id=user_id)
            msg = "Invalid token"
            raise Unauthorized(msg)
        return user

    async def login(self, email: str, password: str) -> LoginResult:
        """
        Check email + password and mint an access token.

        Raises:
            Unauthorized: Unknown email or wrong password (same message for both).
        """
        user = await self._user_store().find_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("login_failed", email_hash=email_fingerprint(email))
            raise Unauthorized(_LOGIN_FAILED)

        if check_needs_rehash(user.password_hash):
            user.password_hash = hash_password(password)
            logger.info("password_rehashed", user_id=user.id)

        return LoginResult(user=user, token=self.signer.create_access_token(user.id))


async def register_user(
    users: UserStore,
    email: str,
    password: str,
    display_name: str,
    *,
    min_password_length: int = 8,
    max_password_length: int = 128,
) -> User:
    """
    Register a new user with email + password.

    Raises:
        InvalidArgument: If the email already exists or the password is weak.
    """
    try:
        validate_password_strength(password, min_password_length, max_password_length)
    except PasswordStrengthError as e:
        raise InvalidArgument(str(e)) from e

    if await users.find_by_email(email) is not None:
        msg = "Email already registered"
        raise InvalidArgument(msg)

    user = await users.create(
        User(
            email=email.lower().strip(),
            display_name=display_name.strip(),
            password_hash=hash_password(password),
            created_at=datetime.now(timezone.utc),
        )
    )
    logger.info("user_registered", user_id=user.id)
    return user
