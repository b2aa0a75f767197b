"""
HMAC-signed access tokens.

The signing secret is handed to ``TokenSigner`` at construction; nothing in
this module reads configuration on its own.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt


class TokenSigner:
    """Mint and verify access tokens whose subject is the user id."""

    def __init__(
        self,
        secret: str,
        *,
        algorithm: str = "HS256",
        expire_minutes: int = 60 * 24,
        issuer: str = "puzzlehub",
    ) -> None:
        if not secret:
            msg = "Token signing secret must not be empty"
            raise ValueError(msg)
        self._secret = secret
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes
        self.issuer = issuer

    def create_access_token(self, user_id: int, *, now: datetime | None = None) -> str:
        """
        Create an access token.

        Args:
            user_id: The user's database ID (becomes the ``sub`` claim).
            now: Issue time; defaults to the current UTC time.

        Returns:
            Encoded JWT string.
        """
        now = now or datetime.now(timezone.utc)
        payload: dict[str, Any] = {
            "sub": str(user_id),
            "iat": now,
            "exp": now + timedelta(minutes=self.expire_minutes),
            "iss": self.issuer,
            "type": "access",
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify_token(self, token: str, expected_type: str = "access") -> dict[str, Any]:
        """
        Verify and decode a token.

        Returns:
            Decoded payload dictionary.

        Raises:
            jwt.InvalidTokenError: If the token is invalid, expired, or wrong type.
        """
        try:
            payload: dict[str, Any] = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            msg = "Token has expired"
            raise jwt.InvalidTokenError(msg) from None

        if payload.get("type") != expected_type:
            msg = f"Expected token type '{expected_type}', got '{payload.get('type')}'"
            raise jwt.InvalidTokenError(msg)

        return payload
