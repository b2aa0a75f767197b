"""Account passwords: argon2id hashes and the registration strength rule."""

from __future__ import annotations

from collections.abc import Callable

import argon2

_hasher = argon2.PasswordHasher(
    time_cost=2,
    memory_cost=64 * 1024,  # KiB
    parallelism=1,
    hash_len=32,
    salt_len=16,
    type=argon2.Type.ID,
)

# (predicate over one character, what the password is missing)
_CHARACTER_CLASSES: tuple[tuple[Callable[[str], bool], str], ...] = (
    (str.isalpha, "letter"),
    (str.isdigit, "digit"),
)


class PasswordStrengthError(ValueError):
    """Raised when a password does not meet strength requirements."""


def hash_password(password: str) -> str:
    return _hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """True on match; a mismatch or an unparseable stored hash gives False."""
    try:
        return _hasher.verify(password_hash, password)
    except (argon2.exceptions.VerifyMismatchError, argon2.exceptions.InvalidHashError):
        return False


def check_needs_rehash(password_hash: str) -> bool:
    """Stored hash was made with older hasher parameters."""
    return _hasher.check_needs_rehash(password_hash)


def validate_password_strength(password: str, min_length: int = 8, max_length: int = 128) -> None:
    """
    Reject blank passwords, passwords outside the length bounds, and
    passwords without at least one letter and one digit.

    Raises:
        PasswordStrengthError: Naming the first rule that failed.
    """
    if not password or not password.strip():
        msg = "Password cannot be empty"
        raise PasswordStrengthError(msg)
    if not min_length <= len(password) <= max_length:
        bound = f"at least {min_length}" if len(password) < min_length else f"at most {max_length}"
        msg = f"Password must be {bound} characters"
        raise PasswordStrengthError(msg)
    for predicate, missing in _CHARACTER_CLASSES:
        if not any(predicate(c) for c in password):
            msg = f"Password must contain at least one {missing}"
            raise PasswordStrengthError(msg)
