"""Password helpers for registration.

Sessions are validated in app.api.deps; issuing them is the sign-in
flow's concern.
"""

import re

import bcrypt

from app.core.errors import ValidationError

# bcrypt cost factor for password hashing
_BCRYPT_ROUNDS = 12


def validate_password_strength(password: str) -> None:
    """Validate password meets strength requirements.

    8-128 chars, at least one letter and one number.

    Args:
        password: Plain-text password to validate.

    Raises:
        ValidationError: If password doesn't meet requirements.
    """
    if len(password) < 8:
        raise ValidationError("Password must be at least 8 characters")
    if len(password) > 128:
        raise ValidationError("Password must be at most 128 characters")
    if not re.search(r"[a-zA-Z]", password):
        raise ValidationError("Password must contain at least one letter")
    if not re.search(r"\d", password):
        raise ValidationError("Password must contain at least one number")


def hash_password(password: str) -> str:
    """Hash a password with bcrypt.

    Args:
        password: Plain-text password.

    Returns:
        bcrypt hash as a UTF-8 string.
    """
    return bcrypt.hashpw(
        password.encode(), bcrypt.gensalt(rounds=_BCRYPT_ROUNDS)
    ).decode()
