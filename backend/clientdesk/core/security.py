"""Password hashing and JWT access tokens."""

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from clientdesk.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Verified against when the email is unknown so both paths cost one bcrypt check
_DUMMY_PASSWORD_HASH = pwd_context.hash("clientdesk-timing-filler")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """Check a password against a stored hash.

    A missing hash still runs a full bcrypt verification and returns False.
    """
    if not hashed_password:
        pwd_context.verify(plain_password, _DUMMY_PASSWORD_HASH)
        return False
    return pwd_context.verify(plain_password, hashed_password)


PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 32
PASSWORD_SPECIAL_CHARS = "!@#$%^&*()_+-=[]{}|;:',.<>?/`~\"\\"


def validate_password_complexity(password: str) -> tuple[bool, str]:
    """
    Validate a new password against the account password policy.

    Requirements:
    - 6 to 32 characters
    - At least one uppercase letter, lowercase letter, number and special character
    - No whitespace
    - Latin characters only

    Returns:
        Tuple of (is_valid, error_message)
    """
    if len(password) < PASSWORD_MIN_LENGTH:
        return False, f"Password must be at least {PASSWORD_MIN_LENGTH} characters long"

    if len(password) > PASSWORD_MAX_LENGTH:
        return False, f"Password must not exceed {PASSWORD_MAX_LENGTH} characters"

    if any(c.isspace() for c in password):
        return False, "Password must not contain whitespace"

    if not password.isascii():
        return False, "Password must contain only Latin characters"

    if not any(c.isupper() for c in password):
        return False, "Password must contain at least one uppercase letter (A-Z)"

    if not any(c.islower() for c in password):
        return False, "Password must contain at least one lowercase letter (a-z)"

    if not any(c.isdigit() for c in password):
        return False, "Password must contain at least one number (0-9)"

    if not any(c in PASSWORD_SPECIAL_CHARS for c in password):
        return False, "Password must contain at least one special character"

    return True, ""


def create_access_token(data: dict[str, Any], expires_delta: timedelta | None = None) -> str:
    """Create a signed JWT carrying ``data`` plus an ``exp`` claim."""
    to_encode = data.copy()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode["exp"] = datetime.now(timezone.utc) + expires_delta
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Return the token payload, or None if the token is invalid or expired."""
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
