from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt
from passlib.context import CryptContext

from erp_api.core.settings import AppSettings, get_app_settings

_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

_DURATION_RE = re.compile(r"^\s*(\d+)\s*(ms|s|m|h|d|w)?\s*$", re.IGNORECASE)
_DURATION_UNITS = {
    "ms": timedelta(milliseconds=1),
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "d": timedelta(days=1),
    "w": timedelta(weeks=1),
}


def _peppered(password: str, settings: AppSettings) -> str:
    # bcrypt only looks at the first 72 bytes
    raw = (settings.APP_SECRET + password).encode("utf-8")[:72]
    return raw.decode("utf-8", errors="ignore")


# PUBLIC_INTERFACE
def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a bcrypt hash peppered with APP_SECRET."""
    settings = get_app_settings()
    return _pwd_context.verify(_peppered(plain_password, settings), hashed_password)


# PUBLIC_INTERFACE
def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt, peppered with APP_SECRET."""
    settings = get_app_settings()
    return _pwd_context.hash(_peppered(password, settings))


# PUBLIC_INTERFACE
def parse_duration(value: str) -> timedelta:
    """
    Parse a lifetime such as '2d', '12h', '30m', '45s', '500ms' or a bare number of seconds.

    Raises:
        ValueError: when the string is not a recognised duration.
    """
    match = _DURATION_RE.match(value or "")
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return int(amount) * _DURATION_UNITS[(unit or "s").lower()]


# PUBLIC_INTERFACE
def create_session_token(
    claims: Dict[str, Any],
    *,
    now: Optional[datetime] = None,
    settings: Optional[AppSettings] = None,
) -> tuple[str, datetime, datetime]:
    """
    Sign a session token carrying the given claims.

    Returns:
        (token, issued_at, expires_at)
    """
    settings = settings or get_app_settings()
    issued_at = now or datetime.now(tz=timezone.utc)
    expires_at = issued_at + parse_duration(settings.JWT_EXPIRES_IN)
    to_encode = dict(claims)
    to_encode.update({"iat": issued_at, "exp": expires_at})
    token = jwt.encode(to_encode, settings.APP_SECRET, algorithm=settings.JWT_ALGORITHM)
    return token, issued_at, expires_at


# PUBLIC_INTERFACE
def decode_token(token: str, settings: Optional[AppSettings] = None) -> Dict[str, Any]:
    """Decode and validate a JWT; raises JWTError if invalid/expired."""
    settings = settings or get_app_settings()
    return jwt.decode(token, settings.APP_SECRET, algorithms=[settings.JWT_ALGORITHM])
