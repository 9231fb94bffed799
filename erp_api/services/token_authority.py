from __future__ import annotations

import logging
import secrets
from datetime import datetime, timezone
from typing import Optional, Tuple

from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from erp_api.core.errors import AuthenticationError
from erp_api.core.security import create_session_token, decode_token, verify_password
from erp_api.core.settings import AppSettings, get_app_settings
from erp_api.db.models.security import User
from erp_api.db.session import atomic
from erp_api.repositories.security import TokenRepository, UserRepository
from erp_api.schemas.auth import Credential
from erp_api.services.base import BaseService

logger = logging.getLogger(__name__)

AUTH_ERROR = {
    "MISSING": "Token not provided",
    "INVALID": "Invalid or expired token",
    "MALFORMED": "Malformed token",
    "REVOKED": "Token revoked or expired",
    "CREDENTIALS": "Invalid credentials",
}


def _utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; every stored value is UTC.
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


class TokenAuthority(BaseService):
    """
    Issues, verifies and revokes session credentials.

    A credential is a signed token paired with a server-side Token record. The
    signature proves origin; the record is the revocation switch. Both must
    hold for verify() to succeed.
    """

    def __init__(self, session: AsyncSession, settings: Optional[AppSettings] = None) -> None:
        super().__init__(session)
        self.settings = settings or get_app_settings()
        self.tokens = TokenRepository(session)
        self.users = UserRepository(session)

    # PUBLIC_INTERFACE
    async def verify(self, raw_token: Optional[str], *, now: Optional[datetime] = None) -> Credential:
        """
        Turn a raw token into a typed Credential.

        Raises:
            AuthenticationError: missing token, bad signature or expiry, malformed
                claims, or a token record that is absent, invalid or expired. The
                last case sets clear_cookie when AUTH_CLEAR_COOKIE_ON_REVOKE is on.
        """
        if not raw_token:
            raise AuthenticationError(AUTH_ERROR["MISSING"], context="AUTH:verify")

        try:
            claims = decode_token(raw_token, self.settings)
        except JWTError as exc:
            raise AuthenticationError(AUTH_ERROR["INVALID"], context="AUTH:verify", original=exc)

        try:
            credential = Credential.from_claims(claims)
        except (KeyError, TypeError, ValueError) as exc:
            raise AuthenticationError(AUTH_ERROR["MALFORMED"], context="AUTH:verify", original=exc)

        now = now or datetime.now(tz=timezone.utc)
        record = await self.tokens.get_by_token(raw_token)
        if record is None or not record.valid or _utc(record.expires_at) < now:
            raise AuthenticationError(
                AUTH_ERROR["REVOKED"],
                clear_cookie=self.settings.AUTH_CLEAR_COOKIE_ON_REVOKE,
                context="AUTH:verify",
            )
        return credential

    # PUBLIC_INTERFACE
    async def issue(self, user: User, *, now: Optional[datetime] = None) -> Tuple[str, Credential]:
        """Sign a token for the user and persist its valid Token record."""
        claims = {
            "sub": str(user.id),
            "username": user.username,
            "role": user.role,
            "tenantId": user.tenant_id,
            # distinct tokens for logins within the same second
            "jti": secrets.token_hex(8),
        }
        token, issued_at, expires_at = create_session_token(claims, now=now, settings=self.settings)
        async with atomic(self.session):
            await self.tokens.create_token(
                token=token,
                user_id=user.id,
                tenant_id=user.tenant_id,
                created_at=issued_at,
                expires_at=expires_at,
            )
        credential = Credential(
            subject_id=user.id,
            username=user.username,
            role=user.role,
            tenant_id=user.tenant_id,
            issued_at=issued_at.replace(microsecond=0),
            expires_at=expires_at.replace(microsecond=0),
        )
        logger.info("Issued session token for user_id=%s", user.id)
        return token, credential

    # PUBLIC_INTERFACE
    async def revoke(self, raw_token: Optional[str]) -> None:
        """Invalidate a token record. Unknown or missing tokens are a no-op."""
        if not raw_token:
            return
        async with atomic(self.session):
            touched = await self.tokens.invalidate(raw_token)
        if touched:
            logger.info("Revoked session token")

    # PUBLIC_INTERFACE
    async def sweep_expired(self, now: Optional[datetime] = None) -> int:
        """Invalidate every still-valid record past its expiry; returns the count."""
        now = now or datetime.now(tz=timezone.utc)
        async with atomic(self.session):
            count = await self.tokens.invalidate_expired(now)
        logger.info("Token sweep invalidated %s expired record(s)", count)
        return count

    # PUBLIC_INTERFACE
    async def authenticate(self, username: str, password: str) -> User:
        """
        Check a username/password pair for the login flow.

        Raises:
            AuthenticationError: unknown user, wrong password or inactive user.
        """
        user = await self.users.get_user_by_username(username)
        if user is None or not user.is_active or not verify_password(password, user.hashed_password):
            raise AuthenticationError(AUTH_ERROR["CREDENTIALS"], context="AUTH:login")
        return user
