from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import select, update

from erp_api.db.models.security import Token, User
from .base import BaseRepository


class UserRepository(BaseRepository):
    """Repository for user lookups used by the login flow."""

    model = User

    async def get_user_by_username(self, username: str) -> Optional[User]:
        stmt = select(User).where(User.username == username)
        return await self.scalar_one_or_none(stmt)


class TokenRepository(BaseRepository):
    """Server-side token records backing session revocation."""

    model = Token

    async def get_by_token(self, token: str) -> Optional[Token]:
        stmt = select(Token).where(Token.token == token)
        return await self.scalar_one_or_none(stmt)

    async def create_token(
        self,
        *,
        token: str,
        user_id: int,
        tenant_id: int,
        created_at: datetime,
        expires_at: datetime,
    ) -> Token:
        record = Token(
            token=token,
            user_id=user_id,
            tenant_id=tenant_id,
            valid=True,
            created_at=created_at,
            expires_at=expires_at,
        )
        await self.add(record)
        await self.flush()
        return record

    async def invalidate(self, token: str) -> int:
        """Mark a record invalid; returns the number of rows touched (0 for unknown tokens)."""
        stmt = (
            update(Token)
            .where(Token.token == token, Token.valid.is_(True))
            .values(valid=False)
            .execution_options(synchronize_session=False)
        )
        result = await self.execute(stmt)
        return int(result.rowcount or 0)

    async def invalidate_expired(self, now: datetime) -> int:
        """Invalidate every still-valid record whose expiry has passed."""
        stmt = (
            update(Token)
            .where(Token.valid.is_(True), Token.expires_at < now)
            .values(valid=False)
            .execution_options(synchronize_session=False)
        )
        result = await self.execute(stmt)
        return int(result.rowcount or 0)
