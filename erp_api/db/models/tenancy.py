from __future__ import annotations

from sqlalchemy import Text
from sqlalchemy.orm import Mapped, mapped_column

from erp_api.db.base import Base, IntPkMixin, TimestampMixin


class Tenant(IntPkMixin, TimestampMixin, Base):
    """Enterprise owning an isolated slice of every tenant-scoped table."""
    __tablename__ = "tenants"

    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
