from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from erp_api.db.base import Base, IntPkMixin


class ErrorLog(IntPkMixin, Base):
    """Append-only audit record of a failure reported by the request pipeline."""
    __tablename__ = "error_logs"

    message: Mapped[str] = mapped_column(Text, nullable=False)
    kind: Mapped[str] = mapped_column(Text, nullable=False)
    context: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # No FK: a record must be writable even for an unknown or deleted tenant.
    tenant_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    stack: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
