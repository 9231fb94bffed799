from __future__ import annotations

from typing import Optional

from sqlalchemy import Boolean, Numeric, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from erp_api.db.base import Base, IntPkMixin, TimestampMixin, TenantMixin


class Product(IntPkMixin, TenantMixin, TimestampMixin, Base):
    """Product master (finished goods and raw materials)."""
    __tablename__ = "products"
    __table_args__ = (
        UniqueConstraint("tenant_id", "sku", name="uq_products_tenant_sku"),
    )

    sku: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    sale_value: Mapped[Optional[float]] = mapped_column(Numeric(18, 6), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")


class Supplier(IntPkMixin, TenantMixin, TimestampMixin, Base):
    """Supplier/vendor master."""
    __tablename__ = "suppliers"

    name: Mapped[str] = mapped_column(Text, nullable=False)
    tax_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    email: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
