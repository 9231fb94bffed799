from __future__ import annotations

from typing import Optional

from sqlalchemy import ForeignKey, Integer, Numeric, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from erp_api.db.base import Base, IntPkMixin, TimestampMixin, TenantMixin


class PurchaseOrder(IntPkMixin, TenantMixin, TimestampMixin, Base):
    """Purchase order header."""
    __tablename__ = "purchase_orders"
    __table_args__ = (
        UniqueConstraint("tenant_id", "code", name="uq_purchase_orders_tenant_code"),
    )

    code: Mapped[str] = mapped_column(Text, nullable=False)
    supplier_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("suppliers.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(Text, nullable=False, default="PENDING", server_default="PENDING")
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class PurchaseOrderItem(IntPkMixin, TenantMixin, TimestampMixin, Base):
    """Purchase order line item."""
    __tablename__ = "purchase_order_items"

    purchase_order_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("purchase_orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False
    )
    quantity: Mapped[float] = mapped_column(Numeric(18, 6), nullable=False)
    unit_cost: Mapped[float] = mapped_column(Numeric(18, 6), nullable=False)
