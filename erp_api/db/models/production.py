from __future__ import annotations

from typing import Optional

from sqlalchemy import ForeignKey, Integer, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column

from erp_api.db.base import Base, IntPkMixin, TimestampMixin, TenantMixin


class Recipe(IntPkMixin, TenantMixin, TimestampMixin, Base):
    """Bill of materials for a product."""
    __tablename__ = "recipes"

    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class RecipeItem(IntPkMixin, TenantMixin, TimestampMixin, Base):
    """Input consumed by a recipe."""
    __tablename__ = "recipe_items"

    recipe_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False
    )
    quantity: Mapped[float] = mapped_column(Numeric(18, 6), nullable=False)
