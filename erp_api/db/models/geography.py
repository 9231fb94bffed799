from __future__ import annotations

from typing import Optional

from sqlalchemy import ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from erp_api.db.base import Base, IntPkMixin


# Public reference data: shared by every tenant, hence no TenantMixin.


class Country(IntPkMixin, Base):
    """Country reference row."""
    __tablename__ = "countries"

    name: Mapped[str] = mapped_column(Text, nullable=False)
    iso_code: Mapped[str] = mapped_column(Text, nullable=False, unique=True)


class State(IntPkMixin, Base):
    """State/province reference row."""
    __tablename__ = "states"

    country_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("countries.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    uf: Mapped[str] = mapped_column(Text, nullable=False)
    ibge_code: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)


class City(IntPkMixin, Base):
    """City reference row."""
    __tablename__ = "cities"

    state_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("states.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    ibge_code: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
