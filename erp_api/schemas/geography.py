from __future__ import annotations

from typing import Optional

from pydantic import Field

from erp_api.schemas.common import CamelModel


class CountryRead(CamelModel):
    """Country reference row."""
    id: int = Field(..., description="Country id")
    name: str = Field(..., description="Country name")
    iso_code: str = Field(..., description="ISO 3166 alpha code")


class StateRead(CamelModel):
    """State/province reference row."""
    id: int = Field(..., description="State id")
    country_id: int = Field(..., description="Country id")
    name: str = Field(..., description="State name")
    uf: str = Field(..., description="State abbreviation")
    ibge_code: Optional[int] = Field(None, description="Official statistics code")


class CityRead(CamelModel):
    """City reference row."""
    id: int = Field(..., description="City id")
    state_id: int = Field(..., description="State id")
    name: str = Field(..., description="City name")
    ibge_code: Optional[int] = Field(None, description="Official statistics code")
