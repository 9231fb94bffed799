from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from erp_api.schemas.common import CamelModel


class SupplierRead(CamelModel):
    """Supplier read model."""
    id: int = Field(..., description="Supplier id")
    name: str = Field(..., description="Supplier name")
    tax_id: Optional[str] = Field(None, description="Tax registration number")
    email: Optional[str] = Field(None)
    phone: Optional[str] = Field(None)
    is_active: bool = Field(..., description="Active flag")
    created_at: datetime = Field(..., description="Created at")
    updated_at: datetime = Field(..., description="Updated at")


class SupplierCreate(CamelModel):
    """Create supplier payload."""
    name: str = Field(..., min_length=1, description="Supplier name")
    tax_id: Optional[str] = Field(None)
    email: Optional[str] = Field(None)
    phone: Optional[str] = Field(None)
    is_active: bool = Field(True)


class SupplierUpdate(CamelModel):
    """Partial supplier update."""
    name: Optional[str] = Field(None, min_length=1)
    tax_id: Optional[str] = Field(None)
    email: Optional[str] = Field(None)
    phone: Optional[str] = Field(None)
    is_active: Optional[bool] = Field(None)


class ProductRead(CamelModel):
    """Product read model."""
    id: int = Field(..., description="Product id")
    sku: str = Field(..., description="SKU, unique within the tenant")
    name: str = Field(..., description="Product name")
    description: Optional[str] = Field(None)
    sale_value: Optional[float] = Field(None, description="Default sale value")
    is_active: bool = Field(..., description="Active flag")
    created_at: datetime = Field(..., description="Created at")
    updated_at: datetime = Field(..., description="Updated at")


class ProductCreate(CamelModel):
    """Create product payload."""
    sku: str = Field(..., min_length=1, description="SKU (unique within tenant)")
    name: str = Field(..., min_length=1, description="Name")
    description: Optional[str] = Field(None)
    sale_value: Optional[float] = Field(None, ge=0)
    is_active: bool = Field(True)


class ProductUpdate(CamelModel):
    """Partial product update."""
    sku: Optional[str] = Field(None, min_length=1)
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None)
    sale_value: Optional[float] = Field(None, ge=0)
    is_active: Optional[bool] = Field(None)
