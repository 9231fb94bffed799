from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field

from erp_api.schemas.common import CamelModel, RowId
from erp_api.schemas.nested import NestedItems, NestedItemUpdate


class OrderStatus(str, Enum):
    """Lifecycle states shared by purchase orders."""
    PENDING = "PENDING"
    PLANNED = "PLANNED"
    FINISHED = "FINISHED"
    CANCELED = "CANCELED"


class PurchaseOrderItemCreate(CamelModel):
    """New purchase order line."""
    product_id: RowId = Field(..., description="Product id")
    quantity: float = Field(..., description="Ordered quantity")
    unit_cost: float = Field(..., description="Unit cost")


class PurchaseOrderItemUpdate(NestedItemUpdate):
    """Partial update of an existing purchase order line."""
    product_id: Optional[RowId] = Field(None)
    quantity: Optional[float] = Field(None)
    unit_cost: Optional[float] = Field(None)


PurchaseOrderItems = NestedItems[PurchaseOrderItemCreate, PurchaseOrderItemUpdate]


class PurchaseOrderItemRead(CamelModel):
    """Purchase order line read model."""
    id: int = Field(..., description="Line id")
    purchase_order_id: int = Field(..., description="Purchase order id")
    product_id: int = Field(..., description="Product id")
    quantity: float = Field(..., description="Ordered quantity")
    unit_cost: float = Field(..., description="Unit cost")


class PurchaseOrderCreate(CamelModel):
    """Create purchase order payload, optionally with its lines."""
    code: str = Field(..., min_length=1, description="Order code (unique within tenant)")
    supplier_id: RowId = Field(..., description="Supplier id")
    status: OrderStatus = Field(OrderStatus.PENDING)
    notes: Optional[str] = Field(None)
    items: Optional[PurchaseOrderItems] = Field(None, description="Nested line mutations")


class PurchaseOrderUpdate(CamelModel):
    """Partial purchase order update, optionally with line mutations."""
    code: Optional[str] = Field(None, min_length=1)
    supplier_id: Optional[RowId] = Field(None)
    status: Optional[OrderStatus] = Field(None)
    notes: Optional[str] = Field(None)
    items: Optional[PurchaseOrderItems] = Field(None, description="Nested line mutations")


class PurchaseOrderRead(CamelModel):
    """Purchase order header with its lines."""
    id: int = Field(..., description="Order id")
    code: str = Field(..., description="Order code")
    supplier_id: int = Field(..., description="Supplier id")
    status: OrderStatus = Field(..., description="Order status")
    notes: Optional[str] = Field(None)
    created_at: datetime = Field(..., description="Created at")
    updated_at: datetime = Field(..., description="Updated at")
    items: List[PurchaseOrderItemRead] = Field(default_factory=list)
