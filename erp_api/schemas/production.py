from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from erp_api.schemas.common import CamelModel, RowId
from erp_api.schemas.nested import NestedItems, NestedItemUpdate


class RecipeItemCreate(CamelModel):
    """New recipe input."""
    product_id: RowId = Field(..., description="Input product id")
    quantity: float = Field(..., description="Quantity consumed per unit produced")


class RecipeItemUpdate(NestedItemUpdate):
    """Partial update of an existing recipe input."""
    product_id: Optional[RowId] = Field(None)
    quantity: Optional[float] = Field(None)


RecipeItems = NestedItems[RecipeItemCreate, RecipeItemUpdate]


class RecipeItemRead(CamelModel):
    """Recipe input read model."""
    id: int = Field(..., description="Recipe item id")
    recipe_id: int = Field(..., description="Recipe id")
    product_id: int = Field(..., description="Input product id")
    quantity: float = Field(..., description="Quantity")


class RecipeCreate(CamelModel):
    """Create recipe payload, optionally with its inputs."""
    product_id: RowId = Field(..., description="Produced product id")
    description: Optional[str] = Field(None)
    notes: Optional[str] = Field(None)
    items: Optional[RecipeItems] = Field(None, description="Nested input mutations")


class RecipeUpdate(CamelModel):
    """Partial recipe update, optionally with input mutations."""
    product_id: Optional[RowId] = Field(None)
    description: Optional[str] = Field(None)
    notes: Optional[str] = Field(None)
    items: Optional[RecipeItems] = Field(None, description="Nested input mutations")


class RecipeRead(CamelModel):
    """Recipe header with its inputs."""
    id: int = Field(..., description="Recipe id")
    product_id: int = Field(..., description="Produced product id")
    description: Optional[str] = Field(None)
    notes: Optional[str] = Field(None)
    created_at: datetime = Field(..., description="Created at")
    updated_at: datetime = Field(..., description="Updated at")
    items: List[RecipeItemRead] = Field(default_factory=list)
