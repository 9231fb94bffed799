from __future__ import annotations

import math
from typing import Annotated, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, StrictInt
from pydantic.alias_generators import to_camel

from erp_api.db.base import MAX_ROW_ID

T = TypeVar("T")

# Client-supplied reference to an existing row.
RowId = Annotated[StrictInt, Field(ge=1, le=MAX_ROW_ID)]


class CamelModel(BaseModel):
    """Base for wire models: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# PUBLIC_INTERFACE
class ApiResponse(BaseModel, Generic[T]):
    """Success envelope shared by every endpoint."""
    success: bool = Field(True, description="Always true for successful calls")
    message: str = Field(..., description="Human readable message")
    data: Optional[T] = Field(default=None, description="Endpoint payload")


# PUBLIC_INTERFACE
class ErrorResponse(BaseModel):
    """Error envelope returned by the exception handlers."""
    error: bool = Field(True, description="Always true for failed calls")
    message: str = Field(..., description="Human readable error message")


class PageMeta(CamelModel):
    """Pagination metadata for list endpoints."""
    total: int = Field(..., ge=0, description="Total rows matching the filters")
    page: int = Field(..., ge=1, description="Current page (1-based)")
    total_pages: int = Field(..., ge=0, description="Number of pages for the current limit")


class Page(CamelModel, Generic[T]):
    """One page of a list endpoint."""
    items: List[T] = Field(default_factory=list)
    meta: PageMeta


def build_page(items: List[T], *, total: int, page: int, limit: int) -> Page[T]:
    """Assemble a Page from already-serialized items."""
    return Page(
        items=items,
        meta=PageMeta(total=total, page=page, total_pages=math.ceil(total / limit) if limit else 0),
    )


def ok(data: T, message: str = "Success") -> ApiResponse[T]:
    """Wrap data in the success envelope."""
    return ApiResponse(success=True, message=message, data=data)
