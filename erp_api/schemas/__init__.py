"""
Public Pydantic schemas used by FastAPI routes, services, and tests.

Schemas are grouped by domain module (geography, procurement, etc.) and also
include the shared envelopes, pagination and the nested collection payload.
"""

from .common import ApiResponse, ErrorResponse, Page, RowId  # noqa: F401
from .nested import NestedItems, NestedItemUpdate  # noqa: F401
