"""
Declarative payload for mutating a child collection of one parent entity.

Any resource accepting nested children embeds
``{"create": [...], "update": [{"id": ..., ...}], "delete": [ids]}``
under a named body field.
"""
from __future__ import annotations

from typing import Generic, List, TypeVar

from pydantic import BaseModel, ConfigDict, Field, StrictInt, model_validator

from erp_api.schemas.common import CamelModel, RowId

CreateT = TypeVar("CreateT", bound=BaseModel)
UpdateT = TypeVar("UpdateT", bound="NestedItemUpdate")

NESTED_KEYS = ("create", "update", "delete")


class NestedItemUpdate(CamelModel):
    """Base for update entries: the id of an existing child row plus partial fields."""
    model_config = ConfigDict(extra="forbid")

    id: RowId = Field(..., description="Id of the child row to update")

    def changes(self) -> dict:
        """Non-null fields explicitly provided by the client, without the id."""
        return self.model_dump(exclude={"id"}, exclude_unset=True, exclude_none=True)


# PUBLIC_INTERFACE
class NestedItems(CamelModel, Generic[CreateT, UpdateT]):
    """
    Create/update/delete instruction set for a child collection.

    Missing keys default to empty lists. An id may appear at most once across
    ``update`` and ``delete``.
    """
    model_config = ConfigDict(extra="forbid")

    create: List[CreateT] = Field(default_factory=list, description="Rows to insert")
    update: List[UpdateT] = Field(default_factory=list, description="Partial updates by id")
    delete: List[StrictInt] = Field(default_factory=list, description="Ids of rows to remove")

    @model_validator(mode="after")
    def _ids_are_disjoint(self):
        update_ids = [entry.id for entry in self.update]
        if len(update_ids) != len(set(update_ids)):
            raise ValueError("an id appears more than once in update")
        overlap = set(update_ids) & set(self.delete)
        if overlap:
            raise ValueError(f"ids {sorted(overlap)} appear in both update and delete")
        return self

    def is_empty(self) -> bool:
        return not (self.create or self.update or self.delete)
