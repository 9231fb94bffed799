"""
Reconciliation of a parent's child collection from a declarative payload.

A resource with one-to-many children (purchase order lines, recipe inputs)
declares a ChildCollection once; the reconciler then applies
``{create, update, delete}`` payloads against it as a single unit of work:

    verify foreign refs -> delete -> update -> create

Deletes are scoped to the parent and tenant and silently skip foreign ids, so
repeating a delete is harmless. An update that does not match a child of the
parent aborts the whole unit.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Set, Type

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from erp_api.core.errors import ConflictError, NotFoundError, ValidationError
from erp_api.core.scope import TenantScope
from erp_api.db.base import MAX_ROW_ID
from erp_api.db.session import atomic
from erp_api.schemas.nested import NESTED_KEYS, NestedItems
from erp_api.services.base import BaseService

logger = logging.getLogger(__name__)

NESTED_ERROR = {
    "INVALID_PAYLOAD": "Invalid items payload",
    "CHILD_NOT_FOUND": "referenced child row not found for this parent",
}


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class ChildCollection:
    """
    Declaration of a child collection.

    Attributes:
        model: ORM class of the child rows (must carry tenant_id).
        parent_key: attribute on the child pointing at the parent id.
        payload_type: concrete NestedItems[Create, Update] model for the payload.
        references: child attribute -> ORM class it references; every id sent
            for such an attribute must belong to the caller's tenant.
        require_all_keys: when set, create/update/delete must all be present.
    """
    model: Any
    parent_key: str
    payload_type: Type[NestedItems]
    references: Mapping[str, Any] = field(default_factory=dict)
    require_all_keys: bool = False


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation."""
    created: List[int] = field(default_factory=list)
    updated: List[int] = field(default_factory=list)
    deleted: int = 0


# PUBLIC_INTERFACE
class NestedCollectionReconciler(BaseService):
    """Applies nested payloads to one ChildCollection."""

    def __init__(self, session: AsyncSession, collection: ChildCollection) -> None:
        super().__init__(session)
        self.collection = collection

    def parse(self, payload: Any) -> NestedItems:
        """
        Validate the payload shape before anything touches the store.

        Raises:
            ValidationError: "Invalid items payload" for any shape problem.
        """
        if isinstance(payload, NestedItems):
            items = payload
        else:
            if not isinstance(payload, dict):
                raise ValidationError(NESTED_ERROR["INVALID_PAYLOAD"], context="NESTED:parse")
            try:
                items = self.collection.payload_type.model_validate(payload)
            except PydanticValidationError as exc:
                raise ValidationError(NESTED_ERROR["INVALID_PAYLOAD"], context="NESTED:parse", original=exc)

        if self.collection.require_all_keys and not set(NESTED_KEYS) <= items.model_fields_set:
            raise ValidationError(NESTED_ERROR["INVALID_PAYLOAD"], context="NESTED:parse")
        return items

    # PUBLIC_INTERFACE
    async def reconcile(self, parent_id: int, payload: Any, scope: TenantScope) -> ReconcileResult:
        """
        Apply a nested payload to the children of parent_id.

        Joins the caller's unit of work when one is open (e.g. the parent
        header was just written); otherwise commits or rolls back itself.

        Raises:
            ValidationError: malformed payload.
            NotFoundError: a referenced foreign row is not owned by the tenant.
            ConflictError: an update id is not a child of this parent.
        """
        items = self.parse(payload)
        result = ReconcileResult()
        if items.is_empty():
            return result

        async with atomic(self.session):
            await self._verify_references(items, scope)
            result.deleted = await self._delete(parent_id, items.delete, scope)
            result.updated = await self._update(parent_id, items.update, scope)
            result.created = await self._create(parent_id, items.create, scope)

        logger.info(
            "Reconciled %s for parent %s: created=%s updated=%s deleted=%s",
            self.collection.model.__tablename__,
            parent_id,
            len(result.created),
            len(result.updated),
            result.deleted,
        )
        return result

    async def _verify_references(self, items: NestedItems, scope: TenantScope) -> None:
        for attr, ref_model in self.collection.references.items():
            ids: Set[int] = {getattr(entry, attr) for entry in items.create}
            ids |= {getattr(entry, attr) for entry in items.update if getattr(entry, attr, None) is not None}
            if not ids:
                continue
            stmt = scope.filter(select(ref_model.id).where(ref_model.id.in_(ids)), ref_model)
            found = set((await self.session.execute(stmt)).scalars())
            if found != ids:
                raise NotFoundError(f"{ref_model.__name__} not found", context="NESTED:FK")

    def _owned(self, parent_id: int, scope: TenantScope):
        model = self.collection.model
        return (
            getattr(model, self.collection.parent_key) == parent_id,
            model.tenant_id == scope.tenant_id,
        )

    async def _delete(self, parent_id: int, ids: List[int], scope: TenantScope) -> int:
        # ids outside the column range cannot exist: already gone
        ids = [row_id for row_id in ids if 0 < row_id <= MAX_ROW_ID]
        if not ids:
            return 0
        model = self.collection.model
        stmt = (
            delete(model)
            .where(model.id.in_(ids), *self._owned(parent_id, scope))
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return int(result.rowcount or 0)

    async def _update(self, parent_id: int, entries: List[Any], scope: TenantScope) -> List[int]:
        model = self.collection.model
        updated: List[int] = []
        for entry in entries:
            stmt = select(model.id).where(model.id == entry.id, *self._owned(parent_id, scope))
            if (await self.session.execute(stmt)).scalar_one_or_none() is None:
                raise ConflictError(NESTED_ERROR["CHILD_NOT_FOUND"], context="NESTED:update")
            values: Dict[str, Any] = entry.changes()
            if values:
                await self.session.execute(
                    update(model)
                    .where(model.id == entry.id)
                    .values(**values)
                    .execution_options(synchronize_session=False)
                )
            updated.append(entry.id)
        return updated

    async def _create(self, parent_id: int, entries: List[Any], scope: TenantScope) -> List[int]:
        if not entries:
            return []
        model = self.collection.model
        rows = [
            model(**scope.stamp({**entry.model_dump(), self.collection.parent_key: parent_id}))
            for entry in entries
        ]
        self.session.add_all(rows)
        await self.session.flush()
        return [row.id for row in rows]
