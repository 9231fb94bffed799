from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, List

from sqlalchemy.ext.asyncio import AsyncSession

from erp_api.core.errors import ConflictError, NotFoundError
from erp_api.core.query import QuerySpec
from erp_api.core.scope import TenantScope
from erp_api.db.models.master_data import Product
from erp_api.db.models.procurement import PurchaseOrder, PurchaseOrderItem
from erp_api.db.session import atomic
from erp_api.repositories.master_data import SupplierRepository
from erp_api.repositories.procurement import PurchaseOrderRepository
from erp_api.schemas.common import Page, build_page
from erp_api.schemas.procurement import (
    PurchaseOrderCreate,
    PurchaseOrderItemRead,
    PurchaseOrderItems,
    PurchaseOrderRead,
    PurchaseOrderUpdate,
)
from erp_api.services.base import BaseService
from erp_api.services.nested import ChildCollection, NestedCollectionReconciler

logger = logging.getLogger(__name__)

PURCHASE_ORDER_ITEMS = ChildCollection(
    model=PurchaseOrderItem,
    parent_key="purchase_order_id",
    payload_type=PurchaseOrderItems,
    references={"product_id": Product},
)


class PurchaseOrderService(BaseService):
    """
    Purchase order headers plus their nested lines.

    Header writes and line reconciliation share one unit of work: a failing
    line leaves the header untouched as well.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.orders = PurchaseOrderRepository(session)
        self.suppliers = SupplierRepository(session)
        self.items = NestedCollectionReconciler(session, PURCHASE_ORDER_ITEMS)

    # PUBLIC_INTERFACE
    async def list_orders(self, spec: QuerySpec, scope: TenantScope) -> Page[PurchaseOrderRead]:
        rows, total = await self.orders.list_orders(spec, scope)
        items = await self._items_by_order([row.id for row in rows], scope)
        return build_page(
            [self._to_read(row, items[row.id]) for row in rows],
            total=total,
            page=spec.page,
            limit=spec.limit,
        )

    # PUBLIC_INTERFACE
    async def get_order(self, order_id: int, scope: TenantScope) -> PurchaseOrderRead:
        order = await self._require_order(order_id, scope)
        items = await self._items_by_order([order.id], scope)
        return self._to_read(order, items[order.id])

    # PUBLIC_INTERFACE
    async def create_order(self, payload: PurchaseOrderCreate, scope: TenantScope) -> PurchaseOrderRead:
        async with atomic(self.session):
            if await self.orders.get_by_code(payload.code, scope) is not None:
                raise ConflictError("Purchase order code already exists", context="PURCHASE_ORDER:create")
            await self._require_supplier(payload.supplier_id, scope)
            order = await self.orders.create_owned(payload.model_dump(mode="json", exclude={"items"}), scope)
            if payload.items is not None:
                await self.items.reconcile(order.id, payload.items, scope)
        logger.info("Created purchase order id=%s code=%s", order.id, order.code)
        return await self.get_order(order.id, scope)

    # PUBLIC_INTERFACE
    async def update_order(self, order_id: int, payload: PurchaseOrderUpdate, scope: TenantScope) -> PurchaseOrderRead:
        values = payload.model_dump(mode="json", exclude={"items"}, exclude_unset=True, exclude_none=True)
        async with atomic(self.session):
            order = await self._require_order(order_id, scope)
            if "code" in values and values["code"] != order.code:
                if await self.orders.get_by_code(values["code"], scope) is not None:
                    raise ConflictError("Purchase order code already exists", context="PURCHASE_ORDER:update")
            if "supplier_id" in values:
                await self._require_supplier(values["supplier_id"], scope)
            if values:
                await self.orders.update_owned(order, values)
            if payload.items is not None:
                await self.items.reconcile(order.id, payload.items, scope)
        return await self.get_order(order_id, scope)

    async def _require_order(self, order_id: int, scope: TenantScope) -> PurchaseOrder:
        order = await self.orders.get_owned(order_id, scope)
        if order is None:
            raise NotFoundError("Purchase order not found", context="PURCHASE_ORDER:get")
        return order

    async def _require_supplier(self, supplier_id: int, scope: TenantScope) -> None:
        if not await self.suppliers.exists_owned(supplier_id, scope):
            raise NotFoundError("Supplier not found", context="FK:NOT_FOUND")

    async def _items_by_order(self, order_ids: List[int], scope: TenantScope) -> Dict[int, List[PurchaseOrderItem]]:
        grouped: Dict[int, List[PurchaseOrderItem]] = defaultdict(list)
        for item in await self.orders.list_items(order_ids, scope):
            grouped[item.purchase_order_id].append(item)
        return grouped

    @staticmethod
    def _to_read(order: PurchaseOrder, items: List[PurchaseOrderItem]) -> PurchaseOrderRead:
        return PurchaseOrderRead.model_validate(order).model_copy(
            update={"items": [PurchaseOrderItemRead.model_validate(item) for item in items]}
        )
