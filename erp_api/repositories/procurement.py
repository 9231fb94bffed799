from __future__ import annotations

from typing import List, Optional, Tuple

from sqlalchemy import select

from erp_api.core.query import QuerySpec
from erp_api.core.scope import TenantScope
from erp_api.db.models.master_data import Supplier
from erp_api.db.models.procurement import PurchaseOrder, PurchaseOrderItem
from .base import TenantRepository, search_clause


class PurchaseOrderRepository(TenantRepository):
    """Repository for purchase order headers and their lines."""

    model = PurchaseOrder
    SORT_COLUMNS = {
        "code": PurchaseOrder.code,
        "status": PurchaseOrder.status,
        "createdAt": PurchaseOrder.created_at,
        "updatedAt": PurchaseOrder.updated_at,
    }
    DEFAULT_SORT = "createdAt"

    async def list_orders(self, spec: QuerySpec, scope: TenantScope) -> Tuple[List[PurchaseOrder], int]:
        stmt = scope.filter(select(PurchaseOrder), PurchaseOrder)
        status = spec.get("status")
        if status:
            stmt = stmt.where(PurchaseOrder.status == status)
        supplier_id = spec.get("supplier_id")
        if supplier_id is not None:
            stmt = stmt.where(PurchaseOrder.supplier_id == supplier_id)
        if spec.search:
            stmt = stmt.join(Supplier, Supplier.id == PurchaseOrder.supplier_id).where(
                search_clause(spec.search, PurchaseOrder.code, Supplier.name, Supplier.tax_id)
            )
        return await self.list_page(stmt, spec)

    async def get_by_code(self, code: str, scope: TenantScope) -> Optional[PurchaseOrder]:
        stmt = scope.filter(select(PurchaseOrder).where(PurchaseOrder.code == code), PurchaseOrder)
        return await self.scalar_one_or_none(stmt)

    async def list_items(self, order_ids: List[int], scope: TenantScope) -> List[PurchaseOrderItem]:
        if not order_ids:
            return []
        stmt = (
            scope.filter(select(PurchaseOrderItem), PurchaseOrderItem)
            .where(PurchaseOrderItem.purchase_order_id.in_(order_ids))
            .order_by(PurchaseOrderItem.id)
            .execution_options(populate_existing=True)
        )
        return list(await self.scalars(stmt))
