from __future__ import annotations

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from erp_api.core.deps import require_tenant_scope
from erp_api.core.query import EnumFilter, IntFilter, ListQueryConfig, QuerySpec, QuerySpecValidator
from erp_api.core.scope import TenantScope
from erp_api.db.base import MAX_ROW_ID
from erp_api.db.session import get_async_session
from erp_api.repositories.procurement import PurchaseOrderRepository
from erp_api.schemas.common import ApiResponse, Page, ok
from erp_api.schemas.procurement import (
    OrderStatus,
    PurchaseOrderCreate,
    PurchaseOrderRead,
    PurchaseOrderUpdate,
)
from erp_api.services.procurement import PurchaseOrderService

router = APIRouter(prefix="/purchase-orders", tags=["Procurement"])

PURCHASE_ORDER_QUERY = QuerySpecValidator(
    ListQueryConfig(
        allowed_sort_fields=tuple(PurchaseOrderRepository.SORT_COLUMNS),
        require_positive=False,
        filters=(
            EnumFilter("status", [s.value for s in OrderStatus], message="status must be a valid OrderStatus"),
            IntFilter("supplierId", key="supplier_id", message="supplierId must be a number"),
        ),
    )
)


def get_purchase_order_service(session: AsyncSession = Depends(get_async_session)) -> PurchaseOrderService:
    return PurchaseOrderService(session)


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=ApiResponse[Page[PurchaseOrderRead]],
    summary="List purchase orders",
    description="Paginated purchase orders with their lines. Search matches code or supplier name/tax id.",
)
async def list_purchase_orders(
    spec: QuerySpec = Depends(PURCHASE_ORDER_QUERY),
    scope: TenantScope = Depends(require_tenant_scope),
    service: PurchaseOrderService = Depends(get_purchase_order_service),
) -> ApiResponse[Page[PurchaseOrderRead]]:
    return ok(await service.list_orders(spec, scope))


# PUBLIC_INTERFACE
@router.get("/{order_id}", response_model=ApiResponse[PurchaseOrderRead], summary="Get purchase order")
async def get_purchase_order(
    order_id: int = Path(..., ge=1, le=MAX_ROW_ID, description="Purchase order id"),
    scope: TenantScope = Depends(require_tenant_scope),
    service: PurchaseOrderService = Depends(get_purchase_order_service),
) -> ApiResponse[PurchaseOrderRead]:
    return ok(await service.get_order(order_id, scope))


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=ApiResponse[PurchaseOrderRead],
    summary="Create purchase order",
    description="Create the header and, when 'items' is given, its lines in one transaction.",
)
async def create_purchase_order(
    payload: PurchaseOrderCreate,
    scope: TenantScope = Depends(require_tenant_scope),
    service: PurchaseOrderService = Depends(get_purchase_order_service),
) -> ApiResponse[PurchaseOrderRead]:
    return ok(await service.create_order(payload, scope), "Purchase order created")


# PUBLIC_INTERFACE
@router.put(
    "/{order_id}",
    response_model=ApiResponse[PurchaseOrderRead],
    summary="Update purchase order",
    description=(
        "Partially update the header and apply 'items' as {create, update, delete} "
        "line mutations. Everything commits or nothing does."
    ),
)
async def update_purchase_order(
    payload: PurchaseOrderUpdate,
    order_id: int = Path(..., ge=1, le=MAX_ROW_ID, description="Purchase order id"),
    scope: TenantScope = Depends(require_tenant_scope),
    service: PurchaseOrderService = Depends(get_purchase_order_service),
) -> ApiResponse[PurchaseOrderRead]:
    return ok(await service.update_order(order_id, payload, scope), "Purchase order updated")
