from __future__ import annotations

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from erp_api.core.deps import require_tenant_scope
from erp_api.core.query import BoolFilter, ListQueryConfig, QuerySpec, QuerySpecValidator
from erp_api.core.scope import TenantScope
from erp_api.db.base import MAX_ROW_ID
from erp_api.db.session import get_async_session
from erp_api.repositories.master_data import ProductRepository, SupplierRepository
from erp_api.schemas.common import ApiResponse, Page, ok
from erp_api.schemas.master_data import (
    ProductCreate,
    ProductRead,
    ProductUpdate,
    SupplierCreate,
    SupplierRead,
    SupplierUpdate,
)
from erp_api.services.master_data import MasterDataService

router = APIRouter(tags=["Master Data"])

_INCLUDE_INACTIVE = BoolFilter(
    "includeInactive", key="include_inactive", message="includeInactive must be 'true' or 'false'"
)

SUPPLIER_QUERY = QuerySpecValidator(
    ListQueryConfig(
        allowed_sort_fields=tuple(SupplierRepository.SORT_COLUMNS),
        require_positive=False,
        filters=(_INCLUDE_INACTIVE,),
    )
)

PRODUCT_QUERY = QuerySpecValidator(
    ListQueryConfig(
        allowed_sort_fields=tuple(ProductRepository.SORT_COLUMNS),
        require_positive=False,
        filters=(_INCLUDE_INACTIVE,),
    )
)


def get_master_data_service(session: AsyncSession = Depends(get_async_session)) -> MasterDataService:
    return MasterDataService(session)


# PUBLIC_INTERFACE
@router.get(
    "/suppliers",
    response_model=ApiResponse[Page[SupplierRead]],
    summary="List suppliers",
    description="Paginated suppliers of the tenant. Search matches name, tax id or email.",
)
async def list_suppliers(
    spec: QuerySpec = Depends(SUPPLIER_QUERY),
    scope: TenantScope = Depends(require_tenant_scope),
    service: MasterDataService = Depends(get_master_data_service),
) -> ApiResponse[Page[SupplierRead]]:
    return ok(await service.list_suppliers(spec, scope))


# PUBLIC_INTERFACE
@router.get("/suppliers/{supplier_id}", response_model=ApiResponse[SupplierRead], summary="Get supplier")
async def get_supplier(
    supplier_id: int = Path(..., ge=1, le=MAX_ROW_ID, description="Supplier id"),
    scope: TenantScope = Depends(require_tenant_scope),
    service: MasterDataService = Depends(get_master_data_service),
) -> ApiResponse[SupplierRead]:
    return ok(await service.get_supplier(supplier_id, scope))


# PUBLIC_INTERFACE
@router.post("/suppliers", response_model=ApiResponse[SupplierRead], summary="Create supplier")
async def create_supplier(
    payload: SupplierCreate,
    scope: TenantScope = Depends(require_tenant_scope),
    service: MasterDataService = Depends(get_master_data_service),
) -> ApiResponse[SupplierRead]:
    return ok(await service.create_supplier(payload, scope), "Supplier created")


# PUBLIC_INTERFACE
@router.put("/suppliers/{supplier_id}", response_model=ApiResponse[SupplierRead], summary="Update supplier")
async def update_supplier(
    payload: SupplierUpdate,
    supplier_id: int = Path(..., ge=1, le=MAX_ROW_ID, description="Supplier id"),
    scope: TenantScope = Depends(require_tenant_scope),
    service: MasterDataService = Depends(get_master_data_service),
) -> ApiResponse[SupplierRead]:
    return ok(await service.update_supplier(supplier_id, payload, scope), "Supplier updated")


# PUBLIC_INTERFACE
@router.get(
    "/products",
    response_model=ApiResponse[Page[ProductRead]],
    summary="List products",
    description="Paginated products of the tenant. Search matches SKU or name.",
)
async def list_products(
    spec: QuerySpec = Depends(PRODUCT_QUERY),
    scope: TenantScope = Depends(require_tenant_scope),
    service: MasterDataService = Depends(get_master_data_service),
) -> ApiResponse[Page[ProductRead]]:
    return ok(await service.list_products(spec, scope))


# PUBLIC_INTERFACE
@router.get("/products/{product_id}", response_model=ApiResponse[ProductRead], summary="Get product")
async def get_product(
    product_id: int = Path(..., ge=1, le=MAX_ROW_ID, description="Product id"),
    scope: TenantScope = Depends(require_tenant_scope),
    service: MasterDataService = Depends(get_master_data_service),
) -> ApiResponse[ProductRead]:
    return ok(await service.get_product(product_id, scope))


# PUBLIC_INTERFACE
@router.post("/products", response_model=ApiResponse[ProductRead], summary="Create product")
async def create_product(
    payload: ProductCreate,
    scope: TenantScope = Depends(require_tenant_scope),
    service: MasterDataService = Depends(get_master_data_service),
) -> ApiResponse[ProductRead]:
    return ok(await service.create_product(payload, scope), "Product created")


# PUBLIC_INTERFACE
@router.put("/products/{product_id}", response_model=ApiResponse[ProductRead], summary="Update product")
async def update_product(
    payload: ProductUpdate,
    product_id: int = Path(..., ge=1, le=MAX_ROW_ID, description="Product id"),
    scope: TenantScope = Depends(require_tenant_scope),
    service: MasterDataService = Depends(get_master_data_service),
) -> ApiResponse[ProductRead]:
    return ok(await service.update_product(product_id, payload, scope), "Product updated")
