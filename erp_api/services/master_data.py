from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from erp_api.core.errors import ConflictError, NotFoundError
from erp_api.core.query import QuerySpec
from erp_api.core.scope import TenantScope
from erp_api.db.session import atomic
from erp_api.repositories.master_data import ProductRepository, SupplierRepository
from erp_api.schemas.common import Page, build_page
from erp_api.schemas.master_data import (
    ProductCreate,
    ProductRead,
    ProductUpdate,
    SupplierCreate,
    SupplierRead,
    SupplierUpdate,
)
from erp_api.services.base import BaseService


class MasterDataService(BaseService):
    """Suppliers and products of a tenant."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.suppliers = SupplierRepository(session)
        self.products = ProductRepository(session)

    # Suppliers
    async def list_suppliers(self, spec: QuerySpec, scope: TenantScope) -> Page[SupplierRead]:
        rows, total = await self.suppliers.list_suppliers(spec, scope)
        return build_page(
            [SupplierRead.model_validate(row) for row in rows], total=total, page=spec.page, limit=spec.limit
        )

    async def get_supplier(self, supplier_id: int, scope: TenantScope) -> SupplierRead:
        row = await self.suppliers.get_owned(supplier_id, scope)
        if row is None:
            raise NotFoundError("Supplier not found", context="SUPPLIER:get")
        return SupplierRead.model_validate(row)

    async def create_supplier(self, payload: SupplierCreate, scope: TenantScope) -> SupplierRead:
        async with atomic(self.session):
            row = await self.suppliers.create_owned(payload.model_dump(), scope)
        return SupplierRead.model_validate(row)

    async def update_supplier(self, supplier_id: int, payload: SupplierUpdate, scope: TenantScope) -> SupplierRead:
        async with atomic(self.session):
            row = await self.suppliers.get_owned(supplier_id, scope)
            if row is None:
                raise NotFoundError("Supplier not found", context="SUPPLIER:update")
            row = await self.suppliers.update_owned(row, payload.model_dump(exclude_unset=True, exclude_none=True))
        return SupplierRead.model_validate(row)

    # Products
    async def list_products(self, spec: QuerySpec, scope: TenantScope) -> Page[ProductRead]:
        rows, total = await self.products.list_products(spec, scope)
        return build_page(
            [ProductRead.model_validate(row) for row in rows], total=total, page=spec.page, limit=spec.limit
        )

    async def get_product(self, product_id: int, scope: TenantScope) -> ProductRead:
        row = await self.products.get_owned(product_id, scope)
        if row is None:
            raise NotFoundError("Product not found", context="PRODUCT:get")
        return ProductRead.model_validate(row)

    async def create_product(self, payload: ProductCreate, scope: TenantScope) -> ProductRead:
        async with atomic(self.session):
            if await self.products.get_by_sku(payload.sku, scope) is not None:
                raise ConflictError("Product SKU already exists", context="PRODUCT:create")
            row = await self.products.create_owned(payload.model_dump(), scope)
        return ProductRead.model_validate(row)

    async def update_product(self, product_id: int, payload: ProductUpdate, scope: TenantScope) -> ProductRead:
        values = payload.model_dump(exclude_unset=True, exclude_none=True)
        async with atomic(self.session):
            row = await self.products.get_owned(product_id, scope)
            if row is None:
                raise NotFoundError("Product not found", context="PRODUCT:update")
            if "sku" in values and values["sku"] != row.sku:
                if await self.products.get_by_sku(values["sku"], scope) is not None:
                    raise ConflictError("Product SKU already exists", context="PRODUCT:update")
            row = await self.products.update_owned(row, values)
        return ProductRead.model_validate(row)
