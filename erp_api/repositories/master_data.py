from __future__ import annotations

from typing import List, Optional, Tuple

from sqlalchemy import select

from erp_api.core.query import QuerySpec
from erp_api.core.scope import TenantScope
from erp_api.db.models.master_data import Product, Supplier
from .base import TenantRepository, search_clause


class SupplierRepository(TenantRepository):
    """Repository for suppliers."""

    model = Supplier
    SORT_COLUMNS = {
        "name": Supplier.name,
        "taxId": Supplier.tax_id,
        "createdAt": Supplier.created_at,
        "updatedAt": Supplier.updated_at,
    }
    DEFAULT_SORT = "createdAt"

    async def list_suppliers(self, spec: QuerySpec, scope: TenantScope) -> Tuple[List[Supplier], int]:
        stmt = scope.filter(select(Supplier), Supplier)
        if not spec.get("include_inactive"):
            stmt = stmt.where(Supplier.is_active.is_(True))
        if spec.search:
            stmt = stmt.where(search_clause(spec.search, Supplier.name, Supplier.tax_id, Supplier.email))
        return await self.list_page(stmt, spec)


class ProductRepository(TenantRepository):
    """Repository for products."""

    model = Product
    SORT_COLUMNS = {
        "name": Product.name,
        "sku": Product.sku,
        "saleValue": Product.sale_value,
        "createdAt": Product.created_at,
        "updatedAt": Product.updated_at,
    }
    DEFAULT_SORT = "createdAt"

    async def list_products(self, spec: QuerySpec, scope: TenantScope) -> Tuple[List[Product], int]:
        stmt = scope.filter(select(Product), Product)
        if not spec.get("include_inactive"):
            stmt = stmt.where(Product.is_active.is_(True))
        if spec.search:
            stmt = stmt.where(search_clause(spec.search, Product.sku, Product.name))
        return await self.list_page(stmt, spec)

    async def get_by_sku(self, sku: str, scope: TenantScope) -> Optional[Product]:
        stmt = scope.filter(select(Product).where(Product.sku == sku), Product)
        return await self.scalar_one_or_none(stmt)
