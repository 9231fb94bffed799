from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, List

from sqlalchemy.ext.asyncio import AsyncSession

from erp_api.core.errors import NotFoundError
from erp_api.core.query import QuerySpec
from erp_api.core.scope import TenantScope
from erp_api.db.models.master_data import Product
from erp_api.db.models.production import Recipe, RecipeItem
from erp_api.db.session import atomic
from erp_api.repositories.master_data import ProductRepository
from erp_api.repositories.production import RecipeItemRepository, RecipeRepository
from erp_api.schemas.common import Page, build_page
from erp_api.schemas.production import (
    RecipeCreate,
    RecipeItemRead,
    RecipeItems,
    RecipeRead,
    RecipeUpdate,
)
from erp_api.services.base import BaseService
from erp_api.services.nested import ChildCollection, NestedCollectionReconciler

logger = logging.getLogger(__name__)

RECIPE_ITEMS = ChildCollection(
    model=RecipeItem,
    parent_key="recipe_id",
    payload_type=RecipeItems,
    references={"product_id": Product},
)


class RecipeService(BaseService):
    """Recipes (bills of materials) and their input lines."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.recipes = RecipeRepository(session)
        self.recipe_items = RecipeItemRepository(session)
        self.products = ProductRepository(session)
        self.items = NestedCollectionReconciler(session, RECIPE_ITEMS)

    # PUBLIC_INTERFACE
    async def list_recipes(self, spec: QuerySpec, scope: TenantScope) -> Page[RecipeRead]:
        rows, total = await self.recipes.list_recipes(spec, scope)
        items = await self._items_by_recipe([row.id for row in rows], scope)
        return build_page(
            [self._to_read(row, items[row.id]) for row in rows],
            total=total,
            page=spec.page,
            limit=spec.limit,
        )

    # PUBLIC_INTERFACE
    async def get_recipe(self, recipe_id: int, scope: TenantScope) -> RecipeRead:
        recipe = await self.recipes.get_owned(recipe_id, scope)
        if recipe is None:
            raise NotFoundError("Recipe not found", context="RECIPE:get")
        items = await self._items_by_recipe([recipe.id], scope)
        return self._to_read(recipe, items[recipe.id])

    # PUBLIC_INTERFACE
    async def create_recipe(self, payload: RecipeCreate, scope: TenantScope) -> RecipeRead:
        async with atomic(self.session):
            await self._require_product(payload.product_id, scope)
            recipe = await self.recipes.create_owned(payload.model_dump(exclude={"items"}), scope)
            if payload.items is not None:
                await self.items.reconcile(recipe.id, payload.items, scope)
        logger.info("Created recipe id=%s for product_id=%s", recipe.id, recipe.product_id)
        return await self.get_recipe(recipe.id, scope)

    # PUBLIC_INTERFACE
    async def update_recipe(self, recipe_id: int, payload: RecipeUpdate, scope: TenantScope) -> RecipeRead:
        values = payload.model_dump(exclude={"items"}, exclude_unset=True, exclude_none=True)
        async with atomic(self.session):
            recipe = await self.recipes.get_owned(recipe_id, scope)
            if recipe is None:
                raise NotFoundError("Recipe not found", context="RECIPE:update")
            if "product_id" in values:
                await self._require_product(values["product_id"], scope)
            if values:
                await self.recipes.update_owned(recipe, values)
            if payload.items is not None:
                await self.items.reconcile(recipe.id, payload.items, scope)
        return await self.get_recipe(recipe_id, scope)

    # PUBLIC_INTERFACE
    async def list_recipe_items(self, spec: QuerySpec, scope: TenantScope) -> Page[RecipeItemRead]:
        rows, total = await self.recipe_items.list_recipe_items(spec, scope)
        return build_page(
            [RecipeItemRead.model_validate(row) for row in rows],
            total=total,
            page=spec.page,
            limit=spec.limit,
        )

    async def _require_product(self, product_id: int, scope: TenantScope) -> None:
        if not await self.products.exists_owned(product_id, scope):
            raise NotFoundError("Product not found", context="FK:NOT_FOUND")

    async def _items_by_recipe(self, recipe_ids: List[int], scope: TenantScope) -> Dict[int, List[RecipeItem]]:
        grouped: Dict[int, List[RecipeItem]] = defaultdict(list)
        for item in await self.recipes.list_items(recipe_ids, scope):
            grouped[item.recipe_id].append(item)
        return grouped

    @staticmethod
    def _to_read(recipe: Recipe, items: List[RecipeItem]) -> RecipeRead:
        return RecipeRead.model_validate(recipe).model_copy(
            update={"items": [RecipeItemRead.model_validate(item) for item in items]}
        )
