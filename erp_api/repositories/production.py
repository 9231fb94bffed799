from __future__ import annotations

from typing import List, Tuple

from sqlalchemy import select

from erp_api.core.query import QuerySpec
from erp_api.core.scope import TenantScope
from erp_api.db.models.production import Recipe, RecipeItem
from .base import TenantRepository, search_clause


class RecipeRepository(TenantRepository):
    """Repository for recipes and their inputs."""

    model = Recipe
    SORT_COLUMNS = {
        "description": Recipe.description,
        "notes": Recipe.notes,
        "createdAt": Recipe.created_at,
        "updatedAt": Recipe.updated_at,
    }
    DEFAULT_SORT = "createdAt"

    async def list_recipes(self, spec: QuerySpec, scope: TenantScope) -> Tuple[List[Recipe], int]:
        stmt = scope.filter(select(Recipe), Recipe)
        product_id = spec.get("product_id")
        if product_id is not None:
            stmt = stmt.where(Recipe.product_id == product_id)
        if spec.search:
            stmt = stmt.where(search_clause(spec.search, Recipe.description, Recipe.notes))
        return await self.list_page(stmt, spec)

    async def list_items(self, recipe_ids: List[int], scope: TenantScope) -> List[RecipeItem]:
        if not recipe_ids:
            return []
        stmt = (
            scope.filter(select(RecipeItem), RecipeItem)
            .where(RecipeItem.recipe_id.in_(recipe_ids))
            .order_by(RecipeItem.id)
            .execution_options(populate_existing=True)
        )
        return list(await self.scalars(stmt))


class RecipeItemRepository(TenantRepository):
    """Repository for recipe inputs listed on their own."""

    model = RecipeItem
    SORT_COLUMNS = {
        "quantity": RecipeItem.quantity,
        "createdAt": RecipeItem.created_at,
        "updatedAt": RecipeItem.updated_at,
    }
    DEFAULT_SORT = "createdAt"

    async def list_recipe_items(self, spec: QuerySpec, scope: TenantScope) -> Tuple[List[RecipeItem], int]:
        stmt = scope.filter(select(RecipeItem), RecipeItem)
        recipe_id = spec.get("recipe_id")
        if recipe_id is not None:
            stmt = stmt.where(RecipeItem.recipe_id == recipe_id)
        return await self.list_page(stmt, spec)
