from __future__ import annotations

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from erp_api.core.deps import require_tenant_scope
from erp_api.core.query import IntFilter, ListQueryConfig, QuerySpec, QuerySpecValidator
from erp_api.core.scope import TenantScope
from erp_api.db.base import MAX_ROW_ID
from erp_api.db.session import get_async_session
from erp_api.repositories.production import RecipeItemRepository, RecipeRepository
from erp_api.schemas.common import ApiResponse, Page, ok
from erp_api.schemas.production import RecipeCreate, RecipeItemRead, RecipeRead, RecipeUpdate
from erp_api.services.production import RecipeService

router = APIRouter(tags=["Production"])

RECIPE_QUERY = QuerySpecValidator(
    ListQueryConfig(
        allowed_sort_fields=tuple(RecipeRepository.SORT_COLUMNS),
        require_positive=False,
        filters=(IntFilter("productId", key="product_id", message="productId must be a number"),),
    )
)

RECIPE_ITEM_QUERY = QuerySpecValidator(
    ListQueryConfig(
        allowed_sort_fields=tuple(RecipeItemRepository.SORT_COLUMNS),
        allow_search=False,
        require_positive=False,
        filters=(IntFilter("recipeId", key="recipe_id", message="recipeId must be a number"),),
    )
)


def get_recipe_service(session: AsyncSession = Depends(get_async_session)) -> RecipeService:
    return RecipeService(session)


# PUBLIC_INTERFACE
@router.get(
    "/recipes",
    response_model=ApiResponse[Page[RecipeRead]],
    summary="List recipes",
    description="Paginated recipes with their inputs. Search matches description or notes.",
)
async def list_recipes(
    spec: QuerySpec = Depends(RECIPE_QUERY),
    scope: TenantScope = Depends(require_tenant_scope),
    service: RecipeService = Depends(get_recipe_service),
) -> ApiResponse[Page[RecipeRead]]:
    return ok(await service.list_recipes(spec, scope))


# PUBLIC_INTERFACE
@router.get("/recipes/{recipe_id}", response_model=ApiResponse[RecipeRead], summary="Get recipe")
async def get_recipe(
    recipe_id: int = Path(..., ge=1, le=MAX_ROW_ID, description="Recipe id"),
    scope: TenantScope = Depends(require_tenant_scope),
    service: RecipeService = Depends(get_recipe_service),
) -> ApiResponse[RecipeRead]:
    return ok(await service.get_recipe(recipe_id, scope))


# PUBLIC_INTERFACE
@router.post("/recipes", response_model=ApiResponse[RecipeRead], summary="Create recipe")
async def create_recipe(
    payload: RecipeCreate,
    scope: TenantScope = Depends(require_tenant_scope),
    service: RecipeService = Depends(get_recipe_service),
) -> ApiResponse[RecipeRead]:
    return ok(await service.create_recipe(payload, scope), "Recipe created")


# PUBLIC_INTERFACE
@router.put(
    "/recipes/{recipe_id}",
    response_model=ApiResponse[RecipeRead],
    summary="Update recipe",
    description="Partially update the recipe and apply 'items' as {create, update, delete} input mutations.",
)
async def update_recipe(
    payload: RecipeUpdate,
    recipe_id: int = Path(..., ge=1, le=MAX_ROW_ID, description="Recipe id"),
    scope: TenantScope = Depends(require_tenant_scope),
    service: RecipeService = Depends(get_recipe_service),
) -> ApiResponse[RecipeRead]:
    return ok(await service.update_recipe(recipe_id, payload, scope), "Recipe updated")


# PUBLIC_INTERFACE
@router.get(
    "/recipe-items",
    response_model=ApiResponse[Page[RecipeItemRead]],
    summary="List recipe inputs",
    description="Paginated recipe inputs, optionally for one recipe. Search is not supported.",
)
async def list_recipe_items(
    spec: QuerySpec = Depends(RECIPE_ITEM_QUERY),
    scope: TenantScope = Depends(require_tenant_scope),
    service: RecipeService = Depends(get_recipe_service),
) -> ApiResponse[Page[RecipeItemRead]]:
    return ok(await service.list_recipe_items(spec, scope))
