from __future__ import annotations

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from erp_api.core.deps import optional_tenant_scope
from erp_api.core.errors import NotFoundError
from erp_api.core.query import IntFilter, ListQueryConfig, QuerySpec, QuerySpecValidator
from erp_api.db.base import MAX_ROW_ID
from erp_api.db.session import get_async_session
from erp_api.repositories.geography import CityRepository, CountryRepository, StateRepository
from erp_api.schemas.common import ApiResponse, Page, build_page, ok
from erp_api.schemas.geography import CityRead, CountryRead, StateRead

# Reference data is public: the scope is resolved when present but never required.
router = APIRouter(tags=["Geography"], dependencies=[Depends(optional_tenant_scope)])

COUNTRY_QUERY = QuerySpecValidator(
    ListQueryConfig(
        allowed_sort_fields=tuple(CountryRepository.SORT_COLUMNS),
        default_sort_order="asc",
        default_limit=50,
    )
)

STATE_QUERY = QuerySpecValidator(
    ListQueryConfig(
        allowed_sort_fields=tuple(StateRepository.SORT_COLUMNS),
        default_sort_order="asc",
        default_limit=100,
        filters=(
            IntFilter("countryId", key="country_id", required=True, message="countryId is required and must be a number"),
        ),
    )
)

CITY_QUERY = QuerySpecValidator(
    ListQueryConfig(
        allowed_sort_fields=tuple(CityRepository.SORT_COLUMNS),
        default_sort_order="asc",
        default_limit=100,
        filters=(
            IntFilter("stateId", key="state_id", required=True, message="stateId is required and must be a number"),
            IntFilter("countryId", key="country_id", message="countryId must be a number"),
        ),
    )
)


# PUBLIC_INTERFACE
@router.get(
    "/countries",
    response_model=ApiResponse[Page[CountryRead]],
    summary="List countries",
    description="Paginated country list. Search matches name or ISO code.",
)
async def list_countries(
    spec: QuerySpec = Depends(COUNTRY_QUERY),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[Page[CountryRead]]:
    rows, total = await CountryRepository(session).list_countries(spec)
    page = build_page([CountryRead.model_validate(r) for r in rows], total=total, page=spec.page, limit=spec.limit)
    return ok(page)


# PUBLIC_INTERFACE
@router.get("/countries/{country_id}", response_model=ApiResponse[CountryRead], summary="Get country")
async def get_country(
    country_id: int = Path(..., ge=1, le=MAX_ROW_ID, description="Country id"),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[CountryRead]:
    row = await CountryRepository(session).get_country(country_id)
    if row is None:
        raise NotFoundError("Country not found", context="COUNTRY:get")
    return ok(CountryRead.model_validate(row))


# PUBLIC_INTERFACE
@router.get(
    "/states",
    response_model=ApiResponse[Page[StateRead]],
    summary="List states",
    description="Paginated states of one country (countryId is required).",
)
async def list_states(
    spec: QuerySpec = Depends(STATE_QUERY),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[Page[StateRead]]:
    rows, total = await StateRepository(session).list_states(spec)
    page = build_page([StateRead.model_validate(r) for r in rows], total=total, page=spec.page, limit=spec.limit)
    return ok(page)


# PUBLIC_INTERFACE
@router.get("/states/{state_id}", response_model=ApiResponse[StateRead], summary="Get state")
async def get_state(
    state_id: int = Path(..., ge=1, le=MAX_ROW_ID, description="State id"),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[StateRead]:
    row = await StateRepository(session).get_state(state_id)
    if row is None:
        raise NotFoundError("State not found", context="STATE:get")
    return ok(StateRead.model_validate(row))


# PUBLIC_INTERFACE
@router.get(
    "/cities",
    response_model=ApiResponse[Page[CityRead]],
    summary="List cities",
    description="Paginated cities of one state (stateId is required, countryId optional).",
)
async def list_cities(
    spec: QuerySpec = Depends(CITY_QUERY),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[Page[CityRead]]:
    rows, total = await CityRepository(session).list_cities(spec)
    page = build_page([CityRead.model_validate(r) for r in rows], total=total, page=spec.page, limit=spec.limit)
    return ok(page)


# PUBLIC_INTERFACE
@router.get("/cities/{city_id}", response_model=ApiResponse[CityRead], summary="Get city")
async def get_city(
    city_id: int = Path(..., ge=1, le=MAX_ROW_ID, description="City id"),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[CityRead]:
    row = await CityRepository(session).get_city(city_id)
    if row is None:
        raise NotFoundError("City not found", context="CITY:get")
    return ok(CityRead.model_validate(row))
