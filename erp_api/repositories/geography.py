from __future__ import annotations

from typing import List, Optional, Tuple

from sqlalchemy import select

from erp_api.core.query import QuerySpec
from erp_api.db.models.geography import City, Country, State
from .base import BaseRepository, search_clause


# Reference data is shared by all tenants: no TenantScope filtering here.


class CountryRepository(BaseRepository):
    """Countries reference data."""

    model = Country
    SORT_COLUMNS = {"name": Country.name, "isoCode": Country.iso_code, "id": Country.id}
    DEFAULT_SORT = "name"

    async def list_countries(self, spec: QuerySpec) -> Tuple[List[Country], int]:
        stmt = select(Country)
        if spec.search:
            stmt = stmt.where(search_clause(spec.search, Country.name, Country.iso_code))
        return await self.list_page(stmt, spec)

    async def get_country(self, country_id: int) -> Optional[Country]:
        return await self.scalar_one_or_none(select(Country).where(Country.id == country_id))


class StateRepository(BaseRepository):
    """States reference data, always listed within one country."""

    model = State
    SORT_COLUMNS = {
        "name": State.name,
        "uf": State.uf,
        "ibgeCode": State.ibge_code,
        "id": State.id,
    }
    DEFAULT_SORT = "name"

    async def list_states(self, spec: QuerySpec) -> Tuple[List[State], int]:
        stmt = select(State).where(State.country_id == spec.get("country_id"))
        if spec.search:
            stmt = stmt.where(search_clause(spec.search, State.name, State.uf))
        return await self.list_page(stmt, spec)

    async def get_state(self, state_id: int) -> Optional[State]:
        return await self.scalar_one_or_none(select(State).where(State.id == state_id))


class CityRepository(BaseRepository):
    """Cities reference data, listed within one state."""

    model = City
    SORT_COLUMNS = {"name": City.name, "ibgeCode": City.ibge_code, "id": City.id}
    DEFAULT_SORT = "name"

    async def list_cities(self, spec: QuerySpec) -> Tuple[List[City], int]:
        stmt = select(City).where(City.state_id == spec.get("state_id"))
        country_id = spec.get("country_id")
        if country_id is not None:
            stmt = stmt.join(State, State.id == City.state_id).where(State.country_id == country_id)
        if spec.search:
            stmt = stmt.where(search_clause(spec.search, City.name))
        return await self.list_page(stmt, spec)

    async def get_city(self, city_id: int) -> Optional[City]:
        return await self.scalar_one_or_none(select(City).where(City.id == city_id))
