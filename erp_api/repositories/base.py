from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional, Tuple

from sqlalchemy import Executable, Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from erp_api.core.query import QuerySpec
from erp_api.core.scope import TenantScope


LIKE_ESCAPE = "\\"


def contains_pattern(search: str) -> str:
    """LIKE pattern matching search as a literal substring."""
    escaped = search.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
    for wildcard in ("%", "_"):
        escaped = escaped.replace(wildcard, LIKE_ESCAPE + wildcard)
    return f"%{escaped}%"


def search_clause(search: str, *columns: Any):
    """OR of case-insensitive substring matches of search over the given columns."""
    pattern = contains_pattern(search)
    return or_(*(column.ilike(pattern, escape=LIKE_ESCAPE) for column in columns))


class BaseRepository:
    """
    Base class for repositories providing common helpers.

    Note:
      Repositories never commit. Transaction boundaries belong to the caller,
      normally through erp_api.db.session.atomic.
    """

    model: Any = None
    # Wire sort name -> mapped column. Subclasses declare their whitelist here.
    SORT_COLUMNS: Mapping[str, Any] = {}
    DEFAULT_SORT: Optional[str] = None

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def execute(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        """Execute a SQLAlchemy statement."""
        return await self.session.execute(statement, params or {})

    async def scalars(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        """Execute and return scalars."""
        result = await self.execute(statement, params)
        return result.scalars()

    async def scalar_one_or_none(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        """Execute and return a single scalar or None."""
        result = await self.execute(statement, params)
        return result.scalar_one_or_none()

    async def flush(self) -> None:
        """Flush pending changes inside the current transaction."""
        await self.session.flush()

    async def add_all(self, entities: Iterable[Any]) -> None:
        """Add multiple entities to session."""
        self.session.add_all(list(entities))

    async def add(self, entity: Any) -> None:
        """Add a single entity to session."""
        self.session.add(entity)

    async def count(self, statement: Select) -> int:
        """Count rows matched by a SELECT (ignoring its ordering and paging)."""
        stmt = select(func.count()).select_from(statement.order_by(None).subquery())
        result = await self.execute(stmt)
        return int(result.scalar_one())

    def order_by(self, statement: Select, spec: QuerySpec) -> Select:
        """Apply the whitelisted sort of a QuerySpec, falling back to DEFAULT_SORT."""
        key = spec.sort_by or self.DEFAULT_SORT
        column = self.SORT_COLUMNS.get(key) if key else None
        if column is None:
            return statement
        ordered = column.asc() if spec.sort_order == "asc" else column.desc()
        # id as tie-breaker keeps pages stable
        return statement.order_by(ordered, self.model.id)

    async def list_page(self, statement: Select, spec: QuerySpec) -> Tuple[List[Any], int]:
        """
        Run a list query for one page.

        Returns:
            (rows for the requested page, total rows matching the filters)
        """
        total = await self.count(statement)
        stmt = self.order_by(statement, spec).offset(spec.offset).limit(spec.limit)
        rows = list(await self.scalars(stmt))
        return rows, total


class TenantRepository(BaseRepository):
    """
    Repository for tenant-owned rows.

    Every query goes through TenantScope.filter and every insert through
    TenantScope.stamp, so rows of another tenant are never visible.
    """

    async def get_owned(self, row_id: int, scope: TenantScope) -> Optional[Any]:
        stmt = scope.filter(select(self.model).where(self.model.id == row_id), self.model)
        return await self.scalar_one_or_none(stmt)

    async def exists_owned(self, row_id: int, scope: TenantScope) -> bool:
        stmt = scope.filter(select(self.model.id).where(self.model.id == row_id), self.model)
        return (await self.scalar_one_or_none(stmt)) is not None

    async def create_owned(self, values: Mapping[str, Any], scope: TenantScope) -> Any:
        row = self.model(**scope.stamp(values))
        await self.add(row)
        await self.flush()
        await self.session.refresh(row)
        return row

    async def update_owned(self, row: Any, values: Mapping[str, Any]) -> Any:
        """Apply changes to an already scoped row; tenant_id is never writable."""
        for key, value in values.items():
            if key != "tenant_id":
                setattr(row, key, value)
        await self.flush()
        await self.session.refresh(row)
        return row
