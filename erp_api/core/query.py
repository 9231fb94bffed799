"""
Generic list-query validation shared by every list endpoint.

A resource declares one ListQueryConfig (sort whitelist, search policy,
defaults and filters); QuerySpecValidator turns raw query parameters into a
canonical QuerySpec or raises ValidationError. The validator never touches
the data store.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Mapping, Optional, Sequence, Tuple

from fastapi import Request

from erp_api.core.errors import ValidationError
from erp_api.db.base import MAX_ROW_ID

SortOrder = Literal["asc", "desc"]

# OFFSET is a signed 64-bit value on every supported backend.
MAX_OFFSET = 2**63 - 1

QUERY_ERROR = {
    "PAGINATION": "page and limit must be numbers",
    "PAGINATION_POSITIVE": "page and limit must be numbers greater than zero",
    "SEARCH": "search filter is not allowed for this resource",
    "SORT_BY": "Invalid sortBy field",
    "SORT_ORDER": "sortOrder must be 'asc' or 'desc'",
}


def _parse_int(raw: Any) -> Optional[int]:
    """Parse an integral number from a query value; None when not a finite integer."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    try:
        value = float(str(raw).strip())
    except ValueError:
        return None
    if not math.isfinite(value) or not value.is_integer():
        return None
    return int(value)


class QueryFilter:
    """Base class for resource-specific filters."""

    def __init__(self, param: str, *, key: Optional[str] = None, message: str) -> None:
        self.param = param
        self.key = key or param
        self.message = message

    def parse(self, raw: Any) -> Any:  # pragma: no cover - interface
        raise NotImplementedError

    def fail(self) -> ValidationError:
        return ValidationError(self.message, context=f"QUERY:{self.param}")


class EnumFilter(QueryFilter):
    """Filter whose value must belong to a closed set (e.g. order status)."""

    def __init__(self, param: str, values: Sequence[str], *, key: Optional[str] = None, message: str) -> None:
        super().__init__(param, key=key, message=message)
        self.values = tuple(values)

    def parse(self, raw: Any) -> Optional[str]:
        if raw is None or raw == "":
            return None
        if str(raw) not in self.values:
            raise self.fail()
        return str(raw)


class IntFilter(QueryFilter):
    """Numeric foreign-key filter such as countryId; optionally mandatory.

    Values outside the id column range are rejected instead of reaching the driver.
    """

    def __init__(self, param: str, *, required: bool = False, key: Optional[str] = None, message: str) -> None:
        super().__init__(param, key=key, message=message)
        self.required = required

    def parse(self, raw: Any) -> Optional[int]:
        if raw is None:
            if self.required:
                raise self.fail()
            return None
        value = _parse_int(raw)
        if value is None or abs(value) > MAX_ROW_ID:
            raise self.fail()
        return value


class BoolFilter(QueryFilter):
    """Flag accepting exactly 'true' or 'false'; absent means the default."""

    def __init__(self, param: str, *, default: bool = False, key: Optional[str] = None, message: str) -> None:
        super().__init__(param, key=key, message=message)
        self.default = default

    def parse(self, raw: Any) -> bool:
        if raw is None:
            return self.default
        if isinstance(raw, bool):
            return raw
        if raw == "true":
            return True
        if raw == "false":
            return False
        raise self.fail()


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class ListQueryConfig:
    """Per-resource list query policy."""
    allowed_sort_fields: Tuple[str, ...] = ()
    allow_search: bool = True
    default_sort_order: SortOrder = "desc"
    default_limit: int = 10
    max_limit: int = 1000
    require_positive: bool = True
    filters: Tuple[QueryFilter, ...] = ()


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class QuerySpec:
    """Canonical, validated list request."""
    page: int = 1
    limit: int = 10
    search: Optional[str] = None
    sort_by: Optional[str] = None
    sort_order: SortOrder = "desc"
    filters: Dict[str, Any] = field(default_factory=dict)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def get(self, key: str, default: Any = None) -> Any:
        """Return a normalized resource filter value."""
        return self.filters.get(key, default)


# PUBLIC_INTERFACE
class QuerySpecValidator:
    """
    Validate list query parameters against a ListQueryConfig.

    Instances are FastAPI dependencies:

        PURCHASE_ORDER_QUERY = QuerySpecValidator(ListQueryConfig(...))

        @router.get("")
        async def list_orders(spec: QuerySpec = Depends(PURCHASE_ORDER_QUERY)): ...
    """

    def __init__(self, config: ListQueryConfig) -> None:
        self.config = config

    async def __call__(self, request: Request) -> QuerySpec:
        return self.validate(request.query_params)

    def validate(self, params: Mapping[str, Any]) -> QuerySpec:
        """
        Parse raw query parameters into a QuerySpec.

        Raises:
            ValidationError: with a message naming the offending parameter group.
        """
        cfg = self.config
        page, limit = self._pagination(params)

        search = params.get("search")
        if search is not None:
            if not cfg.allow_search:
                raise ValidationError(QUERY_ERROR["SEARCH"], context="QUERY:search")
            search = str(search).strip() or None

        sort_by = params.get("sortBy") or None
        if sort_by is not None and str(sort_by) not in cfg.allowed_sort_fields:
            raise ValidationError(QUERY_ERROR["SORT_BY"], context="QUERY:sortBy")

        sort_order = params.get("sortOrder") or None
        if sort_order is None:
            sort_order = cfg.default_sort_order
        elif sort_order not in ("asc", "desc"):
            raise ValidationError(QUERY_ERROR["SORT_ORDER"], context="QUERY:sortOrder")

        filters = {flt.key: flt.parse(params.get(flt.param)) for flt in cfg.filters}

        return QuerySpec(
            page=page,
            limit=limit,
            search=search,
            sort_by=str(sort_by) if sort_by is not None else None,
            sort_order=sort_order,
            filters=filters,
        )

    def _pagination(self, params: Mapping[str, Any]) -> Tuple[int, int]:
        cfg = self.config
        page = _parse_int(params.get("page", 1))
        limit = _parse_int(params.get("limit", cfg.default_limit))

        message = QUERY_ERROR["PAGINATION_POSITIVE"] if cfg.require_positive else QUERY_ERROR["PAGINATION"]

        if cfg.require_positive:
            if page is None or limit is None or page <= 0 or limit <= 0:
                raise ValidationError(message, context="QUERY:pagination")
        elif page is None or limit is None:
            raise ValidationError(message, context="QUERY:pagination")

        page, limit = max(page, 1), min(max(limit, 1), cfg.max_limit)
        if (page - 1) * limit > MAX_OFFSET:
            raise ValidationError(message, context="QUERY:pagination")
        return page, limit
