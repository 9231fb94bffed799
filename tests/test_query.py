import pytest

from erp_api.core.errors import ValidationError
from erp_api.core.query import (
    QUERY_ERROR,
    BoolFilter,
    EnumFilter,
    IntFilter,
    ListQueryConfig,
    QuerySpecValidator,
)

ORDERS = QuerySpecValidator(
    ListQueryConfig(
        allowed_sort_fields=("code", "status", "createdAt"),
        require_positive=False,
        filters=(
            EnumFilter("status", ["PENDING", "FINISHED"], message="status must be a valid OrderStatus"),
            IntFilter("supplierId", key="supplier_id", message="supplierId must be a number"),
            BoolFilter("includeInactive", key="include_inactive", message="includeInactive must be 'true' or 'false'"),
        ),
    )
)

STATES = QuerySpecValidator(
    ListQueryConfig(
        allowed_sort_fields=("name", "uf"),
        default_sort_order="asc",
        default_limit=100,
        filters=(IntFilter("countryId", key="country_id", required=True, message="countryId is required"),),
    )
)

NO_SEARCH = QuerySpecValidator(ListQueryConfig(allow_search=False))


def _message(validator, params):
    with pytest.raises(ValidationError) as info:
        validator.validate(params)
    return info.value.message


def test_defaults():
    spec = ORDERS.validate({})
    assert (spec.page, spec.limit, spec.offset) == (1, 10, 0)
    assert spec.search is None and spec.sort_by is None
    assert spec.sort_order == "desc"
    assert spec.get("include_inactive") is False
    assert spec.get("status") is None


def test_resource_defaults_apply():
    spec = STATES.validate({"countryId": "3"})
    assert spec.limit == 100
    assert spec.sort_order == "asc"
    assert spec.get("country_id") == 3


def test_offset_from_page_and_limit():
    spec = ORDERS.validate({"page": "3", "limit": "25"})
    assert spec.offset == 50


def test_non_numeric_pagination_rejected():
    assert _message(ORDERS, {"page": "abc"}) == QUERY_ERROR["PAGINATION"]
    assert _message(ORDERS, {"limit": ""}) == QUERY_ERROR["PAGINATION"]


def test_zero_page_rejected_when_positivity_enforced():
    message = _message(STATES, {"page": "0", "limit": "10", "countryId": "1"})
    assert message == "page and limit must be numbers greater than zero"


def test_non_positive_values_clamped_otherwise():
    spec = ORDERS.validate({"page": "0", "limit": "-5"})
    assert (spec.page, spec.limit) == (1, 1)


def test_blank_search_is_no_search():
    assert ORDERS.validate({"search": "   "}).search is None
    assert ORDERS.validate({"search": "  po-1 "}).search == "po-1"


def test_search_rejected_when_not_allowed():
    assert _message(NO_SEARCH, {"search": "x"}) == "search filter is not allowed for this resource"
    assert _message(NO_SEARCH, {"search": ""}) == "search filter is not allowed for this resource"


@pytest.mark.parametrize(
    "params",
    [
        {"sortBy": "password"},
        {"sortBy": "password", "page": "2", "sortOrder": "asc", "status": "PENDING"},
    ],
)
def test_sort_field_outside_whitelist_rejected(params):
    assert _message(ORDERS, params) == "Invalid sortBy field"


def test_sort_order_must_be_exact():
    assert _message(ORDERS, {"sortOrder": "ASC"}) == "sortOrder must be 'asc' or 'desc'"
    assert ORDERS.validate({"sortOrder": "asc", "sortBy": "code"}).sort_order == "asc"


def test_enum_filter():
    assert ORDERS.validate({"status": "FINISHED"}).get("status") == "FINISHED"
    assert _message(ORDERS, {"status": "LOST"}) == "status must be a valid OrderStatus"


def test_int_filters():
    assert ORDERS.validate({"supplierId": "7"}).get("supplier_id") == 7
    assert _message(ORDERS, {"supplierId": "seven"}) == "supplierId must be a number"
    assert _message(STATES, {}) == "countryId is required"


def test_bool_filter_is_strict():
    assert ORDERS.validate({"includeInactive": "true"}).get("include_inactive") is True
    assert ORDERS.validate({"includeInactive": "false"}).get("include_inactive") is False
    assert _message(ORDERS, {"includeInactive": "yes"}) == "includeInactive must be 'true' or 'false'"


def test_pagination_is_checked_first():
    assert _message(ORDERS, {"page": "x", "sortBy": "nope"}) == QUERY_ERROR["PAGINATION"]


def test_limit_capped_at_max_limit():
    assert ORDERS.validate({"limit": str(10**20)}).limit == 1000
    capped = QuerySpecValidator(ListQueryConfig(max_limit=25))
    assert capped.validate({"limit": "500"}).limit == 25


def test_offset_overflow_rejected():
    assert _message(ORDERS, {"page": str(10**20), "limit": "10"}) == QUERY_ERROR["PAGINATION"]
    message = _message(STATES, {"page": str(10**20), "countryId": "1"})
    assert message == QUERY_ERROR["PAGINATION_POSITIVE"]


def test_last_representable_page_accepted():
    spec = ORDERS.validate({"page": "2", "limit": "1000"})
    assert spec.offset == 1000


def test_int_filter_outside_id_range_rejected():
    assert _message(ORDERS, {"supplierId": str(2**31)}) == "supplierId must be a number"
    assert ORDERS.validate({"supplierId": str(2**31 - 1)}).get("supplier_id") == 2**31 - 1
