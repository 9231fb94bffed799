from sqlalchemy import func, select

from erp_api.api.main import app
from erp_api.api.routes.procurement import get_purchase_order_service
from erp_api.db.models import ErrorLog, PurchaseOrder

from tests.conftest import PASSWORD, cookie_value, login

API = "/api/v1"


async def test_health_carries_correlation_id(client):
    response = await client.get(f"{API}/health", headers={"X-Correlation-ID": "abc-123"})
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Healthy", "data": None}
    assert response.headers["X-Correlation-ID"] == "abc-123"


async def test_session_lifecycle(client, world):
    response = await client.post(f"{API}/auth/login", json={"username": "alice", "password": PASSWORD})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Login successful"
    assert body["data"]["tenantId"] == world.tenant_a
    set_cookie = response.headers["set-cookie"]
    assert "HttpOnly" in set_cookie
    cookie = {"Cookie": f"erp-access={cookie_value(response)}"}
    client.cookies.clear()

    me = await client.get(f"{API}/auth/me", headers=cookie)
    assert me.status_code == 200
    assert me.json()["data"]["username"] == "alice"

    logout = await client.post(f"{API}/auth/logout", headers=cookie)
    assert logout.status_code == 200
    assert logout.json()["message"] == "Logout successful"
    client.cookies.clear()

    revoked = await client.get(f"{API}/auth/me", headers=cookie)
    assert revoked.status_code == 401
    assert revoked.json() == {"error": True, "message": "Token revoked or expired"}
    cleared = revoked.headers["set-cookie"]
    assert "erp-access=" in cleared
    assert "Max-Age=0" in cleared


async def test_wrong_password(client, world):
    response = await client.post(f"{API}/auth/login", json={"username": "alice", "password": "nope"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid credentials"


async def test_missing_cookie(client, world):
    response = await client.get(f"{API}/purchase-orders")
    assert response.status_code == 401
    assert response.json()["message"] == "Token not provided"


async def test_logout_without_session_succeeds(client):
    response = await client.post(f"{API}/auth/logout")
    assert response.status_code == 200


async def test_purchase_order_list_is_tenant_scoped(client, world):
    cookie = await login(client, "alice")
    response = await client.get(f"{API}/purchase-orders", params={"sortBy": "code", "sortOrder": "asc"}, headers=cookie)

    assert response.status_code == 200
    page = response.json()["data"]
    assert [order["code"] for order in page["items"]] == ["PO-1", "PO-2"]
    assert page["meta"] == {"total": 2, "page": 1, "totalPages": 1}
    assert [line["id"] for line in page["items"][0]["items"]] == [world.line_1, world.line_2]

    other = await login(client, "bob")
    response = await client.get(f"{API}/purchase-orders", headers=other)
    assert response.json()["data"]["meta"]["total"] == 0


async def test_other_tenant_rows_are_not_found(client, world):
    cookie = await login(client, "bob")

    response = await client.get(f"{API}/purchase-orders/{world.order_a}", headers=cookie)
    assert response.status_code == 404
    assert response.json() == {"error": True, "message": "Purchase order not found"}

    response = await client.put(f"{API}/purchase-orders/{world.order_a}", json={"notes": "x"}, headers=cookie)
    assert response.status_code == 404


async def test_create_order_with_lines(client, world):
    cookie = await login(client)
    payload = {
        "code": "PO-3",
        "supplierId": world.supplier_a,
        "items": {"create": [{"productId": world.product_a1, "quantity": 4, "unitCost": 1.25}]},
    }

    response = await client.post(f"{API}/purchase-orders", json=payload, headers=cookie)

    assert response.status_code == 200, response.text
    order = response.json()["data"]
    assert order["status"] == "PENDING"
    assert [(line["productId"], line["quantity"]) for line in order["items"]] == [(world.product_a1, 4.0)]


async def test_create_order_rejects_duplicate_code_and_foreign_supplier(client, world):
    cookie = await login(client)

    duplicate = await client.post(f"{API}/purchase-orders", json={"code": "PO-1", "supplierId": world.supplier_a}, headers=cookie)
    assert duplicate.status_code == 409

    foreign = await client.post(f"{API}/purchase-orders", json={"code": "PO-9", "supplierId": world.supplier_b}, headers=cookie)
    assert foreign.status_code == 404
    assert foreign.json()["message"] == "Supplier not found"


async def test_update_order_applies_header_and_lines(client, world):
    cookie = await login(client)
    payload = {
        "status": "PLANNED",
        "items": {
            "delete": [world.line_1],
            "update": [{"id": world.line_2, "quantity": 8}],
            "create": [{"productId": world.product_a1, "quantity": 2, "unitCost": 3}],
        },
    }

    response = await client.put(f"{API}/purchase-orders/{world.order_a}", json=payload, headers=cookie)

    assert response.status_code == 200, response.text
    order = response.json()["data"]
    assert order["status"] == "PLANNED"
    assert [line["quantity"] for line in order["items"]] == [8.0, 2.0]
    assert world.line_1 not in [line["id"] for line in order["items"]]


async def test_foreign_line_update_rolls_back_header(client, session_factory, world):
    cookie = await login(client)
    payload = {"notes": "should not stick", "items": {"update": [{"id": world.foreign_line, "quantity": 5}]}}

    response = await client.put(f"{API}/purchase-orders/{world.order_a}", json=payload, headers=cookie)

    assert response.status_code == 409
    assert response.json()["message"] == "referenced child row not found for this parent"
    async with session_factory() as session:
        notes = await session.scalar(select(PurchaseOrder.notes).where(PurchaseOrder.id == world.order_a))
    assert notes is None


async def test_malformed_items_payload(client, world):
    cookie = await login(client)
    payload = {"items": {"update": [{"id": world.line_1, "quantity": 1}], "delete": [world.line_1]}}

    response = await client.put(f"{API}/purchase-orders/{world.order_a}", json=payload, headers=cookie)

    assert response.status_code == 400
    assert response.json() == {"error": True, "message": "Invalid items payload"}


async def test_missing_required_field(client, world):
    cookie = await login(client)
    response = await client.post(f"{API}/purchase-orders", json={"code": "PO-5"}, headers=cookie)
    assert response.status_code == 400
    assert response.json()["message"] == "Request validation failed"


async def test_list_query_errors(client, world):
    cookie = await login(client)

    response = await client.get(f"{API}/purchase-orders", params={"sortBy": "password"}, headers=cookie)
    assert (response.status_code, response.json()["message"]) == (400, "Invalid sortBy field")

    response = await client.get(f"{API}/purchase-orders", params={"status": "LOST"}, headers=cookie)
    assert response.json()["message"] == "status must be a valid OrderStatus"

    response = await client.get(f"{API}/recipe-items", params={"search": "steel"}, headers=cookie)
    assert (response.status_code, response.json()["message"]) == (400, "search filter is not allowed for this resource")


async def test_blank_search_matches_no_search(client, world):
    cookie = await login(client)
    plain = await client.get(f"{API}/products", headers=cookie)
    blank = await client.get(f"{API}/products", params={"search": "   "}, headers=cookie)

    assert plain.json()["data"]["meta"]["total"] == 2
    assert blank.json()["data"] == plain.json()["data"]


async def test_search_filters_products(client, world):
    cookie = await login(client)
    response = await client.get(f"{API}/products", params={"search": "plate"}, headers=cookie)
    assert [p["sku"] for p in response.json()["data"]["items"]] == ["A-002"]


async def test_recipe_items_filtered_by_recipe(client, world):
    cookie = await login(client)
    response = await client.get(f"{API}/recipe-items", params={"recipeId": world.recipe_a}, headers=cookie)
    assert [item["id"] for item in response.json()["data"]["items"]] == [world.recipe_input]


async def test_geography_is_public(client, world):
    countries = await client.get(f"{API}/countries")
    assert countries.status_code == 200
    assert [c["name"] for c in countries.json()["data"]["items"]] == ["Brazil"]

    cities = await client.get(f"{API}/cities", params={"stateId": world.state, "sortBy": "name"})
    assert [c["name"] for c in cities.json()["data"]["items"]] == ["Chapecó", "São Miguel do Oeste"]


async def test_geography_query_rules(client, world):
    response = await client.get(f"{API}/countries", params={"page": 0})
    assert (response.status_code, response.json()["message"]) == (
        400,
        "page and limit must be numbers greater than zero",
    )

    response = await client.get(f"{API}/states")
    assert (response.status_code, response.json()["message"]) == (400, "countryId is required and must be a number")

    response = await client.get(f"{API}/states", params={"countryId": world.country})
    assert [s["uf"] for s in response.json()["data"]["items"]] == ["SC"]


async def test_non_numeric_path_id(client, world):
    response = await client.get(f"{API}/countries/abc")
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid Id parameter"


async def test_unknown_route_uses_error_envelope(client):
    response = await client.get(f"{API}/nowhere")
    assert response.status_code == 404
    assert response.json()["error"] is True


async def test_unexpected_failure_is_reported(client, session_factory, world):
    def broken_service():
        raise RuntimeError("connection reset by peer")

    app.dependency_overrides[get_purchase_order_service] = broken_service
    cookie = await login(client)

    response = await client.get(f"{API}/purchase-orders", headers=cookie)

    assert response.status_code == 500
    assert response.json() == {"error": True, "message": "Internal server error. Please contact support."}
    assert "connection reset" not in response.text
    assert "X-Correlation-ID" in response.headers
    async with session_factory() as session:
        records = list((await session.execute(select(ErrorLog))).scalars())
    assert [(r.kind, r.tenant_id) for r in records] == [("RuntimeError", world.tenant_a)]


async def test_handled_errors_are_reported_except_validation(client, session_factory, world):
    cookie = await login(client)
    await client.get(f"{API}/purchase-orders/999999", headers=cookie)
    await client.get(f"{API}/purchase-orders", params={"sortBy": "nope"}, headers=cookie)

    async with session_factory() as session:
        kinds = (await session.execute(select(ErrorLog.kind))).scalars().all()
        total = await session.scalar(select(func.count()).select_from(ErrorLog))
    assert kinds == ["not_found"]
    assert total == 1


async def test_huge_limit_is_capped(client, world):
    cookie = await login(client)
    response = await client.get(f"{API}/products", params={"limit": str(10**20)}, headers=cookie)

    assert response.status_code == 200
    assert response.json()["data"]["meta"] == {"total": 2, "page": 1, "totalPages": 1}


async def test_huge_page_is_rejected(client, world):
    cookie = await login(client)
    response = await client.get(f"{API}/products", params={"page": str(10**20)}, headers=cookie)
    assert (response.status_code, response.json()["message"]) == (400, "page and limit must be numbers")


async def test_path_id_outside_column_range(client, world):
    cookie = await login(client)
    for path in (f"/products/{2**63}", "/products/0", f"/purchase-orders/{2**31}"):
        response = await client.get(f"{API}{path}", headers=cookie)
        assert (response.status_code, response.json()["message"]) == (400, "Invalid Id parameter"), path


async def test_out_of_range_nested_ids(client, world):
    cookie = await login(client)
    url = f"{API}/purchase-orders/{world.order_a}"

    gone = await client.put(url, json={"items": {"delete": [2**63]}}, headers=cookie)
    assert gone.status_code == 200
    assert len(gone.json()["data"]["items"]) == 2

    bad = await client.put(url, json={"items": {"update": [{"id": 2**63, "quantity": 1}]}}, headers=cookie)
    assert (bad.status_code, bad.json()["message"]) == (400, "Invalid items payload")


async def test_out_of_range_reference_and_filter(client, world):
    cookie = await login(client)

    response = await client.post(f"{API}/purchase-orders", json={"code": "PO-7", "supplierId": 2**63}, headers=cookie)
    assert (response.status_code, response.json()["message"]) == (400, "Request validation failed")

    response = await client.get(f"{API}/purchase-orders", params={"supplierId": str(2**63)}, headers=cookie)
    assert (response.status_code, response.json()["message"]) == (400, "supplierId must be a number")


async def test_search_wildcards_are_literal(client, world):
    cookie = await login(client)
    for term in ("%", "_", "Steel%"):
        response = await client.get(f"{API}/products", params={"search": term}, headers=cookie)
        assert response.json()["data"]["meta"]["total"] == 0, term

    response = await client.get(f"{API}/products", params={"search": "A-00"}, headers=cookie)
    assert response.json()["data"]["meta"]["total"] == 2
