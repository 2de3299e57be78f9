"""HTTP 层：引擎异常映射为状态码与结构化错误"""

import httpx
import pytest

from stockroom.core.deps import get_db
from stockroom.main import create_app


@pytest.fixture
async def client(session_factory):
    app = create_app(use_lifespan=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def _create_ingredient(client, **body):
    payload = {"unit": "kg", "minimum_stock": "0", "optimal_stock": "0"}
    payload.update(body)
    r = await client.post("/api/v1/inventory/ingredients", json=payload, headers={"X-User-Id": "3"})
    assert r.status_code == 201, r.text
    return r.json()


async def test_adjust_endpoint_roundtrip(client):
    cocoa = await _create_ingredient(client, name="Cocoa Butter", current_stock="100")

    r = await client.post(
        f"/api/v1/inventory/ingredients/{cocoa['id']}/adjust",
        json={"delta": "-30", "reason": "sample"},
        headers={"X-User-Id": "3"},
    )
    assert r.status_code == 200, r.text
    assert float(r.json()["current_stock"]) == 70

    r = await client.get("/api/v1/audit-logs/", params={"action": "STOCK_ADJUSTMENT"})
    body = r.json()
    assert body["total"] == 1
    assert body["data"][0]["user_id"] == 3
    assert body["data"][0]["resource_id"] == cocoa["id"]


async def test_negative_adjustment_maps_to_400(client):
    cocoa = await _create_ingredient(client, name="Cocoa Butter", current_stock="10")

    r = await client.post(
        f"/api/v1/inventory/ingredients/{cocoa['id']}/adjust",
        json={"delta": "-11", "reason": "oops"},
    )
    assert r.status_code == 400
    assert r.json()["error"] == "INVALID_ADJUSTMENT"
    assert r.json()["resource_id"] == cocoa["id"]


async def test_zero_delta_is_rejected_by_request_validation(client):
    cocoa = await _create_ingredient(client, name="Cocoa Butter", current_stock="10")
    r = await client.post(
        f"/api/v1/inventory/ingredients/{cocoa['id']}/adjust",
        json={"delta": "0", "reason": "noop"},
    )
    assert r.status_code == 422


async def test_missing_ingredient_maps_to_404(client):
    r = await client.post(
        "/api/v1/inventory/ingredients/404/adjust",
        json={"delta": "1", "reason": "ghost"},
    )
    assert r.status_code == 404
    assert r.json()["error"] == "NOT_FOUND"


async def test_batch_flow_and_insufficient_message(client):
    cocoa = await _create_ingredient(client, name="Cocoa Butter", current_stock="200", cost_per_unit="2")
    r = await client.post("/api/v1/production/recipes", json={
        "name": "Dark Chocolate",
        "yield_unit": "bar",
        "lines": [{"ingredient_id": cocoa["id"], "quantity": "250"}],
    })
    assert r.status_code == 201, r.text
    recipe_id = r.json()["id"]

    r = await client.post("/api/v1/production/batches", json={"recipe_id": recipe_id, "quantity": "1"})
    assert r.status_code == 409
    assert r.json()["error"] == "INSUFFICIENT_STOCK"
    assert r.json()["message"] == "Insufficient Cocoa Butter: need 250kg, have 200kg"

    r = await client.post(
        f"/api/v1/inventory/ingredients/{cocoa['id']}/adjust",
        json={"delta": "400", "reason": "delivery"},
    )
    assert r.status_code == 200

    r = await client.post(
        "/api/v1/production/batches",
        json={"recipe_id": recipe_id, "quantity": "1"},
        headers={"X-User-Id": "5"},
    )
    assert r.status_code == 201, r.text
    batch = r.json()
    assert float(batch["actual_cost"]) == 500
    assert batch["produced_by"] == 5
    assert len(batch["consumed"]) == 1
    assert float(batch["consumed"][0]["quantity_used"]) == 250

    r = await client.post("/api/v1/sales/employee", json={
        "batch_id": batch["id"],
        "buyer_id": 9,
        "quantity_sold": "2",
    })
    assert r.status_code == 409
    assert r.json()["resource_type"] == "production_batch"

    r = await client.post("/api/v1/sales/employee", json={
        "batch_id": batch["id"],
        "buyer_id": 9,
        "quantity_sold": "1",
        "unit_price": "4",
    }, headers={"X-User-Id": "5"})
    assert r.status_code == 201, r.text
    assert float(r.json()["final_amount"]) == 4
    assert r.json()["seller_id"] == 5


async def test_soft_delete_hides_ingredient(client):
    vanilla = await _create_ingredient(client, name="Vanilla", current_stock="1")
    r = await client.delete(f"/api/v1/inventory/ingredients/{vanilla['id']}")
    assert r.status_code == 200

    r = await client.get(f"/api/v1/inventory/ingredients/{vanilla['id']}")
    assert r.status_code == 404
    r = await client.get("/api/v1/inventory/ingredients")
    assert r.json()["total"] == 0


async def test_low_stock_listing(client):
    await _create_ingredient(client, name="Butter", current_stock="5", minimum_stock="10", optimal_stock="20")
    await _create_ingredient(client, name="Flour", current_stock="50", minimum_stock="10", optimal_stock="20")

    r = await client.get("/api/v1/inventory/low-stock")
    assert [i["name"] for i in r.json()] == ["Butter"]
    assert r.json()[0]["is_low_stock"] is True


async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"
