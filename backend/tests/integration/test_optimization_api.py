from stockledger.dependencies import get_purchase_order_generator
from stockledger.services.collaborators import LoggingPurchaseOrderGenerator

API = "/api/v1"


def _product(client, **fields):
    payload = {"sku": "VALVE-1", "name": "Valve", "unit_cost": "10.00"}
    payload.update(fields)
    response = client.post(f"{API}/products", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["id"]


def test_optimize_with_caller_demand(client):
    product_id = _product(client)

    response = client.post(f"{API}/optimization/{product_id}", json={"demand_annual": 1500, "demand_std_dev": 5})

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["eoq"] == 245
    assert body["total_cost_annual"] == 612.37
    assert body["parameters"]["order_cost"] == 50
    assert body["parameters"]["holding_cost_per_unit_year"] == 2.5
    assert body["parameters"]["demand_source"] == "caller"


def test_forecast_without_demand_history_is_rejected(client):
    product_id = _product(client)

    response = client.post(f"{API}/optimization/{product_id}", json={})

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "INVALID_PARAMETERS"


def test_invalid_service_level(client):
    product_id = _product(client)

    response = client.post(
        f"{API}/optimization/{product_id}",
        json={"demand_annual": 1500, "demand_std_dev": 5, "service_level": 0.5},
    )

    assert response.status_code == 400
    assert response.json()["error"]["details"]["field"] == "service_level"


def test_latest_history_and_apply(client):
    product_id = _product(client)
    assert client.get(f"{API}/optimization/{product_id}/latest").status_code == 404

    client.post(f"{API}/optimization/{product_id}", json={"demand_annual": 1000, "demand_std_dev": 5})
    second = client.post(f"{API}/optimization/{product_id}", json={"demand_annual": 1500, "demand_std_dev": 5}).json()

    assert client.get(f"{API}/optimization/{product_id}/latest").json()["id"] == second["id"]
    assert len(client.get(f"{API}/optimization/{product_id}/history").json()) == 2

    stock = client.post(f"{API}/stock/{product_id}/apply-optimization").json()
    assert stock["reorder_point"] == second["rop"]


def test_purchase_order_uses_latest_eoq(client, app):
    requests = []

    class CapturingGenerator:
        def submit(self, request):
            requests.append(request)
            return LoggingPurchaseOrderGenerator().submit(request)

    app.dependency_overrides[get_purchase_order_generator] = CapturingGenerator
    product_id = _product(client, preferred_supplier_id=7)
    client.post(f"{API}/optimization/{product_id}", json={"demand_annual": 1500, "demand_std_dev": 5})

    response = client.post(f"{API}/optimization/{product_id}/purchase-order")

    assert response.json() == {"status": "queued", "product_id": product_id, "suggested_quantity": 245, "supplier_id": 7}
    assert [r.suggested_quantity for r in requests] == [245]


def test_non_finite_parameters_are_rejected_at_the_boundary(client):
    product_id = _product(client)

    response = client.post(
        f"{API}/optimization/{product_id}",
        content='{"demand_annual": NaN, "demand_std_dev": 5}',
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 422
    assert response.json()["detail"][0]["loc"] == ["body", "demand_annual"]
    assert client.get(f"{API}/optimization/{product_id}/history").json() == []
