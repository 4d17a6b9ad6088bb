API = "/api/v1"


def _product(client, sku="BOLT-1", **stock):
    response = client.post(f"{API}/products", json={"sku": sku, "name": "Bolt", "unit_cost": "2.00", "stock": stock})
    assert response.status_code == 201, response.text
    return response.json()["id"]


def _move(client, product_id, movement_type, quantity):
    response = client.post(
        f"{API}/movements",
        json={"product_id": product_id, "movement_type": movement_type, "quantity": quantity},
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestStockApi:

    def test_status_follows_movements(self, client):
        product_id = _product(client, minimum=5, reorder_point=10, maximum=100)

        _move(client, product_id, "entry_purchase", 50)
        assert client.get(f"{API}/stock/{product_id}").json()["status"] == "normal"

        _move(client, product_id, "exit_sale", 42)
        stock = client.get(f"{API}/stock/{product_id}").json()
        assert stock["available"] == 8
        assert stock["status"] == "low"
        assert stock["last_sale_at"] is not None

    def test_threshold_update_rederives_status(self, client):
        product_id = _product(client)
        _move(client, product_id, "entry_purchase", 8)

        response = client.patch(f"{API}/stock/{product_id}/thresholds", json={"minimum": 10})
        assert response.status_code == 200
        assert response.json()["status"] == "critical"

        invalid = client.patch(f"{API}/stock/{product_id}/thresholds", json={"maximum": 5})
        assert invalid.status_code == 400
        assert invalid.json()["error"]["details"]["field"] == "maximum"

    def test_list_filter_and_health(self, client):
        stocked = _product(client, sku="BOLT-1")
        _product(client, sku="BOLT-2")
        _move(client, stocked, "entry_purchase", 5)

        depleted = client.get(f"{API}/stock", params={"status": "depleted"}).json()
        assert depleted["total"] == 1

        health = client.get(f"{API}/stock/health").json()
        assert health["total_products"] == 2
        assert health["statuses"]["depleted"] == {"count": 1, "pct": 50.0}
        assert health["statuses"]["normal"]["count"] == 1

    def test_reconcile(self, client):
        product_id = _product(client)
        entry = _move(client, product_id, "entry_purchase", 9)
        client.post(f"{API}/movements/{entry['id']}/void", json={})

        report = client.post(f"{API}/stock/{product_id}/reconcile").json()
        assert report == {
            "product_id": product_id,
            "cached_available": 0,
            "ledger_available": 0,
            "tail_balance": 0,
            "consistent": True,
        }
        assert all(r["consistent"] for r in client.post(f"{API}/stock/reconcile").json())


class TestAlertsApi:

    def test_depletion_opens_single_critical_alert(self, client):
        product_id = _product(client, minimum=5, reorder_point=10, maximum=100)
        _move(client, product_id, "entry_purchase", 20)
        _move(client, product_id, "exit_sale", 20)

        alerts = client.get(f"{API}/alerts", params={"product_id": product_id, "status": "pending"}).json()
        assert alerts["total"] == 1
        alert = alerts["items"][0]
        assert alert["alert_type"] == "critical"
        assert alert["severity"] == "critical"
        assert alert["suggested_quantity"] == 100
        assert alert["stock_at_creation"] == 0

        client.post(f"{API}/alerts/evaluate/{product_id}")
        assert client.get(f"{API}/alerts", params={"product_id": product_id}).json()["total"] == 1

    def test_restock_auto_resolves(self, client):
        product_id = _product(client, minimum=5, reorder_point=10)
        _move(client, product_id, "entry_purchase", 3)
        _move(client, product_id, "entry_purchase", 50)

        alerts = client.get(f"{API}/alerts", params={"product_id": product_id}).json()["items"]
        assert [a["status"] for a in alerts] == ["resolved"]
        assert alerts[0]["resolved_at"] is not None

    def test_transition_lifecycle(self, client):
        product_id = _product(client, minimum=5)
        _move(client, product_id, "entry_purchase", 2)
        alert_id = client.get(f"{API}/alerts", params={"product_id": product_id}).json()["items"][0]["id"]

        moved = client.post(f"{API}/alerts/{alert_id}/transition", json={"status": "in_progress", "user_id": 4})
        assert moved.status_code == 200
        assert moved.json()["assigned_user_id"] == 4

        missing_action = client.post(f"{API}/alerts/{alert_id}/transition", json={"status": "resolved"})
        assert missing_action.status_code == 400

        resolved = client.post(
            f"{API}/alerts/{alert_id}/transition",
            json={"status": "resolved", "action_taken": "Expedited PO-77"},
        )
        assert resolved.json()["status"] == "resolved"

        illegal = client.post(f"{API}/alerts/{alert_id}/transition", json={"status": "pending"})
        assert illegal.status_code == 409
        assert illegal.json()["error"]["code"] == "INVALID_TRANSITION"

    def test_manual_create_and_batch(self, client):
        first = _product(client, sku="BOLT-1")
        second = _product(client, sku="BOLT-2")
        payload = {"product_id": first, "alert_type": "supplier_delay", "severity": "high", "message": "Carrier strike"}

        created = client.post(f"{API}/alerts", json=payload).json()
        duplicate = client.post(f"{API}/alerts", json=payload).json()
        assert created["created"] is True
        assert duplicate["created"] is False
        assert duplicate["alert"]["id"] == created["alert"]["id"]

        other = client.post(
            f"{API}/alerts",
            json={"product_id": second, "alert_type": "high_cost", "message": "Price up 30%"},
        ).json()["alert"]

        batch = client.post(
            f"{API}/alerts/batch/transition",
            json={"alert_ids": [created["alert"]["id"], other["id"], 999], "status": "ignored", "note": "Known"},
        ).json()
        assert sorted(a["id"] for a in batch["succeeded"]) == sorted([created["alert"]["id"], other["id"]])
        assert batch["failed"] == [{"alert_id": 999, "code": "NOT_FOUND", "message": "InventoryAlert with id '999' was not found."}]

        stats = client.get(f"{API}/alerts/statistics").json()
        assert stats["by_status"]["ignored"] == 2
        assert stats["active_total"] == 0
