from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from stockledger.main import create_app


def test_root(client):
    body = client.get("/").json()
    assert body["app"] == "StockLedger"
    assert body["status"] == "running"


def test_health_and_request_id(client):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.headers["X-Request-ID"] == "req-123"
    assert "X-Response-Time-Ms" in response.headers


def test_ready_without_database_check(client):
    body = client.get("/ready").json()

    assert body["status"] == "ready"
    assert body["checks"]["database"]["enabled"] is False


def test_ready_checks_ledger_tables(engine, test_settings):
    settings = test_settings.model_copy(update={"READINESS_CHECK_DATABASE": True})
    body = TestClient(create_app(settings, engine=engine)).get("/ready").json()

    assert body["status"] == "ready"
    assert body["checks"]["database"]["missing_tables"] == []


def test_ready_reports_missing_tables(test_settings):
    empty = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    settings = test_settings.model_copy(update={"READINESS_CHECK_DATABASE": True})

    response = TestClient(create_app(settings, engine=empty)).get("/ready")

    assert response.status_code == 503
    assert "movements" in response.json()["checks"]["database"]["missing_tables"]
