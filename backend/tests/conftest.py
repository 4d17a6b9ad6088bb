import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import stockledger.models  # noqa: F401
from stockledger.config import Settings
from stockledger.database import Base, get_db
from stockledger.main import create_app
from stockledger.services.alert_engine import AlertEngine
from stockledger.services.movement_ledger import MovementLedger
from stockledger.services.product_service import ProductService
from stockledger.services.stock_projection import StockProjection, StockThresholds
from stockledger.utils.events import EventBus
from stockledger.utils.locks import ProductLockRegistry


@pytest.fixture
def test_settings():
    return Settings(
        DATABASE_URL="sqlite://",
        AUTO_CREATE_TABLES=False,
        LOG_FORMAT="plain",
        ENABLE_REQUEST_LOGGING=False,
        READINESS_CHECK_DATABASE=False,
        STOCK_LOCK_TIMEOUT_SECONDS=2.0,
    )


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def published(bus):
    events = []
    bus.subscribe_all(events.append)
    return events


@pytest.fixture
def locks(test_settings):
    return ProductLockRegistry(timeout=test_settings.STOCK_LOCK_TIMEOUT_SECONDS)


@pytest.fixture
def projection(db, bus, test_settings):
    return StockProjection(db, bus, test_settings)


@pytest.fixture
def alert_engine(db, bus, locks, test_settings):
    return AlertEngine(db, bus, locks, test_settings)


@pytest.fixture
def ledger(db, projection, bus, locks):
    """Ledger without automatic alert evaluation."""
    return MovementLedger(db, projection, bus, locks)


@pytest.fixture
def alerting_ledger(db, projection, bus, locks, alert_engine):
    return MovementLedger(db, projection, bus, locks, alert_engine=alert_engine)


@pytest.fixture
def make_product(db, projection):
    counter = {"n": 0}

    def _make(minimum=0, maximum=None, reorder_point=0, **fields):
        counter["n"] += 1
        data = {"sku": f"SKU-{counter['n']:03d}", "name": f"Test Product {counter['n']}"}
        data.update(fields)
        return ProductService(db, projection).create_product(
            data, StockThresholds(minimum=minimum, maximum=maximum, reorder_point=reorder_point),
        )

    return _make


@pytest.fixture
def product(make_product):
    return make_product(unit_cost=10)


@pytest.fixture
def app(engine, test_settings):
    application = create_app(test_settings)
    testing_session = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    def override_get_db():
        session = testing_session()
        try:
            yield session
        finally:
            session.close()

    application.dependency_overrides[get_db] = override_get_db
    return application


@pytest.fixture
def client(app):
    return TestClient(app)
