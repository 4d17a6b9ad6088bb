"""
FastAPI dependency providers.

Shared collaborators (event bus, lock registry, settings, purchase-order
generator) live on ``app.state`` and are created once in ``create_app``;
services are built per request around the request's session.
"""
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from stockledger.database import get_db
from stockledger.ml.demand_strategies import HistoricalDemandForecastProvider
from stockledger.services.alert_engine import AlertEngine
from stockledger.services.collaborators import SqlProductCatalog
from stockledger.services.movement_ledger import MovementLedger
from stockledger.services.product_service import ProductService
from stockledger.services.reorder_optimizer import ReorderOptimizer
from stockledger.services.stock_projection import StockProjection


def get_stock_projection(request: Request, db: Session = Depends(get_db)) -> StockProjection:
    return StockProjection(db, request.app.state.event_bus, request.app.state.settings)


def get_alert_engine(request: Request, db: Session = Depends(get_db)) -> AlertEngine:
    state = request.app.state
    return AlertEngine(db, state.event_bus, state.locks, state.settings)


def get_movement_ledger(
    request: Request,
    db: Session = Depends(get_db),
    projection: StockProjection = Depends(get_stock_projection),
    alert_engine: AlertEngine = Depends(get_alert_engine),
) -> MovementLedger:
    state = request.app.state
    return MovementLedger(db, projection, state.event_bus, state.locks, alert_engine=alert_engine)


def get_product_service(
    db: Session = Depends(get_db),
    projection: StockProjection = Depends(get_stock_projection),
) -> ProductService:
    return ProductService(db, projection)


def get_reorder_optimizer(request: Request, db: Session = Depends(get_db)) -> ReorderOptimizer:
    cfg = request.app.state.settings
    provider = HistoricalDemandForecastProvider(
        db,
        history_days=cfg.DEMAND_HISTORY_DAYS,
        default_std_dev=cfg.DEFAULT_DEMAND_STD_DEV,
        min_std_dev=cfg.MIN_DEMAND_STD_DEV,
    )
    return ReorderOptimizer(db, request.app.state.event_bus, SqlProductCatalog(db), provider, cfg)


def get_purchase_order_generator(request: Request):
    return request.app.state.purchase_orders
