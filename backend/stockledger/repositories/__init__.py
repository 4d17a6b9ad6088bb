# Repository Layer — Data Access (Repository Pattern)
from stockledger.repositories.base import BaseRepository
from stockledger.repositories.product_repository import ProductRepository
from stockledger.repositories.stock_level_repository import StockLevelRepository
from stockledger.repositories.movement_repository import MovementRepository
from stockledger.repositories.alert_repository import AlertRepository
from stockledger.repositories.optimization_repository import OptimizationRepository

__all__ = [
    "BaseRepository",
    "ProductRepository",
    "StockLevelRepository",
    "MovementRepository",
    "AlertRepository",
    "OptimizationRepository",
]
