from stockledger.models.product import Product
from stockledger.models.stock_level import StockLevel
from stockledger.models.movement import MovementRecord
from stockledger.models.alert import InventoryAlert
from stockledger.models.optimization_result import OptimizationResult

__all__ = [
    "Product",
    "StockLevel",
    "MovementRecord",
    "InventoryAlert",
    "OptimizationResult",
]
