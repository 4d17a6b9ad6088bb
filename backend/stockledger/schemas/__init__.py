from stockledger.schemas.product import ProductCreate, ProductResponse, ProductListResponse, StockThresholdsIn
from stockledger.schemas.movement import (
    MovementCreate,
    MovementCorrection,
    MovementResponse,
    MovementListResponse,
    MovementSummary,
    BalanceResponse,
    LotBalanceResponse,
)
from stockledger.schemas.stock import (
    StockLevelResponse,
    StockLevelListResponse,
    StockThresholdsUpdate,
    ReconciliationResponse,
    StockHealthSummary,
)
from stockledger.schemas.alert import (
    AlertResponse,
    AlertListResponse,
    AlertCreate,
    AlertCreateResponse,
    AlertTransitionRequest,
    AlertBatchTransitionRequest,
    AlertBatchTransitionResponse,
    AlertEvaluationResponse,
    AlertStatistics,
)
from stockledger.schemas.optimization import OptimizationRequest, OptimizationResultView, PurchaseOrderResponse
