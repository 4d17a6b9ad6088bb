from pydantic_settings import BaseSettings
from pydantic import model_validator


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./stockledger.db"
    ENVIRONMENT: str = "development"
    AUTO_CREATE_TABLES: bool = True
    DEBUG: bool = True
    APP_NAME: str = "StockLedger"
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"
    ENABLE_REQUEST_ID: bool = True
    ENABLE_REQUEST_LOGGING: bool = True
    READINESS_CHECK_DATABASE: bool = True

    # Ledger concurrency
    STOCK_LOCK_TIMEOUT_SECONDS: float = 5.0

    # Status derivation and alert thresholds
    CRITICAL_STOCK_FACTOR: float = 1.0
    REORDER_WARNING_FACTOR: float = 1.2
    OBSOLETE_AFTER_DAYS: int = 90
    EXPIRY_WARNING_DAYS: int = 30
    ALERT_AUTO_RESOLVE: bool = True

    # Reorder optimizer defaults
    DEFAULT_ORDER_COST: float = 50.0
    DEFAULT_HOLDING_COST_RATE: float = 0.25
    DEFAULT_LEAD_TIME_DAYS: int = 7
    DEFAULT_SERVICE_LEVEL: float = 0.95
    DEFAULT_DEMAND_STD_DEV: float = 5.0
    MIN_DEMAND_STD_DEV: float = 1.0
    DEMAND_HISTORY_DAYS: int = 180
    FORECAST_HORIZON_DAYS: int = 90

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() in {"prod", "production"}

    @model_validator(mode="after")
    def validate_production_safety(self):
        if self.CRITICAL_STOCK_FACTOR <= 0:
            raise ValueError("CRITICAL_STOCK_FACTOR must be positive.")

        if self.STOCK_LOCK_TIMEOUT_SECONDS <= 0:
            raise ValueError("STOCK_LOCK_TIMEOUT_SECONDS must be positive.")

        if not self.is_production:
            return self

        if "sqlite" in self.DATABASE_URL.lower():
            raise ValueError("SQLite is not allowed when ENVIRONMENT is production.")

        if self.AUTO_CREATE_TABLES:
            raise ValueError("AUTO_CREATE_TABLES must be false in production; use Alembic migrations.")

        return self


settings = Settings()
