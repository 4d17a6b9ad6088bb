"""
StockLedger FastAPI Application Entry Point

- Global exception handlers convert domain exceptions into HTTP responses
- EventBus, lock registry and purchase-order generator are created once per
  app and shared through ``app.state``
- Routers are thin and delegate to services
"""
import logging
import time
import uuid
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine

from stockledger.config import Settings, settings as default_settings
from stockledger.core.exceptions import StockLedgerException, to_http_exception
from stockledger.database import Base, create_tables, engine as default_engine
from stockledger.routers import alerts, movements, optimization, products, stock
from stockledger.services.collaborators import LoggingPurchaseOrderGenerator
from stockledger.utils.events import configure_event_bus
from stockledger.utils.locks import ProductLockRegistry
from stockledger.utils.logging import configure_logging

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


def create_app(settings: Optional[Settings] = None, engine: Optional[Engine] = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(log_level=settings.LOG_LEVEL, log_format=settings.LOG_FORMAT)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Inventory movement ledger, stock projection, alerting and reorder optimization",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.engine = engine or default_engine
    app.state.event_bus = configure_event_bus()
    app.state.locks = ProductLockRegistry(timeout=settings.STOCK_LOCK_TIMEOUT_SECONDS)
    app.state.purchase_orders = LoggingPurchaseOrderGenerator()

    _register_middleware(app, settings)
    _register_exception_handlers(app)

    for module in (products, movements, stock, alerts, optimization):
        app.include_router(module.router, prefix=API_PREFIX)

    @app.on_event("startup")
    def startup_event():
        logger.info("Starting %s v%s (%s)", settings.APP_NAME, settings.APP_VERSION, settings.ENVIRONMENT)
        if settings.AUTO_CREATE_TABLES:
            create_tables(bind=app.state.engine)

    @app.on_event("shutdown")
    def shutdown_event():
        logger.info("%s shutting down.", settings.APP_NAME)

    _register_health_routes(app, settings)
    return app


def _register_middleware(app: FastAPI, settings: Settings) -> None:

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        """Tags each request with an X-Request-ID and reports how long it took."""
        start = time.perf_counter()
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start) * 1000
        if settings.ENABLE_REQUEST_ID:
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time-Ms"] = f"{duration_ms:.2f}"
        if settings.ENABLE_REQUEST_LOGGING:
            logger.info(
                "request_completed method=%s path=%s status=%s duration_ms=%.2f request_id=%s",
                request.method, request.url.path, response.status_code, duration_ms, request_id,
            )
        return response


def _register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(StockLedgerException)
    async def stockledger_exception_handler(request: Request, exc: StockLedgerException) -> JSONResponse:
        http_exc = to_http_exception(exc)
        if http_exc.status_code == 409:
            logger.warning(
                "request_conflict code=%s path=%s request_id=%s",
                exc.code, request.url.path, getattr(request.state, "request_id", None),
            )
        return JSONResponse(status_code=http_exc.status_code, content={"success": False, "error": http_exc.detail})

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": {"code": "VALIDATION_ERROR", "message": str(exc)}},
        )


def _register_health_routes(app: FastAPI, settings: Settings) -> None:

    @app.get("/", tags=["Health"])
    def root():
        return {
            "app": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "api": API_PREFIX,
            "docs": "/docs",
            "status": "running",
        }

    @app.get("/health", tags=["Health"])
    def health_check():
        return {
            "status": "healthy",
            "app": settings.APP_NAME,
            "environment": settings.ENVIRONMENT,
            "lock_timeout_seconds": settings.STOCK_LOCK_TIMEOUT_SECONDS,
        }

    @app.get("/ready", tags=["Health"])
    def readiness_check(request: Request):
        check = {"enabled": settings.READINESS_CHECK_DATABASE, "ok": True, "missing_tables": [], "error": None}

        if settings.READINESS_CHECK_DATABASE:
            try:
                with app.state.engine.connect() as conn:
                    conn.execute(text("SELECT 1"))
                    present = set(inspect(conn).get_table_names())
                check["missing_tables"] = sorted(set(Base.metadata.tables) - present)
                check["ok"] = not check["missing_tables"]
            except Exception as exc:
                logger.warning("readiness_check_failed error=%s", exc)
                check["ok"] = False
                check["error"] = str(exc)

        return JSONResponse(
            status_code=200 if check["ok"] else 503,
            content={
                "status": "ready" if check["ok"] else "not_ready",
                "app": settings.APP_NAME,
                "version": settings.APP_VERSION,
                "request_id": getattr(request.state, "request_id", None),
                "checks": {"database": check},
            },
        )


app = create_app()
