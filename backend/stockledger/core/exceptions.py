"""
Domain exception hierarchy.

Services raise these; the application-level handler in ``main.py`` turns
them into structured HTTP responses through ``to_http_exception``.
"""
from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class StockLedgerException(Exception):
    """Base class for every business error raised by the ledger core."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "STOCKLEDGER_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class EntityNotFoundException(StockLedgerException):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(
            f"{entity} with id '{entity_id}' was not found.",
            {"entity": entity, "id": entity_id},
        )
        self.entity = entity
        self.entity_id = entity_id


class InvalidInputException(StockLedgerException):
    code = "INVALID_INPUT"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, {"field": field} if field else None)
        self.field = field


class InsufficientStockException(StockLedgerException):
    status_code = status.HTTP_409_CONFLICT
    code = "INSUFFICIENT_STOCK"

    def __init__(self, product_id: int, available: int, requested: int):
        super().__init__(
            f"Insufficient stock for product {product_id}: available {available}, requested {requested}.",
            {"product_id": product_id, "available": available, "requested": requested},
        )
        self.product_id = product_id
        self.available = available
        self.requested = requested


class MovementAlreadyVoidedException(StockLedgerException):
    status_code = status.HTTP_409_CONFLICT
    code = "ALREADY_VOIDED"

    def __init__(self, movement_id: int):
        super().__init__(f"Movement {movement_id} is already voided.", {"movement_id": movement_id})
        self.movement_id = movement_id


class MovementNotVoidedException(StockLedgerException):
    status_code = status.HTTP_409_CONFLICT
    code = "NOT_VOIDED"

    def __init__(self, movement_id: int):
        super().__init__(f"Movement {movement_id} is not voided.", {"movement_id": movement_id})
        self.movement_id = movement_id


class DuplicateAlertException(StockLedgerException):
    """Raised internally when a PENDING alert of the same type already exists."""

    status_code = status.HTTP_409_CONFLICT
    code = "DUPLICATE_ALERT"

    def __init__(self, product_id: int, alert_type: str, existing_id: Optional[int] = None):
        super().__init__(
            f"An active {alert_type} alert already exists for product {product_id}.",
            {"product_id": product_id, "alert_type": alert_type, "existing_id": existing_id},
        )
        self.existing_id = existing_id


class ConflictException(StockLedgerException):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"


class InvalidParametersException(StockLedgerException):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "INVALID_PARAMETERS"

    def __init__(self, message: str, parameter: Optional[str] = None):
        super().__init__(message, {"parameter": parameter} if parameter else None)
        self.parameter = parameter


class InvalidStateTransitionException(StockLedgerException):
    status_code = status.HTTP_409_CONFLICT
    code = "INVALID_TRANSITION"

    def __init__(self, entity: str, current: str, target: str):
        super().__init__(
            f"{entity} cannot move from '{current}' to '{target}'.",
            {"entity": entity, "from": current, "to": target},
        )
        self.current = current
        self.target = target


class BusinessRuleViolationException(StockLedgerException):
    code = "BUSINESS_RULE_VIOLATION"


class StockInvariantViolation(RuntimeError):
    """A projection update would break non-negativity. Indicates a bug, not bad input."""


def to_http_exception(exc: StockLedgerException) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.to_dict())
