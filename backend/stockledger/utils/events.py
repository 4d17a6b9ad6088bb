"""
Domain events and an in-process EventBus (Observer Pattern).

Services publish events after their unit of work commits. Handlers are plain
callables subscribed per event class; a failing handler is logged and never
rolls back the business operation that produced the event.
"""
import logging
from collections import defaultdict
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Type

logger = logging.getLogger(__name__)


@dataclass
class DomainEvent:
    occurred_at: datetime = field(default_factory=datetime.utcnow, kw_only=True)

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class MovementRecordedEvent(DomainEvent):
    movement_id: int
    product_id: int
    movement_type: str
    delta: int
    running_balance: int
    user_id: Optional[int] = None


@dataclass
class MovementVoidedEvent(DomainEvent):
    movement_id: int
    reversal_id: int
    product_id: int
    delta: int
    user_id: Optional[int] = None
    reason: Optional[str] = None


@dataclass
class MovementRestoredEvent(DomainEvent):
    movement_id: int
    restoration_id: int
    product_id: int
    delta: int
    user_id: Optional[int] = None
    reason: Optional[str] = None


@dataclass
class StockIntegrityViolationEvent(DomainEvent):
    product_id: int
    cached_available: int
    ledger_available: int
    tail_balance: int


@dataclass
class AlertOpenedEvent(DomainEvent):
    alert_id: int
    product_id: int
    alert_type: str
    severity: str


@dataclass
class AlertStatusChangedEvent(DomainEvent):
    alert_id: int
    product_id: int
    old_status: str
    new_status: str
    user_id: Optional[int] = None


@dataclass
class OptimizationCompletedEvent(DomainEvent):
    result_id: int
    product_id: int
    eoq: float
    rop: float


EventHandler = Callable[[DomainEvent], None]


class EventBus:
    """Synchronous publish/subscribe keyed by event class."""

    def __init__(self):
        self._handlers: Dict[Type[DomainEvent], List[EventHandler]] = defaultdict(list)
        self._global_handlers: List[EventHandler] = []

    def subscribe(self, event_type: Type[DomainEvent], handler: EventHandler) -> None:
        self._handlers[event_type].append(handler)

    def subscribe_all(self, handler: EventHandler) -> None:
        self._global_handlers.append(handler)

    def publish(self, event: DomainEvent) -> None:
        for handler in [*self._handlers.get(type(event), []), *self._global_handlers]:
            try:
                handler(event)
            except Exception:
                logger.exception("event_handler_failed event=%s handler=%r", event.name, handler)


class LoggingHandler:
    """Writes every event to the application log."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self._log = log or logging.getLogger("stockledger.events")

    def __call__(self, event: DomainEvent) -> None:
        level = logging.ERROR if isinstance(event, StockIntegrityViolationEvent) else logging.INFO
        self._log.log(level, "domain_event name=%s", event.name, extra={"event": event.to_dict()})


def configure_event_bus(bus: Optional[EventBus] = None) -> EventBus:
    bus = bus or EventBus()
    bus.subscribe_all(LoggingHandler())
    return bus
