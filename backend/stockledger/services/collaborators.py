"""
Default in-process implementations of the collaborator contracts.
"""
import logging
from dataclasses import asdict
from typing import Optional

from sqlalchemy.orm import Session

from stockledger.core.interfaces import CatalogEntry, PurchaseOrderRequest
from stockledger.repositories.product_repository import ProductRepository

logger = logging.getLogger(__name__)


def _as_float(value) -> Optional[float]:
    return float(value) if value is not None else None


class SqlProductCatalog:
    """ProductCatalog backed by the local ``products`` table."""

    def __init__(self, db: Session):
        self._repo = ProductRepository(db)

    def get_entry(self, product_id: int) -> Optional[CatalogEntry]:
        product = self._repo.get_by_id(product_id)
        if not product:
            return None
        return CatalogEntry(
            product_id=product.id,
            sku=product.sku,
            name=product.name,
            unit_cost=_as_float(product.unit_cost),
            order_cost=_as_float(product.order_cost),
            holding_cost_annual=_as_float(product.holding_cost_annual),
            lead_time_days=product.lead_time_days,
            preferred_supplier_id=product.preferred_supplier_id,
        )


class LoggingPurchaseOrderGenerator:
    """
    Hands purchase-order requests to the log stream for a downstream
    procurement system to pick up. Nothing is retained in process.
    """

    def submit(self, request: PurchaseOrderRequest) -> dict:
        logger.info(
            "purchase_order_requested product_id=%s quantity=%s supplier_id=%s",
            request.product_id, request.suggested_quantity, request.supplier_id,
            extra={"purchase_order": asdict(request)},
        )
        return {
            "status": "queued",
            "product_id": request.product_id,
            "suggested_quantity": request.suggested_quantity,
            "supplier_id": request.supplier_id,
        }
