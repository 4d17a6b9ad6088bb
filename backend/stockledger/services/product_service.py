"""
Product Service

Registers catalog products and opens their stock level in one step so that
every product the ledger accepts movements for has a projection row.
"""
import logging
from math import ceil
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from stockledger.core.exceptions import BusinessRuleViolationException, EntityNotFoundException
from stockledger.models.product import Product
from stockledger.repositories.product_repository import ProductRepository
from stockledger.services.stock_projection import StockProjection, StockThresholds

logger = logging.getLogger(__name__)


class ProductService:

    def __init__(self, db: Session, projection: StockProjection):
        self._repo = ProductRepository(db)
        self._projection = projection

    def create_product(self, data: dict, thresholds: Optional[StockThresholds] = None) -> Product:
        if self._repo.get_by_sku(data["sku"]):
            raise BusinessRuleViolationException(f"SKU '{data['sku']}' already exists.", {"sku": data["sku"]})
        product = self._repo.create(Product(**data))
        self._projection.register(product.id, thresholds)
        logger.info("product_registered id=%s sku=%s", product.id, product.sku)
        return product

    def get_product(self, product_id: int) -> Product:
        product = self._repo.get_by_id(product_id)
        if not product:
            raise EntityNotFoundException("Product", product_id)
        return product

    def list_products(self, page: int = 1, page_size: int = 50) -> Tuple[List[Product], int, int]:
        items, total = self._repo.list_paginated(page=page, page_size=page_size)
        return items, total, ceil(total / page_size) if total else 0
