from typing import Optional
from sqlalchemy.orm import Session

from stockledger.repositories.base import BaseRepository
from stockledger.models.product import Product


class ProductRepository(BaseRepository[Product]):

    def __init__(self, db: Session):
        super().__init__(Product, db)

    def get_by_sku(self, sku: str) -> Optional[Product]:
        return self.db.query(Product).filter(Product.sku == sku).first()
