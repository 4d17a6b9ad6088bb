"""
Generic Repository (Repository Pattern)

Subclasses bind a model class; query helpers specific to a table live on the
subclass. ``create``/``update`` commit immediately; ``stage`` only flushes so a
service can group several writes into one transaction.
"""
from typing import Any, Dict, Generic, List, Optional, Tuple, Type, TypeVar

from sqlalchemy.orm import Session

from stockledger.database import Base

T = TypeVar("T", bound=Base)


class BaseRepository(Generic[T]):

    def __init__(self, model: Type[T], db: Session):
        self.model = model
        self.db = db

    def get_by_id(self, entity_id: int) -> Optional[T]:
        return self.db.get(self.model, entity_id)

    def list_all(self) -> List[T]:
        return self.db.query(self.model).order_by(self.model.id).all()

    def list_paginated(self, page: int = 1, page_size: int = 20, **filters: Any) -> Tuple[List[T], int]:
        q = self.db.query(self.model)
        for name, value in filters.items():
            if value is not None:
                q = q.filter(getattr(self.model, name) == value)
        total = q.count()
        items = q.order_by(self.model.id.desc()).offset((page - 1) * page_size).limit(page_size).all()
        return items, total

    def stage(self, obj: T) -> T:
        self.db.add(obj)
        self.db.flush()
        return obj

    def create(self, obj: T) -> T:
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def update(self, obj: T, updates: Dict[str, Any]) -> T:
        for key, value in updates.items():
            setattr(obj, key, value)
        self.db.commit()
        self.db.refresh(obj)
        return obj
