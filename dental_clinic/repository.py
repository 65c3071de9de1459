"""
Per-entity record access.

Routes receive a ``Repository`` bound to the request's session instead of
querying a shared module-level store. ``repository_for(Model)`` builds the
FastAPI dependency.
"""

from typing import Any, Generic, TypeVar

from fastapi import Depends
from sqlalchemy.orm import Session

from dental_clinic.database import Base, get_db
from dental_clinic.errors import RecordNotFoundError

ModelT = TypeVar('ModelT', bound=Base)


class Repository(Generic[ModelT]):
    def __init__(self, db: Session, model: type[ModelT]):
        self.db = db
        self.model = model

    def list(self, order_by: Any = None, **filters: Any) -> list[ModelT]:
        query = self.db.query(self.model)
        for column_name, value in filters.items():
            if value is not None:
                query = query.filter(getattr(self.model, column_name) == value)
        if order_by is not None:
            query = query.order_by(*order_by) if isinstance(order_by, (list, tuple)) else query.order_by(order_by)
        return query.all()

    def get(self, record_id: int) -> ModelT:
        record = self.db.get(self.model, record_id)
        if record is None:
            raise RecordNotFoundError(self.model.__name__, record_id)
        return record

    def add(self, **values: Any) -> ModelT:
        record = self.model(**values)
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return record

    def update(self, record_id: int, **values: Any) -> ModelT:
        record = self.get(record_id)
        for field_name, value in values.items():
            setattr(record, field_name, value)
        self.db.commit()
        self.db.refresh(record)
        return record

    def delete(self, record_id: int) -> None:
        record = self.get(record_id)
        self.db.delete(record)
        self.db.commit()


def repository_for(model: type[ModelT]):
    def dependency(db: Session = Depends(get_db)) -> Repository[ModelT]:
        return Repository(db, model)

    return dependency
