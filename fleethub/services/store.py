"""
Entity store.
One CRUD surface per entity type over a SQLAlchemy session.
"""
from typing import Any, Dict, Generic, List, Optional, Sequence, Type, TypeVar

import structlog
from fastapi import Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..db import get_db
from ..exceptions import ConflictError, NotFoundError
from ..models.models import (
    ActivityLog,
    Maintenance,
    Notification,
    Order,
    OrderItem,
    Part,
    User,
    Vehicle,
    VehiclePart,
)


logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT")


def drop_required_nulls(model, fields: Dict[str, Any]) -> Dict[str, Any]:
    """A null sent for a NOT NULL column means 'leave unchanged'."""
    columns = model.__table__.c
    return {k: v for k, v in fields.items() if v is not None or k not in columns or columns[k].nullable}


class EntityStore(Generic[ModelT]):
    """
    CRUD access to a single model.

    Args:
        db: Database session
        model: Mapped class handled by this store
        label: Human readable name used in error messages
        unique_fields: Columns that must be unique; checked before insert/update
        order_by: Default ordering for list()
    """

    def __init__(
        self,
        db: Session,
        model: Type[ModelT],
        label: str,
        unique_fields: Sequence[str] = (),
        order_by: Sequence[Any] = (),
    ):
        self.db = db
        self.model = model
        self.label = label
        self.unique_fields = tuple(unique_fields)
        self.order_by = tuple(order_by) or (model.id.asc(),)

    def get(self, entity_id: int) -> Optional[ModelT]:
        return self.db.get(self.model, entity_id)

    def get_or_404(self, entity_id: int) -> ModelT:
        row = self.get(entity_id)
        if row is None:
            raise NotFoundError(f"{self.label} not found")
        return row

    def find_one(self, *criteria) -> Optional[ModelT]:
        return self.db.query(self.model).filter(*criteria).first()

    def list(self, *criteria, order_by: Sequence[Any] = (), limit: Optional[int] = None) -> List[ModelT]:
        query = self.db.query(self.model)
        if criteria:
            query = query.filter(*criteria)
        query = query.order_by(*(order_by or self.order_by))
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def count(self, *criteria) -> int:
        query = self.db.query(self.model)
        if criteria:
            query = query.filter(*criteria)
        return query.count()

    def create(self, fields: Dict[str, Any]) -> ModelT:
        self._check_unique(fields)
        row = self.model(**fields)
        self.db.add(row)
        self._commit()
        self.db.refresh(row)
        return row

    def update(self, entity_id: int, fields: Dict[str, Any]) -> Optional[ModelT]:
        row = self.get(entity_id)
        if row is None:
            return None
        fields = drop_required_nulls(self.model, fields)
        self._check_unique(fields, exclude_id=entity_id)
        for key, value in fields.items():
            setattr(row, key, value)
        self._commit()
        self.db.refresh(row)
        return row

    def delete(self, entity_id: int) -> bool:
        row = self.get(entity_id)
        if row is None:
            return False
        self.db.delete(row)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError(f"{self.label} is still referenced by other records")
        return True

    def _check_unique(self, fields: Dict[str, Any], exclude_id: Optional[int] = None) -> None:
        for name in self.unique_fields:
            value = fields.get(name)
            if value is None:
                continue
            query = self.db.query(self.model).filter(getattr(self.model, name) == value)
            if exclude_id is not None:
                query = query.filter(self.model.id != exclude_id)
            if query.first() is not None:
                raise ConflictError(f"{self.label} with {name} '{value}' already exists")

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            # Lost a race between the pre-check and the insert
            self.db.rollback()
            logger.warning("store_integrity_error", entity=self.label, error=str(e.orig))
            raise ConflictError(f"{self.label} violates a uniqueness constraint")


class Store:
    """All entity stores bound to one session"""

    def __init__(self, db: Session):
        self.db = db
        self.users = EntityStore(db, User, "User", unique_fields=("username",))
        self.vehicles = EntityStore(db, Vehicle, "Vehicle", unique_fields=("vin", "qr_code"))
        self.parts = EntityStore(db, Part, "Part", unique_fields=("sku",))
        self.vehicle_parts = EntityStore(db, VehiclePart, "Vehicle part")
        self.maintenance = EntityStore(db, Maintenance, "Maintenance task")
        self.orders = EntityStore(db, Order, "Order", unique_fields=("order_number",))
        self.order_items = EntityStore(db, OrderItem, "Order item")
        self.notifications = EntityStore(
            db, Notification, "Notification",
            order_by=(Notification.created_at.desc(), Notification.id.desc()),
        )
        self.activity_logs = EntityStore(
            db, ActivityLog, "Activity log",
            order_by=(ActivityLog.timestamp.desc(), ActivityLog.id.desc()),
        )


def get_store(db: Session = Depends(get_db)) -> Store:
    return Store(db)
