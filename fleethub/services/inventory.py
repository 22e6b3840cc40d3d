from typing import Iterable, List, Optional

import structlog
from sqlalchemy import and_
from sqlalchemy.orm import Session

from ..exceptions import NotFoundError, ValidationError
from ..models.models import Part, utcnow


logger = structlog.get_logger(__name__)


def is_low_stock(part: Part) -> bool:
    """A part is low on stock when below a positive minimum."""
    minimum = part.minimum_stock or 0
    return minimum > 0 and (part.quantity or 0) < minimum


def list_low_stock(parts: Iterable[Part]) -> List[Part]:
    return [p for p in parts if is_low_stock(p)]


def get_low_stock_parts(db: Session) -> List[Part]:
    return db.query(Part).filter(
        and_(Part.quantity < Part.minimum_stock, Part.minimum_stock > 0)
    ).order_by(Part.id.asc()).all()


def get_parts_by_kind(db: Session, standard: bool) -> List[Part]:
    return db.query(Part).filter(Part.is_standard.is_(standard)).order_by(Part.id.asc()).all()


def get_part_by_sku(db: Session, sku: str) -> Optional[Part]:
    return db.query(Part).filter(Part.sku == sku).first()


def restock_part(db: Session, part_id: int, quantity: int) -> Part:
    """
    Add stock to a part and stamp last_restocked.
    Read-modify-write without locking: concurrent restocks/decrements are last-write-wins.
    """
    if quantity <= 0:
        raise ValidationError("Restock quantity must be positive")
    part = db.get(Part, part_id)
    if part is None:
        raise NotFoundError("Part not found")
    was_low = is_low_stock(part)
    part.quantity = (part.quantity or 0) + quantity
    part.last_restocked = utcnow()
    db.commit()
    db.refresh(part)
    logger.info("part_restocked", part_id=part.id, added=quantity, quantity=part.quantity,
                left_low_stock=was_low and not is_low_stock(part))
    return part
