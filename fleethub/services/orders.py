"""
Purchase order lifecycle.

Order numbers are {prefix}-{year}-{seq:04d}, where seq comes from a per-year
counter row bumped atomically in the same transaction as the order insert.
"""
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import settings
from ..exceptions import ConflictError, InvalidTransitionError, ValidationError
from ..models.models import Order, OrderItem, OrderSequence, Part, User, utcnow
from .store import drop_required_nulls


logger = structlog.get_logger(__name__)

ORDER_FLOW = ("pending", "approved", "ordered", "received")
TERMINAL_STATUSES = ("received", "cancelled")


def can_transition(current: str, target: str) -> bool:
    """Forward moves along the flow, or cancel while not terminal. Same status is a no-op."""
    if current == target:
        return True
    if current in TERMINAL_STATUSES:
        return False
    if target == "cancelled":
        return True
    if current in ORDER_FLOW and target in ORDER_FLOW:
        return ORDER_FLOW.index(target) > ORDER_FLOW.index(current)
    return False


def _bump_sequence(db: Session, year: int) -> Optional[int]:
    result = db.execute(
        update(OrderSequence)
        .where(OrderSequence.year == year)
        .values(last_value=OrderSequence.last_value + 1)
    )
    if result.rowcount == 0:
        return None
    return db.execute(select(OrderSequence.last_value).where(OrderSequence.year == year)).scalar_one()


def next_order_number(db: Session, year: Optional[int] = None) -> str:
    """
    Reserve the next order number for the year. Does not commit; the
    reservation becomes durable with the caller's commit.
    """
    year = year or utcnow().year
    value = _bump_sequence(db, year)
    if value is None:
        db.add(OrderSequence(year=year, last_value=1))
        try:
            db.flush()
            value = 1
        except IntegrityError:
            # Another writer created the year's row first
            db.rollback()
            value = _bump_sequence(db, year)
            if value is None:
                raise ConflictError("Could not allocate an order number")
    return f"{settings.order_number_prefix}-{year}-{value:04d}"


def calculate_total(items: Iterable[Dict[str, Any]]) -> float:
    return round(sum(item["quantity"] * item["price"] for item in items), 2)


def _stamp_status_dates(order: Order, status: str, now: datetime) -> None:
    if status in ("ordered", "received") and order.ordered_date is None:
        order.ordered_date = now
    if status == "received" and order.received_date is None:
        order.received_date = now


def _priced_items(db: Session, items: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    priced = []
    for item in items:
        part = db.get(Part, item["part_id"])
        if part is None:
            raise ValidationError(f"Part {item['part_id']} does not exist")
        price = item.get("price")
        priced.append({
            "part_id": part.id,
            "quantity": item["quantity"],
            "price": part.price if price is None else price,
        })
    return priced


def create_order(
    db: Session,
    fields: Dict[str, Any],
    items: Optional[List[Dict[str, Any]]] = None,
    now: Optional[datetime] = None,
) -> Order:
    """
    Create an order with an allocated number and optional items.

    Item prices default to the part's current price. total_amount, when not
    given, is computed once from the items and never recomputed.
    """
    data = dict(fields)
    if db.get(User, data["created_by"]) is None:
        raise ValidationError(f"created_by: user {data['created_by']} does not exist")
    priced = _priced_items(db, items or [])

    now = now or utcnow()
    data.setdefault("status", "pending")
    if data.get("total_amount") is None and priced:
        data["total_amount"] = calculate_total(priced)

    order = Order(**data)
    order.created_date = now
    _stamp_status_dates(order, order.status, now)
    order.order_number = next_order_number(db, now.year)
    db.add(order)
    db.flush()
    for item in priced:
        db.add(OrderItem(order_id=order.id, **item))
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning("order_create_conflict", error=str(e.orig))
        raise ConflictError("Order violates a uniqueness constraint")
    db.refresh(order)
    logger.info("order_created", order_id=order.id, order_number=order.order_number,
                items=len(priced), total_amount=order.total_amount)
    return order


def update_order(
    db: Session,
    order_id: int,
    fields: Dict[str, Any],
    now: Optional[datetime] = None,
) -> Optional[Order]:
    """Sparse update with transition checks. Returns None when the order does not exist."""
    order = db.get(Order, order_id)
    if order is None:
        return None

    data = drop_required_nulls(Order, fields)
    current = order.status
    target = data.pop("status", None) or current
    if not can_transition(current, target):
        raise InvalidTransitionError("order", current, target)
    if "created_by" in data and db.get(User, data["created_by"]) is None:
        raise ValidationError(f"created_by: user {data['created_by']} does not exist")

    for key, value in data.items():
        setattr(order, key, value)
    if target != current:
        order.status = target
        _stamp_status_dates(order, target, now or utcnow())
    db.commit()
    db.refresh(order)

    if target != current:
        logger.info("order_status_changed", order_id=order.id, previous=current, status=target)
    return order


def change_order_status(db: Session, order_id: int, status: str, now: Optional[datetime] = None) -> Optional[Order]:
    return update_order(db, order_id, {"status": status}, now=now)


# ---------- ORDER ITEMS ----------
def get_order_items(db: Session, order_id: int) -> List[OrderItem]:
    return db.query(OrderItem).filter(OrderItem.order_id == order_id).order_by(OrderItem.id.asc()).all()


def add_order_item(db: Session, fields: Dict[str, Any]) -> OrderItem:
    """
    Attach an item to an existing order. The price is snapshotted from the
    part when omitted; the order total is left untouched.
    """
    if db.get(Order, fields["order_id"]) is None:
        raise ValidationError(f"Order {fields['order_id']} does not exist")
    priced = _priced_items(db, [fields])[0]
    item = OrderItem(order_id=fields["order_id"], **priced)
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def update_order_item(db: Session, item_id: int, fields: Dict[str, Any]) -> Optional[OrderItem]:
    item = db.get(OrderItem, item_id)
    if item is None:
        return None
    fields = drop_required_nulls(OrderItem, fields)
    if "part_id" in fields and db.get(Part, fields["part_id"]) is None:
        raise ValidationError(f"Part {fields['part_id']} does not exist")
    for key, value in fields.items():
        setattr(item, key, value)
    db.commit()
    db.refresh(item)
    return item
