from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ..auth.security import get_optional_user
from ..db import get_db
from ..exceptions import NotFoundError, ValidationError
from ..models.models import Order, User
from ..schemas.orders import OrderCreate, OrderItemResponse, OrderResponse, OrderUpdate
from ..services.activity import record_activity
from ..services.orders import create_order, get_order_items, update_order
from ..services.store import Store, get_store


router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("", response_model=List[OrderResponse])
def list_orders(status: Optional[str] = Query(None), store: Store = Depends(get_store)):
    if status:
        return store.orders.list(Order.status == status)
    return store.orders.list()


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(order_id: int, store: Store = Depends(get_store)):
    return store.orders.get_or_404(order_id)


@router.post("", response_model=OrderResponse, status_code=201)
def create(payload: OrderCreate, db: Session = Depends(get_db), actor: Optional[User] = Depends(get_optional_user)):
    fields = payload.model_dump(exclude={"items"})
    if fields.get("created_by") is None:
        if actor is None:
            raise ValidationError("created_by is required")
        fields["created_by"] = actor.id
    items = [item.model_dump() for item in payload.items or []]
    order = create_order(db, fields, items)
    record_activity(db, actor.id if actor else order.created_by, "order_placed",
                    f"Placed order {order.order_number}", order.id, "order")
    return order


@router.put("/{order_id}", response_model=OrderResponse)
def update(order_id: int, payload: OrderUpdate, db: Session = Depends(get_db), actor: Optional[User] = Depends(get_optional_user)):
    fields = payload.model_dump(exclude_unset=True)
    order = update_order(db, order_id, fields)
    if order is None:
        raise NotFoundError("Order not found")
    if "status" in fields:
        record_activity(db, actor.id if actor else None, f"order_{order.status}",
                        f"Order {order.order_number} is {order.status}", order.id, "order")
    return order


@router.delete("/{order_id}", status_code=204)
def delete(order_id: int, store: Store = Depends(get_store)):
    if not store.orders.delete(order_id):
        raise NotFoundError("Order not found")
    return Response(status_code=204)


@router.get("/{order_id}/items", response_model=List[OrderItemResponse])
def list_order_items(order_id: int, store: Store = Depends(get_store)):
    store.orders.get_or_404(order_id)
    return get_order_items(store.db, order_id)
