from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ..db import get_db
from ..exceptions import NotFoundError
from ..schemas.orders import OrderItemCreate, OrderItemResponse, OrderItemUpdate
from ..services.orders import add_order_item, update_order_item
from ..services.store import Store, get_store


router = APIRouter(prefix="/order-items", tags=["orders"])


@router.get("", response_model=List[OrderItemResponse])
def list_items(store: Store = Depends(get_store)):
    return store.order_items.list()


@router.get("/{item_id}", response_model=OrderItemResponse)
def get_item(item_id: int, store: Store = Depends(get_store)):
    return store.order_items.get_or_404(item_id)


@router.post("", response_model=OrderItemResponse, status_code=201)
def create(payload: OrderItemCreate, db: Session = Depends(get_db)):
    """Price defaults to the part's current price; the order total is not recomputed."""
    return add_order_item(db, payload.model_dump())


@router.put("/{item_id}", response_model=OrderItemResponse)
def update(item_id: int, payload: OrderItemUpdate, db: Session = Depends(get_db)):
    item = update_order_item(db, item_id, payload.model_dump(exclude_unset=True))
    if item is None:
        raise NotFoundError("Order item not found")
    return item


@router.delete("/{item_id}", status_code=204)
def delete(item_id: int, store: Store = Depends(get_store)):
    if not store.order_items.delete(item_id):
        raise NotFoundError("Order item not found")
    return Response(status_code=204)
