from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ..auth.security import get_optional_user
from ..db import get_db
from ..exceptions import NotFoundError
from ..models.models import Part, User
from ..schemas.inventory import PartCreate, PartResponse, PartRestock, PartUpdate
from ..services.activity import record_activity
from ..services.inventory import get_low_stock_parts, get_part_by_sku, get_parts_by_kind, restock_part
from ..services.store import Store, get_store


router = APIRouter(prefix="/parts", tags=["parts"])


@router.get("", response_model=List[PartResponse])
def list_parts(category: Optional[str] = Query(None), store: Store = Depends(get_store)):
    if category:
        return store.parts.list(Part.category == category)
    return store.parts.list()


@router.get("/low-stock", response_model=List[PartResponse])
def list_low_stock(db: Session = Depends(get_db)):
    return get_low_stock_parts(db)


@router.get("/standard", response_model=List[PartResponse])
def list_standard(db: Session = Depends(get_db)):
    return get_parts_by_kind(db, standard=True)


@router.get("/custom", response_model=List[PartResponse])
def list_custom(db: Session = Depends(get_db)):
    return get_parts_by_kind(db, standard=False)


@router.get("/sku/{sku}", response_model=PartResponse)
def get_by_sku(sku: str, db: Session = Depends(get_db)):
    part = get_part_by_sku(db, sku)
    if part is None:
        raise NotFoundError("Part not found")
    return part


@router.get("/{part_id}", response_model=PartResponse)
def get_part(part_id: int, store: Store = Depends(get_store)):
    return store.parts.get_or_404(part_id)


@router.post("", response_model=PartResponse, status_code=201)
def create(payload: PartCreate, store: Store = Depends(get_store), actor: Optional[User] = Depends(get_optional_user)):
    part = store.parts.create(payload.model_dump())
    record_activity(store.db, actor.id if actor else None, "part_added",
                    f"Added part {part.name} ({part.sku})", part.id, "part")
    return part


@router.put("/{part_id}", response_model=PartResponse)
def update(part_id: int, payload: PartUpdate, store: Store = Depends(get_store), actor: Optional[User] = Depends(get_optional_user)):
    part = store.parts.update(part_id, payload.model_dump(exclude_unset=True))
    if part is None:
        raise NotFoundError("Part not found")
    record_activity(store.db, actor.id if actor else None, "part_updated",
                    f"Updated part {part.name}", part.id, "part")
    return part


@router.post("/{part_id}/restock", response_model=PartResponse)
def restock(part_id: int, payload: PartRestock, db: Session = Depends(get_db), actor: Optional[User] = Depends(get_optional_user)):
    part = restock_part(db, part_id, payload.quantity)
    record_activity(db, actor.id if actor else None, "part_restocked",
                    f"Restocked {payload.quantity} x {part.name}", part.id, "part")
    return part


@router.delete("/{part_id}", status_code=204)
def delete(part_id: int, store: Store = Depends(get_store)):
    if not store.parts.delete(part_id):
        raise NotFoundError("Part not found")
    return Response(status_code=204)
