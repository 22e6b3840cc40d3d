from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ..db import get_db
from ..exceptions import NotFoundError, ValidationError
from ..schemas.fleet import VehiclePartCreate, VehiclePartResponse, VehiclePartUpdate
from ..services.maintenance import get_vehicle_parts_needing_maintenance
from ..services.store import Store, get_store
from ..services.vehicles import create_vehicle_part


router = APIRouter(prefix="/vehicle-parts", tags=["vehicle-parts"])


def _parse_ids(raw: Optional[str]) -> Optional[List[int]]:
    if raw is None or not raw.strip():
        return None
    try:
        return [int(x) for x in raw.split(",") if x.strip()]
    except ValueError:
        raise ValidationError("vehicle_ids must be a comma separated list of integers")


@router.get("", response_model=List[VehiclePartResponse])
def list_vehicle_parts(store: Store = Depends(get_store)):
    return store.vehicle_parts.list()


@router.get("/due", response_model=List[VehiclePartResponse])
def list_due(vehicle_ids: Optional[str] = Query(None, description="e.g. 1,2,3"), db: Session = Depends(get_db)):
    """Bindings due by date or by mileage; each listed once."""
    return get_vehicle_parts_needing_maintenance(db, _parse_ids(vehicle_ids))


@router.get("/{binding_id}", response_model=VehiclePartResponse)
def get_vehicle_part(binding_id: int, store: Store = Depends(get_store)):
    return store.vehicle_parts.get_or_404(binding_id)


@router.post("", response_model=VehiclePartResponse, status_code=201)
def create(payload: VehiclePartCreate, db: Session = Depends(get_db)):
    return create_vehicle_part(db, payload.model_dump())


@router.put("/{binding_id}", response_model=VehiclePartResponse)
def update(binding_id: int, payload: VehiclePartUpdate, store: Store = Depends(get_store)):
    binding = store.vehicle_parts.update(binding_id, payload.model_dump(exclude_unset=True))
    if binding is None:
        raise NotFoundError("Vehicle part not found")
    return binding


@router.delete("/{binding_id}", status_code=204)
def delete(binding_id: int, store: Store = Depends(get_store)):
    if not store.vehicle_parts.delete(binding_id):
        raise NotFoundError("Vehicle part not found")
    return Response(status_code=204)
