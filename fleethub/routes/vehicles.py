from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ..auth.security import get_optional_user
from ..db import get_db
from ..exceptions import NotFoundError
from ..models.models import User, Vehicle
from ..schemas.fleet import MaintenanceResponse, VehiclePartResponse, VehicleResponse, VehicleCreate, VehicleUpdate
from ..services.activity import record_activity
from ..services.maintenance import get_maintenance_for_vehicle
from ..services.store import Store, get_store
from ..services.vehicles import create_vehicle, get_vehicle_by_qr_code, get_vehicle_parts, update_vehicle


router = APIRouter(prefix="/vehicles", tags=["vehicles"])


@router.get("", response_model=List[VehicleResponse])
def list_vehicles(
    status: Optional[str] = Query(None),
    assigned_to: Optional[int] = Query(None),
    store: Store = Depends(get_store),
):
    criteria = []
    if status:
        criteria.append(Vehicle.status == status)
    if assigned_to is not None:
        criteria.append(Vehicle.assigned_to == assigned_to)
    return store.vehicles.list(*criteria)


@router.get("/qr/{qr_code}", response_model=VehicleResponse)
def get_by_qr_code(qr_code: str, db: Session = Depends(get_db)):
    vehicle = get_vehicle_by_qr_code(db, qr_code)
    if vehicle is None:
        raise NotFoundError("Vehicle not found")
    return vehicle


@router.get("/{vehicle_id}", response_model=VehicleResponse)
def get_vehicle(vehicle_id: int, store: Store = Depends(get_store)):
    return store.vehicles.get_or_404(vehicle_id)


@router.post("", response_model=VehicleResponse, status_code=201)
def create(payload: VehicleCreate, db: Session = Depends(get_db), actor: Optional[User] = Depends(get_optional_user)):
    vehicle = create_vehicle(db, payload.model_dump())
    record_activity(db, actor.id if actor else None, "vehicle_added",
                    f"Added vehicle {vehicle.name} ({vehicle.vin})", vehicle.id, "vehicle")
    return vehicle


@router.put("/{vehicle_id}", response_model=VehicleResponse)
def update(vehicle_id: int, payload: VehicleUpdate, db: Session = Depends(get_db), actor: Optional[User] = Depends(get_optional_user)):
    vehicle = update_vehicle(db, vehicle_id, payload.model_dump(exclude_unset=True))
    if vehicle is None:
        raise NotFoundError("Vehicle not found")
    record_activity(db, actor.id if actor else None, "vehicle_updated",
                    f"Updated vehicle {vehicle.name}", vehicle.id, "vehicle")
    return vehicle


@router.delete("/{vehicle_id}", status_code=204)
def delete(vehicle_id: int, store: Store = Depends(get_store)):
    if not store.vehicles.delete(vehicle_id):
        raise NotFoundError("Vehicle not found")
    return Response(status_code=204)


@router.get("/{vehicle_id}/maintenance", response_model=List[MaintenanceResponse])
def list_vehicle_maintenance(vehicle_id: int, db: Session = Depends(get_db)):
    return get_maintenance_for_vehicle(db, vehicle_id)


@router.get("/{vehicle_id}/parts", response_model=List[VehiclePartResponse])
def list_vehicle_parts(vehicle_id: int, db: Session = Depends(get_db)):
    return get_vehicle_parts(db, vehicle_id)
