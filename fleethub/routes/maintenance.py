from typing import List, Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ..auth.security import get_optional_user, require_roles
from ..db import get_db
from ..exceptions import NotFoundError
from ..models.models import User
from ..schemas.fleet import MaintenanceApproval, MaintenanceCreate, MaintenanceResponse, MaintenanceUpdate
from ..services import maintenance as svc
from ..services.activity import record_activity
from ..services.store import Store, get_store


router = APIRouter(prefix="/maintenance", tags=["maintenance"])


@router.get("", response_model=List[MaintenanceResponse])
def list_maintenance(db: Session = Depends(get_db)):
    return svc.get_maintenance_tasks(db)


@router.get("/pending", response_model=List[MaintenanceResponse])
def list_pending(db: Session = Depends(get_db)):
    """Status pending or overdue"""
    return svc.get_pending_maintenance(db)


@router.get("/overdue", response_model=List[MaintenanceResponse])
def list_overdue(db: Session = Depends(get_db)):
    return svc.get_overdue_maintenance(db)


@router.get("/unscheduled", response_model=List[MaintenanceResponse])
def list_unscheduled(db: Session = Depends(get_db)):
    return svc.get_unscheduled_maintenance(db)


@router.get("/pending-approval", response_model=List[MaintenanceResponse])
def list_pending_approval(db: Session = Depends(get_db)):
    return svc.get_pending_approval_maintenance(db)


@router.get("/{task_id}", response_model=MaintenanceResponse)
def get_task(task_id: int, store: Store = Depends(get_store)):
    return store.maintenance.get_or_404(task_id)


@router.post("", response_model=MaintenanceResponse, status_code=201)
def create(payload: MaintenanceCreate, db: Session = Depends(get_db), actor: Optional[User] = Depends(get_optional_user)):
    task = svc.create_maintenance(db, payload.model_dump())
    action = "unscheduled_maintenance_requested" if task.is_unscheduled else "maintenance_created"
    record_activity(db, actor.id if actor else None, action,
                    f"{task.type} for vehicle {task.vehicle_id}", task.id, "maintenance")
    return task


@router.put("/{task_id}", response_model=MaintenanceResponse)
def update(task_id: int, payload: MaintenanceUpdate, db: Session = Depends(get_db), actor: Optional[User] = Depends(get_optional_user)):
    existing = Store(db).maintenance.get_or_404(task_id)
    previous_status = existing.status
    task = svc.update_maintenance(db, task_id, payload.model_dump(exclude_unset=True))
    completed_now = previous_status != "completed" and task.status == "completed"
    action = "maintenance_completed" if completed_now else "maintenance_updated"
    record_activity(db, actor.id if actor else None, action,
                    f"{task.type} for vehicle {task.vehicle_id}", task.id, "maintenance")
    return task


@router.put("/{task_id}/approval", response_model=MaintenanceResponse)
def decide_approval(
    task_id: int,
    payload: MaintenanceApproval,
    db: Session = Depends(get_db),
    admin: User = Depends(require_roles("company_admin")),
):
    task = svc.decide_unscheduled(db, task_id, payload.approved, admin.id)
    record_activity(db, admin.id, f"maintenance_{task.approval_status}",
                    f"{task.approval_status.capitalize()} unscheduled {task.type} for vehicle {task.vehicle_id}",
                    task.id, "maintenance")
    return task


@router.delete("/{task_id}", status_code=204)
def delete(task_id: int, store: Store = Depends(get_store)):
    if not store.maintenance.delete(task_id):
        raise NotFoundError("Maintenance task not found")
    return Response(status_code=204)
