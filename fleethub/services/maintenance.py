"""
Maintenance lifecycle.

Statuses: pending -> scheduled -> completed, pending -> overdue -> completed.
"overdue" is also derived from due_date at read time, so a pending task past
its due date is reported overdue even if nobody has rewritten its status.
A completed task never moves again.
"""
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

import structlog
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..exceptions import InvalidTransitionError, NotFoundError, ValidationError
from ..models.models import Maintenance, User, Vehicle, VehiclePart, utcnow
from .notifications import notify_maintenance_assignment, notify_maintenance_decision
from .store import Store, drop_required_nulls


logger = structlog.get_logger(__name__)

OVERDUE_CANDIDATES = ("pending", "overdue")


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def due_state(task: Maintenance, now: Optional[datetime] = None) -> Optional[str]:
    """'overdue', 'upcoming' or None for tasks that are neither."""
    now = as_utc(now) or utcnow()
    due = as_utc(task.due_date)
    if due is None:
        return None
    if task.status in OVERDUE_CANDIDATES and now > due:
        return "overdue"
    if task.status == "pending" and now <= due:
        return "upcoming"
    return None


def is_overdue(task: Maintenance, now: Optional[datetime] = None) -> bool:
    return due_state(task, now) == "overdue"


def _safe_notify(db: Session, notify: Callable[[Session, Maintenance], Any], task: Maintenance) -> None:
    try:
        notify(db, task)
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("maintenance_notification_failed", maintenance_id=task.id, error=str(e))


def _require_vehicle(db: Session, vehicle_id: int) -> None:
    if db.get(Vehicle, vehicle_id) is None:
        raise ValidationError(f"Vehicle {vehicle_id} does not exist")


def _require_user(db: Session, user_id: Optional[int], field: str) -> None:
    if user_id is not None and db.get(User, user_id) is None:
        raise ValidationError(f"{field}: user {user_id} does not exist")


def create_maintenance(db: Session, fields: Dict[str, Any]) -> Maintenance:
    """
    Create a maintenance task.

    completed_date is always cleared at creation. Unscheduled tasks start
    as pending with approval_status pending.
    """
    data = dict(fields)
    _require_vehicle(db, data["vehicle_id"])
    _require_user(db, data.get("assigned_to"), "assigned_to")

    data["completed_date"] = None
    data.setdefault("status", "pending")
    if data.get("is_unscheduled"):
        data["status"] = "pending"
        data["approval_status"] = "pending"
        data["approved_by"] = None
    else:
        data["is_unscheduled"] = False
        data["approval_status"] = None
        data["approved_by"] = None

    task = Store(db).maintenance.create(data)
    logger.info("maintenance_created", maintenance_id=task.id, vehicle_id=task.vehicle_id,
                status=task.status, unscheduled=task.is_unscheduled)
    if task.assigned_to:
        _safe_notify(db, notify_maintenance_assignment, task)
    return task


def update_maintenance(
    db: Session,
    task_id: int,
    fields: Dict[str, Any],
    now: Optional[datetime] = None,
) -> Optional[Maintenance]:
    """
    Apply a sparse update. Returns None when the task does not exist.

    Moving to completed stamps completed_date (caller-supplied value wins).
    Leaving completed is rejected.
    """
    task = db.get(Maintenance, task_id)
    if task is None:
        return None

    data = drop_required_nulls(Maintenance, fields)
    if "vehicle_id" in data:
        _require_vehicle(db, data["vehicle_id"])
    if "assigned_to" in data:
        _require_user(db, data["assigned_to"], "assigned_to")

    current = task.status
    target = data.get("status") or current
    if current == "completed" and target != "completed":
        raise InvalidTransitionError("maintenance task", current, target)

    if target == "completed":
        if data.get("completed_date") is None:
            data.pop("completed_date", None)
            if current != "completed" or task.completed_date is None:
                data["completed_date"] = as_utc(now) or utcnow()
    else:
        # completed_date is only ever set on completion
        data.pop("completed_date", None)

    previous_assignee = task.assigned_to
    task = Store(db).maintenance.update(task_id, data)

    if current != "completed" and task.status == "completed":
        logger.info("maintenance_completed", maintenance_id=task.id, vehicle_id=task.vehicle_id,
                    parts_used=len(task.parts_used or []))
    elif current != task.status:
        logger.info("maintenance_status_changed", maintenance_id=task.id, previous=current, status=task.status)

    if task.assigned_to and task.assigned_to != previous_assignee:
        _safe_notify(db, notify_maintenance_assignment, task)
    return task


def complete_maintenance(
    db: Session,
    task_id: int,
    parts_used: Optional[List[Dict[str, int]]] = None,
    now: Optional[datetime] = None,
) -> Optional[Maintenance]:
    """
    Mark a task completed. parts_used is recorded only; stock is not
    decremented here.
    """
    fields: Dict[str, Any] = {"status": "completed"}
    if parts_used is not None:
        fields["parts_used"] = parts_used
    return update_maintenance(db, task_id, fields, now=now)


def decide_unscheduled(db: Session, task_id: int, approved: bool, decided_by: int) -> Maintenance:
    """
    Approve or reject an unscheduled task. Only approval_status and
    approved_by change; status is left to the caller.
    """
    task = db.get(Maintenance, task_id)
    if task is None:
        raise NotFoundError("Maintenance task not found")
    if not task.is_unscheduled:
        raise ValidationError("Only unscheduled maintenance requires approval")
    _require_user(db, decided_by, "approved_by")

    task.approval_status = "approved" if approved else "rejected"
    task.approved_by = decided_by
    db.commit()
    db.refresh(task)
    logger.info("maintenance_approval_decided", maintenance_id=task.id, approval_status=task.approval_status,
                decided_by=decided_by)
    _safe_notify(db, notify_maintenance_decision, task)
    return task


# ---------- QUERIES ----------
def get_maintenance_tasks(db: Session) -> List[Maintenance]:
    return db.query(Maintenance).order_by(Maintenance.id.asc()).all()


def get_maintenance_for_vehicle(db: Session, vehicle_id: int) -> List[Maintenance]:
    return db.query(Maintenance).filter(Maintenance.vehicle_id == vehicle_id).order_by(Maintenance.due_date.asc()).all()


def get_pending_maintenance(db: Session) -> List[Maintenance]:
    """Tasks whose status is pending or overdue."""
    return db.query(Maintenance).filter(
        or_(Maintenance.status == "pending", Maintenance.status == "overdue")
    ).order_by(Maintenance.due_date.asc()).all()


def get_overdue_maintenance(db: Session, now: Optional[datetime] = None) -> List[Maintenance]:
    return [t for t in get_pending_maintenance(db) if is_overdue(t, now)]


def get_unscheduled_maintenance(db: Session) -> List[Maintenance]:
    return db.query(Maintenance).filter(Maintenance.is_unscheduled.is_(True)).order_by(Maintenance.id.asc()).all()


def get_pending_approval_maintenance(db: Session) -> List[Maintenance]:
    return db.query(Maintenance).filter(
        Maintenance.is_unscheduled.is_(True),
        Maintenance.approval_status == "pending",
    ).order_by(Maintenance.id.asc()).all()


# ---------- VEHICLE PART SCHEDULES ----------
def get_vehicle_parts_needing_maintenance(
    db: Session,
    vehicle_ids: Optional[Iterable[int]] = None,
    now: Optional[datetime] = None,
) -> List[VehiclePart]:
    """
    Bindings due by date (next_maintenance_date already passed) or by
    mileage (vehicle mileage reached next_maintenance_mileage). Each
    binding appears once even if both conditions hold.
    """
    now = as_utc(now) or utcnow()
    query = db.query(VehiclePart, Vehicle.mileage).join(Vehicle, Vehicle.id == VehiclePart.vehicle_id)
    if vehicle_ids is not None:
        ids = list(vehicle_ids)
        if not ids:
            return []
        query = query.filter(VehiclePart.vehicle_id.in_(ids))

    due = []
    for binding, mileage in query.order_by(VehiclePart.id.asc()).all():
        next_date = as_utc(binding.next_maintenance_date)
        by_date = next_date is not None and next_date < now
        by_mileage = (
            binding.next_maintenance_mileage is not None
            and mileage is not None
            and mileage >= binding.next_maintenance_mileage
        )
        if by_date or by_mileage:
            due.append(binding)
    return due


def get_maintenance_reminders(db: Session, user_id: int, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """Due part replacements on the vehicles assigned to a driver."""
    vehicle_ids = [v.id for v in db.query(Vehicle.id).filter(Vehicle.assigned_to == user_id).all()]
    if not vehicle_ids:
        return []
    reminders = []
    for binding in get_vehicle_parts_needing_maintenance(db, vehicle_ids, now=now):
        reminders.append({
            "type": "part",
            "vehicle_part_id": binding.id,
            "vehicle_id": binding.vehicle_id,
            "part_id": binding.part_id,
            "description": f"Part {binding.part_id} maintenance due for vehicle {binding.vehicle_id}",
            "next_maintenance_date": binding.next_maintenance_date,
            "next_maintenance_mileage": binding.next_maintenance_mileage,
        })
    return reminders
