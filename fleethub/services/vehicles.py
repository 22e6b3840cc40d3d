import random
import string
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy.orm import Session

from ..config import settings
from ..exceptions import ConflictError, ValidationError
from ..models.models import User, Vehicle, VehiclePart, Part
from .store import Store


logger = structlog.get_logger(__name__)

_BASE36 = string.digits + string.ascii_lowercase
QR_ATTEMPTS = 20


def generate_qr_code(rng: Optional[random.Random] = None) -> str:
    """VEH-<0..9999>-<8 base36 chars>"""
    rng = rng or random
    tail = "".join(rng.choice(_BASE36) for _ in range(8))
    return f"{settings.qr_code_prefix}-{rng.randint(0, 9999)}-{tail}"


def unique_qr_code(db: Session, rng: Optional[random.Random] = None) -> str:
    for _ in range(QR_ATTEMPTS):
        code = generate_qr_code(rng)
        if get_vehicle_by_qr_code(db, code) is None:
            return code
    raise ConflictError("Could not generate a unique QR code")


def get_vehicle_by_qr_code(db: Session, qr_code: str) -> Optional[Vehicle]:
    return db.query(Vehicle).filter(Vehicle.qr_code == qr_code).first()


def get_vehicles_by_user(db: Session, user_id: int) -> List[Vehicle]:
    return db.query(Vehicle).filter(Vehicle.assigned_to == user_id).order_by(Vehicle.id.asc()).all()


def _require_user(db: Session, user_id: Optional[int]) -> None:
    if user_id is not None and db.get(User, user_id) is None:
        raise ValidationError(f"assigned_to: user {user_id} does not exist")


def create_vehicle(db: Session, fields: Dict[str, Any]) -> Vehicle:
    data = dict(fields)
    _require_user(db, data.get("assigned_to"))
    if not data.get("qr_code"):
        data["qr_code"] = unique_qr_code(db)
    vehicle = Store(db).vehicles.create(data)
    logger.info("vehicle_created", vehicle_id=vehicle.id, vin=vehicle.vin, qr_code=vehicle.qr_code)
    return vehicle


def update_vehicle(db: Session, vehicle_id: int, fields: Dict[str, Any]) -> Optional[Vehicle]:
    if "assigned_to" in fields:
        _require_user(db, fields["assigned_to"])
    return Store(db).vehicles.update(vehicle_id, fields)


# ---------- VEHICLE PARTS ----------
def get_vehicle_parts(db: Session, vehicle_id: int) -> List[VehiclePart]:
    return db.query(VehiclePart).filter(VehiclePart.vehicle_id == vehicle_id).order_by(VehiclePart.id.asc()).all()


def create_vehicle_part(db: Session, fields: Dict[str, Any]) -> VehiclePart:
    if db.get(Vehicle, fields["vehicle_id"]) is None:
        raise ValidationError(f"Vehicle {fields['vehicle_id']} does not exist")
    part = db.get(Part, fields["part_id"])
    if part is None:
        raise ValidationError(f"Part {fields['part_id']} does not exist")
    data = dict(fields)
    if data.get("maintenance_interval") is None:
        data["maintenance_interval"] = part.maintenance_interval
    return Store(db).vehicle_parts.create(data)
