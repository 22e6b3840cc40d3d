from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, computed_field

from ..services.maintenance import due_state as classify_due_state


# Enums
class VehicleStatus(str, Enum):
    active = "active"
    maintenance = "maintenance"
    out_of_service = "out_of_service"


class MaintenanceStatus(str, Enum):
    pending = "pending"
    scheduled = "scheduled"
    overdue = "overdue"
    completed = "completed"


class MaintenancePriority(str, Enum):
    low = "low"
    normal = "normal"
    high = "high"
    critical = "critical"


class ApprovalStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


# Vehicle Schemas
class VehicleBase(BaseModel):
    name: str
    type: str  # truck|sedan|van|other
    vin: str = Field(min_length=1)
    license_plate: Optional[str] = None
    make: str
    model: str
    year: int
    mileage: int = Field(default=0, ge=0)
    assigned_to: Optional[int] = None
    status: VehicleStatus = VehicleStatus.active
    next_maintenance_date: Optional[datetime] = None
    next_maintenance_mileage: Optional[int] = None

    class Config:
        use_enum_values = True


class VehicleCreate(VehicleBase):
    qr_code: Optional[str] = None  # Generated when absent


class VehicleUpdate(BaseModel):
    name: Optional[str] = None
    type: Optional[str] = None
    vin: Optional[str] = Field(default=None, min_length=1)
    license_plate: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    mileage: Optional[int] = Field(default=None, ge=0)
    assigned_to: Optional[int] = None
    status: Optional[VehicleStatus] = None
    next_maintenance_date: Optional[datetime] = None
    next_maintenance_mileage: Optional[int] = None
    qr_code: Optional[str] = None

    class Config:
        extra = "forbid"
        use_enum_values = True


class VehicleResponse(VehicleBase):
    id: int
    qr_code: str

    class Config:
        from_attributes = True


# Vehicle Part Schemas
class VehiclePartBase(BaseModel):
    vehicle_id: int
    part_id: int
    is_custom: bool = False
    maintenance_interval: Optional[int] = Field(default=None, ge=0)
    last_maintenance_date: Optional[datetime] = None
    last_maintenance_mileage: Optional[int] = None
    next_maintenance_date: Optional[datetime] = None
    next_maintenance_mileage: Optional[int] = None
    notes: Optional[str] = None


class VehiclePartCreate(VehiclePartBase):
    pass


class VehiclePartUpdate(BaseModel):
    is_custom: Optional[bool] = None
    maintenance_interval: Optional[int] = Field(default=None, ge=0)
    last_maintenance_date: Optional[datetime] = None
    last_maintenance_mileage: Optional[int] = None
    next_maintenance_date: Optional[datetime] = None
    next_maintenance_mileage: Optional[int] = None
    notes: Optional[str] = None

    class Config:
        extra = "forbid"
        use_enum_values = True


class VehiclePartResponse(VehiclePartBase):
    id: int

    class Config:
        from_attributes = True


# Maintenance Schemas
class PartUsage(BaseModel):
    part_id: int
    quantity: int = Field(gt=0)


class MaintenanceBase(BaseModel):
    vehicle_id: int
    type: str
    description: Optional[str] = None
    due_date: datetime
    priority: MaintenancePriority = MaintenancePriority.normal
    assigned_to: Optional[int] = None
    notes: Optional[str] = None
    parts_used: Optional[List[PartUsage]] = None
    cost: Optional[float] = Field(default=None, ge=0)
    bill: Optional[Dict[str, Any]] = None
    bill_image_url: Optional[str] = None

    class Config:
        use_enum_values = True


class MaintenanceCreate(MaintenanceBase):
    status: MaintenanceStatus = MaintenanceStatus.pending
    is_unscheduled: bool = False
    completed_date: Optional[datetime] = None  # Accepted but always cleared


class MaintenanceUpdate(BaseModel):
    vehicle_id: Optional[int] = None
    type: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    status: Optional[MaintenanceStatus] = None
    priority: Optional[MaintenancePriority] = None
    assigned_to: Optional[int] = None
    completed_date: Optional[datetime] = None
    notes: Optional[str] = None
    parts_used: Optional[List[PartUsage]] = None
    cost: Optional[float] = Field(default=None, ge=0)
    bill: Optional[Dict[str, Any]] = None
    bill_image_url: Optional[str] = None

    class Config:
        extra = "forbid"
        use_enum_values = True


class MaintenanceApproval(BaseModel):
    approved: bool


class MaintenanceResponse(MaintenanceBase):
    id: int
    status: MaintenanceStatus
    completed_date: Optional[datetime] = None
    is_unscheduled: bool = False
    approval_status: Optional[ApprovalStatus] = None
    approved_by: Optional[int] = None

    @computed_field
    @property
    def due_state(self) -> Optional[str]:
        return classify_due_state(self)

    class Config:
        from_attributes = True


class MaintenanceReminder(BaseModel):
    type: str
    vehicle_part_id: int
    vehicle_id: int
    part_id: int
    description: str
    next_maintenance_date: Optional[datetime] = None
    next_maintenance_mileage: Optional[int] = None
