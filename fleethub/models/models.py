from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    String,
    DateTime,
    Boolean,
    ForeignKey,
    Integer,
    Float,
    JSON,
    Text,
    Index,
)
from sqlalchemy.orm import Mapped, mapped_column

from ..db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def int_pk() -> Mapped[int]:
    return mapped_column(Integer, primary_key=True, autoincrement=True)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = int_pk()
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(50), nullable=False, default="driver")  # company_admin|driver
    email: Mapped[Optional[str]] = mapped_column(String(255))
    phone: Mapped[Optional[str]] = mapped_column(String(50))
    profile_image: Mapped[Optional[str]] = mapped_column(String(500))
    notification_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class Vehicle(Base):
    __tablename__ = "vehicles"

    id: Mapped[int] = int_pk()
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)  # truck|sedan|van|other
    vin: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    license_plate: Mapped[Optional[str]] = mapped_column(String(50), index=True)
    make: Mapped[str] = mapped_column(String(100), nullable=False)
    model: Mapped[str] = mapped_column(String(100), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    mileage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Weak reference: deleting the user does not cascade
    assigned_to: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="active", index=True)  # active|maintenance|out_of_service
    next_maintenance_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    next_maintenance_mileage: Mapped[Optional[int]] = mapped_column(Integer)
    qr_code: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)


class Part(Base):
    __tablename__ = "parts"

    id: Mapped[int] = int_pk()
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    sku: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    is_standard: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    minimum_stock: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    supplier: Mapped[Optional[str]] = mapped_column(String(255))
    location: Mapped[Optional[str]] = mapped_column(String(255))
    image_url: Mapped[Optional[str]] = mapped_column(String(500))
    maintenance_interval: Mapped[Optional[int]] = mapped_column(Integer)  # Default miles between replacements
    last_restocked: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    compatible_vehicles: Mapped[Optional[list]] = mapped_column(JSON)  # ["Ford Transit", "Toyota Camry"]


class VehiclePart(Base):
    """Scheduled-replacement binding of a part to one vehicle"""
    __tablename__ = "vehicle_parts"

    id: Mapped[int] = int_pk()
    vehicle_id: Mapped[int] = mapped_column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    part_id: Mapped[int] = mapped_column(Integer, ForeignKey("parts.id", ondelete="CASCADE"), nullable=False, index=True)
    is_custom: Mapped[bool] = mapped_column(Boolean, default=False)
    maintenance_interval: Mapped[Optional[int]] = mapped_column(Integer)  # Mileage delta
    last_maintenance_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    last_maintenance_mileage: Mapped[Optional[int]] = mapped_column(Integer)
    next_maintenance_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    next_maintenance_mileage: Mapped[Optional[int]] = mapped_column(Integer)
    notes: Mapped[Optional[str]] = mapped_column(Text)


class Maintenance(Base):
    __tablename__ = "maintenance"

    id: Mapped[int] = int_pk()
    vehicle_id: Mapped[int] = mapped_column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(100), nullable=False)  # oil_change|brake_inspection|tire_rotation|...
    description: Mapped[Optional[str]] = mapped_column(Text)
    due_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="pending", index=True)  # pending|scheduled|overdue|completed
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default="normal")  # low|normal|high|critical
    assigned_to: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True)
    completed_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    notes: Mapped[Optional[str]] = mapped_column(Text)
    parts_used: Mapped[Optional[list]] = mapped_column(JSON)  # [{part_id, quantity}]
    cost: Mapped[Optional[float]] = mapped_column(Float)
    bill: Mapped[Optional[dict]] = mapped_column(JSON)  # {items: [...], labor: ..., ...}
    bill_image_url: Mapped[Optional[str]] = mapped_column(String(500))
    is_unscheduled: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    approval_status: Mapped[Optional[str]] = mapped_column(String(20), index=True)  # pending|approved|rejected
    approved_by: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id", ondelete="SET NULL"))

    __table_args__ = (
        Index('idx_maintenance_unscheduled_approval', 'is_unscheduled', 'approval_status'),
    )


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[int] = int_pk()
    order_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="pending", index=True)  # pending|approved|ordered|received|cancelled
    created_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    ordered_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    received_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_by: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    supplier: Mapped[Optional[str]] = mapped_column(String(255))
    total_amount: Mapped[Optional[float]] = mapped_column(Float)
    notes: Mapped[Optional[str]] = mapped_column(Text)


class OrderSequence(Base):
    """Per-year counter backing order numbers"""
    __tablename__ = "order_sequences"

    year: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    last_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class OrderItem(Base):
    __tablename__ = "order_items"

    id: Mapped[int] = int_pk()
    order_id: Mapped[int] = mapped_column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    part_id: Mapped[int] = mapped_column(Integer, ForeignKey("parts.id", ondelete="RESTRICT"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)  # Unit price at order time


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[int] = int_pk()
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)  # maintenance|approval|assignment|...
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    related_id: Mapped[Optional[int]] = mapped_column(Integer)
    related_type: Mapped[Optional[str]] = mapped_column(String(50))
    link: Mapped[Optional[str]] = mapped_column(String(500))

    __table_args__ = (
        Index('idx_notifications_user_read', 'user_id', 'is_read'),
        Index('idx_notifications_created', 'created_at'),
    )


class ActivityLog(Base):
    """Append-only activity trail"""
    __tablename__ = "activity_logs"

    id: Mapped[int] = int_pk()
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(100), nullable=False)  # maintenance_completed|part_added|order_placed|...
    description: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    related_id: Mapped[Optional[int]] = mapped_column(Integer)
    related_type: Mapped[Optional[str]] = mapped_column(String(50))
