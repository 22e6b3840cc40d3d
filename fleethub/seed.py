"""
Demo data for local development.

Loaded once: nothing happens when any user already exists.
"""
from datetime import datetime, timedelta, timezone

import structlog
from sqlalchemy.orm import Session

from .models.models import User
from .services.activity import create_activity_log
from .services.maintenance import create_maintenance
from .services.orders import create_order
from .services.store import Store
from .services.users import create_user
from .services.vehicles import create_vehicle


logger = structlog.get_logger(__name__)

DEMO_PASSWORD = "password"


def _days(n: int) -> datetime:
    return datetime.now(timezone.utc) + timedelta(days=n)


def seed_demo_data(db: Session) -> bool:
    """Returns True when data was written."""
    if db.query(User).count() > 0:
        logger.info("seed_skipped", reason="users_exist")
        return False

    store = Store(db)
    admin = create_user(db, {
        "username": "admin", "password": DEMO_PASSWORD, "name": "John Ritter",
        "role": "company_admin", "email": "admin@fleetmaster.com",
    })
    mike = create_user(db, {
        "username": "mjohnson", "password": DEMO_PASSWORD, "name": "Mike Johnson",
        "role": "driver", "email": "mike@fleetmaster.com",
    })
    sarah = create_user(db, {
        "username": "slee", "password": DEMO_PASSWORD, "name": "Sarah Lee",
        "role": "driver", "email": "sarah@fleetmaster.com",
    })
    david = create_user(db, {
        "username": "dchen", "password": DEMO_PASSWORD, "name": "David Chen",
        "role": "driver", "email": "david@fleetmaster.com",
    })

    truck = create_vehicle(db, {
        "name": "Truck #103", "type": "truck", "vin": "WVWAA71K08W201030", "license_plate": "TRK-103",
        "make": "Ford", "model": "F-150", "year": 2020, "mileage": 45000, "assigned_to": mike.id,
    })
    sedan = create_vehicle(db, {
        "name": "Sedan #087", "type": "sedan", "vin": "1HGCM82633A123456", "license_plate": "SED-087",
        "make": "Honda", "model": "Accord", "year": 2021, "mileage": 28000, "assigned_to": sarah.id,
    })
    van = create_vehicle(db, {
        "name": "Van #042", "type": "van", "vin": "2T3BFREV5DW789012", "license_plate": "VAN-042",
        "make": "Toyota", "model": "Sienna", "year": 2022, "mileage": 15000, "assigned_to": david.id,
    })

    parts = {}
    for row in (
        ("Oil Filters (Premium)", "OIL-FIL-P42", "Filters", 2, 20, 8.99, "AutoParts Inc.", "Shelf A1", 5000),
        ("Brake Pads (Front)", "BRK-PAD-F15", "Brakes", 3, 15, 45.99, "BrakeMasters", "Shelf B3", 30000),
        ('Wiper Blades (20")', "WIP-BLD-20", "Exterior", 4, 10, 12.99, "CleanView Auto", "Shelf C2", None),
        ("Air Filters", "AIR-FIL-A23", "Filters", 12, 8, 14.99, "AutoParts Inc.", "Shelf A2", 15000),
    ):
        name, sku, category, quantity, minimum, price, supplier, location, interval = row
        parts[sku] = store.parts.create({
            "name": name, "sku": sku, "category": category, "quantity": quantity,
            "minimum_stock": minimum, "price": price, "supplier": supplier, "location": location,
            "maintenance_interval": interval, "compatible_vehicles": ["Ford", "Honda", "Toyota"],
            "last_restocked": _days(-30),
        })

    store.vehicle_parts.create({
        "vehicle_id": truck.id, "part_id": parts["OIL-FIL-P42"].id, "maintenance_interval": 5000,
        "last_maintenance_date": _days(-100), "last_maintenance_mileage": 35000,
        "next_maintenance_date": _days(80), "next_maintenance_mileage": 40000,
    })
    store.vehicle_parts.create({
        "vehicle_id": truck.id, "part_id": parts["BRK-PAD-F15"].id, "maintenance_interval": 30000,
        "last_maintenance_mileage": 15000, "next_maintenance_mileage": 45000,
    })
    store.vehicle_parts.create({
        "vehicle_id": sedan.id, "part_id": parts["WIP-BLD-20"].id,
        "last_maintenance_date": _days(-150), "next_maintenance_date": _days(-5),
    })
    store.vehicle_parts.create({
        "vehicle_id": van.id, "part_id": parts["AIR-FIL-A23"].id, "maintenance_interval": 15000,
        "last_maintenance_mileage": 5000, "next_maintenance_mileage": 20000,
    })

    create_maintenance(db, {
        "vehicle_id": truck.id, "type": "oil_change", "description": "Oil Change & Filter",
        "due_date": _days(7), "priority": "normal", "assigned_to": mike.id,
        "notes": "Use synthetic oil for this vehicle",
    })
    create_maintenance(db, {
        "vehicle_id": sedan.id, "type": "brake_inspection", "description": "Brake Inspection",
        "due_date": _days(3), "status": "scheduled", "priority": "high", "assigned_to": sarah.id,
        "notes": "Customer reported squealing noise when braking",
    })
    create_maintenance(db, {
        "vehicle_id": van.id, "type": "tire_rotation", "description": "Tire Rotation",
        "due_date": _days(-2), "priority": "normal", "assigned_to": david.id,
        "notes": "Also check for unusual wear patterns",
    })
    repair = create_maintenance(db, {
        "vehicle_id": truck.id, "type": "unscheduled_repair", "description": "Check Engine Light On",
        "due_date": _days(1), "priority": "high", "assigned_to": mike.id, "is_unscheduled": True,
        "notes": "Light came on during route. Engine seems hesitant.",
    })

    order = create_order(db, {"created_by": admin.id, "supplier": "AutoParts Inc."}, [
        {"part_id": parts["OIL-FIL-P42"].id, "quantity": 20},
        {"part_id": parts["AIR-FIL-A23"].id, "quantity": 5},
    ])

    create_activity_log(db, mike.id, "unscheduled_maintenance_requested",
                        "Requested check engine light diagnosis for Truck #103", repair.id, "maintenance")
    create_activity_log(db, admin.id, "order_placed", f"Placed order {order.order_number}", order.id, "order")

    logger.info("seed_completed", users=4, vehicles=3, parts=len(parts))
    return True
