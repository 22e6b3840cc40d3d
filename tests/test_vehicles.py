import random
import re

import pytest

from fleethub.exceptions import ValidationError
from fleethub.services.vehicles import (
    create_vehicle_part,
    generate_qr_code,
    get_vehicle_by_qr_code,
    get_vehicles_by_user,
    unique_qr_code,
)

QR_PATTERN = re.compile(r"^VEH-\d+-[0-9a-z]{8}$")


def test_generated_qr_codes_match_format_and_are_unique(make_vehicle):
    vehicles = [make_vehicle() for _ in range(10)]
    codes = [v.qr_code for v in vehicles]
    assert all(QR_PATTERN.match(code) for code in codes)
    assert len(set(codes)) == len(codes)


def test_explicit_qr_code_kept(db, make_vehicle):
    vehicle = make_vehicle(qr_code="VEH-1-abcdefgh")
    assert get_vehicle_by_qr_code(db, "VEH-1-abcdefgh").id == vehicle.id


def test_qr_code_collision_regenerates(db, make_vehicle):
    taken = generate_qr_code(random.Random(7))
    make_vehicle(qr_code=taken)
    code = unique_qr_code(db, random.Random(7))
    assert code != taken
    assert QR_PATTERN.match(code)


def test_vehicles_by_user(db, make_user, make_vehicle):
    driver = make_user()
    mine = make_vehicle(assigned_to=driver.id)
    make_vehicle()
    assert [v.id for v in get_vehicles_by_user(db, driver.id)] == [mine.id]


def test_unknown_assignee_rejected(make_vehicle):
    with pytest.raises(ValidationError):
        make_vehicle(assigned_to=404)


def test_deleting_driver_unassigns_vehicle(db, store, make_user, make_vehicle):
    driver = make_user()
    vehicle = make_vehicle(assigned_to=driver.id)
    assert store.users.delete(driver.id) is True
    db.refresh(vehicle)
    assert vehicle.assigned_to is None


class TestVehicleParts:
    def test_interval_defaults_from_part(self, db, make_vehicle, make_part):
        vehicle = make_vehicle()
        part = make_part(maintenance_interval=5000)
        binding = create_vehicle_part(db, {"vehicle_id": vehicle.id, "part_id": part.id})
        assert binding.maintenance_interval == 5000

    def test_missing_references_rejected(self, db, make_vehicle, make_part):
        vehicle = make_vehicle()
        part = make_part()
        with pytest.raises(ValidationError):
            create_vehicle_part(db, {"vehicle_id": 404, "part_id": part.id})
        with pytest.raises(ValidationError):
            create_vehicle_part(db, {"vehicle_id": vehicle.id, "part_id": 404})
