import pytest

from fleethub.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from fleethub.models.models import Maintenance, Notification
from fleethub.services.maintenance import (
    complete_maintenance,
    create_maintenance,
    decide_unscheduled,
    due_state,
    get_overdue_maintenance,
    get_pending_approval_maintenance,
    get_pending_maintenance,
    get_vehicle_parts_needing_maintenance,
    get_maintenance_reminders,
    update_maintenance,
)
from tests.conftest import days_from_now


@pytest.fixture
def vehicle(make_vehicle):
    return make_vehicle()


def _task(db, vehicle, **extra):
    fields = {"vehicle_id": vehicle.id, "type": "oil_change", "due_date": days_from_now(7)}
    fields.update(extra)
    return create_maintenance(db, fields)


class TestDueState:
    def test_pending_past_due_is_overdue(self):
        task = Maintenance(status="pending", due_date=days_from_now(-1))
        assert due_state(task) == "overdue"

    def test_overdue_status_past_due_is_overdue(self):
        task = Maintenance(status="overdue", due_date=days_from_now(-1))
        assert due_state(task) == "overdue"

    def test_pending_future_is_upcoming(self):
        task = Maintenance(status="pending", due_date=days_from_now(2))
        assert due_state(task) == "upcoming"

    @pytest.mark.parametrize("status", ["completed", "scheduled"])
    def test_other_statuses_never_overdue(self, status):
        task = Maintenance(status=status, due_date=days_from_now(-30))
        assert due_state(task) is None

    def test_naive_due_date_treated_as_utc(self):
        task = Maintenance(status="pending", due_date=days_from_now(-1).replace(tzinfo=None))
        assert due_state(task) == "overdue"


class TestCreate:
    def test_defaults(self, db, vehicle):
        task = _task(db, vehicle)
        assert task.status == "pending"
        assert task.is_unscheduled is False
        assert task.approval_status is None
        assert task.completed_date is None

    def test_completed_date_is_cleared(self, db, vehicle):
        task = _task(db, vehicle, completed_date=days_from_now(-1))
        assert task.completed_date is None

    def test_unscheduled_starts_pending_approval(self, db, vehicle):
        task = _task(db, vehicle, is_unscheduled=True, status="scheduled")
        assert task.status == "pending"
        assert task.approval_status == "pending"
        assert [t.id for t in get_pending_approval_maintenance(db)] == [task.id]

    def test_unknown_vehicle_rejected(self, db):
        with pytest.raises(ValidationError):
            create_maintenance(db, {"vehicle_id": 99, "type": "oil_change", "due_date": days_from_now(1)})

    def test_assignee_is_notified(self, db, vehicle, make_user):
        driver = make_user()
        task = _task(db, vehicle, assigned_to=driver.id)
        notes = db.query(Notification).filter(Notification.user_id == driver.id).all()
        assert len(notes) == 1
        assert notes[0].related_id == task.id
        assert notes[0].is_read is False


class TestCompletion:
    def test_completion_stamps_date(self, db, vehicle):
        task = _task(db, vehicle)
        done = complete_maintenance(db, task.id, parts_used=[{"part_id": 1, "quantity": 2}])
        assert done.status == "completed"
        assert done.completed_date is not None
        assert done.parts_used == [{"part_id": 1, "quantity": 2}]

    def test_completing_twice_keeps_date(self, db, vehicle):
        task = _task(db, vehicle)
        first = complete_maintenance(db, task.id).completed_date
        second = complete_maintenance(db, task.id).completed_date
        assert first is not None
        assert second == first

    def test_completed_cannot_reopen(self, db, vehicle):
        task = _task(db, vehicle)
        complete_maintenance(db, task.id)
        with pytest.raises(InvalidTransitionError):
            update_maintenance(db, task.id, {"status": "pending"})

    def test_completed_task_still_editable(self, db, vehicle):
        task = _task(db, vehicle)
        complete_maintenance(db, task.id)
        updated = update_maintenance(db, task.id, {"notes": "Invoice attached", "cost": 120.5})
        assert updated.status == "completed"
        assert updated.completed_date is not None
        assert updated.cost == 120.5

    def test_completed_date_ignored_before_completion(self, db, vehicle):
        task = _task(db, vehicle)
        updated = update_maintenance(db, task.id, {"status": "scheduled", "completed_date": days_from_now(0)})
        assert updated.completed_date is None

    def test_update_missing_returns_none(self, db):
        assert update_maintenance(db, 404, {"notes": "x"}) is None

    def test_parts_stock_untouched(self, db, vehicle, make_part):
        part = make_part(quantity=10)
        task = _task(db, vehicle)
        complete_maintenance(db, task.id, parts_used=[{"part_id": part.id, "quantity": 4}])
        db.refresh(part)
        assert part.quantity == 10


class TestQueries:
    def test_pending_is_pending_or_overdue(self, db, vehicle):
        pending = _task(db, vehicle, status="pending")
        overdue = _task(db, vehicle, status="overdue", due_date=days_from_now(-3))
        _task(db, vehicle, status="scheduled")
        done = _task(db, vehicle)
        complete_maintenance(db, done.id)
        assert {t.id for t in get_pending_maintenance(db)} == {pending.id, overdue.id}

    def test_overdue_is_derived_from_due_date(self, db, vehicle):
        late = _task(db, vehicle, due_date=days_from_now(-2))
        _task(db, vehicle, due_date=days_from_now(5))
        _task(db, vehicle, status="scheduled", due_date=days_from_now(-2))
        assert [t.id for t in get_overdue_maintenance(db)] == [late.id]


class TestApproval:
    def test_approve_sets_only_approval_fields(self, db, vehicle, make_user):
        admin = make_user(role="company_admin")
        driver = make_user()
        task = _task(db, vehicle, is_unscheduled=True, assigned_to=driver.id)
        decided = decide_unscheduled(db, task.id, approved=True, decided_by=admin.id)
        assert decided.approval_status == "approved"
        assert decided.approved_by == admin.id
        assert decided.status == "pending"
        assert get_pending_approval_maintenance(db) == []
        types = [n.type for n in db.query(Notification).filter(Notification.user_id == driver.id).all()]
        assert sorted(types) == ["approval", "assignment"]

    def test_reject(self, db, vehicle, make_user):
        admin = make_user(role="company_admin")
        task = _task(db, vehicle, is_unscheduled=True)
        assert decide_unscheduled(db, task.id, approved=False, decided_by=admin.id).approval_status == "rejected"

    def test_scheduled_task_cannot_be_approved(self, db, vehicle, make_user):
        admin = make_user(role="company_admin")
        task = _task(db, vehicle)
        with pytest.raises(ValidationError):
            decide_unscheduled(db, task.id, approved=True, decided_by=admin.id)

    def test_missing_task(self, db, make_user):
        admin = make_user(role="company_admin")
        with pytest.raises(NotFoundError):
            decide_unscheduled(db, 404, approved=True, decided_by=admin.id)


class TestVehiclePartsDue:
    def test_due_by_date_or_mileage_listed_once(self, db, store, make_vehicle, make_part):
        truck = make_vehicle(mileage=45000)
        van = make_vehicle(mileage=1000)
        part = make_part()
        by_date = store.vehicle_parts.create({"vehicle_id": van.id, "part_id": part.id,
                                              "next_maintenance_date": days_from_now(-1)})
        by_mileage = store.vehicle_parts.create({"vehicle_id": truck.id, "part_id": part.id,
                                                 "next_maintenance_mileage": 40000})
        both = store.vehicle_parts.create({"vehicle_id": truck.id, "part_id": part.id,
                                           "next_maintenance_date": days_from_now(-1),
                                           "next_maintenance_mileage": 45000})
        store.vehicle_parts.create({"vehicle_id": truck.id, "part_id": part.id,
                                    "next_maintenance_date": days_from_now(30),
                                    "next_maintenance_mileage": 90000})

        due = get_vehicle_parts_needing_maintenance(db)
        assert [b.id for b in due] == [by_date.id, by_mileage.id, both.id]
        assert [b.id for b in get_vehicle_parts_needing_maintenance(db, [van.id])] == [by_date.id]
        assert get_vehicle_parts_needing_maintenance(db, []) == []

    def test_reminders_for_assigned_driver(self, db, store, make_user, make_vehicle, make_part):
        driver = make_user()
        mine = make_vehicle(assigned_to=driver.id, mileage=50000)
        other = make_vehicle(mileage=50000)
        part = make_part()
        binding = store.vehicle_parts.create({"vehicle_id": mine.id, "part_id": part.id,
                                              "next_maintenance_mileage": 45000})
        store.vehicle_parts.create({"vehicle_id": other.id, "part_id": part.id,
                                    "next_maintenance_mileage": 45000})
        reminders = get_maintenance_reminders(db, driver.id)
        assert [r["vehicle_part_id"] for r in reminders] == [binding.id]
        assert get_maintenance_reminders(db, 404) == []
