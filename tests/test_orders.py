from datetime import datetime, timezone

import pytest

from fleethub.exceptions import InvalidTransitionError, ValidationError
from fleethub.services.orders import (
    add_order_item,
    calculate_total,
    can_transition,
    change_order_status,
    create_order,
    get_order_items,
    next_order_number,
)


@pytest.fixture
def buyer(make_user):
    return make_user(role="company_admin")


class TestOrderNumbers:
    def test_sequential_within_year(self, db):
        assert next_order_number(db, 2024) == "PO-2024-0001"
        assert next_order_number(db, 2024) == "PO-2024-0002"
        db.commit()
        assert next_order_number(db, 2024) == "PO-2024-0003"

    def test_sequence_restarts_each_year(self, db):
        next_order_number(db, 2024)
        next_order_number(db, 2024)
        assert next_order_number(db, 2025) == "PO-2025-0001"

    def test_orders_get_increasing_numbers(self, db, buyer):
        now = datetime(2024, 3, 1, tzinfo=timezone.utc)
        first = create_order(db, {"created_by": buyer.id}, now=now)
        second = create_order(db, {"created_by": buyer.id}, now=now)
        assert (first.order_number, second.order_number) == ("PO-2024-0001", "PO-2024-0002")

    def test_deleting_an_order_does_not_reuse_number(self, db, store, buyer):
        now = datetime(2024, 3, 1, tzinfo=timezone.utc)
        first = create_order(db, {"created_by": buyer.id}, now=now)
        store.orders.delete(first.id)
        assert create_order(db, {"created_by": buyer.id}, now=now).order_number == "PO-2024-0002"


class TestCreateOrder:
    def test_items_snapshot_part_price(self, db, store, buyer, make_part):
        filters = make_part(price=8.99)
        pads = make_part(price=45.99)
        order = create_order(db, {"created_by": buyer.id, "supplier": "AutoParts Inc."}, [
            {"part_id": filters.id, "quantity": 20},
            {"part_id": pads.id, "quantity": 2, "price": 40.0},
        ])
        assert order.status == "pending"
        assert order.total_amount == pytest.approx(20 * 8.99 + 2 * 40.0)

        store.parts.update(filters.id, {"price": 12.5})
        items = get_order_items(db, order.id)
        assert [i.price for i in items] == [8.99, 40.0]

    def test_explicit_total_kept(self, db, buyer, make_part):
        part = make_part(price=10)
        order = create_order(db, {"created_by": buyer.id, "total_amount": 5.0}, [{"part_id": part.id, "quantity": 3}])
        assert order.total_amount == 5.0

    def test_unknown_part_rejected(self, db, buyer):
        with pytest.raises(ValidationError):
            create_order(db, {"created_by": buyer.id}, [{"part_id": 404, "quantity": 1}])

    def test_unknown_creator_rejected(self, db):
        with pytest.raises(ValidationError):
            create_order(db, {"created_by": 404})

    def test_added_item_does_not_touch_total(self, db, buyer, make_part):
        part = make_part(price=10)
        order = create_order(db, {"created_by": buyer.id}, [{"part_id": part.id, "quantity": 1}])
        item = add_order_item(db, {"order_id": order.id, "part_id": part.id, "quantity": 4})
        db.refresh(order)
        assert item.price == 10
        assert order.total_amount == 10

    def test_add_item_to_missing_order(self, db, make_part):
        part = make_part()
        with pytest.raises(ValidationError):
            add_order_item(db, {"order_id": 404, "part_id": part.id, "quantity": 1})


def test_calculate_total():
    assert calculate_total([{"quantity": 3, "price": 1.1}, {"quantity": 1, "price": 0.7}]) == 4.0


@pytest.mark.parametrize(
    "current,target,allowed",
    [
        ("pending", "approved", True),
        ("pending", "ordered", True),
        ("approved", "received", True),
        ("ordered", "approved", False),
        ("received", "pending", False),
        ("pending", "cancelled", True),
        ("ordered", "cancelled", True),
        ("received", "cancelled", False),
        ("cancelled", "pending", False),
        ("approved", "approved", True),
    ],
)
def test_can_transition(current, target, allowed):
    assert can_transition(current, target) is allowed


class TestStatusChanges:
    def test_dates_stamped(self, db, buyer):
        order = create_order(db, {"created_by": buyer.id})
        assert order.ordered_date is None
        ordered = change_order_status(db, order.id, "ordered")
        assert ordered.ordered_date is not None
        assert ordered.received_date is None
        received = change_order_status(db, order.id, "received")
        assert received.received_date is not None

    def test_backwards_move_rejected(self, db, buyer):
        order = create_order(db, {"created_by": buyer.id})
        change_order_status(db, order.id, "received")
        with pytest.raises(InvalidTransitionError):
            change_order_status(db, order.id, "pending")

    def test_missing_order(self, db):
        assert change_order_status(db, 404, "approved") is None
