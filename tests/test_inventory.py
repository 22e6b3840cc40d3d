import pytest

from fleethub.exceptions import NotFoundError, ValidationError
from fleethub.models.models import Part
from fleethub.services.inventory import (
    get_low_stock_parts,
    get_parts_by_kind,
    is_low_stock,
    list_low_stock,
    restock_part,
)


@pytest.mark.parametrize(
    "quantity,minimum,expected",
    [
        (2, 20, True),
        (20, 20, False),
        (25, 20, False),
        (0, 0, False),
        (0, 1, True),
    ],
)
def test_is_low_stock(quantity, minimum, expected):
    assert is_low_stock(Part(quantity=quantity, minimum_stock=minimum)) is expected


def test_low_stock_query_matches_rule(db, make_part):
    parts = [
        make_part(quantity=2, minimum_stock=20),
        make_part(quantity=12, minimum_stock=8),
        make_part(quantity=0, minimum_stock=0),
        make_part(quantity=4, minimum_stock=10),
    ]
    expected = {p.id for p in list_low_stock(parts)}
    assert {p.id for p in get_low_stock_parts(db)} == expected == {parts[0].id, parts[3].id}


def test_parts_by_kind(db, make_part):
    standard = make_part(is_standard=True)
    custom = make_part(is_standard=False)
    assert [p.id for p in get_parts_by_kind(db, standard=True)] == [standard.id]
    assert [p.id for p in get_parts_by_kind(db, standard=False)] == [custom.id]


class TestRestock:
    def test_restock_leaves_low_stock(self, db, make_part):
        part = make_part(quantity=3, minimum_stock=15)
        assert part.last_restocked is None
        restocked = restock_part(db, part.id, 20)
        assert restocked.quantity == 23
        assert restocked.last_restocked is not None
        assert not is_low_stock(restocked)

    def test_restock_rejects_non_positive(self, db, make_part):
        part = make_part()
        with pytest.raises(ValidationError):
            restock_part(db, part.id, 0)

    def test_restock_missing_part(self, db):
        with pytest.raises(NotFoundError):
            restock_part(db, 404, 5)
