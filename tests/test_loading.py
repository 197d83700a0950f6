import pytest

from palety_core.errors import ConstraintViolation, PalletClosedError, ValidationError
from palety_core.loading import add_units, merge_items, remove_units
from palety_core.models import Assignment, Destination, Pallet, PalletStatus, PieceType, StackItem


def _piece(piece_id=1, unit_weight=1.0):
    return PieceType(id=piece_id, length=600, width=300, unit_weight=unit_weight, planned=500)


def _pallet(*assignments, status=PalletStatus.OPEN):
    return Pallet(id=1, destination=Destination.WAREHOUSE, status=status, assignments=assignments)


def test_add_units_merges_into_existing_assignment():
    piece = _piece()
    pallet = add_units(_pallet(), piece, 5, units_per_level=50)
    pallet = add_units(pallet, piece, 3, units_per_level=50)

    assert len(pallet.assignments) == 1
    assert pallet.quantity_of(piece.id) == 8


def test_add_units_rejects_closed_pallet():
    with pytest.raises(PalletClosedError):
        add_units(_pallet(status=PalletStatus.CLOSED), _piece(), 1)


def test_add_units_rejects_non_positive_quantity():
    with pytest.raises(ValidationError) as excinfo:
        add_units(_pallet(), _piece(), 0)
    assert excinfo.value.errors == ["Quantity must be greater than 0."]


def test_add_units_enforces_limits():
    heavy = _piece(unit_weight=100)
    pallet = _pallet(Assignment(1, heavy, 6))

    with pytest.raises(ConstraintViolation) as excinfo:
        add_units(pallet, heavy, 2, units_per_level=50)
    assert excinfo.value.reason.startswith("Weight limit exceeded (800.0 kg > 700 kg")


def test_remove_units_deletes_empty_assignment():
    a, b = _piece(1), _piece(2)
    pallet = _pallet(Assignment(1, a, 5), Assignment(1, b, 2))

    partial = remove_units(pallet, a.id, 2)
    assert partial.quantity_of(a.id) == 3

    emptied = remove_units(partial, a.id, 3)
    assert [x.piece.id for x in emptied.assignments] == [b.id]

    cleared = remove_units(pallet, b.id)
    assert cleared.quantity_of(b.id) == 0
    assert cleared.quantity_of(a.id) == 5


def test_merge_items_keeps_one_entry_per_piece():
    a, b = _piece(1), _piece(2)
    items = merge_items([StackItem(a, 2)], a, 3)
    items = merge_items(items, b, 1)

    assert [(item.piece.id, item.quantity) for item in items] == [(1, 5), (2, 1)]
