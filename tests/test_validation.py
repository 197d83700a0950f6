from palety_core.models import Assignment, Destination, Pallet, PalletStatus, PieceType, StackItem
from palety_core.validation import (
    ERROR_DESTINATION_REQUIRED,
    ERROR_ITEMS_REQUIRED,
    validate_addition,
    validate_close,
    validate_items,
    validate_pallet_form,
)

PIECE = PieceType(id=3, length=600, width=300, planned=20)


def test_duplicate_and_zero_quantities_are_reported():
    errors = validate_items([StackItem(PIECE, 2), StackItem(PIECE, 0)])

    assert errors == [
        "Item 2: Quantity must be greater than 0.",
        "Item 2: piece 3 is listed more than once.",
    ]


def test_form_requires_destination_and_sane_limits():
    errors = validate_pallet_form(
        None, [StackItem(PIECE, 1)], max_weight=800, max_height=1440, notes="x" * 501
    )

    assert errors[0] == ERROR_DESTINATION_REQUIRED
    assert "Max weight must be between 0 and 700 kg." in errors
    assert "Notes must not exceed 500 characters." in errors
    assert len(errors) == 3


def test_valid_form_has_no_errors():
    assert validate_pallet_form(Destination.CUTTING, [StackItem(PIECE, 4)]) == []


def test_new_pallet_needs_items_but_edit_may_empty_it():
    assert validate_pallet_form(Destination.CUTTING, [], require_items=True) == [
        ERROR_ITEMS_REQUIRED
    ]
    assert validate_pallet_form(Destination.CUTTING, []) == []


def test_addition_bounded_by_available():
    assert validate_addition(0, 5) == ["Quantity must be greater than 0."]
    assert validate_addition(6, 5) == ["Only 5 pcs available."]
    assert validate_addition(5, 5) == []


def test_close_requires_open_non_empty_pallet():
    empty = Pallet(id=1, destination=Destination.WAREHOUSE)
    loaded = Pallet(
        id=2, destination=Destination.WAREHOUSE, assignments=(Assignment(2, PIECE, 1),)
    )
    closed = Pallet(id=3, destination=Destination.WAREHOUSE, status=PalletStatus.CLOSED)

    assert validate_close(empty) == ["Pallet is empty."]
    assert validate_close(loaded) == []
    assert validate_close(closed) == ["Pallet is already closed."]
