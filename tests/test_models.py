import pytest

from palety_core.models import (
    Assignment,
    Destination,
    Pallet,
    PalletStatus,
    PieceType,
    StackItem,
)


def test_destination_parse_accepts_codes_and_names():
    assert Destination.parse("okleiniarka") is Destination.EDGEBANDING
    assert Destination.parse("SHIPPING") is Destination.SHIPPING
    assert Destination.parse(Destination.CUTTING) is Destination.CUTTING
    assert Destination.DRILLING.label == "CNC drilling"


def test_destination_parse_rejects_unknown():
    with pytest.raises(ValueError):
        Destination.parse("LAKIERNIA")


def test_service_status_mapping():
    assert PalletStatus.from_service("gotowa_do_transportu") is PalletStatus.CLOSED
    assert PalletStatus.from_service("Zamknieta") is PalletStatus.CLOSED
    assert PalletStatus.from_service("otwarta") is PalletStatus.OPEN
    assert PalletStatus.from_service(None) is PalletStatus.OPEN


def test_piece_available_is_planned_minus_assigned():
    piece = PieceType(id=1, length=600, width=300, planned=10, assigned=4)
    assert piece.available == 6
    assert piece.thickness == 18


def test_piece_rejects_over_assignment():
    with pytest.raises(ValueError):
        PieceType(id=1, length=600, width=300, planned=3, assigned=4)


def test_assignment_requires_positive_quantity():
    piece = PieceType(id=1, length=600, width=300, planned=3)
    with pytest.raises(ValueError):
        Assignment(pallet_id=1, piece=piece, quantity=0)
    with pytest.raises(ValueError):
        StackItem(piece, -1)


def test_pallet_derived_values():
    white = PieceType(id=1, length=600, width=300, color="white", unit_weight=2.0, planned=10)
    oak = PieceType(id=2, length=600, width=300, color="oak", unit_weight=3.0, planned=10)
    white_again = PieceType(id=3, length=400, width=300, color="white", unit_weight=1.0, planned=10)
    pallet = Pallet(
        id=7,
        destination=Destination.WAREHOUSE,
        assignments=(
            Assignment(7, white, 4),
            Assignment(7, oak, 2),
            Assignment(7, white_again, 1),
        ),
    )

    assert pallet.piece_count == 7
    assert pallet.levels == 2
    assert pallet.weight == pytest.approx(4 * 2.0 + 2 * 3.0 + 1.0)
    assert pallet.colors == ["white", "oak"]
    assert pallet.quantity_of(2) == 2
    assert pallet.quantity_of(99) == 0
    assert [item.quantity for item in pallet.items] == [4, 2, 1]
