import pytest

from palety_core.models import Assignment, Destination, Pallet, PieceType
from palety_core.summary import summarize


def _pallet(pallet_id, destination, unit_weight, quantity):
    piece = PieceType(id=pallet_id, length=600, width=300, unit_weight=unit_weight, planned=500)
    return Pallet(
        id=pallet_id,
        destination=destination,
        assignments=(Assignment(pallet_id, piece, quantity),),
    )


def test_empty_summary():
    summary = summarize([])

    assert summary.pallet_count == 0
    assert summary.total_weight == 0.0
    assert summary.by_destination == {}


def test_summary_totals_and_averages():
    first = _pallet(1, Destination.WAREHOUSE, 10, 35)
    second = _pallet(2, Destination.SHIPPING, 5, 28)
    third = _pallet(3, Destination.WAREHOUSE, 1, 10)

    summary = summarize([first, second, third])

    assert summary.pallet_count == 3
    assert summary.total_pieces == 73
    assert summary.total_weight == pytest.approx(500.0)
    assert summary.weight_utilization == pytest.approx((50 + 20 + 10 / 7) / 3)
    assert summary.average_height == pytest.approx(
        (first.height + second.height + third.height) / 3
    )
    assert summary.height_utilization == pytest.approx(
        sum(p.height / 1440 * 100 for p in (first, second, third)) / 3
    )
    warehouse = summary.by_destination[Destination.WAREHOUSE]
    assert warehouse.pallet_count == 2
    assert warehouse.pieces == 45
    assert warehouse.weight == pytest.approx(360.0)
