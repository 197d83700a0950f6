import pytest

from palety_core.capacity import (
    levels_for,
    stack_stats,
    stacked_height,
    stacked_weight,
    unit_weight,
    utilization_percent,
)
from palety_core.models import PieceType, StackItem


def _piece(piece_id=1, length=400, width=300, thickness=18, **kwargs):
    return PieceType(id=piece_id, length=length, width=width, thickness=thickness, **kwargs)


def test_unit_weight_from_board_volume():
    assert unit_weight(_piece(), density=650) == pytest.approx(0.4 * 0.3 * 0.018 * 650)
    assert unit_weight(_piece()) == pytest.approx(1.404)


def test_explicit_unit_weight_wins():
    assert unit_weight(_piece(unit_weight=2.5), density=650) == 2.5
    # Zero means "unknown" and falls back to the estimate.
    assert unit_weight(_piece(unit_weight=0), density=650) == pytest.approx(1.404)


def test_levels_and_height_for_120_pieces():
    items = [StackItem(_piece(), 120)]
    assert levels_for(120, 50) == 3
    assert stacked_height(items, 50) == pytest.approx(54.0)


def test_height_only_grows_at_level_boundaries():
    piece = _piece()
    heights = {n: stacked_height([StackItem(piece, n)], 50) for n in range(1, 52)}

    assert {heights[n] for n in range(1, 51)} == {18.0}
    assert heights[51] - heights[50] == pytest.approx(18.0)


def test_levels_never_negative():
    assert levels_for(0, 50) == 0
    assert levels_for(-5, 50) == 0
    assert levels_for(10, 0) == 0


def test_height_uses_first_item_thickness():
    thin = _piece(1, thickness=10)
    thick = _piece(2, thickness=25)
    assert stacked_height([], 4) == 0.0
    assert stacked_height([StackItem(thin, 3), StackItem(thick, 2)], 4) == pytest.approx(20.0)


def test_weight_is_monotonic_in_quantity():
    light = _piece(1, unit_weight=0.5)
    heavy = _piece(2, length=800, width=600)
    previous = 0.0
    for quantity in range(0, 40):
        weight = stacked_weight([StackItem(light, 7), StackItem(heavy, quantity)], density=650)
        assert weight >= previous
        previous = weight


def test_stack_stats_summary():
    piece = _piece(color="white")
    stats = stack_stats([StackItem(piece, 100)], 700, 1440, units_per_level=50, density=650)

    assert stats.weight == pytest.approx(140.4)
    assert stats.height == pytest.approx(36.0)
    assert stats.levels == 2
    assert stats.piece_count == 100
    assert stats.area_m2 == pytest.approx(12.0)
    assert stats.weight_percent == pytest.approx(140.4 / 700 * 100)
    assert stats.colors == ["white"]


def test_utilization_is_the_tighter_limit():
    assert utilization_percent(350, 1080, 700, 1440) == pytest.approx(75.0)
    assert utilization_percent(630, 360, 700, 1440) == pytest.approx(90.0)
    assert utilization_percent(10, 10, 0, 0) == 0.0
