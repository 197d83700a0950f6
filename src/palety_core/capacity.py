"""Weight and stack-height estimates for pieces loaded onto a pallet.

Pieces are laid side by side, ``units_per_level`` pieces per level, so the
stack only grows by one thickness every ``units_per_level`` pieces. All items
on one pallet are assumed to share the thickness of the first item.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, List, Protocol, Sequence

from .settings import load_settings
from .units import KG, MM

if TYPE_CHECKING:  # pragma: no cover
    from .models import PieceType


class Stackable(Protocol):
    piece: "PieceType"
    quantity: int


def resolve_units_per_level(units_per_level: int | None) -> int:
    return units_per_level if units_per_level is not None else load_settings().units_per_level


def unit_weight(piece: "PieceType", density: float | None = None) -> KG:
    """Weight of a single piece in kg.

    An explicit ``unit_weight`` wins; otherwise the weight is estimated from
    the board volume and the particleboard density. Callers must not pass
    pieces with zero or negative dimensions.
    """

    if piece.unit_weight is not None and piece.unit_weight > 0:
        return piece.unit_weight
    if density is None:
        density = load_settings().density_kg_m3
    area_m2 = piece.length * piece.width / 1_000_000
    thickness_m = piece.thickness / 1000
    return area_m2 * thickness_m * density


def stacked_weight(items: Iterable[Stackable], density: float | None = None) -> KG:
    return sum(unit_weight(item.piece, density) * item.quantity for item in items)


def levels_for(piece_count: int, units_per_level: int | None = None) -> int:
    per_level = resolve_units_per_level(units_per_level)
    if piece_count <= 0 or per_level <= 0:
        return 0
    return math.ceil(piece_count / per_level)


def stacked_height(items: Sequence[Stackable], units_per_level: int | None = None) -> MM:
    items = list(items)
    if not items:
        return 0.0
    total_pieces = sum(item.quantity for item in items)
    return levels_for(total_pieces, units_per_level) * items[0].piece.thickness


def stacked_area(items: Iterable[Stackable]) -> float:
    """Total board area in m²."""
    return sum(item.piece.length * item.piece.width / 1_000_000 * item.quantity for item in items)


def utilization_percent(
    weight: KG, height: MM, max_weight: KG, max_height: MM
) -> float:
    # The tighter limit wins.
    weight_percent = weight / max_weight * 100 if max_weight > 0 else 0.0
    height_percent = height / max_height * 100 if max_height > 0 else 0.0
    return max(weight_percent, height_percent)


@dataclass(frozen=True)
class StackStats:
    weight: KG
    height: MM
    levels: int
    piece_count: int
    area_m2: float
    weight_percent: float
    height_percent: float
    colors: List[str]


def stack_stats(
    items: Sequence[Stackable],
    max_weight: KG,
    max_height: MM,
    *,
    units_per_level: int | None = None,
    density: float | None = None,
) -> StackStats:
    items = list(items)
    weight = stacked_weight(items, density)
    height = stacked_height(items, units_per_level)
    piece_count = sum(item.quantity for item in items)
    colors: List[str] = []
    for item in items:
        if item.piece.color and item.piece.color not in colors:
            colors.append(item.piece.color)
    return StackStats(
        weight=weight,
        height=height,
        levels=levels_for(piece_count, units_per_level),
        piece_count=piece_count,
        area_m2=stacked_area(items),
        weight_percent=weight / max_weight * 100 if max_weight > 0 else 0.0,
        height_percent=height / max_height * 100 if max_height > 0 else 0.0,
        colors=colors,
    )
