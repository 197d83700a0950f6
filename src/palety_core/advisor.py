from __future__ import annotations

import math
from typing import TYPE_CHECKING, Sequence

from .capacity import (
    Stackable,
    resolve_units_per_level,
    stacked_height,
    stacked_weight,
    unit_weight,
)
from .limits import AddCheck
from .units import KG, MM, format_float

if TYPE_CHECKING:  # pragma: no cover
    from .models import Pallet, PieceType


def max_addable(
    piece: "PieceType",
    existing: Sequence[Stackable],
    available: int,
    max_weight: KG,
    max_height: MM,
    *,
    units_per_level: int | None = None,
    density: float | None = None,
) -> int:
    """Largest quantity of ``piece`` that can still go onto the pallet.

    Heuristic: a partially filled level left by another piece-type is treated
    as usable by ``piece``, which over-estimates when thicknesses differ.
    """

    per_level = resolve_units_per_level(units_per_level)
    if per_level <= 0:
        return 0
    existing = list(existing)

    weight_budget = max_weight - stacked_weight(existing, density)
    piece_weight = unit_weight(piece, density)
    if piece_weight > 0:
        by_weight = max(math.floor(weight_budget / piece_weight), 0)
    else:
        by_weight = max(available, 0)

    current_count = sum(item.quantity for item in existing)
    height_budget = max_height - stacked_height(existing, per_level)
    if piece.thickness > 0:
        remaining_levels = math.floor(height_budget / piece.thickness)
    else:
        remaining_levels = 0
    by_height = remaining_levels * per_level - (current_count % per_level)
    by_height = max(by_height, 0)

    return max(min(available, by_weight, by_height), 0)


def suggest_for_pallet(
    piece: "PieceType",
    pallet: "Pallet",
    *,
    units_per_level: int | None = None,
    density: float | None = None,
) -> int:
    """Upper bound for a quantity input when adding ``piece`` to ``pallet``."""
    if pallet.is_closed:
        return 0
    return max_addable(
        piece,
        pallet.items,
        piece.available,
        pallet.max_weight,
        pallet.max_height,
        units_per_level=units_per_level,
        density=density,
    )


def can_merge(first: "Pallet", second: "Pallet") -> AddCheck:
    if first.destination is not second.destination:
        return AddCheck(False, "Pallets have different destinations")

    max_weight = min(first.max_weight, second.max_weight)
    total_weight = first.weight + second.weight
    if total_weight > max_weight:
        return AddCheck(
            False,
            f"Combined weight exceeds the limit ({format_float(total_weight, 1)} kg > "
            f"{max_weight:g} kg)",
        )

    # Pieces can be re-levelled when merging, so heights are not summed.
    max_height = min(first.max_height, second.max_height)
    height = max(first.height, second.height)
    if height > max_height:
        return AddCheck(
            False, f"Stack height exceeds the limit ({height:g} mm > {max_height:g} mm)"
        )
    return AddCheck(True)
