from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .capacity import Stackable, stacked_height, stacked_weight
from .settings import load_settings
from .units import KG, MM, format_float


@dataclass(frozen=True)
class LimitReport:
    over_weight: bool
    over_height: bool
    weight_percent: float
    height_percent: float
    warn_weight: bool
    warn_height: bool

    @property
    def ok(self) -> bool:
        return not (self.over_weight or self.over_height)


@dataclass(frozen=True)
class AddCheck:
    allowed: bool
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.allowed


def _percent(value: float, limit: float) -> float:
    if limit <= 0:
        return float("inf") if value > 0 else 0.0
    return value / limit * 100


def evaluate(
    weight: KG,
    height: MM,
    max_weight: KG,
    max_height: MM,
    *,
    warn_ratio: float | None = None,
) -> LimitReport:
    if warn_ratio is None:
        warn_ratio = load_settings().warn_ratio
    weight_percent = _percent(weight, max_weight)
    height_percent = _percent(height, max_height)
    warn_at = warn_ratio * 100
    return LimitReport(
        over_weight=weight > max_weight,
        over_height=height > max_height,
        weight_percent=weight_percent,
        height_percent=height_percent,
        warn_weight=weight_percent >= warn_at,
        warn_height=height_percent >= warn_at,
    )


def weight_limit_reason(weight: KG, max_weight: KG) -> str:
    return (
        f"Weight limit exceeded ({format_float(weight, 1)} kg > {max_weight:g} kg, "
        f"over by {format_float(weight - max_weight, 1)} kg)"
    )


def height_limit_reason(height: MM, max_height: MM) -> str:
    return (
        f"Height limit exceeded ({height:g} mm > {max_height:g} mm, "
        f"over by {height - max_height:g} mm)"
    )


def can_add(
    existing: Sequence[Stackable],
    candidate: Sequence[Stackable],
    max_weight: KG,
    max_height: MM,
    *,
    units_per_level: int | None = None,
    density: float | None = None,
) -> AddCheck:
    """Check whether ``candidate`` fits on top of ``existing``.

    Every change to a pallet's contents has to pass this check first.
    """

    combined = [*existing, *candidate]
    weight = stacked_weight(combined, density)
    if weight > max_weight:
        return AddCheck(False, weight_limit_reason(weight, max_weight))
    height = stacked_height(combined, units_per_level)
    if height > max_height:
        return AddCheck(False, height_limit_reason(height, max_height))
    return AddCheck(True)
