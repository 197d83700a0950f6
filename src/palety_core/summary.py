from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Sequence

from .models import Destination, Pallet


@dataclass
class DestinationTotals:
    pallet_count: int = 0
    pieces: int = 0
    weight: float = 0.0


@dataclass
class PalletSummary:
    pallet_count: int = 0
    total_pieces: int = 0
    total_weight: float = 0.0
    average_height: float = 0.0
    weight_utilization: float = 0.0
    height_utilization: float = 0.0
    by_destination: Dict[Destination, DestinationTotals] = field(default_factory=dict)


def summarize(pallets: Sequence[Pallet]) -> PalletSummary:
    summary = PalletSummary(pallet_count=len(pallets))
    if not pallets:
        return summary

    height_sum = 0.0
    weight_percent_sum = 0.0
    height_percent_sum = 0.0
    for pallet in pallets:
        pieces = pallet.piece_count
        weight = pallet.weight
        height = pallet.height
        summary.total_pieces += pieces
        summary.total_weight += weight
        height_sum += height
        if pallet.max_weight > 0:
            weight_percent_sum += weight / pallet.max_weight * 100
        if pallet.max_height > 0:
            height_percent_sum += height / pallet.max_height * 100

        totals = summary.by_destination.setdefault(pallet.destination, DestinationTotals())
        totals.pallet_count += 1
        totals.pieces += pieces
        totals.weight += weight

    summary.average_height = height_sum / len(pallets)
    summary.weight_utilization = weight_percent_sum / len(pallets)
    summary.height_utilization = height_percent_sum / len(pallets)
    return summary
