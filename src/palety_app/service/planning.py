from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Protocol, Sequence

from palety_core.models import Destination, Pallet, PieceType, StackItem
from palety_core.settings import (
    DEFAULT_THICKNESS_MM,
    MAX_HEIGHT_MM,
    MAX_WEIGHT_KG,
)


class PlanningServiceError(Exception):
    """The planning service could not answer the request."""


class PlanningConnectionError(PlanningServiceError):
    pass


class PlanningNotFound(PlanningServiceError):
    pass


@dataclass
class ServiceResult:
    success: bool
    reason: str | None = None
    pallet_id: int | None = None
    number: str | None = None
    stats: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def failed(cls, reason: str) -> "ServiceResult":
        return cls(False, reason)


@dataclass(frozen=True)
class PlanOptions:
    max_weight: float = MAX_WEIGHT_KG
    max_height: float = MAX_HEIGHT_MM
    max_pieces_per_pallet: int = 200
    thickness: float = DEFAULT_THICKNESS_MM
    strategy: str = "kolor"
    pallet_type: str = "EURO"


class PlanningService(Protocol):
    """Owner of the authoritative pallet state for production orders."""

    def fetch_pallets(self, order_id: int) -> List[Pallet]: ...

    def fetch_pieces(self, position_id: int) -> List[PieceType]: ...

    def create_pallet(
        self,
        position_id: int,
        destination: Destination,
        items: Sequence[StackItem],
        max_weight: float,
        max_height: float,
        notes: str | None = None,
    ) -> ServiceResult: ...

    def edit_pallet(
        self,
        pallet_id: int,
        items: Sequence[StackItem],
        destination: Destination | None = None,
        notes: str | None = None,
    ) -> ServiceResult: ...

    def delete_pallet(self, pallet_id: int) -> ServiceResult: ...

    def close_pallet(self, pallet_id: int, notes: str | None = None) -> ServiceResult: ...

    def transfer_units(
        self,
        source_id: int | None,
        target_id: int,
        piece_id: int,
        quantity: int,
    ) -> ServiceResult: ...

    def plan_pallets(self, order_id: int, options: PlanOptions) -> ServiceResult: ...

    def delete_all(self, order_id: int) -> ServiceResult: ...
