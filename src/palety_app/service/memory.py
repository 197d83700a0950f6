from __future__ import annotations

from dataclasses import replace
from typing import Dict, Iterable, List, Sequence

from palety_core.errors import ConstraintViolation, PalletClosedError, ValidationError
from palety_core.loading import add_units, remove_units
from palety_core.models import (
    Assignment,
    Destination,
    Pallet,
    PalletStatus,
    PieceType,
    StackItem,
)
from palety_core.validation import validate_items

from .planning import PlanningNotFound, PlanOptions, ServiceResult


class MemoryPlanningService:
    """Planning service kept in process memory.

    Pallets of every order share one id sequence. Availability of a piece is
    derived from the assignments that exist at the time of the call.
    """

    def __init__(self, pieces: Iterable[PieceType] = (), order_id: int = 1) -> None:
        self.order_id = order_id
        self._pieces: Dict[int, PieceType] = {piece.id: piece for piece in pieces}
        self._pallets: Dict[int, Pallet] = {}
        self._next_id = 1
        self.calls: List[str] = []

    def _assigned(self, piece_id: int) -> int:
        return sum(pallet.quantity_of(piece_id) for pallet in self._pallets.values())

    def _piece(self, piece_id: int) -> PieceType:
        piece = self._pieces.get(piece_id)
        if piece is None:
            raise PlanningNotFound(f"Piece {piece_id} does not exist")
        return replace(piece, assigned=self._assigned(piece_id))

    def _pallet(self, pallet_id: int) -> Pallet:
        pallet = self._pallets.get(pallet_id)
        if pallet is None:
            raise PlanningNotFound(f"Pallet {pallet_id} does not exist")
        return pallet

    def _fill(self, pallet: Pallet, items: Sequence[StackItem]) -> Pallet:
        for item in items:
            piece = self._piece(item.piece.id)
            if item.quantity > piece.available:
                raise ValidationError(
                    [f"Only {piece.available} pcs of piece {piece.id} available."]
                )
            pallet = add_units(pallet, self._pieces[piece.id], item.quantity)
        return pallet

    def fetch_pallets(self, order_id: int) -> List[Pallet]:
        self.calls.append("fetch_pallets")
        if order_id != self.order_id:
            return []
        return list(self._pallets.values())

    def fetch_pieces(self, position_id: int) -> List[PieceType]:
        self.calls.append("fetch_pieces")
        return [
            self._piece(piece_id)
            for piece_id, piece in self._pieces.items()
            if piece.position_id in (None, position_id)
        ]

    def create_pallet(
        self,
        position_id: int,
        destination: Destination,
        items: Sequence[StackItem],
        max_weight: float,
        max_height: float,
        notes: str | None = None,
    ) -> ServiceResult:
        self.calls.append("create_pallet")
        errors = validate_items(items)
        if errors:
            return ServiceResult.failed("; ".join(errors))
        pallet_id = self._next_id
        self._next_id += 1
        pallet = Pallet(
            id=pallet_id,
            destination=destination,
            max_weight=max_weight,
            max_height=max_height,
            number=f"PAL-{self.order_id}-{pallet_id:03d}",
            notes=notes or "",
        )
        try:
            pallet = self._fill(pallet, items)
        except (ValidationError, ConstraintViolation) as exc:
            return ServiceResult.failed(str(exc))
        self._pallets[pallet_id] = pallet
        return ServiceResult(True, pallet_id=pallet_id, number=pallet.number)

    def edit_pallet(
        self,
        pallet_id: int,
        items: Sequence[StackItem],
        destination: Destination | None = None,
        notes: str | None = None,
    ) -> ServiceResult:
        self.calls.append("edit_pallet")
        pallet = self._pallet(pallet_id)
        if pallet.is_closed:
            return ServiceResult.failed(str(PalletClosedError(pallet_id)))
        errors = validate_items(items)
        if errors:
            return ServiceResult.failed("; ".join(errors))
        emptied = replace(
            pallet,
            assignments=(),
            destination=destination or pallet.destination,
            notes=pallet.notes if notes is None else notes,
        )
        # Units already on this pallet count as available for the rewrite.
        self._pallets[pallet_id] = emptied
        try:
            self._pallets[pallet_id] = self._fill(emptied, items)
        except (ValidationError, ConstraintViolation) as exc:
            self._pallets[pallet_id] = pallet
            return ServiceResult.failed(str(exc))
        return ServiceResult(True, pallet_id=pallet_id)

    def delete_pallet(self, pallet_id: int) -> ServiceResult:
        self.calls.append("delete_pallet")
        if self._pallets.pop(pallet_id, None) is None:
            return ServiceResult.failed(f"Pallet {pallet_id} does not exist")
        return ServiceResult(True, pallet_id=pallet_id)

    def close_pallet(self, pallet_id: int, notes: str | None = None) -> ServiceResult:
        self.calls.append("close_pallet")
        pallet = self._pallet(pallet_id)
        if pallet.is_closed:
            return ServiceResult.failed("Pallet is already closed.")
        self._pallets[pallet_id] = replace(
            pallet, status=PalletStatus.CLOSED, notes=notes or pallet.notes
        )
        return ServiceResult(True, pallet_id=pallet_id)

    def transfer_units(
        self,
        source_id: int | None,
        target_id: int,
        piece_id: int,
        quantity: int,
    ) -> ServiceResult:
        self.calls.append("transfer_units")
        if source_id == target_id:
            return ServiceResult.failed("Source and target pallet must differ")
        target = self._pallet(target_id)
        piece = self._piece(piece_id)
        try:
            if source_id is None:
                if quantity > piece.available:
                    return ServiceResult.failed(f"Only {piece.available} pcs available.")
                moved = add_units(target, self._pieces[piece_id], quantity)
                self._pallets[target_id] = moved
                return ServiceResult(True, pallet_id=target_id)
            source = self._pallet(source_id)
            if quantity > source.quantity_of(piece_id):
                return ServiceResult.failed(
                    f"Only {source.quantity_of(piece_id)} pcs on pallet {source_id}."
                )
            moved = add_units(target, self._pieces[piece_id], quantity)
            emptied = remove_units(source, piece_id, quantity)
        except (ValidationError, ConstraintViolation, PalletClosedError) as exc:
            return ServiceResult.failed(str(exc))
        self._pallets[target_id] = moved
        self._pallets[source_id] = emptied
        return ServiceResult(True, pallet_id=target_id)

    def plan_pallets(self, order_id: int, options: PlanOptions) -> ServiceResult:
        self.calls.append("plan_pallets")
        return ServiceResult.failed("Automatic planning is not available in memory")

    def delete_all(self, order_id: int) -> ServiceResult:
        self.calls.append("delete_all")
        removed = len(self._pallets) if order_id == self.order_id else 0
        if removed:
            self._pallets.clear()
        return ServiceResult(True, stats={"usuniete": removed})

    def put_pallet(self, pallet: Pallet) -> Pallet:
        """Store a prepared pallet as-is, e.g. one produced elsewhere."""
        for a in pallet.assignments:
            if a.piece.id not in self._pieces:
                self._pieces[a.piece.id] = replace(
                    a.piece, planned=max(a.piece.planned, a.quantity), assigned=0
                )
        assignments = tuple(
            Assignment(pallet.id, a.piece, a.quantity) for a in pallet.assignments
        )
        pallet = replace(pallet, assignments=assignments)
        self._pallets[pallet.id] = pallet
        self._next_id = max(self._next_id, pallet.id + 1)
        return pallet
