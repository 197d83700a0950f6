from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from palety_core.limits import can_add
from palety_core.models import Pallet, PieceType, StackItem
from palety_core.units import parse_quantity
from palety_core.validation import validate_addition

logger = logging.getLogger(__name__)

Notify = Callable[[str, str], None]

ALREADY_ON_PALLET = "Piece is already on this pallet"
TARGET_CLOSED = "Pallet is closed"
INVALID_QUANTITY = "Quantity must be a whole number."


class DragPhase(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    HOVER = "hover"
    DROPPED = "dropped"


@dataclass(frozen=True)
class DragItem:
    piece: PieceType
    quantity: int
    source_pallet_id: int | None = None


TransferCommand = Callable[[DragItem, Pallet], Any]


@dataclass
class TransferState:
    """One drag-and-drop gesture moving a piece-type between pallets.

    Driven by UI events on a single thread; the only asynchronous part is the
    ``transfer`` command, which is fired and not awaited.
    """

    transfer: TransferCommand
    notify: Optional[Notify] = None
    units_per_level: int | None = None
    item: Optional[DragItem] = None
    phase: DragPhase = DragPhase.IDLE
    hover_counts: Dict[int, int] = field(default_factory=dict)
    _hover_order: List[int] = field(default_factory=list)

    @property
    def is_dragging(self) -> bool:
        return self.item is not None

    @property
    def hovered_id(self) -> int | None:
        for pallet_id in reversed(self._hover_order):
            if self.hover_counts.get(pallet_id, 0) > 0:
                return pallet_id
        return None

    @property
    def drop_target_id(self) -> int | None:
        hovered = self.hovered_id
        if self.item is None or hovered == self.item.source_pallet_id:
            return None
        return hovered

    def _notify(self, level: str, text: str) -> None:
        if self.notify is not None:
            self.notify(level, text)

    def _reset(self) -> None:
        self.item = None
        self.hover_counts = {}
        self._hover_order = []
        self.phase = DragPhase.IDLE

    def _refuse_start(self, reason: str) -> Dict[str, object]:
        self._notify("warning", reason)
        return {"started": False, "reason": reason}

    def on_drag_start(
        self,
        piece: PieceType,
        source: Pallet | None = None,
        quantity: int | str | None = None,
    ) -> Dict[str, object]:
        """Begin a gesture; ``quantity`` may be typed text from a quantity field."""
        if self.item is not None:
            logger.debug("Drag start ignored, gesture already active")
            return {"started": False}

        available = source.quantity_of(piece.id) if source is not None else piece.available
        if quantity is None:
            if available <= 0:
                return {"started": False}
            quantity = available
        elif isinstance(quantity, str):
            try:
                quantity = parse_quantity(quantity)
            except ValueError:
                logger.debug("Drag start rejected, bad quantity %r", quantity)
                return self._refuse_start(INVALID_QUANTITY)
        errors = validate_addition(quantity, available)
        if errors:
            return self._refuse_start(errors[0])

        self.item = DragItem(
            piece=piece,
            quantity=quantity,
            source_pallet_id=source.id if source is not None else None,
        )
        self.phase = DragPhase.DRAGGING
        logger.debug("Drag started: piece %s x%d", piece.id, quantity)
        return {"started": True, "item": self.item}

    def on_drag_enter(self, pallet_id: int) -> Dict[str, object]:
        if self.item is None:
            return {}
        self.hover_counts[pallet_id] = self.hover_counts.get(pallet_id, 0) + 1
        if pallet_id in self._hover_order:
            self._hover_order.remove(pallet_id)
        self._hover_order.append(pallet_id)
        self.phase = DragPhase.HOVER
        return {"hovered": self.hovered_id, "drop_target": self.drop_target_id}

    def on_drag_leave(self, pallet_id: int) -> Dict[str, object]:
        if self.item is None:
            return {}
        count = self.hover_counts.get(pallet_id, 0) - 1
        if count > 0:
            self.hover_counts[pallet_id] = count
        else:
            self.hover_counts.pop(pallet_id, None)
            if pallet_id in self._hover_order:
                self._hover_order.remove(pallet_id)
        self.phase = DragPhase.HOVER if self.hover_counts else DragPhase.DRAGGING
        return {"hovered": self.hovered_id, "drop_target": self.drop_target_id}

    def check_drop(self, target: Pallet) -> tuple[bool, str | None]:
        item = self.item
        if item is None:
            return False, None
        if item.source_pallet_id == target.id:
            return False, ALREADY_ON_PALLET
        if target.is_closed:
            return False, TARGET_CLOSED
        check = can_add(
            target.items,
            [StackItem(item.piece, item.quantity)],
            target.max_weight,
            target.max_height,
            units_per_level=self.units_per_level,
        )
        return check.allowed, check.reason

    def can_drop_on(self, target: Pallet) -> bool:
        allowed, _ = self.check_drop(target)
        return allowed

    def target_state(self, pallet_id: int) -> str:
        if self.item is None:
            return ""
        if self.item.source_pallet_id == pallet_id:
            return "drag-source"
        if self.drop_target_id == pallet_id:
            return "drag-over"
        return "drag-available"

    def on_drop(self, target: Pallet) -> Dict[str, object]:
        self.hover_counts = {}
        self._hover_order = []
        item = self.item
        if item is None:
            self._reset()
            return {"accepted": False, "reason": None}

        self.phase = DragPhase.DROPPED
        allowed, reason = self.check_drop(target)
        if not allowed:
            level = "info" if reason == ALREADY_ON_PALLET else "warning"
            self._notify(level, reason or "Cannot add the piece to this pallet")
            self._reset()
            return {"accepted": False, "reason": reason}

        logger.debug(
            "Drop accepted: piece %s x%d -> pallet %s", item.piece.id, item.quantity, target.id
        )
        try:
            self.transfer(item, target)
        finally:
            self._reset()
        return {"accepted": True, "reason": None, "item": item}

    def on_drag_end(self) -> Dict[str, object]:
        was_dragging = self.item is not None
        self._reset()
        return {"was_dragging": was_dragging}
