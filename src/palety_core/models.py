from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple

from .capacity import levels_for, stacked_height, stacked_weight
from .settings import DEFAULT_THICKNESS_MM, MAX_HEIGHT_MM, MAX_WEIGHT_KG
from .units import KG, MM


class Destination(Enum):
    """Next production stage a pallet is routed to (value is the service code)."""

    WAREHOUSE = "MAGAZYN"
    EDGEBANDING = "OKLEINIARKA"
    DRILLING = "WIERCENIE"
    CUTTING = "CIECIE"
    SHIPPING = "WYSYLKA"

    @property
    def label(self) -> str:
        return _DESTINATION_LABELS[self]

    @classmethod
    def parse(cls, value: "str | Destination") -> "Destination":
        if isinstance(value, Destination):
            return value
        text = (value or "").strip().upper()
        for member in cls:
            if text in (member.value, member.name):
                return member
        raise ValueError(f"Unknown pallet destination: {value!r}")


_DESTINATION_LABELS = {
    Destination.WAREHOUSE: "Warehouse",
    Destination.EDGEBANDING: "Edgebanding",
    Destination.DRILLING: "CNC drilling",
    Destination.CUTTING: "Cutting",
    Destination.SHIPPING: "Shipping",
}


class PalletStatus(Enum):
    OPEN = "open"
    CLOSED = "closed"

    @classmethod
    def from_service(cls, value: str | None) -> "PalletStatus":
        if (value or "").strip().lower() in CLOSED_SERVICE_STATUSES:
            return cls.CLOSED
        return cls.OPEN


# Service statuses after which nothing may be loaded onto the pallet.
CLOSED_SERVICE_STATUSES = frozenset(
    {"zamknieta", "gotowa_do_transportu", "w_transporcie", "dostarczona", "closed"}
)


class SyncState(Enum):
    CONFIRMED = "confirmed"
    PENDING = "pending"


@dataclass(frozen=True)
class PieceType:
    """A cut-panel shape ("formatka") within one order position."""

    id: int
    length: MM
    width: MM
    thickness: MM = DEFAULT_THICKNESS_MM
    color: str = ""
    planned: int = 0
    produced: int = 0
    assigned: int = 0
    unit_weight: KG | None = None
    name: str = ""
    position_id: int | None = None

    def __post_init__(self) -> None:
        if self.planned < 0 or self.produced < 0 or self.assigned < 0:
            raise ValueError(f"Piece {self.id}: quantities must not be negative")
        if self.assigned > self.planned:
            raise ValueError(
                f"Piece {self.id}: assigned {self.assigned} exceeds planned {self.planned}"
            )

    @property
    def available(self) -> int:
        return self.planned - self.assigned


@dataclass(frozen=True)
class StackItem:
    """A quantity of one piece-type, either on a pallet or about to be added."""

    piece: PieceType
    quantity: int

    def __post_init__(self) -> None:
        if self.quantity < 0:
            raise ValueError("Quantity must not be negative")


@dataclass(frozen=True)
class Assignment:
    pallet_id: int
    piece: PieceType
    quantity: int

    def __post_init__(self) -> None:
        if self.quantity <= 0:
            raise ValueError(
                f"Assignment of piece {self.piece.id} on pallet {self.pallet_id} "
                "must have a positive quantity"
            )


@dataclass(frozen=True)
class Pallet:
    id: int
    destination: Destination
    status: PalletStatus = PalletStatus.OPEN
    max_weight: KG = MAX_WEIGHT_KG
    max_height: MM = MAX_HEIGHT_MM
    assignments: Tuple[Assignment, ...] = field(default_factory=tuple)
    number: str = ""
    notes: str = ""
    sync: SyncState = SyncState.CONFIRMED

    @property
    def is_closed(self) -> bool:
        return self.status is PalletStatus.CLOSED

    @property
    def items(self) -> list[StackItem]:
        return [StackItem(a.piece, a.quantity) for a in self.assignments]

    @property
    def piece_count(self) -> int:
        return sum(a.quantity for a in self.assignments)

    @property
    def weight(self) -> KG:
        return stacked_weight(self.assignments)

    @property
    def height(self) -> MM:
        return stacked_height(self.assignments)

    @property
    def levels(self) -> int:
        return levels_for(self.piece_count)

    @property
    def colors(self) -> list[str]:
        seen: list[str] = []
        for assignment in self.assignments:
            color = assignment.piece.color
            if color and color not in seen:
                seen.append(color)
        return seen

    def quantity_of(self, piece_id: int) -> int:
        for assignment in self.assignments:
            if assignment.piece.id == piece_id:
                return assignment.quantity
        return 0
