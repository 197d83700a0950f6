from __future__ import annotations

from dataclasses import replace
from typing import List

from .errors import ConstraintViolation, PalletClosedError, ValidationError
from .limits import can_add
from .models import Assignment, Pallet, PieceType, StackItem
from .validation import ERROR_QUANTITY_POSITIVE


def add_units(
    pallet: Pallet,
    piece: PieceType,
    quantity: int,
    *,
    units_per_level: int | None = None,
) -> Pallet:
    """Return ``pallet`` with ``quantity`` more units of ``piece``.

    An existing assignment of the same piece is increased rather than
    duplicated.
    """

    if pallet.is_closed:
        raise PalletClosedError(pallet.id)
    if quantity <= 0:
        raise ValidationError([ERROR_QUANTITY_POSITIVE])

    check = can_add(
        pallet.items,
        [StackItem(piece, quantity)],
        pallet.max_weight,
        pallet.max_height,
        units_per_level=units_per_level,
    )
    if not check.allowed:
        raise ConstraintViolation(check.reason or "Pallet limits exceeded")

    assignments: List[Assignment] = []
    merged = False
    for assignment in pallet.assignments:
        if assignment.piece.id == piece.id:
            assignment = replace(assignment, quantity=assignment.quantity + quantity)
            merged = True
        assignments.append(assignment)
    if not merged:
        assignments.append(Assignment(pallet.id, piece, quantity))
    return replace(pallet, assignments=tuple(assignments))


def remove_units(pallet: Pallet, piece_id: int, quantity: int | None = None) -> Pallet:
    """Take units of one piece off ``pallet``; ``None`` removes all of them."""

    if pallet.is_closed:
        raise PalletClosedError(pallet.id)
    if quantity is not None and quantity <= 0:
        raise ValidationError([ERROR_QUANTITY_POSITIVE])

    assignments: List[Assignment] = []
    for assignment in pallet.assignments:
        if assignment.piece.id != piece_id:
            assignments.append(assignment)
            continue
        left = 0 if quantity is None else assignment.quantity - quantity
        if left > 0:
            assignments.append(replace(assignment, quantity=left))
    return replace(pallet, assignments=tuple(assignments))


def merge_items(items: List[StackItem], piece: PieceType, quantity: int) -> List[StackItem]:
    """Add ``quantity`` of ``piece`` to a flat item list, one entry per piece."""

    merged: List[StackItem] = []
    found = False
    for item in items:
        if item.piece.id == piece.id:
            item = StackItem(item.piece, item.quantity + quantity)
            found = True
        merged.append(item)
    if not found:
        merged.append(StackItem(piece, quantity))
    return merged
