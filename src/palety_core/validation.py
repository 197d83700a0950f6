from __future__ import annotations

from typing import TYPE_CHECKING, List, Sequence

from .settings import load_settings

if TYPE_CHECKING:  # pragma: no cover
    from .models import Destination, Pallet, StackItem

MAX_NOTES_LENGTH = 500

ERROR_DESTINATION_REQUIRED = "Pallet destination is required."
ERROR_QUANTITY_POSITIVE = "Quantity must be greater than 0."
ERROR_ITEMS_REQUIRED = "Pallet must contain at least one piece."


def validate_items(items: Sequence["StackItem"]) -> List[str]:
    errors: List[str] = []
    seen: set[int] = set()
    for index, item in enumerate(items, start=1):
        if item.quantity <= 0:
            errors.append(f"Item {index}: {ERROR_QUANTITY_POSITIVE}")
        if item.piece.id in seen:
            errors.append(f"Item {index}: piece {item.piece.id} is listed more than once.")
        seen.add(item.piece.id)
    return errors


def validate_pallet_form(
    destination: "Destination | None",
    items: Sequence["StackItem"],
    *,
    max_weight: float | None = None,
    max_height: float | None = None,
    notes: str | None = None,
    require_items: bool = False,
) -> List[str]:
    """Checks run before a pallet is created or rewritten.

    A new pallet needs at least one item; an edit may empty a pallet.
    """

    settings = load_settings()
    errors: List[str] = []
    if destination is None:
        errors.append(ERROR_DESTINATION_REQUIRED)
    if require_items and not items:
        errors.append(ERROR_ITEMS_REQUIRED)
    errors.extend(validate_items(items))
    if max_weight is not None and not 0 < max_weight <= settings.max_weight_kg:
        errors.append(
            f"Max weight must be between 0 and {settings.max_weight_kg:g} kg."
        )
    if max_height is not None and not 0 < max_height <= settings.max_height_mm:
        errors.append(
            f"Max height must be between 0 and {settings.max_height_mm:g} mm."
        )
    if notes and len(notes) > MAX_NOTES_LENGTH:
        errors.append(f"Notes must not exceed {MAX_NOTES_LENGTH} characters.")
    return errors


def validate_addition(quantity: int, available: int) -> List[str]:
    if quantity <= 0:
        return [ERROR_QUANTITY_POSITIVE]
    if quantity > available:
        return [f"Only {available} pcs available."]
    return []


def validate_close(pallet: "Pallet") -> List[str]:
    if pallet.is_closed:
        return ["Pallet is already closed."]
    if pallet.piece_count == 0:
        return ["Pallet is empty."]
    return []

