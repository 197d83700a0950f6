"""Mapping between planning-service JSON rows and core models.

The service speaks Polish field names and is not consistent between
endpoints, so every reader accepts the known aliases.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Sequence

from palety_core.models import (
    Assignment,
    Destination,
    Pallet,
    PalletStatus,
    PieceType,
    StackItem,
)
from palety_core.settings import DEFAULT_THICKNESS_MM, MAX_HEIGHT_MM, MAX_WEIGHT_KG

from .planning import PlanOptions, ServiceResult

logger = logging.getLogger(__name__)

HTTP_ERROR_MESSAGES = {
    400: "Invalid input data",
    401: "Not authorized",
    403: "Permission denied",
    404: "Resource not found",
    409: "Data conflict - check related records",
    500: "Server error - check the service logs",
    502: "Server unavailable",
    503: "Service temporarily unavailable",
}


def _first(row: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = row.get(key)
        if value not in (None, ""):
            return value
    return default


def _number(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _positive(value: Any, default: float) -> float:
    number = _number(value, default)
    return number if number > 0 else default


def piece_from_payload(
    row: Mapping[str, Any], on_pallets: Mapping[int, int] | None = None
) -> PieceType:
    piece_id = int(_first(row, "id", "formatka_id"))
    planned = int(_number(_first(row, "ilosc_planowana", "ilosc_szt", default=0), 0))
    assigned = int((on_pallets or {}).get(piece_id, 0))
    if assigned > planned:
        logger.warning(
            "Piece %s has %s pcs on pallets but only %s planned", piece_id, assigned, planned
        )
        assigned = planned
    unit_weight = _first(row, "waga_sztuki", "waga_sztuka")
    position_id = _first(row, "pozycja_id")
    return PieceType(
        id=piece_id,
        length=_number(_first(row, "dlugosc", "wymiar_x"), 0.0),
        width=_number(_first(row, "szerokosc", "wymiar_y"), 0.0),
        thickness=_positive(_first(row, "grubosc"), DEFAULT_THICKNESS_MM),
        color=str(_first(row, "kolor", "kolor_plyty", default="")),
        planned=planned,
        produced=int(_number(_first(row, "ilosc_wyprodukowana", default=0), 0)),
        assigned=assigned,
        unit_weight=_number(unit_weight, 0.0) if unit_weight is not None else None,
        name=str(_first(row, "nazwa_formatki", "numer_formatki", "nazwa", default="")),
        position_id=int(position_id) if position_id is not None else None,
    )


def pieces_from_payload(data: Mapping[str, Any] | Sequence[Mapping[str, Any]]) -> List[PieceType]:
    if isinstance(data, Mapping):
        rows = data.get("formatki") or []
        on_pallets = {int(k): int(v) for k, v in (data.get("na_paletach") or {}).items()}
    else:
        rows, on_pallets = data, {}
    return [piece_from_payload(row, on_pallets) for row in rows]


def _destination(row: Mapping[str, Any]) -> Destination:
    value = _first(row, "przeznaczenie", "kierunek", default=Destination.WAREHOUSE.value)
    try:
        return Destination.parse(value)
    except ValueError:
        logger.warning("Pallet %s has unknown destination %r", row.get("id"), value)
        return Destination.WAREHOUSE


def pallet_from_payload(row: Mapping[str, Any]) -> Pallet:
    pallet_id = int(row["id"])
    quantities: Dict[int, int] = {}
    pieces: Dict[int, PieceType] = {}
    for entry in row.get("formatki_szczegoly") or []:
        quantity = int(_number(entry.get("ilosc"), 0))
        if quantity <= 0:
            continue
        piece = piece_from_payload(entry)
        pieces.setdefault(piece.id, piece)
        quantities[piece.id] = quantities.get(piece.id, 0) + quantity

    assignments = tuple(
        Assignment(pallet_id, pieces[piece_id], quantity)
        for piece_id, quantity in quantities.items()
    )
    return Pallet(
        id=pallet_id,
        destination=_destination(row),
        status=PalletStatus.from_service(row.get("status")),
        max_weight=_number(_first(row, "max_waga_kg", "max_waga"), MAX_WEIGHT_KG),
        max_height=_number(_first(row, "max_wysokosc_mm", "max_wysokosc"), MAX_HEIGHT_MM),
        assignments=assignments,
        number=str(_first(row, "numer_palety", default="")),
        notes=str(_first(row, "uwagi", default="")),
    )


def items_payload(items: Sequence[StackItem]) -> List[Dict[str, int]]:
    return [{"formatka_id": item.piece.id, "ilosc": item.quantity} for item in items]


def plan_payload(options: PlanOptions) -> Dict[str, Any]:
    return {
        "max_waga_kg": options.max_weight,
        "max_wysokosc_mm": options.max_height,
        "max_formatek_na_palete": options.max_pieces_per_pallet,
        "grubosc_plyty": options.thickness,
        "strategia": options.strategy,
        "typ_palety": options.pallet_type,
    }


def result_from_payload(data: Mapping[str, Any], status_code: int = 200) -> ServiceResult:
    success = bool(data.get("sukces")) and status_code < 400
    reason = _first(data, "komunikat", "error", "message")
    if not success and reason is None:
        reason = HTTP_ERROR_MESSAGES.get(status_code, f"HTTP error {status_code}")
    pallet_id = data.get("paleta_id")
    return ServiceResult(
        success=success,
        reason=str(reason) if reason is not None else None,
        pallet_id=int(pallet_id) if pallet_id is not None else None,
        number=data.get("numer_palety"),
        stats=dict(data.get("statystyki") or {}),
    )
