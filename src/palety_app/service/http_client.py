from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

import httpx

from palety_core.loading import merge_items
from palety_core.models import Destination, Pallet, PieceType, StackItem
from palety_core.settings import load_settings

from .payloads import (
    items_payload,
    pallet_from_payload,
    pieces_from_payload,
    plan_payload,
    result_from_payload,
)
from .planning import (
    PlanningConnectionError,
    PlanningNotFound,
    PlanningServiceError,
    PlanOptions,
    ServiceResult,
)

logger = logging.getLogger(__name__)


class HttpPlanningService:
    """Planning service reached over the order service's REST API."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        operator: str | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        settings = load_settings()
        self.operator = operator or settings.operator
        self._client = client or httpx.Client(
            base_url=base_url or settings.api_base_url,
            timeout=timeout if timeout is not None else settings.request_timeout_s,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HttpPlanningService":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        logger.info("%s %s", method, path)
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.TransportError as exc:
            raise PlanningConnectionError(f"No response from the planning service: {exc}") from exc
        if response.status_code == 404:
            raise PlanningNotFound(f"{method} {path} returned 404")
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {"data": data}

    def _command(self, method: str, path: str, **kwargs: Any) -> ServiceResult:
        response = self._send(method, path, **kwargs)
        result = result_from_payload(self._json(response), response.status_code)
        if not result.success:
            logger.warning("%s %s failed: %s", method, path, result.reason)
        return result

    def fetch_pallets(self, order_id: int) -> List[Pallet]:
        response = self._send("GET", f"/pallets/zko/{order_id}/details")
        data = self._json(response)
        if response.is_error or not data.get("sukces"):
            result = result_from_payload(data, response.status_code)
            raise PlanningServiceError(result.reason or "Failed to fetch pallets")
        return [pallet_from_payload(row) for row in data.get("palety") or []]

    def fetch_pallet(self, pallet_id: int) -> Pallet:
        response = self._send("GET", f"/pallets/{pallet_id}")
        if response.is_error:
            result = result_from_payload(self._json(response), response.status_code)
            raise PlanningServiceError(result.reason or f"Failed to fetch pallet {pallet_id}")
        return pallet_from_payload(self._json(response))

    def fetch_pieces(self, position_id: int) -> List[PieceType]:
        response = self._send("GET", f"/zko/pozycje/{position_id}/formatki")
        if response.is_error:
            result = result_from_payload(self._json(response), response.status_code)
            raise PlanningServiceError(result.reason or "Failed to fetch pieces")
        try:
            data = response.json()
        except ValueError as exc:
            raise PlanningServiceError("Invalid piece list from the planning service") from exc
        return pieces_from_payload(data)

    def create_pallet(
        self,
        position_id: int,
        destination: Destination,
        items: Sequence[StackItem],
        max_weight: float,
        max_height: float,
        notes: str | None = None,
    ) -> ServiceResult:
        return self._command(
            "POST",
            "/pallets/manual/create",
            json={
                "pozycja_id": position_id,
                "formatki": items_payload(items),
                "przeznaczenie": destination.value,
                "max_waga": max_weight,
                "max_wysokosc": max_height,
                "uwagi": notes,
                "operator": self.operator,
            },
        )

    def edit_pallet(
        self,
        pallet_id: int,
        items: Sequence[StackItem],
        destination: Destination | None = None,
        notes: str | None = None,
    ) -> ServiceResult:
        return self._command(
            "POST",
            f"/pallets/{pallet_id}/update-formatki",
            json={
                "formatki": items_payload(items),
                "przeznaczenie": destination.value if destination else None,
                "uwagi": notes,
                "operator": self.operator,
            },
        )

    def delete_pallet(self, pallet_id: int) -> ServiceResult:
        return self._command("DELETE", f"/pallets/{pallet_id}")

    def close_pallet(self, pallet_id: int, notes: str | None = None) -> ServiceResult:
        return self._command(
            "POST",
            f"/pallets/{pallet_id}/close",
            json={"operator": self.operator, "uwagi": notes},
        )

    def transfer_units(
        self,
        source_id: int | None,
        target_id: int,
        piece_id: int,
        quantity: int,
    ) -> ServiceResult:
        if source_id is None:
            return self._add_from_pool(target_id, piece_id, quantity)
        return self._command(
            "POST",
            "/pallets/transfer-v5",
            json={
                "z_palety_id": source_id,
                "na_palete_id": target_id,
                "formatki_ids": [piece_id],
                "ilosc_sztuk": quantity,
                "operator": self.operator,
                "powod": f"Moved {quantity} pcs of piece {piece_id}",
            },
        )

    def _add_from_pool(self, target_id: int, piece_id: int, quantity: int) -> ServiceResult:
        # The service has no "add" call; the target's full item list is rewritten.
        target = self.fetch_pallet(target_id)
        piece = next(
            (a.piece for a in target.assignments if a.piece.id == piece_id),
            PieceType(id=piece_id, length=0, width=0),
        )
        items = merge_items(target.items, piece, quantity)
        return self.edit_pallet(target_id, items, target.destination)

    def plan_pallets(self, order_id: int, options: PlanOptions) -> ServiceResult:
        return self._command("POST", f"/pallets/zko/{order_id}/plan", json=plan_payload(options))

    def delete_all(self, order_id: int) -> ServiceResult:
        return self._command("DELETE", f"/pallets/zko/{order_id}/clear")
