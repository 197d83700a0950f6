from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Sequence, Set

from palety_core.errors import ConstraintViolation, PalletClosedError, ValidationError
from palety_core.limits import can_add
from palety_core.models import Destination, Pallet, PalletStatus, StackItem, SyncState
from palety_core.settings import PalletSettings, load_settings
from palety_core.summary import PalletSummary, summarize
from palety_core.validation import validate_close, validate_pallet_form

from ..service.planning import (
    PlanningConnectionError,
    PlanningNotFound,
    PlanningService,
    PlanningServiceError,
    PlanOptions,
    ServiceResult,
)
from .background_jobs import BackgroundJobs, Runner, Schedule
from .transfer_state import DragItem, Notify, TransferState

logger = logging.getLogger(__name__)

CONNECTION_HINT = "Cannot reach the planning service. Check the connection and try again."

Listener = Callable[[List[Pallet]], None]
ResultCallback = Callable[[Optional[ServiceResult]], None]

_DELETE = "delete"
_CLOSE = "close"


@dataclass
class _Overlay:
    kind: str
    settled: bool = False


class PalletCache:
    """Client-side list of one order's pallets.

    The service owns the truth. Delete and close are shown immediately as a
    local overlay on top of the last confirmed list; every other change is
    only visible after the silent fetch that follows it. Must be used from
    the thread that runs ``schedule`` callbacks.
    """

    def __init__(
        self,
        order_id: int,
        service: PlanningService,
        schedule: Schedule,
        cancel: Callable[[Any], None],
        *,
        notify: Notify | None = None,
        settings: PalletSettings | None = None,
        run_in_background: Runner | None = None,
    ) -> None:
        self.order_id = order_id
        self.settings = settings or load_settings()
        self._service = service
        self._schedule = schedule
        self._cancel = cancel
        self._notify_cb = notify
        self._jobs = BackgroundJobs(schedule, run_in_background=run_in_background)

        self.loading = False
        self.loaded = False
        self.revision = 0
        self._confirmed: List[Pallet] = []
        self._visible: List[Pallet] = []
        self._overlays: Dict[int, _Overlay] = {}
        self._listeners: List[Listener] = []
        self._fetch_seq = 0
        self._applied_seq = 0
        self._refresh_id: Any | None = None
        self._running = False

        self.drag = TransferState(
            transfer=self.transfer,
            notify=notify,
            units_per_level=self.settings.units_per_level,
        )

    @property
    def pallets(self) -> List[Pallet]:
        return list(self._visible)

    @property
    def summary(self) -> PalletSummary:
        return summarize(self._visible)

    @property
    def busy(self) -> bool:
        return self._jobs.pending > 0

    def get(self, pallet_id: int) -> Pallet | None:
        for pallet in self._visible:
            if pallet.id == pallet_id:
                return pallet
        return None

    def _require(self, pallet_id: int) -> Pallet:
        pallet = self.get(pallet_id)
        if pallet is None:
            raise KeyError(f"Pallet {pallet_id} is not loaded")
        return pallet

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, level: str, text: str) -> None:
        if self._notify_cb is not None:
            self._notify_cb(level, text)

    def _publish(self) -> None:
        visible: List[Pallet] = []
        for pallet in self._confirmed:
            overlay = self._overlays.get(pallet.id)
            if overlay is None:
                visible.append(pallet)
            elif overlay.kind == _CLOSE:
                visible.append(
                    replace(pallet, status=PalletStatus.CLOSED, sync=SyncState.PENDING)
                )
        if visible == self._visible:
            return
        self._visible = visible
        self.revision += 1
        for listener in list(self._listeners):
            listener(self.pallets)

    def fetch(self, silent: bool = False) -> int:
        self._fetch_seq += 1
        seq = self._fetch_seq
        if not self.loaded:
            self.loading = True
        # Overlays whose call already settled are dropped once this fetch lands.
        settled = {pallet_id for pallet_id, o in self._overlays.items() if o.settled}
        return self._jobs.submit(
            lambda: self._service.fetch_pallets(self.order_id),
            lambda result, error: self._fetched(seq, settled, silent, result, error),
        )

    def _fetched(
        self,
        seq: int,
        settled: Set[int],
        silent: bool,
        result: Optional[List[Pallet]],
        error: Optional[BaseException],
    ) -> None:
        first_load = not self.loaded
        if error is not None:
            if first_load and isinstance(error, PlanningNotFound):
                logger.info("Order %s has no pallets yet", self.order_id)
                result = []
            else:
                self.loading = False
                self._report_error("Fetching pallets", error, quiet=silent)
                return

        if seq < self._applied_seq:
            logger.debug("Ignoring pallet list from superseded fetch %d", seq)
            return
        self._applied_seq = seq
        self.loading = False
        self.loaded = True
        for pallet_id in settled:
            self._overlays.pop(pallet_id, None)

        pallets = list(result or [])
        if pallets != self._confirmed:
            self._confirmed = pallets
        self._publish()

    def _report_error(self, action: str, error: BaseException, *, quiet: bool = False) -> None:
        if isinstance(error, PlanningConnectionError):
            logger.warning("%s: %s", action, error)
            if not quiet:
                self._notify("error", CONNECTION_HINT)
        elif isinstance(error, PlanningServiceError):
            logger.warning("%s: %s", action, error)
            if not quiet:
                self._notify("error", str(error))
        else:
            logger.error("%s failed", action, exc_info=error)
            if not quiet:
                self._notify("error", f"{action} failed: {error}")

    def _command(
        self,
        action: str,
        call: Callable[[], ServiceResult],
        *,
        success_text: str | None = None,
        on_settled: Callable[[], None] | None = None,
        on_done: ResultCallback | None = None,
    ) -> int:
        def done(result: Optional[ServiceResult], error: Optional[BaseException]) -> None:
            if on_settled is not None:
                on_settled()
            if error is not None:
                self._report_error(action, error)
                result = None
            elif result is not None and not result.success:
                logger.warning("%s rejected: %s", action, result.reason)
                self._notify("error", result.reason or f"{action} failed")
            else:
                if success_text:
                    self._notify("info", success_text)
                self.fetch(silent=True)
            if on_done is not None:
                on_done(result)

        logger.info("%s (order %s)", action, self.order_id)
        return self._jobs.submit(call, done)

    def _check_items(
        self,
        items: Sequence[StackItem],
        max_weight: float,
        max_height: float,
    ) -> None:
        check = can_add(
            [],
            items,
            max_weight,
            max_height,
            units_per_level=self.settings.units_per_level,
            density=self.settings.density_kg_m3,
        )
        if not check.allowed:
            raise ConstraintViolation(check.reason or "Pallet limits exceeded")

    def create(
        self,
        position_id: int,
        destination: Destination | None,
        items: Sequence[StackItem],
        max_weight: float | None = None,
        max_height: float | None = None,
        notes: str | None = None,
        *,
        on_done: ResultCallback | None = None,
    ) -> int:
        """Validate locally, then ask the service for a new pallet.

        Raises ``ValidationError`` or ``ConstraintViolation`` without any
        service call when the form is not acceptable.
        """

        if max_weight is None:
            max_weight = self.settings.max_weight_kg
        if max_height is None:
            max_height = self.settings.max_height_mm
        errors = validate_pallet_form(
            destination,
            items,
            max_weight=max_weight,
            max_height=max_height,
            notes=notes,
            require_items=True,
        )
        if errors:
            raise ValidationError(errors)
        assert destination is not None
        self._check_items(items, max_weight, max_height)

        return self._command(
            "Creating pallet",
            lambda: self._service.create_pallet(
                position_id, destination, list(items), max_weight, max_height, notes
            ),
            success_text="Pallet created",
            on_done=on_done,
        )

    def edit(
        self,
        pallet_id: int,
        items: Sequence[StackItem],
        destination: Destination | None = None,
        notes: str | None = None,
        *,
        on_done: ResultCallback | None = None,
    ) -> int:
        pallet = self._require(pallet_id)
        if pallet.is_closed:
            raise PalletClosedError(pallet_id)
        errors = validate_pallet_form(destination or pallet.destination, items, notes=notes)
        if errors:
            raise ValidationError(errors)
        self._check_items(items, pallet.max_weight, pallet.max_height)

        return self._command(
            f"Editing pallet {pallet_id}",
            lambda: self._service.edit_pallet(pallet_id, list(items), destination, notes),
            success_text="Pallet updated",
            on_done=on_done,
        )

    def _settle(self, pallet_ids: Sequence[int]) -> Callable[[], None]:
        def settle() -> None:
            for pallet_id in pallet_ids:
                overlay = self._overlays.get(pallet_id)
                if overlay is not None:
                    overlay.settled = True

        return settle

    def delete(self, pallet_id: int, *, on_done: ResultCallback | None = None) -> int:
        self._require(pallet_id)
        self._overlays[pallet_id] = _Overlay(_DELETE)
        self._publish()
        return self._command(
            f"Deleting pallet {pallet_id}",
            lambda: self._service.delete_pallet(pallet_id),
            on_settled=self._settle([pallet_id]),
            on_done=on_done,
        )

    def close(
        self,
        pallet_id: int,
        notes: str | None = None,
        *,
        on_done: ResultCallback | None = None,
    ) -> int:
        errors = validate_close(self._require(pallet_id))
        if errors:
            raise ValidationError(errors)
        self._overlays[pallet_id] = _Overlay(_CLOSE)
        self._publish()
        return self._command(
            f"Closing pallet {pallet_id}",
            lambda: self._service.close_pallet(pallet_id, notes),
            on_settled=self._settle([pallet_id]),
            on_done=on_done,
        )

    def transfer(self, item: DragItem, target: Pallet) -> int:
        return self._command(
            f"Moving piece {item.piece.id} to pallet {target.id}",
            lambda: self._service.transfer_units(
                item.source_pallet_id, target.id, item.piece.id, item.quantity
            ),
            success_text=f"Moved {item.quantity} pcs to pallet {target.number or target.id}",
        )

    def plan(
        self,
        options: PlanOptions | None = None,
        *,
        on_done: ResultCallback | None = None,
    ) -> int:
        if options is None:
            options = PlanOptions(
                max_weight=self.settings.max_weight_kg,
                max_height=self.settings.max_height_mm,
                thickness=self.settings.default_thickness_mm,
            )
        return self._command(
            "Planning pallets",
            lambda: self._service.plan_pallets(self.order_id, options),
            success_text="Pallets planned",
            on_done=on_done,
        )

    def delete_all(self, *, on_done: ResultCallback | None = None) -> int:
        pallet_ids = [pallet.id for pallet in self._visible]
        for pallet_id in pallet_ids:
            self._overlays[pallet_id] = _Overlay(_DELETE)
        self._publish()
        return self._command(
            "Deleting all pallets",
            lambda: self._service.delete_all(self.order_id),
            on_settled=self._settle(pallet_ids),
            on_done=on_done,
        )

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self.fetch()
        self._schedule_refresh()

    def stop(self) -> None:
        self._running = False
        if self._refresh_id is not None:
            self._cancel(self._refresh_id)
            self._refresh_id = None

    def _schedule_refresh(self) -> None:
        self._refresh_id = self._schedule(self.settings.refresh_interval_ms, self._refresh)

    def _refresh(self) -> None:
        self._refresh_id = None
        if not self._running:
            return
        self.fetch(silent=True)
        self._schedule_refresh()
