"""Pallet capacity model, limit checks and loading advice."""

from .advisor import can_merge, max_addable, suggest_for_pallet
from .capacity import levels_for, stack_stats, stacked_height, stacked_weight, unit_weight
from .errors import ConstraintViolation, PalletClosedError, ValidationError
from .limits import AddCheck, LimitReport, can_add, evaluate
from .loading import add_units, remove_units
from .models import (
    Assignment,
    Destination,
    Pallet,
    PalletStatus,
    PieceType,
    StackItem,
    SyncState,
)
from .settings import PalletSettings, load_settings
from .summary import PalletSummary, summarize

__all__ = [
    "AddCheck",
    "Assignment",
    "ConstraintViolation",
    "Destination",
    "LimitReport",
    "Pallet",
    "PalletClosedError",
    "PalletSettings",
    "PalletStatus",
    "PalletSummary",
    "PieceType",
    "StackItem",
    "SyncState",
    "ValidationError",
    "add_units",
    "can_add",
    "can_merge",
    "evaluate",
    "levels_for",
    "load_settings",
    "max_addable",
    "remove_units",
    "stack_stats",
    "stacked_height",
    "stacked_weight",
    "suggest_for_pallet",
    "summarize",
    "unit_weight",
]
