from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass, fields, replace
from functools import lru_cache
from typing import Any, Dict

import yaml

logger = logging.getLogger(__name__)

SETTINGS_ENV = "PALETY_SETTINGS"

MAX_WEIGHT_KG = 700.0
MAX_HEIGHT_MM = 1440.0
DEFAULT_THICKNESS_MM = 18.0
# Pieces lie side by side on one level; height grows by one thickness per level.
UNITS_PER_LEVEL = 4
PARTICLEBOARD_DENSITY = 650.0
WARN_RATIO = 0.9
REFRESH_INTERVAL_MS = 30_000


@dataclass(frozen=True)
class PalletSettings:
    max_weight_kg: float = MAX_WEIGHT_KG
    max_height_mm: float = MAX_HEIGHT_MM
    default_thickness_mm: float = DEFAULT_THICKNESS_MM
    units_per_level: int = UNITS_PER_LEVEL
    density_kg_m3: float = PARTICLEBOARD_DENSITY
    warn_ratio: float = WARN_RATIO
    refresh_interval_ms: int = REFRESH_INTERVAL_MS
    api_base_url: str = "http://localhost:5001/api"
    request_timeout_s: float = 30.0
    operator: str = "user"


DEFAULT_SETTINGS = PalletSettings()


def default_settings_path() -> str:
    return os.environ.get(SETTINGS_ENV) or os.path.join(
        os.path.dirname(__file__), "settings.yaml"
    )


# Limits and packing constants must be greater than zero.
_POSITIVE = {
    "max_weight_kg",
    "max_height_mm",
    "default_thickness_mm",
    "units_per_level",
    "density_kg_m3",
    "warn_ratio",
    "refresh_interval_ms",
    "request_timeout_s",
}


def _coerce_value(name: str, current: Any, raw: Any) -> Any:
    if isinstance(current, (int, float)):
        if isinstance(raw, bool):
            raise ValueError(f"{name} must be a number")
        number = float(raw)
        if not math.isfinite(number):
            raise ValueError(f"{name} must be finite")
        if isinstance(current, int) and not number.is_integer():
            raise ValueError(f"{name} must be a whole number")
        if name in _POSITIVE and number <= 0:
            raise ValueError(f"{name} must be greater than 0")
        return type(current)(number)
    return type(current)(raw)


def _coerce(settings: PalletSettings, data: Dict[str, Any]) -> PalletSettings:
    updates: Dict[str, Any] = {}
    for item in fields(PalletSettings):
        if item.name not in data:
            continue
        current = getattr(settings, item.name)
        try:
            updates[item.name] = _coerce_value(item.name, current, data[item.name])
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid setting %s=%r", item.name, data[item.name])
    return replace(settings, **updates)


def load_settings_file(path: str) -> PalletSettings:
    """Read ``path`` and overlay its values on the defaults."""

    if not os.path.exists(path):
        return DEFAULT_SETTINGS
    with open(path, "r", encoding="utf-8") as f:
        loaded = yaml.safe_load(f) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"Invalid settings format in {path}: expected a mapping")
    return _coerce(DEFAULT_SETTINGS, loaded)


@lru_cache(maxsize=None)
def load_settings() -> PalletSettings:
    """Load pallet limits from ``settings.yaml`` (or ``$PALETY_SETTINGS``)."""

    path = default_settings_path()
    try:
        return load_settings_file(path)
    except (OSError, ValueError, yaml.YAMLError):
        logger.exception("Failed to load settings from %s", path)
        return DEFAULT_SETTINGS
