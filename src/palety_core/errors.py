from __future__ import annotations

from typing import Iterable


class ValidationError(ValueError):
    """Input rejected locally, before anything is sent to the planning service."""

    def __init__(self, errors: Iterable[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class ConstraintViolation(ValueError):
    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class PalletClosedError(ValueError):
    def __init__(self, pallet_id: int) -> None:
        self.pallet_id = pallet_id
        super().__init__(f"Pallet {pallet_id} is closed")
