from .background_jobs import BackgroundJobs
from .pallet_cache import PalletCache
from .transfer_state import DragItem, DragPhase, TransferState

__all__ = ["BackgroundJobs", "DragItem", "DragPhase", "PalletCache", "TransferState"]
