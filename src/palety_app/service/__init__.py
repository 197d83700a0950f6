from .http_client import HttpPlanningService
from .memory import MemoryPlanningService
from .planning import (
    PlanningConnectionError,
    PlanningNotFound,
    PlanningService,
    PlanningServiceError,
    PlanOptions,
    ServiceResult,
)

__all__ = [
    "HttpPlanningService",
    "MemoryPlanningService",
    "PlanOptions",
    "PlanningConnectionError",
    "PlanningNotFound",
    "PlanningService",
    "PlanningServiceError",
    "ServiceResult",
]
