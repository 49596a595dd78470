from fit_bridge.coordinator import (
    FETCH_FAILED,
    SIGNAL_PERMISSION_REQUEST_COMPLETED,
    SIGNAL_TOTAL_STEPS_RETRIEVED,
    RequestCoordinator,
)
from fit_bridge.normalizer import ResultNormalizer
from fit_bridge.permissions import PermissionTracker
from fit_bridge.reader import WindowedReader

__all__ = [
    "FETCH_FAILED",
    "SIGNAL_PERMISSION_REQUEST_COMPLETED",
    "SIGNAL_TOTAL_STEPS_RETRIEVED",
    "PermissionTracker",
    "RequestCoordinator",
    "ResultNormalizer",
    "WindowedReader",
]
