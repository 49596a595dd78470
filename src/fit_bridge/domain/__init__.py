from .models import (
    Bucket,
    DataPoint,
    DatasetEntry,
    Failure,
    PermissionState,
    RequestOutcome,
    Success,
    TimeWindow,
)
from .ports import CapabilityStorePort, NotificationSinkPort, ProviderClientPort

__all__ = [
    "Bucket",
    "CapabilityStorePort",
    "DataPoint",
    "DatasetEntry",
    "Failure",
    "NotificationSinkPort",
    "PermissionState",
    "ProviderClientPort",
    "RequestOutcome",
    "Success",
    "TimeWindow",
]
