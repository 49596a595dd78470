from __future__ import annotations

from typing import List, Mapping, Protocol, Sequence, Union, runtime_checkable

from .models import Bucket, TimeWindow


@runtime_checkable
class CapabilityStorePort(Protocol):
    """
    The host's OS permission store (Android activity, desktop shim, test fake).
    """
    def check_self_permission(self, name: str) -> bool:
        ...

    def should_show_request_permission_rationale(self, name: str) -> bool:
        ...
        # True only after an earlier denial the host wants explained.

    async def request_permissions(self, names: Sequence[str]) -> Mapping[str, bool]:
        ...
        # Prompts the user; returns one grant flag per requested name.
        # A name missing from the result counts as denied.


@runtime_checkable
class ProviderClientPort(Protocol):
    """
    A fitness data provider (recording SDK, REST API).
    Single attempt per call; failures raise ProviderSubscribeError / ProviderReadError.
    """
    async def subscribe(self, data_type: str) -> None:
        ...

    async def read(self, data_type: str, window: TimeWindow, bucket_seconds: int) -> List[Bucket]:
        ...


@runtime_checkable
class NotificationSinkPort(Protocol):
    """Where asynchronous outcomes go, typically a host signal bus."""

    def permission_request_completed(self, code: int, capability: str, result: int) -> None:
        ...

    def total_steps_retrieved(self, payload: Union[str, int]) -> None:
        ...
        # payload is a JSON array of {start, end, steps}, or the sentinel -1.
