from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Coroutine, Optional, Sequence, Set, Union

from fit_config.settings import BridgeSettings
from fit_common.errors import (
    BridgeError,
    PermissionDeniedError,
    PermissionDeniedNeedsRationaleError,
    ProviderReadError,
)
from fit_common.tooling import InstrumentConfig, instrument_async
from fit_bridge.domain.models import Failure, PermissionState, RequestOutcome, Success
from fit_bridge.domain.ports import CapabilityStorePort, NotificationSinkPort, ProviderClientPort
from fit_bridge.normalizer import ResultNormalizer
from fit_bridge.permissions import PermissionTracker
from fit_bridge.reader import WindowedReader

logger = logging.getLogger(__name__)

SIGNAL_PERMISSION_REQUEST_COMPLETED = "permission_request_completed"
SIGNAL_TOTAL_STEPS_RETRIEVED = "total_steps_retrieved"

# Wire values of the engine contract.
PERMISSION_REQUEST_COMPLETED_CODE = 0
FETCH_FAILED = -1

# Android PackageManager.PERMISSION_GRANTED; PERMISSION_DENIED is -1.
HOST_PERMISSION_GRANTED = 0


def _is_granted(result: Union[bool, int]) -> bool:
    if isinstance(result, bool):
        return result
    return int(result) == HOST_PERMISSION_GRANTED


class RequestCoordinator:
    """
    Facade the host talks to: permission check -> subscribe -> windowed read.

    Fire-and-forget calls return the scheduled task (or concurrent future when
    dispatched onto `loop` from another thread); their outcome always reaches
    the sink, never the caller.
    """

    def __init__(
        self,
        capabilities: CapabilityStorePort,
        provider: ProviderClientPort,
        sink: NotificationSinkPort,
        *,
        settings: Optional[BridgeSettings] = None,
        clock: Optional[Callable[[], int]] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        auto_subscribe: bool = True,
    ) -> None:
        self.settings = settings or BridgeSettings.from_env()
        self.permissions = PermissionTracker(capabilities)
        self.provider = provider
        self.sink = sink
        self.reader = WindowedReader(provider, bucket_seconds=self.settings.bucket_seconds, clock=clock)
        self.normalizer = ResultNormalizer(self.settings.value_field)
        self.auto_subscribe = auto_subscribe

        self._loop = loop
        self._tasks: Set[asyncio.Task] = set()
        self._subscribed = False

    # ---- delivery / scheduling ---------------------------------------------
    def _deliver(self, channel: str, *args: Any) -> None:
        try:
            getattr(self.sink, channel)(*args)
        except Exception:
            logger.exception("Notification sink failed on %s", channel)

    def _spawn(self, coro: Coroutine[Any, Any, Any]):
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if self._loop is not None and self._loop is not running:
            return asyncio.run_coroutine_threadsafe(coro, self._loop)

        if running is None:
            coro.close()
            raise RuntimeError("No running event loop; call from a coroutine or pass loop=")

        task = running.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for every fire-and-forget task scheduled on the current loop."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ---- permissions -------------------------------------------------------
    def check_and_report(self) -> int:
        return int(self.permissions.check(self.settings.capability))

    def request_permission(self):
        return self._spawn(self._request_and_report())

    @instrument_async(InstrumentConfig(kind="coordinator", name="permission.request"))
    async def _request_and_report(self) -> PermissionState:
        capability = self.settings.capability
        state = await self.permissions.request_grant(capability)
        self._deliver(
            SIGNAL_PERMISSION_REQUEST_COMPLETED,
            PERMISSION_REQUEST_COMPLETED_CODE, capability, int(state),
        )
        return state

    def on_permissions_result(
        self,
        request_code: int,
        permissions: Optional[Sequence[str]],
        grant_results: Optional[Sequence[Union[bool, int]]],
    ) -> Optional[PermissionState]:
        """Host callback for prompts answered out-of-band. Foreign request codes are ignored.

        `grant_results` may hold bools, or Android grant codes where 0 means
        granted and -1 denied.
        """
        if request_code != self.settings.permission_request_code or not permissions:
            return None

        capability = permissions[0]
        granted = bool(grant_results) and _is_granted(grant_results[0])
        state = self.permissions.on_grant_result(capability, granted)
        self._deliver(
            SIGNAL_PERMISSION_REQUEST_COMPLETED,
            PERMISSION_REQUEST_COMPLETED_CODE, capability, int(state),
        )
        return state

    # ---- subscription ------------------------------------------------------
    def subscribe(self):
        return self._spawn(self.ensure_subscribed(force=True))

    async def ensure_subscribed(self, *, force: bool = False) -> bool:
        """Subscribe to the data type. Failures are logged; reads go ahead regardless."""
        if self._subscribed and not force:
            return True
        data_type = self.settings.data_type
        try:
            await self.provider.subscribe(data_type)
        except Exception as e:
            logger.warning("There was a problem subscribing to %s: %s", data_type, e)
            return False
        logger.info("Subscribed to %s", data_type)
        self._subscribed = True
        return True

    # ---- data --------------------------------------------------------------
    def fetch_recent_data(self, duration_seconds: int):
        if int(duration_seconds) < 0:
            raise ValueError(f"duration_seconds must be >= 0, got {duration_seconds}")
        return self._spawn(self._fetch_and_report(int(duration_seconds)))

    async def _fetch_and_report(self, duration_seconds: int) -> RequestOutcome:
        try:
            outcome = await self.read_recent(duration_seconds)
        except Exception as e:
            logger.exception("Fetching recent data failed")
            outcome = Failure(code="internal", message=str(e))
        if isinstance(outcome, Success):
            self._deliver(SIGNAL_TOTAL_STEPS_RETRIEVED, self.normalizer.serialize(outcome.entries))
        else:
            self._deliver(SIGNAL_TOTAL_STEPS_RETRIEVED, FETCH_FAILED)
        return outcome

    @instrument_async(InstrumentConfig(kind="coordinator", name="steps.read"))
    async def read_recent(self, duration_seconds: int) -> RequestOutcome:
        """Structured form of fetch_recent_data: Success(entries) or Failure(code, message)."""
        if int(duration_seconds) < 0:
            return Failure(code="bad_request", message="duration_seconds must be >= 0")

        capability = self.settings.capability
        try:
            state = self.permissions.check(capability)
        except Exception as e:
            logger.warning("Permission check for %s failed: %s", capability, e)
            return Failure(code=PermissionDeniedError.code, message=f"permission check failed: {e}")
        if state is PermissionState.DENIED_SHOW_RATIONALE:
            err: BridgeError = PermissionDeniedNeedsRationaleError(f"{capability} denied; rationale required")
            return Failure(code=err.code, message=str(err))
        if state is not PermissionState.GRANTED:
            err = PermissionDeniedError(f"{capability} not granted")
            return Failure(code=err.code, message=str(err))

        if self.auto_subscribe:
            await self.ensure_subscribed()

        try:
            points = await self.reader.read(self.settings.data_type, int(duration_seconds))
        except Exception as e:
            logger.warning("Reading %s failed: %s", self.settings.data_type, e)
            code = e.code if isinstance(e, BridgeError) else ProviderReadError.code
            return Failure(code=code, message=str(e))

        return Success(entries=self.normalizer.normalize(points))
