from __future__ import annotations

import logging
import threading
from typing import Dict, Optional

from fit_bridge.domain.models import PermissionState
from fit_bridge.domain.ports import CapabilityStorePort

logger = logging.getLogger(__name__)


class PermissionTracker:
    """
    Tracks the last known permission state per capability.

    - check() asks the host every time; the host store is authoritative, so a
      revoked grant shows up as DENIED / DENIED_SHOW_RATIONALE on the next check.
    - Denial is terminal until the caller asks again via request_grant().
    """

    def __init__(self, store: CapabilityStorePort) -> None:
        self.store = store
        self._states: Dict[str, PermissionState] = {}
        self._lock = threading.Lock()

    def state(self, capability: str) -> Optional[PermissionState]:
        with self._lock:
            return self._states.get(capability)

    def _record(self, capability: str, state: PermissionState) -> PermissionState:
        with self._lock:
            self._states[capability] = state
        return state

    def check(self, capability: str) -> PermissionState:
        if self.store.check_self_permission(capability):
            logger.debug("Permission %s already granted", capability)
            return self._record(capability, PermissionState.GRANTED)

        logger.debug("Permission %s not granted", capability)
        if self.store.should_show_request_permission_rationale(capability):
            return self._record(capability, PermissionState.DENIED_SHOW_RATIONALE)
        return self._record(capability, PermissionState.DENIED)

    def on_grant_result(self, capability: str, granted: bool) -> PermissionState:
        state = PermissionState.GRANTED if granted else PermissionState.DENIED
        logger.info("Permission %s %s", capability, "granted" if granted else "denied")
        return self._record(capability, state)

    async def request_grant(self, capability: str) -> PermissionState:
        """Prompt once. A prompt that fails outright counts as a denial."""
        try:
            results = await self.store.request_permissions([capability])
        except Exception as e:
            logger.warning("Permission prompt for %s failed: %s", capability, e)
            return self.on_grant_result(capability, False)
        return self.on_grant_result(capability, bool((results or {}).get(capability, False)))
