from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple, Union

from fit_common.errors import ProviderReadError, ProviderSubscribeError
from fit_bridge.domain.models import Bucket, TimeWindow


class InMemoryCapabilityStore:
    """
    Host permission store held in process memory.
    `prompt_answers` decides what the user "taps" when prompted; a denied
    prompt marks the capability as rationale-worthy, as Android does.
    """

    def __init__(
        self,
        granted: Iterable[str] = (),
        *,
        rationale: Iterable[str] = (),
        prompt_answers: Optional[Mapping[str, bool]] = None,
        prompt_error: Optional[Exception] = None,
    ) -> None:
        self.granted: Set[str] = set(granted)
        self.rationale: Set[str] = set(rationale)
        self.prompt_answers: Dict[str, bool] = dict(prompt_answers or {})
        self.prompt_error = prompt_error
        self.prompts: List[Tuple[str, ...]] = []

    def check_self_permission(self, name: str) -> bool:
        return name in self.granted

    def should_show_request_permission_rationale(self, name: str) -> bool:
        return name not in self.granted and name in self.rationale

    async def request_permissions(self, names: Sequence[str]) -> Mapping[str, bool]:
        self.prompts.append(tuple(names))
        if self.prompt_error is not None:
            raise self.prompt_error
        out: Dict[str, bool] = {}
        for name in names:
            ok = bool(self.prompt_answers.get(name, False))
            out[name] = ok
            if ok:
                self.granted.add(name)
                self.rationale.discard(name)
            else:
                self.rationale.add(name)
        return out


class InMemoryProvider:
    """Serves canned buckets; `read_error` / `subscribe_error` simulate SDK failures."""

    def __init__(
        self,
        buckets: Optional[List[Bucket]] = None,
        *,
        read_error: Optional[Exception] = None,
        subscribe_error: Optional[Exception] = None,
    ) -> None:
        self.buckets: List[Bucket] = list(buckets or [])
        self.read_error = read_error
        self.subscribe_error = subscribe_error
        self.subscriptions: List[str] = []
        self.reads: List[Tuple[str, TimeWindow, int]] = []

    async def subscribe(self, data_type: str) -> None:
        if self.subscribe_error is not None:
            raise ProviderSubscribeError(str(self.subscribe_error)) from self.subscribe_error
        self.subscriptions.append(data_type)

    async def read(self, data_type: str, window: TimeWindow, bucket_seconds: int) -> List[Bucket]:
        self.reads.append((data_type, window, bucket_seconds))
        if self.read_error is not None:
            raise ProviderReadError(str(self.read_error)) from self.read_error
        # buckets that touch the window
        return [b for b in self.buckets if b.end >= window.start and b.start <= window.end]


class RecordingSink:
    """Keeps every notification as (channel, args) in arrival order."""

    def __init__(self) -> None:
        self.events: List[Tuple[str, Tuple[Any, ...]]] = []

    def permission_request_completed(self, code: int, capability: str, result: int) -> None:
        self.events.append(("permission_request_completed", (code, capability, result)))

    def total_steps_retrieved(self, payload: Union[str, int]) -> None:
        self.events.append(("total_steps_retrieved", (payload,)))

    def of(self, channel: str) -> List[Tuple[Any, ...]]:
        return [args for name, args in self.events if name == channel]


class CallbackSink:
    """Forwards both channels to a host `emit(signal_name, *args)` function."""

    def __init__(self, emit: Callable[..., Any]) -> None:
        self._emit = emit

    def permission_request_completed(self, code: int, capability: str, result: int) -> None:
        self._emit("permission_request_completed", code, capability, result)

    def total_steps_retrieved(self, payload: Union[str, int]) -> None:
        self._emit("total_steps_retrieved", payload)
