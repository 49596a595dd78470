from __future__ import annotations

import functools
import inspect
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from fit_common.context import get_corr_id, new_corr_id, set_corr_id
from fit_common.telemetry import TELEMETRY_FILE, log_event

logger = logging.getLogger(__name__)


_REDACTION_KEYS = {"auth_bearer", "authorization", "token", "access_token", "api_key", "apikey"}


def sanitize_args_for_log(args: dict | None) -> dict:
    """Remove obvious secrets and the bound instance from args (telemetry layer also redacts)."""
    out: dict[str, Any] = {}
    for k, v in (args or {}).items():
        if k == "self":
            continue
        out[str(k)] = "***redacted***" if str(k).lower() in _REDACTION_KEYS else v
    return out


@dataclass(frozen=True)
class InstrumentConfig:
    kind: str
    name: str
    telemetry_file: str = TELEMETRY_FILE

    # correlation id behavior
    new_corr_id_per_call: bool = True


def _payload_ok(payload: Any) -> bool:
    ok = getattr(payload, "ok", None)
    if isinstance(ok, bool):
        return ok
    return not (isinstance(payload, dict) and "error" in payload)


def _payload_error(payload: Any) -> dict | None:
    if hasattr(payload, "to_error") and not _payload_ok(payload):
        return payload.to_error().get("error")
    if isinstance(payload, dict) and payload.get("error"):
        return payload.get("error")
    return None


def _safe_log_event(cfg: InstrumentConfig, args: dict, *, ok: bool, ms: int, corr_id: str) -> None:
    """Write one event; I/O errors are logged, not raised."""
    try:
        log_event(cfg.kind, cfg.name, args, ok=ok, ms=ms, corr_id=corr_id, telemetry_file=cfg.telemetry_file)
    except OSError as e:
        logger.warning("Telemetry write for %s failed: %s", cfg.name, e)


def instrument_async(cfg: InstrumentConfig):
    """Decorator for coordinator coroutines: corr id, timing, one telemetry event per call.

    Exceptions propagate; they are logged as a failed call first.
    Telemetry I/O errors are logged and dropped.
    """

    def decorator(fn: Callable[..., Awaitable[Any]]):
        fn_sig = inspect.signature(fn)

        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any):
            corr_id = get_corr_id()
            if cfg.new_corr_id_per_call or not corr_id:
                corr_id = new_corr_id()
                set_corr_id(corr_id)

            t0 = time.perf_counter()
            bound = fn_sig.bind_partial(*args, **kwargs)
            bound.apply_defaults()
            args_for_log: dict[str, Any] = {"args": sanitize_args_for_log(dict(bound.arguments))}

            try:
                payload = await fn(*args, **kwargs)
            except Exception as e:
                ms = int((time.perf_counter() - t0) * 1000)
                args_for_log["error"] = {"code": "internal", "message": str(e)}
                _safe_log_event(cfg, args_for_log, ok=False, ms=ms, corr_id=corr_id)
                raise

            ms = int((time.perf_counter() - t0) * 1000)
            err = _payload_error(payload)
            if err:
                args_for_log["error"] = err

            _safe_log_event(cfg, args_for_log, ok=_payload_ok(payload), ms=ms, corr_id=corr_id)
            return payload

        wrapper.__signature__ = fn_sig  # type: ignore[attr-defined]
        return wrapper

    return decorator
