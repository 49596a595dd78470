from __future__ import annotations

import datetime as _dt
import json
from typing import Any

from fit_config.settings import telemetry_dir, telemetry_disabled
from fit_common.context import get_corr_id
from fit_common.errors import REDACT_TOKEN

TELEMETRY_FILE = "bridge-telemetry.jsonl"

_SECRET_KEYS = {"authorization", "auth_bearer", "access_token", "token", "api_key", "apikey"}


def _redact_secrets(obj: Any) -> Any:
    if isinstance(obj, dict):
        out = {}
        for k, v in obj.items():
            if isinstance(k, str) and k.strip().lower() in _SECRET_KEYS:
                if isinstance(v, str) and v.strip().lower().startswith("bearer "):
                    out[k] = "Bearer " + REDACT_TOKEN
                else:
                    out[k] = REDACT_TOKEN
            else:
                out[k] = _redact_secrets(v)
        return out
    if isinstance(obj, list):
        return [_redact_secrets(x) for x in obj]
    return obj


def log_event(
    kind: str,
    name: str,
    args: dict | None = None,
    ok: bool = True,
    ms: int = 0,
    *,
    corr_id: str | None = None,
    telemetry_file: str = TELEMETRY_FILE,
) -> None:
    """
    Append one JSONL telemetry record for a bridge operation.
    """
    if telemetry_disabled():
        return

    rec = {
        "ts": _dt.datetime.now(_dt.timezone.utc).isoformat().replace("+00:00", "Z"),
        "kind": kind,
        "name": name,
        "corr_id": corr_id or get_corr_id(),
        "args": {} if args is None else dict(args),
        "ok": bool(ok),
        "ms": int(ms),
    }

    d = telemetry_dir()
    d.mkdir(parents=True, exist_ok=True)
    with (d / telemetry_file).open("a", encoding="utf-8") as f:
        f.write(json.dumps(_redact_secrets(rec), ensure_ascii=False, default=str) + "\n")


def telemetry_recent(n: int = 50, telemetry_file: str = TELEMETRY_FILE) -> dict:
    """
    Return last N telemetry records (bounded) with secrets redacted.
    """
    p = telemetry_dir() / telemetry_file
    if not p.exists():
        return {"records": []}

    try:
        n_int = int(n)
    except (TypeError, ValueError):
        n_int = 50
    n_int = max(1, min(n_int, 200))

    out = []
    for line in p.read_text(encoding="utf-8").splitlines()[-n_int:]:
        try:
            rec = json.loads(line)
        except json.JSONDecodeError:
            continue
        # redact again on read
        out.append(_redact_secrets(rec))

    return {"records": out}
