import pytest

import fit_common.tooling as tooling
from fit_common.context import get_corr_id
from fit_common.tooling import InstrumentConfig, instrument_async, sanitize_args_for_log
from fit_bridge.domain import Failure, Success


def test_sanitize_args_drops_self_and_secrets():
    out = sanitize_args_for_log({"self": object(), "token": "t", "duration_seconds": 5})
    assert out == {"token": "***redacted***", "duration_seconds": 5}


@pytest.mark.asyncio
async def test_failure_outcome_logged_as_not_ok(monkeypatch):
    events = []
    monkeypatch.setattr(tooling, "log_event", lambda *a, **k: events.append((a, k)))

    @instrument_async(InstrumentConfig(kind="coordinator", name="steps.read"))
    async def fn(duration_seconds: int, auth_bearer: str = "secret"):
        return Failure(code="provider_read_failed", message="boom")

    out = await fn(60)
    assert isinstance(out, Failure)

    (args, kwargs), = events
    kind, name, logged = args
    assert (kind, name) == ("coordinator", "steps.read")
    assert kwargs["ok"] is False
    assert logged["args"] == {"duration_seconds": 60, "auth_bearer": "***redacted***"}
    assert logged["error"]["code"] == "provider_read_failed"
    assert kwargs["corr_id"] == get_corr_id()


@pytest.mark.asyncio
async def test_success_outcome_logged_as_ok(monkeypatch):
    events = []
    monkeypatch.setattr(tooling, "log_event", lambda *a, **k: events.append((a, k)))

    @instrument_async(InstrumentConfig(kind="coordinator", name="steps.read"))
    async def fn():
        return Success()

    await fn()
    assert events[0][1]["ok"] is True
    assert "error" not in events[0][0][2]


@pytest.mark.asyncio
async def test_exceptions_are_logged_then_reraised(monkeypatch):
    events = []
    monkeypatch.setattr(tooling, "log_event", lambda *a, **k: events.append((a, k)))

    @instrument_async(InstrumentConfig(kind="coordinator", name="permission.request"))
    async def fn():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await fn()
    assert events[0][1]["ok"] is False
    assert events[0][0][2]["error"] == {"code": "internal", "message": "boom"}


@pytest.mark.asyncio
async def test_new_corr_id_per_call(monkeypatch):
    seen = []
    monkeypatch.setattr(tooling, "log_event", lambda *a, **k: seen.append(k["corr_id"]))

    @instrument_async(InstrumentConfig(kind="k", name="n"))
    async def fn():
        return {}

    await fn()
    await fn()
    assert len(set(seen)) == 2


@pytest.mark.asyncio
async def test_telemetry_io_errors_do_not_break_the_call(monkeypatch):
    def _disk_full(*a, **k):
        raise OSError("disk full")

    monkeypatch.setattr(tooling, "log_event", _disk_full)

    @instrument_async(InstrumentConfig(kind="coordinator", name="steps.read"))
    async def fn():
        return Success()

    out = await fn()
    assert isinstance(out, Success)
