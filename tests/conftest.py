from __future__ import annotations

import pytest

_BRIDGE_ENV = (
    "FIT_CAPABILITY",
    "FIT_DATA_TYPE",
    "FIT_VALUE_FIELD",
    "FIT_BUCKET_SECONDS",
    "FIT_PERMISSION_REQUEST_CODE",
    "FIT_DISABLE_TELEMETRY",
)


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path, monkeypatch):
    """Telemetry goes to a per-test dir; bridge settings start from defaults."""
    monkeypatch.setenv("FIT_TELEMETRY_DIR", str(tmp_path / "telemetry"))
    for name in _BRIDGE_ENV:
        monkeypatch.delenv(name, raising=False)
