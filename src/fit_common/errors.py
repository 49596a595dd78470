from __future__ import annotations

from typing import Any

REDACT_TOKEN = "***redacted***"


def typed_error(code: str, message: str, *, details: dict | None = None, **extra: Any) -> dict:
    """
    Standard error envelope:
      {"error": {"code": code, "message": message, "details": {...}}, ...extra}
    """
    err: dict[str, Any] = {"error": {"code": code, "message": message}}
    if details:
        err["error"]["details"] = details
    if extra:
        err.update(extra)
    return err


class BridgeError(Exception):
    """Base class; `code` is the stable identifier carried into error envelopes."""

    code = "internal"

    def to_error(self, **extra: Any) -> dict:
        return typed_error(self.code, str(self), **extra)


class PermissionDeniedError(BridgeError):
    code = "permission_denied"


class PermissionDeniedNeedsRationaleError(PermissionDeniedError):
    code = "permission_denied_rationale"


class ProviderSubscribeError(BridgeError):
    code = "provider_subscribe_failed"


class ProviderReadError(BridgeError):
    code = "provider_read_failed"


class MissingFieldError(BridgeError):
    code = "missing_field"
