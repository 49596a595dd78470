from __future__ import annotations

import uuid
from contextvars import ContextVar

_corr_id_ctx: ContextVar[str | None] = ContextVar("corr_id", default=None)


def new_corr_id() -> str:
    return uuid.uuid4().hex


def get_corr_id() -> str | None:
    return _corr_id_ctx.get()


def set_corr_id(corr_id: str | None) -> None:
    if corr_id:
        _corr_id_ctx.set(corr_id)
