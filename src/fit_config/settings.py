from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


DEFAULT_CAPABILITY = "android.permission.ACTIVITY_RECOGNITION"
DEFAULT_DATA_TYPE = "com.google.step_count.delta"
DEFAULT_VALUE_FIELD = "steps"
DEFAULT_BUCKET_SECONDS = 24 * 60 * 60
DEFAULT_PERMISSION_REQUEST_CODE = 989


def _find_repo_root(start: Path) -> Optional[Path]:
    """
    Walk upward until we find pyproject.toml or .git.
    """
    start = start.resolve()
    for p in (start, *start.parents):
        if (p / "pyproject.toml").exists() or (p / ".git").exists():
            return p
    return None


@lru_cache(maxsize=1)
def repo_root() -> Path:
    """Best-effort repository root discovery.

    Order of precedence:
      1) FIT_REPO_ROOT (explicit override)
      2) walk upward from current working directory
      3) current working directory
    """
    explicit = os.getenv("FIT_REPO_ROOT")
    if explicit:
        p = Path(explicit).expanduser().resolve()
        if not p.exists() or not p.is_dir():
            raise RuntimeError(f"FIT_REPO_ROOT does not exist or is not a directory: {p}")
        return p

    return _find_repo_root(Path.cwd()) or Path.cwd().resolve()


@lru_cache(maxsize=1)
def load_env_once() -> Optional[Path]:
    """
    Load dotenv exactly once. Precedence:
      1) FIT_ENV_FILE (explicit path)
      2) repo-root/.env
    """
    candidates = []
    explicit = os.getenv("FIT_ENV_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.append(repo_root() / ".env")

    for p in candidates:
        p = p.resolve()
        if p.exists() and p.is_file():
            # Do NOT override already-set environment variables
            load_dotenv(dotenv_path=str(p), override=False)
            return p

    return None


def telemetry_dir() -> Path:
    """
    Default telemetry dir. Override with FIT_TELEMETRY_DIR.
    """
    p = os.getenv("FIT_TELEMETRY_DIR")
    if p:
        return Path(p).expanduser().resolve()
    return (repo_root() / "artifacts" / "telemetry").resolve()


def telemetry_disabled() -> bool:
    return os.getenv("FIT_DISABLE_TELEMETRY", "0").strip().lower() in {"1", "true", "yes"}


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


@dataclass(frozen=True)
class BridgeSettings:
    """What the bridge asks for, and how it pages reads."""
    capability: str = DEFAULT_CAPABILITY
    data_type: str = DEFAULT_DATA_TYPE
    value_field: str = DEFAULT_VALUE_FIELD
    bucket_seconds: int = DEFAULT_BUCKET_SECONDS
    permission_request_code: int = DEFAULT_PERMISSION_REQUEST_CODE

    @classmethod
    def from_env(cls) -> "BridgeSettings":
        bucket_seconds = _env_int("FIT_BUCKET_SECONDS", DEFAULT_BUCKET_SECONDS)
        if bucket_seconds <= 0:
            bucket_seconds = DEFAULT_BUCKET_SECONDS
        return cls(
            capability=os.getenv("FIT_CAPABILITY", DEFAULT_CAPABILITY).strip() or DEFAULT_CAPABILITY,
            data_type=os.getenv("FIT_DATA_TYPE", DEFAULT_DATA_TYPE).strip() or DEFAULT_DATA_TYPE,
            value_field=os.getenv("FIT_VALUE_FIELD", DEFAULT_VALUE_FIELD).strip() or DEFAULT_VALUE_FIELD,
            bucket_seconds=bucket_seconds,
            permission_request_code=_env_int("FIT_PERMISSION_REQUEST_CODE", DEFAULT_PERMISSION_REQUEST_CODE),
        )


def configure_logging() -> None:
    """
    Configure logging explicitly. No import-time side effects.
    Idempotent: if logging is already configured, do nothing.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    level_name = os.getenv("FIT_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = os.getenv(
        "FIT_LOG_FORMAT",
        "%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    logging.basicConfig(level=level, format=fmt)


def init_runtime(*, configure_logs: bool = True, load_env: bool = True) -> None:
    """
    Call this from entrypoints only (scripts, host shims).
    """
    if load_env:
        load_env_once()
    if configure_logs:
        configure_logging()
