"""
Shared HTTP client for REST providers.

- Centralizes timeouts, optional retries and failure logging.
- Depends only on `requests` (and its bundled urllib3).
- Retries default to 0: providers make a single attempt per call and the
  caller decides whether to try again.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from typing import Any, Mapping

import requests
from requests import Response
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry


logger = logging.getLogger(__name__)


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


DEFAULT_RETRY_STATUS = (429, 500, 502, 503, 504)


def _default_timeout() -> tuple[float, float]:
    return (_env_float("FIT_HTTP_CONNECT_TIMEOUT", 3.05), _env_float("FIT_HTTP_READ_TIMEOUT", 20.0))


@dataclass(frozen=True)
class HttpClientConfig:
    timeout: tuple[float, float] = field(default_factory=_default_timeout)
    retries: int = field(default_factory=lambda: _env_int("FIT_HTTP_RETRIES", 0))
    backoff: float = field(default_factory=lambda: _env_float("FIT_HTTP_BACKOFF", 0.4))
    retry_statuses: tuple[int, ...] = DEFAULT_RETRY_STATUS
    user_agent: str = field(default_factory=lambda: os.getenv("FIT_HTTP_USER_AGENT", "fit-bridge/0.1"))


class HttpClient:
    """A small wrapper around `requests.Session` with sane defaults."""

    def __init__(self, *, config: HttpClientConfig | None = None, session: requests.Session | None = None) -> None:
        self.config = config or HttpClientConfig()
        self.session = session or requests.Session()
        self._configure_session(self.session, self.config)

    @staticmethod
    def _configure_session(session: requests.Session, config: HttpClientConfig) -> None:
        # per-request headers still override this
        session.headers["User-Agent"] = config.user_agent

        if config.retries <= 0:
            return

        retry = Retry(
            total=config.retries,
            connect=config.retries,
            read=config.retries,
            status=config.retries,
            backoff_factor=config.backoff,
            status_forcelist=config.retry_statuses,
            allowed_methods=frozenset(["HEAD", "GET", "OPTIONS"]),
            respect_retry_after_header=True,
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry, pool_connections=10, pool_maxsize=10)
        session.mount("https://", adapter)
        session.mount("http://", adapter)

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
        json: Any | None = None,
        timeout: tuple[float, float] | float | None = None,
        **kwargs: Any,
    ) -> Response:
        """Perform an HTTP request and raise for non-2xx responses."""
        t0 = time.perf_counter()
        try:
            resp = self.session.request(
                method=method,
                url=url,
                headers=dict(headers) if headers else None,
                params=dict(params) if params else None,
                json=json,
                timeout=timeout or self.config.timeout,
                **kwargs,
            )
            resp.raise_for_status()
            return resp
        except requests.RequestException as e:
            ms = int((time.perf_counter() - t0) * 1000)
            status = getattr(getattr(e, "response", None), "status_code", None)
            logger.warning(
                "HTTP %s %s failed (status=%s, ms=%s): %s",
                method.upper(),
                url,
                status,
                ms,
                str(e),
            )
            raise

    def get_json(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> Any:
        return self.request("GET", url, headers=headers, params=params, **kwargs).json()

    def post_json(
        self,
        url: str,
        body: Any,
        *,
        headers: Mapping[str, str] | None = None,
        **kwargs: Any,
    ) -> Any:
        return self.request("POST", url, headers=headers, json=body, **kwargs).json()
