from __future__ import annotations

from typing import Any

import pytest
import requests

from fit_bridge.http_client import HttpClient, HttpClientConfig


class _FakeResp:
    def __init__(self, payload: Any, status_code: int = 200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code}", response=self)

    def json(self):
        return self._payload


class _FakeSession(requests.Session):
    def __init__(self, resp: _FakeResp):
        super().__init__()
        self.resp = resp
        self.calls: list[dict] = []

    def request(self, **kwargs):
        self.calls.append(kwargs)
        return self.resp


def test_post_json_sends_body_and_default_timeout():
    session = _FakeSession(_FakeResp({"bucket": []}))
    client = HttpClient(config=HttpClientConfig(timeout=(1.0, 2.0), retries=0, user_agent="fit-bridge-test"), session=session)

    out = client.post_json("https://x/agg", {"a": 1}, headers={"Authorization": "Bearer t"})

    assert out == {"bucket": []}
    call = session.calls[0]
    assert call["method"] == "POST"
    assert call["json"] == {"a": 1}
    assert call["timeout"] == (1.0, 2.0)
    assert session.headers["User-Agent"] == "fit-bridge-test"


def test_non_2xx_raises():
    client = HttpClient(config=HttpClientConfig(retries=0), session=_FakeSession(_FakeResp({}, status_code=503)))
    with pytest.raises(requests.HTTPError):
        client.get_json("https://x/sources")


def test_retries_default_to_single_attempt(monkeypatch):
    monkeypatch.delenv("FIT_HTTP_RETRIES", raising=False)
    assert HttpClientConfig().retries == 0
