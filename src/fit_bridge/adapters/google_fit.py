from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

from fit_common.errors import ProviderReadError, ProviderSubscribeError
from fit_bridge.domain.models import Bucket, DataPoint, TimeWindow
from fit_bridge.http_client import HttpClient


logger = logging.getLogger(__name__)

GOOGLE_FIT_BASE_URL = "https://www.googleapis.com/fitness/v1/users/me"

# Names of the positional values in a point, per data type.
DATA_TYPE_FIELDS: Dict[str, Tuple[str, ...]] = {
    "com.google.step_count.delta": ("steps",),
    "com.google.calories.expended": ("calories",),
    "com.google.distance.delta": ("distance",),
    "com.google.active_minutes": ("duration",),
    "com.google.heart_minutes": ("intensity",),
}


def _auth_headers(auth_bearer: str | None) -> dict[str, str]:
    if not auth_bearer:
        return {}
    t = str(auth_bearer).strip()
    if not t.lower().startswith("bearer "):
        t = f"Bearer {t}"
    return {"Authorization": t}


def _point_value(v: Dict[str, Any]) -> Optional[float]:
    if "intVal" in v:
        return v["intVal"]
    if "fpVal" in v:
        return v["fpVal"]
    return None


def parse_aggregate_response(data_type: str, raw: Any) -> List[Bucket]:
    """
    Map a `dataset:aggregate` response into Buckets.

    {"bucket": [{"startTimeMillis": "...", "endTimeMillis": "...",
                 "dataset": [{"point": [{"startTimeNanos": "...", "endTimeNanos": "...",
                                         "value": [{"intVal": 10}]}]}]}]}
    """
    if not isinstance(raw, dict):
        raise ProviderReadError(f"unexpected aggregate payload: {type(raw).__name__}")

    names = DATA_TYPE_FIELDS.get(data_type, ("value",))
    buckets: List[Bucket] = []
    for b in raw.get("bucket") or []:
        points: List[DataPoint] = []
        for ds in b.get("dataset") or []:
            for p in ds.get("point") or []:
                values = p.get("value") or []
                readings = {name: _point_value(v) for name, v in zip(names, values) if isinstance(v, dict)}
                points.append(
                    DataPoint(
                        data_type=p.get("dataTypeName") or data_type,
                        start_nanos=int(p.get("startTimeNanos", 0)),
                        end_nanos=int(p.get("endTimeNanos", 0)),
                        readings=readings,
                    )
                )
        buckets.append(
            Bucket(
                start=int(b.get("startTimeMillis", 0)) // 1000,
                end=int(b.get("endTimeMillis", 0)) // 1000,
                points=points,
            )
        )
    return buckets


class GoogleFitProvider:
    """
    ProviderClient over the Google Fit REST API.
    Blocking HTTP runs in a worker thread; each call is a single attempt.
    """

    def __init__(
        self,
        auth_bearer: str | None,
        *,
        http: HttpClient | None = None,
        base_url: str = GOOGLE_FIT_BASE_URL,
    ) -> None:
        self._headers = _auth_headers(auth_bearer)
        self.http = http or HttpClient()
        self.base_url = base_url.rstrip("/")

    def _subscribe_sync(self, data_type: str) -> None:
        raw = self.http.get_json(
            f"{self.base_url}/dataSources",
            headers=self._headers,
            params={"dataTypeName": data_type},
        )
        sources = (raw or {}).get("dataSource") or []
        if not sources:
            raise ProviderSubscribeError(f"no Google Fit data source records {data_type}")
        logger.debug("Google Fit has %s data source(s) for %s", len(sources), data_type)

    async def subscribe(self, data_type: str) -> None:
        try:
            await asyncio.to_thread(self._subscribe_sync, data_type)
        except ProviderSubscribeError:
            raise
        except Exception as e:
            raise ProviderSubscribeError(str(e)) from e

    def _read_sync(self, data_type: str, window: TimeWindow, bucket_seconds: int) -> List[Bucket]:
        body = {
            "aggregateBy": [{"dataTypeName": data_type}],
            "bucketByTime": {"durationMillis": int(bucket_seconds) * 1000},
            "startTimeMillis": window.start * 1000,
            "endTimeMillis": window.end * 1000,
        }
        raw = self.http.post_json(f"{self.base_url}/dataset:aggregate", body, headers=self._headers)
        return parse_aggregate_response(data_type, raw)

    async def read(self, data_type: str, window: TimeWindow, bucket_seconds: int) -> List[Bucket]:
        try:
            return await asyncio.to_thread(self._read_sync, data_type, window, bucket_seconds)
        except ProviderReadError:
            raise
        except Exception as e:
            raise ProviderReadError(str(e)) from e
