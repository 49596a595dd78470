from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional

from fit_config.settings import DEFAULT_BUCKET_SECONDS
from fit_bridge.domain.models import DataPoint, TimeWindow
from fit_bridge.domain.ports import ProviderClientPort

logger = logging.getLogger(__name__)


def _now_seconds() -> int:
    return int(time.time())


class WindowedReader:
    """
    Reads "the last N seconds" from a provider in fixed-size buckets and
    flattens the buckets into one ordered list of raw points.
    """

    def __init__(
        self,
        provider: ProviderClientPort,
        *,
        bucket_seconds: int = DEFAULT_BUCKET_SECONDS,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        if bucket_seconds <= 0:
            raise ValueError("bucket_seconds must be positive")
        self.provider = provider
        self.bucket_seconds = int(bucket_seconds)
        self._clock = clock or _now_seconds

    def compute_window(self, duration_seconds: int) -> TimeWindow:
        duration = int(duration_seconds)
        if duration < 0:
            raise ValueError(f"duration_seconds must be >= 0, got {duration_seconds}")
        end = int(self._clock())
        return TimeWindow(start=end - duration, end=end)

    async def read(self, data_type: str, duration_seconds: int) -> List[DataPoint]:
        window = self.compute_window(duration_seconds)
        buckets = await self.provider.read(data_type, window, self.bucket_seconds)

        points: List[DataPoint] = []
        for bucket in sorted(buckets or [], key=lambda b: b.start):
            points.extend(sorted(bucket.points, key=lambda p: p.start_nanos))

        logger.debug(
            "Read %s points in %s buckets for %s [%s, %s]",
            len(points), len(buckets or []), data_type, window.start, window.end,
        )
        return points
