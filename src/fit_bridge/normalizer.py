from __future__ import annotations

import json
import logging
import math
from typing import Iterable, List

from fit_config.settings import DEFAULT_VALUE_FIELD
from fit_common.errors import MissingFieldError
from fit_bridge.domain.models import DataPoint, DatasetEntry

logger = logging.getLogger(__name__)

NANOS_PER_SECOND = 1_000_000_000


class ResultNormalizer:
    """
    Maps raw provider points to DatasetEntry records and serializes them.

    `field` is read from each point; `value_key` is the name used on the wire
    (the engine contract expects "steps").
    """

    def __init__(self, field: str = DEFAULT_VALUE_FIELD, *, value_key: str = "steps") -> None:
        self.field = field
        self.value_key = value_key

    def to_entry(self, point: DataPoint) -> DatasetEntry:
        raw = point.readings.get(self.field)
        if raw is None or isinstance(raw, bool):
            raise MissingFieldError(f"data point has no numeric '{self.field}'")
        try:
            value = float(raw)
        except (TypeError, ValueError):
            raise MissingFieldError(f"data point field '{self.field}' is not numeric: {raw!r}") from None
        if not math.isfinite(value):
            raise MissingFieldError(f"data point field '{self.field}' is not finite")

        start = point.start_nanos // NANOS_PER_SECOND
        end = point.end_nanos // NANOS_PER_SECOND
        if end < start:
            raise MissingFieldError(f"data point ends before it starts ({start} > {end})")
        return DatasetEntry(start=start, end=end, value=int(value))

    def normalize(self, points: Iterable[DataPoint]) -> List[DatasetEntry]:
        """Partial data beats no data: bad points are skipped, never fatal."""
        entries: List[DatasetEntry] = []
        skipped = 0
        for p in points:
            try:
                entries.append(self.to_entry(p))
            except MissingFieldError as e:
                skipped += 1
                logger.debug("Skipping data point: %s", e)
        if skipped:
            logger.info("Skipped %s data point(s) without usable '%s'", skipped, self.field)
        return entries

    def to_records(self, entries: Iterable[DatasetEntry]) -> List[dict]:
        return [{"start": e.start, "end": e.end, self.value_key: e.value} for e in entries]

    def serialize(self, entries: Iterable[DatasetEntry]) -> str:
        return json.dumps(self.to_records(entries), separators=(",", ":"))
