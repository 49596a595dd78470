from __future__ import annotations

from enum import IntEnum
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from fit_common.errors import typed_error


class PermissionState(IntEnum):
    """Permission check result; the value doubles as the wire result code."""
    GRANTED = 0
    DENIED = 1
    DENIED_SHOW_RATIONALE = 2


class TimeWindow(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: int  # epoch seconds
    end: int

    @model_validator(mode="after")
    def _ordered(self) -> "TimeWindow":
        if self.start > self.end:
            raise ValueError(f"window start {self.start} is after end {self.end}")
        return self

    @property
    def duration(self) -> int:
        return self.end - self.start


class DataPoint(BaseModel):
    """One raw provider measurement. Timestamps are nanoseconds since the epoch."""
    data_type: str = ""
    start_nanos: int
    end_nanos: int
    readings: Dict[str, Optional[float]] = Field(default_factory=dict)


class Bucket(BaseModel):
    start: int  # epoch seconds
    end: int
    points: List[DataPoint] = Field(default_factory=list)


class DatasetEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: int
    end: int
    value: int

    @model_validator(mode="after")
    def _ordered(self) -> "DatasetEntry":
        if self.start > self.end:
            raise ValueError(f"entry start {self.start} is after end {self.end}")
        return self


class Success(BaseModel):
    kind: Literal["success"] = "success"
    entries: List[DatasetEntry] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return True


class Failure(BaseModel):
    kind: Literal["failure"] = "failure"
    code: str
    message: str = ""

    @property
    def ok(self) -> bool:
        return False

    def to_error(self) -> dict:
        return typed_error(self.code, self.message)


RequestOutcome = Union[Success, Failure]
