"""Vendor value types for the fitness SDK.

These mirror the shapes the platform fitness SDK hands back (data types with
typed fields, data points grouped into data sets and time buckets, sessions)
and the request objects it accepts. Executors build requests from these types
and mappers read responses from them; nothing here knows about the method
channel.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

# Field value formats, as numbered by the vendor SDK.
FORMAT_INT32 = 1
FORMAT_FLOAT = 2
FORMAT_STRING = 3
FORMAT_MAP = 4

MILLIS_PER_DAY = 24 * 60 * 60 * 1000


@dataclass(frozen=True)
class Field:
    """A named, typed slot of a vendor data type."""

    name: str
    format: int


@dataclass(frozen=True)
class DataType:
    """A vendor data type: a stable name plus its ordered fields."""

    name: str
    fields: tuple[Field, ...]


TYPE_STEP_COUNT_DELTA = DataType("com.google.step_count.delta", (Field("steps", FORMAT_INT32),))
TYPE_DISTANCE_DELTA = DataType("com.google.distance.delta", (Field("distance", FORMAT_FLOAT),))
TYPE_CALORIES_EXPENDED = DataType("com.google.calories.expended", (Field("calories", FORMAT_FLOAT),))
TYPE_HEART_RATE_BPM = DataType("com.google.heart_rate.bpm", (Field("bpm", FORMAT_FLOAT),))
TYPE_WEIGHT = DataType("com.google.weight", (Field("weight", FORMAT_FLOAT),))
TYPE_HEIGHT = DataType("com.google.height", (Field("height", FORMAT_FLOAT),))
TYPE_HYDRATION = DataType("com.google.hydration", (Field("volume", FORMAT_FLOAT),))
TYPE_ACTIVITY_SEGMENT = DataType("com.google.activity.segment", (Field("activity", FORMAT_INT32),))

# Activity names accepted by sessions.
ACTIVITY_SLEEP = "sleep"
ACTIVITY_MEDITATION = "meditation"
ACTIVITY_WALKING = "walking"
ACTIVITY_RUNNING = "running"
ACTIVITY_BIKING = "biking"
ACTIVITY_YOGA = "yoga"


@dataclass(frozen=True)
class FitnessOptions:
    """The set of data types an account must be allowed to access."""

    data_types: frozenset[DataType] = frozenset()

    @classmethod
    def of(cls, *data_types: DataType) -> FitnessOptions:
        return cls(frozenset(data_types))


@dataclass(frozen=True)
class Account:
    """The signed-in account on whose behalf the SDK is called."""

    email: str
    id: str = ""


@dataclass(frozen=True)
class DataSource:
    """Where a data point originated; ``stream_name`` names the producing stream."""

    stream_name: str = ""
    app_package: str = ""


@dataclass(frozen=True)
class DataPoint:
    data_type: DataType
    start_time_millis: int
    end_time_millis: int
    values: dict[str, Union[int, float, str]]
    original_data_source: DataSource = field(default_factory=DataSource)

    def get_value(self, f: Field) -> Value:
        return Value(f.format, self.values.get(f.name))


@dataclass(frozen=True)
class Value:
    """A field value tagged with its declared format."""

    format: int
    raw: Union[int, float, str, None]

    def as_float(self) -> float:
        return float(self.raw)  # type: ignore[arg-type]

    def as_int(self) -> int:
        return int(self.raw)  # type: ignore[arg-type]


@dataclass(frozen=True)
class DataSet:
    data_type: DataType
    data_points: tuple[DataPoint, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.data_points


@dataclass(frozen=True)
class Bucket:
    """A time bucket of an aggregated read."""

    start_time_millis: int
    end_time_millis: int
    data_sets: tuple[DataSet, ...] = ()


@dataclass(frozen=True)
class Session:
    """A named, time-bounded activity instance."""

    name: str
    identifier: str
    activity: str
    start_time_millis: int
    end_time_millis: int
    description: str = ""
    active_time_millis: int | None = None

    @property
    def value(self) -> float:
        """Active duration in minutes, falling back to wall-clock duration."""
        millis = self.active_time_millis
        if millis is None:
            millis = self.end_time_millis - self.start_time_millis
        return millis / 60_000


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DataReadRequest:
    """History read. Exactly one of ``limit`` or ``bucket_by_time_millis`` is set."""

    data_type: DataType
    start_time_millis: int
    end_time_millis: int
    limit: int | None = None
    bucket_by_time_millis: int | None = None
    server_queries_enabled: bool = False

    def __post_init__(self) -> None:
        if (self.limit is None) == (self.bucket_by_time_millis is None):
            raise ValueError("DataReadRequest needs exactly one of limit or bucket_by_time_millis")


@dataclass(frozen=True)
class SessionReadRequest:
    data_type: DataType
    start_time_millis: int
    end_time_millis: int
    read_from_all_apps: bool = False
    server_queries_enabled: bool = False


@dataclass(frozen=True)
class SessionInsertRequest:
    session: Session
    data_sets: tuple[DataSet, ...] = ()


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DataReadResponse:
    data_sets: tuple[DataSet, ...] = ()
    buckets: tuple[Bucket, ...] = ()


@dataclass(frozen=True)
class SessionReadResponse:
    sessions: tuple[Session, ...] = ()
    session_data_sets: dict[str, tuple[DataSet, ...]] = field(default_factory=dict)

    def get_data_sets(self, session: Session) -> tuple[DataSet, ...]:
        """Data sets recorded during ``session``, keyed by its identifier."""
        return self.session_data_sets.get(session.identifier, ())
