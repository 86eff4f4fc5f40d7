"""Type registry — abstract data-type identifiers to vendor descriptors.

A caller names a quantity (``"steps"``) or an activity (``"mindfulness"``).
Quantities are read as samples of a vendor data type; activities are read and
written as sessions of a vendor activity.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from fitkit.domains.fitness.connectors.models import (
    ACTIVITY_BIKING,
    ACTIVITY_MEDITATION,
    ACTIVITY_RUNNING,
    ACTIVITY_SLEEP,
    ACTIVITY_WALKING,
    ACTIVITY_YOGA,
    TYPE_ACTIVITY_SEGMENT,
    TYPE_CALORIES_EXPENDED,
    TYPE_DISTANCE_DELTA,
    TYPE_HEART_RATE_BPM,
    TYPE_HEIGHT,
    TYPE_HYDRATION,
    TYPE_STEP_COUNT_DELTA,
    TYPE_WEIGHT,
    DataType,
)
from fitkit.domains.fitness.domain_logic.errors import UnsupportedTypeError


@dataclass(frozen=True)
class SampleType:
    """A scalar time-series quantity."""

    id: str
    data_type: DataType


@dataclass(frozen=True)
class ActivityType:
    """A named activity, stored as sessions."""

    id: str
    activity: str

    @property
    def data_type(self) -> DataType:
        return TYPE_ACTIVITY_SEGMENT


DataTypeDescriptor = Union[SampleType, ActivityType]


_REGISTERED: tuple[DataTypeDescriptor, ...] = (
    SampleType("steps", TYPE_STEP_COUNT_DELTA),
    SampleType("distance", TYPE_DISTANCE_DELTA),
    SampleType("calories", TYPE_CALORIES_EXPENDED),
    SampleType("heart_rate", TYPE_HEART_RATE_BPM),
    SampleType("weight", TYPE_WEIGHT),
    SampleType("height", TYPE_HEIGHT),
    SampleType("water", TYPE_HYDRATION),
    ActivityType("sleep", ACTIVITY_SLEEP),
    ActivityType("mindfulness", ACTIVITY_MEDITATION),
    ActivityType("walking", ACTIVITY_WALKING),
    ActivityType("running", ACTIVITY_RUNNING),
    ActivityType("biking", ACTIVITY_BIKING),
    ActivityType("yoga", ACTIVITY_YOGA),
)

_BY_ID: dict[str, DataTypeDescriptor] = {t.id: t for t in _REGISTERED}
_SAMPLE_BY_DATA_TYPE: dict[str, str] = {
    t.data_type.name: t.id for t in _REGISTERED if isinstance(t, SampleType)
}
_ACTIVITY_BY_NAME: dict[str, str] = {
    t.activity: t.id for t in _REGISTERED if isinstance(t, ActivityType)
}


def supported_type_ids() -> list[str]:
    """All identifiers the registry accepts, in registration order."""
    return [t.id for t in _REGISTERED]


def to_sdk_type(type_id: str) -> DataTypeDescriptor:
    """Resolve an abstract identifier.

    Raises:
        UnsupportedTypeError: If ``type_id`` is not registered.
    """
    try:
        return _BY_ID[type_id]
    except KeyError:
        raise UnsupportedTypeError(type_id) from None


def from_sdk_type(data_type: DataType, activity: str | None = None) -> str:
    """Map a vendor data type (and activity, for sessions) back to its identifier.

    Raises:
        UnsupportedTypeError: If no registered identifier matches.
    """
    if data_type == TYPE_ACTIVITY_SEGMENT:
        if activity is not None and activity in _ACTIVITY_BY_NAME:
            return _ACTIVITY_BY_NAME[activity]
        raise UnsupportedTypeError(f"{data_type.name}/{activity}")
    if data_type.name in _SAMPLE_BY_DATA_TYPE:
        return _SAMPLE_BY_DATA_TYPE[data_type.name]
    raise UnsupportedTypeError(data_type.name)


def descriptor_id(descriptor: DataTypeDescriptor) -> str:
    """Round-trip helper: the identifier the registry maps ``descriptor`` back to."""
    if isinstance(descriptor, ActivityType):
        return from_sdk_type(descriptor.data_type, descriptor.activity)
    return from_sdk_type(descriptor.data_type)
