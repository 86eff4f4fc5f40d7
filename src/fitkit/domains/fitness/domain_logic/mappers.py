"""Response mappers — vendor responses to flat reply entries.

Every entry has the same shape whether it came from a data point or a session::

    {"value": 1234, "date_from": 1000, "date_to": 2000,
     "source": "user_input", "user_entered": True}
"""

from __future__ import annotations

from collections import Counter
from typing import Any, Iterable, Union

from fitkit.domains.fitness.connectors.models import (
    FORMAT_FLOAT,
    FORMAT_INT32,
    DataPoint,
    DataReadResponse,
    DataSet,
    Session,
    SessionReadResponse,
)
from fitkit.domains.fitness.domain_logic.errors import UnimplementedError
from fitkit.domains.fitness.domain_logic.requests import ActivityReadRequest

# Stream name the platform gives to manually entered data.
USER_INPUT_SOURCE = "user_input"


def _entry(value: Union[int, float], date_from: int, date_to: int, source: str) -> dict[str, Any]:
    return {
        "value": value,
        "date_from": date_from,
        "date_to": date_to,
        "source": source,
        "user_entered": source == USER_INPUT_SOURCE,
    }


def data_point_to_map(data_point: DataPoint) -> dict[str, Any]:
    """Map a data point using the first field of its data type.

    Raises:
        UnimplementedError: If that field is neither float nor int32.
    """
    f = data_point.data_type.fields[0]
    value = data_point.get_value(f)
    if value.format == FORMAT_FLOAT:
        number: Union[int, float] = value.as_float()
    elif value.format == FORMAT_INT32:
        number = value.as_int()
    else:
        raise UnimplementedError(
            f"Field format {value.format} of {data_point.data_type.name}.{f.name} is not supported"
        )
    return _entry(
        number,
        data_point.start_time_millis,
        data_point.end_time_millis,
        data_point.original_data_source.stream_name,
    )


def map_data_read_response(response: DataReadResponse) -> list[dict[str, Any]]:
    """Flatten plain and bucketed data sets, in vendor order."""
    data_sets: list[DataSet] = list(response.data_sets)
    for bucket in response.buckets:
        data_sets.extend(bucket.data_sets)
    return [
        data_point_to_map(point)
        for data_set in data_sets
        if not data_set.is_empty
        for point in data_set.data_points
    ]


def session_source(session: Session, data_sets: Iterable[DataSet]) -> str:
    """The most frequent stream name among the session's data points.

    Ties go to the stream seen first. Falls back to the session name, then "".
    """
    counts = Counter(
        point.original_data_source.stream_name
        for data_set in data_sets
        if not data_set.is_empty
        for point in data_set.data_points
        if point.original_data_source.stream_name
    )
    if counts:
        return max(counts.items(), key=lambda kv: kv[1])[0]
    return session.name or ""


def session_to_map(session: Session, data_sets: Iterable[DataSet]) -> dict[str, Any]:
    return _entry(
        session.value,
        session.start_time_millis,
        session.end_time_millis,
        session_source(session, data_sets),
    )


def map_session_read_response(
    request: ActivityReadRequest, response: SessionReadResponse
) -> list[dict[str, Any]]:
    """Map sessions of the requested activity.

    With a limit, only the ``limit`` most recent sessions by end time are kept;
    kept sessions stay in vendor order.
    """
    sessions = [s for s in response.sessions if s.activity == request.type.activity]
    if request.limit is not None and len(sessions) > request.limit:
        by_recency = sorted(
            range(len(sessions)), key=lambda i: sessions[i].end_time_millis
        )
        keep = set(by_recency[-request.limit:])
        sessions = [s for i, s in enumerate(sessions) if i in keep]
    return [session_to_map(s, response.get_data_sets(s)) for s in sessions]
