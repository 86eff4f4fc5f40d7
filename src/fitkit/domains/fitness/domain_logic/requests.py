"""Request parsers — typed requests from an untyped call payload.

Every parser fails fast with :class:`BadRequestError` (or
:class:`UnsupportedTypeError` for an unknown ``type``) before any vendor call
is made.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Union

from fitkit.domains.fitness.domain_logic.errors import BadRequestError
from fitkit.domains.fitness.domain_logic.types import (
    ActivityType,
    DataTypeDescriptor,
    SampleType,
    to_sdk_type,
)


@dataclass(frozen=True)
class PermissionsRequest:
    types: tuple[DataTypeDescriptor, ...]


@dataclass(frozen=True)
class SampleReadRequest:
    type: SampleType
    date_from: int
    date_to: int
    limit: int | None = None


@dataclass(frozen=True)
class ActivityReadRequest:
    type: ActivityType
    date_from: int
    date_to: int
    limit: int | None = None


ReadRequest = Union[SampleReadRequest, ActivityReadRequest]


@dataclass(frozen=True)
class WriteRequest:
    """Activity session to insert. Sample writes are not supported."""

    type: ActivityType
    date_from: int
    date_to: int
    name: str = ""
    description: str = ""


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------

def _safe_long(payload: Mapping[str, Any], key: str) -> int:
    """Epoch millis from ``payload[key]``.

    The channel may deliver small values as 32-bit and large ones as 64-bit
    integers; both arrive here as ``int``. Bools are ints in Python but never
    a timestamp.
    """
    if payload.get(key) is None:
        raise BadRequestError(f"{key} is not defined", field=key)
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise BadRequestError(
            f"{key} must be an integer epoch-millis value, got {type(value).__name__}",
            field=key,
        )
    return value


def _type(payload: Mapping[str, Any]) -> DataTypeDescriptor:
    type_id = payload.get("type")
    if type_id is None:
        raise BadRequestError("type is not defined", field="type")
    if not isinstance(type_id, str):
        raise BadRequestError("type must be a string", field="type")
    return to_sdk_type(type_id)


def _time_range(payload: Mapping[str, Any]) -> tuple[int, int]:
    date_from = _safe_long(payload, "date_from")
    date_to = _safe_long(payload, "date_to")
    if date_from > date_to:
        raise BadRequestError(
            f"date_from ({date_from}) must not be after date_to ({date_to})",
            field="date_from",
        )
    return date_from, date_to


def _optional_str(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise BadRequestError(f"{key} must be a string", field=key)
    return value


# ---------------------------------------------------------------------------
# Parsers
# ---------------------------------------------------------------------------

def parse_permissions_request(payload: Mapping[str, Any]) -> PermissionsRequest:
    """Parse ``{"types": [...]}``; duplicates are dropped, order kept."""
    raw = payload.get("types")
    if raw is None:
        raise BadRequestError("types is not defined", field="types")
    if isinstance(raw, str) or not isinstance(raw, (list, tuple)):
        raise BadRequestError("types must be a list of type identifiers", field="types")

    types: list[DataTypeDescriptor] = []
    for type_id in raw:
        if not isinstance(type_id, str):
            raise BadRequestError("types must be a list of type identifiers", field="types")
        descriptor = to_sdk_type(type_id)
        if descriptor not in types:
            types.append(descriptor)
    return PermissionsRequest(tuple(types))


def parse_read_request(payload: Mapping[str, Any]) -> ReadRequest:
    descriptor = _type(payload)
    date_from, date_to = _time_range(payload)

    limit = payload.get("limit")
    if limit is not None:
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise BadRequestError("limit must be a positive integer", field="limit")

    if isinstance(descriptor, ActivityType):
        return ActivityReadRequest(descriptor, date_from, date_to, limit)
    return SampleReadRequest(descriptor, date_from, date_to, limit)


def parse_write_request(payload: Mapping[str, Any]) -> WriteRequest:
    descriptor = _type(payload)
    if not isinstance(descriptor, ActivityType):
        raise BadRequestError(
            f"type {descriptor.id!r} is not an activity and cannot be written",
            field="type",
        )
    date_from, date_to = _time_range(payload)
    return WriteRequest(
        descriptor,
        date_from,
        date_to,
        name=_optional_str(payload, "name"),
        description=_optional_str(payload, "description"),
    )
