"""Tests for the response mappers."""

from __future__ import annotations

import pytest

from fitkit.domains.fitness.connectors.models import (
    FORMAT_STRING,
    TYPE_ACTIVITY_SEGMENT,
    TYPE_HEART_RATE_BPM,
    TYPE_STEP_COUNT_DELTA,
    Bucket,
    DataPoint,
    DataReadResponse,
    DataSet,
    DataSource,
    DataType,
    Field,
    Session,
    SessionReadResponse,
)
from fitkit.domains.fitness.domain_logic.errors import UnimplementedError
from fitkit.domains.fitness.domain_logic.mappers import (
    data_point_to_map,
    map_data_read_response,
    map_session_read_response,
    session_source,
)
from fitkit.domains.fitness.domain_logic.requests import ActivityReadRequest
from fitkit.domains.fitness.domain_logic.types import to_sdk_type


def _steps(start, steps, stream="estimated_steps"):
    return DataPoint(TYPE_STEP_COUNT_DELTA, start, start + 100, {"steps": steps}, DataSource(stream))


def _segment(stream):
    return DataPoint(TYPE_ACTIVITY_SEGMENT, 0, 10, {"activity": 45}, DataSource(stream))


def _session(identifier, end, activity="meditation", name="Calm"):
    return Session(
        name=name,
        identifier=identifier,
        activity=activity,
        start_time_millis=end - 600_000,
        end_time_millis=end,
    )


class TestDataPointToMap:
    def test_int_field(self):
        entry = data_point_to_map(_steps(1000, 42))
        assert entry == {
            "value": 42,
            "date_from": 1000,
            "date_to": 1100,
            "source": "estimated_steps",
            "user_entered": False,
        }
        assert isinstance(entry["value"], int)

    def test_float_field(self):
        point = DataPoint(TYPE_HEART_RATE_BPM, 5, 5, {"bpm": 71}, DataSource("watch"))
        entry = data_point_to_map(point)
        assert entry["value"] == 71.0
        assert isinstance(entry["value"], float)

    def test_user_input_source(self):
        assert data_point_to_map(_steps(0, 1, stream="user_input"))["user_entered"] is True

    def test_other_format_is_unimplemented(self):
        note = DataType("com.example.note", (Field("text", FORMAT_STRING),))
        point = DataPoint(note, 0, 0, {"text": "hello"})
        with pytest.raises(UnimplementedError):
            data_point_to_map(point)


class TestMapDataReadResponse:
    def test_flattens_data_sets_then_buckets_skipping_empty(self):
        response = DataReadResponse(
            data_sets=(
                DataSet(TYPE_STEP_COUNT_DELTA, (_steps(0, 1), _steps(100, 2))),
                DataSet(TYPE_STEP_COUNT_DELTA),
            ),
            buckets=(
                Bucket(0, 10, (DataSet(TYPE_STEP_COUNT_DELTA, (_steps(200, 3),)),)),
                Bucket(10, 20, ()),
                Bucket(20, 30, (DataSet(TYPE_STEP_COUNT_DELTA),)),
            ),
        )
        assert [e["value"] for e in map_data_read_response(response)] == [1, 2, 3]

    def test_empty_response(self):
        assert map_data_read_response(DataReadResponse()) == []


class TestSessionSource:
    def test_majority_stream_wins(self):
        data_sets = [DataSet(TYPE_ACTIVITY_SEGMENT, (_segment("A"), _segment("A"), _segment("B")))]
        assert session_source(_session("s", 1000), data_sets) == "A"

    def test_votes_span_data_sets(self):
        data_sets = [
            DataSet(TYPE_ACTIVITY_SEGMENT, (_segment("A"),)),
            DataSet(TYPE_ACTIVITY_SEGMENT, (_segment("B"), _segment("B"))),
        ]
        assert session_source(_session("s", 1000), data_sets) == "B"

    def test_tie_goes_to_first_seen(self):
        data_sets = [DataSet(TYPE_ACTIVITY_SEGMENT, (_segment("B"), _segment("A")))]
        assert session_source(_session("s", 1000), data_sets) == "B"

    def test_empty_stream_names_ignored(self):
        data_sets = [DataSet(TYPE_ACTIVITY_SEGMENT, (_segment(""), _segment(""), _segment("A")))]
        assert session_source(_session("s", 1000), data_sets) == "A"

    def test_falls_back_to_session_name(self):
        assert session_source(_session("s", 1000, name="Evening sit"), []) == "Evening sit"

    def test_falls_back_to_empty_string(self):
        assert session_source(_session("s", 1000, name=""), [DataSet(TYPE_ACTIVITY_SEGMENT)]) == ""


class TestMapSessionReadResponse:
    def _request(self, limit=None):
        return ActivityReadRequest(to_sdk_type("mindfulness"), 0, 10_000_000, limit)

    def test_filters_by_activity(self):
        response = SessionReadResponse(sessions=(
            _session("m1", 1_000_000),
            _session("s1", 2_000_000, activity="sleep"),
        ))
        entries = map_session_read_response(self._request(), response)
        assert len(entries) == 1
        assert entries[0]["date_to"] == 1_000_000

    def test_limit_keeps_most_recent_in_vendor_order(self):
        response = SessionReadResponse(sessions=(
            _session("late", 3_000_000),
            _session("early", 1_000_000),
            _session("middle", 2_000_000),
        ))
        entries = map_session_read_response(self._request(limit=2), response)
        assert [e["date_to"] for e in entries] == [3_000_000, 2_000_000]

    def test_value_is_duration_in_minutes(self):
        response = SessionReadResponse(sessions=(_session("m1", 1_000_000),))
        entry = map_session_read_response(self._request(), response)[0]
        assert entry["value"] == pytest.approx(10.0)

    def test_source_from_session_data_sets(self):
        session = _session("m1", 1_000_000, name="Calm")
        response = SessionReadResponse(
            sessions=(session,),
            session_data_sets={"m1": (DataSet(TYPE_ACTIVITY_SEGMENT, (_segment("user_input"),)),)},
        )
        entry = map_session_read_response(self._request(), response)[0]
        assert entry["source"] == "user_input"
        assert entry["user_entered"] is True
