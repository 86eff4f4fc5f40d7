"""Demo fitness data for the in-memory backend.

Values describe an ordinary week: a few thousand steps a day, a resting-ish
heart rate, stable weight, one meditation session every other evening and a
night of sleep every night. Everything is deterministic for a given end time.
"""

from __future__ import annotations

from fitkit.domains.fitness.connectors.models import (
    ACTIVITY_MEDITATION,
    ACTIVITY_SLEEP,
    MILLIS_PER_DAY,
    TYPE_ACTIVITY_SEGMENT,
    TYPE_CALORIES_EXPENDED,
    TYPE_HEART_RATE_BPM,
    TYPE_STEP_COUNT_DELTA,
    TYPE_WEIGHT,
    DataPoint,
    DataSet,
    DataSource,
    Session,
)

_HOUR = 60 * 60 * 1000

PHONE_STEPS = DataSource("estimated_steps", "com.google.android.gms")
WATCH = DataSource("watch_sensor", "com.example.watch")
USER_INPUT = DataSource("user_input", "com.google.android.apps.fitness")
MEDITATION_APP = DataSource("mindful_timer", "com.example.meditate")


def _day_start(end_millis: int, days_ago: int) -> int:
    return (end_millis // MILLIS_PER_DAY - days_ago) * MILLIS_PER_DAY


def get_mock_data_points(end_millis: int, days: int = 7) -> list[DataPoint]:
    """Return sample data points for the ``days`` days before ``end_millis``."""
    points: list[DataPoint] = []
    for days_ago in range(days, 0, -1):
        day = _day_start(end_millis, days_ago)
        for hour, steps in ((8, 1200), (12, 2400 + 150 * days_ago), (18, 3100)):
            start = day + hour * _HOUR
            points.append(DataPoint(
                TYPE_STEP_COUNT_DELTA, start, start + _HOUR, {"steps": steps}, PHONE_STEPS,
            ))
        for hour, bpm in ((7, 61.0), (13, 74.0 + days_ago), (21, 66.0)):
            start = day + hour * _HOUR
            points.append(DataPoint(
                TYPE_HEART_RATE_BPM, start, start, {"bpm": bpm}, WATCH,
            ))
        points.append(DataPoint(
            TYPE_CALORIES_EXPENDED, day, day + MILLIS_PER_DAY,
            {"calories": 2150.0 + 25.0 * days_ago}, WATCH,
        ))
        if days_ago % 3 == 0:
            start = day + 7 * _HOUR
            points.append(DataPoint(
                TYPE_WEIGHT, start, start, {"weight": 72.4 - 0.1 * days_ago}, USER_INPUT,
            ))
    return points


def get_mock_sessions(end_millis: int, days: int = 7) -> list[tuple[Session, list[DataSet]]]:
    """Return sessions, each with the activity-segment data recorded during it."""
    sessions: list[tuple[Session, list[DataSet]]] = []
    for days_ago in range(days, 0, -1):
        day = _day_start(end_millis, days_ago)

        sleep_start = day - 2 * _HOUR
        sleep_end = day + 6 * _HOUR + (days_ago % 2) * _HOUR // 2
        sleep = Session(
            name="Night sleep",
            identifier=f"sleep-{sleep_start}",
            activity=ACTIVITY_SLEEP,
            start_time_millis=sleep_start,
            end_time_millis=sleep_end,
        )
        sleep_points = (
            DataPoint(TYPE_ACTIVITY_SEGMENT, sleep_start, sleep_end, {"activity": 72}, WATCH),
        )
        sessions.append((sleep, [DataSet(TYPE_ACTIVITY_SEGMENT, sleep_points)]))

        if days_ago % 2 == 0:
            start = day + 20 * _HOUR
            end = start + 15 * 60 * 1000
            meditation = Session(
                name="Evening meditation",
                identifier=f"meditation-{start}",
                activity=ACTIVITY_MEDITATION,
                start_time_millis=start,
                end_time_millis=end,
                description="Breathing exercise",
            )
            points = (
                DataPoint(TYPE_ACTIVITY_SEGMENT, start, end, {"activity": 45}, MEDITATION_APP),
            )
            sessions.append((meditation, [DataSet(TYPE_ACTIVITY_SEGMENT, points)]))
    return sessions
