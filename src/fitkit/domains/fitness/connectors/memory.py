"""In-memory FitnessSdk — a complete vendor backend held in process memory.

Consent prompts are queued instead of shown; :meth:`InMemoryFitnessSdk.answer_prompt`
plays the user's part and returns the activity result to hand back to the
plugin.
"""

from __future__ import annotations

import logging
from collections import Counter, deque
from dataclasses import dataclass
from typing import Iterable

from fitkit.domains.fitness.connectors import (
    NEEDS_OAUTH_PERMISSIONS,
    RESULT_CANCELED,
    RESULT_OK,
    ResolvableApiError,
    VendorApiError,
)
from fitkit.domains.fitness.connectors.models import (
    FORMAT_INT32,
    TYPE_ACTIVITY_SEGMENT,
    TYPE_CALORIES_EXPENDED,
    TYPE_DISTANCE_DELTA,
    TYPE_HYDRATION,
    TYPE_STEP_COUNT_DELTA,
    Account,
    Bucket,
    DataPoint,
    DataReadRequest,
    DataReadResponse,
    DataSet,
    DataSource,
    DataType,
    FitnessOptions,
    Session,
    SessionInsertRequest,
    SessionReadRequest,
    SessionReadResponse,
)

logger = logging.getLogger(__name__)

# Delta types are summed per bucket; everything else is averaged.
_SUMMED_TYPES = frozenset({
    TYPE_STEP_COUNT_DELTA,
    TYPE_DISTANCE_DELTA,
    TYPE_CALORIES_EXPENDED,
    TYPE_HYDRATION,
})


@dataclass(frozen=True)
class PermissionPrompt:
    """A consent prompt waiting for the user."""

    request_code: int
    options: FitnessOptions


class InMemoryFitnessSdk:
    """FitnessSdk backed by lists of points and sessions.

    Usage::

        sdk = InMemoryFitnessSdk(default_account=Account("me@example.com"))
        sdk.add_data_points(points)
        plugin = FitKitPlugin(sdk)
        ...
        code, result = sdk.answer_prompt(accept=True)
        plugin.on_activity_result(code, result)
    """

    def __init__(
        self,
        account: Account | None = None,
        *,
        default_account: Account | None = None,
    ) -> None:
        """Initialize the backend.

        Args:
            account: Account signed in from the start, if any.
            default_account: Account signed in when a prompt is accepted while
                nobody is signed in. Defaults to ``account``.
        """
        self._account = account
        self._default_account = default_account or account or Account("user@example.com")
        self._granted: set[DataType] = set()
        self._points: list[DataPoint] = []
        self._sessions: list[Session] = []
        self._session_data: dict[str, list[DataSet]] = {}
        self._prompts: deque[PermissionPrompt] = deque()
        self.fit_enabled = True

    # ------------------------------------------------------------------
    # Seeding and prompt handling
    # ------------------------------------------------------------------

    def grant(self, *data_types: DataType) -> None:
        """Sign in the default account (if needed) and grant ``data_types``."""
        if self._account is None:
            self._account = self._default_account
        self._granted.update(data_types)
        self.fit_enabled = True

    def add_data_points(self, points: Iterable[DataPoint]) -> None:
        self._points.extend(points)

    def add_session(self, session: Session, data_sets: Iterable[DataSet] = ()) -> None:
        self._sessions.append(session)
        self._session_data[session.identifier] = list(data_sets)

    @property
    def pending_prompts(self) -> tuple[PermissionPrompt, ...]:
        return tuple(self._prompts)

    @property
    def sessions(self) -> tuple[Session, ...]:
        return tuple(self._sessions)

    def answer_prompt(self, accept: bool) -> tuple[int, int]:
        """Answer the oldest prompt; returns ``(request_code, result_code)``.

        Raises:
            LookupError: If no prompt is pending.
        """
        if not self._prompts:
            raise LookupError("No permission prompt is pending")
        prompt = self._prompts.popleft()
        if accept:
            self.grant(*prompt.options.data_types)
            logger.info("Prompt %d accepted", prompt.request_code)
            return prompt.request_code, RESULT_OK
        logger.info("Prompt %d declined", prompt.request_code)
        return prompt.request_code, RESULT_CANCELED

    # ------------------------------------------------------------------
    # FitnessSdk
    # ------------------------------------------------------------------

    def get_last_signed_in_account(self) -> Account | None:
        return self._account

    def has_permissions(self, account: Account | None, options: FitnessOptions) -> bool:
        if account is None or account != self._account:
            return False
        return options.data_types <= self._granted

    def request_permissions(
        self, account: Account | None, options: FitnessOptions, request_code: int
    ) -> None:
        self._prompts.append(PermissionPrompt(request_code, options))

    def start_resolution(self, error: ResolvableApiError, request_code: int) -> None:
        options = error.resolution if isinstance(error.resolution, FitnessOptions) else FitnessOptions()
        self._prompts.append(PermissionPrompt(request_code, options))

    def dismiss_prompt(self, request_code: int, options: FitnessOptions | None = None) -> None:
        for prompt in self._prompts:
            if prompt.request_code == request_code and (options is None or prompt.options == options):
                self._prompts.remove(prompt)
                logger.info("Prompt %d withdrawn", request_code)
                return

    async def read_data(self, account: Account, request: DataReadRequest) -> DataReadResponse:
        self._check_access(account, request.data_type)
        points = [
            p for p in self._points
            if p.data_type == request.data_type
            and request.start_time_millis <= p.start_time_millis
            and p.end_time_millis <= request.end_time_millis
        ]
        points.sort(key=lambda p: p.start_time_millis)

        if request.limit is not None:
            data_set = DataSet(request.data_type, tuple(points[:request.limit]))
            return DataReadResponse(data_sets=(data_set,))

        assert request.bucket_by_time_millis is not None
        return DataReadResponse(buckets=tuple(
            self._bucket(request, points, request.bucket_by_time_millis)
        ))

    async def read_session(
        self, account: Account, request: SessionReadRequest
    ) -> SessionReadResponse:
        self._check_access(account, request.data_type)
        sessions = tuple(
            s for s in self._sessions
            if s.start_time_millis < request.end_time_millis
            and s.end_time_millis > request.start_time_millis
        )
        return SessionReadResponse(
            sessions=sessions,
            session_data_sets={
                s.identifier: tuple(self._session_data.get(s.identifier, ())) for s in sessions
            },
        )

    async def insert_session(self, account: Account, request: SessionInsertRequest) -> None:
        self._check_access(account, TYPE_ACTIVITY_SEGMENT)
        session = request.session
        if session.end_time_millis < session.start_time_millis:
            raise VendorApiError("Session end time is before its start time")
        if session.identifier in self._session_data:
            raise VendorApiError(f"Session {session.identifier} already exists")
        self.add_session(session, request.data_sets)

    async def disable_fit(self, account: Account) -> None:
        if account != self._account:
            raise VendorApiError("Account is not signed in")
        self.fit_enabled = False

    async def revoke_access(self, account: Account, options: FitnessOptions) -> None:
        if account != self._account:
            raise VendorApiError("Account is not signed in")
        self._granted.clear()
        self._account = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _check_access(self, account: Account, data_type: DataType) -> None:
        if not self.fit_enabled or not self.has_permissions(account, FitnessOptions.of(data_type)):
            raise ResolvableApiError(
                NEEDS_OAUTH_PERMISSIONS,
                f"Needs OAuth permissions for {data_type.name}",
                resolution=FitnessOptions.of(data_type),
            )

    def _bucket(
        self, request: DataReadRequest, points: list[DataPoint], width: int
    ) -> list[Bucket]:
        # Only populated intervals get a bucket; the range may span any number of them.
        grouped: dict[int, list[DataPoint]] = {}
        for p in points:
            if p.start_time_millis < request.end_time_millis:
                index = (p.start_time_millis - request.start_time_millis) // width
                grouped.setdefault(index, []).append(p)

        buckets: list[Bucket] = []
        for index in sorted(grouped):
            start = request.start_time_millis + index * width
            end = min(start + width, request.end_time_millis)
            aggregate = _aggregate(request.data_type, grouped[index], start, end)
            buckets.append(Bucket(start, end, (DataSet(request.data_type, (aggregate,)),)))
        return buckets


def _aggregate(data_type: DataType, points: list[DataPoint], start: int, end: int) -> DataPoint:
    f = data_type.fields[0]
    values = [p.values[f.name] for p in points]
    if data_type in _SUMMED_TYPES:
        total = sum(values)  # type: ignore[arg-type]
    else:
        total = sum(values) / len(values)  # type: ignore[arg-type]
    if f.format == FORMAT_INT32:
        total = int(round(total))
    streams = Counter(p.original_data_source.stream_name for p in points)
    source = points[0].original_data_source if len(streams) == 1 else DataSource("merged")
    return DataPoint(data_type, start, end, {f.name: total}, source)
