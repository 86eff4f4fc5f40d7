"""Operation executors — one coroutine per channel verb.

Each executor clears the permission gate, builds the vendor request, awaits the
vendor call and maps the response. A vendor "needs OAuth permissions" failure
is resolved through the gate and the call retried once; every other vendor
failure becomes a :class:`FitKitError`.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, TypeVar

from fitkit.domains.fitness.connectors import (
    FitnessSdk,
    ResolvableApiError,
    VendorApiError,
    VendorCancelledError,
)
from fitkit.domains.fitness.connectors.models import (
    MILLIS_PER_DAY,
    Account,
    DataReadRequest,
    FitnessOptions,
    Session,
    SessionInsertRequest,
    SessionReadRequest,
)
from fitkit.domains.fitness.domain_logic.errors import (
    CancelledError,
    PermissionDeniedError,
    VendorFailureError,
)
from fitkit.domains.fitness.domain_logic.mappers import (
    map_data_read_response,
    map_session_read_response,
)
from fitkit.domains.fitness.domain_logic.permission_gate import PermissionGate, VerbClass
from fitkit.domains.fitness.domain_logic.requests import (
    ActivityReadRequest,
    PermissionsRequest,
    ReadRequest,
    SampleReadRequest,
    WriteRequest,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def options_for(request: PermissionsRequest) -> FitnessOptions:
    return FitnessOptions.of(*(t.data_type for t in request.types))


class FitnessOperations:
    """Executes parsed requests against the vendor SDK."""

    def __init__(self, sdk: FitnessSdk, gate: PermissionGate) -> None:
        self._sdk = sdk
        self._gate = gate

    # ------------------------------------------------------------------
    # Permissions
    # ------------------------------------------------------------------

    async def has_permissions(self, request: PermissionsRequest) -> bool:
        return self._gate.has_permission(options_for(request))

    async def request_permissions(self, request: PermissionsRequest) -> bool:
        return await self._gate.ensure_permission(options_for(request))

    async def revoke_permissions(self) -> None:
        """Disable the integration and revoke account access.

        A no-op when no account is signed in. Access revocation runs even if
        disabling failed, and any failure is ignored once permissions are gone.
        """
        options = FitnessOptions()
        if not self._gate.has_permission(options):
            return None

        account = self._sdk.get_last_signed_in_account()
        if account is None:
            return None

        try:
            await self._sdk.disable_fit(account)
        except VendorApiError as exc:
            logger.warning("Disabling fitness integration failed: %s", exc)

        try:
            await self._sdk.revoke_access(account, options)
        except VendorCancelledError as exc:
            raise CancelledError() from exc
        except VendorApiError as exc:
            if not self._gate.has_permission(options):
                logger.info("Revoke reported %r but permissions are gone", str(exc))
                return None
            raise VendorFailureError(str(exc)) from exc
        logger.info("Permissions revoked for %s", account.email)
        return None

    # ------------------------------------------------------------------
    # Read / write
    # ------------------------------------------------------------------

    async def read(self, request: ReadRequest) -> list[dict[str, Any]]:
        options = FitnessOptions.of(request.type.data_type)
        if not await self._gate.ensure_permission(options, VerbClass.READ):
            raise PermissionDeniedError()

        if isinstance(request, SampleReadRequest):
            return await self._with_grant_retry(
                VerbClass.READ, request, lambda acc: self._read_sample(request, acc)
            )
        if isinstance(request, ActivityReadRequest):
            return await self._with_grant_retry(
                VerbClass.READ, request, lambda acc: self._read_session(request, acc)
            )
        raise TypeError(f"Unknown read request: {request!r}")

    async def write(self, request: WriteRequest) -> bool:
        options = FitnessOptions.of(request.type.data_type)
        if not await self._gate.ensure_permission(options, VerbClass.WRITE):
            raise PermissionDeniedError()
        return await self._with_grant_retry(
            VerbClass.WRITE, request, lambda acc: self._write_session(request, acc)
        )

    async def _read_sample(self, request: SampleReadRequest, account: Account) -> list[dict[str, Any]]:
        logger.debug("readSample: %s", request.type.id)
        if request.limit is not None:
            read_request = DataReadRequest(
                request.type.data_type,
                request.date_from,
                request.date_to,
                limit=request.limit,
                server_queries_enabled=True,
            )
        else:
            read_request = DataReadRequest(
                request.type.data_type,
                request.date_from,
                request.date_to,
                bucket_by_time_millis=MILLIS_PER_DAY,
                server_queries_enabled=True,
            )
        response = await self._sdk.read_data(account, read_request)
        return map_data_read_response(response)

    async def _read_session(self, request: ActivityReadRequest, account: Account) -> list[dict[str, Any]]:
        logger.debug("readSession: %s", request.type.activity)
        read_request = SessionReadRequest(
            request.type.data_type,
            request.date_from,
            request.date_to,
            read_from_all_apps=True,
            server_queries_enabled=True,
        )
        response = await self._sdk.read_session(account, read_request)
        return map_session_read_response(request, response)

    async def _write_session(self, request: WriteRequest, account: Account) -> bool:
        logger.debug("writeSession: %s", request.type.activity)
        session = Session(
            name=request.name,
            identifier=str(request.date_from),
            activity=request.type.activity,
            start_time_millis=request.date_from,
            end_time_millis=request.date_to,
            description=request.description,
        )
        logger.info("Inserting session %s", session.identifier)
        await self._sdk.insert_session(account, SessionInsertRequest(session))
        return True

    # ------------------------------------------------------------------
    # Vendor call plumbing
    # ------------------------------------------------------------------

    def _account(self) -> Account:
        account = self._sdk.get_last_signed_in_account()
        if account is None:
            raise VendorFailureError("No signed-in account")
        return account

    async def _call_vendor(self, call: Callable[[Account], Awaitable[T]]) -> T:
        """Run ``call``, translating vendor failures.

        A resolvable "needs OAuth permissions" failure propagates untouched.
        """
        account = self._account()
        try:
            return await call(account)
        except ResolvableApiError as exc:
            if exc.needs_oauth_permissions:
                raise
            raise VendorFailureError(str(exc)) from exc
        except VendorCancelledError as exc:
            raise CancelledError() from exc
        except VendorApiError as exc:
            raise VendorFailureError(str(exc)) from exc

    async def _with_grant_retry(
        self,
        verb_class: VerbClass,
        request: Any,
        call: Callable[[Account], Awaitable[T]],
    ) -> T:
        try:
            return await self._call_vendor(call)
        except ResolvableApiError as exc:
            logger.info("%s needs OAuth permissions; resolving", verb_class.value)
            granted = await self._gate.await_resolution(verb_class, exc, request)

        if not granted:
            raise PermissionDeniedError()
        try:
            return await self._call_vendor(call)
        except ResolvableApiError as exc:
            raise VendorFailureError(str(exc)) from exc
