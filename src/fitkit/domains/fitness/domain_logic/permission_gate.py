"""Permission gate — suspends operations until the user answers a consent prompt.

Three correlation channels carry prompt outcomes back in via
:meth:`PermissionGate.on_activity_result`:

* ``GOOGLE_FIT_REQUEST_CODE`` — the generic permission check. Any number of
  listeners may wait on it; one result resolves all of them.
* ``OAUTH_READ_REQUEST_CODE`` / ``OAUTH_WRITE_REQUEST_CODE`` — resolution of a
  vendor "needs OAuth permissions" failure, one pending operation per
  verb-class.

A wait that ends without an outcome (timeout or caller cancellation) withdraws
its prompt from the SDK, so a later answer cannot be credited to it.

Everything runs on one event loop, so the registries need no locking.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from fitkit.domains.fitness.connectors import (
    RESULT_OK,
    FitnessSdk,
    ResolvableApiError,
)
from fitkit.domains.fitness.connectors.models import FitnessOptions
from fitkit.domains.fitness.domain_logic.errors import PendingOperationBusyError

logger = logging.getLogger(__name__)

GOOGLE_FIT_REQUEST_CODE = 8008
OAUTH_WRITE_REQUEST_CODE = 6006
OAUTH_READ_REQUEST_CODE = 7007


class VerbClass(str, Enum):
    READ = "read"
    WRITE = "write"


class GateState(str, Enum):
    IDLE = "idle"
    CHECKING = "checking"
    GRANTED = "granted"
    AWAITING_GRANT = "awaiting_grant"
    RESOLVED = "resolved"


_RESOLUTION_CODES = {
    VerbClass.READ: OAUTH_READ_REQUEST_CODE,
    VerbClass.WRITE: OAUTH_WRITE_REQUEST_CODE,
}


class OAuthPermissionsListener:
    """Waits for one result on the generic permission channel."""

    def __init__(self, future: asyncio.Future[bool]) -> None:
        self._future = future

    def on_oauth_permissions_result(self, result_code: int) -> None:
        if not self._future.done():
            self._future.set_result(result_code == RESULT_OK)


@dataclass
class PendingOperation:
    """A read or write suspended until its resolution prompt is answered."""

    verb_class: VerbClass
    request: Any
    future: asyncio.Future[bool]


class PermissionGate:
    """Tracks outstanding consent prompts and resumes whoever waits on them.

    Usage::

        gate = PermissionGate(sdk, grant_timeout=300.0)
        if await gate.ensure_permission(options, VerbClass.READ):
            ...
        # from the host, when the prompt closes:
        gate.on_activity_result(GOOGLE_FIT_REQUEST_CODE, RESULT_OK)
    """

    def __init__(self, sdk: FitnessSdk, *, grant_timeout: float | None = 300.0) -> None:
        """Initialize the gate.

        Args:
            sdk: Vendor SDK used to check permissions and launch prompts.
            grant_timeout: Seconds to wait for a prompt outcome before treating
                it as denied. ``None`` or ``0`` waits forever.
        """
        self._sdk = sdk
        self._grant_timeout = grant_timeout or None
        self._listeners: list[OAuthPermissionsListener] = []
        self._pending: dict[VerbClass, PendingOperation] = {}
        self._states: dict[VerbClass, GateState] = {v: GateState.IDLE for v in VerbClass}

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def listeners(self) -> tuple[OAuthPermissionsListener, ...]:
        return tuple(self._listeners)

    def state(self, verb_class: VerbClass) -> GateState:
        return self._states[verb_class]

    def pending(self, verb_class: VerbClass) -> PendingOperation | None:
        return self._pending.get(verb_class)

    # ------------------------------------------------------------------
    # Checks and prompts
    # ------------------------------------------------------------------

    def has_permission(self, options: FitnessOptions) -> bool:
        """Stateless check; never prompts."""
        account = self._sdk.get_last_signed_in_account()
        return self._sdk.has_permissions(account, options)

    async def ensure_permission(
        self, options: FitnessOptions, verb_class: VerbClass | None = None
    ) -> bool:
        """Return True once ``options`` are held, prompting the user if needed.

        Raises:
            VendorApiError: If the prompt could not be launched.
        """
        if verb_class is not None:
            self._states[verb_class] = GateState.CHECKING
        if self.has_permission(options):
            if verb_class is not None:
                self._states[verb_class] = GateState.GRANTED
            return True

        future: asyncio.Future[bool] = asyncio.get_running_loop().create_future()
        listener = OAuthPermissionsListener(future)
        self._listeners.append(listener)
        launched = False
        if verb_class is not None:
            self._states[verb_class] = GateState.AWAITING_GRANT

        try:
            account = self._sdk.get_last_signed_in_account()
            logger.info(
                "Requesting permissions for %s",
                sorted(t.name for t in options.data_types),
            )
            self._sdk.request_permissions(account, options, GOOGLE_FIT_REQUEST_CODE)
            launched = True
            granted = await self._wait(future)
        finally:
            if launched and future.cancelled():
                self._sdk.dismiss_prompt(GOOGLE_FIT_REQUEST_CODE, options)
            if listener in self._listeners:
                self._listeners.remove(listener)
            if verb_class is not None:
                self._states[verb_class] = GateState.RESOLVED
        return granted

    async def await_resolution(
        self, verb_class: VerbClass, error: ResolvableApiError, request: Any = None
    ) -> bool:
        """Launch the prompt that resolves ``error`` and wait for its outcome.

        Raises:
            PendingOperationBusyError: If a resolution for ``verb_class`` is
                already outstanding.
            VendorApiError: If the prompt could not be launched.
        """
        current = self._pending.get(verb_class)
        if current is not None and not current.future.done():
            logger.warning("Rejecting %s: a permission prompt is already pending", verb_class.value)
            raise PendingOperationBusyError(
                f"A {verb_class.value} operation is already waiting for a permission grant"
            )

        future: asyncio.Future[bool] = asyncio.get_running_loop().create_future()
        pending = PendingOperation(verb_class, request, future)
        self._pending[verb_class] = pending
        self._states[verb_class] = GateState.AWAITING_GRANT

        launched = False
        try:
            logger.info("Starting %s permission resolution (status %d)", verb_class.value, error.status_code)
            self._sdk.start_resolution(error, _RESOLUTION_CODES[verb_class])
            launched = True
            return await self._wait(future)
        finally:
            if launched and future.cancelled():
                self._sdk.dismiss_prompt(_RESOLUTION_CODES[verb_class])
            if self._pending.get(verb_class) is pending:
                del self._pending[verb_class]
            self._states[verb_class] = GateState.RESOLVED

    # ------------------------------------------------------------------
    # External event injection
    # ------------------------------------------------------------------

    def on_activity_result(self, request_code: int, result_code: int) -> bool:
        """Deliver a prompt outcome. Returns whether ``request_code`` is ours."""
        if request_code == GOOGLE_FIT_REQUEST_CODE:
            listeners = list(self._listeners)
            logger.info("Permission result %d for %d listener(s)", result_code, len(listeners))
            for listener in listeners:
                if listener in self._listeners:
                    self._listeners.remove(listener)
                listener.on_oauth_permissions_result(result_code)
            return True

        for verb_class, code in _RESOLUTION_CODES.items():
            if request_code == code:
                pending = self._pending.get(verb_class)
                if pending is None:
                    logger.warning("No pending %s operation for result %d", verb_class.value, result_code)
                elif not pending.future.done():
                    pending.future.set_result(result_code == RESULT_OK)
                return True
        return False

    async def _wait(self, future: asyncio.Future[bool]) -> bool:
        if self._grant_timeout is None:
            return await future
        try:
            return await asyncio.wait_for(future, self._grant_timeout)
        except asyncio.TimeoutError:
            future.cancel()
            logger.warning("Permission prompt unanswered after %.1fs; treating as denied", self._grant_timeout)
            return False
