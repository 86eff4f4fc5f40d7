"""FitKit plugin — routes channel method calls to the fitness executors."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Mapping

from fitkit.core.channel.method_channel import MethodCall, Result
from fitkit.domains.fitness.connectors import FitnessSdk, VendorApiError
from fitkit.domains.fitness.domain_logic.errors import (
    GENERIC_ERROR_CODE,
    BadRequestError,
    FitKitError,
    VendorFailureError,
)
from fitkit.domains.fitness.domain_logic.executors import FitnessOperations
from fitkit.domains.fitness.domain_logic.permission_gate import PermissionGate
from fitkit.domains.fitness.domain_logic.requests import (
    parse_permissions_request,
    parse_read_request,
    parse_write_request,
)

logger = logging.getLogger(__name__)

CHANNEL_NAME = "fit_kit"

Handler = Callable[[Mapping[str, Any]], Awaitable[Any]]


class FitKitPlugin:
    """Method-call handler for the ``fit_kit`` channel.

    Methods: ``hasPermissions``, ``requestPermissions``, ``revokePermissions``,
    ``read`` and ``write``. Anything else is answered with "not implemented".
    Prompt outcomes from the host come back in through
    :meth:`on_activity_result`.
    """

    def __init__(self, sdk: FitnessSdk, *, grant_timeout: float | None = 300.0) -> None:
        self.gate = PermissionGate(sdk, grant_timeout=grant_timeout)
        self.operations = FitnessOperations(sdk, self.gate)
        self._handlers: dict[str, Handler] = {
            "hasPermissions": self._has_permissions,
            "requestPermissions": self._request_permissions,
            "revokePermissions": self._revoke_permissions,
            "read": self._read,
            "write": self._write,
        }

    @property
    def methods(self) -> list[str]:
        return list(self._handlers)

    async def on_method_call(self, call: MethodCall, result: Result) -> None:
        handler = self._handlers.get(call.method)
        if handler is None:
            logger.info("Method %r not implemented", call.method)
            result.not_implemented()
            return

        try:
            value = await handler(call.arguments)
        except FitKitError as exc:
            logger.info("%s failed: [%s] %s", call.method, exc.code, exc.message)
            details = {"field": exc.field} if isinstance(exc, BadRequestError) and exc.field else None
            result.error(exc.code, exc.message, details)
            return
        except VendorApiError as exc:
            logger.warning("%s failed in vendor SDK: %s", call.method, exc)
            result.error(VendorFailureError.code, str(exc))
            return
        except Exception as exc:
            logger.exception("%s failed unexpectedly", call.method)
            result.error(GENERIC_ERROR_CODE, str(exc))
            return
        result.success(value)

    def on_activity_result(self, request_code: int, result_code: int) -> bool:
        return self.gate.on_activity_result(request_code, result_code)

    # ------------------------------------------------------------------
    # Method handlers
    # ------------------------------------------------------------------

    async def _has_permissions(self, arguments: Mapping[str, Any]) -> bool:
        return await self.operations.has_permissions(parse_permissions_request(arguments))

    async def _request_permissions(self, arguments: Mapping[str, Any]) -> bool:
        return await self.operations.request_permissions(parse_permissions_request(arguments))

    async def _revoke_permissions(self, arguments: Mapping[str, Any]) -> None:
        return await self.operations.revoke_permissions()

    async def _read(self, arguments: Mapping[str, Any]) -> list[dict[str, Any]]:
        return await self.operations.read(parse_read_request(arguments))

    async def _write(self, arguments: Mapping[str, Any]) -> bool:
        return await self.operations.write(parse_write_request(arguments))
