"""Method channel — call envelope, single-reply result, and dispatch.

A caller sends a :class:`MethodCall` (method name plus untyped arguments); the
handler answers through a :class:`Result` exactly once, with a success value,
an error, or "not implemented".
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

ReplyKind = Literal["success", "error", "not_implemented"]


@dataclass(frozen=True)
class MethodCall:
    method: str
    arguments: Mapping[str, Any] = field(default_factory=dict)

    def argument(self, key: str) -> Any:
        return self.arguments.get(key)


@dataclass(frozen=True)
class Reply:
    """The terminal answer to a method call."""

    kind: ReplyKind
    value: Any = None
    code: str | None = None
    message: str | None = None
    details: Any = None

    def to_dict(self) -> dict[str, Any]:
        if self.kind == "success":
            return {"status": "ok", "result": self.value}
        if self.kind == "error":
            payload: dict[str, Any] = {
                "status": "error",
                "code": self.code,
                "message": self.message,
            }
            if self.details is not None:
                payload["details"] = self.details
            return payload
        return {"status": "not_implemented", "message": "Method not implemented"}


class ReplyAlreadySentError(RuntimeError):
    """A second reply was attempted for the same call."""


@runtime_checkable
class Result(Protocol):
    """Reply handle for one method call."""

    def success(self, value: Any = None) -> None: ...

    def error(self, code: str, message: str | None, details: Any = None) -> None: ...

    def not_implemented(self) -> None: ...


@runtime_checkable
class MethodCallHandler(Protocol):
    async def on_method_call(self, call: MethodCall, result: Result) -> None: ...


class FutureResult:
    """A :class:`Result` that can be awaited for its single reply."""

    def __init__(self, method: str = "") -> None:
        self._method = method
        self._reply: Reply | None = None
        self._done = asyncio.Event()

    @property
    def replied(self) -> bool:
        return self._reply is not None

    def success(self, value: Any = None) -> None:
        self._send(Reply("success", value=value))

    def error(self, code: str, message: str | None, details: Any = None) -> None:
        self._send(Reply("error", code=code, message=message, details=details))

    def not_implemented(self) -> None:
        self._send(Reply("not_implemented"))

    async def wait(self) -> Reply:
        await self._done.wait()
        assert self._reply is not None
        return self._reply

    def _send(self, reply: Reply) -> None:
        if self._reply is not None:
            raise ReplyAlreadySentError(
                f"Reply already sent for {self._method or 'call'} ({self._reply.kind})"
            )
        self._reply = reply
        self._done.set()


class MethodChannel:
    """Named channel that routes envelopes to one handler.

    Usage::

        channel = MethodChannel("fit_kit", plugin)
        reply = await channel.invoke("read", {"type": "steps", ...})
    """

    def __init__(self, name: str, handler: MethodCallHandler) -> None:
        self.name = name
        self._handler = handler

    async def invoke(self, method: str, arguments: Mapping[str, Any] | None = None) -> Reply:
        call = MethodCall(method, dict(arguments or {}))
        result = FutureResult(method)
        logger.debug("%s: dispatching %s", self.name, method)
        await self._handler.on_method_call(call, result)
        if not result.replied:
            raise RuntimeError(f"Handler returned without replying to {method!r}")
        return await result.wait()
