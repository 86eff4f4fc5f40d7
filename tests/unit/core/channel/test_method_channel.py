"""Tests for the method channel envelope and single-reply result."""

from __future__ import annotations

import asyncio

import pytest

from fitkit.core.channel.method_channel import (
    FutureResult,
    MethodCall,
    MethodChannel,
    Reply,
    ReplyAlreadySentError,
)


def _run(coro):
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class EchoHandler:
    """Replies with the call's arguments."""

    def __init__(self):
        self.calls: list[MethodCall] = []

    async def on_method_call(self, call, result):
        self.calls.append(call)
        result.success(dict(call.arguments))


class SilentHandler:
    async def on_method_call(self, call, result):
        return None


class TestMethodCall:
    def test_argument_lookup(self):
        call = MethodCall("read", {"type": "steps"})
        assert call.argument("type") == "steps"
        assert call.argument("limit") is None


class TestFutureResult:
    def test_single_reply(self):
        async def scenario():
            result = FutureResult("read")
            result.success([1, 2])
            return await result.wait()

        assert _run(scenario()) == Reply("success", value=[1, 2])

    @pytest.mark.parametrize("second", ["success", "error", "not_implemented"])
    def test_second_reply_rejected(self, second):
        async def scenario():
            result = FutureResult("read")
            result.error("bad_request", "type is not defined")
            if second == "success":
                result.success(True)
            elif second == "error":
                result.error("FitKit", "again")
            else:
                result.not_implemented()

        with pytest.raises(ReplyAlreadySentError, match="read"):
            _run(scenario())


class TestReplyToDict:
    def test_success(self):
        assert Reply("success", value=True).to_dict() == {"status": "ok", "result": True}

    def test_error_with_details(self):
        payload = Reply("error", code="bad_request", message="m", details={"field": "type"}).to_dict()
        assert payload == {
            "status": "error",
            "code": "bad_request",
            "message": "m",
            "details": {"field": "type"},
        }

    def test_error_without_details(self):
        assert "details" not in Reply("error", code="cancelled", message="m").to_dict()

    def test_not_implemented(self):
        assert Reply("not_implemented").to_dict()["status"] == "not_implemented"


class TestMethodChannel:
    def test_invoke_routes_to_handler(self):
        handler = EchoHandler()
        channel = MethodChannel("fit_kit", handler)
        reply = _run(channel.invoke("read", {"type": "steps"}))
        assert reply.value == {"type": "steps"}
        assert handler.calls == [MethodCall("read", {"type": "steps"})]

    def test_handler_must_reply(self):
        channel = MethodChannel("fit_kit", SilentHandler())
        with pytest.raises(RuntimeError, match="without replying"):
            _run(channel.invoke("read"))
