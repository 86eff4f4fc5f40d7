"""MCP tools exposing the ``fit_kit`` method channel.

Each channel method gets a typed tool of the same name; ``invoke_method``
accepts the raw envelope. Prompt outcomes are injected with
``deliver_grant_result`` (or, on the in-memory backend,
``answer_permission_prompt``).
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from fastmcp import FastMCP
from pydantic import StrictInt

if TYPE_CHECKING:
    from fitkit.core.channel.method_channel import MethodChannel
    from fitkit.domains.fitness.connectors.memory import InMemoryFitnessSdk
    from fitkit.domains.fitness.plugin import FitKitPlugin

logger = logging.getLogger(__name__)


def register_fit_kit_tools(
    mcp: FastMCP,
    channel: MethodChannel,
    plugin: FitKitPlugin,
    memory_sdk: InMemoryFitnessSdk | None = None,
) -> None:
    """Register the channel tools on the MCP server."""

    async def _invoke(method: str, arguments: dict[str, Any]) -> str:
        reply = await channel.invoke(method, arguments)
        return json.dumps(reply.to_dict())

    @mcp.tool(name="hasPermissions")
    async def has_permissions(types: list[str]) -> str:
        """Check whether access to every listed data type is already granted.

        Never shows a prompt.

        Args:
            types: Data type identifiers (e.g. 'steps', 'heart_rate', 'mindfulness').
        """
        return await _invoke("hasPermissions", {"types": types})

    @mcp.tool(name="requestPermissions")
    async def request_permissions(types: list[str]) -> str:
        """Ask the user for access to the listed data types.

        Shows a consent prompt only if something is missing, and waits for it.

        Args:
            types: Data type identifiers.
        """
        return await _invoke("requestPermissions", {"types": types})

    @mcp.tool(name="revokePermissions")
    async def revoke_permissions() -> str:
        """Disable the fitness integration and revoke account access."""
        return await _invoke("revokePermissions", {})

    @mcp.tool(name="read")
    async def read(
        type: str,
        date_from: StrictInt,
        date_to: StrictInt,
        limit: StrictInt | None = None,
    ) -> str:
        """Read samples or activity sessions in [date_from, date_to).

        Args:
            type: Data type identifier.
            date_from: Range start, epoch milliseconds.
            date_to: Range end, epoch milliseconds.
            limit: Maximum entries. Without it samples are bucketed by day.
        """
        arguments: dict[str, Any] = {"type": type, "date_from": date_from, "date_to": date_to}
        if limit is not None:
            arguments["limit"] = limit
        return await _invoke("read", arguments)

    @mcp.tool(name="write")
    async def write(
        type: str,
        date_from: StrictInt,
        date_to: StrictInt,
        name: str = "",
        description: str = "",
    ) -> str:
        """Record an activity session (e.g. 'mindfulness').

        Args:
            type: Activity type identifier.
            date_from: Session start, epoch milliseconds.
            date_to: Session end, epoch milliseconds.
            name: Session name.
            description: Session description.
        """
        return await _invoke("write", {
            "type": type,
            "date_from": date_from,
            "date_to": date_to,
            "name": name,
            "description": description,
        })

    @mcp.tool
    async def invoke_method(method: str, arguments: dict[str, Any] | None = None) -> str:
        """Send a raw method call on the fit_kit channel.

        Args:
            method: Channel method name.
            arguments: Method arguments.
        """
        return await _invoke(method, arguments or {})

    @mcp.tool
    def deliver_grant_result(request_code: int, result_code: int) -> str:
        """Deliver the outcome of a permission prompt shown by the host.

        Args:
            request_code: Correlation code the prompt was launched with.
            result_code: -1 when the user accepted, anything else otherwise.
        """
        handled = plugin.on_activity_result(request_code, result_code)
        return json.dumps({"status": "ok", "handled": handled})

    if memory_sdk is not None:

        @mcp.tool
        def answer_permission_prompt(accept: bool) -> str:
            """Answer the oldest pending permission prompt of the in-memory backend.

            Args:
                accept: Whether the user grants access.
            """
            try:
                request_code, result_code = memory_sdk.answer_prompt(accept)
            except LookupError as exc:
                return json.dumps({"status": "error", "message": str(exc)})
            handled = plugin.on_activity_result(request_code, result_code)
            return json.dumps({
                "status": "ok",
                "request_code": request_code,
                "result_code": result_code,
                "handled": handled,
            })

        @mcp.tool
        def list_permission_prompts() -> str:
            """List permission prompts waiting for an answer on the in-memory backend."""
            prompts = [
                {
                    "request_code": p.request_code,
                    "data_types": sorted(t.name for t in p.options.data_types),
                }
                for p in memory_sdk.pending_prompts
            ]
            return json.dumps({"status": "ok", "count": len(prompts), "prompts": prompts})
