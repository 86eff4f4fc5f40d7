"""FitKit bridge MCP server — application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging
import time

from fastmcp import FastMCP

from fitkit.core.channel.method_channel import MethodChannel
from fitkit.core.config.settings import get_settings
from fitkit.domains.fitness.connectors import FitnessSdk
from fitkit.domains.fitness.connectors.memory import InMemoryFitnessSdk
from fitkit.domains.fitness.connectors.mock_data import get_mock_data_points, get_mock_sessions
from fitkit.domains.fitness.connectors.models import Account
from fitkit.domains.fitness.domain_logic.types import supported_type_ids
from fitkit.domains.fitness.plugin import CHANNEL_NAME, FitKitPlugin
from fitkit.domains.fitness.tools.fit_kit_tools import register_fit_kit_tools

logger = logging.getLogger(__name__)


def _create_memory_sdk(email: str, seed: bool) -> InMemoryFitnessSdk:
    sdk = InMemoryFitnessSdk(default_account=Account(email))
    if seed:
        now = int(time.time() * 1000)
        sdk.add_data_points(get_mock_data_points(now))
        for session, data_sets in get_mock_sessions(now):
            sdk.add_session(session, data_sets)
    return sdk


def create_app(*, sdk_override: FitnessSdk | None = None) -> FastMCP:
    """Create and configure the FitKit bridge MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Initializes the vendor SDK backend (in-memory unless overridden)
    3. Creates the plugin and its ``fit_kit`` method channel
    4. Registers all tools
    """
    settings = get_settings()

    # --- Server instance ---
    server = FastMCP(
        "FitKit Bridge",
        instructions=(
            "Bridge to a fitness data SDK. Read health samples and activity "
            "sessions, record activity sessions, and negotiate data access "
            "permissions through the fit_kit method channel."
        ),
    )

    # --- Initialize vendor SDK ---
    memory_sdk: InMemoryFitnessSdk | None = None
    if sdk_override is not None:
        sdk = sdk_override
        if isinstance(sdk_override, InMemoryFitnessSdk):
            memory_sdk = sdk_override
    elif settings.sdk_backend == "memory":
        memory_sdk = _create_memory_sdk(settings.demo_account_email, settings.seed_demo_data)
        sdk = memory_sdk
        logger.info("Using in-memory fitness SDK (demo data: %s)", settings.seed_demo_data)
    else:  # pragma: no cover
        raise ValueError(f"Unknown SDK backend: {settings.sdk_backend!r}")

    # --- Plugin and channel ---
    plugin = FitKitPlugin(sdk, grant_timeout=settings.grant_timeout_seconds)
    channel = MethodChannel(CHANNEL_NAME, plugin)

    # --- Register tools ---
    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        return {
            "status": "ok",
            "server": "FitKit Bridge",
            "version": "0.1.0",
            "channel": channel.name,
            "methods": plugin.methods,
            "supported_types": supported_type_ids(),
            "sdk_backend": "memory" if memory_sdk is not None else type(sdk).__name__,
            "grant_timeout_seconds": settings.grant_timeout_seconds,
        }

    register_fit_kit_tools(server, channel, plugin, memory_sdk)
    logger.info("fit_kit channel tools registered (%s)", ", ".join(plugin.methods))

    return server


# Module-level instance for FastMCP discovery.
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
