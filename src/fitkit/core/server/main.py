"""``fitkit-server`` console entry point."""

from __future__ import annotations

import logging

from fitkit.core.config.settings import get_settings
from fitkit.core.server.app import create_app

logger = logging.getLogger(__name__)


def run() -> None:
    """Serve the fit_kit channel over Streamable HTTP until interrupted."""
    settings = get_settings()
    logging.basicConfig(level=settings.fitkit_log_level.upper())

    if settings.grant_timeout_seconds:
        timeout = f"{settings.grant_timeout_seconds:g}s"
    else:
        timeout = "disabled"
    logger.info(
        "fit_kit bridge on %s:%d (sdk=%s, grant timeout %s)",
        settings.fitkit_host,
        settings.fitkit_port,
        settings.sdk_backend,
        timeout,
    )
    if settings.fitkit_allow_insecure_bind:
        logger.warning("Insecure bind allowed; anyone who can reach the port can read fitness data")

    create_app().run(
        transport="streamable-http",
        host=settings.fitkit_host,
        port=settings.fitkit_port,
    )
