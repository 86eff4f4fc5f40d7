"""Application settings loaded from environment variables."""

from __future__ import annotations

from ipaddress import ip_address
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


def is_loopback_host(host: str) -> bool:
    if host == "localhost":
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


class Settings(BaseSettings):
    """FitKit bridge server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Default to loopback; the bridge has no auth layer of its own.
    fitkit_host: str = "127.0.0.1"
    fitkit_port: int = Field(8011, ge=1, le=65535)
    fitkit_log_level: str = "info"
    fitkit_allow_insecure_bind: bool = False

    # Vendor SDK backend
    sdk_backend: Literal["memory"] = "memory"
    seed_demo_data: bool = True
    demo_account_email: str = "user@example.com"

    # Permission prompts: seconds before an unanswered prompt counts as denied.
    # 0 waits forever.
    grant_timeout_seconds: float = Field(300.0, ge=0)

    @model_validator(mode="after")
    def _require_loopback_bind(self) -> Settings:
        if not self.fitkit_allow_insecure_bind and not is_loopback_host(self.fitkit_host):
            raise ValueError(
                f"fitkit_host={self.fitkit_host!r} is not a loopback address; the bridge has "
                "no auth layer. Set FITKIT_ALLOW_INSECURE_BIND=true to override (unsafe)."
            )
        return self


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
