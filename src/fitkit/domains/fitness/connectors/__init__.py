"""Fitness SDK connectors — abstraction over the vendor fitness platform.

Executors call these methods without knowing whether they talk to real
platform bindings, the in-memory backend, or a scripted test double.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from fitkit.domains.fitness.connectors.models import (
    Account,
    DataReadRequest,
    DataReadResponse,
    FitnessOptions,
    SessionInsertRequest,
    SessionReadRequest,
    SessionReadResponse,
)

# Vendor status code carried by a resolvable failure that needs an OAuth grant.
NEEDS_OAUTH_PERMISSIONS = 5000

# Activity result codes delivered when a prompt closes.
RESULT_OK = -1
RESULT_CANCELED = 0


class VendorApiError(Exception):
    """A vendor SDK call failed. ``str(exc)`` is the vendor's message."""


class ResolvableApiError(VendorApiError):
    """A failure the user can resolve through an interactive prompt."""

    def __init__(self, status_code: int, message: str = "", resolution: Any = None) -> None:
        super().__init__(message or f"Resolvable vendor failure (status {status_code})")
        self.status_code = status_code
        # Opaque, backend-specific payload the prompt needs to resolve the failure.
        self.resolution = resolution

    @property
    def needs_oauth_permissions(self) -> bool:
        return self.status_code == NEEDS_OAUTH_PERMISSIONS


class VendorCancelledError(VendorApiError):
    """The vendor task was cancelled before completing."""


@runtime_checkable
class FitnessSdk(Protocol):
    """Capabilities the bridge consumes from the vendor platform.

    Read/write/config calls complete asynchronously and fail with
    :class:`VendorApiError` (or a subclass). Prompt launches return as soon as
    the prompt is on screen; its outcome arrives later as an activity result
    carrying the same request code.
    """

    def get_last_signed_in_account(self) -> Account | None:
        """Current signed-in account, if any."""
        ...

    def has_permissions(self, account: Account | None, options: FitnessOptions) -> bool:
        """Whether ``account`` already holds every data type in ``options``."""
        ...

    def request_permissions(
        self, account: Account | None, options: FitnessOptions, request_code: int
    ) -> None:
        """Show the consent prompt for ``options``."""
        ...

    def start_resolution(self, error: ResolvableApiError, request_code: int) -> None:
        """Show the prompt that resolves ``error``."""
        ...

    def dismiss_prompt(self, request_code: int, options: FitnessOptions | None = None) -> None:
        """Withdraw a prompt nobody waits on anymore.

        ``options`` narrows the match to the prompt launched for them; without
        it the oldest prompt carrying ``request_code`` is withdrawn. A no-op if
        the prompt already closed.
        """
        ...

    async def read_data(self, account: Account, request: DataReadRequest) -> DataReadResponse:
        """History read of sample data."""
        ...

    async def read_session(
        self, account: Account, request: SessionReadRequest
    ) -> SessionReadResponse:
        """Read sessions and the data recorded during them."""
        ...

    async def insert_session(self, account: Account, request: SessionInsertRequest) -> None:
        """Insert a session."""
        ...

    async def disable_fit(self, account: Account) -> None:
        """Disable the fitness integration for the account."""
        ...

    async def revoke_access(self, account: Account, options: FitnessOptions) -> None:
        """Revoke the app's account access."""
        ...
