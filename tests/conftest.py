"""Shared test fixtures for FitKit tests."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SDK_BACKEND", "memory")
    monkeypatch.setenv("SEED_DEMO_DATA", "false")
    monkeypatch.setenv("GRANT_TIMEOUT_SECONDS", "5")

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from fitkit.domains.fitness.connectors.models import (  # noqa: E402
    Account,
    DataReadResponse,
    DataType,
    FitnessOptions,
    SessionReadResponse,
)


# ---------------------------------------------------------------------------
# Scripted vendor SDK
# ---------------------------------------------------------------------------

class FakeFitnessSdk:
    """Scripted FitnessSdk double.

    Records every call, returns canned responses, and raises queued failures
    (``fail_next``) in order. Prompts are only recorded; tests deliver their
    outcome through the gate or plugin.
    """

    def __init__(
        self,
        account: Account | None = Account("tester@example.com"),
        granted: tuple[DataType, ...] = (),
    ) -> None:
        self.account = account
        self.granted: set[DataType] = set(granted)
        self.prompts: list[tuple[int, FitnessOptions]] = []
        self.resolutions: list[tuple[int, Any]] = []
        self.dismissed: list[tuple[int, FitnessOptions | None]] = []
        self.calls: list[tuple[str, Any]] = []
        self.data_response = DataReadResponse()
        self.session_response = SessionReadResponse()
        self.revoke_clears = True
        self._failures: dict[str, list[BaseException]] = {}

    def fail_next(self, method: str, exc: BaseException) -> None:
        self._failures.setdefault(method, []).append(exc)

    def _maybe_fail(self, method: str) -> None:
        queue = self._failures.get(method)
        if queue:
            raise queue.pop(0)

    def get_last_signed_in_account(self) -> Account | None:
        return self.account

    def has_permissions(self, account: Account | None, options: FitnessOptions) -> bool:
        return account is not None and options.data_types <= self.granted

    def request_permissions(self, account, options, request_code) -> None:
        self._maybe_fail("request_permissions")
        self.prompts.append((request_code, options))

    def start_resolution(self, error, request_code) -> None:
        self._maybe_fail("start_resolution")
        self.resolutions.append((request_code, error))

    def dismiss_prompt(self, request_code, options=None) -> None:
        self.dismissed.append((request_code, options))

    async def read_data(self, account, request):
        self.calls.append(("read_data", request))
        self._maybe_fail("read_data")
        return self.data_response

    async def read_session(self, account, request):
        self.calls.append(("read_session", request))
        self._maybe_fail("read_session")
        return self.session_response

    async def insert_session(self, account, request) -> None:
        self.calls.append(("insert_session", request))
        self._maybe_fail("insert_session")

    async def disable_fit(self, account) -> None:
        self.calls.append(("disable_fit", account))
        self._maybe_fail("disable_fit")

    async def revoke_access(self, account, options) -> None:
        self.calls.append(("revoke_access", account))
        if self.revoke_clears:
            self.granted.clear()
            self.account = None
        self._maybe_fail("revoke_access")


@pytest.fixture
def fake_sdk() -> FakeFitnessSdk:
    """A signed-in FakeFitnessSdk with nothing granted."""
    return FakeFitnessSdk()


@pytest.fixture
def gate(fake_sdk):
    """PermissionGate over the fake SDK, waiting forever for prompts."""
    from fitkit.domains.fitness.domain_logic.permission_gate import PermissionGate

    return PermissionGate(fake_sdk, grant_timeout=None)


@pytest.fixture
def operations(fake_sdk, gate):
    from fitkit.domains.fitness.domain_logic.executors import FitnessOperations

    return FitnessOperations(fake_sdk, gate)


@pytest.fixture
def plugin(fake_sdk):
    from fitkit.domains.fitness.plugin import FitKitPlugin

    return FitKitPlugin(fake_sdk, grant_timeout=None)


@pytest.fixture
def memory_sdk():
    """An empty InMemoryFitnessSdk with nobody signed in."""
    from fitkit.domains.fitness.connectors.memory import InMemoryFitnessSdk

    return InMemoryFitnessSdk(default_account=Account("memory@example.com"))
