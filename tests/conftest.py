"""Pytest configuration and fixtures."""

from typing import Any

import pytest

from game_qa.core.models import SequenceRunConfig
from game_qa.engine.context import RunContext


class FakeClock:
    """Monotonic clock that only moves when something sleeps or advances it."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeAutomation:
    """Automation capability double that records every call."""

    def __init__(
        self,
        locate_map: dict[str, list[Any]] | None = None,
        perform_errors: list[BaseException] | None = None,
        game_state: Any = None,
        console: list[str] | None = None,
    ):
        self.locate_map = locate_map or {}
        self.perform_errors = list(perform_errors or [])
        self.game_state = game_state
        self.console = console or []
        self.locate_calls: list[str] = []
        self.performed: list[Any] = []
        self.perform_hints: list[str | None] = []

    async def locate(self, description: str, timeout: float) -> list[Any]:
        self.locate_calls.append(description)
        result = self.locate_map.get(description, [])
        if isinstance(result, BaseException):
            raise result
        return result

    async def perform(self, target: Any, timeout: float | None = None, mode_hint: str | None = None) -> None:
        self.performed.append(target)
        self.perform_hints.append(mode_hint)
        if self.perform_errors:
            raise self.perform_errors.pop(0)

    async def extract_structured(self, instruction, schema, selector=None, timeout=None):
        if self.game_state is None:
            raise RuntimeError("no HUD found")
        return self.game_state

    async def console_logs(self) -> list[str]:
        return list(self.console)

    def is_crashed(self) -> bool:
        return False


class FakeCapture:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: list[tuple[str, int | None]] = []

    async def capture_diagnostic(self, label: str, index: int | None = None) -> str | None:
        self.calls.append((label, index))
        if self.fail:
            raise RuntimeError("screenshot failed: page closed")
        return f"/tmp/{label}.png"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def automation():
    return FakeAutomation()


@pytest.fixture
def make_ctx(clock, automation):
    """Factory for a RunContext wired to fakes; keyword args override fields."""

    def _make(config: SequenceRunConfig | None = None, **overrides: Any) -> RunContext:
        fields: dict[str, Any] = {
            "config": config or SequenceRunConfig(),
            "automation": automation,
            "capture": FakeCapture(),
            "run_id": "test-run",
            "clock": clock,
            "sleep": clock.sleep,
        }
        fields.update(overrides)
        return RunContext(**fields)

    return _make
