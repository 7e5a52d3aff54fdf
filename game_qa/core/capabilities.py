"""Collaborator protocols consumed by the engine.

The engine never talks to a browser or a model directly; it is handed
objects that satisfy these protocols. Concrete implementations live in
``game_qa.runtime`` and ``game_qa.evaluation.judge``.
"""

from typing import Any, Protocol, TypeVar

from pydantic import BaseModel

from game_qa.core.models import ExternalScore, ScoringContext

T = TypeVar("T", bound=BaseModel)


class AutomationCapability(Protocol):
    """Structural access to the page."""

    async def locate(self, description: str, timeout: float) -> list[Any]: ...

    async def perform(
        self,
        target: Any,
        timeout: float | None = None,
        mode_hint: str | None = None,
    ) -> None: ...

    async def extract_structured(
        self,
        instruction: str,
        schema: type[T],
        selector: str | None = None,
        timeout: float | None = None,
    ) -> T: ...

    async def console_logs(self) -> list[str]: ...

    def is_crashed(self) -> bool: ...


class AgentCapability(Protocol):
    """Instruction-driven automation agent (agent-mode)."""

    async def run_agent_task(
        self, instruction: str, max_steps: int, timeout: float
    ) -> dict[str, Any]: ...  # {message?, steps_executed?, success?}


class ScoringCapability(Protocol):
    """External playability judge."""

    @property
    def available(self) -> bool: ...

    async def score(self, context: ScoringContext) -> ExternalScore: ...


class CaptureCapability(Protocol):
    """Screenshot and log capture. Every call is best-effort."""

    async def capture_diagnostic(self, label: str, index: int | None = None) -> str | None: ...
