"""Per-run context passed to every engine component."""

import asyncio
import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from game_qa.core.capabilities import (
    AgentCapability,
    AutomationCapability,
    CaptureCapability,
    ScoringCapability,
)
from game_qa.core.models import SequenceRunConfig

logger = logging.getLogger("game_qa.run")


class RunLoggerAdapter(logging.LoggerAdapter):
    """Prefixes every message with the run id."""

    def process(self, msg, kwargs):
        return f"[{self.extra['run_id']}] {msg}", kwargs


def _new_run_id() -> str:
    return uuid.uuid4().hex[:8]


@dataclass
class RunContext:
    """Collaborators and run-scoped state for one playtest.

    Built once per run; nothing here is shared between runs.
    """

    config: SequenceRunConfig
    automation: AutomationCapability
    agent: AgentCapability | None = None
    capture: CaptureCapability | None = None
    scorer: ScoringCapability | None = None
    cache: Any = None  # EvaluationCache
    run_id: str = field(default_factory=_new_run_id)
    clock: Callable[[], float] = time.monotonic
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    logger: logging.LoggerAdapter = field(init=False)

    def __post_init__(self) -> None:
        self.logger = RunLoggerAdapter(logger, {"run_id": self.run_id})
