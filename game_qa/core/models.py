"""Core data models for the playtest engine."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from game_qa.core.steps import ActionStep, InteractionMode


class IssueType(str, Enum):
    """Closed taxonomy of things that can go wrong during a run."""

    LOAD_TIMEOUT = "load_timeout"
    ACTION_TIMEOUT = "action_timeout"
    ACTION_FAILED = "action_failed"
    SCREENSHOT_FAILED = "screenshot_failed"
    LOG_FAILED = "log_failed"
    BROWSER_CRASH = "browser_crash"
    SELECTOR_NOT_FOUND = "selector_not_found"
    HEADLESS_INCOMPATIBILITY = "headless_incompatibility"
    TOTAL_TIMEOUT = "total_timeout"


class MethodUsed(str, Enum):
    """Which interaction path executed an action."""

    AGENT = "agent"
    STRUCTURAL = "structural"
    NONE = "none"


class SequenceStatus(str, Enum):
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"


def utcnow() -> datetime:
    return datetime.now(UTC)


class Issue(BaseModel):
    """A classified, timestamped record of something that went wrong."""

    model_config = ConfigDict(frozen=True)

    type: IssueType
    description: str
    timestamp: datetime = Field(default_factory=utcnow)
    action_index: int | None = None


class AgentSummary(BaseModel):
    """What the agent capability reported after a task."""

    model_config = ConfigDict(frozen=True)

    message: str | None = None
    steps_executed: int | None = None
    reported_success: bool | None = None


class ActionResult(BaseModel):
    """Outcome of one dispatched step. Created once, never mutated."""

    model_config = ConfigDict(frozen=True)

    index: int
    action: str
    success: bool
    error: str | None = None
    issue_type: IssueType | None = None
    execution_time: float = Field(default=0.0, ge=0.0)
    timestamp: datetime = Field(default_factory=utcnow)
    method_used: MethodUsed = MethodUsed.NONE
    description: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    agent_summary: AgentSummary | None = None


class GameState(BaseModel):
    """Terminal-state snapshot read from the page."""

    game_over: bool = False
    victory: bool = False
    score: float | None = None
    message: str | None = None

    @property
    def terminal(self) -> bool:
        return self.game_over or self.victory


class TokenUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ExternalScore(BaseModel):
    """Raw result from the scoring capability.

    Values are stored as returned; blending clamps them.
    """

    score: float
    issues: list[str] = Field(default_factory=list)
    confidence: float = 0.0
    token_usage: TokenUsage | None = None


class HeuristicMetrics(BaseModel):
    """Intermediate values behind a heuristic score."""

    total_actions: int = 0
    successful_actions: int = 0
    weighted_issues: float = 0.0
    error_count: int = 0
    critical_error_count: int = 0
    responsiveness: float = 1.0
    load_check_passed: bool = True
    stability_penalty: bool = False
    terminal_state_reached: bool = False


class EvaluationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    heuristic_score: float = Field(ge=0.0, le=1.0)
    external_score: float | None = None
    external_confidence: float | None = None
    final_score: float = Field(ge=0.0, le=1.0)
    issues: list[str] = Field(default_factory=list)
    game_state: GameState | None = None
    cache_hit: bool = False
    token_usage: TokenUsage | None = None
    metrics: HeuristicMetrics | None = None


class SequenceRunConfig(BaseModel):
    """Read-only run parameters for the sequencer and dispatcher (seconds)."""

    model_config = ConfigDict(frozen=True)

    steps: tuple[ActionStep, ...] = ()
    action_timeout: float = 10.0
    action_retries: int = 2
    total_timeout: float = 60.0
    final_capture_buffer: float = 5.0
    controls: dict[str, list[str]] = Field(default_factory=dict)
    default_mode: InteractionMode | None = None
    agent_max_steps: int = 3
    metadata: dict[str, Any] = Field(default_factory=dict)


class RunTelemetry(BaseModel):
    """Everything the evaluation engine sees besides action results."""

    url: str
    issues: list[Issue] = Field(default_factory=list)
    console_logs: list[str] = Field(default_factory=list)
    load_check_passed: bool = True
    game_state: GameState | None = None
    final_screenshot: str | None = None


class ScoringContext(BaseModel):
    """Input handed to the external scoring capability."""

    url: str
    results: list[ActionResult]
    issues: list[Issue] = Field(default_factory=list)
    console_logs: list[str] = Field(default_factory=list)
    heuristic_score: float
    metadata: dict[str, Any] = Field(default_factory=dict)
    screenshot_path: str | None = None


class SequenceOutcome(BaseModel):
    """Sequencer output: ordered results plus how the loop ended."""

    results: list[ActionResult] = Field(default_factory=list)
    status: SequenceStatus = SequenceStatus.COMPLETED
    elapsed: float = 0.0
