"""Core abstractions and models."""

from game_qa.core.cache import CacheBackend, FileCacheBackend
from game_qa.core.exceptions import (
    ActionError,
    AgentUnavailableError,
    BrowserCrashError,
    CacheError,
    ConfigError,
    ElementNotFoundError,
    LoadTimeoutError,
    QAError,
    ScoringError,
    SessionError,
    StepValidationError,
)
from game_qa.core.models import (
    ActionResult,
    AgentSummary,
    EvaluationResult,
    ExternalScore,
    GameState,
    HeuristicMetrics,
    Issue,
    IssueType,
    MethodUsed,
    RunTelemetry,
    ScoringContext,
    SequenceOutcome,
    SequenceRunConfig,
    SequenceStatus,
    TokenUsage,
)
from game_qa.core.steps import (
    ActionStep,
    AgentStep,
    AxisStep,
    ClickStep,
    InteractionMode,
    ObserveStep,
    PressStep,
    ScreenshotStep,
    WaitStep,
    describe_step,
    parse_step,
)

__all__ = [
    # Exceptions
    "QAError",
    "ConfigError",
    "AgentUnavailableError",
    "StepValidationError",
    "SessionError",
    "LoadTimeoutError",
    "BrowserCrashError",
    "ActionError",
    "ElementNotFoundError",
    "ScoringError",
    "CacheError",
    # Cache
    "CacheBackend",
    "FileCacheBackend",
    # Steps
    "ActionStep",
    "WaitStep",
    "ClickStep",
    "PressStep",
    "ScreenshotStep",
    "ObserveStep",
    "AgentStep",
    "AxisStep",
    "InteractionMode",
    "parse_step",
    "describe_step",
    # Models
    "ActionResult",
    "AgentSummary",
    "EvaluationResult",
    "ExternalScore",
    "GameState",
    "HeuristicMetrics",
    "Issue",
    "IssueType",
    "MethodUsed",
    "RunTelemetry",
    "ScoringContext",
    "SequenceOutcome",
    "SequenceRunConfig",
    "SequenceStatus",
    "TokenUsage",
]
