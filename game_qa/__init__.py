"""Game QA - automated playability testing for browser games."""

from game_qa.config import QAConfig, default_config, load_config
from game_qa.core import (
    ActionResult,
    EvaluationResult,
    Issue,
    IssueType,
    QAError,
    SequenceRunConfig,
)
from game_qa.engine import RunContext, dispatch, run_sequence
from game_qa.evaluation import combine_scores, evaluate, heuristic_score
from game_qa.reporting import TestReport, aggregate

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Config
    "QAConfig",
    "load_config",
    "default_config",
    # Core
    "ActionResult",
    "EvaluationResult",
    "Issue",
    "IssueType",
    "QAError",
    "SequenceRunConfig",
    # Engine
    "RunContext",
    "dispatch",
    "run_sequence",
    # Evaluation
    "evaluate",
    "heuristic_score",
    "combine_scores",
    # Reporting
    "TestReport",
    "aggregate",
]
