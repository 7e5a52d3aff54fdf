"""Action execution engine: retry, resolution, dispatch and sequencing."""

from game_qa.engine.classifier import classify_error, create_issue, issues_from_results
from game_qa.engine.context import RunContext
from game_qa.engine.dispatcher import dispatch
from game_qa.engine.resolver import Resolution, candidate_phrasings, resolve, resolve_target
from game_qa.engine.retry import is_retryable_error, retry_with_backoff
from game_qa.engine.sequencer import MAX_STEPS, Sequencer, run_sequence

__all__ = [
    "RunContext",
    "dispatch",
    "Sequencer",
    "run_sequence",
    "MAX_STEPS",
    "retry_with_backoff",
    "is_retryable_error",
    "classify_error",
    "create_issue",
    "issues_from_results",
    "Resolution",
    "candidate_phrasings",
    "resolve",
    "resolve_target",
]
