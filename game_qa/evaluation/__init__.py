"""Playability evaluation: heuristic scoring, external judge, result cache."""

from game_qa.evaluation.cache import EvaluationCache, generate_cache_key
from game_qa.evaluation.engine import EvaluationEngine, evaluate
from game_qa.evaluation.heuristic import ISSUE_WEIGHTS, heuristic_score, issue_weight
from game_qa.evaluation.judge import LLMJudge
from game_qa.evaluation.scoring import combine_scores

__all__ = [
    "EvaluationEngine",
    "evaluate",
    "EvaluationCache",
    "generate_cache_key",
    "heuristic_score",
    "issue_weight",
    "ISSUE_WEIGHTS",
    "combine_scores",
    "LLMJudge",
]
