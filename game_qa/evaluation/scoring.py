"""Blending of the heuristic score with an external score."""

from game_qa.core.models import ExternalScore
from game_qa.evaluation.heuristic import clamp

HIGH_CONFIDENCE = 0.5
HIGH_CONFIDENCE_WEIGHT = 0.4
LOW_CONFIDENCE_WEIGHT = 0.2


def external_weight(confidence: float) -> float:
    """Weight given to the external score; low confidence halves it."""
    return HIGH_CONFIDENCE_WEIGHT if confidence >= HIGH_CONFIDENCE else LOW_CONFIDENCE_WEIGHT


def combine_scores(heuristic: float, external: ExternalScore | None = None) -> float:
    """Confidence-weighted blend, clamped to [0, 1].

    With no external score the heuristic is returned unchanged.
    """
    if external is None:
        return heuristic

    weight = external_weight(external.confidence)
    blended = heuristic * (1 - weight) + (external.score * external.confidence) * weight
    return clamp(blended)
