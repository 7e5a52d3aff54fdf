"""Tests for score blending."""

import pytest

from game_qa.core.models import ExternalScore
from game_qa.evaluation.scoring import combine_scores, external_weight


def test_without_external_score_heuristic_is_unchanged():
    assert combine_scores(0.73) == 0.73
    assert combine_scores(0.0, None) == 0.0


def test_high_confidence_blend():
    assert combine_scores(0.5, ExternalScore(score=1.0, confidence=1.0)) == pytest.approx(0.7)


def test_low_confidence_halves_external_weight():
    assert external_weight(0.4) == 0.2
    assert external_weight(0.5) == 0.4
    assert combine_scores(0.5, ExternalScore(score=1.0, confidence=0.4)) == pytest.approx(0.48)


@pytest.mark.parametrize(
    "heuristic,score,confidence,expected",
    [
        (1.0, 5.0, 1.0, 1.0),
        (0.0, -3.0, 1.0, 0.0),
    ],
)
def test_out_of_range_external_score_is_clamped(heuristic, score, confidence, expected):
    assert combine_scores(heuristic, ExternalScore(score=score, confidence=confidence)) == expected
