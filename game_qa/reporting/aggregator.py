"""Result aggregation into the final run report."""

import logging
from collections.abc import Sequence
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from game_qa.core.models import (
    ActionResult,
    AgentSummary,
    EvaluationResult,
    Issue,
    MethodUsed,
    SequenceStatus,
    utcnow,
)
from game_qa.engine.classifier import issues_from_results

logger = logging.getLogger(__name__)


class ActionTiming(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    action: str
    execution_time: float
    timestamp: datetime
    success: bool
    method_used: MethodUsed


class AgentResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    action: str
    summary: AgentSummary


class TestReport(BaseModel):
    """Immutable report for one playtest run.

    ``status`` and ``playability_score`` are independent: a run fails when
    any issue was recorded, however well it scores.
    """

    __test__ = False  # not a pytest class

    model_config = ConfigDict(frozen=True)

    url: str
    timestamp: datetime = Field(default_factory=utcnow)
    test_duration: float = 0.0
    config_path: str | None = None
    status: Literal["pass", "fail"]
    sequence_status: SequenceStatus = SequenceStatus.COMPLETED
    playability_score: float
    evaluation: EvaluationResult | None = None
    issues: list[Issue] = Field(default_factory=list)
    screenshots: list[str] = Field(default_factory=list)
    action_timings: list[ActionTiming] = Field(default_factory=list)
    action_methods: dict[str, int] = Field(default_factory=dict)
    agent_responses: list[AgentResponse] = Field(default_factory=list)
    console_log_path: str | None = None

    @property
    def passed(self) -> bool:
        return self.status == "pass"

    def to_json_dict(self) -> dict[str, Any]:
        data = self.model_dump(mode="json", exclude={"evaluation"})
        evaluation = self.evaluation
        data["evaluation"] = (
            {
                "heuristic_score": evaluation.heuristic_score,
                "external_score": evaluation.external_score,
                "external_confidence": evaluation.external_confidence,
                "final_score": evaluation.final_score,
                "external_issues": list(evaluation.issues),
                "game_state": (
                    evaluation.game_state.model_dump(mode="json") if evaluation.game_state else None
                ),
                "cache_hit": evaluation.cache_hit,
                "token_usage": (
                    evaluation.token_usage.model_dump(mode="json") if evaluation.token_usage else None
                ),
            }
            if evaluation is not None
            else None
        )
        return data


def method_breakdown(results: Sequence[ActionResult]) -> dict[str, int]:
    counts = {method.value: 0 for method in MethodUsed}
    for result in results:
        counts[result.method_used.value] += 1
    return counts


def aggregate(
    url: str,
    results: Sequence[ActionResult],
    evaluation: EvaluationResult | None = None,
    external_issues: Sequence[Issue] = (),
    *,
    sequence_status: SequenceStatus = SequenceStatus.COMPLETED,
    screenshots: Sequence[str] = (),
    test_duration: float = 0.0,
    config_path: str | None = None,
    console_log_path: str | None = None,
) -> TestReport:
    """Assemble the final report from sequencer and evaluation output.

    Args:
        url: Game URL under test
        results: Ordered action results
        evaluation: Evaluation output, if evaluation ran
        external_issues: Issues raised outside the sequencer (session, capture)
        sequence_status: How the sequencer stopped
        screenshots: Paths of captured screenshots, in capture order
        test_duration: Wall-clock duration of the whole run, in seconds
        config_path: Config file the run was loaded from
        console_log_path: Where the console log was saved

    Returns:
        The immutable report
    """
    issues = issues_from_results(results) + list(external_issues)

    if evaluation is not None:
        score = evaluation.final_score
    else:
        score = sum(1 for r in results if r.success) / len(results) if results else 0.0

    report = TestReport(
        url=url,
        test_duration=test_duration,
        config_path=config_path,
        status="fail" if issues else "pass",
        sequence_status=sequence_status,
        playability_score=score,
        evaluation=evaluation,
        issues=issues,
        screenshots=list(screenshots),
        action_timings=[
            ActionTiming(
                index=r.index,
                action=r.action,
                execution_time=r.execution_time,
                timestamp=r.timestamp,
                success=r.success,
                method_used=r.method_used,
            )
            for r in results
        ],
        action_methods=method_breakdown(results),
        agent_responses=[
            AgentResponse(index=r.index, action=r.action, summary=r.agent_summary)
            for r in results
            if r.agent_summary is not None
        ],
        console_log_path=console_log_path,
    )
    logger.info(
        f"{'✅' if report.passed else '❌'} {report.status.upper()} "
        f"score={report.playability_score:.2f} issues={len(issues)}"
    )
    return report
