"""Run report aggregation and output."""

from game_qa.reporting.aggregator import (
    ActionTiming,
    AgentResponse,
    TestReport,
    aggregate,
    method_breakdown,
)
from game_qa.reporting.writer import ReportWriter

__all__ = [
    "aggregate",
    "method_breakdown",
    "TestReport",
    "ActionTiming",
    "AgentResponse",
    "ReportWriter",
]
