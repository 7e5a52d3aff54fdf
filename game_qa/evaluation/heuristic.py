"""Heuristic playability score derived purely from run telemetry."""

from collections.abc import Sequence

from game_qa.core.models import (
    ActionResult,
    GameState,
    HeuristicMetrics,
    Issue,
    IssueType,
)

ISSUE_WEIGHTS: dict[IssueType, float] = {
    IssueType.BROWSER_CRASH: 0.5,
    IssueType.LOAD_TIMEOUT: 0.4,
    IssueType.TOTAL_TIMEOUT: 0.5,
    IssueType.ACTION_TIMEOUT: 0.2,
    IssueType.SELECTOR_NOT_FOUND: 0.15,
    IssueType.ACTION_FAILED: 0.1,
    IssueType.HEADLESS_INCOMPATIBILITY: 0.1,
    IssueType.SCREENSHOT_FAILED: 0.05,
    IssueType.LOG_FAILED: 0.05,
}
DEFAULT_ISSUE_WEIGHT = 0.1

MAX_ISSUE_PENALTY = 0.5
LOAD_FAILURE_MULTIPLIER = 0.5
STABILITY_MULTIPLIER = 0.3
COMPLETION_BONUS = 0.1

CRITICAL_ERROR_MARKERS = ("typeerror", "referenceerror", "syntaxerror")


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def issue_weight(issue_type: IssueType | str) -> float:
    try:
        return ISSUE_WEIGHTS.get(IssueType(issue_type), DEFAULT_ISSUE_WEIGHT)
    except ValueError:
        return DEFAULT_ISSUE_WEIGHT


def count_console_errors(console_logs: Sequence[str]) -> tuple[int, int]:
    """Return ``(error_count, critical_error_count)``.

    Errors are ``[error]`` lines; critical errors are lines mentioning a
    TypeError, ReferenceError or SyntaxError.
    """
    errors = 0
    critical = 0
    for line in console_logs:
        lower = line.lower()
        if "[error]" in lower:
            errors += 1
        if any(marker in lower for marker in CRITICAL_ERROR_MARKERS):
            critical += 1
    return errors, critical


def responsiveness_score(error_count: int, critical_error_count: int) -> float:
    return clamp(1 - (error_count * 0.1 + critical_error_count * 0.2))


def heuristic_score(
    results: Sequence[ActionResult],
    issues: Sequence[Issue],
    console_logs: Sequence[str] = (),
    load_check_passed: bool = True,
    game_state: GameState | None = None,
) -> tuple[float, HeuristicMetrics]:
    """Score a run in [0, 1].

    Args:
        results: Action results from the sequencer
        issues: Every issue recorded for the run, including one per failed action
        console_logs: Browser console lines (``[error] ...`` etc.)
        load_check_passed: Whether the game showed content after loading
        game_state: Terminal-state snapshot, if one was read

    Returns:
        ``(score, metrics)``
    """
    total_actions = max(len(results), 1)
    successful = sum(1 for r in results if r.success)

    error_count, critical_count = count_console_errors(console_logs)
    responsiveness = responsiveness_score(error_count, critical_count)

    weighted_issues = sum(issue_weight(issue.type) for issue in issues)
    stability_penalty = any(issue.type == IssueType.BROWSER_CRASH for issue in issues)
    terminal = game_state is not None and game_state.terminal

    score = (successful / total_actions) * (
        1 - min(weighted_issues / total_actions, MAX_ISSUE_PENALTY)
    )
    if not load_check_passed:
        score *= LOAD_FAILURE_MULTIPLIER
    if stability_penalty:
        score *= STABILITY_MULTIPLIER
    score *= 0.8 + responsiveness * 0.2
    if terminal:
        score = min(1.0, score + COMPLETION_BONUS)
    score = clamp(score)

    metrics = HeuristicMetrics(
        total_actions=len(results),
        successful_actions=successful,
        weighted_issues=weighted_issues,
        error_count=error_count,
        critical_error_count=critical_count,
        responsiveness=responsiveness,
        load_check_passed=load_check_passed,
        stability_penalty=stability_penalty,
        terminal_state_reached=terminal,
    )
    return score, metrics
