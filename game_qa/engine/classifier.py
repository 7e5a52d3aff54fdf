"""Error classification into the issue taxonomy.

Rules are checked in order and the first match wins, so reordering them
changes observable classification.
"""

from collections.abc import Iterable

from game_qa.core.models import ActionResult, Issue, IssueType

_TIMEOUT_PHRASES = ("timeout",)
_CRASH_PHRASES = ("browser crash", "cdp", "connection closed", "transport closed", "socket")
_NOT_FOUND_PHRASES = ("selector", "element not found", "could not find", "not found")
_SCREENSHOT_PHRASES = ("screenshot",)
_LOG_PHRASES = ("log", "console")


def classify_error(error: BaseException | str | None, is_load: bool = False) -> IssueType:
    """Map an error (or its message) to an issue type. Never raises."""
    message = str(error or "").lower()
    if not message:
        return IssueType.ACTION_FAILED

    if any(p in message for p in _TIMEOUT_PHRASES):
        return IssueType.LOAD_TIMEOUT if is_load else IssueType.ACTION_TIMEOUT
    if any(p in message for p in _CRASH_PHRASES):
        return IssueType.BROWSER_CRASH
    if any(p in message for p in _NOT_FOUND_PHRASES):
        return IssueType.SELECTOR_NOT_FOUND
    if any(p in message for p in _SCREENSHOT_PHRASES):
        return IssueType.SCREENSHOT_FAILED
    if any(p in message for p in _LOG_PHRASES):
        return IssueType.LOG_FAILED
    return IssueType.ACTION_FAILED


def format_error(issue_type: IssueType, message: str) -> str:
    return f"{issue_type.value}: {message}"


def create_issue(
    error: BaseException | str | None,
    is_load: bool = False,
    action_index: int | None = None,
) -> Issue:
    """Classify ``error`` and wrap it as an Issue."""
    issue_type = classify_error(error, is_load=is_load)
    return Issue(
        type=issue_type,
        description=str(error or "") or "Unknown error",
        action_index=action_index,
    )


def issues_from_results(results: Iterable[ActionResult]) -> list[Issue]:
    """One issue per failed result, in result order."""
    issues = []
    for result in results:
        if result.success:
            continue
        issues.append(
            Issue(
                type=result.issue_type or classify_error(result.error),
                description=result.error or f"{result.action} failed",
                timestamp=result.timestamp,
                action_index=result.index,
            )
        )
    return issues
