"""Tests for error classification."""

import pytest

from game_qa.core.models import ActionResult, Issue, IssueType
from game_qa.engine.classifier import classify_error, create_issue, issues_from_results


@pytest.mark.parametrize(
    "message,expected",
    [
        ("Timeout 10000ms exceeded", IssueType.ACTION_TIMEOUT),
        ("Browser crash detected", IssueType.BROWSER_CRASH),
        ("CDP session closed", IssueType.BROWSER_CRASH),
        ("Protocol error: Connection closed", IssueType.BROWSER_CRASH),
        ("socket hang up", IssueType.BROWSER_CRASH),
        ("Element not found: start", IssueType.SELECTOR_NOT_FOUND),
        ("Could not find the play button", IssueType.SELECTOR_NOT_FOUND),
        ("Invalid selector '##'", IssueType.SELECTOR_NOT_FOUND),
        ("Screenshot capture failed", IssueType.SCREENSHOT_FAILED),
        ("Failed to write console output", IssueType.LOG_FAILED),
        ("something odd happened", IssueType.ACTION_FAILED),
    ],
)
def test_classify_error(message, expected):
    assert classify_error(RuntimeError(message)) == expected


def test_timeout_uses_load_context():
    assert classify_error("Timeout 30000ms exceeded", is_load=True) == IssueType.LOAD_TIMEOUT
    assert classify_error("Timeout 30000ms exceeded", is_load=False) == IssueType.ACTION_TIMEOUT


def test_first_matching_rule_wins():
    # timeout is checked before not-found and crash phrases
    assert classify_error("Timeout waiting for selector #start") == IssueType.ACTION_TIMEOUT
    assert classify_error("socket closed while taking screenshot") == IssueType.BROWSER_CRASH
    assert classify_error("screenshot log unavailable") == IssueType.SCREENSHOT_FAILED


@pytest.mark.parametrize("value", ["", None, "   "])
def test_empty_input_is_action_failed(value):
    expected = IssueType.ACTION_FAILED
    assert classify_error(value) == expected


def test_classification_is_deterministic():
    message = "net::ERR_CONNECTION_CLOSED at https://example.com"
    assert {classify_error(message) for _ in range(10)} == {classify_error(message)}


def test_create_issue_carries_index():
    issue = create_issue(RuntimeError("Element not found: menu"), action_index=4)

    assert isinstance(issue, Issue)
    assert issue.type == IssueType.SELECTOR_NOT_FOUND
    assert issue.action_index == 4
    assert "menu" in issue.description


def test_issues_from_results_only_failed():
    results = [
        ActionResult(index=0, action="wait", success=True),
        ActionResult(
            index=1,
            action="click",
            success=False,
            error="action_timeout: Timeout 10000ms exceeded",
            issue_type=IssueType.ACTION_TIMEOUT,
        ),
        ActionResult(index=2, action="press", success=False, error="boom"),
    ]

    issues = issues_from_results(results)

    assert [i.action_index for i in issues] == [1, 2]
    assert issues[0].type == IssueType.ACTION_TIMEOUT
    assert issues[1].type == IssueType.ACTION_FAILED
