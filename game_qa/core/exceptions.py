"""Custom exceptions for the playtest engine."""

from typing import Any


class QAError(Exception):
    """Base exception for playtest errors."""

    code = "QA_ERROR"

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        """Initialize error.

        Args:
            message: Error message
            context: Extra structured details for logs and reports
        """
        self.message = message
        self.context = context or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class ConfigError(QAError):
    """Raised when a run configuration is invalid or incomplete."""

    code = "CONFIG_ERROR"


class AgentUnavailableError(ConfigError):
    """Raised when agent-mode is requested without an agent capability."""

    code = "AGENT_UNAVAILABLE"

    def __init__(self, action: str) -> None:
        super().__init__(
            f"Agent-mode {action} requires an agent capability, but none is configured",
            context={"action": action},
        )


class StepValidationError(QAError):
    """Raised when a step is malformed."""

    code = "STEP_VALIDATION_ERROR"

    def __init__(self, action: str, errors: list[str]) -> None:
        """Initialize error.

        Args:
            action: Step kind that failed validation
            errors: Human-readable validation messages
        """
        self.errors = errors
        super().__init__(
            f"Invalid {action} step: {'; '.join(errors)}",
            context={"action": action, "errors": errors},
        )


class SessionError(QAError):
    """Raised when the browser session cannot be started or kept alive.

    Session errors are fatal and abort the run.
    """

    code = "SESSION_ERROR"


class LoadTimeoutError(SessionError):
    """Raised when the game URL does not load within the load timeout."""

    code = "LOAD_TIMEOUT"

    def __init__(self, url: str, message: str) -> None:
        self.url = url
        super().__init__(message, context={"url": url})


class BrowserCrashError(SessionError):
    """Raised when the page or browser crashed during the run."""

    code = "BROWSER_CRASH"


class ActionError(QAError):
    """Raised by a handler when a backend interaction fails."""

    code = "ACTION_ERROR"


class ElementNotFoundError(ActionError):
    """Raised when no element matches an interaction target."""

    code = "ELEMENT_NOT_FOUND"

    def __init__(self, target: str, message: str | None = None) -> None:
        self.target = target
        super().__init__(message or f"Element not found: {target}", context={"target": target})


class ScoringError(QAError):
    """Raised when the external scoring backend fails."""

    code = "SCORING_ERROR"


class CacheError(QAError):
    """Raised when a cache operation fails."""

    code = "CACHE_ERROR"
