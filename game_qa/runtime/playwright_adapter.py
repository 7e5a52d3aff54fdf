import logging
import re
from typing import Any, TypeVar

from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeout
from pydantic import BaseModel

from game_qa.core.exceptions import ActionError, ElementNotFoundError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

_VERB_PREFIX = re.compile(r"^(?:find|locate|click)(?:\s+on)?(?:\s+the)?\s+", re.IGNORECASE)
_ROLE_SUFFIX = re.compile(r"\s+(?:button|link|icon)$", re.IGNORECASE)
_PRESS_KEY = re.compile(r"^press the (.+) key$", re.IGNORECASE)
_CLICK = re.compile(r"^click(?: on)?(?: the)? (.+)$", re.IGNORECASE)

GAME_OVER_PATTERN = re.compile(r"game\s*over|you\s+(?:lose|lost|died)", re.IGNORECASE)
VICTORY_PATTERN = re.compile(r"you\s+win|victory|level\s+complete|you\s+won", re.IGNORECASE)
SCORE_PATTERN = re.compile(r"score\s*[:=]?\s*(-?\d+(?:\.\d+)?)", re.IGNORECASE)


def is_selector(target: str) -> bool:
    """True when ``target`` looks like a CSS/Playwright selector rather than text."""
    return (
        any(target.startswith(p) for p in ["[", "#", ".", "text=", "xpath=", "css="])
        or any(c in target for c in ["[", ">", "="])
        or bool(re.search(r"\.[a-zA-Z_]", target))
        or bool(re.search(r"#[a-zA-Z_]", target))
    )


def instruction_target(description: str) -> str:
    """``"find the start button"`` -> ``"start"``."""
    target = _VERB_PREFIX.sub("", description.strip())
    stripped = _ROLE_SUFFIX.sub("", target)
    return stripped or target


def _ms(seconds: float | None, default: float) -> float:
    return (seconds if seconds is not None else default) * 1000


class PlaywrightAutomation:
    """Automation capability over a Playwright page.

    Features:
    - Target lookup by accessible name (buttons, links), then visible text
    - Key presses through the page keyboard
    - Console and page-error collection for the responsiveness metric
    - Crash detection
    """

    def __init__(self, page: Page, action_timeout: float = 10.0):
        self.page = page
        self.action_timeout = action_timeout
        self._console: list[str] = []
        self._crashed = False
        self._setup_listeners()

    def _setup_listeners(self) -> None:
        """Monitor console, page errors and crashes."""

        def on_console(msg):
            self._console.append(f"[{msg.type}] {msg.text}")

        def on_page_error(error):
            self._console.append(f"[error] {error}")

        def on_crash(_page):
            logger.error("💥 Page crashed")
            self._crashed = True

        self.page.on("console", on_console)
        self.page.on("pageerror", on_page_error)
        self.page.on("crash", on_crash)

    def _locator_for(self, target: str) -> Locator:
        if is_selector(target):
            return self.page.locator(target)
        name = re.compile(re.escape(target), re.IGNORECASE)
        return (
            self.page.get_by_role("button", name=name)
            .or_(self.page.get_by_role("link", name=name))
            .or_(self.page.get_by_text(target))
        )

    async def locate(self, description: str, timeout: float) -> list[Any]:
        """Return visible matches for a natural-language description.

        An empty list means nothing matched within ``timeout`` seconds.
        """
        target = instruction_target(description)
        if not target:
            return []
        locator = self._locator_for(target).first
        try:
            await locator.wait_for(state="visible", timeout=_ms(timeout, self.action_timeout))
        except PlaywrightTimeout:
            logger.debug(f"Nothing visible for {description!r}")
            return []
        return [locator]

    async def perform(
        self,
        target: Any,
        timeout: float | None = None,
        mode_hint: str | None = None,
    ) -> None:
        """Click a located handle, or run a "press the X key" / "click the X" instruction."""
        timeout_ms = _ms(timeout, self.action_timeout)

        if not isinstance(target, str):
            await target.click(timeout=timeout_ms)
            return

        key_match = _PRESS_KEY.match(target.strip())
        if key_match:
            await self.page.keyboard.press(key_match.group(1))
            return

        click_match = _CLICK.match(target.strip())
        if click_match:
            text = click_match.group(1)
            logger.info(f"Clicking: {text}")
            handles = await self.locate(text, timeout if timeout is not None else self.action_timeout)
            if not handles:
                raise ElementNotFoundError(text)
            await handles[0].click(timeout=timeout_ms)
            return

        raise ActionError(f"Unsupported instruction: {target!r}", context={"mode_hint": mode_hint})

    async def extract_structured(
        self,
        instruction: str,
        schema: type[T],
        selector: str | None = None,
        timeout: float | None = None,
    ) -> T:
        """Fill ``schema`` from the visible text of ``selector`` (default: body).

        Recognises game-over, victory and score text; other schema fields
        keep their defaults.
        """
        text = await self.page.inner_text(selector or "body", timeout=_ms(timeout, self.action_timeout))
        values: dict[str, Any] = {}
        fields = schema.model_fields
        if "game_over" in fields:
            values["game_over"] = bool(GAME_OVER_PATTERN.search(text))
        if "victory" in fields:
            values["victory"] = bool(VICTORY_PATTERN.search(text))
        if "score" in fields:
            match = SCORE_PATTERN.search(text)
            if match:
                values["score"] = float(match.group(1))
        logger.debug(f"extract_structured({instruction!r}) -> {values}")
        return schema.model_validate(values)

    async def console_logs(self) -> list[str]:
        return self._console[:]

    def is_crashed(self) -> bool:
        return self._crashed

    async def screenshot(self, path: str) -> None:
        await self.page.screenshot(path=path, type="png", full_page=False)
