"""Browser session lifecycle: launch, load the game, close."""

import logging
from typing import Any

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from game_qa.config import QAConfig
from game_qa.core.exceptions import LoadTimeoutError, SessionError
from game_qa.core.models import Issue, IssueType
from game_qa.engine.classifier import classify_error, create_issue
from game_qa.engine.retry import is_retryable_error, retry_with_backoff
from game_qa.runtime.playwright_adapter import PlaywrightAutomation

logger = logging.getLogger(__name__)

DEFAULT_VIEWPORT = {"width": 1280, "height": 800}

# Common ad containers, always hidden
DEFAULT_HIDE_SELECTORS = [
    'iframe[src*="ads"]',
    'iframe[src*="advertisement"]',
    'div[id*="advertisement"]',
    'div[class*="advertisement"]',
]

# Text length plus embedded surfaces; canvas games often render no text at all
CONTENT_PROBE = """() => (document.body ? document.body.innerText.length : 0)
    + document.querySelectorAll('canvas, iframe, embed, object').length"""

DOM_OPTIMIZE_SCRIPT = """(args) => {
    for (const selector of args.hide) {
        try { document.querySelectorAll(selector).forEach((el) => { el.style.display = 'none'; }); }
        catch (e) {}
    }
    for (const selector of args.remove) {
        try { document.querySelectorAll(selector).forEach((el) => el.remove()); }
        catch (e) {}
    }
}"""


class GameSession:
    """Owns the Playwright browser for one run.

    States: idle -> loading -> active, or error; closed after ``close()``.
    """

    def __init__(self, headless: bool = True, viewport: dict[str, int] | None = None):
        self.headless = headless
        self.viewport = viewport or DEFAULT_VIEWPORT
        self.state = "idle"
        self.issues: list[Issue] = []
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self.page: Page | None = None
        self.automation: PlaywrightAutomation | None = None

    def _set_state(self, state: str) -> None:
        if self.state != state:
            logger.debug(f"Session state: {self.state} -> {state}")
            self.state = state

    async def start(self, action_timeout: float = 10.0) -> PlaywrightAutomation:
        """Launch Chromium and open a page."""
        try:
            if self._playwright is None:
                self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(headless=self.headless)
            self._context = await self._browser.new_context(
                viewport=self.viewport, bypass_csp=True, ignore_https_errors=True
            )
            self.page = await self._context.new_page()
        except Exception as e:
            self._set_state("error")
            raise SessionError(f"Session initialization failed: {e}") from e

        self.automation = PlaywrightAutomation(self.page, action_timeout=action_timeout)
        logger.info(f"Browser started ({'headless' if self.headless else 'headed'})")
        return self.automation

    async def _goto(self, url: str, load_timeout: float) -> None:
        await self.page.goto(url, wait_until="domcontentloaded", timeout=load_timeout * 1000)
        content = await self.page.evaluate(CONTENT_PROBE)
        if not content:
            raise SessionError("Page appears to be blank after load", context={"url": url})

    async def load(self, url: str, config: QAConfig) -> PlaywrightAutomation:
        """Navigate to ``url`` with retries; fall back to a headed browser once.

        Raises:
            SessionError: If the game cannot be loaded
        """
        if self.page is None:
            await self.start(action_timeout=config.timeouts.action / 1000)

        self._set_state("loading")
        logger.info(f"Loading game URL: {url}")
        try:
            await retry_with_backoff(
                lambda: self._goto(url, config.load_timeout),
                max_attempts=config.retries + 1,
                base_delay=1.0,
                max_delay=10.0,
                should_retry=is_retryable_error,
                log=logger,
            )
        except Exception as e:
            self._set_state("error")
            issue_type = classify_error(e, is_load=True)
            self.issues.append(
                create_issue(
                    f"Failed to load game URL after {config.retries} retries: {e}",
                    is_load=True,
                )
            )
            logger.error(f"Failed to load {url} after {config.retries} retries: {e}")

            if self.headless and config.headed_fallback and issue_type == IssueType.LOAD_TIMEOUT:
                return await self._load_headed(url, config)
            if isinstance(e, SessionError):
                raise
            if issue_type == IssueType.LOAD_TIMEOUT:
                raise LoadTimeoutError(url, f"Game URL {url} did not load in time: {e}") from e
            raise SessionError(f"Failed to load game URL {url}: {e}", context={"url": url}) from e

        self._set_state("active")
        logger.info("Page loaded successfully")
        await self._optimize_dom(config)
        return self.automation

    async def _load_headed(self, url: str, config: QAConfig) -> PlaywrightAutomation:
        logger.warning("Headless mode failed, attempting headed fallback...")
        self.issues.append(
            Issue(
                type=IssueType.HEADLESS_INCOMPATIBILITY,
                description="Game failed to load in headless mode, falling back to headed mode",
            )
        )
        await self._close_browser()
        self.headless = False
        self._set_state("idle")
        await self.start(action_timeout=config.timeouts.action / 1000)
        self._set_state("loading")
        try:
            await self._goto(url, config.load_timeout)
        except Exception as e:
            self._set_state("error")
            self.issues.append(create_issue(f"Headed load failed: {e}", is_load=True))
            raise SessionError(f"Failed to load game URL {url} in headed mode: {e}") from e
        self._set_state("active")
        await self._optimize_dom(config)
        return self.automation

    async def _optimize_dom(self, config: QAConfig) -> None:
        """Hide ad containers and configured selectors. Never fatal."""
        hide = list(DEFAULT_HIDE_SELECTORS)
        remove: list[str] = []
        if config.dom_optimization is not None:
            hide += config.dom_optimization.hide_selectors
            remove += config.dom_optimization.remove_selectors
        try:
            await self.page.evaluate(DOM_OPTIMIZE_SCRIPT, {"hide": hide, "remove": remove})
            logger.debug(f"DOM optimization applied ({len(hide)} hide, {len(remove)} remove)")
        except Exception as e:
            logger.debug(f"DOM optimization skipped: {e}")

    def is_crashed(self) -> bool:
        return self.automation is not None and self.automation.is_crashed()

    async def _close_browser(self) -> None:
        for resource in (self._context, self._browser):
            if resource is None:
                continue
            try:
                await resource.close()
            except Exception as e:
                logger.debug(f"Error closing {type(resource).__name__}: {e}")
        self._context = None
        self._browser = None
        self.page = None

    async def close(self) -> None:
        await self._close_browser()
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
        self._set_state("closed")

    async def __aenter__(self) -> "GameSession":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()
