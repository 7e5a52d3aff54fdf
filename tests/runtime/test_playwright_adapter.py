"""Tests for the Playwright automation adapter."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from game_qa.core.exceptions import ActionError
from game_qa.core.models import GameState
from game_qa.runtime.playwright_adapter import (
    PlaywrightAutomation,
    instruction_target,
    is_selector,
)


def make_page() -> MagicMock:
    page = MagicMock()
    page.keyboard.press = AsyncMock()
    page.inner_text = AsyncMock(return_value="")
    page.screenshot = AsyncMock()
    return page


def listener(page: MagicMock, event: str):
    for call in page.on.call_args_list:
        if call.args[0] == event:
            return call.args[1]
    raise AssertionError(f"no {event} listener registered")


@pytest.mark.parametrize(
    "description,expected",
    [
        ("find the start button", "start"),
        ("locate play game button", "play game"),
        ("click on the settings icon", "settings"),
        ("find score display", "score display"),
        ("find the button", "button"),
    ],
)
def test_instruction_target(description, expected):
    assert instruction_target(description) == expected


@pytest.mark.parametrize(
    "target,expected",
    [
        ("#start", True),
        (".menu-item", True),
        ("button[data-id=play]", True),
        ("text=Play", True),
        ("start game", False),
        ("Play Again", False),
    ],
)
def test_is_selector(target, expected):
    assert is_selector(target) is expected


class TestPlaywrightAutomation:
    @pytest.mark.asyncio
    async def test_press_instruction_uses_keyboard(self) -> None:
        page = make_page()
        automation = PlaywrightAutomation(page)

        await automation.perform("press the ArrowUp key", timeout=1.0, mode_hint="structural")

        page.keyboard.press.assert_awaited_once_with("ArrowUp")

    @pytest.mark.asyncio
    async def test_handle_is_clicked_with_ms_timeout(self) -> None:
        automation = PlaywrightAutomation(make_page())
        handle = MagicMock()
        handle.click = AsyncMock()

        await automation.perform(handle, timeout=2.0)

        handle.click.assert_awaited_once_with(timeout=2000.0)

    @pytest.mark.asyncio
    async def test_unsupported_instruction(self) -> None:
        automation = PlaywrightAutomation(make_page())

        with pytest.raises(ActionError, match="Unsupported instruction"):
            await automation.perform("dance wildly")

    @pytest.mark.asyncio
    async def test_extract_game_state_from_text(self) -> None:
        page = make_page()
        page.inner_text.return_value = "GAME OVER\nScore: 120\nPress R to restart"
        automation = PlaywrightAutomation(page)

        state = await automation.extract_structured("read HUD", GameState, timeout=5.0)

        assert state.game_over is True
        assert state.victory is False
        assert state.score == 120
        page.inner_text.assert_awaited_once_with("body", timeout=5000.0)

    @pytest.mark.asyncio
    async def test_console_and_crash_listeners(self) -> None:
        page = make_page()
        automation = PlaywrightAutomation(page)

        listener(page, "console")(MagicMock(type="warning", text="slow frame"))
        listener(page, "pageerror")("ReferenceError: foo is not defined")
        listener(page, "crash")(page)

        assert await automation.console_logs() == [
            "[warning] slow frame",
            "[error] ReferenceError: foo is not defined",
        ]
        assert automation.is_crashed() is True
