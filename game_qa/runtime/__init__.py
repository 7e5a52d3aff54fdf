"""Playwright-backed capabilities: automation, capture and session lifecycle."""

from game_qa.runtime.capture import CaptureManager
from game_qa.runtime.playwright_adapter import PlaywrightAutomation
from game_qa.runtime.session import GameSession

__all__ = ["PlaywrightAutomation", "CaptureManager", "GameSession"]
