"""End-to-end tests for the playtest runner with a fake browser session."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from game_qa.config import QAConfig, Settings
from game_qa.core.exceptions import SessionError
from game_qa.core.models import Issue, IssueType
from game_qa.runner import PlaytestRunner, build_parser, main

from conftest import FakeAutomation


class FakeSession:
    def __init__(self, headless=True, automation=None, load_error=None, crashed=False):
        self.headless = headless
        self.automation = automation or FakeAutomation(console=["[log] booted"])
        self.load_error = load_error
        self.crashed = crashed
        self.page = MagicMock()
        self.page.screenshot = AsyncMock()
        self.issues: list[Issue] = []
        self.closed = False

    async def load(self, url, config):
        if self.load_error is not None:
            self.issues.append(Issue(type=IssueType.LOAD_TIMEOUT, description=str(self.load_error)))
            raise self.load_error
        return self.automation

    def is_crashed(self) -> bool:
        return self.crashed

    async def close(self) -> None:
        self.closed = True


def make_runner(tmp_path, session: FakeSession, **kwargs) -> PlaytestRunner:
    config = QAConfig.model_validate(
        {"sequence": [{"action": "screenshot", "label": "menu"}, {"action": "press", "key": "Space"}]}
    )
    settings = Settings(cache_dir=str(tmp_path / "cache"), output_dir=str(tmp_path / "results"))

    def factory(headless=True):
        session.headless = headless
        return session

    return PlaytestRunner(config=config, settings=settings, session_factory=factory, **kwargs)


def read_report(tmp_path) -> dict:
    [path] = list((tmp_path / "results").glob("session_*/output.json"))
    return json.loads(path.read_text())


class TestPlaytestRunner:
    @pytest.mark.asyncio
    async def test_clean_run_passes_and_writes_reports(self, tmp_path) -> None:
        session = FakeSession()

        report = await make_runner(tmp_path, session).run("https://game.test")

        assert report.passed is True
        assert len(report.action_timings) == 2
        assert report.evaluation is not None
        assert report.playability_score == report.evaluation.final_score
        # initial_load, menu, final_state
        assert len(report.screenshots) == 3
        assert session.automation.performed == ["press the Space key"]
        assert session.closed is True

        data = read_report(tmp_path)
        assert data["status"] == "pass"
        assert data["console_log_path"].endswith("console.log")
        assert list((tmp_path / "results").glob("session_*/run.md"))

    @pytest.mark.asyncio
    async def test_failed_action_fails_run(self, tmp_path) -> None:
        automation = FakeAutomation(perform_errors=[RuntimeError("keyboard unavailable")])
        session = FakeSession(automation=automation)

        report = await make_runner(tmp_path, session).run("https://game.test")

        assert report.status == "fail"
        assert report.issues[0].action_index == 1

    @pytest.mark.asyncio
    async def test_load_failure_writes_fail_report_and_raises(self, tmp_path) -> None:
        session = FakeSession(load_error=SessionError("Failed to load game URL"))

        with pytest.raises(SessionError):
            await make_runner(tmp_path, session).run("https://game.test")

        assert session.closed is True
        data = read_report(tmp_path)
        assert data["status"] == "fail"
        assert data["issues"][0]["type"] == "load_timeout"

    @pytest.mark.asyncio
    async def test_browser_crash_is_reported(self, tmp_path) -> None:
        session = FakeSession(crashed=True)

        with pytest.raises(SessionError, match="crashed"):
            await make_runner(tmp_path, session).run("https://game.test")

        data = read_report(tmp_path)
        assert data["status"] == "fail"
        assert any(issue["type"] == "browser_crash" for issue in data["issues"])

    @pytest.mark.asyncio
    async def test_headed_flag_reaches_session(self, tmp_path) -> None:
        session = FakeSession()

        await make_runner(tmp_path, session, headless=False).run("https://game.test")

        assert session.headless is False


class TestCli:
    def test_parser(self) -> None:
        args = build_parser().parse_args(
            ["test", "https://game.test", "-c", "game.yaml", "--headed", "--llm", "--model", "gpt-4o"]
        )

        assert args.url == "https://game.test"
        assert args.config == "game.yaml"
        assert args.headed is True
        assert args.llm is True
        assert args.model == "gpt-4o"

    def test_missing_config_exits_with_error(self, tmp_path) -> None:
        with pytest.raises(SystemExit) as excinfo:
            main(["test", "https://game.test", "-c", str(tmp_path / "missing.json")])

        assert excinfo.value.code == 1
