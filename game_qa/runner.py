"""Playtest runner and the ``game-qa`` command line."""

import argparse
import asyncio
import logging
import sys
import time
from collections.abc import Callable
from pathlib import Path

from game_qa.config import QAConfig, Settings, default_config, load_config
from game_qa.core.cache import FileCacheBackend
from game_qa.core.capabilities import AgentCapability
from game_qa.core.exceptions import BrowserCrashError, QAError, SessionError
from game_qa.core.models import (
    ActionResult,
    EvaluationResult,
    Issue,
    IssueType,
    RunTelemetry,
    SequenceStatus,
)
from game_qa.engine.context import RunContext
from game_qa.engine.sequencer import Sequencer
from game_qa.evaluation.cache import EvaluationCache
from game_qa.evaluation.engine import EvaluationEngine
from game_qa.evaluation.judge import LLMJudge
from game_qa.reporting.aggregator import TestReport, aggregate
from game_qa.reporting.writer import ReportWriter
from game_qa.runtime.capture import CaptureManager
from game_qa.runtime.session import GameSession

logger = logging.getLogger(__name__)


class PlaytestRunner:
    """Runs one playtest end to end: load, act, evaluate, report."""

    def __init__(
        self,
        config: QAConfig | None = None,
        config_path: str | None = None,
        output_dir: Path | None = None,
        headless: bool = True,
        enable_llm: bool = False,
        judge_model: str | None = None,
        agent: AgentCapability | None = None,
        settings: Settings | None = None,
        session_factory: Callable[..., GameSession] = GameSession,
    ):
        self.config = config or default_config()
        self.config_path = config_path
        self.settings = settings or Settings.from_env()
        self.output_dir = Path(output_dir or self.settings.output_dir)
        self.headless = headless
        self.enable_llm = enable_llm
        self.judge_model = judge_model or self.settings.judge_model
        self.agent = agent
        self.session_factory = session_factory

    def _scoring(self) -> tuple[LLMJudge | None, EvaluationCache | None]:
        if not self.enable_llm:
            return None, None
        judge = LLMJudge(api_key=self.settings.openai_api_key, model=self.judge_model)
        cache = EvaluationCache(FileCacheBackend(self.settings.cache_dir))
        return judge, cache

    async def run(self, game_url: str) -> TestReport:
        """Execute the configured sequence against ``game_url``.

        Raises:
            SessionError: If the game cannot be loaded or the browser crashes;
                a failed report is still written first
        """
        started = time.monotonic()
        session_dir = CaptureManager.create_session_dir(self.output_dir)
        session = self.session_factory(headless=self.headless)
        capture: CaptureManager | None = None
        results: list[ActionResult] = []
        sequence_status = SequenceStatus.COMPLETED
        logger.info(f"🚀 Starting playtest of {game_url} ({len(self.config.sequence)} steps)")

        try:
            automation = await session.load(game_url, self.config)
            capture = CaptureManager(session_dir, session.page)
            baseline = await capture.capture_diagnostic("initial_load")

            scorer, cache = self._scoring()
            ctx = RunContext(
                config=self.config.to_run_config(),
                automation=automation,
                agent=self.agent,
                capture=capture,
                scorer=scorer,
                cache=cache,
            )
            outcome = await Sequencer(ctx).run()
            results = outcome.results
            sequence_status = outcome.status

            if session.is_crashed():
                raise BrowserCrashError("Browser crashed during the run")

            final_screenshot = await capture.capture_diagnostic("final_state")
            console_logs = await automation.console_logs()
            console_log_path = capture.save_console_logs(console_logs)

            telemetry = RunTelemetry(
                url=game_url,
                issues=session.issues + capture.issues,
                console_logs=console_logs,
                load_check_passed=baseline is not None,
                final_screenshot=final_screenshot,
            )
            evaluation: EvaluationResult | None
            try:
                evaluation = await EvaluationEngine(ctx).evaluate(results, telemetry)
            except Exception as e:
                logger.warning(f"Evaluation failed, reporting without a score: {e}")
                evaluation = None

            report = aggregate(
                game_url,
                results,
                evaluation,
                telemetry.issues,
                sequence_status=sequence_status,
                screenshots=capture.screenshots,
                test_duration=time.monotonic() - started,
                config_path=self.config_path,
                console_log_path=console_log_path,
            )
            ReportWriter(report).save_all(session_dir)
            return report

        except SessionError as e:
            logger.error(f"💥 Fatal session error: {e}")
            issues = list(session.issues) + (capture.issues if capture else [])
            if isinstance(e, BrowserCrashError):
                issues.append(Issue(type=IssueType.BROWSER_CRASH, description=str(e)))
            report = aggregate(
                game_url,
                results,
                None,
                issues,
                sequence_status=sequence_status,
                screenshots=capture.screenshots if capture else [],
                test_duration=time.monotonic() - started,
                config_path=self.config_path,
            )
            ReportWriter(report).save_all(session_dir)
            raise
        finally:
            await session.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="game-qa", description="Browser game playability tester")
    subparsers = parser.add_subparsers(dest="command", required=True)

    test = subparsers.add_parser("test", help="Run a playtest against a game URL")
    test.add_argument("url", help="Game URL")
    test.add_argument("-c", "--config", help="JSON or YAML run config")
    test.add_argument("--headed", action="store_true", help="Show the browser window")
    test.add_argument("-o", "--output", help="Directory for session artifacts")
    test.add_argument("--llm", action="store_true", help="Blend in an LLM judge score")
    test.add_argument("--model", help="Judge model (default: $GAME_QA_JUDGE_MODEL or gpt-4o-mini)")
    test.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config) if args.config else default_config()
    except QAError as e:
        logger.error(str(e))
        sys.exit(1)

    runner = PlaytestRunner(
        config=config,
        config_path=args.config,
        output_dir=Path(args.output) if args.output else None,
        headless=not args.headed,
        enable_llm=args.llm,
        judge_model=args.model,
    )
    try:
        report = asyncio.run(runner.run(args.url))
    except QAError as e:
        logger.error(f"Playtest aborted: {e}")
        sys.exit(1)

    print(f"{report.status.upper()} score={report.playability_score:.2f} issues={len(report.issues)}")
    sys.exit(0 if report.passed else 1)


if __name__ == "__main__":
    main()
