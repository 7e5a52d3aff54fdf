"""Evaluation engine: heuristic score, optional external score, caching."""

from collections.abc import Sequence

from game_qa.core.models import (
    ActionResult,
    EvaluationResult,
    ExternalScore,
    GameState,
    RunTelemetry,
    ScoringContext,
)
from game_qa.engine.classifier import issues_from_results
from game_qa.engine.context import RunContext
from game_qa.evaluation.cache import generate_cache_key
from game_qa.evaluation.heuristic import clamp, heuristic_score
from game_qa.evaluation.scoring import combine_scores

GAME_STATE_INSTRUCTION = "read HUD state and check for game over or victory text"
GAME_STATE_TIMEOUT = 5.0


class EvaluationEngine:
    """Scores a finished run.

    Scoring and cache failures never fail evaluation; they degrade to a
    heuristic-only result.
    """

    def __init__(self, ctx: RunContext):
        self.ctx = ctx

    async def probe_game_state(self) -> GameState | None:
        """Read a terminal-state snapshot from the page. Best-effort."""
        automation = self.ctx.automation
        if automation is None:
            return None
        try:
            return await automation.extract_structured(
                GAME_STATE_INSTRUCTION,
                GameState,
                selector=None,
                timeout=GAME_STATE_TIMEOUT,
            )
        except Exception as e:
            self.ctx.logger.debug(f"Game state extraction failed: {e}")
            return None

    async def _external_score(
        self,
        results: Sequence[ActionResult],
        telemetry: RunTelemetry,
        heuristic: float,
        issues: list,
    ) -> tuple[ExternalScore | None, bool]:
        """Return ``(external, cache_hit)``."""
        ctx = self.ctx
        scorer = ctx.scorer
        if scorer is None or not scorer.available:
            return None, False

        config = ctx.config
        key = generate_cache_key(telemetry.url, config.steps, config.metadata, results)
        if ctx.cache is not None:
            cached = await ctx.cache.get(key)
            if cached is not None:
                ctx.logger.info("♻️ Using cached external evaluation")
                return cached, True

        scoring_context = ScoringContext(
            url=telemetry.url,
            results=list(results),
            issues=issues,
            console_logs=telemetry.console_logs,
            heuristic_score=heuristic,
            metadata=config.metadata,
            screenshot_path=telemetry.final_screenshot,
        )
        try:
            external = await scorer.score(scoring_context)
        except Exception as e:
            ctx.logger.warning(f"External scoring failed, using heuristic score only: {e}")
            return None, False

        if ctx.cache is not None:
            try:
                await ctx.cache.set(key, external)
            except Exception as e:
                ctx.logger.debug(f"Cache write failed: {e}")
        return external, False

    async def evaluate(
        self, results: Sequence[ActionResult], telemetry: RunTelemetry
    ) -> EvaluationResult:
        issues = issues_from_results(results) + list(telemetry.issues)
        game_state = telemetry.game_state or await self.probe_game_state()

        heuristic, metrics = heuristic_score(
            results,
            issues,
            console_logs=telemetry.console_logs,
            load_check_passed=telemetry.load_check_passed,
            game_state=game_state,
        )
        external, cache_hit = await self._external_score(results, telemetry, heuristic, issues)
        final = combine_scores(heuristic, external)

        self.ctx.logger.info(
            f"📊 Heuristic {heuristic:.2f}"
            + (f", external {external.score:.2f} @ {external.confidence:.2f}" if external else "")
            + f" -> final {final:.2f}"
        )
        return EvaluationResult(
            heuristic_score=heuristic,
            external_score=clamp(external.score) if external else None,
            external_confidence=clamp(external.confidence) if external else None,
            final_score=final,
            issues=list(external.issues) if external else [],
            game_state=game_state,
            cache_hit=cache_hit,
            token_usage=external.token_usage if external and not cache_hit else None,
            metrics=metrics,
        )


async def evaluate(
    ctx: RunContext, results: Sequence[ActionResult], telemetry: RunTelemetry
) -> EvaluationResult:
    return await EvaluationEngine(ctx).evaluate(results, telemetry)
