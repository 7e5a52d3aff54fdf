"""Sequencer: run the ordered step list under one shared deadline."""

from collections.abc import Callable, Sequence
from typing import Any

from game_qa.core.models import (
    ActionResult,
    IssueType,
    SequenceOutcome,
    SequenceStatus,
)
from game_qa.core.steps import ActionStep, parse_step
from game_qa.engine.classifier import format_error
from game_qa.engine.context import RunContext
from game_qa.engine.dispatcher import dispatch

MAX_STEPS = 100


class Sequencer:
    """Dispatches steps one at a time against a monotonic deadline.

    Cancellation is cooperative: elapsed time is checked before and after
    every step, never in the middle of a backend call, so an in-flight call
    may overrun ``total_timeout``. The trailing ``final_capture_buffer`` is
    reserved for diagnostics after the last step. A failed action never stops
    the run; only the deadline does.
    """

    def __init__(
        self,
        ctx: RunContext,
        on_action_complete: Callable[[ActionResult], Any] | None = None,
    ):
        self.ctx = ctx
        self.on_action_complete = on_action_complete

    async def run(self, steps: Sequence[ActionStep | dict[str, Any]] | None = None) -> SequenceOutcome:
        ctx = self.ctx
        config = ctx.config
        steps = list(config.steps if steps is None else steps)

        if len(steps) > MAX_STEPS:
            ctx.logger.warning(
                f"Sequence length ({len(steps)}) exceeds max steps ({MAX_STEPS}), truncating"
            )
            steps = steps[:MAX_STEPS]

        results: list[ActionResult] = []
        status = SequenceStatus.COMPLETED
        start = ctx.clock()
        stop_at = config.total_timeout - config.final_capture_buffer

        for i, raw in enumerate(steps):
            elapsed = ctx.clock() - start
            if elapsed >= config.total_timeout:
                ctx.logger.warning(
                    f"⏱️ Total timeout ({config.total_timeout:g}s) exceeded, stopping execution"
                )
                results.append(self._timeout_result(i, raw, elapsed))
                status = SequenceStatus.TIMED_OUT
                break

            result = await dispatch(raw, i, ctx)
            results.append(result)

            if not result.success:
                ctx.logger.warning(f"Action {i} failed, continuing with next action")
                await self._capture_failure(i)

            if self.on_action_complete is not None:
                self.on_action_complete(result)

            elapsed = ctx.clock() - start
            if elapsed >= stop_at and i < len(steps) - 1:
                ctx.logger.warning(
                    f"⏱️ {elapsed:.1f}s elapsed after action {i}; stopping to leave "
                    f"{config.final_capture_buffer:g}s for final capture"
                )
                status = SequenceStatus.TIMED_OUT
                break

        elapsed = ctx.clock() - start
        passed = sum(1 for r in results if r.success)
        ctx.logger.info(
            f"Sequence {status.value}: {passed}/{len(results)} actions succeeded in {elapsed:.1f}s"
        )
        return SequenceOutcome(results=results, status=status, elapsed=elapsed)

    def _timeout_result(self, index: int, raw: Any, elapsed: float) -> ActionResult:
        try:
            action = parse_step(raw).action
        except Exception:
            action = "unknown"
        message = f"Total timeout exceeded after {round(elapsed)}s"
        return ActionResult(
            index=index,
            action=action,
            success=False,
            error=format_error(IssueType.TOTAL_TIMEOUT, message),
            issue_type=IssueType.TOTAL_TIMEOUT,
            execution_time=0.0,
            metadata={"elapsed": elapsed},
        )

    async def _capture_failure(self, index: int) -> None:
        capture = self.ctx.capture
        if capture is None:
            return
        try:
            await capture.capture_diagnostic(f"error_action_{index}", index)
        except Exception as e:
            self.ctx.logger.error(f"Failed to capture error screenshot for action {index}: {e}")


async def run_sequence(
    ctx: RunContext,
    steps: Sequence[ActionStep | dict[str, Any]] | None = None,
) -> SequenceOutcome:
    """Run ``steps`` (default: ``ctx.config.steps``) and return the outcome."""
    return await Sequencer(ctx).run(steps)
