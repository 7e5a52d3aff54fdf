"""Per-kind step handlers.

Each handler normalises (clamps) and validates its step, then executes it
against the run's capabilities. Backend calls go through the retry
controller with the sequence-level ``action_retries`` budget; ``wait`` never
retries. Handlers raise on failure and the dispatcher turns the exception
into a failed ``ActionResult``.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from game_qa.core.exceptions import (
    ActionError,
    AgentUnavailableError,
    ConfigError,
    ElementNotFoundError,
)
from game_qa.core.models import AgentSummary, MethodUsed
from game_qa.core.steps import (
    AgentStep,
    AxisStep,
    ClickStep,
    InteractionMode,
    ObserveStep,
    PressStep,
    ScreenshotStep,
    WaitStep,
    describe_step,
)
from game_qa.engine.context import RunContext
from game_qa.engine.controls import primary_key, resolve_press_key
from game_qa.engine.resolver import resolve_target
from game_qa.engine.retry import is_retryable_error, retry_with_backoff

S = TypeVar("S")
T = TypeVar("T")

MAX_REPEAT = 100
MAX_HOLD_DURATION = 10.0
MAX_WAIT_DURATION = 60.0
MAX_AGENT_STEPS = 100
DEFAULT_AGENT_STEPS = 20
DEFAULT_PRESS_DELAY = 0.05
DEFAULT_AXIS_DURATION = 0.5
HOLD_INTERVAL = 0.02
DIAGONAL_INTERVAL = 0.03
AGENT_CLICK_TIMEOUT_FLOOR = 30.0
AXIS_DIRECTIONS = ("horizontal", "vertical", "2d")


@dataclass
class StepOutput:
    """What a handler reports back on success."""

    method_used: MethodUsed = MethodUsed.NONE
    metadata: dict[str, Any] = field(default_factory=dict)
    agent_summary: AgentSummary | None = None
    success: bool = True
    error: str | None = None


def _should_retry_action(error: BaseException) -> bool:
    if isinstance(error, ConfigError):
        return False
    return is_retryable_error(error)


async def with_retry(ctx: RunContext, operation: Callable[[], Awaitable[T]]) -> T:
    """Run one backend call under the sequence-level retry budget."""
    return await retry_with_backoff(
        operation,
        max_attempts=ctx.config.action_retries + 1,
        base_delay=0.5,
        max_delay=5.0,
        should_retry=_should_retry_action,
        sleep=ctx.sleep,
        log=ctx.logger,
    )


def step_timeout(step: Any, ctx: RunContext) -> float:
    return step.timeout if step.timeout is not None else ctx.config.action_timeout


def resolve_mode(step: Any, ctx: RunContext) -> InteractionMode:
    """Step override, else sequence default, else structural."""
    return getattr(step, "mode", None) or ctx.config.default_mode or InteractionMode.STRUCTURAL


def require_agent(ctx: RunContext, action: str):
    if ctx.agent is None:
        raise AgentUnavailableError(action)
    return ctx.agent


def _agent_summary(response: dict[str, Any] | None) -> AgentSummary:
    response = response or {}
    return AgentSummary(
        message=response.get("message"),
        steps_executed=response.get("steps_executed", response.get("stepsExecuted")),
        reported_success=response.get("success"),
    )


class StepHandler(Generic[S]):
    """Base handler. Subclasses set ``kind`` and implement ``execute``."""

    kind: str = ""

    def normalize(self, step: S) -> S:
        """Clamp numeric fields to their documented bounds."""
        return step

    def validate(self, step: S) -> list[str]:
        return []

    async def execute(self, step: S, index: int, ctx: RunContext) -> StepOutput:
        raise NotImplementedError


class WaitHandler(StepHandler[WaitStep]):
    kind = "wait"

    def normalize(self, step: WaitStep) -> WaitStep:
        if step.duration > MAX_WAIT_DURATION:
            return step.model_copy(update={"duration": MAX_WAIT_DURATION})
        return step

    def validate(self, step: WaitStep) -> list[str]:
        if step.duration <= 0:
            return ["Wait duration must be positive"]
        return []

    async def execute(self, step: WaitStep, index: int, ctx: RunContext) -> StepOutput:
        await ctx.sleep(step.duration)
        return StepOutput(metadata={"duration": step.duration})


class ClickHandler(StepHandler[ClickStep]):
    kind = "click"

    def validate(self, step: ClickStep) -> list[str]:
        if not step.target.strip():
            return ["Click action requires a target"]
        return []

    async def execute(self, step: ClickStep, index: int, ctx: RunContext) -> StepOutput:
        timeout = step_timeout(step, ctx)
        if resolve_mode(step, ctx) == InteractionMode.AGENT:
            return await self._agent_click(step, timeout, ctx)
        return await with_retry(ctx, lambda: self._structural_click(step, timeout, ctx))

    async def _agent_click(self, step: ClickStep, timeout: float, ctx: RunContext) -> StepOutput:
        agent = require_agent(ctx, "click")
        instruction = (
            f"Click on {step.target}. This is a single click action - "
            "click once and immediately stop."
        )
        agent_timeout = max(timeout * 2, AGENT_CLICK_TIMEOUT_FLOOR)
        ctx.logger.info(f"Agent click on {step.target!r} (timeout {agent_timeout:g}s)")

        response = await with_retry(
            ctx,
            lambda: agent.run_agent_task(instruction, ctx.config.agent_max_steps, agent_timeout),
        )
        summary = _agent_summary(response)
        if summary.reported_success is False:
            raise ActionError(
                f"Agent could not click {step.target}: {summary.message or 'no details'}",
                context={"target": step.target},
            )
        return StepOutput(
            method_used=MethodUsed.AGENT,
            metadata={"target": step.target, "model": step.model},
            agent_summary=summary,
        )

    async def _structural_click(self, step: ClickStep, timeout: float, ctx: RunContext) -> StepOutput:
        automation = ctx.automation
        resolution = await resolve_target(step.target, automation.locate, timeout, log=ctx.logger)
        if resolution is not None:
            await automation.perform(resolution.handle, timeout=timeout, mode_hint="structural")
            return StepOutput(
                method_used=MethodUsed.STRUCTURAL,
                metadata={"target": step.target, "resolved_via": resolution.candidate},
            )

        # Nothing located; one direct attempt before giving up
        ctx.logger.warning(f"No phrasing located {step.target!r}; trying a direct click")
        try:
            await automation.perform(f"click the {step.target}", timeout=timeout, mode_hint="structural")
        except Exception as e:
            raise ElementNotFoundError(
                step.target,
                f"Element not found: {step.target} (no phrasing located it, "
                f"direct click failed: {e})",
            ) from e
        return StepOutput(
            method_used=MethodUsed.STRUCTURAL,
            metadata={"target": step.target, "resolved_via": "direct"},
        )


async def _press_key(key: str, timeout: float, ctx: RunContext) -> None:
    await with_retry(
        ctx,
        lambda: ctx.automation.perform(f"press the {key} key", timeout=timeout, mode_hint="structural"),
    )


async def _hold_key(key: str, duration: float, timeout: float, ctx: RunContext) -> int:
    """Approximate a held key with discrete presses until ``duration`` elapses."""
    start = ctx.clock()
    presses = 0
    while ctx.clock() - start < duration:
        await _press_key(key, timeout, ctx)
        presses += 1
        await ctx.sleep(HOLD_INTERVAL)
    return presses


async def _agent_input(step: Any, timeout: float, ctx: RunContext) -> StepOutput:
    """Keyboard input delegated to the agent as one bounded instruction."""
    agent = require_agent(ctx, step.action)
    instruction = f"{describe_step(step)}. Perform only this keyboard input and stop."
    response = await with_retry(
        ctx,
        lambda: agent.run_agent_task(
            instruction,
            ctx.config.agent_max_steps,
            max(timeout * 2, AGENT_CLICK_TIMEOUT_FLOOR),
        ),
    )
    summary = _agent_summary(response)
    if summary.reported_success is False:
        raise ActionError(f"Agent could not perform {step.action}: {summary.message or 'no details'}")
    return StepOutput(method_used=MethodUsed.AGENT, agent_summary=summary)


class PressHandler(StepHandler[PressStep]):
    kind = "press"

    def normalize(self, step: PressStep) -> PressStep:
        update: dict[str, Any] = {}
        if step.repeat is not None:
            update["repeat"] = min(max(step.repeat, 1), MAX_REPEAT)
        if step.duration is not None and step.duration > MAX_HOLD_DURATION:
            update["duration"] = MAX_HOLD_DURATION
        return step.model_copy(update=update) if update else step

    def validate(self, step: PressStep) -> list[str]:
        errors = []
        if not step.key and not step.alternate_keys:
            errors.append('Press action requires either "key" or "alternate_keys"')
        if step.duration is not None and step.duration < 0:
            errors.append("Press duration must not be negative")
        if step.delay is not None and step.delay < 0:
            errors.append("Press delay must not be negative")
        return errors

    async def execute(self, step: PressStep, index: int, ctx: RunContext) -> StepOutput:
        timeout = step_timeout(step, ctx)
        if resolve_mode(step, ctx) == InteractionMode.AGENT:
            return await _agent_input(step, timeout, ctx)

        controls = ctx.config.controls
        repeat = step.repeat or 1
        delay = step.delay if step.delay is not None else DEFAULT_PRESS_DELAY
        presses = 0

        if step.alternate_keys:
            keys = [resolve_press_key(k, controls) for k in step.alternate_keys]
            ctx.logger.debug(f"Alternating between {keys} x{repeat}")
            for i in range(repeat):
                await _press_key(keys[i % len(keys)], timeout, ctx)
                presses += 1
                if i < repeat - 1:
                    await ctx.sleep(delay)
            key_label = "/".join(keys)
        else:
            key = resolve_press_key(step.key, controls)
            key_label = key
            if step.duration:
                presses = await _hold_key(key, step.duration, timeout, ctx)
            else:
                for i in range(repeat):
                    await _press_key(key, timeout, ctx)
                    presses += 1
                    if i < repeat - 1:
                        await ctx.sleep(delay)

        return StepOutput(
            method_used=MethodUsed.STRUCTURAL,
            metadata={"key": key_label, "repeat": repeat, "press_count": presses},
        )


class AxisHandler(StepHandler[AxisStep]):
    kind = "axis"

    def normalize(self, step: AxisStep) -> AxisStep:
        update: dict[str, Any] = {}
        if step.value is not None:
            update["value"] = min(max(step.value, -1.0), 1.0)
        duration = step.duration if step.duration is not None else DEFAULT_AXIS_DURATION
        update["duration"] = min(duration, MAX_HOLD_DURATION)
        return step.model_copy(update=update)

    def validate(self, step: AxisStep) -> list[str]:
        if step.direction not in AXIS_DIRECTIONS:
            return ["Axis action requires a direction (horizontal, vertical, or 2d)"]
        return []

    def resolve_keys(self, step: AxisStep, controls: dict[str, list[str]]) -> list[str]:
        if step.keys:
            return [resolve_press_key(k, controls) for k in step.keys]

        positive = (step.value if step.value is not None else 1.0) > 0
        horizontal = primary_key("MoveRight" if positive else "MoveLeft", controls)
        vertical = primary_key("MoveUp" if positive else "MoveDown", controls)

        if step.direction == "horizontal":
            return [horizontal or ("ArrowRight" if positive else "ArrowLeft")]
        if step.direction == "vertical":
            return [vertical or ("ArrowUp" if positive else "ArrowDown")]
        return [
            horizontal or ("ArrowRight" if positive else "ArrowLeft"),
            vertical or ("ArrowUp" if positive else "ArrowDown"),
        ]

    async def execute(self, step: AxisStep, index: int, ctx: RunContext) -> StepOutput:
        timeout = step_timeout(step, ctx)
        if resolve_mode(step, ctx) == InteractionMode.AGENT:
            return await _agent_input(step, timeout, ctx)

        keys = self.resolve_keys(step, ctx.config.controls)
        duration = step.duration
        start = ctx.clock()
        presses = 0

        if step.direction == "2d" and len(keys) > 1:
            while ctx.clock() - start < duration:
                for key in keys:
                    await _press_key(key, timeout, ctx)
                    presses += 1
                    await ctx.sleep(DIAGONAL_INTERVAL)
        else:
            presses = await _hold_key(keys[0], duration, timeout, ctx)

        return StepOutput(
            method_used=MethodUsed.STRUCTURAL,
            metadata={
                "direction": step.direction,
                "value": step.value if step.value is not None else 1.0,
                "duration": duration,
                "keys": keys,
                "press_count": presses,
            },
        )


class ScreenshotHandler(StepHandler[ScreenshotStep]):
    kind = "screenshot"

    async def execute(self, step: ScreenshotStep, index: int, ctx: RunContext) -> StepOutput:
        label = step.label or f"action_{index}"
        if ctx.capture is None:
            ctx.logger.warning(f"No capture configured, skipping screenshot {label}")
            return StepOutput(metadata={"label": label, "path": None})
        try:
            path = await with_retry(ctx, lambda: ctx.capture.capture_diagnostic(label, index))
        except Exception as e:
            ctx.logger.warning(f"Screenshot {label} failed: {e}")
            path = None
        return StepOutput(metadata={"label": label, "path": path})


class ObserveHandler(StepHandler[ObserveStep]):
    kind = "observe"

    def validate(self, step: ObserveStep) -> list[str]:
        if not step.target.strip():
            return ["Observe action requires a target"]
        return []

    async def execute(self, step: ObserveStep, index: int, ctx: RunContext) -> StepOutput:
        timeout = step_timeout(step, ctx)
        metadata: dict[str, Any] = {"target": step.target}
        try:
            handles = await with_retry(
                ctx, lambda: ctx.automation.locate(f"find {step.target}", timeout)
            )
        except Exception as e:
            ctx.logger.warning(f"Observe {step.target!r} failed: {e}")
            handles = []
            metadata["error"] = str(e)

        if handles:
            ctx.logger.info(f"Observed {len(handles)} element(s) for {step.target!r}")
        else:
            ctx.logger.warning(f"No elements found for {step.target!r}")
        metadata["elements_found"] = len(handles)
        return StepOutput(metadata=metadata)


class AgentHandler(StepHandler[AgentStep]):
    kind = "agent"

    def normalize(self, step: AgentStep) -> AgentStep:
        max_steps = step.max_steps if step.max_steps is not None else DEFAULT_AGENT_STEPS
        return step.model_copy(update={"max_steps": min(max(max_steps, 1), MAX_AGENT_STEPS)})

    def validate(self, step: AgentStep) -> list[str]:
        if not step.instruction.strip():
            return ["Agent action requires an instruction"]
        return []

    async def execute(self, step: AgentStep, index: int, ctx: RunContext) -> StepOutput:
        agent = require_agent(ctx, "agent")
        timeout = max(step_timeout(step, ctx) * 8, ctx.config.total_timeout)
        ctx.logger.info(f"🤖 Agent task: {step.instruction} (max {step.max_steps} steps)")

        response = await with_retry(
            ctx, lambda: agent.run_agent_task(step.instruction, step.max_steps, timeout)
        )
        summary = _agent_summary(response)
        success = summary.reported_success is not False
        return StepOutput(
            method_used=MethodUsed.AGENT,
            metadata={"instruction": step.instruction, "max_steps": step.max_steps},
            agent_summary=summary,
            success=success,
            error=None if success else f"Agent reported failure: {summary.message or 'no details'}",
        )


HANDLERS: dict[str, StepHandler] = {
    handler.kind: handler
    for handler in (
        WaitHandler(),
        ClickHandler(),
        PressHandler(),
        ScreenshotHandler(),
        ObserveHandler(),
        AgentHandler(),
        AxisHandler(),
    )
}
