"""Action dispatch: step kind -> handler -> ActionResult."""

from typing import Any

from pydantic import ValidationError

from game_qa.core.exceptions import StepValidationError
from game_qa.core.models import ActionResult, IssueType, MethodUsed
from game_qa.core.steps import ActionStep, describe_step, parse_step
from game_qa.engine.classifier import classify_error, format_error
from game_qa.engine.context import RunContext
from game_qa.engine.handlers import HANDLERS, StepHandler, StepOutput


def _failure(
    step: Any,
    index: int,
    issue_type: IssueType,
    message: str,
    execution_time: float,
    method_used: MethodUsed = MethodUsed.NONE,
    **extra: Any,
) -> ActionResult:
    return ActionResult(
        index=index,
        action=step.action,
        success=False,
        error=format_error(issue_type, message),
        issue_type=issue_type,
        execution_time=max(execution_time, 0.0),
        method_used=method_used,
        description=describe_step(step),
        **extra,
    )


async def dispatch(step: ActionStep | dict[str, Any], index: int, ctx: RunContext) -> ActionResult:
    """Validate and execute one step.

    Never raises for per-action problems: validation failures, backend errors
    and missing capabilities all come back as a failed result.
    """
    start = ctx.clock()
    try:
        step = parse_step(step)
    except ValidationError as e:
        action = step.get("action", "unknown") if isinstance(step, dict) else "unknown"
        message = f"Invalid {action} step: {e.error_count()} validation error(s)"
        ctx.logger.warning(f"Action {index} rejected: {message}")
        return ActionResult(
            index=index,
            action=str(action),
            success=False,
            error=format_error(IssueType.ACTION_FAILED, message),
            issue_type=IssueType.ACTION_FAILED,
        )
    handler = HANDLERS[step.action]
    try:
        return await _run_handler(handler, step, index, ctx, start)
    except Exception as e:
        # Last resort: a broken handler must not abort the sequence
        issue_type = classify_error(e)
        ctx.logger.exception(f"Action {index} ({step.action}) crashed in its handler: {e}")
        return _failure(step, index, issue_type, str(e) or type(e).__name__, ctx.clock() - start)


async def _run_handler(
    handler: StepHandler, step: ActionStep, index: int, ctx: RunContext, start: float
) -> ActionResult:
    step = handler.normalize(step)
    errors = handler.validate(step)
    if errors:
        error = StepValidationError(step.action, errors)
        ctx.logger.warning(f"Action {index} rejected: {error}")
        return _failure(step, index, IssueType.ACTION_FAILED, str(error), ctx.clock() - start)

    ctx.logger.info(f"▶️  Action {index}: {describe_step(step)}")
    try:
        output = await handler.execute(step, index, ctx)
    except Exception as e:
        issue_type = classify_error(e)
        ctx.logger.error(f"Action {index} ({step.action}) failed [{issue_type.value}]: {e}")
        return _failure(step, index, issue_type, str(e), ctx.clock() - start)

    if not isinstance(output, StepOutput):
        raise TypeError(
            f"{type(handler).__name__}.execute returned {type(output).__name__}, expected StepOutput"
        )

    elapsed = max(ctx.clock() - start, 0.0)
    if not output.success:
        issue_type = classify_error(output.error)
        ctx.logger.warning(f"Action {index} ({step.action}) reported failure: {output.error}")
        return _failure(
            step,
            index,
            issue_type,
            output.error or "Action failed",
            elapsed,
            method_used=output.method_used,
            metadata=output.metadata,
            agent_summary=output.agent_summary,
        )

    ctx.logger.debug(f"Action {index} completed in {elapsed:.2f}s via {output.method_used.value}")
    return ActionResult(
        index=index,
        action=step.action,
        success=True,
        execution_time=elapsed,
        method_used=output.method_used,
        description=describe_step(step),
        metadata=output.metadata,
        agent_summary=output.agent_summary,
    )
