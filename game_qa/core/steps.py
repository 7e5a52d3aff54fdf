"""Action step models.

A sequence is an ordered list of steps. Each step kind is its own frozen
pydantic model and ``ActionStep`` is the discriminated union over them, so an
unknown ``action`` is rejected when the sequence is parsed rather than when it
is dispatched. All durations are in seconds.
"""

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator


class InteractionMode(str, Enum):
    """How an interactive step reaches the page."""

    AGENT = "agent"
    STRUCTURAL = "structural"


class _StepBase(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    timeout: float | None = None

    @model_validator(mode="before")
    @classmethod
    def _legacy_agent_flag(cls, data: Any) -> Any:
        # useCUA: true/false is the older spelling of mode
        if isinstance(data, dict) and "useCUA" in data and "mode" not in data:
            data = dict(data)
            flag = data.pop("useCUA")
            if flag is not None:
                data["mode"] = InteractionMode.AGENT if flag else InteractionMode.STRUCTURAL
        return data


class WaitStep(_StepBase):
    action: Literal["wait"] = "wait"
    duration: float = 0.0


class ClickStep(_StepBase):
    action: Literal["click"] = "click"
    target: str = ""
    mode: InteractionMode | None = None
    model: str | None = None


class PressStep(_StepBase):
    action: Literal["press"] = "press"
    key: str | None = None
    alternate_keys: tuple[str, ...] | None = Field(default=None, alias="alternateKeys")
    repeat: int | None = None
    duration: float | None = None  # hold duration
    delay: float | None = None  # pause between presses
    mode: InteractionMode | None = None


class ScreenshotStep(_StepBase):
    action: Literal["screenshot"] = "screenshot"
    label: str | None = None


class ObserveStep(_StepBase):
    action: Literal["observe"] = "observe"
    target: str = ""


class AgentStep(_StepBase):
    action: Literal["agent"] = "agent"
    instruction: str = ""
    max_steps: int | None = Field(default=None, alias="maxSteps")
    mode: InteractionMode | None = None


class AxisStep(_StepBase):
    action: Literal["axis"] = "axis"
    direction: str | None = None  # horizontal | vertical | 2d
    value: float | None = None
    duration: float | None = None
    keys: tuple[str, ...] | None = None
    mode: InteractionMode | None = None


ActionStep = Annotated[
    Union[WaitStep, ClickStep, PressStep, ScreenshotStep, ObserveStep, AgentStep, AxisStep],
    Field(discriminator="action"),
]

STEP_KINDS: tuple[str, ...] = ("wait", "click", "press", "screenshot", "observe", "agent", "axis")

_step_adapter: TypeAdapter = TypeAdapter(ActionStep)


def parse_step(data: Any) -> ActionStep:
    """Validate a raw mapping into a typed step.

    Raises:
        pydantic.ValidationError: If the kind is unknown or a field has the wrong type
    """
    if isinstance(data, BaseModel):
        return data
    return _step_adapter.validate_python(data)


def describe_step(step: ActionStep) -> str:
    """Human-readable one-liner used in logs and reports."""
    if isinstance(step, WaitStep):
        return f"Wait {step.duration:g}s"
    if isinstance(step, ClickStep):
        return f'Click "{step.target}"'
    if isinstance(step, PressStep):
        suffix = f" ({step.repeat}x)" if step.repeat else ""
        if step.alternate_keys:
            return f"Press {'/'.join(step.alternate_keys)} alternately{suffix}"
        if step.duration:
            return f"Press {step.key} for {step.duration:g}s"
        return f"Press {step.key}{suffix}"
    if isinstance(step, ScreenshotStep):
        return "Take screenshot"
    if isinstance(step, ObserveStep):
        return f'Observe "{step.target}"'
    if isinstance(step, AgentStep):
        return f"Agent: {step.instruction or 'Execute task'}"
    if isinstance(step, AxisStep):
        text = f"Axis {step.direction}"
        if step.value is not None:
            text += f" ({step.value:g})"
        if step.duration:
            text += f" for {step.duration:g}s"
        return text
    return step.action
