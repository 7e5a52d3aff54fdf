"""Run configuration.

Config files are JSON or YAML. Durations in files are milliseconds (the
format browser-game authors already use); they are converted to seconds
when the sequence is parsed and in ``QAConfig.to_run_config``.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from game_qa.core.exceptions import ConfigError
from game_qa.core.models import SequenceRunConfig
from game_qa.core.steps import ActionStep, InteractionMode, WaitStep
from game_qa.engine.controls import CONTROL_ACTIONS, validate_controls

logger = logging.getLogger(__name__)

DEFAULT_CACHE_DIR = "cache/llm-evaluations"
DEFAULT_OUTPUT_DIR = "results"
MS_FIELDS = ("duration", "delay", "timeout")


class Timeouts(BaseModel):
    """Timeouts in milliseconds."""

    load: int = Field(default=30000, gt=0)
    action: int = Field(default=10000, gt=0)
    total: int = Field(default=60000, gt=0)


class GameMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    genre: str | None = None
    notes: str | None = None


class DomOptimization(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    hide_selectors: list[str] = Field(default_factory=list, alias="hideSelectors")
    remove_selectors: list[str] = Field(default_factory=list, alias="removeSelectors")


def normalize_raw_step(raw: Any) -> dict[str, Any]:
    """Turn one file-format step into keyword arguments for a step model.

    ``{"wait": 1000}`` and ``{"action": "wait", "wait": 1000}`` both become a
    wait step; millisecond fields become seconds.
    """
    if not isinstance(raw, dict):
        raise ValueError(f"Step must be a mapping, got {type(raw).__name__}")

    step = dict(raw)
    if "wait" in step and step.get("action", "wait") == "wait":
        step["action"] = "wait"
        step["duration"] = step.pop("wait")
    for key in MS_FIELDS:
        if isinstance(step.get(key), (int, float)) and not isinstance(step.get(key), bool):
            step[key] = step[key] / 1000
    return step


class QAConfig(BaseModel):
    """Validated run configuration."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    sequence: list[ActionStep] = Field(min_length=1)
    timeouts: Timeouts = Field(default_factory=Timeouts)
    controls: dict[str, list[str]] = Field(default_factory=dict)
    retries: int = Field(default=3, ge=0, le=10)
    action_retries: int = Field(default=2, ge=0, le=5, alias="actionRetries")
    always_agent: bool = Field(default=False, alias="alwaysCUA")
    agent_model: str | None = Field(default=None, alias="cuaModel")
    agent_max_steps: int = Field(default=3, ge=1, le=20, alias="cuaMaxSteps")
    headed_fallback: bool = Field(default=True, alias="headedFallback")
    metadata: GameMetadata = Field(default_factory=GameMetadata)
    dom_optimization: DomOptimization | None = Field(default=None, alias="domOptimization")

    @field_validator("sequence", mode="before")
    @classmethod
    def _parse_sequence(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        return [raw if isinstance(raw, BaseModel) else normalize_raw_step(raw) for raw in value]

    @field_validator("controls")
    @classmethod
    def _warn_unknown_controls(cls, value: dict[str, list[str]]) -> dict[str, list[str]]:
        for action in value:
            if action not in CONTROL_ACTIONS:
                logger.warning(f"Unknown control action {action!r} (known: {', '.join(CONTROL_ACTIONS)})")
        return value

    def to_run_config(self) -> SequenceRunConfig:
        return SequenceRunConfig(
            steps=tuple(self.sequence),
            action_timeout=self.timeouts.action / 1000,
            action_retries=self.action_retries,
            total_timeout=self.timeouts.total / 1000,
            controls=self.controls,
            default_mode=InteractionMode.AGENT if self.always_agent else None,
            agent_max_steps=self.agent_max_steps,
            metadata=self.metadata.model_dump(exclude_none=True),
        )

    @property
    def load_timeout(self) -> float:
        return self.timeouts.load / 1000

    def warnings(self) -> list[str]:
        """Non-fatal problems worth telling the user about."""
        found = []
        waits: list[int] = []
        groups: list[list[int]] = []
        for i, step in enumerate(self.sequence):
            if isinstance(step, WaitStep):
                waits.append(i)
                continue
            if len(waits) > 1:
                groups.append(waits)
            waits = []
        if len(waits) > 1:
            groups.append(waits)
        for group in groups:
            found.append(f"Consecutive waits at positions {', '.join(map(str, group))} could be combined")

        if self.timeouts.action > self.timeouts.total:
            found.append("Action timeout is greater than total timeout")

        uses_agent = self.always_agent or any(
            getattr(step, "mode", None) == InteractionMode.AGENT or step.action == "agent"
            for step in self.sequence
        )
        if uses_agent and not os.environ.get("OPENAI_API_KEY"):
            found.append("Agent mode is used but OPENAI_API_KEY is not set")

        if self.controls:
            found.extend(validate_controls(self.controls)[1])
        return found


def default_config() -> QAConfig:
    """Config used when none is given: take one screenshot."""
    return QAConfig(sequence=[{"action": "screenshot", "label": "default"}])


def load_config(path: str | Path) -> QAConfig:
    """Load and validate a JSON or YAML config file.

    Raises:
        ConfigError: If the file is missing, unparsable or invalid
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}", context={"path": str(path)})

    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"Could not parse config {path}: {e}", context={"path": str(path)}) from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must be a mapping", context={"path": str(path)})

    try:
        config = QAConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid config {path}: {e.error_count()} error(s)\n{e}",
            context={"path": str(path), "errors": e.errors(include_url=False)},
        ) from e

    for warning in config.warnings():
        logger.warning(f"Config: {warning}")
    logger.info(f"Loaded config {path.name} ({len(config.sequence)} steps)")
    return config


class Settings(BaseModel):
    """Environment-derived settings."""

    openai_api_key: str | None = None
    judge_model: str = "gpt-4o-mini"
    cache_dir: str = DEFAULT_CACHE_DIR
    output_dir: str = DEFAULT_OUTPUT_DIR

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            openai_api_key=os.environ.get("OPENAI_API_KEY"),
            judge_model=os.environ.get("GAME_QA_JUDGE_MODEL", "gpt-4o-mini"),
            cache_dir=os.environ.get("GAME_QA_CACHE_DIR", DEFAULT_CACHE_DIR),
            output_dir=os.environ.get("GAME_QA_OUTPUT_DIR", DEFAULT_OUTPUT_DIR),
        )
