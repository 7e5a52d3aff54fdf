"""Tests for config loading and validation."""

import json

import pytest

from game_qa.config import QAConfig, Settings, default_config, load_config, normalize_raw_step
from game_qa.core.exceptions import ConfigError
from game_qa.core.steps import ClickStep, InteractionMode, PressStep, WaitStep

SAMPLE = {
    "sequence": [
        {"wait": 1500},
        {"action": "click", "target": "Start", "useCUA": True, "timeout": 4000},
        {"action": "press", "alternateKeys": ["MoveLeft", "MoveRight"], "repeat": 6, "delay": 100},
        {"action": "agent", "instruction": "reach level 2", "maxSteps": 12},
    ],
    "timeouts": {"load": 20000, "action": 5000, "total": 90000},
    "controls": {"MoveLeft": ["a"], "MoveRight": ["d"]},
    "retries": 1,
    "actionRetries": 3,
    "cuaMaxSteps": 5,
    "metadata": {"genre": "arcade", "title": "Rock Dodger"},
}


@pytest.fixture
def json_config(tmp_path):
    path = tmp_path / "game.json"
    path.write_text(json.dumps(SAMPLE))
    return path


class TestLoadConfig:
    def test_json_config_is_parsed(self, json_config) -> None:
        config = load_config(json_config)

        wait, click, press, agent = config.sequence
        assert isinstance(wait, WaitStep) and wait.duration == 1.5
        assert isinstance(click, ClickStep)
        assert click.mode == InteractionMode.AGENT
        assert click.timeout == 4.0
        assert isinstance(press, PressStep)
        assert press.alternate_keys == ("MoveLeft", "MoveRight")
        assert press.delay == pytest.approx(0.1)
        assert agent.max_steps == 12
        assert config.retries == 1
        assert config.action_retries == 3
        assert config.agent_max_steps == 5
        assert config.load_timeout == 20.0

    def test_yaml_config_is_parsed(self, tmp_path) -> None:
        path = tmp_path / "game.yaml"
        path.write_text(
            "sequence:\n"
            "  - action: screenshot\n"
            "    label: menu\n"
            "  - action: axis\n"
            "    direction: horizontal\n"
            "    value: -1\n"
            "    duration: 750\n"
            "alwaysCUA: true\n"
        )

        config = load_config(path)

        assert config.sequence[1].duration == pytest.approx(0.75)
        assert config.always_agent is True

    def test_run_config_converts_to_seconds(self, json_config) -> None:
        run = load_config(json_config).to_run_config()

        assert run.action_timeout == 5.0
        assert run.total_timeout == 90.0
        assert run.action_retries == 3
        assert run.agent_max_steps == 5
        assert run.controls == {"MoveLeft": ["a"], "MoveRight": ["d"]}
        assert run.metadata == {"genre": "arcade", "title": "Rock Dodger"}
        assert run.default_mode is None
        assert len(run.steps) == 4

    def test_always_agent_sets_default_mode(self) -> None:
        config = QAConfig.model_validate({"sequence": [{"action": "click", "target": "x"}], "alwaysCUA": True})

        assert config.to_run_config().default_mode == InteractionMode.AGENT

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.json")

    def test_unparsable_file(self, tmp_path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        with pytest.raises(ConfigError, match="Could not parse"):
            load_config(path)

    @pytest.mark.parametrize(
        "data",
        [
            {"sequence": []},
            {"sequence": [{"action": "teleport"}]},
            {"sequence": [{"action": "wait", "wait": 10}], "retries": 50},
            {"timeouts": {"load": 1000}},
        ],
    )
    def test_invalid_config_raises(self, tmp_path, data) -> None:
        path = tmp_path / "bad.json"
        path.write_text(json.dumps(data))

        with pytest.raises(ConfigError, match="Invalid config"):
            load_config(path)

    def test_non_mapping_file(self, tmp_path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- wait: 100\n")

        with pytest.raises(ConfigError, match="must be a mapping"):
            load_config(path)


class TestWarnings:
    def test_consecutive_waits(self) -> None:
        config = QAConfig.model_validate(
            {"sequence": [{"wait": 100}, {"wait": 200}, {"action": "screenshot"}, {"wait": 50}]}
        )

        warnings = config.warnings()

        assert any("positions 0, 1" in w for w in warnings)

    def test_action_timeout_exceeds_total(self) -> None:
        config = QAConfig.model_validate(
            {"sequence": [{"action": "screenshot"}], "timeouts": {"action": 90000, "total": 60000}}
        )

        assert "Action timeout is greater than total timeout" in config.warnings()

    def test_agent_without_api_key(self, monkeypatch) -> None:
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        config = QAConfig.model_validate({"sequence": [{"action": "agent", "instruction": "play"}]})

        assert any("OPENAI_API_KEY" in w for w in config.warnings())

    def test_bad_control_key(self) -> None:
        config = QAConfig.model_validate(
            {"sequence": [{"action": "screenshot"}], "controls": {"Jump": ["Hyperspace"]}}
        )

        assert any("Hyperspace" in w for w in config.warnings())


def test_normalize_raw_step():
    assert normalize_raw_step({"wait": 250}) == {"action": "wait", "duration": 0.25}
    assert normalize_raw_step({"action": "press", "key": "Space", "duration": 2000}) == {
        "action": "press",
        "key": "Space",
        "duration": 2.0,
    }
    with pytest.raises(ValueError):
        normalize_raw_step("wait")


def test_default_config_takes_one_screenshot():
    config = default_config()

    assert len(config.sequence) == 1
    assert config.sequence[0].action == "screenshot"


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("GAME_QA_OUTPUT_DIR", "/tmp/qa-out")
    monkeypatch.delenv("GAME_QA_JUDGE_MODEL", raising=False)

    settings = Settings.from_env()

    assert settings.openai_api_key == "sk-test"
    assert settings.output_dir == "/tmp/qa-out"
    assert settings.judge_model == "gpt-4o-mini"
