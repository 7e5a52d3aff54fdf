"""Tests for control mappings."""

import pytest

from game_qa.engine.controls import (
    resolve_action,
    resolve_key_name,
    resolve_press_key,
    validate_controls,
)


@pytest.mark.parametrize(
    "key,expected",
    [
        ("Up", "ArrowUp"),
        ("w", "KeyW"),
        ("esc", "Escape"),
        ("space", "Space"),
        ("ArrowLeft", "ArrowLeft"),
        ("q", "KeyQ"),
        ("Z", "KeyZ"),
        ("7", "Digit7"),
        ("F5", "F5"),
        ("Banana", "Banana"),
    ],
)
def test_resolve_key_name(key, expected):
    assert resolve_key_name(key) == expected


class TestResolveAction:
    def test_maps_action_to_resolved_keys(self) -> None:
        controls = {"MoveUp": ["Up", "w"]}

        assert resolve_action("MoveUp", controls) == ["ArrowUp", "KeyW"]

    def test_missing_action_or_controls(self) -> None:
        assert resolve_action("Jump", {"MoveUp": ["Up"]}) is None
        assert resolve_action("Jump", None) is None
        assert resolve_action("Jump", {"Jump": []}) is None

    def test_press_key_prefers_control_binding(self) -> None:
        controls = {"Jump": ["space", "w"]}

        assert resolve_press_key("Jump", controls) == "Space"
        assert resolve_press_key("d", controls) == "KeyD"


class TestValidateControls:
    def test_valid_mapping(self) -> None:
        valid, warnings = validate_controls({"MoveLeft": ["Left", "a"], "Jump": ["Space"]})

        assert valid is True
        assert warnings == []

    def test_unknown_key_and_empty_binding_warn(self) -> None:
        valid, warnings = validate_controls({"Jump": ["Hyperspace"], "Pause": []})

        assert valid is False
        assert len(warnings) == 2
        assert any("Hyperspace" in w for w in warnings)
        assert any("Pause" in w for w in warnings)
