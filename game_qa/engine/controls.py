"""Control mappings: high-level game actions to browser key names."""

import logging
import string

logger = logging.getLogger(__name__)

CONTROL_ACTIONS = (
    "MoveUp",
    "MoveDown",
    "MoveLeft",
    "MoveRight",
    "MoveHorizontal",
    "MoveVertical",
    "Move2D",
    "Jump",
    "Action",
    "Confirm",
    "Cancel",
    "Pause",
    "Start",
)

KEY_ALIASES: dict[str, str] = {
    "Up": "ArrowUp",
    "Down": "ArrowDown",
    "Left": "ArrowLeft",
    "Right": "ArrowRight",
    "w": "KeyW",
    "W": "KeyW",
    "a": "KeyA",
    "A": "KeyA",
    "s": "KeyS",
    "S": "KeyS",
    "d": "KeyD",
    "D": "KeyD",
    "space": "Space",
    "Space": "Space",
    "enter": "Enter",
    "Enter": "Enter",
    "escape": "Escape",
    "Escape": "Escape",
    "esc": "Escape",
    "Esc": "Escape",
}

VALID_KEY_NAMES: frozenset[str] = frozenset(
    ["ArrowUp", "ArrowDown", "ArrowLeft", "ArrowRight"]
    + ["Space", "Enter", "Escape", "Tab", "Shift", "Control", "Alt", "Meta"]
    + [f"Key{c}" for c in string.ascii_uppercase]
    + [f"Digit{i}" for i in range(10)]
    + [f"F{i}" for i in range(1, 13)]
)


def resolve_key_name(key: str) -> str:
    """Canonical browser key name for ``key``; unknown names pass through."""
    if key in KEY_ALIASES:
        return KEY_ALIASES[key]
    if key in VALID_KEY_NAMES:
        return key
    if len(key) == 1 and key in string.ascii_letters:
        return f"Key{key.upper()}"
    if len(key) == 1 and key.isdigit():
        return f"Digit{key}"

    logger.warning(f'Unrecognized key name: "{key}" - using as-is (may not work)')
    return key


def resolve_action(action: str, controls: dict[str, list[str]] | None) -> list[str] | None:
    """Resolved keys bound to a control action, e.g. ``MoveUp -> [ArrowUp, KeyW]``."""
    if not controls:
        return None
    keys = controls.get(action)
    if keys:
        return [resolve_key_name(k) for k in keys]
    return None


def primary_key(action: str, controls: dict[str, list[str]] | None) -> str | None:
    keys = resolve_action(action, controls)
    return keys[0] if keys else None


def resolve_press_key(key: str, controls: dict[str, list[str]] | None) -> str:
    """A press key may name a control action; otherwise it is a key name."""
    return primary_key(key, controls) or resolve_key_name(key)


def validate_controls(controls: dict[str, list[str]]) -> tuple[bool, list[str]]:
    """Check every mapped key resolves to a known browser key.

    Returns:
        ``(valid, warnings)``; valid iff there are no warnings
    """
    warnings = []
    for action, keys in controls.items():
        if not keys:
            warnings.append(f'Action "{action}" has no keys mapped')
            continue
        for key in keys:
            resolved = resolve_key_name(key)
            if resolved not in VALID_KEY_NAMES:
                warnings.append(
                    f'Key "{key}" for action "{action}" may not be supported '
                    f'(resolved to "{resolved}")'
                )
    return not warnings, warnings
