"""
Action vocabulary the model may request, and the tool schema advertising it.

Parsing is permissive: a payload never fails to parse. Bad or missing fields
become None and the executor skips actions whose required fields are absent.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

Point = Tuple[int, int]


class ActionKind(str, Enum):
    SCREENSHOT = "screenshot"
    WAIT = "wait"
    LEFT_CLICK = "left_click"
    DOUBLE_CLICK = "double_click"
    RIGHT_CLICK = "right_click"
    MOUSE_MOVE = "mouse_move"
    TYPE = "type"
    KEY = "key"
    SCROLL = "scroll"
    LEFT_CLICK_DRAG = "left_click_drag"
    BASH = "bash"
    UNKNOWN = "unknown"


KNOWN_KINDS: List[str] = [k.value for k in ActionKind if k is not ActionKind.UNKNOWN]

SCROLL_DIRECTIONS = ("up", "down")

REQUIRED_FIELDS: Dict[ActionKind, Tuple[str, ...]] = {
    ActionKind.SCREENSHOT: (),
    ActionKind.WAIT: ("duration",),
    ActionKind.LEFT_CLICK: ("coordinate",),
    ActionKind.DOUBLE_CLICK: ("coordinate",),
    ActionKind.RIGHT_CLICK: ("coordinate",),
    ActionKind.MOUSE_MOVE: ("coordinate",),
    ActionKind.TYPE: ("text",),
    ActionKind.KEY: ("text",),
    ActionKind.SCROLL: ("coordinate", "scroll_direction", "scroll_amount"),
    ActionKind.LEFT_CLICK_DRAG: ("start_coordinate", "coordinate"),
    ActionKind.BASH: ("command",),
    ActionKind.UNKNOWN: (),
}


@dataclass
class ComputerAction:
    kind: ActionKind
    coordinate: Optional[Point] = None
    start_coordinate: Optional[Point] = None
    text: Optional[str] = None
    duration: Optional[float] = None
    scroll_direction: Optional[str] = None
    scroll_amount: Optional[int] = None
    command: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        """Wire name, or whatever the model sent for unknown kinds."""
        if self.kind is ActionKind.UNKNOWN:
            return str(self.raw.get("action", "unknown"))
        return self.kind.value


# ----------------------------
# Parsing
# ----------------------------

def _point(value: Any) -> Optional[Point]:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        return None
    try:
        return (int(round(float(value[0]))), int(round(float(value[1]))))
    except (TypeError, ValueError, OverflowError):
        return None


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        n = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    # JSON allows 1e999, which parses to inf
    return n if math.isfinite(n) else None


def _string(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def parse_action(payload: Any) -> ComputerAction:
    """Classify an untyped action payload. Never raises."""
    if not isinstance(payload, dict):
        return ComputerAction(kind=ActionKind.UNKNOWN, raw={"action": payload})

    name = str(payload.get("action", "")).strip().lower()
    try:
        kind = ActionKind(name)
    except ValueError:
        kind = ActionKind.UNKNOWN

    direction = payload.get("scroll_direction")
    direction = str(direction).lower() if direction is not None else None
    amount = _number(payload.get("scroll_amount"))

    return ComputerAction(
        kind=kind,
        coordinate=_point(payload.get("coordinate")),
        start_coordinate=_point(payload.get("start_coordinate")),
        text=_string(payload.get("text")),
        duration=_number(payload.get("duration")),
        scroll_direction=direction if direction in SCROLL_DIRECTIONS else None,
        scroll_amount=int(amount) if amount is not None else None,
        command=_string(payload.get("command")),
        raw=dict(payload),
    )


def missing_fields(action: ComputerAction) -> List[str]:
    """Required fields absent (or unusable) for this action's kind."""
    missing = []
    for name in REQUIRED_FIELDS[action.kind]:
        value = getattr(action, name)
        if value is None:
            missing.append(name)
        # Zero-length waits and zero-notch scrolls do nothing either
        elif name == "duration" and value <= 0:
            missing.append(name)
        elif name == "scroll_amount" and value == 0:
            missing.append(name)
    return missing


# ----------------------------
# Tool schema
# ----------------------------

COMPUTER_ACTION_TOOL: Dict[str, Any] = {
    "type": "function",
    "function": {
        "name": "computer_action",
        "description": "Execute a computer action on the virtual desktop",
        "parameters": {
            "type": "object",
            "properties": {
                "action": {
                    "type": "string",
                    "enum": KNOWN_KINDS,
                    "description": "The action to perform: " + ", ".join(KNOWN_KINDS),
                },
                "coordinate": {
                    "type": "array",
                    "items": {"type": "number"},
                    "description": "Coordinate [x, y] for click/move/scroll actions, end point for drag",
                },
                "start_coordinate": {
                    "type": "array",
                    "items": {"type": "number"},
                    "description": "Start coordinate [x, y] for drag actions",
                },
                "text": {
                    "type": "string",
                    "description": "Text to type or key name to press",
                },
                "duration": {
                    "type": "number",
                    "description": "Duration in seconds for wait action (max 2)",
                },
                "scroll_direction": {
                    "type": "string",
                    "enum": list(SCROLL_DIRECTIONS),
                    "description": "Direction to scroll: up or down",
                },
                "scroll_amount": {
                    "type": "number",
                    "description": "Amount to scroll",
                },
                "command": {
                    "type": "string",
                    "description": "Bash command to execute",
                },
            },
            "required": ["action"],
        },
    },
}
