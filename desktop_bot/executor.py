"""Turns one ComputerAction into desktop input calls."""

import time
from dataclasses import dataclass
from typing import Callable, Optional

from desktop_bot.actions import ActionKind, ComputerAction, missing_fields
from desktop_bot.desktop import Desktop, Scaler
from desktop_bot.logs import log_debug, log_error, log_warning

MAX_WAIT_SEC = 2.0


@dataclass
class ActionResult:
    performed: bool
    output: Optional[str] = None


def clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


class ActionExecutor:
    """
    Executes model actions against a Desktop.

    Coordinates arrive in the model's screenshot space and go through
    scaler.scale_to_original_space before reaching the desktop. Malformed
    actions are skipped, not raised. Shell command failures are logged and
    treated as completed; every other desktop error propagates.
    """

    def __init__(self, desktop: Desktop, scaler: Scaler, max_wait_sec: float = MAX_WAIT_SEC,
                 sleep: Callable[[float], None] = time.sleep):
        self.desktop = desktop
        self.scaler = scaler
        self.max_wait_sec = min(max_wait_sec, MAX_WAIT_SEC)
        self.sleep = sleep

    def execute(self, action: ComputerAction) -> ActionResult:
        kind = action.kind

        if kind is ActionKind.UNKNOWN:
            log_warning("Unknown action type:", action.raw)
            return ActionResult(performed=False)

        missing = missing_fields(action)
        if missing:
            log_debug(f"Skipping {kind.value}, missing {', '.join(missing)}:", action.raw)
            return ActionResult(performed=False)

        desktop = self.desktop

        if kind is ActionKind.SCREENSHOT:
            # Taken by the turn loop after every action
            return ActionResult(performed=False)

        if kind in (ActionKind.LEFT_CLICK, ActionKind.RIGHT_CLICK,
                    ActionKind.DOUBLE_CLICK, ActionKind.MOUSE_MOVE):
            x, y = self.scaler.scale_to_original_space(action.coordinate)
            if kind is ActionKind.LEFT_CLICK:
                desktop.left_click(x, y)
            elif kind is ActionKind.RIGHT_CLICK:
                desktop.right_click(x, y)
            elif kind is ActionKind.DOUBLE_CLICK:
                desktop.double_click(x, y)
            else:
                desktop.move_mouse(x, y)

        elif kind is ActionKind.TYPE:
            desktop.write(action.text)

        elif kind is ActionKind.KEY:
            desktop.press(action.text)

        elif kind is ActionKind.SCROLL:
            x, y = self.scaler.scale_to_original_space(action.coordinate)
            desktop.move_mouse(x, y)
            desktop.scroll(action.scroll_direction, action.scroll_amount)

        elif kind is ActionKind.LEFT_CLICK_DRAG:
            start = self.scaler.scale_to_original_space(action.start_coordinate)
            end = self.scaler.scale_to_original_space(action.coordinate)
            desktop.drag(start, end)

        elif kind is ActionKind.WAIT:
            self.sleep(clamp(action.duration, 0, self.max_wait_sec))

        elif kind is ActionKind.BASH:
            try:
                output = desktop.run_command(action.command)
            except Exception as e:
                log_error("Bash command error:", e)
                return ActionResult(performed=True)
            log_debug("Bash command result:", output)
            return ActionResult(performed=True, output=output)

        return ActionResult(performed=True)
