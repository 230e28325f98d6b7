"""Desktop driven locally with pyautogui; shell commands run via subprocess."""

import subprocess

import pyautogui

from desktop_bot.desktop import CommandError, Desktop, Point, parse_key_combo


class LocalDesktop(Desktop):
    """Drives the display this process runs on."""

    def __init__(self, type_interval: float = 0.008, pause: float = 0.05,
                 drag_duration: float = 0.2, command_timeout: float = 30):
        self.type_interval = type_interval
        self.drag_duration = drag_duration
        self.command_timeout = command_timeout
        pyautogui.PAUSE = pause
        # The polled kill switch covers the top-left corner; a raised
        # FailSafeException would end the run as an error instead of a stop
        pyautogui.FAILSAFE = False

    def left_click(self, x: int, y: int) -> None:
        pyautogui.click(x, y, button="left")

    def right_click(self, x: int, y: int) -> None:
        pyautogui.click(x, y, button="right")

    def double_click(self, x: int, y: int) -> None:
        pyautogui.doubleClick(x, y)

    def move_mouse(self, x: int, y: int) -> None:
        pyautogui.moveTo(x, y)

    def write(self, text: str) -> None:
        pyautogui.write(text, interval=self.type_interval)

    def press(self, key: str) -> None:
        keys = parse_key_combo(key)
        if len(keys) > 1:
            pyautogui.hotkey(*keys)
        else:
            pyautogui.press(keys[0])

    def scroll(self, direction: str, amount: int) -> None:
        clicks = abs(int(amount))
        pyautogui.scroll(clicks if direction == "up" else -clicks)

    def drag(self, start: Point, end: Point) -> None:
        pyautogui.moveTo(start[0], start[1])
        pyautogui.dragTo(end[0], end[1], duration=self.drag_duration, button="left")

    def run_command(self, command: str) -> str:
        proc = subprocess.run(
            command,
            shell=True,
            capture_output=True,
            text=True,
            timeout=self.command_timeout,
        )
        if proc.returncode != 0:
            raise CommandError(command, proc.returncode, proc.stderr)
        return proc.stdout

