from typing import Any, Dict, List, Optional

import pytest

from desktop_bot.desktop import Desktop, Scaler
from desktop_bot.model import ActionCall, ModelReply
from desktop_bot.streamer import ComputerStreamer

PNG = b"\x89PNG\r\n\x1a\nfake"


class FakeDesktop(Desktop):
    def __init__(self, command_error: Optional[Exception] = None, on_call=None):
        self.calls: List[tuple] = []
        self.command_error = command_error
        self.on_call = on_call

    def _record(self, *call):
        self.calls.append(call)
        if self.on_call:
            self.on_call(call)

    def left_click(self, x, y):
        self._record("left_click", x, y)

    def right_click(self, x, y):
        self._record("right_click", x, y)

    def double_click(self, x, y):
        self._record("double_click", x, y)

    def move_mouse(self, x, y):
        self._record("move_mouse", x, y)

    def write(self, text):
        self._record("write", text)

    def press(self, key):
        self._record("press", key)

    def scroll(self, direction, amount):
        self._record("scroll", direction, amount)

    def drag(self, start, end):
        self._record("drag", start, end)

    def run_command(self, command):
        self._record("run_command", command)
        if self.command_error:
            raise self.command_error
        return "ok\n"


class FakeScaler(Scaler):
    """Doubles every coordinate so translation is visible in assertions."""

    def __init__(self, factor: int = 1, screenshot_error: Optional[Exception] = None):
        self.factor = factor
        self.scaled: List[tuple] = []
        self.screenshots = 0
        self.screenshot_error = screenshot_error

    def scale_to_original_space(self, point):
        self.scaled.append(tuple(point))
        return (point[0] * self.factor, point[1] * self.factor)

    def take_screenshot(self):
        self.screenshots += 1
        if self.screenshot_error:
            raise self.screenshot_error
        return PNG


def reply(text: str = "", *actions: Dict[str, Any], name: str = "computer_action") -> ModelReply:
    return ModelReply(
        text=text,
        action_calls=[ActionCall(f"call_{i}", name, dict(a)) for i, a in enumerate(actions)],
    )


class FakeSession:
    """Replays scripted replies; an Exception in the script is raised instead."""

    def __init__(self, script: List[Any], on_send=None):
        self.script = list(script)
        self.sent: List[Any] = []
        self.executed: List[str] = []
        self.on_send = on_send

    def mark_executed(self, call_id):
        self.executed.append(call_id)

    def send(self, message):
        self.sent.append(message)
        if self.on_send:
            self.on_send(message)
        if not self.script:
            return ModelReply()
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class FakeSessionFactory:
    def __init__(self, session: FakeSession, error: Optional[Exception] = None):
        self.session = session
        self.error = error
        self.kwargs: Dict[str, Any] = {}

    def __call__(self, **kwargs):
        self.kwargs = kwargs
        if self.error:
            raise self.error
        return self.session


class NoSleep:
    def __init__(self):
        self.slept: List[float] = []

    def __call__(self, seconds):
        self.slept.append(seconds)


@pytest.fixture
def desktop():
    return FakeDesktop()


@pytest.fixture
def scaler():
    return FakeScaler()


@pytest.fixture
def make_streamer(desktop, scaler):
    def build(script, config=None, factory_error=None, **kwargs):
        session = FakeSession(script)
        factory = FakeSessionFactory(session, error=factory_error)
        streamer = ComputerStreamer(desktop, scaler, factory, config=config, **kwargs)
        streamer.executor.sleep = NoSleep()
        return streamer, session, factory
    return build
