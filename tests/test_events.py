import pytest

from desktop_bot import events
from desktop_bot.actions import parse_action
from desktop_bot.conversation import Turn
from desktop_bot.events import EventType


def test_terminal_events():
    assert events.done().is_terminal
    assert events.error("x").is_terminal
    assert not events.reasoning("x").is_terminal
    assert not events.action_completed().is_terminal


def test_to_dict():
    act = parse_action({"action": "key", "text": "Enter"})
    assert events.action(act).to_dict() == {"type": "action", "action": {"action": "key", "text": "Enter"}}
    assert events.done().to_dict() == {"type": "done"}
    assert events.done("stopped").to_dict() == {"type": "done", "content": "stopped"}
    assert events.action_completed().type is EventType.ACTION_COMPLETED


def test_turn_roles():
    assert Turn.text("assistant", "hi").role == "agent"
    assert Turn.from_dict({"role": "user", "content": "go"}).is_user
    with pytest.raises(ValueError):
        Turn.text("system", "nope")
