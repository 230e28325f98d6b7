"""Typed events produced by a stream run."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from desktop_bot.actions import ComputerAction


class EventType(str, Enum):
    REASONING = "reasoning"
    ACTION = "action"
    ACTION_COMPLETED = "action_completed"
    DONE = "done"
    ERROR = "error"


TERMINAL_TYPES = (EventType.DONE, EventType.ERROR)


@dataclass
class StreamEvent:
    type: EventType
    content: Optional[str] = None
    action: Optional[ComputerAction] = None

    @property
    def is_terminal(self) -> bool:
        return self.type in TERMINAL_TYPES

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type.value}
        if self.content is not None:
            data["content"] = self.content
        if self.action is not None:
            data["action"] = dict(self.action.raw)
        return data


def reasoning(text: str) -> StreamEvent:
    return StreamEvent(EventType.REASONING, content=text)


def action(act: ComputerAction) -> StreamEvent:
    return StreamEvent(EventType.ACTION, action=act)


def action_completed() -> StreamEvent:
    return StreamEvent(EventType.ACTION_COMPLETED)


def done(content: Optional[str] = None) -> StreamEvent:
    return StreamEvent(EventType.DONE, content=content)


def error(content: str) -> StreamEvent:
    return StreamEvent(EventType.ERROR, content=content)
