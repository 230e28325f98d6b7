"""Vision-model driven desktop control agent."""

from desktop_bot.actions import ActionKind, ComputerAction, parse_action
from desktop_bot.conversation import ImagePart, TextPart, Turn
from desktop_bot.events import EventType, StreamEvent
from desktop_bot.executor import ActionExecutor, ActionResult
from desktop_bot.streamer import ComputerStreamer

__version__ = "0.1.0"
