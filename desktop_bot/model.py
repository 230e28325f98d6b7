"""
Vision model access over an OpenAI-compatible chat completions API.

A ChatSession holds the transcript of one run. The turn loop creates it at
start and sends every message through it, so no conversation state lives
anywhere else.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set, Union

from openai import OpenAI

from desktop_bot.config import Provider
from desktop_bot.conversation import ImagePart, TextPart, Turn

logger = logging.getLogger(__name__)

INSTRUCTIONS = """You control a virtual Linux desktop to carry out the user's task. Every turn you receive a screenshot of the current desktop; study it before acting.

AVAILABLE ACTIONS (call the computer_action function, one action per call):
- screenshot: look at the desktop again. Screenshots are also sent automatically after every action.
- wait: pause for a moment (max 2 seconds). Requires: duration (seconds, e.g. 1.5).
- left_click: left mouse click. Requires: coordinate [x, y].
- double_click: double click. Requires: coordinate [x, y].
- right_click: right mouse click. Requires: coordinate [x, y].
- mouse_move: move the pointer. Requires: coordinate [x, y].
- type: type text with the keyboard. Requires: text.
- key: press a single key or combo, e.g. "Enter", "Tab", "Escape", "ctrl+c". Requires: text (key name).
- scroll: scroll vertically at a point. Requires: coordinate [x, y], scroll_direction "up" or "down", scroll_amount.
- left_click_drag: drag and drop. Requires: start_coordinate [x, y], coordinate [x, y] (end).
- bash: run a shell command in a terminal. Requires: command, e.g. "ls -la".

Rules:
- Coordinates are pixels in the screenshot you were given
- Take one action at a time and check the next screenshot before continuing
- Shell commands run without confirmation
- Briefly explain what you see and what you are about to do
- When the task is complete, reply with a summary and do NOT call computer_action"""

ACTION_TOOL_NAME = "computer_action"
EXECUTED_ACK = "Action completed."
NOT_EXECUTED_ACK = "Action not executed. Only one action runs per turn; check the latest screenshot first."

MessageInput = Union[str, Sequence[Union[str, TextPart, ImagePart]]]


@dataclass
class ActionCall:
    id: str
    name: str
    args: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ModelReply:
    text: str = ""
    action_calls: List[ActionCall] = field(default_factory=list)


def _parse_args(raw: Optional[str]) -> Dict[str, Any]:
    if not raw:
        return {}
    try:
        args = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(f"Could not parse tool arguments: {raw[:200]}")
        return {}
    return args if isinstance(args, dict) else {}


def _content(parts: MessageInput) -> Union[str, List[Dict[str, Any]]]:
    """User message content: plain string when text-only, else a parts list."""
    if isinstance(parts, str):
        return parts
    out: List[Dict[str, Any]] = []
    for p in parts:
        if isinstance(p, str):
            out.append({"type": "text", "text": p})
        elif isinstance(p, TextPart):
            out.append({"type": "text", "text": p.text})
        elif isinstance(p, ImagePart):
            out.append({"type": "image_url", "image_url": {"url": p.data_url()}})
        else:
            raise TypeError(f"Unsupported message part: {type(p).__name__}")
    if all(o["type"] == "text" for o in out):
        return " ".join(o["text"] for o in out)
    return out


def turn_to_message(turn: Turn) -> Dict[str, Any]:
    if turn.is_user:
        return {"role": "user", "content": _content(turn.parts)}
    # Assistant messages are text-only in chat completions
    text = " ".join(p.text for p in turn.parts if isinstance(p, TextPart))
    return {"role": "assistant", "content": text}


class ChatSession:
    def __init__(
        self,
        client: Any,
        model: str,
        instructions: str,
        tools: Optional[List[Dict[str, Any]]] = None,
        history: Optional[List[Turn]] = None,
        max_tokens: int = 1024,
        temperature: float = 0.2,
    ):
        self.client = client
        self.model = model
        self.tools = tools or []
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.messages: List[Dict[str, Any]] = [{"role": "system", "content": instructions}]
        self.messages.extend(turn_to_message(t) for t in history or [])
        self._unanswered: List[ActionCall] = []
        self._executed: Set[str] = set()

    def mark_executed(self, call_id: str) -> None:
        """Acknowledge this call as carried out; other pending calls are reported as skipped."""
        self._executed.add(call_id)

    def send(self, message: MessageInput) -> ModelReply:
        """Send one user message and return the model's reply. API errors propagate."""
        # Every tool call needs a tool message before the conversation continues
        for call in self._unanswered:
            self.messages.append({
                "role": "tool",
                "tool_call_id": call.id,
                "content": EXECUTED_ACK if call.id in self._executed else NOT_EXECUTED_ACK,
            })
        self._unanswered = []
        self._executed.clear()
        self.messages.append({"role": "user", "content": _content(message)})

        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": self.messages,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        if self.tools:
            kwargs["tools"] = self.tools
            kwargs["tool_choice"] = "auto"
        resp = self.client.chat.completions.create(**kwargs)

        msg = resp.choices[0].message
        calls = [
            ActionCall(tc.id, tc.function.name, _parse_args(tc.function.arguments))
            for tc in msg.tool_calls or []
        ]
        assistant: Dict[str, Any] = {"role": "assistant", "content": msg.content or ""}
        if msg.tool_calls:
            assistant["tool_calls"] = [
                {
                    "id": tc.id,
                    "type": "function",
                    "function": {"name": tc.function.name, "arguments": tc.function.arguments or "{}"},
                }
                for tc in msg.tool_calls
            ]
        self.messages.append(assistant)
        self._unanswered = calls

        logger.debug(f"Model reply: text_len={len(msg.content or '')} tool_calls={len(calls)}")
        return ModelReply(text=(msg.content or "").strip(), action_calls=calls)


class OpenAISessionFactory:
    """Builds one ChatSession per run, all sharing a single API client."""

    def __init__(self, provider: Provider, config: Dict[str, Any]):
        self.provider = provider
        self.config = config
        # No automatic retries: a failed model call ends the run
        self.client = OpenAI(
            api_key=provider.api_key,
            base_url=provider.api_base_url,
            timeout=config.get("request_timeout_sec", 60),
            max_retries=0,
        )

    def __call__(self, instructions: str, tools: List[Dict[str, Any]], history: List[Turn]) -> ChatSession:
        return ChatSession(
            self.client,
            self.provider.model_name,
            instructions,
            tools=tools,
            history=history,
            max_tokens=self.config.get("max_tokens", 1024),
            temperature=self.config.get("temperature", 0.2),
        )
