"""
The turn loop: screenshot -> model -> action -> screenshot -> model ...

stream() is a generator of StreamEvents. Every run ends with exactly one
terminal event:
- done            the model replied without calling computer_action
- done (stopped)  the cancellation signal was set at a turn boundary
- error           talking to the model (or setting up the run) failed

Only the first computer_action call of a reply is executed. The signal is
polled before each model round-trip; an action already sent to the desktop
always runs to completion.
"""

import logging
import threading
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from desktop_bot import events
from desktop_bot.actions import COMPUTER_ACTION_TOOL, ComputerAction, parse_action
from desktop_bot.conversation import ImagePart, Turn
from desktop_bot.desktop import Desktop, Scaler
from desktop_bot.events import StreamEvent
from desktop_bot.executor import ActionExecutor, ActionResult
from desktop_bot.logs import EventLog, log_debug, log_error, log_warning
from desktop_bot.model import ACTION_TOOL_NAME, INSTRUCTIONS, ChatSession, MessageInput

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An error occurred with the AI service. Please try again."
STOPPED_MESSAGE = "Generation stopped by user"
MAX_TURNS_MESSAGE = "Reached the maximum number of turns"
FALLBACK_PROMPT = "Please help me with this task."
FEEDBACK_CAPTION = "Here's the current desktop after the action:"

SessionFactory = Callable[..., ChatSession]


class ComputerStreamer:
    def __init__(
        self,
        desktop: Desktop,
        scaler: Scaler,
        session_factory: SessionFactory,
        instructions: str = INSTRUCTIONS,
        config: Optional[Dict[str, Any]] = None,
        event_log: Optional[EventLog] = None,
        executor: Optional[ActionExecutor] = None,
    ):
        self.config = config or {}
        self.desktop = desktop
        self.scaler = scaler
        self.session_factory = session_factory
        self.instructions = instructions
        self.event_log = event_log or EventLog(None)
        self.executor = executor or ActionExecutor(
            desktop, scaler, max_wait_sec=self.config.get("max_wait_sec", 2.0)
        )

    def execute_action(self, action: ComputerAction) -> ActionResult:
        return self.executor.execute(action)

    def stream(
        self,
        messages: Iterable[Union[Turn, Dict[str, Any]]],
        signal: Optional[threading.Event] = None,
    ) -> Iterator[StreamEvent]:
        signal = signal or threading.Event()
        try:
            yield from self._run(messages, signal)
        except Exception as e:
            log_error("Streamer failed before the turn loop:", e)
            yield self._emit(events.error(GENERIC_ERROR_MESSAGE))

    # ----------------------------
    # Internals
    # ----------------------------

    def _emit(self, event: StreamEvent) -> StreamEvent:
        self.event_log.write(event.to_dict())
        return event

    def _start(self, messages: Iterable[Union[Turn, Dict[str, Any]]]) -> Tuple[ChatSession, MessageInput]:
        """Attach the first screenshot and open the chat session."""
        turns: List[Turn] = [
            t.copy() if isinstance(t, Turn) else Turn.from_dict(t) for t in messages
        ]
        screenshot = self.scaler.take_screenshot()
        if turns and turns[-1].is_user:
            turns[-1].parts.append(ImagePart(screenshot, "image/png"))

        session = self.session_factory(
            instructions=self.instructions,
            tools=[COMPUTER_ACTION_TOOL],
            history=turns[:-1],
        )
        first: MessageInput = turns[-1].parts if turns else FALLBACK_PROMPT
        return session, first

    def _run(self, messages: Iterable[Union[Turn, Dict[str, Any]]], signal: threading.Event) -> Iterator[StreamEvent]:
        session, current = self._start(messages)
        max_turns = int(self.config.get("max_turns") or 0)
        turn = 0

        while True:
            if signal.is_set():
                logger.info("Run cancelled by user.")
                yield self._emit(events.done(STOPPED_MESSAGE))
                return
            if max_turns and turn >= max_turns:
                logger.info(f"Stopping after {turn} turns.")
                yield self._emit(events.done(MAX_TURNS_MESSAGE))
                return
            turn += 1

            try:
                reply = session.send(current)
                if reply.text:
                    yield self._emit(events.reasoning(reply.text))

                calls = [c for c in reply.action_calls if c.name == ACTION_TOOL_NAME]
                if not calls:
                    logger.info(f"Turn {turn}: no action requested, task complete.")
                    yield self._emit(events.done())
                    return
                if len(calls) > 1:
                    log_debug(f"Turn {turn}: executing the first of {len(calls)} calls")

                action = parse_action(calls[0].args)
                logger.info(f"Turn {turn}: {action.name} {action.raw}")
                yield self._emit(events.action(action))
                self.execute_action(action)
                session.mark_executed(calls[0].id)
                yield self._emit(events.action_completed())

                current = self._observe(session, action)
            except Exception as e:
                log_error("Error in model chat:", e)
                yield self._emit(events.error(GENERIC_ERROR_MESSAGE))
                return

    def _observe(self, session: ChatSession, action: ComputerAction) -> MessageInput:
        """Show the model the result of an action; returns the next outbound message."""
        screenshot = self.scaler.take_screenshot()
        next_message: MessageInput = (
            f"Action completed. Current screenshot shows the result of the {action.name} action."
        )
        try:
            reply = session.send([FEEDBACK_CAPTION, ImagePart(screenshot, "image/png")])
        except Exception as e:
            log_error("Error sending screenshot:", e)
            return next_message
        if reply.action_calls:
            # Left unmarked, so the session reports them as not executed
            log_warning("Ignoring action calls in screenshot feedback reply:", [c.args for c in reply.action_calls])
        if reply.text:
            next_message = reply.text
        return next_message
