"""Interactive runner: python -m desktop_bot 'open a terminal and run htop'"""

import logging
import signal
import sys
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

import pyautogui

from desktop_bot.config import ConfigError, load_config, load_settings, resolve_provider
from desktop_bot.conversation import Turn
from desktop_bot.desktop import ResolutionScaler
from desktop_bot.events import EventType, StreamEvent
from desktop_bot.local import LocalDesktop
from desktop_bot.logs import EventLog, setup_logging
from desktop_bot.model import OpenAISessionFactory
from desktop_bot.streamer import ComputerStreamer

logger = logging.getLogger(__name__)


# ----------------------------
# Safety
# ----------------------------

def kill_switch_triggered(threshold: int) -> bool:
    x, y = pyautogui.position()
    return x <= threshold and y <= threshold


def watch_kill_switch(cancel: threading.Event, config: Dict[str, Any]) -> threading.Thread:
    """Set the cancellation signal when the mouse is parked in the top-left corner."""
    threshold = config.get("kill_xy_threshold", 8)
    interval = config.get("kill_poll_sec", 0.2)

    def poll() -> None:
        while not cancel.wait(interval):
            if kill_switch_triggered(threshold):
                print("Kill switch triggered. Stopping after the current action.")
                logger.info("Kill switch triggered, stopping.")
                cancel.set()

    t = threading.Thread(target=poll, daemon=True)
    t.start()
    return t


def print_event(event: StreamEvent) -> None:
    if event.type is EventType.REASONING:
        print(f"\n{event.content}")
    elif event.type is EventType.ACTION:
        print(f"-> {event.action.name} {event.action.raw}")
    elif event.type is EventType.DONE:
        print(f"\nDone. {event.content or ''}".rstrip())
    elif event.type is EventType.ERROR:
        print(f"\nError: {event.content}")


def main(argv: Optional[List[str]] = None) -> None:
    argv = sys.argv[1:] if argv is None else argv
    config = load_config()
    settings = load_settings()
    setup_logging(config)

    try:
        provider = resolve_provider(config, settings)
    except ConfigError as e:
        print(e)
        print("  1. Copy settings.example.yaml to settings.yaml")
        print("  2. Set active provider and add api_key under providers.<name>")
        sys.exit(1)

    goal = " ".join(argv).strip() or input("What do you want the agent to do? ").strip()
    if not goal:
        print("No goal provided. Exiting.")
        return

    desktop = LocalDesktop(
        type_interval=config.get("type_interval_sec", 0.008),
        pause=config.get("pyautogui_pause_sec", 0.05),
        command_timeout=config.get("command_timeout_sec", 30),
    )
    scaler = ResolutionScaler(config["screenshot_width"], config["screenshot_height"])
    event_log = EventLog(Path(config["events_file"]) if config.get("events_log_enabled") else None)
    streamer = ComputerStreamer(
        desktop,
        scaler,
        OpenAISessionFactory(provider, config),
        config=config,
        event_log=event_log,
    )

    print(f"Running. Provider: {provider.label} | Model: {provider.model_name} | "
          "Kill switch: move mouse to top-left corner, or Ctrl+C.")
    logger.info(f"Starting agent with goal: {goal}")

    cancel = threading.Event()

    def on_interrupt(signum, frame) -> None:
        # Let the in-flight turn finish; the loop stops at the next boundary
        print("\nInterrupted. Stopping after the current action.")
        cancel.set()

    signal.signal(signal.SIGINT, on_interrupt)
    watch_kill_switch(cancel, config)

    actions = 0
    for event in streamer.stream([Turn.text("user", goal)], cancel):
        if event.type is EventType.ACTION_COMPLETED:
            actions += 1
        print_event(event)

    logger.info(f"Finished. Total actions: {actions}")
    print(f"Completed {actions} actions.")


if __name__ == "__main__":
    main()
