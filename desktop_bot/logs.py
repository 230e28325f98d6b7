"""Logging setup and the fire-and-forget diagnostics surface."""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger("desktop_bot")


def setup_logging(config: Dict[str, Any]) -> None:
    """Log to the configured file and to stdout."""
    handlers = [logging.StreamHandler(sys.stdout)]
    if config.get("log_file"):
        handlers.append(logging.FileHandler(config["log_file"], encoding="utf-8"))
    logging.basicConfig(
        level=getattr(logging, str(config.get("log_level", "INFO")).upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers,
    )


# ----------------------------
# Diagnostics
# ----------------------------

def _format(tag: str, payload: Any) -> str:
    if payload is None:
        return tag
    return f"{tag} {payload}"


def log_debug(tag: str, payload: Any = None) -> None:
    logger.debug(_format(tag, payload))


def log_warning(tag: str, payload: Any = None) -> None:
    logger.warning(_format(tag, payload))


def log_error(tag: str, payload: Any = None) -> None:
    # Keep the traceback when called from an except block
    logger.error(_format(tag, payload), exc_info=payload if isinstance(payload, BaseException) else None)


class EventLog:
    """Append-only JSONL record of stream events for later analysis."""

    def __init__(self, path: Optional[Path]):
        self.path = Path(path) if path else None

    def write(self, event: Dict[str, Any]) -> None:
        if self.path is None:
            return
        try:
            record = dict(event)
            record["ts"] = datetime.now().isoformat()
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(json.dumps(record, ensure_ascii=False) + "\n")
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Could not write event log: {e}")
