"""
Desktop collaborators used by the executor and the turn loop.

Desktop addresses the screen in native pixels. Scaler owns the model's view
of the screen: it takes the (downsized) screenshots the model sees and maps
points from that space back to native pixels.
"""

import io
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

import mss
from PIL import Image

logger = logging.getLogger(__name__)

Point = Tuple[int, int]


class CommandError(Exception):
    """A shell command exited with a non-zero status."""

    def __init__(self, command: str, returncode: int, stderr: str = ""):
        super().__init__(f"Command {command!r} exited with status {returncode}: {stderr.strip()[:200]}")
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class Desktop(ABC):
    """Input surface of a desktop, in native resolution coordinates."""

    @abstractmethod
    def left_click(self, x: int, y: int) -> None: ...

    @abstractmethod
    def right_click(self, x: int, y: int) -> None: ...

    @abstractmethod
    def double_click(self, x: int, y: int) -> None: ...

    @abstractmethod
    def move_mouse(self, x: int, y: int) -> None: ...

    @abstractmethod
    def write(self, text: str) -> None: ...

    @abstractmethod
    def press(self, key: str) -> None: ...

    @abstractmethod
    def scroll(self, direction: str, amount: int) -> None: ...

    @abstractmethod
    def drag(self, start: Point, end: Point) -> None: ...

    @abstractmethod
    def run_command(self, command: str) -> str:
        """Run a shell command and return its output. Raises on failure."""


class Scaler(ABC):
    @abstractmethod
    def scale_to_original_space(self, point: Point) -> Point: ...

    @abstractmethod
    def take_screenshot(self) -> bytes:
        """PNG bytes of the screen as the model sees it."""


KEY_ALIASES: Dict[str, str] = {
    "return": "enter",
    "esc": "escape",
    "control": "ctrl",
    "del": "delete",
    "page_up": "pageup",
    "page_down": "pagedown",
    "arrowup": "up",
    "arrowdown": "down",
    "arrowleft": "left",
    "arrowright": "right",
    "super": "win",
    "meta": "win",
    "cmd": "command",
}


def parse_key_combo(key: str) -> List[str]:
    """Split a key name or combo: 'ctrl+Shift+t' -> ['ctrl', 'shift', 't']."""
    keys = [k.strip().lower() for k in key.split("+") if k.strip()]
    if not keys:
        return [key]
    return [KEY_ALIASES.get(k, k) for k in keys]


# ----------------------------
# Screen capture + coordinate mapping (mss + Pillow)
# ----------------------------

class ResolutionScaler(Scaler):
    """
    Downsizes screenshots to fit target_width x target_height (aspect ratio
    kept, never upscaled) and maps model-space points back to the monitor.
    """

    def __init__(self, target_width: int = 1024, target_height: int = 768, monitor_index: int = 1,
                 monitor: Optional[Dict[str, Any]] = None):
        self.monitor_index = monitor_index
        if monitor is None:
            with mss.mss() as sct:
                monitor = sct.monitors[monitor_index]
        self.left = monitor["left"]
        self.top = monitor["top"]
        self.width = monitor["width"]
        self.height = monitor["height"]
        self.factor = min(target_width / self.width, target_height / self.height, 1.0)
        self.model_size = (
            max(1, int(round(self.width * self.factor))),
            max(1, int(round(self.height * self.factor))),
        )
        logger.debug(
            f"Screen {self.width}x{self.height} -> model space "
            f"{self.model_size[0]}x{self.model_size[1]} (factor {self.factor:.3f})"
        )

    def scale_to_original_space(self, point: Point) -> Point:
        x = int(round(point[0] / self.factor))
        y = int(round(point[1] / self.factor))
        x = max(0, min(self.width - 1, x))
        y = max(0, min(self.height - 1, y))
        return (x + self.left, y + self.top)

    def scale_to_model_space(self, point: Point) -> Point:
        x = int(round((point[0] - self.left) * self.factor))
        y = int(round((point[1] - self.top) * self.factor))
        return (x, y)

    def capture(self) -> Image.Image:
        with mss.mss() as sct:
            shot = sct.grab(sct.monitors[self.monitor_index])
            return Image.frombytes("RGB", shot.size, shot.rgb)

    def take_screenshot(self, image: Optional[Image.Image] = None) -> bytes:
        img = image if image is not None else self.capture()
        if img.size != self.model_size:
            img = img.resize(self.model_size, Image.LANCZOS)
        buf = io.BytesIO()
        img.save(buf, format="PNG")
        return buf.getvalue()
