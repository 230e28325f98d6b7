"""Conversation turns handed to a stream run."""

import base64
from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

USER = "user"
AGENT = "agent"

ROLE_ALIASES = {"assistant": AGENT, "model": AGENT}


@dataclass
class TextPart:
    text: str


@dataclass
class ImagePart:
    data: bytes
    mime_type: str = "image/png"

    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{base64.b64encode(self.data).decode('ascii')}"


Part = Union[TextPart, ImagePart]


@dataclass
class Turn:
    role: str
    parts: List[Part] = field(default_factory=list)

    def __post_init__(self):
        self.role = ROLE_ALIASES.get(self.role, self.role)
        if self.role not in (USER, AGENT):
            raise ValueError(f"Unknown role: {self.role!r}")

    @classmethod
    def text(cls, role: str, text: str) -> "Turn":
        return cls(role, [TextPart(text)])

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Turn":
        """Accepts {"role": ..., "content": "text"} as callers usually send it."""
        content = data.get("content", "")
        if isinstance(content, str):
            return cls.text(data["role"], content)
        return cls(data["role"], list(content))

    @property
    def is_user(self) -> bool:
        return self.role == USER

    def copy(self) -> "Turn":
        return Turn(self.role, list(self.parts))
