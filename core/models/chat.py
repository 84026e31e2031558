"""Chat log messages for the assistant side-channel"""

import time
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict


class ChatRole(Enum):
    USER = "user"
    MODEL = "model"


def _new_message_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass(frozen=True)
class ChatMessage:
    """A single entry in the chat log"""
    role: ChatRole
    text: str
    id: str = field(default_factory=_new_message_id)
    timestamp: float = field(default_factory=time.time)

    def with_fragment(self, fragment: str) -> "ChatMessage":
        """Copy of this message with ``fragment`` appended to its text"""
        return replace(self, text=self.text + fragment)

    def to_history_turn(self) -> Dict[str, Any]:
        """Role/parts shape expected by chat backends"""
        return {"role": self.role.value, "parts": [{"text": self.text}]}
