"""
Transport-neutral reply models for the Volume Bot.
"""

from typing import List, Optional
from pydantic import BaseModel
from enum import Enum


class KeyboardKind(str, Enum):
    """Keyboard rendering style."""
    REPLY = "reply"    # persistent buttons that send their label as text
    INLINE = "inline"  # buttons attached to a message that send an action id


class Button(BaseModel):
    """Keyboard button."""
    label: str
    action: Optional[str] = None


class Keyboard(BaseModel):
    """Keyboard layout attached to an outgoing message."""
    kind: KeyboardKind = KeyboardKind.REPLY
    rows: List[List[Button]] = []

    model_config = {"frozen": True}

    @classmethod
    def reply(cls, *rows: List[str]) -> "Keyboard":
        return cls(kind=KeyboardKind.REPLY, rows=[[Button(label=label) for label in row] for row in rows])

    @classmethod
    def inline(cls, *rows: List[Button]) -> "Keyboard":
        return cls(kind=KeyboardKind.INLINE, rows=[list(row) for row in rows])
