"""
Outbound messaging interface implemented by the chat transport.
"""

from abc import ABC, abstractmethod
from typing import Optional

from volumebot.models.reply import Keyboard


class Messenger(ABC):
    """Delivers HTML messages, with an optional keyboard, to a user."""
    
    @abstractmethod
    async def send_message(self, user_id: int, text: str, keyboard: Optional[Keyboard] = None) -> None:
        """
        Send a message to a user.
        
        Implementations must fall back to plain text when HTML rendering fails.
        """
        pass
