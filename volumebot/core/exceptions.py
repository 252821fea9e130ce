"""
Exception hierarchy for the Volume Bot.
"""

from typing import Optional


class VolumeBotError(Exception):
    """Base class for all Volume Bot errors."""


class InvalidTransitionError(VolumeBotError):
    """Raised when the state machine is asked for a transition its table forbids."""

    def __init__(self, current: Optional[str], target: Optional[str]):
        self.current = current
        self.target = target
        super().__init__(f"Invalid step transition: {current or 'idle'} -> {target or 'idle'}")


class ChainError(VolumeBotError):
    """Raised by chain adapters when an RPC or aggregator call cannot complete."""


class TokenLookupError(VolumeBotError):
    """Raised when the market-data lookup cannot be performed."""
