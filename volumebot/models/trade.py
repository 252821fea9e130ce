"""
Trade data models for the Volume Bot.
"""

import html
from typing import List, Optional
from pydantic import BaseModel, Field
from enum import Enum
from datetime import datetime, timezone

from volumebot.models.network import Network


class TradeSide(str, Enum):
    """Trade side enumeration."""
    BUY = "buy"
    SELL = "sell"


class SwapResult(BaseModel):
    """Outcome reported by a chain adapter for one swap."""
    success: bool
    tx_id: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, tx_id: str) -> "SwapResult":
        return cls(success=True, tx_id=tx_id)

    @classmethod
    def failed(cls, error: str) -> "SwapResult":
        return cls(success=False, error=error)


class OutcomeKind(str, Enum):
    """Operation outcome enumeration."""
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class OperationOutcome(BaseModel):
    """One entry of a cycle's operation log."""
    side: TradeSide
    kind: OutcomeKind
    wallet_address: str
    tx_id: Optional[str] = None
    explorer_url: Optional[str] = None
    error: Optional[str] = None
    recorded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def render(self) -> str:
        """Explorer URL, error string or skip note, as shown in the TRX views."""
        if self.kind is OutcomeKind.SUCCESS:
            return self.explorer_url or self.tx_id or ""
        if self.kind is OutcomeKind.SKIPPED:
            return f"Skipped (low balance): <code>{self.wallet_address}</code>"
        return f"Error: {html.escape(self.error or '')}"


class CycleResult(BaseModel):
    """Aggregate of one buy or sell cycle."""
    network: Network
    side: TradeSide
    total_operations: int
    rounds: int
    sent: int = 0
    outcomes: List[OperationOutcome] = []
    skipped_wallets: List[str] = []

    def count(self, kind: OutcomeKind) -> int:
        return sum(1 for outcome in self.outcomes if outcome.kind is kind)

    @property
    def succeeded(self) -> int:
        return self.count(OutcomeKind.SUCCESS)

    @property
    def failed(self) -> int:
        return self.count(OutcomeKind.FAILED)

    @property
    def skipped(self) -> int:
        return self.count(OutcomeKind.SKIPPED)

    def summary(self) -> str:
        """Final user-facing summary of the cycle."""
        if self.side is TradeSide.BUY:
            text = "✅ <b>Buy operation complete!</b> You can now Dump tokens or check TRX."
        else:
            text = "✅ <b>Dump successful. Bot stopped.</b> See TRX Sell for details."
        if self.failed:
            text += f"\n⚠️ {self.failed}/{self.total_operations} transactions failed."
        if self.side is TradeSide.SELL and self.skipped_wallets:
            text += "\n\n<b>Skipped wallets (low balance):</b>\n"
            text += "".join(f"<code>{address}</code>\n" for address in self.skipped_wallets)
        return text


class TokenInfo(BaseModel):
    """Token metadata resolved from market data."""
    address: str
    network: Network
    chain_id: str = ""
    name: str = ""
    symbol: str = ""
    price_usd: Optional[str] = None
    volume_24h: Optional[float] = None

    @property
    def has_market_data(self) -> bool:
        return self.price_usd is not None and self.volume_24h is not None
