"""
Session data models for the Volume Bot.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional
from pydantic import BaseModel
from enum import Enum

from volumebot.models.network import Network
from volumebot.models.trade import OperationOutcome
from volumebot.models.wallet import GeneratedWallet


class Step(str, Enum):
    """Conversation steps awaiting user input. ``None`` on a session means idle."""
    AWAITING_WALLET_COUNT = "awaiting_wallet_count"
    AWAITING_WALLET_NETWORK = "awaiting_wallet_network"
    AWAITING_TOKEN_ADDRESS = "awaiting_token_address"
    AWAITING_SLIPPAGE = "awaiting_slippage"
    AWAITING_BUY_AMOUNT = "awaiting_buy_amount"


@dataclass(frozen=True)
class SpeedTier:
    """Operations per batch window and how many of them each wallet sends per round."""
    label: str
    rate: int
    tx_per_wallet_per_round: int


class Speed(str, Enum):
    """Transaction speed enumeration."""
    SLOW = "slow"
    MODERATE = "moderate"
    FAST = "fast"


SPEED_TIERS: Dict[Speed, SpeedTier] = {
    Speed.SLOW: SpeedTier("🐢 Slow (4 trx/20s)", rate=4, tx_per_wallet_per_round=1),
    Speed.MODERATE: SpeedTier("🚗 Moderate (9 trx/20s)", rate=9, tx_per_wallet_per_round=2),
    Speed.FAST: SpeedTier("🚀 Fast (12 trx/20s)", rate=12, tx_per_wallet_per_round=4),
}


class Session(BaseModel):
    """Per-user conversation and trading state. Lives in process memory only."""
    user_id: int
    current_step: Optional[Step] = None
    previous_step: Optional[Step] = None
    wallets: Dict[Network, List[GeneratedWallet]] = {}
    wallet_count: Optional[int] = None
    trade_network: Optional[Network] = None
    token_address: Optional[str] = None
    speed: Optional[Speed] = None
    slippage_percent: Optional[float] = None
    buy_amount_per_tx: Optional[float] = None
    execution_ready: bool = False
    active_execution: Dict[Network, bool] = {}
    last_operation_log: Dict[Network, List[OperationOutcome]] = {}

    def wallets_for(self, network: Optional[Network]) -> List[GeneratedWallet]:
        """Wallets generated on ``network`` (empty when none or no network)."""
        if network is None:
            return []
        return self.wallets.get(network, [])

    @property
    def trade_wallets(self) -> List[GeneratedWallet]:
        return self.wallets_for(self.trade_network)

    @property
    def has_token(self) -> bool:
        return self.trade_network is not None and self.token_address is not None

    def select_token(self, network: Network, token_address: str) -> None:
        """Set the traded token; configuration tied to the old network is reset."""
        self.trade_network = network
        self.token_address = token_address
        self.slippage_percent = None
        self.buy_amount_per_tx = None
        self.execution_ready = False

    def replace_wallets(self, network: Network, wallets: List[GeneratedWallet]) -> None:
        self.wallets[network] = list(wallets)

    def is_configuration_complete(self) -> bool:
        """True when every input the ready gate depends on is present."""
        return (
            self.has_token
            and bool(self.trade_wallets)
            and self.speed is not None
            and self.slippage_percent is not None
            and self.buy_amount_per_tx is not None
        )

    def mark_ready(self) -> bool:
        """Open the execution gate if the configuration allows it."""
        self.execution_ready = self.is_configuration_complete()
        return self.execution_ready
