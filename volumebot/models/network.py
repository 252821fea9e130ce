"""
Network data models for the Volume Bot.
"""

from enum import Enum
from typing import List


class Network(str, Enum):
    """Supported blockchain networks."""
    SOLANA = "Solana"
    BSC = "BSC"
    ETHEREUM = "Ethereum"

    @property
    def native_symbol(self) -> str:
        """Ticker of the network's native currency."""
        return _NATIVE_SYMBOLS[self]

    @classmethod
    def labels(cls) -> List[str]:
        """Button labels in menu order."""
        return [network.value for network in cls]

    @classmethod
    def from_label(cls, label: str) -> "Network":
        """Parse a menu label; raises ValueError for anything else."""
        return cls(label.strip())


_NATIVE_SYMBOLS = {
    Network.SOLANA: "SOL",
    Network.BSC: "BNB",
    Network.ETHEREUM: "ETH",
}
