"""
Chain adapter interface shared by all supported networks.
"""

from abc import ABC, abstractmethod
from decimal import Decimal

from volumebot.models.network import Network
from volumebot.models.trade import SwapResult, TradeSide
from volumebot.models.wallet import GeneratedWallet


class ChainAdapter(ABC):
    """Uniform capability for one network: balances, key pairs and swaps."""
    
    network: Network
    
    def __init__(self, explorer_tx_url: str):
        self.explorer_tx_url = explorer_tx_url
    
    @abstractmethod
    def generate_wallet(self) -> GeneratedWallet:
        """Create a fresh key pair for this network."""
        pass
    
    @abstractmethod
    async def get_balance(self, address: str) -> Decimal:
        """
        Get the native-currency balance of an address.
        
        Raises:
            ChainError or any transport error when the balance cannot be read
        """
        pass
    
    @abstractmethod
    async def execute_swap(
        self,
        private_key: str,
        token_address: str,
        amount: float,
        slippage_percent: float,
        side: TradeSide,
    ) -> SwapResult:
        """
        Swap native currency for the token (buy) or the token for native currency (sell).
        
        Args:
            private_key: Signing key of the wallet
            token_address: Token under trade
            amount: Native amount to spend on a buy
            slippage_percent: Accepted slippage
            side: Trade side
            
        Returns:
            SwapResult with the transaction id or the error message
        """
        pass
    
    def explorer_url(self, tx_id: str) -> str:
        return f"{self.explorer_tx_url}{tx_id}"
    
    async def close(self) -> None:
        """Release network resources."""
        pass
