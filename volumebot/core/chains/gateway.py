"""
Chain gateway: selects the adapter for a network and shields callers from chain errors.
"""

from decimal import Decimal
from typing import Dict, List

from volumebot.config.settings import settings
from volumebot.core.chains.base import ChainAdapter
from volumebot.models.network import Network
from volumebot.models.trade import SwapResult, TradeSide
from volumebot.models.wallet import BALANCE_ERROR, Balance, GeneratedWallet
from volumebot.utils.logger import get_logger

logger = get_logger(__name__)


class ChainGateway:
    """Network-tagged access to balances, wallet generation and swaps."""

    def __init__(self, adapters: Dict[Network, ChainAdapter]):
        self.adapters = adapters

    def adapter(self, network: Network) -> ChainAdapter:
        try:
            return self.adapters[network]
        except KeyError:
            raise ValueError(f"No chain adapter configured for {network.value}")

    def generate_wallets(self, network: Network, count: int) -> List[GeneratedWallet]:
        """Generate ``count`` fresh key pairs on ``network``."""
        if count < 1 or count > settings.max_wallets:
            raise ValueError(f"Wallet count must be between 1 and {settings.max_wallets}")
        adapter = self.adapter(network)
        wallets = [adapter.generate_wallet() for _ in range(count)]
        logger.info("Generated wallets", network=network.value, count=count)
        return wallets

    async def get_balance(self, network: Network, address: str) -> Balance:
        """Native balance of ``address``, or BALANCE_ERROR when it cannot be read."""
        try:
            balance = await self.adapter(network).get_balance(address)
            return Decimal(balance)
        except Exception as e:
            logger.warning("Balance lookup failed", network=network.value, address=address, error=str(e))
            return BALANCE_ERROR

    async def execute_swap(
        self,
        network: Network,
        private_key: str,
        token_address: str,
        amount: float,
        slippage_percent: float,
        side: TradeSide,
    ) -> SwapResult:
        """Run one swap; any adapter exception becomes a failed SwapResult."""
        try:
            return await self.adapter(network).execute_swap(
                private_key, token_address, amount, slippage_percent, side
            )
        except Exception as e:
            logger.error("Swap failed", network=network.value, side=side.value, error=str(e))
            return SwapResult.failed(str(e) or type(e).__name__)

    def explorer_url(self, network: Network, tx_id: str) -> str:
        return self.adapter(network).explorer_url(tx_id)

    async def close(self) -> None:
        for adapter in self.adapters.values():
            try:
                await adapter.close()
            except Exception as e:
                logger.error("Failed to close chain adapter", network=adapter.network.value, error=str(e))


def build_gateway() -> ChainGateway:
    """Gateway wired to the configured RPC endpoints."""
    from volumebot.core.chains.evm import EvmAdapter
    from volumebot.core.chains.solana import SolanaAdapter

    return ChainGateway({
        Network.SOLANA: SolanaAdapter(
            rpc_url=settings.sol_rpc_url,
            jupiter_base_url=settings.jupiter_base_url,
            explorer_tx_url=settings.solscan_tx_url,
        ),
        Network.BSC: EvmAdapter(
            network=Network.BSC,
            rpc_url=settings.bsc_rpc_url,
            router_address=settings.pancake_router,
            wrapped_native=settings.wbnb_address,
            explorer_tx_url=settings.bscscan_tx_url,
        ),
        Network.ETHEREUM: EvmAdapter(
            network=Network.ETHEREUM,
            rpc_url=settings.eth_rpc_url,
            router_address=settings.uniswap_router,
            wrapped_native=settings.weth_address,
            explorer_tx_url=settings.etherscan_tx_url,
        ),
    })
