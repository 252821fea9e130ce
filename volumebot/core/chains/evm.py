"""
EVM chain adapter (Ethereum via Uniswap V2, BSC via PancakeSwap).
"""

import time
from decimal import Decimal
from typing import Any, Dict, List, Optional

from eth_account import Account
from web3 import AsyncWeb3, Web3
from web3.providers.rpc import AsyncHTTPProvider

from volumebot.config.settings import settings
from volumebot.core.chains.base import ChainAdapter
from volumebot.core.exceptions import ChainError
from volumebot.models.network import Network
from volumebot.models.trade import SwapResult, TradeSide
from volumebot.models.wallet import GeneratedWallet
from volumebot.utils.logger import get_logger

logger = get_logger(__name__)

# Uniswap V2 style router (shared by PancakeSwap), trimmed to what we call
ROUTER_ABI: List[Dict[str, Any]] = [
    {
        "inputs": [
            {"internalType": "uint256", "name": "amountIn", "type": "uint256"},
            {"internalType": "address[]", "name": "path", "type": "address[]"},
        ],
        "name": "getAmountsOut",
        "outputs": [{"internalType": "uint256[]", "name": "amounts", "type": "uint256[]"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            {"internalType": "uint256", "name": "amountOutMin", "type": "uint256"},
            {"internalType": "address[]", "name": "path", "type": "address[]"},
            {"internalType": "address", "name": "to", "type": "address"},
            {"internalType": "uint256", "name": "deadline", "type": "uint256"},
        ],
        "name": "swapExactETHForTokens",
        "outputs": [{"internalType": "uint256[]", "name": "amounts", "type": "uint256[]"}],
        "stateMutability": "payable",
        "type": "function",
    },
    {
        "inputs": [
            {"internalType": "uint256", "name": "amountIn", "type": "uint256"},
            {"internalType": "uint256", "name": "amountOutMin", "type": "uint256"},
            {"internalType": "address[]", "name": "path", "type": "address[]"},
            {"internalType": "address", "name": "to", "type": "address"},
            {"internalType": "uint256", "name": "deadline", "type": "uint256"},
        ],
        "name": "swapExactTokensForETH",
        "outputs": [{"internalType": "uint256[]", "name": "amounts", "type": "uint256[]"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]

ERC20_ABI: List[Dict[str, Any]] = [
    {
        "constant": True,
        "inputs": [{"name": "_owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "balance", "type": "uint256"}],
        "type": "function",
    },
    {
        "constant": False,
        "inputs": [
            {"name": "_spender", "type": "address"},
            {"name": "_value", "type": "uint256"},
        ],
        "name": "approve",
        "outputs": [{"name": "success", "type": "bool"}],
        "type": "function",
    },
]

PRICE_FETCH_ERROR = "Failed to fetch price for slippage calculation."


class EvmAdapter(ChainAdapter):
    """Swaps native currency against a token through a V2 router."""
    
    def __init__(
        self,
        network: Network,
        rpc_url: str,
        router_address: str,
        wrapped_native: str,
        explorer_tx_url: str,
        w3: Optional[AsyncWeb3] = None,
    ):
        super().__init__(explorer_tx_url)
        self.network = network
        self.w3 = w3 or AsyncWeb3(AsyncHTTPProvider(rpc_url))
        self.router_address = Web3.to_checksum_address(router_address)
        self.wrapped_native = Web3.to_checksum_address(wrapped_native)
    
    def generate_wallet(self) -> GeneratedWallet:
        account = Account.create()
        return GeneratedWallet(
            public_address=account.address,
            private_key_secret=Web3.to_hex(account.key),
        )
    
    async def get_balance(self, address: str) -> Decimal:
        balance_wei = await self.w3.eth.get_balance(Web3.to_checksum_address(address))
        return Decimal(balance_wei) / Decimal(10**18)
    
    async def execute_swap(
        self,
        private_key: str,
        token_address: str,
        amount: float,
        slippage_percent: float,
        side: TradeSide,
    ) -> SwapResult:
        account = Account.from_key(private_key)
        token = Web3.to_checksum_address(token_address)
        router = self.w3.eth.contract(address=self.router_address, abi=ROUTER_ABI)
        deadline = int(time.time()) + settings.swap_deadline_seconds
        
        if side is TradeSide.BUY:
            path = [self.wrapped_native, token]
            amount_in = Web3.to_wei(Decimal(str(amount)), "ether")
            min_out = await self._min_amount_out(router, amount_in, path, slippage_percent)
            if min_out is None:
                return SwapResult.failed(PRICE_FETCH_ERROR)
            call = router.functions.swapExactETHForTokens(min_out, path, account.address, deadline)
            tx_hash = await self._send(account, call, value=amount_in)
        else:
            erc20 = self.w3.eth.contract(address=token, abi=ERC20_ABI)
            token_balance = await erc20.functions.balanceOf(account.address).call()
            if token_balance == 0:
                return SwapResult.failed("No token balance to sell.")
            
            # Approve the router for the whole balance, then dump it
            await self._send(account, erc20.functions.approve(self.router_address, token_balance))
            path = [token, self.wrapped_native]
            min_out = await self._min_amount_out(router, token_balance, path, slippage_percent)
            if min_out is None:
                return SwapResult.failed(PRICE_FETCH_ERROR)
            call = router.functions.swapExactTokensForETH(
                token_balance, min_out, path, account.address, deadline
            )
            tx_hash = await self._send(account, call)
        
        logger.debug("EVM swap confirmed", network=self.network.value, side=side.value, tx_hash=tx_hash)
        return SwapResult.ok(tx_hash)
    
    async def _min_amount_out(self, router, amount_in: int, path: List[str], slippage_percent: float) -> Optional[int]:
        """Expected output minus slippage, or None when the router cannot quote."""
        try:
            amounts_out = await router.functions.getAmountsOut(amount_in, path).call()
        except Exception as e:
            logger.warning("Router quote failed", network=self.network.value, error=str(e))
            return None
        expected = Decimal(amounts_out[-1])
        return int(expected - expected * Decimal(str(slippage_percent)) / Decimal(100))
    
    async def _send(self, account, call, value: int = 0) -> str:
        """Build, sign and broadcast a contract call; wait for the receipt."""
        tx = await call.build_transaction({
            "from": account.address,
            "value": value,
            "nonce": await self.w3.eth.get_transaction_count(account.address),
        })
        signed = account.sign_transaction(tx)
        tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
        receipt = await self.w3.eth.wait_for_transaction_receipt(tx_hash)
        tx_id = Web3.to_hex(tx_hash)
        if receipt["status"] != 1:
            raise ChainError(f"Transaction {tx_id} reverted")
        return tx_id
