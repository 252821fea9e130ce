"""
Solana chain adapter: native SOL balances and Jupiter-routed swaps.
"""

import base64
from decimal import Decimal
from typing import Any, Dict, Optional

import aiohttp
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed
from solana.rpc.types import TokenAccountOpts, TxOpts
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.transaction import VersionedTransaction

from volumebot.config.settings import settings
from volumebot.core.chains.base import ChainAdapter
from volumebot.core.exceptions import ChainError
from volumebot.models.network import Network
from volumebot.models.trade import SwapResult, TradeSide
from volumebot.models.wallet import GeneratedWallet
from volumebot.utils.logger import get_logger

logger = get_logger(__name__)

LAMPORTS_PER_SOL = 1_000_000_000
WSOL_MINT = "So11111111111111111111111111111111111111112"


class SolanaAdapter(ChainAdapter):
    """Swaps SOL against SPL tokens through the Jupiter aggregator."""

    network = Network.SOLANA

    def __init__(
        self,
        rpc_url: str,
        jupiter_base_url: str,
        explorer_tx_url: str,
        client: Optional[AsyncClient] = None,
    ):
        super().__init__(explorer_tx_url)
        self.client = client or AsyncClient(rpc_url, commitment=Confirmed)
        self.jupiter_base_url = jupiter_base_url.rstrip("/")
        self.session: Optional[aiohttp.ClientSession] = None

    async def _http(self) -> aiohttp.ClientSession:
        """Get or create the HTTP session for the aggregator API."""
        if not self.session or self.session.closed:
            timeout = aiohttp.ClientTimeout(total=settings.http_timeout)
            self.session = aiohttp.ClientSession(timeout=timeout)
        return self.session

    async def close(self) -> None:
        if self.session and not self.session.closed:
            await self.session.close()
        await self.client.close()
        logger.info("Solana adapter closed")

    def generate_wallet(self) -> GeneratedWallet:
        keypair = Keypair()
        return GeneratedWallet(
            public_address=str(keypair.pubkey()),
            private_key_secret=bytes(keypair).hex(),
        )

    async def get_balance(self, address: str) -> Decimal:
        response = await self.client.get_balance(Pubkey.from_string(address))
        return Decimal(response.value) / Decimal(LAMPORTS_PER_SOL)

    async def execute_swap(
        self,
        private_key: str,
        token_address: str,
        amount: float,
        slippage_percent: float,
        side: TradeSide,
    ) -> SwapResult:
        keypair = Keypair.from_bytes(bytes.fromhex(private_key))

        if side is TradeSide.BUY:
            input_mint, output_mint = WSOL_MINT, token_address
            amount_in = int(Decimal(str(amount)) * LAMPORTS_PER_SOL)
        else:
            input_mint, output_mint = token_address, WSOL_MINT
            amount_in = await self._token_balance(keypair.pubkey(), token_address)
            if amount_in == 0:
                return SwapResult.failed("No token balance to sell.")

        quote = await self._get_quote(input_mint, output_mint, amount_in, slippage_percent)
        if quote is None:
            return SwapResult.failed("No Jupiter route found for this token.")

        tx_bytes = await self._get_swap_transaction(quote, str(keypair.pubkey()))
        unsigned = VersionedTransaction.from_bytes(tx_bytes)
        signed = VersionedTransaction(unsigned.message, [keypair])

        response = await self.client.send_raw_transaction(
            bytes(signed),
            opts=TxOpts(skip_preflight=False, preflight_commitment=Confirmed),
        )
        signature = response.value
        await self.client.confirm_transaction(signature, commitment=Confirmed)

        logger.debug("Solana swap confirmed", side=side.value, signature=str(signature))
        return SwapResult.ok(str(signature))

    async def _token_balance(self, owner: Pubkey, mint: str) -> int:
        """Raw SPL balance of ``mint`` summed over the owner's token accounts."""
        response = await self.client.get_token_accounts_by_owner_json_parsed(
            owner, TokenAccountOpts(mint=Pubkey.from_string(mint))
        )
        total = 0
        for keyed_account in response.value:
            parsed = keyed_account.account.data.parsed
            total += int(parsed["info"]["tokenAmount"]["amount"])
        return total

    async def _get_quote(
        self,
        input_mint: str,
        output_mint: str,
        amount: int,
        slippage_percent: float,
    ) -> Optional[Dict[str, Any]]:
        """Best route from Jupiter, or None when no route exists."""
        params = {
            "inputMint": input_mint,
            "outputMint": output_mint,
            "amount": str(amount),
            "slippageBps": str(int(round(slippage_percent * 100))),
        }
        http = await self._http()
        async with http.get(f"{self.jupiter_base_url}/quote", params=params) as response:
            if response.status == 400:
                return None
            response.raise_for_status()
            data = await response.json()

        if not data or "routePlan" not in data or "outAmount" not in data:
            logger.warning("Jupiter quote missing route", output_mint=output_mint)
            return None
        return data

    async def _get_swap_transaction(self, quote: Dict[str, Any], user_pubkey: str) -> bytes:
        payload = {
            "quoteResponse": quote,
            "userPublicKey": user_pubkey,
            "wrapAndUnwrapSol": True,
            "dynamicComputeUnitLimit": True,
            "prioritizationFeeLamports": "auto",
        }
        http = await self._http()
        async with http.post(f"{self.jupiter_base_url}/swap", json=payload) as response:
            response.raise_for_status()
            data = await response.json()

        if "swapTransaction" not in data:
            raise ChainError("Jupiter swap response has no transaction")
        return base64.b64decode(data["swapTransaction"])
