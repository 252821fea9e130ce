"""
Token metadata lookup through the DexScreener API.
"""

import asyncio
from typing import Any, Dict, Optional

import aiohttp

from volumebot.config.settings import settings
from volumebot.core.exceptions import TokenLookupError
from volumebot.models.network import Network
from volumebot.models.trade import TokenInfo
from volumebot.utils.logger import get_logger

logger = get_logger(__name__)


def network_from_chain(chain: str) -> Optional[Network]:
    """Map a DexScreener chain id or name to a supported network."""
    chain = chain.lower()
    if "bsc" in chain:
        return Network.BSC
    if "eth" in chain:
        return Network.ETHEREUM
    if "sol" in chain:
        return Network.SOLANA
    return None


def parse_token_response(address: str, data: Dict[str, Any]) -> Optional[TokenInfo]:
    """
    Build TokenInfo from a ``/tokens/{address}`` response.

    Only the first pair is considered. Returns None when there are no pairs
    or the pair's chain is not supported.
    """
    pairs = data.get("pairs") or []
    if not pairs:
        return None

    pair = pairs[0]
    chain = pair.get("chainId") or pair.get("chainName") or ""
    network = network_from_chain(chain)
    if network is None:
        return None

    base_token = pair.get("baseToken") or {}
    price = pair.get("priceUsd")
    volume = (pair.get("volume") or {}).get("h24")
    has_market_data = bool(price) and bool(volume)

    return TokenInfo(
        address=address,
        network=network,
        chain_id=chain,
        name=base_token.get("name") or "",
        symbol=base_token.get("symbol") or "",
        price_usd=str(price) if has_market_data else None,
        volume_24h=float(volume) if has_market_data else None,
    )


class TokenInfoClient:
    """DexScreener client used to identify the network and metadata of a token."""

    def __init__(self, base_url: Optional[str] = None):
        self.base_url = (base_url or settings.dexscreener_base_url).rstrip("/")
        self.session: Optional[aiohttp.ClientSession] = None

    async def initialize(self) -> None:
        """Initialize the HTTP session."""
        if not self.session or self.session.closed:
            timeout = aiohttp.ClientTimeout(total=settings.http_timeout)
            self.session = aiohttp.ClientSession(timeout=timeout)

    async def close(self) -> None:
        """Close the HTTP session."""
        if self.session and not self.session.closed:
            await self.session.close()
            logger.info("Token info client closed")

    async def identify_token(self, address: str) -> Optional[TokenInfo]:
        """
        Identify a token by address.

        Args:
            address: Token mint / contract address

        Returns:
            TokenInfo, or None when DexScreener knows no supported pair for it

        Raises:
            TokenLookupError: If the API cannot be reached or answers garbage
        """
        await self.initialize()
        url = f"{self.base_url}/tokens/{address}"
        try:
            async with self.session.get(url) as response:
                response.raise_for_status()
                data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error("Error fetching from DexScreener", address=address, error=str(e))
            raise TokenLookupError(str(e)) from e

        token = parse_token_response(address, data or {})
        if token:
            logger.info("Token identified", address=address, network=token.network.value, chain=token.chain_id)
        else:
            logger.info("Token not identified", address=address)
        return token
