"""
Settings configuration for the Volume Bot.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import AliasChoices, Field
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Telegram Configuration
    telegram_bot_token: str = Field(default="")

    # RPC Endpoints
    sol_rpc_url: str = Field(default="https://api.mainnet-beta.solana.com")
    bsc_rpc_url: str = Field(default="https://bsc-dataseed.binance.org")
    eth_rpc_url: str = Field(default="https://eth.llamarpc.com")

    # Market Data / Aggregator APIs
    dexscreener_base_url: str = Field(default="https://api.dexscreener.com/latest/dex")
    jupiter_base_url: str = Field(default="https://lite-api.jup.ag/swap/v1")
    http_timeout: float = Field(default=10.0, gt=0)

    # EVM Router Configuration
    pancake_router: str = "0x10ED43C718714eb63d5aA57B78B54704E256024E"
    uniswap_router: str = "0x7a250d5630B4cF539739dF2C5dAcb4c659F2488D"
    wbnb_address: str = "0xbb4CdB9CBd36B01bD1cBaEBF2De08d9173bc095c"
    weth_address: str = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"
    swap_deadline_seconds: int = 600

    # Block Explorers
    etherscan_tx_url: str = "https://etherscan.io/tx/"
    bscscan_tx_url: str = "https://bscscan.com/tx/"
    solscan_tx_url: str = "https://solscan.io/tx/"

    # Scheduling Policy
    inter_round_delay: float = Field(default=20.0, ge=0)  # seconds
    min_funding_balance: float = Field(default=0.01, ge=0)
    gas_safety_floor: float = Field(default=0.002, ge=0)
    max_wallets: int = Field(default=20, ge=1)
    require_all_wallets_funded: bool = True

    # Session Defaults and Bounds
    default_slippage_percent: float = 1.0
    min_slippage_percent: float = 0.1
    max_slippage_percent: float = 50.0
    default_buy_amount: float = 0.001
    min_buy_amount: float = 0.0001
    max_buy_amount: float = 10.0

    # Server Configuration
    api_port: int = Field(default=3000, validation_alias=AliasChoices("port", "api_port"))

    # Logging
    log_level: str = Field(default="info")


# Global settings instance
settings = Settings()
