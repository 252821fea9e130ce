"""
Wallet data models for the Volume Bot.
"""

from decimal import Decimal
from enum import Enum
from typing import Union
from pydantic import BaseModel, SecretStr


class BalanceStatus(str, Enum):
    """Sentinel returned when a balance cannot be read."""
    ERROR = "Error"


BALANCE_ERROR = BalanceStatus.ERROR

# A native-currency balance, or the ERROR sentinel
Balance = Union[Decimal, BalanceStatus]


class GeneratedWallet(BaseModel):
    """Key pair produced by a chain adapter."""
    public_address: str
    private_key_secret: SecretStr

    model_config = {"frozen": True}

    def reveal_private_key(self) -> str:
        """Plain private key, for signing and the one-time disclosure view."""
        return self.private_key_secret.get_secret_value()


def is_funded(balance: Balance, threshold: float) -> bool:
    """True when ``balance`` is readable and at least ``threshold``."""
    if balance is BALANCE_ERROR:
        return False
    return Decimal(balance) >= Decimal(str(threshold))


def format_balance(balance: Balance) -> str:
    """Render a balance the way the wallet views show it."""
    if balance is BALANCE_ERROR:
        return BALANCE_ERROR.value
    return f"{Decimal(balance).normalize():f}"
