"""
Precondition checks run before a trading session may start.
"""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel

from volumebot.config.settings import settings
from volumebot.core.chains.gateway import ChainGateway
from volumebot.models.session import Session
from volumebot.models.wallet import BALANCE_ERROR, Balance, is_funded
from volumebot.utils.logger import get_logger

logger = get_logger(__name__)


class ValidationReason(str, Enum):
    """Why execution may not start yet."""
    TOKEN_NOT_SELECTED = "token_not_selected"
    NO_WALLETS = "no_wallets"
    INSUFFICIENT_PRIMARY_FUNDS = "insufficient_primary_funds"
    ALL_WALLETS_UNFUNDED = "all_wallets_unfunded"
    SOME_WALLETS_UNFUNDED = "some_wallets_unfunded"
    NEEDS_SPEED = "needs_speed"
    NEEDS_SLIPPAGE = "needs_slippage"
    NEEDS_BUY_AMOUNT = "needs_buy_amount"

    @property
    def recoverable(self) -> bool:
        """Recoverable reasons are prompts for missing input, not rejections."""
        return self in _PROMPTS

    @property
    def message(self) -> str:
        return REASON_MESSAGES[self]


_PROMPTS = {
    ValidationReason.NEEDS_SPEED,
    ValidationReason.NEEDS_SLIPPAGE,
    ValidationReason.NEEDS_BUY_AMOUNT,
}

REASON_MESSAGES = {
    ValidationReason.TOKEN_NOT_SELECTED: "Please enter a token mint address first.",
    ValidationReason.NO_WALLETS: "No wallets generated for this network. Please generate wallets first.",
    ValidationReason.INSUFFICIENT_PRIMARY_FUNDS: (
        "❌ <b>Insufficient funds in your wallet. Please fund your wallet before starting.</b>"
    ),
    ValidationReason.ALL_WALLETS_UNFUNDED: (
        "❌ <b>All wallets have zero or insufficient balance. "
        "Please fund your wallets before starting volume bot.</b>"
    ),
    ValidationReason.SOME_WALLETS_UNFUNDED: (
        "❌ <b>Some wallets are not funded. Please fund your wallets before starting volume bot.</b>"
    ),
    ValidationReason.NEEDS_SPEED: "Choose transaction speed:",
    ValidationReason.NEEDS_SLIPPAGE: "Enter slippage % (e.g. 0.5 for 0.5%, max 50, min 0.1, default 1):",
    ValidationReason.NEEDS_BUY_AMOUNT: "How much do you want to use for each buy transaction? (Default: 0.001)",
}


class FundingSweep(BaseModel):
    """Balances of every trade wallet, with both funding signals kept apart."""
    balances: List[Balance] = []
    funded: List[bool] = []
    any_funded: bool = False
    all_funded: bool = False

    @property
    def funded_count(self) -> int:
        return sum(self.funded)


class ValidationResult(BaseModel):
    """Outcome of the precondition checks."""
    ok: bool
    reason: Optional[ValidationReason] = None
    warning: Optional[str] = None
    sweep: Optional[FundingSweep] = None

    @classmethod
    def passed(cls, warning: Optional[str] = None, sweep: Optional[FundingSweep] = None) -> "ValidationResult":
        return cls(ok=True, warning=warning, sweep=sweep)

    @classmethod
    def rejected(cls, reason: ValidationReason, sweep: Optional[FundingSweep] = None) -> "ValidationResult":
        return cls(ok=False, reason=reason, sweep=sweep)

    @property
    def recoverable(self) -> bool:
        return self.reason is not None and self.reason.recoverable


class PreconditionValidator:
    """Decides whether a session may start trading."""

    def __init__(
        self,
        gateway: ChainGateway,
        min_funding_balance: Optional[float] = None,
        require_all_funded: Optional[bool] = None,
    ):
        self.gateway = gateway
        self.min_funding_balance = (
            settings.min_funding_balance if min_funding_balance is None else min_funding_balance
        )
        self.require_all_funded = (
            settings.require_all_wallets_funded if require_all_funded is None else require_all_funded
        )

    async def can_start_execution(self, session: Session) -> ValidationResult:
        """
        Run the checks in order, stopping at the first failure.

        Updates ``session.active_execution`` from the funding sweep even when
        execution is rejected.
        """
        # 1. Token and network
        if not session.has_token:
            return ValidationResult.rejected(ValidationReason.TOKEN_NOT_SELECTED)

        # 2. Wallets on the trade network
        network = session.trade_network
        wallets = session.trade_wallets
        if not wallets:
            return ValidationResult.rejected(ValidationReason.NO_WALLETS)

        # 3. Cheap check on the primary wallet. Only a readable low balance
        # rejects here; an unreadable one is left to the sweep, where it counts
        # as unfunded, so all-failing lookups end as ALL_WALLETS_UNFUNDED and a
        # failing primary with funded siblings ends as partial funding.
        primary = await self.gateway.get_balance(network, wallets[0].public_address)
        if primary is not BALANCE_ERROR and not is_funded(primary, self.min_funding_balance):
            logger.info("Primary wallet underfunded", user_id=session.user_id, network=network.value)
            return ValidationResult.rejected(ValidationReason.INSUFFICIENT_PRIMARY_FUNDS)

        # 4. Full sweep
        sweep = await self.sweep(session)
        session.active_execution[network] = sweep.any_funded
        if not sweep.any_funded:
            logger.info("No wallet funded", user_id=session.user_id, network=network.value)
            return ValidationResult.rejected(ValidationReason.ALL_WALLETS_UNFUNDED, sweep)

        warning = None
        if not sweep.all_funded:
            logger.info(
                "Wallets partially funded",
                user_id=session.user_id,
                network=network.value,
                funded=sweep.funded_count,
                total=len(wallets),
            )
            if self.require_all_funded:
                return ValidationResult.rejected(ValidationReason.SOME_WALLETS_UNFUNDED, sweep)
            warning = f"⚠️ Only {sweep.funded_count}/{len(wallets)} wallets are funded."

        # 5. Speed
        if session.speed is None:
            return ValidationResult.rejected(ValidationReason.NEEDS_SPEED, sweep)

        # 6. Slippage and amount per transaction
        if session.slippage_percent is None:
            return ValidationResult.rejected(ValidationReason.NEEDS_SLIPPAGE, sweep)
        if session.buy_amount_per_tx is None:
            return ValidationResult.rejected(ValidationReason.NEEDS_BUY_AMOUNT, sweep)

        return ValidationResult.passed(warning=warning, sweep=sweep)

    async def sweep(self, session: Session) -> FundingSweep:
        """Query every trade wallet's balance."""
        balances: List[Balance] = []
        for wallet in session.trade_wallets:
            balances.append(await self.gateway.get_balance(session.trade_network, wallet.public_address))

        funded = [is_funded(balance, self.min_funding_balance) for balance in balances]
        return FundingSweep(
            balances=balances,
            funded=funded,
            any_funded=any(funded),
            all_funded=bool(funded) and all(funded),
        )
