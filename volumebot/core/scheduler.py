"""
Batched buy/sell execution across a session's wallets.
"""

import asyncio
import math
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Optional, Tuple

from volumebot.config.settings import settings
from volumebot.core.chains.gateway import ChainGateway
from volumebot.models.network import Network
from volumebot.models.session import SPEED_TIERS, Session, Speed, SpeedTier
from volumebot.models.trade import CycleResult, OperationOutcome, OutcomeKind, TradeSide
from volumebot.models.wallet import GeneratedWallet, is_funded
from volumebot.utils.logger import get_logger

logger = get_logger(__name__)

ProgressCallback = Callable[[str], Awaitable[None]]
SleepFunction = Callable[[float], Awaitable[None]]


@dataclass
class SchedulePolicy:
    """Throttling and safety parameters of a cycle."""
    inter_round_delay: float = 20.0
    gas_safety_floor: float = 0.002
    tiers: Dict[Speed, SpeedTier] = field(default_factory=lambda: dict(SPEED_TIERS))

    @classmethod
    def from_settings(cls) -> "SchedulePolicy":
        return cls(
            inter_round_delay=settings.inter_round_delay,
            gas_safety_floor=settings.gas_safety_floor,
        )

    def tier(self, speed: Optional[Speed]) -> SpeedTier:
        return self.tiers[speed or Speed.SLOW]


def plan_cycle(wallet_count: int, tier: SpeedTier) -> Tuple[int, int]:
    """
    Size a cycle.

    Returns:
        (total_operations, rounds) where total is wallets * rate and rounds
        is ceil(rate / tx_per_wallet_per_round)
    """
    total_operations = wallet_count * tier.rate
    rounds = math.ceil(tier.rate / tier.tx_per_wallet_per_round)
    return total_operations, rounds


class ExecutionScheduler:
    """Runs buy/sell cycles round by round, one wallet operation at a time."""

    def __init__(
        self,
        gateway: ChainGateway,
        policy: Optional[SchedulePolicy] = None,
        sleep: SleepFunction = asyncio.sleep,
    ):
        self.gateway = gateway
        self.policy = policy or SchedulePolicy.from_settings()
        self.sleep = sleep

    async def run_cycle(
        self,
        session: Session,
        side: TradeSide,
        progress: Optional[ProgressCallback] = None,
    ) -> CycleResult:
        """
        Run one full cycle for the session's trade network and token.

        Every operation consumes budget whether it succeeds, fails or is
        skipped; a failure never stops the cycle.

        Args:
            session: Session with token, wallets and configuration set
            side: Buy or sell
            progress: Called with a progress line after each round

        Returns:
            CycleResult holding the per-operation log
        """
        network = session.trade_network
        token_address = session.token_address
        if network is None or token_address is None:
            raise ValueError("Cannot run a cycle without a selected token")

        wallets = session.trade_wallets
        tier = self.policy.tier(session.speed)
        per_round = tier.tx_per_wallet_per_round
        total_operations, rounds = plan_cycle(len(wallets), tier)
        amount = session.buy_amount_per_tx if session.buy_amount_per_tx is not None else settings.default_buy_amount
        slippage = (
            session.slippage_percent if session.slippage_percent is not None else settings.default_slippage_percent
        )

        result = CycleResult(network=network, side=side, total_operations=total_operations, rounds=rounds)
        session.last_operation_log[network] = result.outcomes
        session.active_execution[network] = True

        logger.info(
            "Cycle started",
            user_id=session.user_id,
            network=network.value,
            side=side.value,
            wallets=len(wallets),
            total_operations=total_operations,
            rounds=rounds,
        )

        for round_index in range(rounds):
            for wallet in wallets:
                for _ in range(per_round):
                    if result.sent >= total_operations:
                        break
                    outcome = await self._run_operation(network, wallet, token_address, amount, slippage, side)
                    result.outcomes.append(outcome)
                    if outcome.kind is OutcomeKind.SKIPPED and wallet.public_address not in result.skipped_wallets:
                        result.skipped_wallets.append(wallet.public_address)
                    result.sent += 1

            await self._notify(progress, f"{result.sent}/{total_operations} {side.value} transactions sent...")
            logger.debug("Round finished", user_id=session.user_id, round=round_index + 1, sent=result.sent)

            if result.sent < total_operations:
                await self.sleep(self.policy.inter_round_delay)

        if side is TradeSide.SELL:
            # A dump ends trading on this network
            session.active_execution[network] = False
            session.execution_ready = False

        logger.info(
            "Cycle finished",
            user_id=session.user_id,
            network=network.value,
            side=side.value,
            sent=result.sent,
            succeeded=result.succeeded,
            failed=result.failed,
            skipped=result.skipped,
        )
        return result

    async def _run_operation(
        self,
        network: Network,
        wallet: GeneratedWallet,
        token_address: str,
        amount: float,
        slippage: float,
        side: TradeSide,
    ) -> OperationOutcome:
        address = wallet.public_address

        if side is TradeSide.SELL:
            # Never broadcast a sell the wallet cannot pay fees for
            balance = await self.gateway.get_balance(network, address)
            if not is_funded(balance, self.policy.gas_safety_floor):
                logger.info("Wallet skipped, low balance", network=network.value, address=address)
                return OperationOutcome(side=side, kind=OutcomeKind.SKIPPED, wallet_address=address)

        swap = await self.gateway.execute_swap(
            network, wallet.reveal_private_key(), token_address, amount, slippage, side
        )
        if swap.success and swap.tx_id:
            return OperationOutcome(
                side=side,
                kind=OutcomeKind.SUCCESS,
                wallet_address=address,
                tx_id=swap.tx_id,
                explorer_url=self.gateway.explorer_url(network, swap.tx_id),
            )
        return OperationOutcome(
            side=side,
            kind=OutcomeKind.FAILED,
            wallet_address=address,
            error=swap.error or "Unknown error",
        )

    async def _notify(self, progress: Optional[ProgressCallback], text: str) -> None:
        if progress is None:
            return
        try:
            await progress(text)
        except Exception as e:
            logger.error("Failed to deliver progress update", error=str(e))
