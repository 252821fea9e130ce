"""
Shared fixtures: in-memory chain adapters, token lookup and messenger.
"""

from decimal import Decimal
from typing import Dict, List, Optional

import pytest

from volumebot.core.chains.base import ChainAdapter
from volumebot.core.chains.gateway import ChainGateway
from volumebot.core.exceptions import ChainError, TokenLookupError
from volumebot.core.messenger import Messenger
from volumebot.core.scheduler import ExecutionScheduler, SchedulePolicy
from volumebot.core.session_store import SessionStore
from volumebot.core.state_machine import SessionStateMachine
from volumebot.core.validator import PreconditionValidator
from volumebot.models.network import Network
from volumebot.models.reply import Keyboard
from volumebot.models.session import Session, Speed
from volumebot.models.trade import SwapResult, TokenInfo, TradeSide
from volumebot.models.wallet import BALANCE_ERROR, Balance, GeneratedWallet

EVM_TOKEN = "0x" + "ab" * 20
SOL_TOKEN = "So11111111111111111111111111111111111111112"


class FakeAdapter(ChainAdapter):
    """Chain adapter with scripted balances and swap results."""

    def __init__(self, network: Network):
        super().__init__(f"https://explorer.test/{network.value.lower()}/tx/")
        self.network = network
        self.balances: Dict[str, Balance] = {}
        self.default_balance: Balance = Decimal("1")
        self.swap_error: Optional[str] = None
        self.swaps: List[dict] = []
        self.balance_queries: List[str] = []
        self._counter = 0

    def generate_wallet(self) -> GeneratedWallet:
        self._counter += 1
        return GeneratedWallet(
            public_address=f"{self.network.value.lower()}-wallet-{self._counter}",
            private_key_secret=f"{self.network.value.lower()}-key-{self._counter}",
        )

    async def get_balance(self, address: str) -> Decimal:
        self.balance_queries.append(address)
        balance = self.balances.get(address, self.default_balance)
        if balance is BALANCE_ERROR:
            raise ChainError(f"RPC unavailable for {address}")
        return balance

    async def execute_swap(self, private_key, token_address, amount, slippage_percent, side) -> SwapResult:
        self.swaps.append({
            "private_key": private_key,
            "token_address": token_address,
            "amount": amount,
            "slippage_percent": slippage_percent,
            "side": side,
        })
        if self.swap_error:
            raise ChainError(self.swap_error)
        return SwapResult.ok(f"tx-{len(self.swaps)}")


class FakeTokenClient:
    """Token lookup answering from a dict."""

    def __init__(self):
        self.tokens: Dict[str, TokenInfo] = {}
        self.fail = False
        self.lookups: List[str] = []

    async def identify_token(self, address: str) -> Optional[TokenInfo]:
        self.lookups.append(address)
        if self.fail:
            raise TokenLookupError("DexScreener unreachable")
        return self.tokens.get(address)


class RecordingMessenger(Messenger):
    """Keeps every outgoing message for inspection."""

    def __init__(self):
        self.messages: List[tuple] = []

    async def send_message(self, user_id: int, text: str, keyboard: Optional[Keyboard] = None) -> None:
        self.messages.append((user_id, text, keyboard))

    @property
    def texts(self) -> List[str]:
        return [text for _, text, _ in self.messages]

    @property
    def last_text(self) -> str:
        return self.messages[-1][1]

    @property
    def last_keyboard(self) -> Optional[Keyboard]:
        return self.messages[-1][2]


class RecordingSleep:
    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def adapters() -> Dict[Network, FakeAdapter]:
    return {network: FakeAdapter(network) for network in Network}


@pytest.fixture
def gateway(adapters) -> ChainGateway:
    return ChainGateway(adapters)


@pytest.fixture
def sleeper() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def policy() -> SchedulePolicy:
    return SchedulePolicy(inter_round_delay=20, gas_safety_floor=0.002)


@pytest.fixture
def scheduler(gateway, policy, sleeper) -> ExecutionScheduler:
    return ExecutionScheduler(gateway, policy, sleep=sleeper)


@pytest.fixture
def validator(gateway) -> PreconditionValidator:
    return PreconditionValidator(gateway, min_funding_balance=0.01, require_all_funded=True)


@pytest.fixture
def store() -> SessionStore:
    return SessionStore()


@pytest.fixture
def messenger() -> RecordingMessenger:
    return RecordingMessenger()


@pytest.fixture
def token_client() -> FakeTokenClient:
    client = FakeTokenClient()
    client.tokens[EVM_TOKEN] = TokenInfo(
        address=EVM_TOKEN,
        network=Network.BSC,
        chain_id="bsc",
        name="Test Token",
        symbol="TT",
        price_usd="0.0123",
        volume_24h=45678.0,
    )
    client.tokens[SOL_TOKEN] = TokenInfo(address=SOL_TOKEN, network=Network.SOLANA, chain_id="solana")
    return client


@pytest.fixture
def machine(store, messenger, gateway, token_client, validator, scheduler) -> SessionStateMachine:
    return SessionStateMachine(store, messenger, gateway, token_client, validator, scheduler)


def make_session(
    gateway: ChainGateway,
    user_id: int = 1,
    network: Network = Network.BSC,
    wallet_count: int = 3,
    token_address: Optional[str] = EVM_TOKEN,
    speed: Optional[Speed] = None,
    slippage_percent: Optional[float] = None,
    buy_amount_per_tx: Optional[float] = None,
) -> Session:
    """Session with generated wallets and, optionally, a selected token and configuration."""
    session = Session(user_id=user_id)
    if wallet_count:
        session.replace_wallets(network, gateway.generate_wallets(network, wallet_count))
    if token_address:
        session.select_token(network, token_address)
    session.speed = speed
    session.slippage_percent = slippage_percent
    session.buy_amount_per_tx = buy_amount_per_tx
    return session


def swaps_by_side(adapter: FakeAdapter, side: TradeSide) -> List[dict]:
    return [swap for swap in adapter.swaps if swap["side"] is side]
