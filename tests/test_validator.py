"""
Tests for the execution precondition checks.
"""

from decimal import Decimal

from conftest import make_session

from volumebot.core.validator import PreconditionValidator, ValidationReason
from volumebot.models.network import Network
from volumebot.models.session import Session, Speed
from volumebot.models.wallet import BALANCE_ERROR


async def test_token_must_be_selected(gateway, validator):
    session = make_session(gateway, token_address=None)
    result = await validator.can_start_execution(session)
    assert not result.ok
    assert result.reason is ValidationReason.TOKEN_NOT_SELECTED


async def test_wallets_required_on_trade_network(gateway, validator):
    session = make_session(gateway, network=Network.BSC, wallet_count=0)
    session.replace_wallets(Network.SOLANA, gateway.generate_wallets(Network.SOLANA, 2))
    result = await validator.can_start_execution(session)
    assert result.reason is ValidationReason.NO_WALLETS


async def test_primary_wallet_underfunded(gateway, adapters, validator):
    session = make_session(gateway)
    adapters[Network.BSC].balances[session.trade_wallets[0].public_address] = Decimal("0.001")

    result = await validator.can_start_execution(session)

    assert result.reason is ValidationReason.INSUFFICIENT_PRIMARY_FUNDS
    assert result.reason.message.startswith("❌")
    # Stops before the sweep
    assert adapters[Network.BSC].balance_queries == [session.trade_wallets[0].public_address]
    assert Network.BSC not in session.active_execution


async def test_all_balances_unreadable_reports_all_unfunded(gateway, adapters, validator):
    session = make_session(gateway, wallet_count=2)
    adapters[Network.BSC].default_balance = BALANCE_ERROR

    result = await validator.can_start_execution(session)

    assert not result.ok
    assert result.reason is ValidationReason.ALL_WALLETS_UNFUNDED
    assert "All wallets have zero or insufficient balance" in result.reason.message
    assert result.sweep.balances == [BALANCE_ERROR, BALANCE_ERROR]
    assert session.active_execution[Network.BSC] is False
    assert adapters[Network.BSC].swaps == []


async def test_all_wallets_empty(gateway, adapters, validator):
    session = make_session(gateway, wallet_count=2)
    adapters[Network.BSC].balances[session.trade_wallets[0].public_address] = BALANCE_ERROR
    adapters[Network.BSC].balances[session.trade_wallets[1].public_address] = Decimal("0")

    result = await validator.can_start_execution(session)

    assert result.reason is ValidationReason.ALL_WALLETS_UNFUNDED
    assert session.active_execution[Network.BSC] is False


async def test_partial_funding_is_rejected_but_marks_network_active(gateway, adapters, validator):
    session = make_session(gateway, wallet_count=3, speed=Speed.SLOW, slippage_percent=1, buy_amount_per_tx=0.001)
    adapters[Network.BSC].balances[session.trade_wallets[2].public_address] = Decimal("0")

    result = await validator.can_start_execution(session)

    assert result.reason is ValidationReason.SOME_WALLETS_UNFUNDED
    assert result.sweep.any_funded is True
    assert result.sweep.all_funded is False
    assert result.sweep.funded_count == 2
    assert session.active_execution[Network.BSC] is True


async def test_partial_funding_warns_when_not_required(gateway, adapters):
    validator = PreconditionValidator(gateway, min_funding_balance=0.01, require_all_funded=False)
    session = make_session(gateway, wallet_count=3, speed=Speed.SLOW, slippage_percent=1, buy_amount_per_tx=0.001)
    adapters[Network.BSC].balances[session.trade_wallets[1].public_address] = Decimal("0")

    result = await validator.can_start_execution(session)

    assert result.ok
    assert result.warning == "⚠️ Only 2/3 wallets are funded."


async def test_configuration_prompts_in_order(gateway, validator):
    session = make_session(gateway)

    result = await validator.can_start_execution(session)
    assert result.reason is ValidationReason.NEEDS_SPEED
    assert result.recoverable

    session.speed = Speed.MODERATE
    result = await validator.can_start_execution(session)
    assert result.reason is ValidationReason.NEEDS_SLIPPAGE
    assert result.recoverable

    session.slippage_percent = 1.5
    result = await validator.can_start_execution(session)
    assert result.reason is ValidationReason.NEEDS_BUY_AMOUNT

    session.buy_amount_per_tx = 0.002
    result = await validator.can_start_execution(session)
    assert result.ok
    assert result.warning is None
    assert result.sweep.all_funded


async def test_rejections_are_not_recoverable(gateway, validator):
    result = await validator.can_start_execution(Session(user_id=5))
    assert not result.recoverable
    assert not ValidationReason.ALL_WALLETS_UNFUNDED.recoverable


async def test_sweep_reports_each_balance(gateway, adapters, validator):
    session = make_session(gateway, wallet_count=2)
    adapters[Network.BSC].balances[session.trade_wallets[1].public_address] = Decimal("0.5")

    sweep = await validator.sweep(session)

    assert sweep.balances == [Decimal("1"), Decimal("0.5")]
    assert sweep.funded == [True, True]


async def test_unreadable_primary_with_funded_wallets_is_partial_funding(gateway, adapters, validator):
    session = make_session(gateway, wallet_count=3, speed=Speed.SLOW, slippage_percent=1, buy_amount_per_tx=0.001)
    adapters[Network.BSC].balances[session.trade_wallets[0].public_address] = BALANCE_ERROR

    result = await validator.can_start_execution(session)

    assert result.reason is ValidationReason.SOME_WALLETS_UNFUNDED
    assert result.sweep.balances[0] == BALANCE_ERROR
    assert result.sweep.funded == [False, True, True]
    assert session.active_execution[Network.BSC] is True


async def test_unreadable_primary_warns_when_partial_funding_allowed(gateway, adapters):
    validator = PreconditionValidator(gateway, min_funding_balance=0.01, require_all_funded=False)
    session = make_session(gateway, wallet_count=3, speed=Speed.SLOW, slippage_percent=1, buy_amount_per_tx=0.001)
    adapters[Network.BSC].balances[session.trade_wallets[0].public_address] = BALANCE_ERROR

    result = await validator.can_start_execution(session)

    assert result.ok
    assert result.warning == "⚠️ Only 2/3 wallets are funded."
