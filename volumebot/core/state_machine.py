"""
Conversation state machine of the Volume Bot.

Interprets each inbound message or button action against the user's current
step, moves the session along the transition table and calls the validator,
classifier and scheduler when a step needs them.
"""

import html
import math
from typing import Awaitable, Callable, Dict, FrozenSet, Optional

from volumebot.config.settings import settings
from volumebot.core import menus
from volumebot.core.chains.gateway import ChainGateway
from volumebot.core.classifier import classify
from volumebot.core.exceptions import InvalidTransitionError, TokenLookupError
from volumebot.core.messenger import Messenger
from volumebot.core.scheduler import ExecutionScheduler
from volumebot.core.session_store import SessionStore
from volumebot.core.token_info import TokenInfoClient
from volumebot.core.validator import PreconditionValidator, ValidationReason
from volumebot.models.network import Network
from volumebot.models.reply import Keyboard
from volumebot.models.session import SPEED_TIERS, Session, Step
from volumebot.models.trade import TradeSide
from volumebot.models.wallet import format_balance
from volumebot.utils.logger import get_logger

logger = get_logger(__name__)

# Step-specific transitions; None is the idle state
TRANSITIONS: Dict[Optional[Step], FrozenSet[Optional[Step]]] = {
    None: frozenset({None}),
    Step.AWAITING_WALLET_COUNT: frozenset({Step.AWAITING_WALLET_NETWORK}),
    Step.AWAITING_WALLET_NETWORK: frozenset({None}),
    Step.AWAITING_TOKEN_ADDRESS: frozenset({None}),
    Step.AWAITING_SLIPPAGE: frozenset({Step.AWAITING_BUY_AMOUNT}),
    Step.AWAITING_BUY_AMOUNT: frozenset({None}),
}

# Menu buttons and "Back to Main" work from every step
GLOBAL_TARGETS: FrozenSet[Optional[Step]] = frozenset({
    None,
    Step.AWAITING_WALLET_COUNT,
    Step.AWAITING_TOKEN_ADDRESS,
    Step.AWAITING_SLIPPAGE,
    Step.AWAITING_BUY_AMOUNT,
})

STEP_KEYBOARDS: Dict[Step, Keyboard] = {
    Step.AWAITING_WALLET_COUNT: menus.BACK_ONLY_MENU,
    Step.AWAITING_WALLET_NETWORK: menus.NETWORK_MENU,
    Step.AWAITING_TOKEN_ADDRESS: menus.BACK_ONLY_MENU,
    Step.AWAITING_SLIPPAGE: menus.SLIPPAGE_MENU,
    Step.AWAITING_BUY_AMOUNT: menus.BUY_AMOUNT_MENU,
}

NOT_UNDERSTOOD = "Sorry, I did not understand that. Please use the menu below."
WELCOME = (
    "👋 <b>Welcome to Volume Bot!</b>\n"
    "Automate volume on <b>Solana</b>, <b>BSC</b>, and <b>Ethereum</b> tokens.\n\n"
    "Step 1: Generate wallets to begin."
)
TOKEN_PROMPT = "Please enter the token mint address below and then press enter."


def can_transition(current: Optional[Step], target: Optional[Step]) -> bool:
    """True when the table allows moving from ``current`` to ``target``."""
    return target in GLOBAL_TARGETS or target in TRANSITIONS[current]


def parse_bounded_number(text: str, minimum: float, maximum: float) -> Optional[float]:
    """Parse a finite number within [minimum, maximum]; None when invalid."""
    try:
        value = float(text.strip())
    except ValueError:
        return None
    if not math.isfinite(value) or value < minimum or value > maximum:
        return None
    return value


def format_number(value: float) -> str:
    return f"{value:g}"


class SessionStateMachine:
    """Step sequencer driving one conversation per user."""

    def __init__(
        self,
        store: SessionStore,
        messenger: Messenger,
        gateway: ChainGateway,
        token_client: TokenInfoClient,
        validator: PreconditionValidator,
        scheduler: ExecutionScheduler,
    ):
        self.store = store
        self.messenger = messenger
        self.gateway = gateway
        self.token_client = token_client
        self.validator = validator
        self.scheduler = scheduler

        self._step_handlers: Dict[Step, Callable[[Session, str], Awaitable[None]]] = {
            Step.AWAITING_WALLET_COUNT: self._on_wallet_count,
            Step.AWAITING_WALLET_NETWORK: self._on_wallet_network,
            Step.AWAITING_TOKEN_ADDRESS: self._on_token_address,
            Step.AWAITING_SLIPPAGE: self._on_slippage,
            Step.AWAITING_BUY_AMOUNT: self._on_buy_amount,
        }
        self._menu_handlers: Dict[str, Callable[[Session], Awaitable[None]]] = {
            menus.SHOW_WALLETS: self._show_wallets,
            menus.BACK_TO_MAIN: self._back_to_main,
            menus.GENERATE_WALLET: self._ask_wallet_count,
            menus.ENTER_TOKEN: self._ask_token_address,
            menus.START_VOLUME: self._start_volume,
        }
        self._action_handlers: Dict[str, Callable[[Session], Awaitable[None]]] = {
            menus.ACTION_SHOW_WALLETS: self._show_wallets,
            menus.ACTION_BACK_TO_MAIN: self._back_to_main,
            menus.ACTION_BUY: self._run_buy,
            menus.ACTION_DUMP: self._run_sell,
            menus.ACTION_TRX_BUY: self._show_buy_log,
            menus.ACTION_TRX_SELL: self._show_sell_log,
        }

    # Entry points

    async def handle_start(self, user_id: int) -> None:
        """/start: reset the conversation and greet the user."""
        async with self.store.session(user_id) as session:
            session.current_step = None
            session.previous_step = None
            await self._send(session, WELCOME, menus.MAIN_MENU)

    async def handle_enter_token(self, user_id: int) -> None:
        """/entertoken: same as the Enter Token button."""
        async with self.store.session(user_id) as session:
            await self._ask_token_address(session)

    async def handle_message(self, user_id: int, text: str) -> None:
        """Interpret a text message against the user's current step."""
        text = (text or "").strip()
        async with self.store.session(user_id) as session:
            logger.debug("Message received", user_id=user_id, step=session.current_step)

            menu_handler = self._menu_handlers.get(text)
            if menu_handler:
                await menu_handler(session)
                return

            if text == menus.GO_BACK and session.previous_step is not None:
                await self._go_back(session)
                return

            step_handler = self._step_handlers.get(session.current_step)
            if step_handler:
                await step_handler(session, text)
                return

            # Unknown input while idle
            session.previous_step = session.current_step
            self._transition(session, None)
            await self._send(session, NOT_UNDERSTOOD, menus.MAIN_MENU)

    async def handle_action(self, user_id: int, action: str) -> None:
        """Interpret an inline button press."""
        async with self.store.session(user_id) as session:
            logger.debug("Action received", user_id=user_id, action=action)

            if action.startswith(menus.SPEED_ACTION_PREFIX):
                await self._on_speed(session, action)
                return

            handler = self._action_handlers.get(action)
            if handler is None:
                logger.warning("Unknown action", user_id=user_id, action=action)
                await self._send(session, NOT_UNDERSTOOD, menus.MAIN_MENU)
                return
            await handler(session)

    # Transitions

    def _transition(self, session: Session, target: Optional[Step]) -> None:
        if not can_transition(session.current_step, target):
            raise InvalidTransitionError(
                session.current_step.value if session.current_step else None,
                target.value if target else None,
            )
        logger.debug("Step transition", user_id=session.user_id, current=session.current_step, target=target)
        session.current_step = target

    async def _send(self, session: Session, text: str, keyboard: Optional[Keyboard] = None) -> None:
        await self.messenger.send_message(session.user_id, text, keyboard)

    async def _back_to_main(self, session: Session) -> None:
        session.previous_step = session.current_step
        self._transition(session, None)
        await self._send(session, "Back to main menu.", menus.MAIN_MENU)

    async def _go_back(self, session: Session) -> None:
        # Restoring history is not a forward transition, so it bypasses the table
        session.current_step = session.previous_step
        keyboard = STEP_KEYBOARDS.get(session.current_step, menus.BACK_ONLY_MENU)
        await self._send(session, "Returning to previous step...", keyboard)

    # Wallet generation

    async def _ask_wallet_count(self, session: Session) -> None:
        session.previous_step = session.current_step
        self._transition(session, Step.AWAITING_WALLET_COUNT)
        await self._send(
            session,
            f"How many wallets do you want to generate? (Recommended: 5, Max: {settings.max_wallets})",
            menus.BACK_ONLY_MENU,
        )

    async def _on_wallet_count(self, session: Session, text: str) -> None:
        try:
            count = int(text)
        except ValueError:
            count = 0
        if count < 1 or count > settings.max_wallets:
            await self._send(
                session, f"Please enter a valid number between 1 and {settings.max_wallets}.", menus.BACK_ONLY_MENU
            )
            return

        session.wallet_count = count
        session.previous_step = session.current_step
        self._transition(session, Step.AWAITING_WALLET_NETWORK)
        await self._send(session, "Select the network for wallet generation:", menus.NETWORK_MENU)

    async def _on_wallet_network(self, session: Session, text: str) -> None:
        try:
            network = Network.from_label(text)
        except ValueError:
            await self._send(session, "Please select a valid network.", menus.NETWORK_MENU)
            return

        count = session.wallet_count
        if count is None:
            await self._ask_wallet_count(session)
            return
        wallets =self.gateway.generate_wallets(network, count)
        session.replace_wallets(network, wallets)
        if network is session.trade_network:
            # New wallets start unfunded; the ready gate must be passed again
            session.execution_ready = False
        logger.info("Wallets replaced", user_id=session.user_id, network=network.value, count=count)

        # Deliberate one-time disclosure of the private keys
        listing = "\n\n".join(
            f"Wallet #{index}\nPublic: <code>{wallet.public_address}</code>\n"
            f"Private: <code>{wallet.reveal_private_key()}</code>"
            for index, wallet in enumerate(wallets, start=1)
        )
        await self._send(
            session,
            f"<b>{count} wallets generated on {network.value}:</b>\n\n{listing}",
            menus.ENTER_TOKEN_MENU,
        )

        session.previous_step = session.current_step
        self._transition(session, None)
        await self._send(
            session,
            "Please fund your wallets and enter the token mint address to start the volume bot.",
            menus.ENTER_TOKEN_MENU,
        )

    # Token selection

    async def _ask_token_address(self, session: Session) -> None:
        session.previous_step = session.current_step
        self._transition(session, Step.AWAITING_TOKEN_ADDRESS)
        await self._send(session, TOKEN_PROMPT, menus.BACK_ONLY_MENU)

    async def _on_token_address(self, session: Session, text: str) -> None:
        address = text
        if classify(address, hint=session.trade_network) is None:
            await self._send(
                session,
                "That does not look like a Solana, BSC or Ethereum token address. Please check it and try again.",
                menus.ENTER_TOKEN_MENU,
            )
            return

        try:
            token = await self.token_client.identify_token(address)
        except TokenLookupError:
            await self._send(
                session,
                "An error occurred while checking the token address. Please try again later or check your address.",
                menus.ENTER_TOKEN_MENU,
            )
            return

        if token is None:
            await self._send(
                session,
                "Could not detect network from Dex Screener. Please check the address and try again.",
                menus.ENTER_TOKEN_MENU,
            )
            return

        session.select_token(token.network, address)
        network = token.network

        msg = f"<b>🎯 Token address set:</b> <code>{html.escape(address)}</code>\n"
        msg += f"<b>🌐 Detected network:</b> <b>{network.value}</b> <i>({html.escape(token.chain_id)})</i>\n"
        if token.name or token.symbol:
            symbol = f" ({html.escape(token.symbol)})" if token.symbol else ""
            msg += f"🔹 <b>Token:</b> <b>{html.escape(token.name)}{symbol}</b>\n"
        if token.has_market_data:
            msg += f"💲 <b>Price:</b> <b>${token.price_usd}</b>\n📊 <b>24h Volume:</b> <b>{token.volume_24h:g}</b>\n"
        else:
            msg += "<b>Price and volume not found on Dex Screener.</b>\n"

        wallets = session.wallets_for(network)
        if wallets:
            msg += f"\n<b>👛 Your {network.value} wallets:</b>\n"
            for index, wallet in enumerate(wallets, start=1):
                balance = await self.gateway.get_balance(network, wallet.public_address)
                msg += f"#{index} <code>{wallet.public_address}</code>\n"
                msg += f"   <b>Balance:</b> <code>{format_balance(balance)}</code>\n"
        else:
            msg += f"\n<b>⚠️ No wallets found for {network.value}. Please generate wallets first.</b>\n"
        msg += "\n<b>➡️ Next:</b> Click <b>Start Volume Bot</b> to begin."

        session.previous_step = session.current_step
        self._transition(session, None)
        await self._send(session, msg, menus.START_VOLUME_MENU)

    # Start flow and configuration

    async def _start_volume(self, session: Session) -> None:
        result = await self.validator.can_start_execution(session)

        if result.ok:
            session.mark_ready()
            text = self._ready_text(session)
            if result.warning:
                text = f"{result.warning}\n{text}"
            await self._send(session, text, menus.BUY_SELL_MENU)
            return

        reason = result.reason
        logger.info("Start rejected", user_id=session.user_id, reason=reason.value)
        if reason is ValidationReason.NEEDS_SPEED:
            await self._send(session, reason.message, menus.SPEED_MENU)
        elif reason is ValidationReason.NEEDS_SLIPPAGE:
            await self._ask_slippage(session)
        elif reason is ValidationReason.NEEDS_BUY_AMOUNT:
            await self._ask_buy_amount(session)
        elif reason is ValidationReason.NO_WALLETS:
            await self._send(session, reason.message, menus.MAIN_MENU)
        else:
            await self._send(session, reason.message, menus.START_VOLUME_MENU)

    async def _on_speed(self, session: Session, action: str) -> None:
        try:
            speed = menus.speed_from_action(action)
        except ValueError:
            await self._send(session, "Please choose one of the listed speeds.", menus.SPEED_MENU)
            return

        session.speed = speed
        logger.info("Speed selected", user_id=session.user_id, speed=speed.value)
        await self._send(session, f"Speed set to <b>{SPEED_TIERS[speed].label}</b>.")
        await self._start_volume(session)

    async def _ask_slippage(self, session: Session) -> None:
        self._transition(session, Step.AWAITING_SLIPPAGE)
        await self._send(session, ValidationReason.NEEDS_SLIPPAGE.message, menus.SLIPPAGE_MENU)

    async def _on_slippage(self, session: Session, text: str) -> None:
        if text == menus.USE_DEFAULT_SLIPPAGE:
            slippage = settings.default_slippage_percent
        else:
            slippage = parse_bounded_number(text, settings.min_slippage_percent, settings.max_slippage_percent)
            if slippage is None:
                await self._send(
                    session,
                    f"Please enter a valid slippage between {format_number(settings.min_slippage_percent)} "
                    f"and {format_number(settings.max_slippage_percent)}.",
                    menus.SLIPPAGE_MENU,
                )
                return

        session.slippage_percent = slippage
        self._transition(session, Step.AWAITING_BUY_AMOUNT)
        await self._send(
            session,
            f"Slippage set to <b>{format_number(slippage)}%</b>.\n" + self._buy_amount_prompt(session),
            menus.BUY_AMOUNT_MENU,
        )

    async def _ask_buy_amount(self, session: Session) -> None:
        self._transition(session, Step.AWAITING_BUY_AMOUNT)
        await self._send(session, self._buy_amount_prompt(session), menus.BUY_AMOUNT_MENU)

    def _buy_amount_prompt(self, session: Session) -> str:
        symbol = session.trade_network.native_symbol if session.trade_network else "native currency"
        return (
            f"How much {symbol} do you want to use for each buy transaction? "
            f"(Default: {format_number(settings.default_buy_amount)})"
        )

    async def _on_buy_amount(self, session: Session, text: str) -> None:
        if text == menus.USE_DEFAULT_AMOUNT:
            amount = settings.default_buy_amount
        else:
            amount = parse_bounded_number(text, settings.min_buy_amount, settings.max_buy_amount)
            if amount is None:
                await self._send(
                    session,
                    f"Please enter a valid amount between {format_number(settings.min_buy_amount)} "
                    f"and {format_number(settings.max_buy_amount)}.",
                    menus.BUY_AMOUNT_MENU,
                )
                return

        session.buy_amount_per_tx = amount
        self._transition(session, None)

        if not session.mark_ready():
            await self._send(
                session,
                "Configuration incomplete. Please press <b>Start Volume Bot</b> again.",
                menus.START_VOLUME_MENU,
            )
            return

        symbol = session.trade_network.native_symbol
        await self._send(
            session,
            f"Amount per buy transaction set to <b>{format_number(amount)}</b> {symbol}.\n"
            "You can now Buy or Dump tokens.",
            menus.BUY_SELL_MENU,
        )

    def _ready_text(self, session: Session) -> str:
        return (
            "✅ <b>Volume bot ready.</b>\n"
            f"Network: <b>{session.trade_network.value}</b>\n"
            f"Speed: <b>{SPEED_TIERS[session.speed].label}</b>\n"
            f"Slippage: <b>{format_number(session.slippage_percent)}%</b>\n"
            f"Amount per buy: <b>{format_number(session.buy_amount_per_tx)}</b> "
            f"{session.trade_network.native_symbol}\n"
            "You can now Buy or Dump tokens."
        )

    # Execution

    async def _run_buy(self, session: Session) -> None:
        await self._run_cycle(session, TradeSide.BUY, menus.BUY_SELL_MENU)

    async def _run_sell(self, session: Session) -> None:
        await self._run_cycle(session, TradeSide.SELL, menus.TRX_SELL_MENU)

    async def _run_cycle(self, session: Session, side: TradeSide, keyboard: Keyboard) -> None:
        if not session.execution_ready:
            await self._send(session, "Please start the volume bot first.", menus.START_VOLUME_MENU)
            return

        async def progress(text: str) -> None:
            await self._send(session, text, keyboard)

        result = await self.scheduler.run_cycle(session, side, progress=progress)
        await self._send(session, result.summary(), keyboard)

    async def _show_buy_log(self, session: Session) -> None:
        await self._show_operation_log(session, TradeSide.BUY, menus.BUY_SELL_MENU)

    async def _show_sell_log(self, session: Session) -> None:
        await self._show_operation_log(session, TradeSide.SELL, menus.TRX_SELL_MENU)

    async def _show_operation_log(self, session: Session, side: TradeSide, keyboard: Keyboard) -> None:
        network = session.trade_network
        log = session.last_operation_log.get(network, []) if network else []
        entries = [outcome.render() for outcome in log if outcome.side is side]
        if not entries:
            await self._send(session, f"No {side.value} transactions recorded yet.", keyboard)
            return
        lines = "\n".join(f"{index}. {entry}" for index, entry in enumerate(entries, start=1))
        await self._send(session, f"<b>Last {side.value} transactions ({network.value}):</b>\n{lines}", keyboard)

    # Views

    async def _show_wallets(self, session: Session) -> None:
        msg = "<b>Your wallets by network:</b>\n"
        has_wallets = False
        for network in Network:
            wallets = session.wallets_for(network)
            if not wallets:
                continue
            has_wallets = True
            msg += f"\n<b>{network.value}:</b>\n"
            for wallet in wallets:
                balance = await self.gateway.get_balance(network, wallet.public_address)
                msg += f"<code>{wallet.public_address}</code>\nBalance: <b>{format_balance(balance)}</b>\n"

        if not has_wallets:
            await self._send(session, "No wallets generated yet.", menus.MAIN_MENU)
            return
        await self._send(session, msg, menus.MAIN_MENU)
