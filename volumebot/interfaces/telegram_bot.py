"""
Telegram transport for the Volume Bot.
"""

from typing import Optional, Union

from telegram import (
    InlineKeyboardButton,
    InlineKeyboardMarkup,
    KeyboardButton,
    ReplyKeyboardMarkup,
    Update,
)
from telegram.constants import ParseMode
from telegram.error import BadRequest
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from volumebot.config.settings import settings
from volumebot.core.messenger import Messenger
from volumebot.core.state_machine import SessionStateMachine
from volumebot.models.reply import Keyboard, KeyboardKind
from volumebot.utils.logger import get_logger

logger = get_logger(__name__)

DISPLAY_ERROR = "⚠️ Sorry, there was a problem displaying the message. Please check your input or try again."

Markup = Union[ReplyKeyboardMarkup, InlineKeyboardMarkup]


def to_markup(keyboard: Optional[Keyboard]) -> Optional[Markup]:
    """Convert a neutral keyboard layout to Telegram reply markup."""
    if keyboard is None:
        return None
    if keyboard.kind is KeyboardKind.INLINE:
        return InlineKeyboardMarkup([
            [InlineKeyboardButton(button.label, callback_data=button.action or button.label) for button in row]
            for row in keyboard.rows
        ])
    return ReplyKeyboardMarkup(
        [[KeyboardButton(button.label) for button in row] for row in keyboard.rows],
        resize_keyboard=True,
    )


class TelegramMessenger(Messenger):
    """Messenger backed by a python-telegram-bot Application."""

    def __init__(self, application: Application):
        self.application = application

    async def send_message(self, user_id: int, text: str, keyboard: Optional[Keyboard] = None) -> None:
        markup = to_markup(keyboard)
        try:
            await self.application.bot.send_message(
                chat_id=user_id,
                text=text,
                parse_mode=ParseMode.HTML,
                disable_web_page_preview=True,
                reply_markup=markup,
            )
        except BadRequest as e:
            logger.warning("HTML reply rejected, sending fallback", user_id=user_id, error=str(e))
            await self.application.bot.send_message(chat_id=user_id, text=DISPLAY_ERROR, reply_markup=markup)


class TelegramBot:
    """Wires Telegram updates to the session state machine."""

    def __init__(self, machine_factory, token: Optional[str] = None):
        """
        Args:
            machine_factory: Callable taking a Messenger and returning the SessionStateMachine
            token: Bot token, defaults to settings.telegram_bot_token
        """
        token = token or settings.telegram_bot_token
        if not token:
            raise ValueError("TELEGRAM_BOT_TOKEN is not configured")

        # Updates of different users run concurrently; the session store serializes per user
        self.application = Application.builder().token(token).concurrent_updates(True).build()
        self.messenger = TelegramMessenger(self.application)
        self.machine: SessionStateMachine = machine_factory(self.messenger)
        self._register_handlers()

    def _register_handlers(self) -> None:
        app = self.application
        app.add_handler(CommandHandler("start", self.start))
        app.add_handler(CommandHandler("entertoken", self.enter_token))
        app.add_handler(CallbackQueryHandler(self.button))
        app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND & ~filters.UpdateType.EDITED, self.text))
        app.add_error_handler(self.error)

    async def start(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self.machine.handle_start(update.effective_user.id)

    async def enter_token(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self.machine.handle_enter_token(update.effective_user.id)

    async def text(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self.machine.handle_message(update.effective_user.id, update.effective_message.text)

    async def button(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        query = update.callback_query
        await query.answer()
        await self.machine.handle_action(query.from_user.id, query.data)

    async def error(self, update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        logger.error("Error while handling update", error=str(context.error), exc_info=context.error)

    async def start_polling(self) -> None:
        """Start receiving updates inside an already running event loop."""
        await self.application.initialize()
        await self.application.start()
        await self.application.updater.start_polling()
        logger.info("Telegram bot polling started")

    async def stop(self) -> None:
        if self.application.updater and self.application.updater.running:
            await self.application.updater.stop()
        if self.application.running:
            await self.application.stop()
        await self.application.shutdown()
        logger.info("Telegram bot stopped")

    @property
    def is_running(self) -> bool:
        return self.application.running
