"""
Tests for the Telegram transport adapter.
"""

from datetime import datetime, timezone
from types import SimpleNamespace

from telegram import Chat, InlineKeyboardMarkup, Message, ReplyKeyboardMarkup, Update, User
from telegram.error import BadRequest
from telegram.ext import MessageHandler

from volumebot.core import menus
from volumebot.interfaces.telegram_bot import DISPLAY_ERROR, TelegramBot, TelegramMessenger, to_markup


class FakeBot:
    def __init__(self, fail_html=False):
        self.fail_html = fail_html
        self.sent = []

    async def send_message(self, chat_id, text, parse_mode=None, reply_markup=None, **kwargs):
        if self.fail_html and parse_mode:
            raise BadRequest("Can't parse entities")
        self.sent.append({"chat_id": chat_id, "text": text, "parse_mode": parse_mode, "reply_markup": reply_markup})


def test_no_keyboard():
    assert to_markup(None) is None


def test_reply_keyboard():
    markup = to_markup(menus.MAIN_MENU)

    assert isinstance(markup, ReplyKeyboardMarkup)
    assert markup.resize_keyboard is True
    assert markup.keyboard[0][0].text == menus.GENERATE_WALLET
    assert len(markup.keyboard) == len(menus.MAIN_MENU.rows)


def test_inline_keyboard():
    markup = to_markup(menus.BUY_SELL_MENU)

    assert isinstance(markup, InlineKeyboardMarkup)
    first = markup.inline_keyboard[0][0]
    assert first.text == "Buy"
    assert first.callback_data == menus.ACTION_BUY


def test_speed_keyboard_actions():
    markup = to_markup(menus.SPEED_MENU)
    actions = [row[0].callback_data for row in markup.inline_keyboard]
    assert actions == ["speed_slow", "speed_moderate", "speed_fast", menus.ACTION_BACK_TO_MAIN]


async def test_sends_html():
    bot = FakeBot()
    messenger = TelegramMessenger(SimpleNamespace(bot=bot))

    await messenger.send_message(7, "<b>hi</b>", menus.MAIN_MENU)

    assert bot.sent[0]["chat_id"] == 7
    assert bot.sent[0]["parse_mode"] == "HTML"
    assert isinstance(bot.sent[0]["reply_markup"], ReplyKeyboardMarkup)


async def test_falls_back_to_plain_text():
    bot = FakeBot(fail_html=True)
    messenger = TelegramMessenger(SimpleNamespace(bot=bot))

    await messenger.send_message(7, "<b>broken", menus.MAIN_MENU)

    assert len(bot.sent) == 1
    assert bot.sent[0]["text"] == DISPLAY_ERROR
    assert bot.sent[0]["parse_mode"] is None


class RecordingMachine:
    def __init__(self):
        self.messages = []

    async def handle_message(self, user_id, text):
        self.messages.append((user_id, text))


def make_bot():
    return TelegramBot(lambda messenger: RecordingMachine(), token="123456:TEST-TOKEN")


def text_update(edited=False):
    user = User(id=7, first_name="Ada", is_bot=False)
    message = Message(
        message_id=1,
        date=datetime.now(timezone.utc),
        chat=Chat(id=7, type="private"),
        from_user=user,
        text="hello",
    )
    if edited:
        return Update(update_id=2, edited_message=message)
    return Update(update_id=1, message=message)


def text_handler(bot):
    return next(handler for handler in bot.application.handlers[0] if isinstance(handler, MessageHandler))


def test_text_handler_ignores_edited_messages():
    handler = text_handler(make_bot())

    assert handler.check_update(text_update())
    assert not handler.check_update(text_update(edited=True))


async def test_text_handler_reads_effective_message():
    bot = make_bot()
    update = SimpleNamespace(
        effective_user=SimpleNamespace(id=7),
        effective_message=SimpleNamespace(text="🚀 Start Volume Bot"),
        message=None,
    )

    await bot.text(update, None)

    assert bot.machine.messages == [(7, "🚀 Start Volume Bot")]
