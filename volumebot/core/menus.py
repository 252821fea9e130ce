"""
Menu labels, action ids and keyboard layouts of the conversation.
"""

from volumebot.models.network import Network
from volumebot.models.reply import Button, Keyboard
from volumebot.models.session import SPEED_TIERS, Speed

# Reply-keyboard labels (arrive as plain text)
GENERATE_WALLET = "🪪 Generate Wallet"
ENTER_TOKEN = "🔗 Enter Token Mint Address"
SHOW_WALLETS = "👛 Show Wallets"
START_VOLUME = "🚀 Start Volume Bot"
BACK_TO_MAIN = "Back to Main"
GO_BACK = "Go Back"
USE_DEFAULT_SLIPPAGE = "Use Default (1%)"
USE_DEFAULT_AMOUNT = "Use Default (0.001)"

# Inline-keyboard action ids
ACTION_BUY = "buy_tokens"
ACTION_DUMP = "dump_tokens"
ACTION_TRX_BUY = "trx_buy"
ACTION_TRX_SELL = "trx_sell"
ACTION_SHOW_WALLETS = "show_wallets_inline"
ACTION_BACK_TO_MAIN = "back_to_main_inline"
SPEED_ACTION_PREFIX = "speed_"

MAIN_MENU = Keyboard.reply(
    [GENERATE_WALLET],
    [ENTER_TOKEN],
    [SHOW_WALLETS],
    [BACK_TO_MAIN],
)

ENTER_TOKEN_MENU = Keyboard.reply(
    [ENTER_TOKEN],
    [SHOW_WALLETS],
    [BACK_TO_MAIN],
)

START_VOLUME_MENU = Keyboard.reply(
    [START_VOLUME],
    [SHOW_WALLETS],
    [BACK_TO_MAIN],
)

BACK_ONLY_MENU = Keyboard.reply([BACK_TO_MAIN])

NETWORK_MENU = Keyboard.reply(Network.labels(), [BACK_TO_MAIN])

SLIPPAGE_MENU = Keyboard.reply([USE_DEFAULT_SLIPPAGE], [BACK_TO_MAIN])

BUY_AMOUNT_MENU = Keyboard.reply([USE_DEFAULT_AMOUNT], [BACK_TO_MAIN])

BUY_SELL_MENU = Keyboard.inline(
    [Button(label="Buy", action=ACTION_BUY)],
    [Button(label="Dump It", action=ACTION_DUMP)],
    [Button(label="TRX", action=ACTION_TRX_BUY)],
    [Button(label=SHOW_WALLETS, action=ACTION_SHOW_WALLETS)],
    [Button(label=BACK_TO_MAIN, action=ACTION_BACK_TO_MAIN)],
)

TRX_SELL_MENU = Keyboard.inline(
    [Button(label="TRX Sell", action=ACTION_TRX_SELL)],
    [Button(label=SHOW_WALLETS, action=ACTION_SHOW_WALLETS)],
    [Button(label=BACK_TO_MAIN, action=ACTION_BACK_TO_MAIN)],
)

SPEED_MENU = Keyboard.inline(
    *[[Button(label=tier.label, action=f"{SPEED_ACTION_PREFIX}{speed.value}")] for speed, tier in SPEED_TIERS.items()],
    [Button(label=BACK_TO_MAIN, action=ACTION_BACK_TO_MAIN)],
)


def speed_from_action(action: str) -> Speed:
    """Parse a speed button action id; raises ValueError for anything else."""
    if not action.startswith(SPEED_ACTION_PREFIX):
        raise ValueError(f"Not a speed action: {action}")
    return Speed(action[len(SPEED_ACTION_PREFIX):])
