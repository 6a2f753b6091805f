from enum import Enum

from schemas.asset import AssetSpec

SOL = AssetSpec(symbol="SOL", decimals=9)
USDC = AssetSpec(
    symbol="USDC", decimals=6, mint="EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
)
USDT = AssetSpec(
    symbol="USDT", decimals=6, mint="Es9vMFrzaCERmJfrF4H2FYD4KCoNkY7xgxACzBn3wqHg"
)
PYUSD = AssetSpec(
    symbol="PYUSD", decimals=6, mint="CXk2AMBfi3TwaEL2468s6zP8xq9NxTXjp9gjMgzeUynM"
)
USDS = AssetSpec(
    symbol="USDS", decimals=6, mint="2b1kV6DkPAnxd5ixfnxCpjxmKwqjjaYmCZfHsFu24GXo"
)

ASSETS: dict = {asset.symbol: asset for asset in (SOL, USDC, USDT, PYUSD, USDS)}

# wallet tokens shown on the balances screen, in display order
WALLET_TOKENS = [USDC, USDT, PYUSD, USDS]

FULL_PERCENTAGE = 100
PERCENTAGE_CHOICES = [50, FULL_PERCENTAGE]

# Breeze API
BREEZE_DEPOSIT_TX_PATH = "/deposit/tx"
BREEZE_WITHDRAW_TX_PATH = "/withdraw/tx"
BREEZE_USER_BALANCES_PATH = "/user-balances/{user_key}"
BREEZE_USER_YIELD_PATH = "/user-yield/{user_key}"
BREEZE_API_KEY_HEADER = "x-api-key"


class InputMode(str, Enum):
    NONE = "none"
    AWAITING_PRIVATE_KEY = "awaiting_private_key"
    AWAITING_DEPOSIT_AMOUNT = "awaiting_deposit_amount"
    AWAITING_WITHDRAW_AMOUNT = "awaiting_withdraw_amount"


class TransactionKind(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"


class TransactionState(str, Enum):
    QUOTING = "quoting"
    AWAITING_CONFIRM = "awaiting_confirm"
    SIGNING = "signing"
    SUBMITTED = "submitted"
    FINALIZED = "finalized"
    CANCELLED = "cancelled"
    FAILED = "failed"


TERMINAL_STATES = (
    TransactionState.FINALIZED,
    TransactionState.CANCELLED,
    TransactionState.FAILED,
)


class CallbackData(str, Enum):
    GENERATE_KEYPAIR = "generate_keypair"
    IMPORT_KEYPAIR = "import_keypair"
    BACK_TO_MAIN = "back_to_main"
    EARN_YIELD = "earn_yield"
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    DEPOSIT_CUSTOM = "deposit_custom"
    WITHDRAW_CUSTOM = "withdraw_custom"
    CONFIRM_TRANSACTION = "confirm_transaction"
    CANCEL_TRANSACTION = "cancel_transaction"
    VIEW_BALANCES = "view_balances"
    VIEW_YIELD_HISTORY = "view_yield_history"


# percentage buttons carry their value, e.g. "deposit_pct:50"
DEPOSIT_PERCENTAGE_PREFIX = "deposit_pct:"
WITHDRAW_PERCENTAGE_PREFIX = "withdraw_pct:"
