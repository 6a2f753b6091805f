"""
Render bot screens as HTML text plus inline keyboards.

Amounts are printed from Decimal values with the asset's full precision on
confirmation screens, so the user sees exactly what will be settled.
"""

import html
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from core import constants
from core.constants import CallbackData, TransactionKind
from schemas.breeze import UserYieldResponse
from schemas.portfolio import PortfolioOverview
from schemas.transaction import PendingTransaction, TransactionOutcome
from utils.amount_utils import format_amount, to_human_amount


def _button(text: str, data) -> InlineKeyboardButton:
    return InlineKeyboardButton(text, callback_data=getattr(data, "value", data))


def _back_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[_button("🔙 Back to Main", CallbackData.BACK_TO_MAIN)]])


def short_key(public_key: str) -> str:
    return f"{public_key[:8]}...{public_key[-8:]}"


def build_welcome_message() -> Tuple[str, InlineKeyboardMarkup]:
    message = (
        "🚀 Welcome to <b>Breeze</b>! 🌊\n\n"
        "To get started, you need to set up your wallet:"
    )
    keyboard = InlineKeyboardMarkup(
        [
            [_button("🔑 Generate New Keypair", CallbackData.GENERATE_KEYPAIR)],
            [_button("📥 Import Private Key", CallbackData.IMPORT_KEYPAIR)],
        ]
    )
    return message, keyboard


def build_new_wallet_message(public_key: str, secret: str) -> str:
    return (
        "🔑 New keypair generated!\n\n"
        f"📍 Public Key: <code>{public_key}</code>\n\n"
        f"🔐 Private Key: <code>{secret}</code>\n\n"
        "⚠️ <b>IMPORTANT</b>: Save your private key securely! "
        "This is the only time it will be shown."
    )


def build_main_message(
    overview: PortfolioOverview,
) -> Tuple[str, InlineKeyboardMarkup]:
    wallet = overview.wallet
    lines = [
        "🌊 <b>Breeze</b> 🌊",
        "",
        f"💳 Wallet: <code>{short_key(wallet.owner)}</code>",
        "",
        "💰 <b>Balances:</b>",
        f"• SOL: {format_amount(wallet.sol.human, wallet.sol.asset, 4)}",
    ]
    for symbol, balance in wallet.tokens.items():
        lines.append(f"• {symbol}: {format_amount(balance.human, balance.asset, 2)}")
    lines += [
        "",
        f"🌊 <b>Breeze Balance:</b> ${overview.total_position_value:.2f}",
        f"📈 <b>Current APY:</b> {overview.average_apy or 0:.2f}%",
    ]
    keyboard = InlineKeyboardMarkup(
        [
            [_button("🌊 Earn Yield with Breeze", CallbackData.EARN_YIELD)],
            [
                _button("💳 Detailed Balances", CallbackData.VIEW_BALANCES),
                _button("📈 Yield History", CallbackData.VIEW_YIELD_HISTORY),
            ],
        ]
    )
    return "\n".join(lines), keyboard


def build_earn_message(overview: PortfolioOverview) -> Tuple[str, InlineKeyboardMarkup]:
    message, _ = build_main_message(overview)
    keyboard = InlineKeyboardMarkup(
        [
            [
                _button("📥 Deposit", CallbackData.DEPOSIT),
                _button("📤 Withdraw", CallbackData.WITHDRAW),
            ],
            [_button("🔙 Back to Main", CallbackData.BACK_TO_MAIN)],
        ]
    )
    return message, keyboard


def build_amount_selection(
    kind: TransactionKind, available_raw: int, asset
) -> Tuple[str, InlineKeyboardMarkup]:
    available = to_human_amount(available_raw, asset)
    if kind == TransactionKind.DEPOSIT:
        title = f"📥 <b>{asset.symbol} Deposit Amount</b> 📥"
        label = f"💰 Available {asset.symbol}"
        prefix, custom = constants.DEPOSIT_PERCENTAGE_PREFIX, CallbackData.DEPOSIT_CUSTOM
    else:
        title = "📤 <b>Withdraw from Breeze</b> 📤"
        label = "💰 Available to withdraw"
        prefix, custom = constants.WITHDRAW_PERCENTAGE_PREFIX, CallbackData.WITHDRAW_CUSTOM

    message = (
        f"{title}\n\n"
        f"{label}: {format_amount(available, asset)} {asset.symbol}\n\n"
        "Select amount:"
    )
    keyboard = InlineKeyboardMarkup(
        [
            [
                _button(f"{pct}%", f"{prefix}{pct}")
                for pct in constants.PERCENTAGE_CHOICES
            ],
            [_button("💰 Custom Amount", custom)],
            [_button("🔙 Back", CallbackData.EARN_YIELD)],
        ]
    )
    return message, keyboard


def build_confirmation_message(
    pending: PendingTransaction,
) -> Tuple[str, InlineKeyboardMarkup]:
    action = pending.kind.value.capitalize()
    direction = "to" if pending.kind == TransactionKind.DEPOSIT else "from"
    amount = format_amount(pending.human_amount, pending.asset)
    message = (
        f"✅ <b>Confirm {action}</b> ✅\n\n"
        f"💰 Amount: {amount} {pending.asset.symbol}"
        + (" (entire balance)" if pending.use_all else "")
        + f"\n🎯 Action: {action} {direction} Breeze\n\n"
        "⚠️ Please confirm this transaction:"
    )
    keyboard = InlineKeyboardMarkup(
        [
            [_button("✅ Confirm Transaction", CallbackData.CONFIRM_TRANSACTION)],
            [_button("❌ Cancel", CallbackData.CANCEL_TRANSACTION)],
        ]
    )
    return message, keyboard


def build_outcome_message(outcome: TransactionOutcome) -> str:
    amount = f"{format_amount(outcome.human_amount, outcome.asset)} {outcome.asset.symbol}"
    if outcome.succeeded:
        action = (
            "deposited to"
            if outcome.kind == TransactionKind.DEPOSIT
            else "withdrawn from"
        )
        return (
            f"🎉 <b>Successfully {action} Breeze!</b>\n\n"
            f"💰 Amount: {amount}\n"
            f"🔗 Transaction: <code>{outcome.signature}</code>"
        )
    if outcome.ambiguous:
        message = (
            "⚠️ <b>Transaction status unknown</b>\n\n"
            f"💰 Amount: {amount}\n"
            "The transaction may still be processed. Check your balance before "
            "trying again."
        )
        if outcome.signature:
            message += f"\n🔗 Transaction: <code>{outcome.signature}</code>"
        return message
    return (
        "❌ <b>Transaction failed!</b>\n\n"
        f"💰 Amount: {amount}\n"
        f"Reason: {html.escape(outcome.error or 'unknown')}\n\n"
        "Nothing was transferred. Please start again."
    )


def build_balances_message(
    overview: PortfolioOverview,
) -> Tuple[str, InlineKeyboardMarkup]:
    message = "💳 <b>Detailed Breeze Balances</b> 💳\n\n"
    message += f"💰 <b>Total Portfolio Value:</b> ${overview.total_position_value:.6f}\n"
    message += f"🎯 <b>Total Yield Earned:</b> ${overview.total_yield_earned:.6f}\n\n"

    if not overview.positions:
        message += "No positions found in Breeze."
    for position in overview.positions:
        wallet_balance = overview.wallet.tokens.get(position.token_symbol)
        message += f"<b>{position.token_symbol}</b>\n"
        if wallet_balance is not None:
            message += (
                "• Wallet Balance: "
                f"{format_amount(wallet_balance.human, wallet_balance.asset)}\n"
            )
        message += f"• {position.fund_id}: ${position.position_value:.6f} "
        message += f"(APY: {position.apy:.2f}%)\n"
        message += f"• Yield: ${position.yield_earned:.6f}\n\n"
    return message, _back_keyboard()


def build_yield_history_message(
    yields: UserYieldResponse,
) -> Tuple[str, InlineKeyboardMarkup]:
    lines = ["📈 <b>Yield History</b> 📈", ""]
    if not yields.data:
        lines.append("No yield history found.")

    for entry in yields.data:
        asset = constants.ASSETS.get(entry.base_asset, constants.USDC)
        position_value = to_human_amount(int(entry.position_value), asset)
        yield_earned = to_human_amount(int(entry.yield_earned), asset)
        lines += [
            f"<b>{html.escape(entry.fund_name)}</b> ({entry.base_asset})",
            f"• Position Value: ${format_amount(position_value, asset)}",
            f"• Yield Earned: ${format_amount(yield_earned, asset)}",
            f"• APY: {float(entry.apy):.2f}%",
            f"• Entry Date: {_format_date(entry.entry_date)}",
            f"• Last Updated: {_format_date(entry.last_updated)}",
            "",
        ]

    if yields.meta and yields.meta.total_pages > 1:
        lines.append(f"📄 Page {yields.meta.page} of {yields.meta.total_pages}")
    return "\n".join(lines), _back_keyboard()


def build_error_message(error: Exception, context: Optional[str] = None) -> str:
    error_message = context or "Error"
    error_message += "\n" + str(error)

    message = f"<b>Error:</b> {html.escape(error_message)}\n"
    message += f"<i>{get_current_time()}</i>"
    return message


def build_ambiguous_alert(user_id, outcome: TransactionOutcome) -> str:
    fields: List[Tuple[str, str]] = [
        ("User", str(user_id)),
        ("Action", outcome.kind.value),
        ("Amount", f"{outcome.base_units} base units"),
        ("Asset", outcome.asset.symbol),
        ("Signature", outcome.signature or "-"),
        ("Error", outcome.error or "-"),
    ]
    message = "<b>Unconfirmed transaction</b>\n<pre>\n"
    for name, value in fields:
        message += f"| {name:<10} | {html.escape(value)}\n"
    message += "</pre>"
    return message


def _format_date(value: Optional[str]) -> str:
    if not value:
        return "-"
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).strftime("%Y-%m-%d")
    except ValueError:
        return value


def get_current_time():
    return datetime.now(tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
