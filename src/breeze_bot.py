import asyncio
import functools
import logging
from collections import defaultdict

import click
from telegram import ForceReply, Update
from telegram.constants import ParseMode
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from core import constants
from core.config import settings
from core.constants import CallbackData, InputMode, TransactionKind
from core.exceptions import (
    BreezeBotError,
    GatewayError,
    NoPendingTransaction,
    SigningError,
    TransportError,
    ValidationError,
)
from log import setup_logging_to_console, setup_logging_to_file
from notifications import message_builder, telegram_bot
from schemas.transaction import AmountSpec
from services.breeze_service import BreezeService
from services.confirmation_pipeline import ConfirmationPipeline
from services.ledger_service import SolanaLedgerService
from services.portfolio_service import PortfolioService
from services.session_store import SessionStore
from utils.amount_utils import parse_human_amount

logger = logging.getLogger(__name__)


def describe_error(error: BreezeBotError) -> str:
    if isinstance(error, GatewayError):
        return f"❌ Error: {error.message}"
    if isinstance(error, TransportError):
        return "❌ Could not reach the service. Please try again."
    if isinstance(error, NoPendingTransaction):
        return "❌ No pending transaction found."
    if isinstance(error, SigningError):
        return "❌ Invalid transaction data. Please request the transaction again."
    if isinstance(error, ValidationError):
        return f"❌ {error}"
    return "❌ Something went wrong. Please try again."


def serialized(handler):
    """Run one update per user at a time; other users are not blocked."""

    @functools.wraps(handler)
    async def wrapper(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        user_id = update.effective_chat.id
        async with self._locks[user_id]:
            try:
                await handler(self, update, context)
            except BreezeBotError as e:
                logger.info("User %s: %s", user_id, e)
                await self._reply(update, describe_error(e))

    return wrapper


class BreezeBot:
    def __init__(
        self,
        pipeline: ConfirmationPipeline,
        portfolio: PortfolioService,
    ):
        self.pipeline = pipeline
        self.portfolio = portfolio
        self._locks = defaultdict(asyncio.Lock)

    def register(self, application: Application):
        application.add_handler(CommandHandler("start", self.on_start))
        application.add_handler(CommandHandler("confirm", self.on_confirm_command))
        application.add_handler(CommandHandler("cancel", self.on_cancel_command))
        application.add_handler(CallbackQueryHandler(self.on_callback))
        application.add_handler(
            MessageHandler(filters.TEXT & ~filters.COMMAND, self.on_text)
        )
        application.add_error_handler(self.on_error)

    # handlers

    @serialized
    async def on_start(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        session = self.pipeline.start_session(update.effective_chat.id)
        if session.keypair is None:
            message, keyboard = message_builder.build_welcome_message()
            await self._reply(update, message, keyboard)
            return
        await self._show_main(update, session.public_key)

    @serialized
    async def on_confirm_command(self, update: Update, context):
        await self._confirm(update)

    @serialized
    async def on_cancel_command(self, update: Update, context):
        await self._cancel(update)

    @serialized
    async def on_callback(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        query = update.callback_query
        await query.answer()
        user_id = update.effective_chat.id
        data = query.data or ""
        session = self.pipeline.store.get(user_id)

        if data == CallbackData.GENERATE_KEYPAIR:
            public_key, secret = self.pipeline.generate_identity(user_id)
            await self._reply(
                update, message_builder.build_new_wallet_message(public_key, secret)
            )
            await self._show_main(update, public_key)
            return
        if data == CallbackData.IMPORT_KEYPAIR:
            self.pipeline.store.set_mode(user_id, InputMode.AWAITING_PRIVATE_KEY)
            await self._reply(
                update,
                "🔐 Please send your private key (base58 encoded):",
                ForceReply(),
            )
            return

        if session.keypair is None:
            message, keyboard = message_builder.build_welcome_message()
            await self._reply(update, message, keyboard)
            return
        public_key = session.public_key

        if data == CallbackData.BACK_TO_MAIN:
            await self._show_main(update, public_key)
        elif data == CallbackData.EARN_YIELD:
            overview = await asyncio.to_thread(self.portfolio.get_overview, public_key)
            message, keyboard = message_builder.build_earn_message(overview)
            await self._reply(update, message, keyboard)
        elif data == CallbackData.DEPOSIT:
            await self._show_amount_selection(update, TransactionKind.DEPOSIT, public_key)
        elif data == CallbackData.WITHDRAW:
            await self._show_amount_selection(update, TransactionKind.WITHDRAW, public_key)
        elif data.startswith(constants.DEPOSIT_PERCENTAGE_PREFIX):
            percentage = int(data[len(constants.DEPOSIT_PERCENTAGE_PREFIX) :])
            await self._request(update, TransactionKind.DEPOSIT, AmountSpec.of_percentage(percentage))
        elif data.startswith(constants.WITHDRAW_PERCENTAGE_PREFIX):
            percentage = int(data[len(constants.WITHDRAW_PERCENTAGE_PREFIX) :])
            await self._request(update, TransactionKind.WITHDRAW, AmountSpec.of_percentage(percentage))
        elif data == CallbackData.DEPOSIT_CUSTOM:
            self.pipeline.store.set_mode(user_id, InputMode.AWAITING_DEPOSIT_AMOUNT)
            await self._reply(
                update,
                f"💰 Please enter the {self.pipeline.asset.symbol} amount to deposit:",
                ForceReply(),
            )
        elif data == CallbackData.WITHDRAW_CUSTOM:
            self.pipeline.store.set_mode(user_id, InputMode.AWAITING_WITHDRAW_AMOUNT)
            await self._reply(
                update,
                f"💰 Please enter the {self.pipeline.asset.symbol} amount to withdraw:",
                ForceReply(),
            )
        elif data == CallbackData.CONFIRM_TRANSACTION:
            await self._confirm(update)
        elif data == CallbackData.CANCEL_TRANSACTION:
            await self._cancel(update)
        elif data == CallbackData.VIEW_BALANCES:
            overview = await asyncio.to_thread(self.portfolio.get_overview, public_key)
            message, keyboard = message_builder.build_balances_message(overview)
            await self._reply(update, message, keyboard)
        elif data == CallbackData.VIEW_YIELD_HISTORY:
            yields = await asyncio.to_thread(
                self.portfolio.breeze.get_user_yield, public_key
            )
            message, keyboard = message_builder.build_yield_history_message(yields)
            await self._reply(update, message, keyboard)
        else:
            logger.warning("Unknown callback data from %s: %s", user_id, data)

    @serialized
    async def on_text(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        user_id = update.effective_chat.id
        text = update.effective_message.text or ""
        session = self.pipeline.store.get(user_id)

        if session.input_mode == InputMode.AWAITING_PRIVATE_KEY:
            try:
                public_key = self.pipeline.set_identity(user_id, text)
            except ValidationError:
                await self._reply(
                    update,
                    "❌ Invalid private key format. Please try again or use /start to go back.",
                )
                return
            await self._reply(
                update,
                f"✅ Keypair imported successfully!\n\n📍 Public Key: <code>{public_key}</code>",
            )
            await self._show_main(update, public_key)
        elif session.input_mode == InputMode.AWAITING_DEPOSIT_AMOUNT:
            # the mode stays set on validation errors so the user can retry
            amount = parse_human_amount(text, self.pipeline.asset)
            await self._request(update, TransactionKind.DEPOSIT, AmountSpec.of_amount(amount))
        elif session.input_mode == InputMode.AWAITING_WITHDRAW_AMOUNT:
            amount = parse_human_amount(text, self.pipeline.asset)
            await self._request(update, TransactionKind.WITHDRAW, AmountSpec.of_amount(amount))

    async def on_error(self, update: object, context: ContextTypes.DEFAULT_TYPE):
        logger.error("Unhandled error while processing update", exc_info=context.error)
        await telegram_bot.send_alert(
            message_builder.build_error_message(context.error, "Unhandled bot error"),
            channel="error",
        )
        if isinstance(update, Update) and update.effective_chat:
            await self._reply(update, "❌ Something went wrong. Please try again.")

    # flows

    async def _request(self, update: Update, kind: TransactionKind, amount_spec):
        user_id = update.effective_chat.id
        request = (
            self.pipeline.request_deposit
            if kind == TransactionKind.DEPOSIT
            else self.pipeline.request_withdraw
        )
        pending = await asyncio.to_thread(request, user_id, amount_spec)
        message, keyboard = message_builder.build_confirmation_message(pending)
        await self._reply(update, message, keyboard)

    async def _confirm(self, update: Update):
        user_id = update.effective_chat.id
        session = self.pipeline.store.get(user_id)
        if session.pending is None:
            raise NoPendingTransaction(user_id)

        await self._reply(update, "⏳ Sending transaction, waiting for confirmation...")
        outcome = await asyncio.to_thread(self.pipeline.confirm, user_id)
        await self._reply(update, message_builder.build_outcome_message(outcome))

        if outcome.ambiguous:
            await telegram_bot.send_alert(
                message_builder.build_ambiguous_alert(user_id, outcome),
                channel="error",
            )
        elif outcome.succeeded:
            await telegram_bot.send_alert(
                message_builder.build_outcome_message(outcome), channel="transaction"
            )

    async def _cancel(self, update: Update):
        pending = self.pipeline.cancel(update.effective_chat.id)
        await self._reply(
            update, f"🚫 {pending.kind.value.capitalize()} cancelled. Nothing was sent."
        )

    async def _show_main(self, update: Update, public_key: str):
        overview = await asyncio.to_thread(self.portfolio.get_overview, public_key)
        message, keyboard = message_builder.build_main_message(overview)
        await self._reply(update, message, keyboard)

    async def _show_amount_selection(
        self, update: Update, kind: TransactionKind, public_key: str
    ):
        asset = self.pipeline.asset
        if kind == TransactionKind.DEPOSIT:
            balance = await asyncio.to_thread(
                self.pipeline.ledger.get_token_balance, public_key, asset
            )
        else:
            balance = await asyncio.to_thread(
                self.pipeline.gateway.get_fund_position,
                public_key,
                self.pipeline.fund_id,
                asset,
            )
        message, keyboard = message_builder.build_amount_selection(
            kind, balance.raw, asset
        )
        await self._reply(update, message, keyboard)

    @staticmethod
    async def _reply(update: Update, text: str, reply_markup=None):
        await update.effective_chat.send_message(
            text, parse_mode=ParseMode.HTML, reply_markup=reply_markup
        )


def build_application() -> Application:
    breeze = BreezeService()
    ledger = SolanaLedgerService()
    pipeline = ConfirmationPipeline(
        store=SessionStore(), gateway=breeze, ledger=ledger
    )
    bot = BreezeBot(pipeline, PortfolioService(breeze, ledger))

    application = (
        Application.builder()
        .token(settings.TELEGRAM_TOKEN)
        .concurrent_updates(True)
        .build()
    )
    bot.register(application)
    return application


@click.command()
@click.option("--log-level", default="INFO", help="Logging level")
def main(log_level: str):
    level = logging.getLevelName(log_level.upper())
    setup_logging_to_console(level=level)
    setup_logging_to_file(app="breeze_bot", level=level, logger=logger)

    missing = [
        name
        for name in ("TELEGRAM_TOKEN", "BREEZE_API_KEY", "BREEZE_FUND_ID")
        if not getattr(settings, name)
    ]
    if missing:
        raise click.UsageError(f"Missing settings: {', '.join(missing)}")

    logger.info(
        "Starting Breeze bot (%s, fund %s, asset %s)",
        settings.ENVIRONMENT_NAME,
        settings.BREEZE_FUND_ID,
        settings.FUND_ASSET,
    )
    build_application().run_polling(allowed_updates=Update.ALL_TYPES)


if __name__ == "__main__":
    main()
