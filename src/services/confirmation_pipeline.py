"""Quote, hold and confirm fund transfers for chat users.

A user intent (deposit/withdraw a percentage or an explicit amount) is sized
in integer base units, quoted by the fund service and parked as the user's
single pending transaction. Nothing reaches the ledger until ``confirm`` is
called; the pending transaction is consumed before submission so a signed
payload is never handed over twice.
"""

import logging
from typing import Hashable, Tuple

from core import constants
from core.config import settings
from core.constants import InputMode, TransactionKind, TransactionState
from core.exceptions import (
    AMBIGUOUS_LEDGER_ERRORS,
    LedgerError,
    NoIdentity,
    NoPendingTransaction,
    SigningError,
    ValidationError,
)
from schemas.asset import AssetSpec
from schemas.balance import Balance
from schemas.transaction import AmountSpec, PendingTransaction, TransactionOutcome
from services import wallet_service
from services.ports import FundRequestGateway, LedgerPort
from services.session_store import SessionStore, UserSession
from utils.amount_utils import (
    check_percentage,
    parse_human_amount,
    percentage_of,
    to_base_units,
    to_human_amount,
)

logger = logging.getLogger(__name__)


class ConfirmationPipeline:
    def __init__(
        self,
        store: SessionStore,
        gateway: FundRequestGateway,
        ledger: LedgerPort,
        fund_id: str = None,
        asset: AssetSpec = None,
        finality_timeout: float = None,
    ):
        self.store = store
        self.gateway = gateway
        self.ledger = ledger
        self.fund_id = fund_id or settings.BREEZE_FUND_ID
        self.asset = asset or constants.ASSETS[settings.FUND_ASSET]
        self.finality_timeout = (
            settings.FINALITY_TIMEOUT_SECONDS
            if finality_timeout is None
            else finality_timeout
        )

    # identity

    def start_session(self, user_id: Hashable) -> UserSession:
        session = self.store.get(user_id)
        session.input_mode = InputMode.NONE
        return session

    def generate_identity(self, user_id: Hashable) -> Tuple[str, str]:
        keypair, secret = wallet_service.generate_keypair()
        session = self.store.set_identity(user_id, keypair)
        session.input_mode = InputMode.NONE
        logger.info("Generated wallet %s for user %s", session.public_key, user_id)
        return session.public_key, secret

    def set_identity(self, user_id: Hashable, key_material: str) -> str:
        keypair = wallet_service.import_keypair(key_material)
        session = self.store.set_identity(user_id, keypair)
        session.input_mode = InputMode.NONE
        logger.info("Imported wallet %s for user %s", session.public_key, user_id)
        return session.public_key

    # intents

    def request_deposit(
        self, user_id: Hashable, amount_spec: AmountSpec
    ) -> PendingTransaction:
        return self._request(user_id, TransactionKind.DEPOSIT, amount_spec)

    def request_withdraw(
        self, user_id: Hashable, amount_spec: AmountSpec
    ) -> PendingTransaction:
        return self._request(user_id, TransactionKind.WITHDRAW, amount_spec)

    def cancel(self, user_id: Hashable) -> PendingTransaction:
        pending = self.store.clear_pending(user_id)
        if pending is None:
            raise NoPendingTransaction(user_id)
        pending.state = TransactionState.CANCELLED
        logger.info(
            "Cancelled %s of %s base units for user %s",
            pending.kind.value,
            pending.base_units,
            user_id,
        )
        return pending

    def confirm(self, user_id: Hashable) -> TransactionOutcome:
        """Sign and submit the pending transaction, then wait for finality.

        Returns the outcome once the transaction reached the ledger, including
        ledger-side failures. Raises ``NoPendingTransaction`` when there is
        nothing to confirm and ``SigningError`` when the stored payload cannot
        be signed; in both cases nothing was submitted.
        """
        session = self.store.get(user_id)
        pending = session.pending
        if pending is None or pending.state != TransactionState.AWAITING_CONFIRM:
            raise NoPendingTransaction(user_id)
        if session.keypair is None:
            raise NoIdentity(user_id)

        pending.state = TransactionState.SIGNING
        try:
            signed = wallet_service.sign_payload(pending.payload, session.keypair)
        except SigningError:
            pending.state = TransactionState.FAILED
            self.store.clear_pending(user_id)
            logger.error(
                "Discarded unsignable payload for user %s", user_id, exc_info=True
            )
            raise

        # consumed before submission: a second confirm finds nothing to send
        self.store.clear_pending(user_id)

        signature = None
        try:
            signature = self.ledger.submit(signed)
            pending.state = TransactionState.SUBMITTED
            logger.info(
                "Submitted %s of %s base units for user %s: %s",
                pending.kind.value,
                pending.base_units,
                user_id,
                signature,
            )
            self.ledger.await_finality(signature, self.finality_timeout)
        except LedgerError as e:
            pending.state = TransactionState.FAILED
            ambiguous = isinstance(e, AMBIGUOUS_LEDGER_ERRORS)
            logger.error(
                "%s for user %s failed (ambiguous=%s): %s",
                pending.kind.value,
                user_id,
                ambiguous,
                e,
            )
            return self._outcome(
                pending, signature=signature, error=str(e), ambiguous=ambiguous
            )

        pending.state = TransactionState.FINALIZED
        logger.info("Finalized %s for user %s: %s", pending.kind.value, user_id, signature)
        return self._outcome(pending, signature=signature)

    # internals

    def _request(
        self, user_id: Hashable, kind: TransactionKind, amount_spec: AmountSpec
    ) -> PendingTransaction:
        session = self.store.get(user_id)
        if session.keypair is None:
            raise NoIdentity(user_id)
        user_key = session.public_key

        if amount_spec.amount is not None:
            human_amount = parse_human_amount(amount_spec.amount, self.asset)
            base_units, use_all = to_base_units(human_amount, self.asset), False
        else:
            check_percentage(amount_spec.percentage)
            balance = self._available_balance(kind, user_key)
            base_units, use_all = percentage_of(balance.raw, amount_spec.percentage)

        if base_units <= 0:
            if kind == TransactionKind.DEPOSIT:
                raise ValidationError(f"Insufficient {self.asset.symbol} balance")
            raise ValidationError("No funds available to withdraw")
        human_amount = to_human_amount(base_units, self.asset)

        # quoting: an older unconfirmed quote is discarded whatever the result
        if self.store.clear_pending(user_id) is not None:
            logger.info("Discarding previous quote for user %s", user_id)
        session.input_mode = InputMode.NONE

        logger.info(
            "Quoting %s of %s base units (all=%s) for user %s",
            kind.value,
            base_units,
            use_all,
            user_id,
        )
        quote = (
            self.gateway.quote_deposit
            if kind == TransactionKind.DEPOSIT
            else self.gateway.quote_withdraw
        )
        payload = quote(self.fund_id, base_units, use_all, user_key)

        pending = PendingTransaction(
            payload=payload,
            kind=kind,
            asset=self.asset,
            base_units=base_units,
            human_amount=human_amount,
            use_all=use_all,
            state=TransactionState.AWAITING_CONFIRM,
        )
        self.store.set_pending(user_id, pending)
        return pending

    def _available_balance(self, kind: TransactionKind, user_key: str) -> Balance:
        if kind == TransactionKind.DEPOSIT:
            return self.ledger.get_token_balance(user_key, self.asset)
        return self.gateway.get_fund_position(user_key, self.fund_id, self.asset)

    @staticmethod
    def _outcome(pending: PendingTransaction, **kwargs) -> TransactionOutcome:
        return TransactionOutcome(
            kind=pending.kind,
            asset=pending.asset,
            base_units=pending.base_units,
            human_amount=pending.human_amount,
            state=pending.state,
            **kwargs,
        )
