"""Error taxonomy of the Breeze bot.

Everything raised on purpose derives from ``BreezeBotError`` so the bot layer
can tell expected, user-reportable conditions apart from real crashes.
"""

from typing import Optional


class BreezeBotError(Exception):
    """Base class for all expected errors."""


class ValidationError(BreezeBotError):
    """Intent rejected locally, before any network call."""


class PrecisionExceeded(ValidationError):
    def __init__(self, value, decimals: int):
        self.value = value
        self.decimals = decimals
        super().__init__(
            f"Amount {value} has more than {decimals} decimal places"
        )


class NoIdentity(ValidationError):
    def __init__(self, user_id):
        self.user_id = user_id
        super().__init__(f"No wallet linked for user {user_id}")


class GatewayError(BreezeBotError):
    """The fund service answered but refused the quote."""

    def __init__(self, message: str, code: Optional[int] = None):
        self.message = message
        self.code = code
        super().__init__(message)


class TransportError(BreezeBotError):
    """Network or HTTP failure talking to an external service."""


class NoPendingTransaction(BreezeBotError):
    def __init__(self, user_id):
        self.user_id = user_id
        super().__init__(f"No pending transaction for user {user_id}")


class SigningError(BreezeBotError):
    """The stored payload could not be deserialized or signed."""


class LedgerError(BreezeBotError):
    pass


class TransactionRejected(LedgerError):
    """The ledger explicitly failed the transaction. Nothing landed."""


class SubmissionError(LedgerError):
    """Submission failed in transit. The transaction may still land."""


class FinalityTimeout(LedgerError):
    """No finality within the deadline. The transaction may still land."""

    def __init__(self, signature: str, timeout: float):
        self.signature = signature
        self.timeout = timeout
        super().__init__(
            f"Transaction {signature} not confirmed within {timeout} seconds"
        )


AMBIGUOUS_LEDGER_ERRORS = (SubmissionError, FinalityTimeout)
