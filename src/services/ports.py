from typing import Protocol

from solders.transaction import VersionedTransaction

from schemas.asset import AssetSpec
from schemas.balance import Balance


class FundRequestGateway(Protocol):
    """Produces unsigned transfer payloads. Never mutates ledger state.

    Quotes return the base64 serialized transaction, raise ``GatewayError``
    when the service refuses and ``TransportError`` when it cannot be reached.
    """

    def quote_deposit(
        self, fund_id: str, amount: int, use_all: bool, user_key: str
    ) -> str: ...

    def quote_withdraw(
        self, fund_id: str, amount: int, use_all: bool, user_key: str
    ) -> str: ...

    def get_fund_position(
        self, user_key: str, fund_id: str, asset: AssetSpec
    ) -> Balance: ...


class LedgerPort(Protocol):
    def get_token_balance(self, owner: str, asset: AssetSpec) -> Balance: ...

    def submit(self, transaction: VersionedTransaction) -> str: ...

    def await_finality(self, signature: str, timeout: float) -> None: ...
