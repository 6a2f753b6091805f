from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, model_validator

from core.constants import TransactionKind, TransactionState
from schemas.asset import AssetSpec


class AmountSpec(BaseModel):
    """Either a percentage of the available balance or an explicit amount."""

    percentage: Optional[int] = None
    amount: Optional[Decimal] = None

    @model_validator(mode="after")
    def check_exactly_one(self):
        if (self.percentage is None) == (self.amount is None):
            raise ValueError("Exactly one of percentage or amount must be set")
        return self

    @classmethod
    def of_percentage(cls, percentage: int) -> "AmountSpec":
        return cls(percentage=percentage)

    @classmethod
    def of_amount(cls, amount: Decimal) -> "AmountSpec":
        return cls(amount=amount)


class PendingTransaction(BaseModel):
    # base64 serialized, unsigned transaction as quoted by the fund service
    payload: str
    kind: TransactionKind
    asset: AssetSpec
    base_units: int
    human_amount: Decimal
    use_all: bool = False
    state: TransactionState = TransactionState.AWAITING_CONFIRM


class TransactionOutcome(BaseModel):
    kind: TransactionKind
    asset: AssetSpec
    base_units: int
    human_amount: Decimal
    state: TransactionState
    signature: Optional[str] = None
    error: Optional[str] = None
    # True when the transaction may have landed despite the reported failure
    ambiguous: bool = False

    @property
    def succeeded(self) -> bool:
        return self.state == TransactionState.FINALIZED
