from decimal import Decimal
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field

from schemas.asset import AssetSpec
from utils.amount_utils import to_human_amount


class Balance(BaseModel):
    model_config = ConfigDict(frozen=True)

    asset: AssetSpec
    raw: int = Field(ge=0)

    @property
    def human(self) -> Decimal:
        # always derived from raw so the two never disagree
        return to_human_amount(self.raw, self.asset)

    @classmethod
    def zero(cls, asset: AssetSpec) -> "Balance":
        return cls(asset=asset, raw=0)


class WalletBalances(BaseModel):
    owner: str
    sol: Balance
    tokens: Dict[str, Balance] = {}
