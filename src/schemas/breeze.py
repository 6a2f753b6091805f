from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class FundRequestParams(BaseModel):
    fund_id: str
    # base units; python ints serialize to JSON without loss
    amount: int
    all: bool = False
    user_key: str
    payer_key: Optional[str] = None


class PageMeta(BaseModel):
    page: int = 1
    per_page: int = 0
    total: int = 0
    total_pages: int = 0
    has_more: bool = False


class YieldBalance(BaseModel):
    fund_id: str
    # base units as decimal strings
    funds: str
    amount_of_yield: str
    fund_apy: float = 0


class UserBalance(BaseModel):
    model_config = ConfigDict(extra="ignore")

    token_address: str
    token_symbol: str
    token_name: Optional[str] = None
    decimals: int
    total_balance: int = 0
    yield_balance: Optional[YieldBalance] = None


class UserBalancesResponse(BaseModel):
    data: List[UserBalance] = []
    meta: Optional[PageMeta] = None


class UserYield(BaseModel):
    model_config = ConfigDict(extra="ignore")

    fund_id: str
    fund_name: str
    base_asset: str
    position_value: str
    yield_earned: str
    apy: str
    entry_date: Optional[str] = None
    last_updated: Optional[str] = None


class UserYieldResponse(BaseModel):
    data: List[UserYield] = []
    meta: Optional[PageMeta] = None
