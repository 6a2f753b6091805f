from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel

from schemas.balance import WalletBalances


class FundPosition(BaseModel):
    fund_id: str
    token_symbol: str
    position_value: Decimal
    yield_earned: Decimal
    apy: float = 0


class PortfolioOverview(BaseModel):
    wallet: WalletBalances
    positions: List[FundPosition] = []
    # display aggregates only, never used to size a request
    total_position_value: Decimal = Decimal(0)
    total_yield_earned: Decimal = Decimal(0)
    average_apy: Optional[float] = None
