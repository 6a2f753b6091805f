import logging
from decimal import Decimal
from typing import Optional

from core import constants
from schemas.portfolio import FundPosition, PortfolioOverview
from services.breeze_service import BreezeService
from services.ledger_service import SolanaLedgerService
from utils.amount_utils import to_human_amount

logger = logging.getLogger(__name__)


def average_apy(apys) -> Optional[float]:
    values = []
    for apy in apys:
        try:
            values.append(float(apy))
        except (TypeError, ValueError):
            continue
    return sum(values) / len(values) if values else None


class PortfolioService:
    """Read-only aggregation for the balance screens.

    Totals here are display values. Requests are always sized from integer
    balances by the confirmation pipeline.
    """

    def __init__(self, breeze: BreezeService, ledger: SolanaLedgerService):
        self.breeze = breeze
        self.ledger = ledger

    def get_positions(self, user_key: str) -> list[FundPosition]:
        balances = self.breeze.get_user_balances(user_key)
        positions = []
        for entry in balances.data:
            if entry.yield_balance is None:
                continue
            asset = constants.ASSETS.get(entry.token_symbol)
            if asset is None or asset.decimals != entry.decimals:
                logger.warning(
                    "Skipping position in unknown asset %s (%s decimals)",
                    entry.token_symbol,
                    entry.decimals,
                )
                continue
            positions.append(
                FundPosition(
                    fund_id=entry.yield_balance.fund_id,
                    token_symbol=entry.token_symbol,
                    position_value=to_human_amount(
                        int(entry.yield_balance.funds), asset
                    ),
                    yield_earned=to_human_amount(
                        int(entry.yield_balance.amount_of_yield), asset
                    ),
                    apy=entry.yield_balance.fund_apy,
                )
            )
        return positions

    def get_overview(self, user_key: str) -> PortfolioOverview:
        wallet = self.ledger.get_wallet_balances(user_key)
        positions = self.get_positions(user_key)
        yields = self.breeze.get_user_yield(user_key)

        return PortfolioOverview(
            wallet=wallet,
            positions=positions,
            total_position_value=sum(
                (p.position_value for p in positions), Decimal(0)
            ),
            total_yield_earned=sum((p.yield_earned for p in positions), Decimal(0)),
            average_apy=average_apy(y.apy for y in yields.data),
        )
