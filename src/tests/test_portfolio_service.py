from decimal import Decimal
from unittest.mock import Mock

from core import constants
from schemas.balance import Balance, WalletBalances
from schemas.breeze import UserBalancesResponse, UserYieldResponse
from services.portfolio_service import PortfolioService, average_apy

OWNER = "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU"


def make_service():
    breeze = Mock()
    breeze.get_user_balances.return_value = UserBalancesResponse.model_validate(
        {
            "data": [
                {
                    "token_address": constants.USDC.mint,
                    "token_symbol": "USDC",
                    "decimals": 6,
                    "yield_balance": {
                        "fund_id": "fund-usdc-1",
                        "funds": "100000000",
                        "amount_of_yield": "250000",
                        "fund_apy": 8.0,
                    },
                },
                {
                    "token_address": constants.USDT.mint,
                    "token_symbol": "USDT",
                    "decimals": 6,
                    "yield_balance": {
                        "fund_id": "fund-usdt-1",
                        "funds": "23456789",
                        "amount_of_yield": "1",
                        "fund_apy": 6.0,
                    },
                },
                {
                    "token_address": "Mint1111111111111111111111111111111111111",
                    "token_symbol": "ODD",
                    "decimals": 8,
                    "yield_balance": {
                        "fund_id": "fund-odd",
                        "funds": "1",
                        "amount_of_yield": "0",
                    },
                },
                {
                    "token_address": constants.PYUSD.mint,
                    "token_symbol": "PYUSD",
                    "decimals": 6,
                    "yield_balance": None,
                },
            ]
        }
    )
    breeze.get_user_yield.return_value = UserYieldResponse.model_validate(
        {
            "data": [
                {
                    "fund_id": "fund-usdc-1",
                    "fund_name": "USDC",
                    "base_asset": "USDC",
                    "position_value": "100000000",
                    "yield_earned": "250000",
                    "apy": "8.0",
                },
                {
                    "fund_id": "fund-usdt-1",
                    "fund_name": "USDT",
                    "base_asset": "USDT",
                    "position_value": "23456789",
                    "yield_earned": "1",
                    "apy": "6.0",
                },
            ]
        }
    )
    ledger = Mock()
    ledger.get_wallet_balances.return_value = WalletBalances(
        owner=OWNER, sol=Balance.zero(constants.SOL)
    )
    return PortfolioService(breeze, ledger)


def test_get_positions_skips_unknown_assets():
    positions = make_service().get_positions(OWNER)

    assert [p.fund_id for p in positions] == ["fund-usdc-1", "fund-usdt-1"]
    assert positions[1].position_value == Decimal("23.456789")
    assert positions[1].yield_earned == Decimal("0.000001")


def test_get_overview_totals():
    overview = make_service().get_overview(OWNER)

    assert overview.total_position_value == Decimal("123.456789")
    assert overview.total_yield_earned == Decimal("0.250001")
    assert overview.average_apy == 7.0
    assert overview.wallet.owner == OWNER


def test_average_apy():
    assert average_apy(["8", "6", "n/a"]) == 7.0
    assert average_apy([]) is None
