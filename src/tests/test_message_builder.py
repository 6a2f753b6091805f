from decimal import Decimal

from core import constants
from core.constants import CallbackData, TransactionKind, TransactionState
from notifications.message_builder import (
    build_ambiguous_alert,
    build_amount_selection,
    build_balances_message,
    build_confirmation_message,
    build_error_message,
    build_main_message,
    build_outcome_message,
    build_yield_history_message,
    short_key,
)
from schemas.balance import Balance, WalletBalances
from schemas.breeze import UserYieldResponse
from schemas.portfolio import FundPosition, PortfolioOverview
from schemas.transaction import PendingTransaction, TransactionOutcome

USDC = constants.USDC
OWNER = "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU"


def callback_data(keyboard):
    return [button.callback_data for row in keyboard.inline_keyboard for button in row]


def make_overview(positions=None):
    wallet = WalletBalances(
        owner=OWNER,
        sol=Balance(asset=constants.SOL, raw=1_234_500_000),
        tokens={"USDC": Balance(asset=USDC, raw=101_000_000)},
    )
    return PortfolioOverview(
        wallet=wallet,
        positions=positions or [],
        total_position_value=Decimal("123.456789"),
        total_yield_earned=Decimal("0.0015"),
        average_apy=7.25,
    )


def make_outcome(**kwargs):
    fields = dict(
        kind=TransactionKind.DEPOSIT,
        asset=USDC,
        base_units=50_500_000,
        human_amount=Decimal("50.5"),
        state=TransactionState.FINALIZED,
        signature="5sig",
    )
    fields.update(kwargs)
    return TransactionOutcome(**fields)


def test_short_key():
    assert short_key(OWNER) == "7xKXtg2C...uJosgAsU"


def test_main_message():
    message, keyboard = build_main_message(make_overview())

    assert "SOL: 1.2345" in message
    assert "USDC: 101.00" in message
    assert "$123.46" in message
    assert "7.25%" in message
    assert CallbackData.EARN_YIELD.value in callback_data(keyboard)


def test_amount_selection_buttons():
    message, keyboard = build_amount_selection(TransactionKind.WITHDRAW, 1_000_001, USDC)

    assert "1.000001 USDC" in message
    data = callback_data(keyboard)
    assert "withdraw_pct:50" in data
    assert "withdraw_pct:100" in data
    assert CallbackData.WITHDRAW_CUSTOM.value in data


def test_confirmation_message_shows_full_precision():
    pending = PendingTransaction(
        payload="AA==",
        kind=TransactionKind.DEPOSIT,
        asset=USDC,
        base_units=123_456_789,
        human_amount=Decimal("123.456789"),
        use_all=True,
    )

    message, keyboard = build_confirmation_message(pending)

    assert "123.456789 USDC (entire balance)" in message
    assert "Deposit to Breeze" in message
    assert callback_data(keyboard) == [
        CallbackData.CONFIRM_TRANSACTION.value,
        CallbackData.CANCEL_TRANSACTION.value,
    ]


def test_outcome_success():
    message = build_outcome_message(make_outcome())

    assert "Successfully deposited to Breeze" in message
    assert "50.500000 USDC" in message
    assert "5sig" in message


def test_outcome_ambiguous():
    message = build_outcome_message(
        make_outcome(state=TransactionState.FAILED, ambiguous=True, error="timeout")
    )

    assert "status unknown" in message
    assert "5sig" in message


def test_outcome_failed_escapes_error():
    message = build_outcome_message(
        make_outcome(
            state=TransactionState.FAILED, signature=None, error="<bad> & worse"
        )
    )

    assert "Transaction failed" in message
    assert "&lt;bad&gt; &amp; worse" in message


def test_balances_message():
    position = FundPosition(
        fund_id="fund-usdc-1",
        token_symbol="USDC",
        position_value=Decimal("123.456789"),
        yield_earned=Decimal("0.0015"),
        apy=7.25,
    )

    message, _ = build_balances_message(make_overview([position]))

    assert "fund-usdc-1: $123.456789" in message
    assert "Wallet Balance: 101.000000" in message


def test_balances_message_without_positions():
    message, _ = build_balances_message(make_overview())

    assert "No positions found" in message


def test_yield_history_message():
    yields = UserYieldResponse.model_validate(
        {
            "data": [
                {
                    "fund_id": "fund-usdc-1",
                    "fund_name": "USDC <Prime>",
                    "base_asset": "USDC",
                    "position_value": "123456789",
                    "yield_earned": "1500",
                    "apy": "7.254",
                    "entry_date": "2025-01-02T10:00:00Z",
                    "last_updated": None,
                }
            ],
            "meta": {"page": 1, "per_page": 1, "total": 3, "total_pages": 3},
        }
    )

    message, _ = build_yield_history_message(yields)

    assert "USDC &lt;Prime&gt;" in message
    assert "$123.456789" in message
    assert "$0.001500" in message
    assert "APY: 7.25%" in message
    assert "Entry Date: 2025-01-02" in message
    assert "Page 1 of 3" in message


def test_error_message():
    message = build_error_message(ValueError("x < y"), "Unhandled bot error")

    assert "Unhandled bot error" in message
    assert "x &lt; y" in message


def test_ambiguous_alert():
    outcome = make_outcome(
        state=TransactionState.FAILED, ambiguous=True, error="not confirmed"
    )

    message = build_ambiguous_alert(4242, outcome)

    assert message.count("<pre>") == message.count("</pre>") == 1
    assert "50500000 base units" in message
    assert "4242" in message
