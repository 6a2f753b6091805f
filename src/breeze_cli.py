import logging

import click
from rich.console import Console
from rich.table import Table

from core import constants
from core.exceptions import BreezeBotError
from log import setup_logging_to_console
from services.breeze_service import BreezeService
from services.ledger_service import SolanaLedgerService
from services.portfolio_service import PortfolioService
from utils.amount_utils import format_amount, to_human_amount

console = Console()


@click.group()
@click.option("--log-level", default="WARNING", help="Logging level")
def cli(log_level: str):
    setup_logging_to_console(level=logging.getLevelName(log_level.upper()))


@cli.command()
@click.argument("public_key")
def balances(public_key: str):
    """Wallet balances and Breeze positions of PUBLIC_KEY."""
    portfolio = PortfolioService(BreezeService(), SolanaLedgerService())
    try:
        overview = portfolio.get_overview(public_key)
    except BreezeBotError as e:
        raise click.ClickException(str(e))

    wallet = Table(title=f"Wallet {public_key}")
    wallet.add_column("Asset")
    wallet.add_column("Balance", justify="right")
    wallet.add_column("Base units", justify="right")
    for balance in [overview.wallet.sol, *overview.wallet.tokens.values()]:
        wallet.add_row(
            balance.asset.symbol,
            format_amount(balance.human, balance.asset),
            str(balance.raw),
        )
    console.print(wallet)

    positions = Table(title="Breeze positions")
    positions.add_column("Fund")
    positions.add_column("Asset")
    positions.add_column("Value", justify="right")
    positions.add_column("Yield", justify="right")
    positions.add_column("APY", justify="right")
    for position in overview.positions:
        positions.add_row(
            position.fund_id,
            position.token_symbol,
            f"{position.position_value:f}",
            f"{position.yield_earned:f}",
            f"{position.apy:.2f}%",
        )
    console.print(positions)
    console.print(
        f"Total value: {overview.total_position_value:f}  "
        f"Total yield: {overview.total_yield_earned:f}"
    )


@cli.command("yield-history")
@click.argument("public_key")
@click.option("--fund-id", default=None, help="Only show this fund")
@click.option("--page", default=1, type=int)
@click.option("--limit", default=10, type=int)
def yield_history(public_key: str, fund_id: str, page: int, limit: int):
    """Yield earned by PUBLIC_KEY per fund."""
    try:
        yields = BreezeService().get_user_yield(
            public_key, fund_id=fund_id, page=page, limit=limit
        )
    except BreezeBotError as e:
        raise click.ClickException(str(e))

    table = Table(title=f"Yield history {public_key}")
    for column in ("Fund", "Asset", "Position", "Yield", "APY", "Entry date"):
        table.add_column(column)
    for entry in yields.data:
        asset = constants.ASSETS.get(entry.base_asset, constants.USDC)
        table.add_row(
            entry.fund_name,
            entry.base_asset,
            format_amount(to_human_amount(int(entry.position_value), asset), asset),
            format_amount(to_human_amount(int(entry.yield_earned), asset), asset),
            f"{float(entry.apy):.2f}%",
            entry.entry_date or "-",
        )
    console.print(table)
    if yields.meta:
        console.print(f"Page {yields.meta.page} of {yields.meta.total_pages}")


if __name__ == "__main__":
    cli()
