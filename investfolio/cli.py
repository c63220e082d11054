"""CLI for managing a local portfolio.

Commands:
    init-db                          Create or upgrade the database schema
    seed-assets                      Load popular B3 stocks and cryptos
    classify NAME                    Show the category a ticker would get
    search QUERY                     Autocomplete known assets
    add NAME AMOUNT [--quantity Q]   Add a position
    edit ID AMOUNT [--quantity Q]    Set a new cost basis for a position
    remove ID                        Remove a position
    list                             List positions (revalued from quotes)
    refresh                          Fetch quotes, revalue and save
    allocation                       Allocation by category and totals
    market                           Popular stocks by daily change
    simulate                         Project portfolio growth
"""

import logging
import os
import sys
from decimal import Decimal

import click
from alembic import command
from alembic.config import Config

from investfolio.api_client import BrapiClient
from investfolio.catalog import KnownAssetCatalog
from investfolio.categories import Category
from investfolio.config import Settings
from investfolio.database import Database
from investfolio.display import format_brl, format_percent_change
from investfolio.errors import InvestfolioError
from investfolio.known_assets import POPULAR_CRYPTOS, POPULAR_STOCKS
from investfolio.ledger import PortfolioLedger
from investfolio.persistence import SQLitePositionStore
from investfolio.quote_cache import QuoteCache
from investfolio.service import PortfolioService

logger = logging.getLogger(__name__)

CATEGORY_CHOICES = [c.name.lower() for c in Category]
WHOLE_PERCENT = Decimal("1")


def ensure_database_initialized(db_path: str, encryption_key: str | None = None) -> None:
    """Run Alembic migrations up to head when the schema is missing.

    Args:
        db_path: Path to database file
        encryption_key: SQLCipher key of an existing database
    """
    if os.path.exists(db_path):
        if Database(db_path=db_path, encryption_key=encryption_key).is_initialized():
            return

    click.echo("Initializing database schema...")
    alembic_config = Config("alembic.ini")
    alembic_config.set_main_option(
        "sqlalchemy.url", f"sqlite:///{os.path.abspath(db_path)}"
    )
    command.upgrade(alembic_config, "head")
    click.echo("✓ Database schema initialized")


def build_service(settings: Settings) -> PortfolioService:
    """Wire the engine for one user from settings and load their positions."""
    ensure_database_initialized(settings.db_path, settings.db_encryption_key)
    database = Database.from_settings(settings)

    ledger = PortfolioLedger(settings.user_id, SQLitePositionStore(database))
    ledger.load()

    client = BrapiClient(
        base_url=settings.brapi_base_url,
        token=settings.brapi_token,
        timeout=settings.brapi_timeout,
        max_attempts=settings.brapi_max_attempts,
    )
    catalog = KnownAssetCatalog(database, ttl=settings.known_assets_ttl_seconds)
    cache = QuoteCache(ttl=settings.quote_ttl_seconds)
    return PortfolioService(ledger, cache, client, catalog=catalog)


def _fail(message: str) -> None:
    click.echo(f"✗ {message}", err=True)
    sys.exit(1)


def _echo_position(position) -> None:
    quantity = f"{position.quantity.normalize():f}" if position.quantity else "-"
    click.echo(
        f"{position.id}  {position.asset_name:<12} {position.category.label:<11} "
        f"qty {quantity:>10}  invested {format_brl(position.amount_invested):>16}  "
        f"value {format_brl(position.current_value):>16}  "
        f"{format_percent_change(position.performance_pct):>9}"
    )


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx, verbose: bool):
    """investfolio - classify assets and track portfolio valuation."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )
    try:
        ctx.obj = Settings.from_env()
    except ValueError as e:
        _fail(f"Invalid configuration: {e}")


@cli.command("init-db")
@click.pass_obj
def init_db(settings: Settings):
    """Create or upgrade the database schema."""
    ensure_database_initialized(settings.db_path, settings.db_encryption_key)


@cli.command("seed-assets")
@click.pass_obj
def seed_assets(settings: Settings):
    """Load popular B3 stocks and cryptos into the known-asset catalog."""
    ensure_database_initialized(settings.db_path, settings.db_encryption_key)
    catalog = KnownAssetCatalog(Database.from_settings(settings))
    inserted = catalog.add_many(POPULAR_STOCKS + POPULAR_CRYPTOS)
    click.echo(f"✓ Added {inserted} known assets")


@cli.command()
@click.argument("name")
@click.pass_obj
def classify(settings: Settings, name: str):
    """Show the category NAME would be filed under."""
    service = build_service(settings)
    result = service.classify(name)
    click.echo(f"{name.strip().upper()}: {result.category.label} (rule: {result.rule})")
    if result.ambiguous:
        click.echo(
            "⚠ Unrecognised asset; it will be filed under "
            f"{Category.OTHER.label}. Pass --category to choose one.",
            err=True,
        )


@cli.command()
@click.argument("query")
@click.option("--limit", default=8, show_default=True, help="Max suggestions.")
@click.option("--remote", is_flag=True, help="Search BRAPI instead of the catalog.")
@click.pass_obj
def search(settings: Settings, query: str, limit: int, remote: bool):
    """Suggest known assets matching QUERY."""
    service = build_service(settings)
    if remote:
        results = service.provider.search(query, limit)
    else:
        results = service.suggest(query, limit)

    if not results:
        click.echo("No matches")
        return
    for asset in results:
        click.echo(f"{asset.symbol:<8} {asset.category.label:<11} {asset.display_name}")


@cli.command()
@click.argument("name")
@click.argument("amount")
@click.option("--quantity", "-q", default=None, help="Units held, e.g. 10 or 0,5.")
@click.option(
    "--category",
    "-c",
    type=click.Choice(CATEGORY_CHOICES, case_sensitive=False),
    default=None,
    help="Override automatic classification.",
)
@click.pass_obj
def add(settings: Settings, name: str, amount: str, quantity: str | None, category: str | None):
    """Add a position of AMOUNT (BRL) in NAME."""
    service = build_service(settings)
    try:
        position = service.add_asset(name, amount, quantity, category)
    except InvestfolioError as e:
        _fail(str(e))
    click.echo(f"✓ Added {position.asset_name} as {position.category.label}")
    _echo_position(position)


@cli.command()
@click.argument("position_id")
@click.argument("amount")
@click.option("--quantity", "-q", default=None, help="Units held; omit to clear.")
@click.pass_obj
def edit(settings: Settings, position_id: str, amount: str, quantity: str | None):
    """Set AMOUNT (BRL) as the new cost basis of POSITION_ID."""
    service = build_service(settings)
    try:
        position = service.edit_asset(position_id, amount, quantity)
    except InvestfolioError as e:
        _fail(str(e))
    click.echo("✓ Position updated")
    _echo_position(position)


@cli.command()
@click.argument("position_id")
@click.option("--yes", "-y", is_flag=True, help="Don't ask for confirmation.")
@click.pass_obj
def remove(settings: Settings, position_id: str, yes: bool):
    """Remove POSITION_ID."""
    if not yes:
        click.confirm(f"Remove position {position_id}?", abort=True)
    service = build_service(settings)
    try:
        service.remove_asset(position_id)
    except InvestfolioError as e:
        _fail(str(e))
    click.echo("✓ Position removed")


@cli.command("list")
@click.option(
    "--quotes/--no-quotes",
    default=True,
    show_default=True,
    help="Revalue listed assets from quotes (not saved).",
)
@click.pass_obj
def list_positions(settings: Settings, quotes: bool):
    """List positions in the order they were added."""
    service = build_service(settings)
    if quotes:
        outcome = service.refresh_quotes(manual=False)
        for symbol in outcome.unavailable:
            click.echo(f"⚠ No quote for {symbol}; showing last known value", err=True)

    positions = service.ledger.list()
    if not positions:
        click.echo("No positions yet")
        return
    for position in positions:
        _echo_position(position)


@cli.command()
@click.pass_obj
def refresh(settings: Settings):
    """Fetch quotes, revalue listed assets and save the new values."""
    service = build_service(settings)
    try:
        outcome = service.refresh_quotes(manual=True)
    except InvestfolioError as e:
        _fail(str(e))

    click.echo(f"✓ Revalued {len(outcome.touched_ids)} positions")
    for symbol in outcome.unavailable:
        click.echo(f"⚠ No quote for {symbol}", err=True)


@cli.command()
@click.pass_obj
def allocation(settings: Settings):
    """Show allocation by category and portfolio totals."""
    service = build_service(settings)
    for item in service.allocation():
        click.echo(
            f"{item.label:<11} {format_brl(item.total_value):>16}  "
            f"{item.weight_pct.quantize(WHOLE_PERCENT):>3}%"
        )

    summary = service.totals()
    click.echo(f"Invested: {format_brl(summary.invested)}")
    click.echo(f"Current:  {format_brl(summary.current_value)}")
    click.echo(
        f"Return:   {format_brl(summary.gain_loss)} "
        f"({format_percent_change(summary.gain_loss_pct)})"
    )


@cli.command()
@click.pass_obj
def market(settings: Settings):
    """Show popular B3 stocks ordered by daily change."""
    service = build_service(settings)
    quotes = service.market_movers()
    if not quotes:
        click.echo("Market data unavailable", err=True)
        return
    for quote in quotes:
        click.echo(
            f"{quote.symbol:<8} {format_brl(quote.price):>12}  "
            f"{format_percent_change(quote.change_percent):>8}"
        )


@cli.command()
@click.option("--monthly", "-m", default="500", show_default=True, help="BRL added each month.")
@click.option("--rate", "-r", default="10", show_default=True, help="Yearly return in percent.")
@click.option("--years", "-y", default="10", show_default=True, help="Years to project.")
@click.pass_obj
def simulate(settings: Settings, monthly: str, rate: str, years: str):
    """Project the portfolio value with monthly contributions."""
    service = build_service(settings)
    try:
        projected = service.project_growth(monthly, rate, years)
    except InvestfolioError as e:
        _fail(str(e))
    click.echo(f"Current:  {format_brl(service.totals().current_value)}")
    click.echo(f"In {years} years: {format_brl(projected)}")


if __name__ == "__main__":
    cli()
