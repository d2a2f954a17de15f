# Command line interface for contract appraisal
import asyncio
from decimal import Decimal
from typing import List, Optional, Tuple

import click

from app.containers import AppContainer
from core.logging import configure_logging
from core.trading.hubs import TRADE_HUBS
from core.utils.exceptions import AppraisalException


def parse_item_spec(spec: str) -> Tuple[int, int]:
    """Parse ``TYPE_ID:QTY`` (quantity defaults to 1)."""
    type_part, _, qty_part = spec.partition(":")
    try:
        type_id = int(type_part)
        quantity = int(qty_part) if qty_part else 1
    except ValueError:
        raise click.BadParameter(f"expected TYPE_ID[:QTY], got {spec!r}")
    return type_id, quantity


def format_isk(value: Decimal) -> str:
    return f"{value:,.2f} ISK"


async def run_valuation(container: AppContainer, items: List[Tuple[int, int]], hub: str,
                        discount: Optional[int], force_refresh: Optional[bool]):
    service = container.valuation_service()
    async with service:
        return await service.valuate(
            items, hub=hub, discount_percent=discount, force_refresh=force_refresh
        )


@click.group()
def cli():
    """Contract appraisal CLI"""
    pass


@cli.command()
@click.argument("items", nargs=-1, required=True)
@click.option("--hub", default=None, help="Trade hub name (default from settings)")
@click.option("--discount", type=int, default=None, help="Discount percentage applied to totals")
@click.option("--refresh/--no-refresh", default=None,
              help="Bypass the order cache (default from settings)")
def valuate(items, hub, discount, refresh):
    """Value ITEMS given as TYPE_ID[:QTY] against live hub orders"""
    container = AppContainer()
    settings = container.settings()
    parsed = [parse_item_spec(spec) for spec in items]

    try:
        configure_logging(settings)
        result = asyncio.run(run_valuation(container, parsed, hub, discount, refresh))
    except AppraisalException as e:
        raise click.ClickException(e.message)

    click.echo(f"Buy:  {format_isk(result.total_buy_execution)}")
    click.echo(f"Mid:  {format_isk(result.total_mid_execution)}")
    click.echo(f"Sell: {format_isk(result.total_sell_execution)}")
    if result.discount_percent is not None and result.discount_percent != 100:
        click.echo(f"Discount applied: {result.discount_percent}%")
    requested = None if discount is None else min(discount, settings.valuation.discount_cap_percent)
    if requested is not None and result.discount_percent != requested:
        click.echo(
            f"Warning: discount {discount}% rejected, kept {result.discount_percent}%",
            err=True,
        )
    if result.has_insufficient_liquidity:
        click.echo("Warning: some items could not be fully filled at this hub", err=True)


@cli.command()
def hubs():
    """List known trade hubs"""
    for name, hub in TRADE_HUBS.items():
        click.echo(f"{name:<10} region={hub.region_id} system={hub.system_id} ({hub.region_name})")


if __name__ == "__main__":
    cli()
