"""CLI command for refreshing FX rates outside the scheduler."""

from __future__ import annotations

import click
from flask import current_app
from flask.cli import with_appcontext

from household_portfolio.services.exchange_rates import get_exchange_rates
from household_portfolio.utils.datetime import isoformat_or


@click.command("refresh-rates")
@with_appcontext
def refresh_rates() -> None:
    """Fetch the latest rates now and print the resulting table."""

    table = get_exchange_rates(current_app).refresh(force=True)
    as_of = isoformat_or(table.as_of, "never")
    state = "stale" if table.stale else "fresh"
    click.echo(f"Rates from {table.source} as of {as_of} ({state}):")
    for code, rate in table.as_strings().items():
        click.echo(f"  {code}: {rate}")
    if table.stale:
        raise click.ClickException("All providers failed; previous rates retained.")
