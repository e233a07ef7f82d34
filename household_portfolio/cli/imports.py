"""CLI commands importing broker exports for a household member."""

from __future__ import annotations

import json

import click
from flask.cli import with_appcontext

from household_portfolio.services.households import DatabaseSymbolDirectory
from household_portfolio.services.importers import (
    ImportReport,
    map_trading212_portfolio,
    parse_tickertape_csv,
    upsert_investments,
)


def _echo_report(report: ImportReport, parsed: int) -> None:
    click.echo(
        f"Parsed {parsed} holdings: {report.created} created, {report.updated} updated, "
        f"{len(report.skipped)} skipped."
    )
    for row in report.skipped:
        click.echo(f"  skipped row {row.line}: {row.reason}")


@click.command("import-tickertape")
@click.option("--member-id", type=int, required=True, help="Member owning the holdings")
@click.argument("csv_file", type=click.File("r", encoding="utf-8-sig"))
@with_appcontext
def import_tickertape(member_id: int, csv_file) -> None:
    """Import a Tickertape mutual fund holdings CSV."""

    records, skipped = parse_tickertape_csv(csv_file)
    report = upsert_investments(member_id, records)
    report.skipped[:0] = skipped
    _echo_report(report, len(records))


@click.command("import-trading212")
@click.option("--member-id", type=int, required=True, help="Member owning the holdings")
@click.argument("json_file", type=click.File("r", encoding="utf-8"))
@with_appcontext
def import_trading212(member_id: int, json_file) -> None:
    """Import a saved Trading212 ``/equity/portfolio`` JSON response."""

    try:
        payload = json.load(json_file)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"Invalid JSON: {exc}") from exc
    if not isinstance(payload, list):
        raise click.BadParameter("Expected a JSON array of positions.")
    records = map_trading212_portfolio(payload)
    report = upsert_investments(member_id, records, symbol_directory=DatabaseSymbolDirectory())
    _echo_report(report, len(records))
