"""CLI command for seeding a demo household."""

from __future__ import annotations

import click
from flask.cli import with_appcontext

from household_portfolio.services.demo_seed import HOUSEHOLD_NAME, seed_demo_household


@click.command("seed-demo")
@with_appcontext
def seed_demo() -> None:
    """Seed a two-member demo household with holdings in GBX, USD, INR and EUR."""

    result = seed_demo_household()
    label = "Created" if result.created else "Reset"
    click.echo(
        f"{label} '{HOUSEHOLD_NAME}' with {result.members_created} members and "
        f"{result.investments_created} holdings (household_id={result.household_id})."
    )
