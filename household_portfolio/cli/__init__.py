"""CLI entry points."""

from __future__ import annotations

from flask import Flask

from .imports import import_tickertape, import_trading212
from .rates import refresh_rates
from .seed_demo import seed_demo


def register_cli(app: Flask) -> None:
    """Register CLI commands on the given Flask app."""

    app.cli.add_command(seed_demo)
    app.cli.add_command(refresh_rates)
    app.cli.add_command(import_tickertape)
    app.cli.add_command(import_trading212)
