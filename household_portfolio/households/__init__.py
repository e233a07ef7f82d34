"""Blueprint for households, their members, holdings, summaries and snapshots."""

from __future__ import annotations

from flask_smorest import Blueprint

blp = Blueprint("Households", __name__, description="Household portfolio endpoints")

from . import routes  # noqa: E402,F401
