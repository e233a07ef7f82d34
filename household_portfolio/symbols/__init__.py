"""Symbols blueprint exposing the ticker reference directory."""

from __future__ import annotations

from flask_smorest import Blueprint

blp = Blueprint("Symbols", __name__, description="Ticker lookup endpoints")

from . import routes  # noqa: E402,F401
