"""Currencies blueprint exposing the catalog, validation and conversion."""

from __future__ import annotations

from flask_smorest import Blueprint

blp = Blueprint("Currencies", __name__, description="Currency catalog and conversion endpoints")

from . import routes  # noqa: E402,F401
