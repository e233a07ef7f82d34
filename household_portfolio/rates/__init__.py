"""Rates blueprint serving the cached table and manual refreshes."""

from __future__ import annotations

from flask import Blueprint

bp = Blueprint("rates", __name__)

from . import routes  # noqa: E402,F401
