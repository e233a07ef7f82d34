"""Scheduler setup for periodic FX rate refresh."""

from __future__ import annotations

import atexit
import logging
from typing import Any

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from flask import Flask

from household_portfolio.utils.datetime import isoformat_or, utc_now

logger = logging.getLogger(__name__)

SCHEDULER_EXT_KEY = "apscheduler"
REFRESH_STATE_KEY = "fx_refresh_state"


def ensure_refresh_state(app: Flask) -> dict[str, Any]:
    """Ensure refresh state dict exists on app extensions."""
    state = app.extensions.setdefault(REFRESH_STATE_KEY, {})
    if not isinstance(state, dict):
        new_state: dict[str, Any] = {}
        app.extensions[REFRESH_STATE_KEY] = new_state
        return new_state
    return state


def run_refresh(app: Flask) -> None:
    """Force a refresh of the app's rate cache and record the outcome."""

    from household_portfolio.services.exchange_rates import get_exchange_rates

    with app.app_context():
        provider = get_exchange_rates(app)
        state = ensure_refresh_state(app)
        table = provider.refresh(force=True)
        state["last_run"] = utc_now()
        state["last_table"] = {
            "source": table.source,
            "as_of": isoformat_or(table.as_of),
            "stale": table.stale,
        }
        if table.stale:
            logger.error("Scheduled refresh failed; serving stale rates from %s", table.source)
        else:
            logger.info("Scheduled refresh completed using %s", table.source)


def init_scheduler(app: Flask) -> BackgroundScheduler | None:
    """Start the background refresh job unless disabled via configuration."""

    ensure_refresh_state(app)

    if not app.config.get("SCHEDULER_ENABLED", True):
        logger.info("Scheduler disabled via configuration.")
        return None

    if app.extensions.get(SCHEDULER_EXT_KEY):
        return app.extensions[SCHEDULER_EXT_KEY]

    interval = int(app.config.get("RATES_REFRESH_INTERVAL_SECONDS", 86400))
    scheduler = BackgroundScheduler(timezone=app.config.get("SCHEDULER_TIMEZONE", "UTC"))
    scheduler.add_job(
        run_refresh,
        trigger=IntervalTrigger(seconds=interval),
        args=[app],
        id="refresh_rates",
        replace_existing=True,
        next_run_time=utc_now(),
    )
    scheduler.start()

    app.extensions[SCHEDULER_EXT_KEY] = scheduler
    atexit.register(shutdown_scheduler, app)
    logger.info("APScheduler started; refreshing rates every %s seconds", interval)
    return scheduler


def shutdown_scheduler(app: Flask) -> None:
    scheduler = app.extensions.pop(SCHEDULER_EXT_KEY, None)
    if scheduler is not None and getattr(scheduler, "running", False):
        scheduler.shutdown(wait=False)
