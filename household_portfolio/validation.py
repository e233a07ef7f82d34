"""Validation helpers for request payloads."""

from __future__ import annotations

from household_portfolio.errors import ValidationError
from household_portfolio.services.currency_registry import CurrencyCode, parse_currency


def validate_currency_code(value: str | None, *, field: str = "currency") -> CurrencyCode:
    """Return the supported currency named by ``value`` or raise a 422 error."""

    if value is None or not str(value).strip():
        raise ValidationError(f"'{field}' is required.", payload={"field": field})

    normalized = str(value).strip().upper()
    try:
        return parse_currency(normalized)
    except ValueError as exc:
        allowed = ", ".join(code.value for code in CurrencyCode)
        raise ValidationError(
            f"{exc} Allowed codes: {allowed}.",
            payload={"field": field, "code": normalized},
        ) from exc
