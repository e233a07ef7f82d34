"""Application-wide error types and their JSON rendering."""

from __future__ import annotations

from typing import Any

from flask import Flask, jsonify

from household_portfolio.services.normalizer import NormalizationError


class APIError(Exception):
    """Base class for errors reported to API callers."""

    status_code: int = 400

    def __init__(
        self, message: str, *, status_code: int | None = None, payload: dict[str, Any] | None = None
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.payload = payload or {}


class ValidationError(APIError):
    """Caller supplied an unsupported currency or a malformed payload."""

    status_code = 422


class NotFoundError(APIError):
    status_code = 404


DEFAULT_STATUS_MESSAGES: dict[int, str] = {
    400: "Request could not be processed.",
    404: "Resource not found.",
    422: "Submitted data is invalid.",
    429: "Too many requests. Please try again shortly.",
}


def register_error_handlers(app: Flask) -> None:
    """Attach error handlers to the Flask application."""

    @app.errorhandler(APIError)
    def handle_api_error(error: APIError):
        message = error.message or DEFAULT_STATUS_MESSAGES.get(error.status_code, "Request failed.")
        return jsonify(render_error(message, error.payload)), error.status_code

    @app.errorhandler(NormalizationError)
    def handle_normalization_error(error: NormalizationError):
        payload = {"field": error.field} if error.field else {}
        return jsonify(render_error(str(error), payload)), ValidationError.status_code


def render_error(message: str, payload: dict[str, Any] | None = None) -> dict[str, Any]:
    """Build the error body: message, payload keys and a flat ``field_errors`` map."""

    body: dict[str, Any] = {"message": message}
    payload = payload or {}
    body.update(payload)

    field_errors = _derive_field_errors(payload, default_message=message)
    if field_errors and "field_errors" not in body:
        body["field_errors"] = field_errors
    return body


def _derive_field_errors(
    payload: dict[str, Any],
    *,
    default_message: str,
) -> dict[str, list[str]]:
    if isinstance(payload.get("field_errors"), dict):
        return {
            str(field): _as_messages(messages)
            for field, messages in payload["field_errors"].items()
            if _as_messages(messages)
        }

    field = payload.get("field")
    if field:
        return {str(field): [default_message]}
    return {}


def _as_messages(messages: Any) -> list[str]:
    if messages is None:
        return []
    if isinstance(messages, list | tuple):
        return [str(item) for item in messages if item is not None]
    return [str(messages)]
