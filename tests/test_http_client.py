from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import responses
from requests.exceptions import ConnectionError as RequestsConnectionError
from responses import matchers

from household_portfolio.providers.http_client import HTTPClient, HTTPClientConfig, HTTPClientError

BASE_URL = "https://rates.example.com/v1"


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    sleeps: list[float] = []
    monkeypatch.setattr("household_portfolio.providers.http_client.time.sleep", sleeps.append)
    return sleeps


def make_client(**overrides) -> HTTPClient:
    options = {"base_url": BASE_URL, "max_retries": 2, "backoff_seconds": 0.0, "backoff_jitter": 0.0}
    options.update(overrides)
    return HTTPClient(HTTPClientConfig(**options))


@responses.activate
def test_get_returns_json_object_and_sends_params():
    responses.add(
        responses.GET,
        f"{BASE_URL}/latest",
        json={"base": "USD"},
        match=[matchers.query_param_matcher({"from": "USD"})],
    )

    assert make_client().get("/latest", params={"from": "USD"}) == {"base": "USD"}
    assert responses.calls[0].request.headers["Accept"] == "application/json"


@responses.activate
def test_server_errors_are_retried_with_backoff(no_sleep):
    responses.add(responses.GET, f"{BASE_URL}/latest", status=503)
    responses.add(responses.GET, f"{BASE_URL}/latest", json={"ok": True})

    payload = make_client(backoff_seconds=0.25).get("latest")

    assert payload == {"ok": True}
    assert len(responses.calls) == 2
    assert no_sleep == [0.25]


@responses.activate
def test_retries_are_bounded():
    responses.add(responses.GET, f"{BASE_URL}/latest", status=500)

    with pytest.raises(HTTPClientError, match="Failed to fetch") as exc_info:
        make_client(max_retries=3).get("/latest")

    assert len(responses.calls) == 3
    assert exc_info.value.retryable is True


@responses.activate
def test_client_errors_fail_immediately():
    responses.add(responses.GET, f"{BASE_URL}/missing", status=404, body="not here")

    with pytest.raises(HTTPClientError) as exc_info:
        make_client(max_retries=3).get("/missing")

    assert exc_info.value.status_code == 404
    assert exc_info.value.retryable is False
    assert len(responses.calls) == 1


@responses.activate
@pytest.mark.parametrize(
    ("body", "message"),
    [("<html>maintenance</html>", "Invalid JSON"), ("[1, 2, 3]", "Expected a JSON object")],
)
def test_unusable_bodies_are_not_retried(body, message):
    responses.add(responses.GET, f"{BASE_URL}/latest", body=body, content_type="application/json")

    with pytest.raises(HTTPClientError, match=message):
        make_client(max_retries=3).get("/latest")

    assert len(responses.calls) == 1


def test_connection_errors_are_retried_against_joined_url():
    session = MagicMock()
    ok = MagicMock(status_code=200)
    ok.json.return_value = {"ok": 1}
    session.get.side_effect = [RequestsConnectionError("reset"), ok]
    client = HTTPClient(
        HTTPClientConfig(base_url=f"{BASE_URL}/", max_retries=2, backoff_seconds=0, timeout=3.5),
        session=session,
    )

    assert client.get("latest") == {"ok": 1}
    assert session.get.call_count == 2
    assert session.get.call_args.args[0] == f"{BASE_URL}/latest"
    assert session.get.call_args.kwargs["timeout"] == 3.5
