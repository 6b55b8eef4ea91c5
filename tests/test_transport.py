"""Tests for the httpx-backed HTTP client and its retry policy."""

from __future__ import annotations

import json

import httpx
import pytest

from plan_engine.config import Settings
from plan_engine.errors import TransportFailure
from plan_engine.models import HttpRequest
from plan_engine.transport import HttpxClient


def _client(handler, **kwargs) -> tuple[HttpxClient, list[float]]:
    sleeps: list[float] = []
    client = HttpxClient(
        client=httpx.Client(transport=httpx.MockTransport(handler)),
        sleep=sleeps.append,
        **kwargs,
    )
    return client, sleeps


def _get(url: str = "https://api.example.com/items") -> HttpRequest:
    return HttpRequest(method="GET", url=url, headers={"Accept": "application/json"})


def test_json_response_decoded():
    client, _ = _client(lambda request: httpx.Response(200, json={"id": "123"}))
    assert client.send(_get()) == {"id": "123"}


def test_request_carries_method_headers_and_json_body():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json={"ok": True})

    client, _ = _client(handler)
    client.send(
        HttpRequest(
            method="POST",
            url="https://api.example.com/items?x=1",
            headers={"X-API-KEY": "k", "Content-Type": "application/json"},
            body={"name": "Lamp"},
        )
    )
    assert seen[0].method == "POST"
    assert seen[0].url.params["x"] == "1"
    assert seen[0].headers["X-API-KEY"] == "k"
    assert json.loads(seen[0].content) == {"name": "Lamp"}


def test_empty_body_decodes_to_none():
    client, _ = _client(lambda request: httpx.Response(204))
    assert client.send(_get()) is None


def test_non_json_body_returned_as_text():
    client, _ = _client(lambda request: httpx.Response(200, text="plain ok"))
    assert client.send(_get()) == "plain ok"


def test_client_error_raises_transport_failure_without_retry():
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(404, text='{"error": "not found"}')

    client, sleeps = _client(handler)
    with pytest.raises(TransportFailure) as exc_info:
        client.send(_get())
    assert exc_info.value.status_code == 404
    assert exc_info.value.body == '{"error": "not found"}'
    assert len(calls) == 1
    assert sleeps == []


def test_retries_throttled_then_succeeds():
    responses = iter([httpx.Response(429), httpx.Response(503), httpx.Response(200, json=[1])])
    client, sleeps = _client(lambda request: next(responses))
    assert client.send(_get()) == [1]
    assert sleeps == [0.5, 1.0]


def test_gives_up_after_max_attempts():
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(503, text="busy")

    client, sleeps = _client(handler, max_attempts=3)
    with pytest.raises(TransportFailure) as exc_info:
        client.send(_get())
    assert exc_info.value.status_code == 503
    assert len(calls) == 3
    assert len(sleeps) == 2


def test_connection_errors_retried_then_wrapped():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client, sleeps = _client(handler, max_attempts=2, backoff_seconds=1)
    with pytest.raises(TransportFailure) as exc_info:
        client.send(_get())
    assert exc_info.value.status_code is None
    assert sleeps == [1]


def test_from_settings():
    settings = Settings(
        engine_http_max_attempts=5,
        engine_http_backoff_seconds=0.1,
        engine_http_retry_statuses="500, 502",
    )
    client = HttpxClient.from_settings(settings)
    try:
        assert client.max_attempts == 5
        assert client.backoff_seconds == 0.1
        assert client.retry_statuses == {500, 502}
    finally:
        client.close()
