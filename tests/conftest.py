"""Shared fixtures for plan engine unit tests."""

from __future__ import annotations

from typing import Any

import pytest

from plan_engine.models import Catalog, HttpRequest

BASE_URL = "https://api.example.com/api/v1"

CATALOG_DOCUMENT = {
    "serverUrls": [BASE_URL, "https://backup.example.com/api/v1"],
    "operations": {
        "getItemById": {
            "httpMethod": "GET",
            "path": "/items/{itemId}",
            "description": "Fetch one item",
            "parameters": [
                {"name": "itemId", "in": "path", "required": True, "schema": {"type": "string"}},
            ],
            "security": [{"ApiKeyAuth": []}],
        },
        "get_items": {
            "httpMethod": "get",
            "path": "/items",
            "parameters": [
                {"name": "status", "in": "query", "schema": {"type": "string"}},
            ],
        },
        "createItem": {
            "httpMethod": "POST",
            "path": "/items",
            "requestBodySchema": {
                "type": "object",
                "required": ["name", "owner"],
                "properties": {
                    "name": {"type": "string"},
                    "owner": {"type": "string"},
                    "tags": {"type": "array", "items": {"type": "string"}},
                    "price": {"type": "number"},
                },
            },
            "security": [{"ApiKeyAuth": []}],
        },
        "getOwner": {
            "httpMethod": "GET",
            "path": "/owners/{ownerId}",
            "parameters": [
                {"name": "ownerId", "in": "path", "required": True},
                {"name": "X-Trace", "in": "header"},
            ],
            "security": [{"BearerAuth": []}, {"ApiKeyAuth": []}],
        },
    },
    "securitySchemes": {
        "ApiKeyAuth": {"type": "apiKey", "in": "header", "name": "X-API-KEY"},
        "BearerAuth": {"type": "http", "scheme": "bearer"},
    },
}


class RecordingHttpClient:
    """Returns canned responses in order and records every request sent."""

    def __init__(self, responses: list[Any] | None = None) -> None:
        self._responses = list(responses or [])
        self.requests: list[HttpRequest] = []

    def send(self, request: HttpRequest) -> Any:
        self.requests.append(request)
        response = self._responses.pop(0) if self._responses else None
        if isinstance(response, Exception):
            raise response
        return response


class ScriptedPrompt:
    """Answers operator prompts from a fixed list and remembers the labels."""

    def __init__(self, answers: list[str] | None = None) -> None:
        self._answers = list(answers or [])
        self.labels: list[str] = []

    def __call__(self, label: str) -> str:
        self.labels.append(label)
        return self._answers.pop(0) if self._answers else ""


@pytest.fixture
def catalog() -> Catalog:
    return Catalog.from_dict(CATALOG_DOCUMENT)


@pytest.fixture
def http_client():
    """Factory fixture: RecordingHttpClient(responses=[...])."""

    def _factory(responses: list[Any] | None = None) -> RecordingHttpClient:
        return RecordingHttpClient(responses)

    return _factory


@pytest.fixture
def prompt():
    """Factory fixture: ScriptedPrompt(answers=[...])."""

    def _factory(answers: list[str] | None = None) -> ScriptedPrompt:
        return ScriptedPrompt(answers)

    return _factory
