from __future__ import annotations

import json

import httpx
import pytest

from tsproxy.common.config import Settings
from tsproxy.upstream.client import TypesenseClient

BOOKS_ENV = {
    "TYPESENSE_HOST": "localhost",
    "TYPESENSE_PORT": "8108",
    "TYPESENSE_API_KEY": "xyz",
    "TYPESENSE_COLLECTION_NAME": "books",
    "TYPESENSE_SEARCH_BY_FIELDS": "title,author",
}

HOBBIT_RESULT = {
    "found": 1,
    "hits": [{"document": {"title": "The Hobbit"}}],
    "out_of": 100,
    "page": 2,
    "search_time_ms": 3,
}


class FakeTypesense:
    """In-process stand-in for Typesense; records every request it receives."""

    def __init__(self, status_code: int = 200, body=None, error: Exception | None = None):
        self.status_code = status_code
        self.body = HOBBIT_RESULT if body is None else body
        self.error = error
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        content = self.body if isinstance(self.body, (bytes, str)) else json.dumps(self.body)
        return httpx.Response(self.status_code, content=content)

    def client(self, settings: Settings) -> TypesenseClient:
        return TypesenseClient(settings, transport=httpx.MockTransport(self))


def make_settings(**overrides) -> Settings:
    return Settings(**{**BOOKS_ENV, **overrides})


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def fake() -> FakeTypesense:
    return FakeTypesense()
