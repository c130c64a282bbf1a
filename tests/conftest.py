"""Shared fixtures."""

import json
from collections.abc import Callable, Iterator
from typing import Any

import httpx
import pytest

from slackmux.core.config import get_settings
from slackmux.mux.models import MuxConfig

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> Iterator[None]:
    """Drop cached settings so env changes in one test do not leak."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def mux_config() -> MuxConfig:
    """Configuration with a public and a token-protected endpoint."""
    return MuxConfig.model_validate(
        {
            "sourceEndpoints": {
                "public": {"muxTo": [{"dest": "a"}, {"dest": "b"}]},
                "secured": {"token": "ops", "muxTo": [{"dest": "a"}]},
                "override": {
                    "muxTo": [
                        {"dest": "a"},
                        {"dest": "b", "override": {"text": "x"}},
                    ]
                },
                "broken": {"muxTo": [{"dest": "a"}, {"dest": "missing"}, {"dest": "b"}]},
            },
            "sourceTokens": {"ops": "s3cret"},
            "destinations": {
                "a": "https://hooks.example.com/a",
                "b": "https://hooks.example.com/b",
            },
        }
    )


class FakeDestinations:
    """Records deliveries and answers them per destination URL."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.handlers: dict[str, Handler] = {}

    def respond(self, url: str, handler: Handler) -> None:
        self.handlers[url] = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.handlers.get(str(request.url))
        if handler is None:
            return httpx.Response(200, text="ok")
        return handler(request)

    @property
    def urls(self) -> list[str]:
        return [str(request.url) for request in self.requests]

    def payloads(self) -> list[Any]:
        return [json.loads(request.content) for request in self.requests]


@pytest.fixture
def destinations() -> FakeDestinations:
    """Fake destinations answering 200 unless told otherwise."""
    return FakeDestinations()


@pytest.fixture
def http_client(destinations: FakeDestinations) -> httpx.AsyncClient:
    """HTTP client routed to the fake destinations."""
    return httpx.AsyncClient(transport=httpx.MockTransport(destinations))
