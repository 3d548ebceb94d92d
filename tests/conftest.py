"""Shared pytest fixtures.

Time is controlled through FakeClock and HTTP through httpx.MockTransport,
so no test touches the network or depends on wall-clock time.
"""

import json
from typing import Any, Callable, List, Optional

import httpx
import pytest

from findreve_client.api import (
    GatewayConfig,
    RecordingNavigator,
    RequestGateway,
)
from findreve_client.storage import CredentialStore, MemoryStorage, ObjectCache

BASE_URL = "http://findreve.test"


class FakeClock:
    """Callable returning a settable time in milliseconds."""

    def __init__(self, now: int = 0) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeServer:
    """Routes requests to a handler and records every request seen."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.handler: Callable[[httpx.Request], httpx.Response] = (
            lambda request: httpx.Response(404, json={"detail": "Not Found"})
        )

    def respond(
        self, status: int = 200, json_body: Any = None, **kwargs: Any
    ) -> None:
        """Answer every request with the same response."""
        if json_body is not None:
            kwargs["json"] = json_body
        self.handler = lambda request: httpx.Response(status, **kwargs)

    def transport(self) -> httpx.MockTransport:
        def handle(request: httpx.Request) -> httpx.Response:
            request.read()
            self.requests.append(request)
            return self.handler(request)

        return httpx.MockTransport(handle)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> Any:
        return json.loads(self.last.content)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(now=1_700_000_000_000)


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def cache(storage, clock) -> ObjectCache:
    return ObjectCache(storage, clock=clock)


@pytest.fixture
def credentials(storage) -> CredentialStore:
    return CredentialStore(storage)


@pytest.fixture
def navigator() -> RecordingNavigator:
    return RecordingNavigator(current_path="/")


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def gateway(credentials, cache, navigator, server) -> RequestGateway:
    return RequestGateway(
        credentials,
        cache,
        navigator,
        config=GatewayConfig(base_url=BASE_URL),
        transport=server.transport(),
    )


@pytest.fixture
def make_gateway(credentials, cache, navigator) -> Callable[..., Any]:
    """Build a gateway around an arbitrary request handler."""

    def _make(
        handler: Callable[[httpx.Request], httpx.Response],
        config: Optional[GatewayConfig] = None,
    ) -> RequestGateway:
        return RequestGateway(
            credentials,
            cache,
            navigator,
            config=config or GatewayConfig(base_url=BASE_URL),
            transport=httpx.MockTransport(handler),
        )

    return _make
