"""
Test configuration for the Karbon FX tests.
"""

import asyncio
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

# Add project root to path before importing our modules
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Import our modules after path setup
from karbon_fx.rate_client.service import ExchangeRateService  # noqa: E402
from karbon_fx.rate_client.settings import RateClientSettings  # noqa: E402

RATE_TIMESTAMP = "2025-01-15T10:30:00+00:00"


def rate_body(rate: float = 85.0, timestamp: str | None = RATE_TIMESTAMP) -> dict:
    """Body of a successful live-rate response."""
    body: dict[str, Any] = {"rate": rate}
    if timestamp is not None:
        body["timestamp"] = timestamp
    return body


@dataclass
class Reply:
    """One scripted answer of the fake live-rate endpoint."""

    status: int = 200
    body: Any = None
    text: str | None = None
    delay: float = 0.0
    gate: asyncio.Event | None = None


class FakeRateEndpoint:
    """
    Scripted live-rate endpoint.

    Replies are consumed in order; the last one keeps being served once the
    script runs out.
    """

    def __init__(self) -> None:
        self.replies: list[Reply] = [Reply(body=rate_body())]
        self.calls = 0
        self.last_headers: dict[str, str] = {}
        self.url = ""

    def script(self, *replies: Reply) -> None:
        self.replies = list(replies)

    async def handle(self, request: web.Request) -> web.Response:
        self.calls += 1
        self.last_headers = dict(request.headers)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if reply.gate is not None:
            await reply.gate.wait()
        if reply.delay:
            await asyncio.sleep(reply.delay)
        if reply.text is not None:
            return web.Response(
                status=reply.status, text=reply.text, content_type="application/json"
            )
        return web.json_response(reply.body, status=reply.status)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest_asyncio.fixture
async def rate_endpoint():
    """Serve the fake live-rate endpoint on a local port."""
    endpoint = FakeRateEndpoint()
    app = web.Application()
    app.router.add_get("/api/live-rate", endpoint.handle)
    server = TestServer(app)
    await server.start_server()
    endpoint.url = str(server.make_url("/api/live-rate"))
    try:
        yield endpoint
    finally:
        await server.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def client_settings(rate_endpoint):
    """Rate client settings pointed at the fake endpoint, without backoff waits."""
    return RateClientSettings(
        live_rate_url=rate_endpoint.url,
        cache_ttl_seconds=300,
        request_timeout_seconds=0.5,
        max_retries=3,
        retry_delay_base_seconds=0,
        retry_delay_max_seconds=0,
        fallback_rate=84.5,
        refetch_interval_seconds=0,
    )


@pytest.fixture
def rate_service(client_settings, clock):
    return ExchangeRateService(client_settings, clock=clock)
