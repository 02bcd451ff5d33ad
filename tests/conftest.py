"""
Shared fixtures: an in-memory collector and SDK instances wired to it.
"""

import asyncio
import json
import sys
import threading
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import httpx
import pytest

# Allow running the suite from a checkout without installing the package
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from traceflow import AsyncHttpTransport, HttpTransport, TraceFlowConfig, TraceFlowContext, TraceFlowSDK

ENDPOINT = "http://collector.test"


class RecordedRequest:
    """A request as seen by the fake collector."""

    def __init__(self, request: httpx.Request):
        self.method = request.method
        self.path = request.url.path
        self.headers = request.headers
        self.json: Optional[Dict[str, Any]] = json.loads(request.content) if request.content else None

    def __repr__(self) -> str:
        return f"<{self.method} {self.path}>"


class FakeCollector:
    """
    Stand-in for the collector REST API, usable from httpx.MockTransport in
    both sync and async clients.

    Args:
        status: Status code returned for every request unless ``statuses`` says otherwise
        statuses: Status codes consumed one per request before falling back to ``status``
        latency: Seconds to wait before answering, or a function of the request
        network_error: Raise a connection error instead of answering
    """

    def __init__(
        self,
        status: int = 200,
        statuses: Optional[List[int]] = None,
        latency: Union[float, Callable[[httpx.Request], float]] = 0.0,
        network_error: bool = False,
    ):
        self.status = status
        self.statuses = list(statuses or [])
        self.latency = latency
        self.network_error = network_error
        self.requests: List[RecordedRequest] = []
        self.completed: List[RecordedRequest] = []
        self._lock = threading.Lock()

    def _receive(self, request: httpx.Request) -> RecordedRequest:
        recorded = RecordedRequest(request)
        with self._lock:
            self.requests.append(recorded)
        return recorded

    def _delay_for(self, request: httpx.Request) -> float:
        if callable(self.latency):
            return self.latency(request)
        return self.latency

    def _respond(self, request: httpx.Request, recorded: RecordedRequest) -> httpx.Response:
        with self._lock:
            self.completed.append(recorded)
            status = self.statuses.pop(0) if self.statuses else self.status
        if self.network_error:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(status, json={"ok": status < 400})

    def handler(self, request: httpx.Request) -> httpx.Response:
        recorded = self._receive(request)
        delay = self._delay_for(request)
        if delay:
            time.sleep(delay)
        return self._respond(request, recorded)

    async def async_handler(self, request: httpx.Request) -> httpx.Response:
        recorded = self._receive(request)
        delay = self._delay_for(request)
        if delay:
            await asyncio.sleep(delay)
        return self._respond(request, recorded)

    def calls(self, method: str, path_prefix: str) -> List[RecordedRequest]:
        with self._lock:
            return [r for r in self.requests if r.method == method and r.path.startswith(path_prefix)]


def make_config(**overrides: Any) -> TraceFlowConfig:
    options = {
        "source": "test-service",
        "endpoint": ENDPOINT,
        "api_key": "test-key",
        "retry_delay": 1,
        "max_retries": 3,
    }
    options.update(overrides)
    return TraceFlowConfig(**options)


def sync_client(collector: FakeCollector, config: TraceFlowConfig) -> httpx.Client:
    from traceflow.transport.utils import build_headers

    return httpx.Client(
        base_url=config.endpoint,
        headers=build_headers(config),
        transport=httpx.MockTransport(collector.handler),
    )


def async_client(collector: FakeCollector, config: TraceFlowConfig) -> httpx.AsyncClient:
    from traceflow.transport.utils import build_headers

    return httpx.AsyncClient(
        base_url=config.endpoint,
        headers=build_headers(config),
        transport=httpx.MockTransport(collector.async_handler),
    )


def make_sync_transport(collector: FakeCollector, **overrides: Any) -> HttpTransport:
    config = make_config(async_http=False, **overrides)
    return HttpTransport(config, client=sync_client(collector, config))


def make_async_transport(collector: FakeCollector, **overrides: Any) -> AsyncHttpTransport:
    config = make_config(**overrides)
    return AsyncHttpTransport(config, client=async_client(collector, config))


def make_sdk(collector: FakeCollector, async_http: bool = True, **overrides: Any) -> TraceFlowSDK:
    config = make_config(async_http=async_http, **overrides)
    if async_http:
        transport = AsyncHttpTransport(config, client=async_client(collector, config))
    else:
        transport = HttpTransport(config, client=sync_client(collector, config))
    return TraceFlowSDK(config, transport=transport, http_client=sync_client(collector, config))


@pytest.fixture(autouse=True)
def clean_context():
    """Every test starts and ends without an ambient trace."""
    TraceFlowContext.clear()
    yield
    TraceFlowContext.clear()


@pytest.fixture
def collector():
    return FakeCollector()


@pytest.fixture
def failing_collector():
    return FakeCollector(status=500)


@pytest.fixture
def sync_sdk(collector):
    sdk = make_sdk(collector, async_http=False)
    yield sdk
    sdk.shutdown()


@pytest.fixture
def async_sdk(collector):
    sdk = make_sdk(collector, async_http=True)
    yield sdk
    sdk.shutdown()


@pytest.fixture
def sink():
    """Collects events instead of sending them."""
    return []


@pytest.fixture
def sdk_factory():
    """Build SDKs against a given collector; all are shut down after the test."""
    created = []

    def factory(collector: FakeCollector, async_http: bool = True, **overrides: Any) -> TraceFlowSDK:
        sdk = make_sdk(collector, async_http=async_http, **overrides)
        created.append(sdk)
        return sdk

    yield factory
    for sdk in created:
        try:
            sdk.shutdown()
        except Exception:
            pass


@pytest.fixture
def async_transport_factory():
    """Build async transports against a given collector; all are shut down after the test."""
    created = []

    def factory(collector: FakeCollector, **overrides: Any) -> AsyncHttpTransport:
        transport = make_async_transport(collector, **overrides)
        created.append(transport)
        return transport

    yield factory
    for transport in created:
        try:
            transport.shutdown()
        except Exception:
            pass


@pytest.fixture
def sync_transport_factory():
    return make_sync_transport


@pytest.fixture
def collector_factory():
    return FakeCollector


@pytest.fixture
def config_factory():
    return make_config


@pytest.fixture
def sync_client_factory():
    return sync_client
