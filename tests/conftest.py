"""Pytest configuration and fixtures."""

from typing import Callable, List

import httpx
import pytest
from fastapi.testclient import TestClient

from src.config import get_settings
from src.proxy.config import ProxyConfig, RouteTable
from src.proxy.gateway import create_proxy_app


TEST_ROUTES = {
    "/discord": "https://discord.com/api",
    "/openai": "https://api.openai.com",
    "/claude": "https://api.anthropic.com",
    "/groq": "https://api.groq.com/openai",
}


def upstream_response(status_code=200, body=b"", headers=None) -> httpx.Response:
    """Upstream response whose body is still unread, like one off the network."""
    return httpx.Response(
        status_code,
        headers=headers,
        stream=httpx.ByteStream(body),
    )


@pytest.fixture
def proxy_config():
    """Gateway configuration with a small route table."""
    return ProxyConfig(
        listen_port=2233,
        routes=RouteTable(
            prefixes=TEST_ROUTES,
            exact={"/get": "https://httpbin.org/get"},
        ),
    )


@pytest.fixture
def upstream_requests() -> List[httpx.Request]:
    """Requests seen by the mocked upstream, in order."""
    return []


@pytest.fixture
def make_client(proxy_config, upstream_requests) -> Callable[..., TestClient]:
    """
    Build a test client whose upstream is answered by `handler`.

    The default handler answers 200 "ok".
    """
    clients = []

    def _make(handler=None, config=None):
        def _record(request: httpx.Request):
            upstream_requests.append(request)
            if handler is None:
                return upstream_response(200, b"ok")
            return handler(request)

        app = create_proxy_app(
            config=config or proxy_config,
            transport=httpx.MockTransport(_record),
        )
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are cached per process; tests change the environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
