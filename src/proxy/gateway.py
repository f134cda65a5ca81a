"""
API Relay Gateway

FastAPI application that answers the static routes itself and relays
every other resolvable path to its upstream API host.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional
from urllib.parse import unquote

import httpx
import structlog
from fastapi import FastAPI, Request, Response
from fastapi.responses import HTMLResponse, PlainTextResponse
from starlette.types import Receive, Scope, Send

from src.proxy.config import ProxyConfig
from src.proxy.forwarder import UpstreamForwarder
from src.proxy.router import PrefixRouter

logger = structlog.get_logger(__name__)

ROOT_BODY = "Service is running!"
ROBOTS_BODY = "User-agent: *\nDisallow: /"

ROOT_PATHS = ("/", "/index.html")
ROBOTS_PATH = "/robots.txt"


class ApiRelayGateway:
    """
    API Relay Gateway.

    Per request:
    1. Serve root, index.html and robots.txt directly
    2. Resolve the path against the route table
    3. Answer 404 when nothing matches
    4. Otherwise forward upstream and stream the response back
    """

    def __init__(
        self,
        config: ProxyConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self.router = PrefixRouter(config.routes)
        self.forwarder = UpstreamForwarder(
            request_timeout=config.upstream_timeout,
            max_connections=config.max_connections,
            transport=transport,
        )

        self.app: Optional[FastAPI] = None

        logger.info(
            "api_relay_gateway_created",
            routes=len(config.routes),
            exact_routes=len(config.routes.exact),
        )

    def create_app(self) -> FastAPI:
        """Create the FastAPI application for the gateway."""

        @asynccontextmanager
        async def lifespan(app: FastAPI) -> AsyncGenerator:
            """Application lifespan manager."""
            logger.info("starting_api_relay_gateway")
            await self.forwarder.initialize()

            yield

            logger.info("shutting_down_api_relay_gateway")
            await self.forwarder.shutdown()

        self.app = FastAPI(
            title="API Relay Gateway",
            version="0.1.0",
            lifespan=lifespan,
            # Every other path belongs to the proxy
            docs_url=None,
            redoc_url=None,
            openapi_url=None,
        )

        # Catch-all route with no method list: every method, custom ones
        # included, reaches the handler
        self.app.add_route(
            "/{path:path}",
            GatewayEndpoint(self),
            include_in_schema=False,
        )

        return self.app

    async def handle_request(self, request: Request) -> Response:
        """Answer a static path, or resolve and forward the request."""
        path = request.url.path
        if path in ROOT_PATHS:
            return HTMLResponse(ROOT_BODY)
        if path == ROBOTS_PATH:
            return PlainTextResponse(ROBOTS_BODY)

        target_url = self.router.resolve(routing_path(request), request.url.query)
        if target_url is None:
            return PlainTextResponse("Not Found", status_code=404)

        return await self.forwarder.forward(request, target_url)


class GatewayEndpoint:
    """ASGI endpoint for the catch-all route."""

    def __init__(self, gateway: ApiRelayGateway):
        self.gateway = gateway

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive, send)
        response = await self.gateway.handle_request(request)
        await response(scope, receive, send)


def routing_path(request: Request) -> str:
    """
    Path handed to the router.

    The first segment is percent-decoded so "/open%61i/v1" selects the
    "/openai" route. The remainder keeps its encoding and is forwarded
    to the upstream untouched.
    """
    raw_path = request.scope.get("raw_path")
    if not raw_path:
        return request.url.path

    path = raw_path.split(b"?", 1)[0].decode("latin-1")
    split = path.find("/", 1)
    if split == -1:
        return unquote(path)
    return unquote(path[:split]) + path[split:]


def create_proxy_app(
    config: Optional[ProxyConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Create a FastAPI application for the API relay gateway.

    Args:
        config: Gateway configuration (or load from settings)
        transport: Optional httpx transport for the upstream client

    Returns:
        Configured FastAPI application
    """
    if config is None:
        from src.config import get_settings

        config = ProxyConfig.from_settings(get_settings())

    # Validate configuration
    errors = config.validate()
    if errors:
        logger.error("proxy_config_invalid", errors=errors)
        raise ValueError(f"Invalid proxy configuration: {errors}")

    gateway = ApiRelayGateway(config=config, transport=transport)
    return gateway.create_app()
