"""
Upstream Forwarder

Issues the outbound request for a resolved target and streams the
upstream response back to the caller.
"""

from typing import AsyncIterator, Optional

import httpx
import structlog
from starlette.requests import ClientDisconnect, Request
from starlette.responses import PlainTextResponse, Response, StreamingResponse
from starlette.types import Receive, Scope, Send

from src.proxy.config import SECURITY_HEADERS
from src.proxy.headers import filter_request_headers, filter_response_headers

logger = structlog.get_logger(__name__)


class UpstreamStreamingResponse(StreamingResponse):
    """
    Streaming response that owns an open upstream response.

    The upstream body is closed once sending ends, whether it completed,
    the upstream failed mid-body or the client went away.
    """

    def __init__(self, upstream: httpx.Response, target_url: str):
        self.upstream = upstream
        self.target_url = target_url
        super().__init__(
            content=self._relay_body(),
            status_code=upstream.status_code,
        )

        # Raw bytes, so values reach the caller exactly as the upstream sent them
        self.raw_headers = [
            (name.lower(), value)
            for name, value in filter_response_headers(upstream.headers.raw)
        ]

        # Overwrites whatever the upstream sent under the same names
        for name, value in SECURITY_HEADERS:
            self.headers[name] = value

    async def _relay_body(self) -> AsyncIterator[bytes]:
        # Raw chunks: content-encoding and content-length stay consistent
        try:
            async for chunk in self.upstream.aiter_raw():
                yield chunk
        except httpx.HTTPError as e:
            logger.warning(
                "response_copy_failed",
                target=self.target_url,
                error=str(e),
            )
        finally:
            await self.upstream.aclose()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        except (OSError, ClientDisconnect) as e:
            logger.warning(
                "response_copy_failed",
                target=self.target_url,
                error=str(e) or type(e).__name__,
            )
        finally:
            await self.upstream.aclose()


class UpstreamForwarder:
    """
    Forwards requests to upstream API hosts.

    One httpx.AsyncClient (and its connection pool) is shared by every
    request; each exchange owns only its outbound request and response.
    No retries are attempted.
    """

    def __init__(
        self,
        request_timeout: Optional[float] = None,
        max_connections: int = 100,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.request_timeout = request_timeout
        self.max_connections = max_connections
        self._transport = transport

        # HTTP client
        self._client: Optional[httpx.AsyncClient] = None

        logger.info(
            "upstream_forwarder_initialized",
            request_timeout=request_timeout,
            max_connections=max_connections,
        )

    @property
    def client(self) -> Optional[httpx.AsyncClient]:
        return self._client

    async def initialize(self) -> None:
        """Initialize the HTTP client."""
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.request_timeout),
            limits=httpx.Limits(
                max_connections=self.max_connections,
                max_keepalive_connections=20,
            ),
            # Bodies are relayed without decoding, so only ask for
            # compression when the caller did
            headers={"Accept-Encoding": "identity"},
            follow_redirects=False,
            transport=self._transport,
        )
        logger.info("http_client_initialized")

    async def shutdown(self) -> None:
        """Shutdown the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
        logger.info("http_client_shutdown")

    async def forward(self, request: Request, target_url: str) -> Response:
        """
        Forward a request to the resolved upstream URL.

        Args:
            request: Inbound request
            target_url: Absolute upstream URL from the router

        Returns:
            Streaming upstream response, or a plain 500 response when the
            outbound request cannot be built or sent
        """
        if not self._client:
            await self.initialize()

        # Raw list keeps repeated headers apart and in arrival order
        headers = filter_request_headers(request.headers.raw)

        try:
            outbound = self._client.build_request(
                method=request.method,
                url=target_url,
                headers=headers,
                content=_request_body(request),
            )
        except httpx.InvalidURL as e:
            logger.error(
                "outbound_request_invalid",
                target=target_url,
                error=str(e),
            )
            return _internal_error()

        try:
            upstream = await self._client.send(outbound, stream=True)
        except (httpx.HTTPError, ClientDisconnect, OSError) as e:
            # Upstream unreachable, or the caller left while the body uploaded
            logger.error(
                "upstream_request_failed",
                method=request.method,
                target=target_url,
                error=str(e) or type(e).__name__,
            )
            return _internal_error()

        logger.debug(
            "request_proxied",
            method=request.method,
            target=target_url,
            status=upstream.status_code,
        )

        try:
            return UpstreamStreamingResponse(upstream, target_url)
        except Exception:
            await upstream.aclose()
            raise


def _request_body(request: Request) -> Optional[AsyncIterator[bytes]]:
    # Requests that announce no body are sent without one
    if "content-length" in request.headers or "transfer-encoding" in request.headers:
        return request.stream()
    return None


def _internal_error() -> Response:
    return PlainTextResponse("Internal Server Error", status_code=500)
