"""
Gateway Configuration

Immutable runtime configuration for the API relay gateway.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import List, Mapping, Optional, Tuple
from urllib.parse import urlsplit

from src.config.settings import DEFAULT_EXACT_ROUTES, DEFAULT_ROUTES, Settings


# Lowercase substrings; a header whose name contains any of them is not forwarded
DENIED_HEADER_SUBSTRINGS: Tuple[str, ...] = ("host", "referer", "cf-", "forward", "cdn")

SECURITY_HEADERS: Tuple[Tuple[str, str], ...] = (
    ("X-Content-Type-Options", "nosniff"),
    ("X-Frame-Options", "DENY"),
    ("Referrer-Policy", "no-referrer"),
)


@dataclass(frozen=True)
class RouteTable:
    """
    Read-only prefix to upstream mapping.

    Attributes:
        prefixes: First path segment (e.g. "/openai") to base upstream URL
        exact: Full request path to upstream URL
    """

    prefixes: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType(dict(DEFAULT_ROUTES))
    )
    exact: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType(dict(DEFAULT_EXACT_ROUTES))
    )

    def __post_init__(self):
        # Copy so later changes to the caller's dicts cannot leak in
        object.__setattr__(self, "prefixes", MappingProxyType(dict(self.prefixes)))
        object.__setattr__(self, "exact", MappingProxyType(dict(self.exact)))

    def __len__(self) -> int:
        return len(self.prefixes)

    def validate(self) -> List[str]:
        """Validate the table and return list of errors."""
        errors = []

        for prefix, base_url in self.prefixes.items():
            if not prefix.startswith("/") or prefix == "/":
                errors.append(f"Route prefix {prefix!r} must start with '/' and name a segment")
            elif "/" in prefix[1:]:
                errors.append(f"Route prefix {prefix!r} must be a single path segment")
            errors.extend(_check_upstream(prefix, base_url))

        for path, url in self.exact.items():
            if not path.startswith("/"):
                errors.append(f"Exact route {path!r} must start with '/'")
            errors.extend(_check_upstream(path, url))

        return errors


def _check_upstream(key: str, url: str) -> List[str]:
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        return [f"Upstream for {key!r} must be an absolute http(s) URL, got {url!r}"]
    if url.endswith("/"):
        return [f"Upstream for {key!r} must not end with '/', got {url!r}"]
    return []


@dataclass(frozen=True)
class ProxyConfig:
    """
    Configuration for the API relay gateway.

    Attributes:
        listen_host: Host to bind the gateway to
        listen_port: Port to listen on for incoming traffic
        routes: Prefix and exact route tables
        upstream_timeout: Timeout for upstream requests, None for no timeout
        max_connections: Connection pool size of the shared upstream client
        log_level: Logging level name
    """

    listen_host: str = "0.0.0.0"
    listen_port: int = 2233
    routes: RouteTable = field(default_factory=RouteTable)
    upstream_timeout: Optional[float] = None
    max_connections: int = 100
    log_level: str = "INFO"

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProxyConfig":
        """Create configuration from loaded settings."""
        return cls(
            listen_host=settings.host,
            listen_port=settings.port,
            routes=RouteTable(
                prefixes=settings.routes,
                exact=settings.exact_routes,
            ),
            upstream_timeout=settings.upstream_timeout,
            max_connections=settings.max_connections,
            log_level=settings.log_level,
        )

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if not 0 < self.listen_port < 65536:
            errors.append(f"Listen port must be between 1 and 65535, got {self.listen_port}")

        if self.upstream_timeout is not None and self.upstream_timeout <= 0:
            errors.append("Upstream timeout must be positive")

        if self.max_connections < 1:
            errors.append("Max connections must be at least 1")

        errors.extend(self.routes.validate())

        return errors
