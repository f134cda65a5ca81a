"""
API Relay Gateway Proxy Module

Routes path prefixes to upstream API hosts and relays requests and
responses between the caller and the upstream.
"""

from src.proxy.config import ProxyConfig, RouteTable
from src.proxy.forwarder import UpstreamForwarder
from src.proxy.gateway import ApiRelayGateway, create_proxy_app
from src.proxy.headers import is_allowed_header
from src.proxy.router import PrefixRouter

__all__ = [
    "ApiRelayGateway",
    "PrefixRouter",
    "ProxyConfig",
    "RouteTable",
    "UpstreamForwarder",
    "create_proxy_app",
    "is_allowed_header",
]
