"""
Prefix Router

Resolves an inbound request path to an absolute upstream URL.
"""

from typing import Optional

from src.proxy.config import RouteTable


class PrefixRouter:
    """
    Maps the first path segment of a request onto an upstream base URL.

    "/openai/v1/chat/completions" resolves through the "/openai" entry to
    "https://api.openai.com/v1/chat/completions". Paths whose first segment
    is not in the table do not resolve.
    """

    def __init__(self, routes: RouteTable):
        self.routes = routes

    def resolve(self, path: str, query: str = "") -> Optional[str]:
        """
        Resolve a request path to its upstream URL.

        Args:
            path: Raw request path, starting with "/"
            query: Raw query string without the leading "?"

        Returns:
            Absolute upstream URL, or None when no route matches
        """
        exact = self.routes.exact.get(path)
        if exact is not None:
            return _with_query(exact, query)

        prefix = self.prefix_of(path)
        if prefix is None:
            return None

        base_url = self.routes.prefixes.get(prefix)
        if base_url is None:
            return None

        return _with_query(base_url + path[len(prefix):], query)

    @staticmethod
    def prefix_of(path: str) -> Optional[str]:
        """Return the first path segment including its leading slash."""
        if len(path) < 2 or not path.startswith("/"):
            return None
        split = path.find("/", 1)
        if split == -1:
            return path
        return path[:split]


def _with_query(url: str, query: str) -> str:
    if query:
        return f"{url}?{query}"
    return url
