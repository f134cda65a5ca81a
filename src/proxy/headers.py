"""
Header Filtering

Decides which inbound headers are copied onto the outbound request.
"""

from typing import Iterable, List, Tuple

from src.proxy.config import DENIED_HEADER_SUBSTRINGS


# Framing headers belong to each connection, uvicorn and httpx set their own
HOP_BY_HOP_HEADERS = frozenset({"connection", "keep-alive", "transfer-encoding"})


def is_allowed_header(name: str) -> bool:
    """
    Check a header name against the denylist.

    Matching is by substring, not by whole name: "X-Forwarded-For" is
    denied because it contains "forward", "Authorization" passes.
    """
    lower_name = name.lower()
    for denied in DENIED_HEADER_SUBSTRINGS:
        if denied in lower_name:
            return False
    return True


def filter_request_headers(
    headers: Iterable[Tuple[bytes, bytes]],
) -> List[Tuple[bytes, bytes]]:
    """
    Keep allowed headers in order, repeated names included.

    Pairs stay raw bytes. Only the name is decoded for the denylist check,
    values reach the upstream byte for byte.
    """
    return [
        (name, value)
        for name, value in headers
        if _decode_name(name) not in HOP_BY_HOP_HEADERS
        and is_allowed_header(_decode_name(name))
    ]


def filter_response_headers(
    headers: Iterable[Tuple[bytes, bytes]],
) -> List[Tuple[bytes, bytes]]:
    """Keep raw upstream response headers in order, minus connection framing."""
    return [
        (name, value)
        for name, value in headers
        if _decode_name(name) not in HOP_BY_HOP_HEADERS
    ]


def _decode_name(name: bytes) -> str:
    return name.decode("latin-1").lower()
