"""
Testing - ASGI scope and receive factories.
"""

from __future__ import annotations

from typing import List, Optional


def make_test_scope(
    method: str = "GET",
    path: str = "/",
    query_string: str = "",
    headers: Optional[List[tuple]] = None,
    scheme: str = "http",
    client: Optional[tuple] = None,
    server: Optional[tuple] = None,
) -> dict:
    """
    Build a minimal ASGI HTTP scope for testing.

    Args:
        method: HTTP method.
        path: Request path.
        query_string: Raw query string (without ``?``).
        headers: List of ``(name, value)`` tuples (strings or bytes).
        scheme: URL scheme.
        client: ``(host, port)`` tuple.
        server: ``(host, port)`` tuple.
    """
    raw_headers: list[tuple[bytes, bytes]] = []
    for name, value in headers or ():
        raw_headers.append((
            name.encode("latin-1") if isinstance(name, str) else name,
            value.encode("latin-1") if isinstance(value, str) else value,
        ))

    return {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method.upper(),
        "path": path,
        "raw_path": path.encode("utf-8"),
        "query_string": query_string.encode("utf-8"),
        "headers": raw_headers,
        "scheme": scheme,
        "server": server or ("127.0.0.1", 8000),
        "client": client or ("127.0.0.1", 12345),
        "root_path": "",
    }


def make_test_receive(body: bytes = b""):
    """Create an ASGI receive callable delivering ``body`` in one message."""
    sent = False

    async def receive() -> dict:
        nonlocal sent
        if sent:
            return {"type": "http.disconnect"}
        sent = True
        return {"type": "http.request", "body": body, "more_body": False}

    return receive
