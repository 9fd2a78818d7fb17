"""
Request - Lightweight HTTP request wrapper over an ASGI scope.
"""

from __future__ import annotations

import json
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional
from urllib.parse import parse_qs

from ..faults import Fault, FaultDomain, Severity


class BadRequest(Fault):
    """Malformed request (400)."""
    code = "BAD_REQUEST"
    message = "Bad request"
    domain = FaultDomain.IO

    def __init__(self, message: str = None, **metadata):
        super().__init__(
            code=self.code,
            message=message or self.message,
            severity=Severity.WARN,
            public=True,
            metadata=metadata,
        )


class Request:
    """
    HTTP request built from an ASGI scope.

    ``path`` is the path relative to the router currently dispatching the
    request; mounting strips the matched prefix. ``original_path`` never
    changes.
    """

    __slots__ = (
        "scope", "_receive", "method", "path", "original_path", "base_path",
        "state", "_query", "_headers", "_body",
    )

    def __init__(
        self,
        scope: Mapping[str, Any],
        receive: Optional[Callable[[], Awaitable[dict]]] = None,
    ):
        self.scope = scope
        self._receive = receive
        self.method: str = scope.get("method", "GET").upper()
        self.original_path: str = scope.get("path", "/") or "/"
        self.path: str = self.original_path
        self.base_path: str = ""
        self.state: Dict[str, Any] = {}
        self._query: Optional[Dict[str, List[str]]] = None
        self._headers: Optional[Dict[str, str]] = None
        self._body: Optional[bytes] = None

    @property
    def query(self) -> Dict[str, List[str]]:
        """Query parameters (parsed lazily)."""
        if self._query is None:
            raw = self.scope.get("query_string", b"")
            if isinstance(raw, bytes):
                raw = raw.decode("latin-1")
            self._query = parse_qs(raw, keep_blank_values=True)
        return self._query

    def query_param(self, key: str, default: Optional[str] = None) -> Optional[str]:
        values = self.query.get(key)
        return values[0] if values else default

    @property
    def headers(self) -> Dict[str, str]:
        """Lower-cased request headers."""
        if self._headers is None:
            self._headers = {
                name.decode("latin-1").lower(): value.decode("latin-1")
                for name, value in self.scope.get("headers", ())
            }
        return self._headers

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.headers.get(name.lower(), default)

    async def body(self) -> bytes:
        """Read the whole request body."""
        if self._body is None:
            chunks = []
            if self._receive is not None:
                while True:
                    message = await self._receive()
                    if message["type"] == "http.disconnect":
                        break
                    chunks.append(message.get("body", b""))
                    if not message.get("more_body", False):
                        break
            self._body = b"".join(chunks)
        return self._body

    async def json(self) -> Any:
        """Parse request body as JSON."""
        raw = await self.body()
        if not raw:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise BadRequest(f"Invalid JSON body: {exc.msg}") from exc

    def __repr__(self) -> str:
        return f"<Request {self.method} {self.original_path}>"
