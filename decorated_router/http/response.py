"""
Response - HTTP response builder with ASGI sending.
"""

from __future__ import annotations

import json
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Union


def _json_default_serializer(o):
    """Default JSON serializer for non-standard types."""
    if isinstance(o, (set, tuple)):
        return list(o)
    if hasattr(o, "isoformat"):
        return o.isoformat()
    return str(o)


class Response:
    """
    HTTP response.

    Args:
        content: Body as bytes or str
        status: HTTP status code
        headers: Response headers (names are lower-cased)
        media_type: Content type, used when headers carry none
    """

    __slots__ = ("status", "headers", "body", "encoding")

    def __init__(
        self,
        content: Union[bytes, str] = b"",
        status: int = 200,
        headers: Optional[Mapping[str, str]] = None,
        media_type: Optional[str] = None,
        encoding: str = "utf-8",
    ):
        self.status = status
        self.encoding = encoding
        self.headers: Dict[str, str] = {k.lower(): v for k, v in (headers or {}).items()}
        self.body = content.encode(encoding) if isinstance(content, str) else content
        if media_type and "content-type" not in self.headers:
            self.headers["content-type"] = media_type

    @classmethod
    def json(
        cls,
        obj: Any,
        status: int = 200,
        *,
        headers: Optional[Mapping[str, str]] = None,
    ) -> "Response":
        """Create JSON response."""
        content = json.dumps(obj, default=_json_default_serializer, separators=(",", ":"))
        return cls(content, status=status, headers=headers, media_type="application/json")

    @classmethod
    def text(
        cls,
        text: str,
        status: int = 200,
        *,
        headers: Optional[Mapping[str, str]] = None,
    ) -> "Response":
        """Create plain text response."""
        return cls(text, status=status, headers=headers, media_type="text/plain; charset=utf-8")

    async def send_asgi(self, send: Callable[[dict], Awaitable[None]]) -> None:
        """Send response via ASGI."""
        self.headers.setdefault("content-length", str(len(self.body)))
        await send({
            "type": "http.response.start",
            "status": self.status,
            "headers": [
                (name.encode("latin-1"), value.encode("latin-1"))
                for name, value in self.headers.items()
            ],
        })
        await send({"type": "http.response.body", "body": self.body})

    def __repr__(self) -> str:
        return f"<Response [{self.status}] {len(self.body)}B>"
