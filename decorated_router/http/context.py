"""
Request context passed alongside the request through the layer stack.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, TYPE_CHECKING

if TYPE_CHECKING:
    from .request import Request


@dataclass
class RequestCtx:
    """
    Request context provided to handlers and middleware.

    Attributes:
        request: The HTTP request
        params: Path parameters captured by the matching layer
        state: Free-form state shared between middleware and handlers
    """

    request: "Request"
    params: Dict[str, Any] = field(default_factory=dict)
    state: Dict[str, Any] = field(default_factory=dict)

    @property
    def path(self) -> str:
        return self.request.path

    @property
    def method(self) -> str:
        return self.request.method
