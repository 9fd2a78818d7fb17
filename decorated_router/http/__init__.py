"""
HTTP layer - request/response objects and the mountable layer-stack router
that assembled controller trees run on.
"""

from .context import RequestCtx
from .request import BadRequest, Request
from .response import Response
from .router import (
    CONVERTERS,
    Layer,
    Router,
    RouterOptions,
    compile_path,
    join_paths,
)

__all__ = [
    "RequestCtx",
    "Request",
    "BadRequest",
    "Response",
    "Router",
    "RouterOptions",
    "Layer",
    "CONVERTERS",
    "compile_path",
    "join_paths",
]
