"""
ASGI adapter - Bridges the ASGI protocol to an assembled router tree.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from .assembler import RouteAssembler
from .config import RouterSettings, configure_logging
from .faults import Fault
from .http.context import RequestCtx
from .http.request import Request
from .http.response import Response
from .http.router import Router
from .registry import RouteRegistry


class ASGIAdapter:
    """
    ASGI application serving a Router.

    Unhandled requests get a 404 JSON body; unhandled exceptions are logged
    and turned into a 500 JSON body (public faults become 400).
    """

    __slots__ = ("router", "debug", "logger")

    def __init__(self, router: Router, *, debug: bool = False):
        self.router = router
        self.debug = debug
        self.logger = logging.getLogger("decorated_router.asgi")

    async def __call__(self, scope: dict, receive: Callable, send: Callable):
        scope_type = scope["type"]
        if scope_type == "http":
            await self.handle_http(scope, receive, send)
        elif scope_type == "lifespan":
            await self.handle_lifespan(scope, receive, send)

    async def handle_http(self, scope: dict, receive: Callable, send: Callable):
        request = Request(scope, receive)
        ctx = RequestCtx(request=request)

        try:
            response = await self.router.handle(request, ctx)
        except Fault as fault:
            if fault.public:
                response = Response.json(
                    {"error": fault.code, "message": fault.message}, status=400,
                )
            else:
                self.logger.error("Fault in request pipeline: %s", fault, exc_info=True)
                response = self._server_error(fault)
        except Exception as exc:
            self.logger.error("Critical error in request pipeline: %s", exc, exc_info=True)
            response = self._server_error(exc)

        if response is None:
            response = Response.json(
                {"error": "Not found", "path": request.original_path}, status=404,
            )

        await response.send_asgi(send)

    def _server_error(self, exc: BaseException) -> Response:
        body = {"error": "Internal server error"}
        if self.debug:
            body["detail"] = repr(exc)
        return Response.json(body, status=500)

    async def handle_lifespan(self, scope: dict, receive: Callable, send: Callable):
        """Acknowledge lifespan events; the tree is assembled before serving."""
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                break


def create_app(
    settings: Optional[RouterSettings] = None,
    registry: Optional[RouteRegistry] = None,
    *,
    router_factory: Any = Router,
) -> ASGIAdapter:
    """
    Assemble every registered controller into a fresh app router.

    The registry is left intact; call its ``reset()`` when done.
    """
    settings = settings or RouterSettings()
    configure_logging(settings.log_level)

    app_router = router_factory(settings.router_options())
    RouteAssembler(registry, router_factory=router_factory).apply_routes(app_router)
    return ASGIAdapter(app_router, debug=settings.debug)
