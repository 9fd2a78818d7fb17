"""
decorated-router

Declare routes, controller scopes, middleware and parent/child nesting
with decorators, then assemble them into a mounted router tree.

Example:
    from decorated_router import Controller, GET, Response, Router, apply_routes, reset

    @Controller("/users")
    class UsersController:

        @GET("/{id:int}")
        async def show(request, ctx):
            return Response.json({"id": ctx.params["id"]})

    app = Router()
    apply_routes(app)
    reset()
"""

__version__ = "1.0.0"

from .registry import (
    ControllerId,
    ControllerSpec,
    HandlerId,
    RouteRegistry,
    get_default_registry,
    set_default_registry,
)
from .assembler import RouteAssembler, apply_routes, reset
from .decorators import (
    ALL, DELETE, GET, HEAD, OPTIONS, PATCH, POST, PUT,
    Controller,
    ControllerMiddleware,
    Method,
    Parent,
    RouteDecorator,
    RouteMiddleware,
    collect_routes,
    route,
)
from .faults import (
    Fault,
    FaultDomain,
    Severity,
    ConfigFault,
    ConfigInvalidFault,
    RoutingTreeFault,
    ParentControllerFault,
    UnregisteredControllerFault,
)
from .http import Request, RequestCtx, Response, Router, RouterOptions
from .config import ConfigLoader, RouterSettings, configure_logging
from .asgi import ASGIAdapter, create_app

__all__ = [
    "__version__",

    # Registry
    "RouteRegistry",
    "ControllerId",
    "HandlerId",
    "ControllerSpec",
    "get_default_registry",
    "set_default_registry",

    # Assembly
    "RouteAssembler",
    "apply_routes",
    "reset",

    # Decorators
    "Controller",
    "ControllerMiddleware",
    "Parent",
    "RouteMiddleware",
    "RouteDecorator",
    "Method",
    "route",
    "GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS", "ALL",
    "collect_routes",

    # Faults
    "Fault",
    "FaultDomain",
    "Severity",
    "ConfigFault",
    "ConfigInvalidFault",
    "RoutingTreeFault",
    "ParentControllerFault",
    "UnregisteredControllerFault",

    # HTTP
    "Request",
    "RequestCtx",
    "Response",
    "Router",
    "RouterOptions",

    # Config & app
    "ConfigLoader",
    "RouterSettings",
    "configure_logging",
    "ASGIAdapter",
    "create_app",
]
