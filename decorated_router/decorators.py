"""
Controller Decorators

Class and function decorators that record routing metadata in a
RouteRegistry. Nothing is built here; see RouteAssembler.

Python runs method decorators before the enclosing class exists, so route
decorators only attach ``__route_metadata__`` to the function. @Controller
collects that metadata from the class body and registers the routes.
@RouteMiddleware, @ControllerMiddleware and @Parent register directly and
may be applied in any order.

Example:
    @Controller("/users")
    @ControllerMiddleware(require_auth)
    class UsersController:

        @GET("/{id:int}")
        @RouteMiddleware(load_user)
        async def show(request, ctx):
            return Response.json(ctx.state["user"])
"""

from typing import Any, Callable, List, Optional, TypeVar

from .registry import RouteRegistry, get_default_registry

F = TypeVar('F', bound=Callable[..., Any])
C = TypeVar('C', bound=type)

ROUTE_METADATA_ATTR = "__route_metadata__"


def _registry(registry: Optional[RouteRegistry]) -> RouteRegistry:
    return registry if registry is not None else get_default_registry()


def _unwrap(func: Any) -> Callable[..., Any]:
    """Return the plain function behind a staticmethod wrapper."""
    if isinstance(func, staticmethod):
        return func.__func__
    return func


# ============================================================================
# Route decorators
# ============================================================================

class RouteDecorator:
    """
    Base route decorator.

    Attaches (method, path) metadata to a handler for @Controller to
    collect. Several route decorators may stack on one handler.
    """

    method: Optional[str] = None

    def __init__(self, path: str = "/"):
        self.path = path

    def __call__(self, func: F) -> F:
        target = _unwrap(func)
        if not hasattr(target, ROUTE_METADATA_ATTR):
            target.__route_metadata__ = []

        target.__route_metadata__.append({
            'http_method': self.method,
            'path': self.path,
            'func_name': target.__name__,
        })
        return func


class Method(RouteDecorator):
    """Route decorator for an arbitrary HTTP method."""

    def __init__(self, http_method: str, path: str = "/"):
        super().__init__(path)
        self.method = http_method.lower()


def route(http_method: str, path: str = "/") -> Method:
    """Functional alias of :class:`Method`."""
    return Method(http_method, path)


class GET(RouteDecorator):
    """GET request decorator."""
    method = 'get'


class POST(RouteDecorator):
    """POST request decorator."""
    method = 'post'


class PUT(RouteDecorator):
    """PUT request decorator."""
    method = 'put'


class PATCH(RouteDecorator):
    """PATCH request decorator."""
    method = 'patch'


class DELETE(RouteDecorator):
    """DELETE request decorator."""
    method = 'delete'


class HEAD(RouteDecorator):
    """HEAD request decorator."""
    method = 'head'


class OPTIONS(RouteDecorator):
    """OPTIONS request decorator."""
    method = 'options'


class ALL(RouteDecorator):
    """Matches every HTTP method."""
    method = 'all'


def collect_routes(clazz: type, registry: Optional[RouteRegistry] = None) -> int:
    """
    Register every decorated handler declared on ``clazz``.

    Only the class's own body is scanned, in definition order. Route
    metadata is consumed as it is registered, so a handler shared by
    several controllers only carries the routes declared since the last
    collection.

    When ``registry`` is not the process default, route middleware that a
    bare @RouteMiddleware left in the default registry is moved over.

    Returns:
        Number of routes registered
    """
    default = get_default_registry()
    registry = _registry(registry)
    count = 0
    for attr in list(vars(clazz).values()):
        handler = _unwrap(attr)
        metadata = getattr(handler, ROUTE_METADATA_ATTR, None)
        if not metadata:
            continue
        delattr(handler, ROUTE_METADATA_ATTR)

        for meta in metadata:
            registry.add_route(clazz, meta['http_method'], meta['path'], handler)
            count += 1

        if registry is not default:
            pending = default.take_route_middleware(handler)
            if pending is not None and registry.route_middleware(handler) is None:
                registry.add_route_middleware(handler, pending)
    return count


# ============================================================================
# Class decorators
# ============================================================================

def Controller(root: str = "/", options: Any = None, *, registry: Optional[RouteRegistry] = None):
    """
    Declare a class as a controller mounted at ``root``.

    Routes declared in the class body are collected here, together with
    any @RouteMiddleware applied to them without an explicit registry.

    Args:
        root: Root path of the controller
        options: Router construction options
        registry: Target registry (process default when omitted)
    """
    def decorator(clazz: C) -> C:
        reg = _registry(registry)
        reg.add_controller(clazz, root, options)
        collect_routes(clazz, reg)
        return clazz
    return decorator


def ControllerMiddleware(*middleware: Callable[..., Any], registry: Optional[RouteRegistry] = None):
    """Run ``middleware`` for every request reaching the controller."""
    def decorator(clazz: C) -> C:
        _registry(registry).add_controller_middleware(clazz, list(middleware))
        return clazz
    return decorator


def Parent(parent: type, *, registry: Optional[RouteRegistry] = None):
    """Mount the decorated controller under ``parent`` instead of the app."""
    def decorator(clazz: C) -> C:
        _registry(registry).add_parent(clazz, parent)
        return clazz
    return decorator


# ============================================================================
# Handler decorators
# ============================================================================

def RouteMiddleware(*middleware: Callable[..., Any], registry: Optional[RouteRegistry] = None):
    """Run ``middleware`` before this handler, scoped to the handler's path."""
    def decorator(func: F) -> F:
        _registry(registry).add_route_middleware(_unwrap(func), list(middleware))
        return func
    return decorator


__all__: List[str] = [
    "RouteDecorator", "Method", "route",
    "GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS", "ALL",
    "collect_routes",
    "Controller", "ControllerMiddleware", "Parent", "RouteMiddleware",
]
