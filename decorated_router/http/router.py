"""
Router - Ordered layer stack with mountable sub-routers.

A router is a list of layers tried in registration order:

- route layers match the whole remaining path and one HTTP method, and
  end dispatch by returning the handler's response;
- middleware layers match a path prefix for every method and receive a
  ``call_next`` continuation into the rest of the stack;
- mount layers match a path prefix and hand the request, with that
  prefix stripped, to a sub-router.

When no layer produces a response the router returns ``None`` and the
enclosing stack carries on with its next layer. Registration order is
therefore dispatch order, which is what the tree assembler relies on.

Path patterns use ``{name}`` placeholders with optional converters:
``{id:int}``, ``{slug:str}``, ``{rest:path}``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import (
    Any, Awaitable, Callable, Dict, Iterator, List, Optional, Pattern, Tuple,
)

from .context import RequestCtx
from .request import Request
from .response import Response

logger = logging.getLogger("decorated_router.http.router")

Handler = Callable[[Request, RequestCtx], Awaitable[Optional[Response]]]
CallNext = Callable[[Request, RequestCtx], Awaitable[Optional[Response]]]
Middleware = Callable[[Request, RequestCtx, CallNext], Awaitable[Optional[Response]]]

# converter name -> (regex, castor)
CONVERTERS: Dict[str, Tuple[str, Callable[[str], Any]]] = {
    "str": (r"[^/]+", str),
    "int": (r"-?\d+", int),
    "path": (r".+", str),
}

_PARAM_RE = re.compile(r"\{(\w+)(?::(\w+))?\}")


@dataclass(frozen=True)
class RouterOptions:
    """
    Router construction options.

    Attributes:
        case_sensitive: "/Foo" and "/foo" are different paths
        strict_slashes: "/foo" and "/foo/" are different paths
        merge_params: a mounted router sees path params captured by its
            parent's mount path
    """
    case_sensitive: bool = False
    strict_slashes: bool = False
    merge_params: bool = False


def compile_path(
    path: str,
    *,
    end: bool,
    case_sensitive: bool = False,
    strict_slashes: bool = False,
) -> Tuple[Pattern[str], Dict[str, Callable[[str], Any]]]:
    """
    Compile a path pattern.

    Args:
        path: Pattern such as "/users/{id:int}"
        end: Match the whole path (routes) or only a segment-aligned
            prefix (middleware and mounts)

    Returns:
        (compiled regex, {param name: castor})
    """
    if not path.startswith("/"):
        path = "/" + path

    pattern = ""
    castors: Dict[str, Callable[[str], Any]] = {}
    pos = 0
    for m in _PARAM_RE.finditer(path):
        pattern += re.escape(path[pos:m.start()])
        name, kind = m.group(1), m.group(2) or "str"
        if kind not in CONVERTERS:
            raise ValueError(f"Unknown path converter '{kind}' in {path!r}")
        regex, castor = CONVERTERS[kind]
        pattern += f"(?P<{name}>{regex})"
        castors[name] = castor
        pos = m.end()
    pattern += re.escape(path[pos:])

    if end:
        if not strict_slashes:
            pattern = pattern.rstrip("/") + "/?"
        pattern += "$"
    else:
        pattern = pattern.rstrip("/") + "(?=/|$)"

    flags = 0 if case_sensitive else re.IGNORECASE
    return re.compile("^" + pattern, flags), castors


def join_paths(prefix: str, path: str) -> str:
    """Join two path patterns with exactly one slash between them."""
    joined = prefix.rstrip("/") + "/" + path.lstrip("/")
    if len(joined) > 1:
        joined = joined.rstrip("/") or "/"
    return joined


class Layer:
    """One entry in a router's dispatch stack."""

    __slots__ = ("kind", "path", "method", "handler", "router", "regex", "castors")

    ROUTE = "route"
    MIDDLEWARE = "middleware"
    MOUNT = "mount"

    def __init__(
        self,
        kind: str,
        path: str,
        *,
        options: RouterOptions,
        method: Optional[str] = None,
        handler: Optional[Callable[..., Any]] = None,
        router: Optional["Router"] = None,
    ):
        self.kind = kind
        self.path = path
        self.method = method
        self.handler = handler
        self.router = router
        self.regex, self.castors = compile_path(
            path,
            end=kind == self.ROUTE,
            case_sensitive=options.case_sensitive,
            strict_slashes=options.strict_slashes,
        )

    def match(self, path: str) -> Optional[Tuple[Dict[str, Any], str, str]]:
        """
        Match a request path.

        Returns:
            (params, consumed prefix, remaining path) or None
        """
        m = self.regex.match(path)
        if m is None:
            return None
        params = {name: self.castors[name](value) for name, value in m.groupdict().items()}
        consumed = path[:m.end()]
        return params, consumed, path[m.end():] or "/"

    def handles_method(self, method: str) -> bool:
        return self.method is None or self.method == method

    def __repr__(self) -> str:
        target = self.method or "*"
        return f"<Layer {self.kind} {target} {self.path}>"


class Router:
    """
    Mountable router.

    Usage::

        api = Router()
        api.use(auth_middleware)
        api.get("/users/{id:int}", show_user)

        app = Router()
        app.mount("/api", api)
        response = await app.handle(request, RequestCtx(request))
    """

    def __init__(self, options: Optional[RouterOptions] = None):
        self.options = options or RouterOptions()
        self.layers: List[Layer] = []

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def use(self, *args: Any) -> "Router":
        """
        Register middleware.

        ``use(mw, ...)`` runs for every request reaching this router;
        ``use("/path", mw, ...)`` runs only for requests under that path
        prefix, whatever their method. Lists of middleware are flattened.
        A Router passed here is mounted instead.
        """
        path = "/"
        if args and isinstance(args[0], str):
            path, args = args[0], args[1:]

        for middleware in _flatten(args):
            if isinstance(middleware, Router):
                self.mount(path, middleware)
                continue
            self.layers.append(Layer(Layer.MIDDLEWARE, path, options=self.options, handler=middleware))
            logger.debug("Registered middleware %s at %s", _name(middleware), path)
        return self

    def add_route(self, method: str, path: str, handler: Handler) -> "Router":
        """Register a handler for one HTTP method ("all" matches any method)."""
        http_method = None if method.lower() == "all" else method.upper()
        self.layers.append(
            Layer(Layer.ROUTE, path, options=self.options, method=http_method, handler=handler)
        )
        logger.debug("Registered %s %s -> %s", http_method or "ALL", path, _name(handler))
        return self

    def mount(self, path: str, router: "Router") -> "Router":
        """Attach a sub-router at a path prefix."""
        self.layers.append(Layer(Layer.MOUNT, path, options=self.options, router=router))
        logger.debug("Mounted router at %s", path)
        return self

    def get(self, path: str, handler: Handler) -> "Router":
        return self.add_route("get", path, handler)

    def post(self, path: str, handler: Handler) -> "Router":
        return self.add_route("post", path, handler)

    def put(self, path: str, handler: Handler) -> "Router":
        return self.add_route("put", path, handler)

    def patch(self, path: str, handler: Handler) -> "Router":
        return self.add_route("patch", path, handler)

    def delete(self, path: str, handler: Handler) -> "Router":
        return self.add_route("delete", path, handler)

    def head(self, path: str, handler: Handler) -> "Router":
        return self.add_route("head", path, handler)

    def all(self, path: str, handler: Handler) -> "Router":
        return self.add_route("all", path, handler)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def handle(self, request: Request, ctx: RequestCtx) -> Optional[Response]:
        """Dispatch a request; ``None`` means nothing here handled it."""
        return await self._dispatch(request, ctx, 0, dict(ctx.params))

    async def _dispatch(
        self,
        request: Request,
        ctx: RequestCtx,
        index: int,
        base_params: Dict[str, Any],
    ) -> Optional[Response]:
        for i in range(index, len(self.layers)):
            layer = self.layers[i]
            matched = layer.match(request.path)
            if matched is None:
                continue
            params, consumed, remainder = matched

            if layer.kind == Layer.ROUTE:
                if not layer.handles_method(request.method):
                    continue
                ctx.params = {**base_params, **params}
                return await layer.handler(request, ctx)

            if layer.kind == Layer.MOUNT:
                response = await self._enter(layer.router, request, ctx, consumed, remainder,
                                             {**base_params, **params})
                if response is not None:
                    return response
                continue

            saved_params = ctx.params
            ctx.params = {**base_params, **params}

            async def call_next(req: Request = request, c: RequestCtx = ctx, _i: int = i):
                c.params = saved_params
                return await self._dispatch(req, c, _i + 1, base_params)

            response = await layer.handler(request, ctx, call_next)
            ctx.params = saved_params
            return response

        return None

    @staticmethod
    async def _enter(
        router: "Router",
        request: Request,
        ctx: RequestCtx,
        consumed: str,
        remainder: str,
        outer_params: Dict[str, Any],
    ) -> Optional[Response]:
        saved = (request.path, request.base_path, ctx.params)
        request.base_path = saved[1] + consumed.rstrip("/")
        request.path = remainder
        inherited = outer_params if router.options.merge_params else {}
        try:
            return await router._dispatch(request, ctx, 0, inherited)
        finally:
            request.path, request.base_path, ctx.params = saved

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def routes(self, prefix: str = "/") -> Iterator[Tuple[str, str, Handler]]:
        """Yield (METHOD, full path, handler) for every reachable route layer."""
        for layer in self.layers:
            if layer.kind == Layer.ROUTE:
                yield layer.method or "ALL", join_paths(prefix, layer.path), layer.handler
            elif layer.kind == Layer.MOUNT:
                yield from layer.router.routes(join_paths(prefix, layer.path))

    def __repr__(self) -> str:
        return f"<Router layers={len(self.layers)}>"


def _flatten(items: Any) -> Iterator[Any]:
    for item in items:
        if isinstance(item, (list, tuple)):
            yield from _flatten(item)
        else:
            yield item


def _name(obj: Any) -> str:
    return getattr(obj, "__qualname__", None) or getattr(obj, "__name__", None) or repr(obj)
