"""
Route Registry - Declarative routing metadata store.

Records every decoration applied to every controller, independent of the
order in which decorators run. Holds no assembly logic: the tables are
only ever set, read and cleared.

Tables (all keyed by opaque identifiers allocated here):
- controllers:           ControllerId -> ControllerSpec
- routes:                ControllerId -> RouteSpec (method -> path -> handler)
- controller_middleware: ControllerId -> [middleware]
- route_middleware:      HandlerId -> [middleware]
- parents:               child ControllerId -> parent ControllerId
- routers:               ControllerId -> assembled router

Lifecycle: create -> register* -> assemble -> reset.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

logger = logging.getLogger("decorated_router.registry")

Handler = Callable[..., Any]
Middleware = Callable[..., Any]
PathPattern = str

# method -> path -> handler, both levels in insertion order
RouteSpec = Dict[str, Dict[PathPattern, Handler]]


def _display_name(obj: Any) -> str:
    return getattr(obj, "__qualname__", None) or getattr(obj, "__name__", None) or repr(obj)


@dataclass(frozen=True)
class ControllerId:
    """Opaque controller identity. ``name`` is for humans only."""
    seq: int
    name: str = field(compare=False)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class HandlerId:
    """Opaque handler identity. ``name`` is for humans only."""
    seq: int
    name: str = field(compare=False)

    def __str__(self) -> str:
        return self.name


@dataclass
class ControllerSpec:
    """Controller definition."""
    root: PathPattern
    options: Optional[Any] = None


class RouteRegistry:
    """
    Injectable routing metadata store.

    Every decorator writes into one registry instance (the process default
    unless told otherwise). Separate instances never share identifiers, so
    independent registration/assembly cycles cannot leak into each other.

    Lookups return ``None`` for unknown keys. No referential integrity is
    checked here: a parent that was never declared a controller is only
    detected when the tree is assembled.
    """

    def __init__(self):
        self._seq = itertools.count(1)
        self._controller_ids: Dict[Any, ControllerId] = {}
        self._handler_ids: Dict[Any, HandlerId] = {}
        self._controller_classes: Dict[ControllerId, Any] = {}

        self._controllers: Dict[ControllerId, ControllerSpec] = {}
        self._routes: Dict[ControllerId, RouteSpec] = {}
        self._controller_middleware: Dict[ControllerId, List[Middleware]] = {}
        self._route_middleware: Dict[HandlerId, List[Middleware]] = {}
        self._parents: Dict[ControllerId, ControllerId] = {}
        self._routers: Dict[ControllerId, Any] = {}

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def controller_id(self, clazz: Any) -> ControllerId:
        """Return the id for a controller class, allocating it on first sight."""
        cid = self._controller_ids.get(clazz)
        if cid is None:
            cid = ControllerId(next(self._seq), _display_name(clazz))
            self._controller_ids[clazz] = cid
            self._controller_classes[cid] = clazz
        return cid

    def handler_id(self, handler: Handler) -> HandlerId:
        """Return the id for a handler function, allocating it on first sight."""
        hid = self._handler_ids.get(handler)
        if hid is None:
            hid = HandlerId(next(self._seq), _display_name(handler))
            self._handler_ids[handler] = hid
        return hid

    def find_handler_id(self, handler: Handler) -> Optional[HandlerId]:
        """Look up a handler id without allocating one."""
        return self._handler_ids.get(handler)

    def controller_class(self, cid: ControllerId) -> Optional[Any]:
        return self._controller_classes.get(cid)

    def name_of(self, cid: ControllerId) -> str:
        """Readable controller name, from the registered class when known."""
        clazz = self._controller_classes.get(cid)
        if clazz is None:
            return cid.name
        return _display_name(clazz)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def add_controller(self, clazz: Any, root: PathPattern, options: Any = None) -> ControllerId:
        """
        Register a @Controller decoration.

        Args:
            clazz: Controller class
            root: Controller root path
            options: Options passed to the router constructor
        """
        cid = self.controller_id(clazz)
        self._controllers[cid] = ControllerSpec(root=root, options=options)
        logger.debug(
            "Decorating class %s as a controller with root %s and options %r",
            cid, root, options,
        )
        return cid

    def add_controller_middleware(self, clazz: Any, middleware: List[Middleware]) -> ControllerId:
        """
        Register a @ControllerMiddleware decoration.

        Args:
            clazz: Controller class
            middleware: Middleware handlers, in execution order
        """
        cid = self.controller_id(clazz)
        self._controller_middleware[cid] = list(middleware)
        logger.debug("Adding %d middleware functions to controller %s", len(middleware), cid)
        return cid

    def add_parent(self, child: Any, parent: Any) -> Tuple[ControllerId, ControllerId]:
        """
        Register a @Parent decoration.

        Args:
            child: Child controller class
            parent: Parent controller class
        """
        child_id = self.controller_id(child)
        parent_id = self.controller_id(parent)
        logger.debug("Setting %s as the parent controller of %s", parent_id, child_id)
        self._parents[child_id] = parent_id
        return child_id, parent_id

    def add_route(
        self,
        clazz: Any,
        http_method: str,
        path: PathPattern,
        handler: Handler,
    ) -> ControllerId:
        """
        Register a route decoration.

        Re-registering the same method and path replaces the earlier
        handler.

        Args:
            clazz: Controller class
            http_method: The HTTP method
            path: The URL path
            handler: The request handler
        """
        cid = self.controller_id(clazz)
        method = http_method.lower()
        logger.debug("Adding %s %s route to controller %s", method.upper(), path, cid)

        route_spec = self._routes.get(cid)
        if route_spec is None:
            logger.debug("Route spec object does not exist - creating")
            route_spec = {}
            self._routes[cid] = route_spec

        method_spec = route_spec.get(method)
        if method_spec is None:
            logger.debug("Http spec map does not exist - creating")
            method_spec = {}
            route_spec[method] = method_spec

        if path in method_spec:
            logger.debug(
                "Replacing %s %s handler %s on controller %s",
                method.upper(), path, _display_name(method_spec[path]), cid,
            )
        method_spec[path] = handler
        self.handler_id(handler)
        return cid

    def add_route_middleware(self, handler: Handler, middleware: List[Middleware]) -> HandlerId:
        """
        Register a @RouteMiddleware decoration.

        Args:
            handler: The decorated handler function
            middleware: The middleware functions, in execution order
        """
        hid = self.handler_id(handler)
        self._route_middleware[hid] = list(middleware)
        logger.debug("Adding %d middleware functions to handler %s", len(middleware), hid)
        return hid

    def set_router(self, cid: ControllerId, router: Any) -> None:
        """Record the router assembled for a controller."""
        self._routers[cid] = router

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def controllers(self) -> Iterator[Tuple[ControllerId, ControllerSpec]]:
        """Controllers in @Controller registration order."""
        return iter(list(self._controllers.items()))

    def parents(self) -> Iterator[Tuple[ControllerId, ControllerId]]:
        """(child, parent) pairs in @Parent registration order."""
        return iter(list(self._parents.items()))

    def controller_spec(self, cid: ControllerId) -> Optional[ControllerSpec]:
        return self._controllers.get(cid)

    def route_spec(self, cid: ControllerId) -> Optional[RouteSpec]:
        return self._routes.get(cid)

    def controller_middleware(self, cid: ControllerId) -> Optional[List[Middleware]]:
        return self._controller_middleware.get(cid)

    def route_middleware(self, handler: Handler) -> Optional[List[Middleware]]:
        """Middleware registered for a handler function (or its HandlerId)."""
        hid = handler if isinstance(handler, HandlerId) else self._handler_ids.get(handler)
        if hid is None:
            return None
        return self._route_middleware.get(hid)

    def take_route_middleware(self, handler: Handler) -> Optional[List[Middleware]]:
        """Remove and return the middleware registered for a handler."""
        hid = self._handler_ids.get(handler)
        if hid is None:
            return None
        middleware = self._route_middleware.pop(hid, None)
        if middleware is not None:
            logger.debug("Released %d middleware functions of handler %s", len(middleware), hid)
        return middleware

    def parent_of(self, cid: ControllerId) -> Optional[ControllerId]:
        return self._parents.get(cid)

    def has_parent(self, cid: ControllerId) -> bool:
        return cid in self._parents

    def router_for(self, cid: ControllerId) -> Optional[Any]:
        return self._routers.get(cid)

    def parent_snapshot(self) -> Dict[ControllerId, ControllerId]:
        """Copy of the parent table, used to freeze it for one assembly."""
        return dict(self._parents)

    def is_empty(self) -> bool:
        return not any((
            self._controllers,
            self._routes,
            self._controller_middleware,
            self._route_middleware,
            self._parents,
            self._routers,
        ))

    def describe(self) -> Dict[str, Any]:
        """Plain-dict snapshot of the registry for introspection."""
        controllers = []
        for cid, spec in self._controllers.items():
            routes = self._routes.get(cid) or {}
            parent = self._parents.get(cid)
            controllers.append({
                "controller": self.name_of(cid),
                "root": spec.root,
                "options": spec.options,
                "routes": {
                    method.upper(): [
                        {
                            "path": path,
                            "handler": _display_name(handler),
                            "middleware": len(self.route_middleware(handler) or []),
                        }
                        for path, handler in paths.items()
                    ]
                    for method, paths in routes.items()
                },
                "middleware": len(self._controller_middleware.get(cid) or []),
                "parent": self.name_of(parent) if parent else None,
                "assembled": cid in self._routers,
            })
        return {"controllers": controllers}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reset(self) -> "RouteRegistry":
        """
        Clear every table, freeing resources.

        Safe to call on an empty registry. Identifiers allocated before the
        reset are forgotten; the next registration starts a fresh cycle.
        """
        logger.debug("Resetting route map")
        self._routes.clear()

        logger.debug("Resetting controller map")
        self._controllers.clear()

        logger.debug("Resetting controller middleware map")
        self._controller_middleware.clear()

        logger.debug("Resetting route middleware map")
        self._route_middleware.clear()

        logger.debug("Resetting router map")
        self._routers.clear()

        logger.debug("Resetting parent map")
        self._parents.clear()

        self._controller_ids.clear()
        self._handler_ids.clear()
        self._controller_classes.clear()
        return self


# ============================================================================
# Process-wide default registry
# ============================================================================

_default_registry: Optional[RouteRegistry] = None


def get_default_registry() -> RouteRegistry:
    """Registry used by decorators and facades when none is passed."""
    global _default_registry
    if _default_registry is None:
        _default_registry = RouteRegistry()
    return _default_registry


def set_default_registry(registry: Optional[RouteRegistry]) -> Optional[RouteRegistry]:
    """Replace the default registry; returns the previous one."""
    global _default_registry
    previous = _default_registry
    _default_registry = registry
    return previous
