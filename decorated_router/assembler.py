"""
Route Assembler - Turns registry metadata into a mounted router tree.

Assembly runs two passes over a RouteRegistry:

Pass 1 (controllers, in @Controller registration order)
    Build one router per controller that has routes: controller
    middleware first, then for each route its path-scoped middleware
    followed by the handler. Controllers without a parent are mounted on
    the application router straight away.

Pass 2 (parents, in @Parent registration order)
    Copy the parent's controller middleware onto the child router, then
    mount the child under the parent at the child's root.

Controllers without routes are skipped entirely. A broken parent link
fails the whole assembly.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from .faults import ParentControllerFault, UnregisteredControllerFault
from .http.router import Router
from .registry import (
    ControllerId,
    ControllerSpec,
    Handler,
    PathPattern,
    RouteRegistry,
    get_default_registry,
)

logger = logging.getLogger("decorated_router.assembler")

RouterFactory = Callable[[Optional[Any]], Any]


class RouteAssembler:
    """
    Two-pass router tree builder.

    Args:
        registry: Registry to read; the process default when omitted
        router_factory: Builds a router from stored controller options.
            Anything exposing ``use``, ``add_route`` and ``mount`` works.

    Example:
        ```python
        app = Router()
        RouteAssembler(registry).apply_routes(app).reset()
        ```
    """

    def __init__(
        self,
        registry: Optional[RouteRegistry] = None,
        router_factory: RouterFactory = Router,
    ):
        self.registry = registry if registry is not None else get_default_registry()
        self.router_factory = router_factory

    def apply_routes(self, app: Any) -> "RouteAssembler":
        """
        Apply routes to the application router. Call reset() afterwards.

        All decorators must have run before this is called.

        Args:
            app: Application router (anything with ``mount``)

        Raises:
            ParentControllerFault: a @Parent target has no assembled router
            UnregisteredControllerFault: a @Parent child has no assembled router
        """
        logger.debug("Applying routes to app router")
        parents = self.registry.parent_snapshot()

        for controller, spec in self.registry.controllers():
            self._process_controller(app, controller, spec, parents)

        for child, parent in parents.items():
            self._process_parent(child, parent)

        return self

    def reset(self) -> "RouteAssembler":
        """Reset the registry, freeing resources."""
        self.registry.reset()
        return self

    # ------------------------------------------------------------------
    # Pass 1
    # ------------------------------------------------------------------

    def _process_controller(
        self,
        app: Any,
        controller: ControllerId,
        spec: ControllerSpec,
        parents: Dict[ControllerId, ControllerId],
    ) -> None:
        logger.debug("Resolved controller as %s, controller spec as %r", controller, spec)

        route_spec = self.registry.route_spec(controller)
        if route_spec is None:
            logger.debug("Controller %s has no routes - skipping", controller)
            return
        if not any(route_spec.values()):
            logger.debug("Controller %s has an empty route spec - skipping", controller)
            return

        router = self.router_factory(spec.options)

        self._process_controller_middleware(router, controller)

        logger.debug("Parsing route specs for controller %s", controller)
        for http_method, method_spec in route_spec.items():
            logger.debug("Parsing %s routes for controller %s", http_method.upper(), controller)
            for path, handler in method_spec.items():
                self._process_route(router, http_method, path, handler)

        logger.debug(
            "Adding controller %s with root %s and options %r to app",
            controller, spec.root, spec.options,
        )
        self.registry.set_router(controller, router)

        if controller not in parents:
            app.mount(spec.root, router)
        else:
            logger.debug("Controller %s has a parent - deferring mount", controller)

    def _process_controller_middleware(self, router: Any, controller: ControllerId) -> None:
        middleware = self.registry.controller_middleware(controller)
        if middleware:
            logger.debug(
                "Controller %s has %d middleware functions assigned", controller, len(middleware)
            )
            router.use(*middleware)
        else:
            logger.debug("Controller %s has no middleware functions assigned", controller)

    def _process_route(
        self,
        router: Any,
        http_method: str,
        path: PathPattern,
        handler: Handler,
    ) -> None:
        logger.debug("Method %s resolved to path %s", getattr(handler, "__name__", handler), path)
        self._process_route_middleware(router, path, self.registry.route_middleware(handler))
        router.add_route(http_method, path, handler)

    @staticmethod
    def _process_route_middleware(
        router: Any,
        path: PathPattern,
        middleware: Optional[List[Any]],
    ) -> None:
        if middleware:
            logger.debug("And has %d middleware functions", len(middleware))
            router.use(path, *middleware)
        else:
            logger.debug("And has no middleware functions")

    # ------------------------------------------------------------------
    # Pass 2
    # ------------------------------------------------------------------

    def _process_parent(self, child: ControllerId, parent: ControllerId) -> None:
        logger.debug("Processing parent %s of child %s", parent, child)

        parent_router = self.registry.router_for(parent)
        if parent_router is None:
            raise ParentControllerFault(child, parent)
        logger.debug("Parent router found")

        child_router = self.registry.router_for(child)
        if child_router is None:
            raise UnregisteredControllerFault(child)
        logger.debug("Child router found")

        child_spec = self.registry.controller_spec(child)
        parent_middleware = self.registry.controller_middleware(parent)
        if parent_middleware:
            # Lands after the child's own route layers.
            logger.debug(
                "Parent router %s has %d middleware applied. Transferring to %s",
                parent, len(parent_middleware), child,
            )
            child_router.use(*parent_middleware)

        parent_router.mount(child_spec.root, child_router)


# ============================================================================
# Facade over the default registry
# ============================================================================

def apply_routes(app: Any, registry: Optional[RouteRegistry] = None) -> RouteAssembler:
    """Assemble every registered controller onto ``app``."""
    return RouteAssembler(registry).apply_routes(app)


def reset(registry: Optional[RouteRegistry] = None) -> RouteAssembler:
    """Clear the registry after assembly."""
    return RouteAssembler(registry).reset()
