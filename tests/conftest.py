"""
Shared test fixtures and helpers for the decorated-router test suite.
"""

from typing import Any, List, Optional

import pytest

from decorated_router.http import Request, RequestCtx, Response, Router
from decorated_router.registry import RouteRegistry, set_default_registry
from decorated_router.testing import make_test_receive, make_test_scope


# ============================================================================
# Registry isolation
# ============================================================================


@pytest.fixture
def registry():
    """Fresh registry installed as the process default for one test."""
    reg = RouteRegistry()
    previous = set_default_registry(reg)
    yield reg
    reg.reset()
    set_default_registry(previous)


# ============================================================================
# Call-order instrumentation
# ============================================================================


class CallRecorder:
    """Collects labels in the order middleware and handlers run."""

    def __init__(self):
        self.calls: List[str] = []

    def middleware(self, label: str):
        async def middleware(request, ctx, call_next):
            self.calls.append(label)
            return await call_next(request, ctx)
        middleware.__name__ = f"mw_{label}"
        return middleware

    def handler(self, label: str, body: Optional[str] = None):
        async def handler(request, ctx):
            self.calls.append(label)
            return Response.text(body or label)
        handler.__name__ = f"handler_{label}"
        return handler


@pytest.fixture
def recorder():
    return CallRecorder()


class RecordingRouter:
    """Host router stand-in that logs every registration call."""

    def __init__(self, options: Any = None, log: Optional[list] = None, name: str = "router"):
        self.options = options
        self.log = log if log is not None else []
        self.name = name
        self.calls: List[tuple] = []

    def _record(self, *entry):
        self.calls.append(entry)
        self.log.append((self.name,) + entry)

    def use(self, *args):
        self._record("use", *args)
        return self

    def add_route(self, method, path, handler):
        self._record("add_route", method, path, handler)
        return self

    def mount(self, path, router):
        self._record("mount", path, router)
        return self


@pytest.fixture
def recording_factory():
    """Router factory producing RecordingRouters sharing one call log."""
    log: list = []
    built: List[RecordingRouter] = []

    def factory(options=None):
        router = RecordingRouter(options, log, name=f"router{len(built)}")
        built.append(router)
        return router

    factory.log = log
    factory.built = built
    return factory


# ============================================================================
# Dispatch helpers
# ============================================================================


async def dispatch(router: Router, method: str, path: str) -> Optional[Response]:
    """Run one request through a router without ASGI."""
    request = Request(make_test_scope(method=method, path=path), make_test_receive())
    return await router.handle(request, RequestCtx(request=request))


def tree_shape(router: Router) -> list:
    """Structural description of a Router tree, independent of object identity."""
    shape = []
    for layer in router.layers:
        if layer.kind == "mount":
            shape.append(("mount", layer.path, tree_shape(layer.router)))
        elif layer.kind == "route":
            shape.append(("route", layer.method, layer.path, layer.handler.__name__))
        else:
            shape.append(("middleware", layer.path, layer.handler.__name__))
    return shape
