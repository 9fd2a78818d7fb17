"""
Controller decorators (decorators.py)

Tests route metadata attachment, @Controller route collection,
@ControllerMiddleware, @Parent, @RouteMiddleware and registry targeting.
"""

import pytest

from decorated_router.assembler import apply_routes
from decorated_router.decorators import (
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
from decorated_router.http import Response, Router
from decorated_router.registry import RouteRegistry

from tests.conftest import dispatch


async def auth(request, ctx, call_next):
    return await call_next(request, ctx)


async def audit(request, ctx, call_next):
    return await call_next(request, ctx)


async def shared(request, ctx):
    return Response.text("shared")


# ============================================================================
# Route decorators
# ============================================================================

class TestRouteDecorators:

    @pytest.mark.parametrize("decorator, method", [
        (GET, "get"), (POST, "post"), (PUT, "put"), (PATCH, "patch"),
        (DELETE, "delete"), (HEAD, "head"), (OPTIONS, "options"), (ALL, "all"),
    ])
    def test_named_decorators(self, decorator, method):
        @decorator("/items")
        async def handler(request, ctx):
            pass

        meta = handler.__route_metadata__[0]
        assert meta["http_method"] == method
        assert meta["path"] == "/items"
        assert meta["func_name"] == "handler"

    def test_default_path(self):
        @GET()
        async def index(request, ctx):
            pass

        assert index.__route_metadata__[0]["path"] == "/"

    def test_method_decorator_lowercases(self):
        @Method("PURGE", "/cache")
        async def purge(request, ctx):
            pass

        assert purge.__route_metadata__[0]["http_method"] == "purge"

    def test_route_alias(self):
        decorator = route("get", "/x")
        assert isinstance(decorator, RouteDecorator)
        assert decorator.method == "get"

    def test_stacked_decorators(self):
        @GET("/a")
        @POST("/b")
        async def handler(request, ctx):
            pass

        methods = [m["http_method"] for m in handler.__route_metadata__]
        assert methods == ["post", "get"]

    def test_returns_function_unchanged(self):
        async def handler(request, ctx):
            pass

        assert GET("/")(handler) is handler

    def test_staticmethod_is_unwrapped(self):
        wrapped = staticmethod(lambda request, ctx: None)
        result = GET("/")(wrapped)
        assert result is wrapped
        assert wrapped.__func__.__route_metadata__[0]["http_method"] == "get"


# ============================================================================
# @Controller
# ============================================================================

class TestController:

    def test_registers_controller_and_routes(self, registry):
        @Controller("/users", {"case_sensitive": True})
        class Users:
            @GET("/")
            async def index(request, ctx):
                pass

            @POST("/")
            async def create(request, ctx):
                pass

        cid = registry.controller_id(Users)
        assert registry.controller_spec(cid).root == "/users"
        assert registry.controller_spec(cid).options == {"case_sensitive": True}
        spec = registry.route_spec(cid)
        assert spec["get"]["/"] is Users.index
        assert spec["post"]["/"] is Users.create

    def test_routes_in_definition_order(self, registry):
        @Controller("/")
        class Ordered:
            @GET("/b")
            async def second(request, ctx):
                pass

            @GET("/a")
            async def first(request, ctx):
                pass

        spec = registry.route_spec(registry.controller_id(Ordered))
        assert list(spec["get"]) == ["/b", "/a"]

    def test_staticmethod_handlers(self, registry):
        @Controller("/s")
        class Static:
            @GET("/")
            @staticmethod
            async def index(request, ctx):
                pass

        spec = registry.route_spec(registry.controller_id(Static))
        assert spec["get"]["/"] is Static.index

    def test_controller_without_routes(self, registry):
        @Controller("/empty")
        class Empty:
            def helper(self):
                pass

        cid = registry.controller_id(Empty)
        assert registry.controller_spec(cid) is not None
        assert registry.route_spec(cid) is None

    def test_inherited_routes_not_collected(self, registry):
        class Base:
            @GET("/base")
            async def base(request, ctx):
                pass

        @Controller("/child")
        class Child(Base):
            pass

        assert registry.route_spec(registry.controller_id(Child)) is None

    def test_explicit_registry(self, registry):
        other = RouteRegistry()

        @Controller("/x", registry=other)
        class Isolated:
            @GET("/")
            async def index(request, ctx):
                pass

        assert registry.is_empty()
        assert other.route_spec(other.controller_id(Isolated)) is not None

    def test_collect_routes_counts(self, registry):
        class Loose:
            @GET("/a")
            @DELETE("/a")
            async def a(request, ctx):
                pass

        assert collect_routes(Loose) == 2
        assert set(registry.route_spec(registry.controller_id(Loose))) == {"get", "delete"}

    def test_collection_consumes_metadata(self, registry):
        @Controller("/c")
        class Collected:
            @GET("/")
            async def index(request, ctx):
                pass

        assert not hasattr(Collected.index, "__route_metadata__")
        assert collect_routes(Collected) == 0


# ============================================================================
# Handlers shared between controllers
# ============================================================================

class TestSharedHandlers:

    @pytest.mark.asyncio
    async def test_shared_handler_keeps_routes_per_controller(self, registry):
        @Controller("/a")
        class A:
            x = GET("/only-a")(shared)

        @Controller("/b")
        class B:
            y = GET("/only-b")(shared)

        assert list(registry.route_spec(registry.controller_id(A))["get"]) == ["/only-a"]
        assert list(registry.route_spec(registry.controller_id(B))["get"]) == ["/only-b"]

        app = Router()
        apply_routes(app)
        assert (await dispatch(app, "GET", "/a/only-a")).body == b"shared"
        assert (await dispatch(app, "GET", "/b/only-b")).body == b"shared"
        assert await dispatch(app, "GET", "/b/only-a") is None
        assert await dispatch(app, "GET", "/a/only-b") is None

    def test_redecorating_after_reset(self, registry):
        @Controller("/v1")
        class First:
            x = GET("/old")(shared)

        registry.reset()

        @Controller("/v1")
        class Second:
            x = GET("/new")(shared)

        spec = registry.route_spec(registry.controller_id(Second))
        assert list(spec["get"]) == ["/new"]

    def test_bare_route_middleware_follows_controller_registry(self, registry):
        other = RouteRegistry()

        @Controller("/x", registry=other)
        class Isolated:
            @GET("/")
            @RouteMiddleware(auth)
            async def index(request, ctx):
                pass

        assert other.route_middleware(Isolated.index) == [auth]
        assert registry.route_middleware(Isolated.index) is None

    def test_explicit_route_middleware_registry_wins(self, registry):
        other = RouteRegistry()

        @Controller("/x", registry=other)
        class Isolated:
            @GET("/")
            @RouteMiddleware(audit, registry=other)
            @RouteMiddleware(auth)
            async def index(request, ctx):
                pass

        assert other.route_middleware(Isolated.index) == [audit]


# ============================================================================
# @ControllerMiddleware, @Parent, @RouteMiddleware
# ============================================================================

class TestScopeDecorators:

    def test_controller_middleware(self, registry):
        @ControllerMiddleware(auth, audit)
        class Guarded:
            pass

        cid = registry.controller_id(Guarded)
        assert registry.controller_middleware(cid) == [auth, audit]

    def test_parent(self, registry):
        class Root:
            pass

        @Parent(Root)
        class Leaf:
            pass

        assert registry.parent_of(registry.controller_id(Leaf)) == registry.controller_id(Root)

    def test_decorator_order_is_irrelevant(self, registry):
        class Root:
            pass

        @ControllerMiddleware(auth)
        @Parent(Root)
        @Controller("/a")
        class First:
            pass

        @Controller("/b")
        @Parent(Root)
        @ControllerMiddleware(auth)
        class Second:
            pass

        for clazz in (First, Second):
            cid = registry.controller_id(clazz)
            assert registry.controller_spec(cid) is not None
            assert registry.parent_of(cid) == registry.controller_id(Root)
            assert registry.controller_middleware(cid) == [auth]

    def test_route_middleware_either_side_of_route_decorator(self, registry):
        @Controller("/m")
        class Mixed:
            @GET("/above")
            @RouteMiddleware(auth)
            async def below(request, ctx):
                pass

            @RouteMiddleware(audit)
            @GET("/below")
            async def above(request, ctx):
                pass

        assert registry.route_middleware(Mixed.below) == [auth]
        assert registry.route_middleware(Mixed.above) == [audit]

    def test_route_middleware_on_staticmethod(self, registry):
        class Holder:
            @RouteMiddleware(auth)
            @staticmethod
            async def handler(request, ctx):
                pass

        assert registry.route_middleware(Holder.handler) == [auth]
