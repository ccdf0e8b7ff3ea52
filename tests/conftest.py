"""
Shared test fixtures for the route ACL test suite.

Key fixtures:
- permission_map: The cars/drivers/abilities map used throughout the suite
- make_app: A factory that builds a Starlette app with the gate registered
- make_client: A factory for httpx.AsyncClient bound to such an app

Testing approach:
- test_permissions.py: Unit tests for token parsing and evaluate(), no HTTP.
- test_resolver.py: Unit tests for resolver adaptation and registration checks.
- test_middleware.py: Integration tests through the full Starlette stack.
  Requests go through httpx.ASGITransport (in-memory, no network). The
  transport re-raises application exceptions, which is how the tests see
  a malformed declaration escape into the framework's error channel.
"""

import httpx
import pytest
from starlette.applications import Starlette

from route_acl.middleware import register


@pytest.fixture
def permission_map():
    return {
        "cars": {"read": True, "create": False, "edit": True, "delete": True},
        "drivers": {"read": True, "create": False, "edit": False, "delete": False},
        "abilities": {"read": False, "create": False, "edit": False, "delete": False},
    }


@pytest.fixture
def make_app(permission_map):
    """
    Factory fixture returning a Starlette app with the gate installed.

    Usage in tests:
        def test_something(make_app):
            app = make_app(routes=[Route("/cars", list_cars)])
    """

    def _make_app(routes, permissions_func=None, middleware=None) -> Starlette:
        if permissions_func is None:

            async def permissions_func(credentials):
                return permission_map

        app = Starlette(routes=routes, middleware=middleware)
        register(app, permissions_func=permissions_func)
        return app

    return _make_app


@pytest.fixture
async def make_client():
    """
    Factory fixture returning an httpx.AsyncClient for an ASGI app.

    Clients are closed on teardown.
    """
    clients = []

    def _make_client(app, raise_app_exceptions: bool = True) -> httpx.AsyncClient:
        transport = httpx.ASGITransport(app=app, raise_app_exceptions=raise_app_exceptions)
        client = httpx.AsyncClient(transport=transport, base_url="http://testserver")
        clients.append(client)
        return client

    yield _make_client

    for client in clients:
        await client.aclose()
