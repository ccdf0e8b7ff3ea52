"""
Starlette integration: per-route permission declarations and the ASGI gate.

Routes declare what they need with a decorator on the endpoint:

    @require_permissions(["cars:read", "drivers:read"])
    async def list_drivers(request):
        ...

The gate is registered once per application, with the function that
yields the current principal's permission map:

    app = Starlette(routes=[Route("/cars/{id}/drivers", list_drivers)])
    register(app, permissions_func=load_permissions)

Request flow through RouteACLMiddleware:

    1. Find the endpoint the router is going to dispatch to
    2. No declaration (or an empty one): pass through, resolver not called
    3. Parse the declaration. A malformed token raises PermissionFormatError
    4. Await the resolver with the request's credentials (scope["user"])
    5. Every token granted: call the app. Otherwise respond 401

The gate runs after authentication. register() appends it after any
middleware already on the app; when listing middleware by hand, put
Middleware(RouteACLMiddleware, ...) after AuthenticationMiddleware so that
scope["user"] is populated by the time the resolver is called.

Prefer register(): it rejects a missing or non-callable permissions_func on
the spot. A hand-listed Middleware(RouteACLMiddleware, ...) is only
constructed when Starlette builds its middleware stack on the first
lifespan or request event, so the RegistrationError surfaces there; under
uvicorn's lifespan="auto" the server keeps running and answers 500s.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Any

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.responses import JSONResponse
from starlette.routing import Match
from starlette.types import ASGIApp, Receive, Scope, Send

from route_acl.config import settings
from route_acl.errors import PermissionFormatError, RegistrationError
from route_acl.log import LOGGER_NAME
from route_acl.permissions import (
    check,
    normalize_requirement,
    parse_requirement,
    requirement_is_empty,
)
from route_acl.resolver import PermissionResolver, as_resolver

logger = logging.getLogger(LOGGER_NAME)

ROUTE_CONFIG_ATTR = "route_acl"


# ---------------------------------------------------------------------------
# Route declarations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RouteACLConfig:
    """
    Per-route ACL settings attached to an endpoint.

    Attributes:
        permissions: The declaration as written on the route: None, a
                     "resource:action" string, or a tuple of them. Lists
                     are frozen into tuples when declared.
    """

    permissions: Any = None


def require_permissions(permissions: Any):
    """
    Decorator declaring the permissions an endpoint requires.

    Works on function endpoints and HTTPEndpoint classes. The declaration
    is stored as given; it is validated when a request hits the route.
    """
    if isinstance(permissions, list):
        permissions = tuple(permissions)

    def decorator(endpoint):
        setattr(endpoint, ROUTE_CONFIG_ATTR, RouteACLConfig(permissions=permissions))
        return endpoint

    return decorator


def get_route_config(endpoint: Any) -> RouteACLConfig | None:
    if endpoint is None:
        return None
    return getattr(endpoint, ROUTE_CONFIG_ATTR, None)


def find_endpoint(routes, scope: Scope) -> Any:
    """
    Return the endpoint the router will dispatch this request to.

    Walks routes with their own matches() so the result agrees with
    Starlette's routing. Mount and Host are descended into. A route that
    only matches the path (wrong method) is skipped: the router answers
    those with 405 and no endpoint runs.
    """
    for route in routes:
        match, child_scope = route.matches(scope)
        if match is not Match.FULL:
            continue
        sub_routes = getattr(route, "routes", None)
        if sub_routes:
            return find_endpoint(sub_routes, {**scope, **child_scope})
        return child_scope.get("endpoint")
    return None


# ---------------------------------------------------------------------------
# Gate
# ---------------------------------------------------------------------------


class RouteACLMiddleware:
    """
    ASGI middleware that enforces route permission declarations.

    Raises RegistrationError on construction if permissions_func is missing
    or not callable, so a misconfigured app fails before serving traffic.
    """

    def __init__(self, app: ASGIApp, permissions_func: Any = None):
        self.app = app
        self.resolver: PermissionResolver = as_resolver(permissions_func)

    def _routes(self, scope: Scope):
        host = scope.get("app", self.app)
        return getattr(host, "routes", None) or ()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        config = get_route_config(find_endpoint(self._routes(scope), scope))
        if config is None or requirement_is_empty(config.permissions):
            await self.app(scope, receive, send)
            return

        acl_data = {
            "request_id": str(uuid.uuid4())[:8],
            "method": scope.get("method"),
            "path": scope.get("path"),
            "required": list(normalize_requirement(config.permissions)),
        }

        try:
            required = parse_requirement(config.permissions)
        except PermissionFormatError as e:
            logger.error(
                "Malformed route permission",
                extra={"acl_data": {**acl_data, "decision": "fault", "reason": e.message}},
            )
            raise

        acl_data["required"] = [str(token) for token in required]

        try:
            permission_map = await self.resolver.resolve(scope.get("user"))
        except Exception:
            logger.exception(
                "Permission resolver failed",
                extra={"acl_data": {**acl_data, "decision": "resolver_failed"}},
            )
            raise

        decision = check(required, permission_map)

        if not decision.allowed:
            logger.warning(
                "Request denied",
                extra={
                    "acl_data": {
                        **acl_data,
                        "denied": [str(token) for token in decision.denied],
                        "decision": "denied",
                    }
                },
            )
            response = JSONResponse({"detail": "Unauthorized"}, status_code=401)
            await response(scope, receive, send)
            return

        if settings.log_decisions:
            logger.info("Request allowed", extra={"acl_data": {**acl_data, "decision": "allowed"}})

        await self.app(scope, receive, send)


def register(app: Starlette, permissions_func: Any = None) -> PermissionResolver:
    """
    Install the gate on a Starlette application.

    The resolver is validated immediately, not when Starlette first builds
    its middleware stack. The gate is appended as the innermost user
    middleware, so any authentication middleware already on the app runs
    first and the gate sees the authenticated user.

    Raises:
        RegistrationError: If permissions_func is missing or not callable, or
            the application has already started
    """
    resolver = as_resolver(permissions_func)
    if app.middleware_stack is not None:
        raise RegistrationError("cannot register after the application has started")
    app.user_middleware.append(Middleware(RouteACLMiddleware, permissions_func=resolver))
    return resolver
