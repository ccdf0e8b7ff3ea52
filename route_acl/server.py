"""
Demo Starlette application protected by the route ACL gate.

Serves a small cars/drivers API where each route declares the permissions
it needs. The permission map is fixed (every caller gets the same one), so
the app shows allow and deny behavior without any user store:

    GET    /cars                 cars:read                 -> 200
    POST   /cars                 cars:create               -> 401
    GET    /cars/{id}/drivers    cars:read, drivers:read   -> 200
    DELETE /cars/{id}/drivers/{driver_id}
                                 drivers:delete, cars:read -> 401
    GET    /health, /ready       (no declaration)          -> 200

/ready answers 503 when the gate is missing from the app's middleware.

Running the server:
    python -m route_acl.server

    This starts uvicorn on http://0.0.0.0:8080 (see route_acl.config for
    the ROUTE_ACL_* environment variables).
"""

from typing import Any

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from route_acl.config import settings
from route_acl.log import configure_logging
from route_acl.middleware import RouteACLMiddleware, register, require_permissions

logger = configure_logging(settings.log_level)

DEMO_PERMISSIONS = {
    "cars": {"read": True, "create": False, "edit": True, "delete": True},
    "drivers": {"read": True, "create": False, "edit": False, "delete": False},
    "abilities": {"read": False, "create": False, "edit": False, "delete": False},
}


async def demo_permissions(credentials: Any) -> dict:
    return DEMO_PERMISSIONS


@require_permissions("cars:read")
async def list_cars(request: Request) -> Response:
    return JSONResponse(["Toyota Camry", "Honda Accord", "Ford Fusion"])


@require_permissions(["cars:create"])
async def create_car(request: Request) -> Response:
    return JSONResponse({"status": "car created"}, status_code=201)


@require_permissions(["cars:read", "drivers:read"])
async def list_drivers(request: Request) -> Response:
    return JSONResponse(["Greg", "Tom", "Sam"])


@require_permissions(["drivers:delete", "cars:read"])
async def delete_driver(request: Request) -> Response:
    return JSONResponse({"status": "driver deleted"})


async def health_check(request: Request) -> Response:
    """Liveness probe: is the server process alive and responsive?"""
    return JSONResponse({"status": "healthy"})


async def readiness_check(request: Request) -> Response:
    """Readiness probe: is the route ACL gate installed on this app?"""
    if not any(m.cls is RouteACLMiddleware for m in request.app.user_middleware):
        return JSONResponse(
            {"status": "not_ready", "reason": "route ACL gate not registered"},
            status_code=503,
        )

    return JSONResponse({"status": "ready"})


def create_app(permissions_func: Any = demo_permissions) -> Starlette:
    app = Starlette(
        routes=[
            Route("/cars", list_cars, methods=["GET"]),
            Route("/cars", create_car, methods=["POST"]),
            Route("/cars/{car_id}/drivers", list_drivers, methods=["GET"]),
            Route("/cars/{car_id}/drivers/{driver_id}", delete_driver, methods=["DELETE"]),
            Route("/health", health_check, methods=["GET"]),
            Route("/ready", readiness_check, methods=["GET"]),
        ],
    )
    register(app, permissions_func=permissions_func)
    return app


app = create_app()


if __name__ == "__main__":
    logger.info("Starting demo server on %s:%d (route ACL enabled)", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level)
