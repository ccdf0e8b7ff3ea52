"""
Permission resolvers: where the principal's permission map comes from.

The gate does not know how permissions are stored. The application hands
it a resolver when the middleware is registered, and the gate asks that
resolver for a fresh map on every request that has a permission
requirement.

Two ways to supply one:

    # A plain function, sync or async, taking the request's credentials
    async def load_permissions(credentials):
        return await db.permissions_for(credentials.identity)

    register(app, permissions_func=load_permissions)

    # Or any PermissionResolver subclass
    register(app, permissions_func=StaticResolver({"cars": {"read": True}}))

Whatever the resolver raises propagates to the caller untouched: a broken
permission source must not quietly become an allow or a deny.
"""

import inspect
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import Any

from starlette.concurrency import run_in_threadpool

from route_acl.errors import RegistrationError, ResolverError
from route_acl.permissions import PermissionMap


class PermissionResolver(ABC):
    """Strategy that yields the permission map for a request's credentials."""

    @abstractmethod
    async def resolve(self, credentials: Any) -> PermissionMap: ...


class CallableResolver(PermissionResolver):
    """
    Adapts a plain function into a PermissionResolver.

    Coroutine functions are awaited. Plain functions run in Starlette's
    threadpool so a blocking lookup (database, HTTP) does not stall the
    event loop; if such a function returns an awaitable, that is awaited too.
    """

    def __init__(self, func: Callable[[Any], Any]):
        self.func = func

    async def resolve(self, credentials: Any) -> PermissionMap:
        if inspect.iscoroutinefunction(self.func):
            result = await self.func(credentials)
        else:
            result = await run_in_threadpool(self.func, credentials)
        if inspect.isawaitable(result):
            result = await result
        if not isinstance(result, Mapping):
            raise ResolverError(
                f"permissions_func must return a mapping, got {type(result).__name__}"
            )
        return result


class StaticResolver(PermissionResolver):
    """Yields the same permission map for every request. Handy in tests."""

    def __init__(self, permission_map: PermissionMap):
        self.permission_map = permission_map

    async def resolve(self, credentials: Any) -> PermissionMap:
        return self.permission_map


def as_resolver(permissions_func: Any) -> PermissionResolver:
    """
    Validate a registration option and wrap it as a PermissionResolver.

    Raises:
        RegistrationError: If permissions_func is missing or not callable
    """
    if permissions_func is None:
        raise RegistrationError("permissions_func is required")
    if isinstance(permissions_func, PermissionResolver):
        return permissions_func
    if not callable(permissions_func):
        raise RegistrationError("permissions_func must be a function")
    return CallableResolver(permissions_func)
