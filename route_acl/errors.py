"""
Exceptions raised by the route ACL gate.

Three kinds of failure are kept apart from a normal denial:

- RegistrationError: the gate was installed without a usable resolver.
  Raised at setup time so a misconfigured app never starts serving.
- PermissionFormatError: a route declares a permission that is not a
  "resource:action" string. This is a programming mistake in route setup,
  so it is raised into the framework's error channel instead of turning
  into a 401.
- ResolverError: the resolver answered with something that is not a
  permission map.

A denial (the principal lacks a permission) is never an exception. It is
a Decision returned by route_acl.permissions.evaluate().
"""


class RouteACLError(Exception):
    """
    Base class for all route ACL errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class RegistrationError(RouteACLError):
    """Raised when the gate is registered without a valid permissions_func."""


class PermissionFormatError(RouteACLError):
    """Raised when a route's permission declaration is malformed."""


class ResolverError(RouteACLError):
    """Raised when the resolver yields something other than a permission map."""
