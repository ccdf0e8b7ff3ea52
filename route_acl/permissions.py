"""
Permission token parsing and allow/deny evaluation.

Routes declare the permissions they need as "resource:action" strings:

    "cars:read"                       -> one permission
    ["cars:read", "drivers:read"]     -> all of them are required

At request time the principal's permissions arrive as a nested boolean map:

    {
        "cars":    {"read": True, "create": False},
        "drivers": {"read": True, "delete": False},
    }

A token is granted only if its resource is in the map AND its action maps
to a true value. A resource missing from the map denies every action under
it, the same way an explicit False does.

Nothing here knows about HTTP. The middleware (route_acl.middleware) turns
a Decision into a response.
"""

import enum
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from route_acl.errors import PermissionFormatError

PermissionMap = Mapping[str, Mapping[str, bool]]

NOT_A_STRING = "permission must be a string"
BAD_FORMAT = "permission must be formatted: [routeName]:[read|create|edit|delete]"


@dataclass(frozen=True)
class PermissionToken:
    """
    A parsed "resource:action" permission.

    Attributes:
        resource: The resource name (e.g., "cars")
        action: The action on that resource (e.g., "read")
    """

    resource: str
    action: str

    def __str__(self) -> str:
        return f"{self.resource}:{self.action}"


class Outcome(enum.Enum):
    ALLOW = "allow"
    DENY = "deny"


@dataclass(frozen=True)
class Decision:
    """
    Result of checking a route's requirement against a permission map.

    Attributes:
        outcome: ALLOW or DENY
        required: Every token the route declared, in declaration order
        denied: The subset of required tokens that were not granted
    """

    outcome: Outcome
    required: tuple[PermissionToken, ...] = ()
    denied: tuple[PermissionToken, ...] = ()

    @property
    def allowed(self) -> bool:
        return self.outcome is Outcome.ALLOW


def parse_token(value: Any) -> PermissionToken:
    """
    Parse a single "resource:action" declaration.

    Raises:
        PermissionFormatError: If value is not a string, or does not split
            into exactly two non-empty parts on ":"
    """
    if not isinstance(value, str):
        raise PermissionFormatError(NOT_A_STRING)

    parts = value.split(":")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise PermissionFormatError(BAD_FORMAT)

    return PermissionToken(resource=parts[0], action=parts[1])


def normalize_requirement(permissions: Any) -> tuple:
    """
    Turn a route declaration into a tuple of raw (unparsed) tokens.

    None and empty sequences mean "no restriction" and yield (). A single
    string becomes a one-element tuple. Any other non-sequence value is
    kept as a single token so that parsing reports it as malformed.
    """
    if permissions is None:
        return ()
    if isinstance(permissions, str):
        return (permissions,)
    if isinstance(permissions, (list, tuple)):
        return tuple(permissions)
    return (permissions,)


def requirement_is_empty(permissions: Any) -> bool:
    return not normalize_requirement(permissions)


def parse_requirement(permissions: Any) -> tuple[PermissionToken, ...]:
    """
    Parse every token of a route declaration, in declaration order.

    All tokens are parsed before any of them is looked up, so a malformed
    token always raises, even when an earlier token would have been denied.
    """
    return tuple(parse_token(value) for value in normalize_requirement(permissions))


def is_granted(token: PermissionToken, permission_map: PermissionMap) -> bool:
    actions = permission_map.get(token.resource)
    if not isinstance(actions, Mapping):
        return False
    return bool(actions.get(token.action, False))


def check(required: tuple[PermissionToken, ...], permission_map: PermissionMap) -> Decision:
    """Allow only if every parsed token is granted; an empty requirement allows."""
    denied = tuple(token for token in required if not is_granted(token, permission_map))
    outcome = Outcome.DENY if denied else Outcome.ALLOW
    return Decision(outcome=outcome, required=required, denied=denied)


def evaluate(permissions: Any, permission_map: PermissionMap) -> Decision:
    """
    Decide whether a permission map satisfies a route's declaration.

    Args:
        permissions: The route's declaration: None, a string, or a sequence
                     of strings
        permission_map: The principal's nested boolean permission map

    Returns:
        Decision with outcome ALLOW only if every required token is granted

    Raises:
        PermissionFormatError: If the declaration contains a malformed token
    """
    return check(parse_requirement(permissions), permission_map)
