"""
CLI utility to check permission tokens against a permission map.

Useful when writing route declarations or debugging a resolver: dump the
map your resolver returns for a user into a JSON file, then ask whether a
route's declaration would be allowed.

Usage examples:

    # Single permission
    python -m scripts.check_permissions --map perms.json cars:read

    # All of these must be granted
    python -m scripts.check_permissions --map perms.json cars:read drivers:read

Exit status: 0 allowed, 2 denied, 1 malformed token or unreadable map.

The map file holds the nested boolean structure the gate expects:

    {"cars": {"read": true, "create": false}, "drivers": {"read": true}}
"""

import argparse
import json
import sys
from pathlib import Path

from route_acl.errors import PermissionFormatError
from route_acl.permissions import evaluate


def load_permission_map(path: Path) -> dict:
    """Read a permission map from a JSON file, rejecting anything but an object."""
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("permission map must be a JSON object")
    return data


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Check resource:action permissions against a permission map.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --map perms.json cars:read
  %(prog)s --map perms.json cars:read drivers:read
        """,
    )

    parser.add_argument(
        "--map",
        required=True,
        type=Path,
        help="JSON file with the permission map (e.g., {\"cars\": {\"read\": true}})",
    )
    parser.add_argument(
        "permissions",
        nargs="*",
        help="Space-separated resource:action tokens (e.g., cars:read drivers:read)",
    )

    args = parser.parse_args(argv)

    try:
        permission_map = load_permission_map(args.map)
    except (OSError, ValueError) as e:
        print(f"Error: cannot load permission map: {e}", file=sys.stderr)
        return 1

    try:
        decision = evaluate(args.permissions, permission_map)
    except PermissionFormatError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    print(f"Required:   {[str(t) for t in decision.required]}")
    print(f"Denied:     {[str(t) for t in decision.denied]}")
    print(f"Decision:   {decision.outcome.value}")

    return 0 if decision.allowed else 2


if __name__ == "__main__":
    sys.exit(main())
