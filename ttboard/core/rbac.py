# ttboard/core/rbac.py
from __future__ import annotations

from typing import Mapping, Set


class Forbidden(Exception):
    """Raised when actor role is not allowed for an operation."""
    pass


# Roles of the dashboard: admin, data_manager, viewer.
# Only elevated roles may change the schedule.
ALLOW: Mapping[str, Set[str]] = {
    "assignment.create": {"admin", "data_manager"},
    "assignment.remove": {"admin", "data_manager"},
    "assignment.read": {"admin", "data_manager", "viewer"},
}


def ensure_allowed(permission: str, role: str) -> None:
    allowed = ALLOW.get(permission, set())
    if role not in allowed:
        raise Forbidden(f"Role '{role}' is not allowed for '{permission}'")
