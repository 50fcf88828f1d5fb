"""
Hierarchical permission matching.

Permission strings are colon-delimited paths such as ``yq:user:query``.
Holding a path grants every path below it (``yq:user`` grants
``yq:user:edit``), and the single-character string ``*`` grants everything.
"""
from dataclasses import dataclass
from typing import Iterable, FrozenSet, List, Optional

WILDCARD = "*"
SEPARATOR = ":"

# An actor holding all three top-level namespaces is treated as an administrator
ADMIN_NAMESPACES = ("system", "yq", "hdwsh")


@dataclass(frozen=True)
class PermissionItem:
    """One entry of the permission catalog."""
    id: Optional[int]
    name: str
    permission: str


def permission_matches(held: str, requested: str) -> bool:
    """True if holding ``held`` grants ``requested`` (segment-aligned prefix)."""
    if not held or not held.strip():
        return False
    if held == WILDCARD:
        return True
    return requested == held or requested.startswith(held + SEPARATOR)


class PermissionSet:
    """Union of the permission strings reachable from one user's roles."""

    def __init__(self, items: Iterable[PermissionItem] = ()):
        self._items: List[PermissionItem] = list(items)
        self._strings: FrozenSet[str] = frozenset(item.permission for item in self._items)

    @classmethod
    def from_strings(cls, permissions: Iterable[str]) -> "PermissionSet":
        return cls(PermissionItem(id=None, name=p, permission=p) for p in permissions)

    @property
    def items(self) -> List[PermissionItem]:
        return list(self._items)

    @property
    def strings(self) -> FrozenSet[str]:
        return self._strings

    def has(self, permission: str) -> bool:
        # Asking for the wildcard itself is always answered with True
        if permission == WILDCARD:
            return True
        return any(permission_matches(held, permission) for held in self._strings)

    def is_admin(self) -> bool:
        return WILDCARD in self._strings or all(self.has(ns) for ns in ADMIN_NAMESPACES)

    def __contains__(self, permission: str) -> bool:
        return self.has(permission)

    def __len__(self) -> int:
        return len(self._strings)

    def __repr__(self) -> str:
        return f"PermissionSet({sorted(self._strings)!r})"


@dataclass(frozen=True)
class Actor:
    """The authenticated user a request acts on behalf of."""
    user_id: int
    department_id: int
    permissions: PermissionSet

    def has(self, permission: str) -> bool:
        return self.permissions.has(permission)

    @property
    def is_admin(self) -> bool:
        return self.permissions.is_admin()


def check_permission(permissions: PermissionSet, permission: str) -> bool:
    return permissions.has(permission)


def is_admin(permissions: PermissionSet) -> bool:
    return permissions.is_admin()


class Perms:
    """Permission strings checked by the API."""

    PERMISSION_QUERY = "system:permission:query"
    PERMISSION_ADD = "system:permission:add"
    PERMISSION_EDIT = "system:permission:edit"
    PERMISSION_DELETE = "system:permission:delete"

    ROLE_QUERY = "system:role:query"
    ROLE_ADD = "system:role:add"
    ROLE_EDIT = "system:role:edit"
    ROLE_DELETE = "system:role:delete"

    USER_QUERY = "yq:user:query"
    USER_ADD = "yq:user:add"
    USER_EDIT = "yq:user:edit"
    USER_DELETE = "yq:user:delete"

    DEPARTMENT_ADD = "yq:department:add"
    DEPARTMENT_EDIT = "yq:department:edit"
    DEPARTMENT_DELETE = "yq:department:delete"

    WORK_HOURS_QUERY = "yq:workHours:query"
    WORK_HOURS_ADD = "yq:workHours:add"
    WORK_HOURS_EDIT = "yq:workHours:edit"
    WORK_HOURS_DELETE = "yq:workHours:delete"
    # Department head: approve or return records of their own department
    WORK_HOURS_CHECK_DEPARTMENT = "yq:workHours:checkDepartment"
    # Finance: approve, return, build the hour table and mark records distributed
    WORK_HOURS_GENERATE_TABLE = "yq:workHours:generateTable"
    WORK_HOURS_STATISTICS = "yq:workHours:statistics"
