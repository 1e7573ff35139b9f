"""Admin permission model.

A fixed two-dimensional grid: every module carries a list of levels.
``full`` on a module implies every level of that module and nothing else.

Role defaults
-------------
``DEFAULT_PERMISSIONS_BY_ROLE`` seeds the grid of a newly provisioned admin.
MODULE_MANAGER maps to ``NO_DEFAULT``: its grid is always supplied with the
invitation, which is not the same thing as an admin deliberately granted no
permissions (``{}``).
"""
import enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union


class AdminRole(str, enum.Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    CONTENT_ADMIN = "CONTENT_ADMIN"
    FINANCE_ADMIN = "FINANCE_ADMIN"
    COMMUNITY_ADMIN = "COMMUNITY_ADMIN"
    MODULE_MANAGER = "MODULE_MANAGER"
    VIEWER = "VIEWER"


class AdminStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"


class PermissionModule(str, enum.Enum):
    USERS = "users"
    CREDITS = "credits"
    PROJECTS = "projects"
    MOCKS = "mocks"
    ASSESSMENTS = "assessments"
    CHALLENGES = "challenges"
    COMMUNITIES = "communities"
    FEEDBACK = "feedback"
    ANALYTICS = "analytics"
    ADMIN_MANAGEMENT = "admin_management"
    SYSTEM = "system"


class PermissionLevel(str, enum.Enum):
    READ = "read"
    WRITE = "write"
    DELETE = "delete"
    FULL = "full"


PermissionGrid = Dict[str, List[str]]

MODULES: List[str] = [m.value for m in PermissionModule]
LEVELS: List[str] = [lvl.value for lvl in PermissionLevel]

_ALL = ["read", "write", "delete", "full"]


class _NoDefault:
    """Marker for roles whose grid is assigned per invitation."""

    def __repr__(self) -> str:
        return "NO_DEFAULT"


NO_DEFAULT = _NoDefault()


DEFAULT_PERMISSIONS_BY_ROLE: Dict[AdminRole, Union[PermissionGrid, _NoDefault]] = {
    AdminRole.SUPER_ADMIN: {
        "users": _ALL,
        "credits": _ALL,
        "projects": _ALL,
        "mocks": _ALL,
        "assessments": _ALL,
        "challenges": _ALL,
        "communities": _ALL,
        "feedback": _ALL,
        "analytics": ["read", "write", "full"],
        "admin_management": _ALL,
        "system": ["read", "write", "full"],
    },
    AdminRole.CONTENT_ADMIN: {
        "users": ["read"],
        "credits": ["read"],
        "projects": ["read", "write", "delete"],
        "mocks": ["read", "write", "delete"],
        "assessments": ["read", "write", "delete"],
        "challenges": ["read", "write", "delete"],
        "communities": ["read"],
        "feedback": ["read", "write"],
        "analytics": ["read"],
    },
    AdminRole.FINANCE_ADMIN: {
        "users": ["read"],
        "credits": _ALL,
        "projects": ["read"],
        "mocks": ["read"],
        "assessments": ["read"],
        "challenges": ["read"],
        "communities": ["read"],
        "feedback": ["read"],
        "analytics": ["read", "write"],
    },
    AdminRole.COMMUNITY_ADMIN: {
        "users": ["read", "write"],
        "credits": ["read"],
        "projects": ["read"],
        "mocks": ["read"],
        "assessments": ["read"],
        "challenges": ["read"],
        "communities": _ALL,
        "feedback": ["read", "write", "delete"],
        "analytics": ["read"],
    },
    AdminRole.MODULE_MANAGER: NO_DEFAULT,
    AdminRole.VIEWER: {
        "users": ["read"],
        "credits": ["read"],
        "projects": ["read"],
        "mocks": ["read"],
        "assessments": ["read"],
        "challenges": ["read"],
        "communities": ["read"],
        "feedback": ["read"],
        "analytics": ["read"],
    },
}


def _key(value: Union[str, enum.Enum]) -> str:
    return value.value if isinstance(value, enum.Enum) else value


def has_permission(
    permissions: Optional[Mapping[str, Iterable[str]]],
    module: Union[str, PermissionModule],
    level: Union[str, PermissionLevel],
) -> bool:
    """Return True iff ``permissions[module]`` contains ``level`` or ``full``.

    A missing grid or module is a denial.
    """
    if not permissions:
        return False
    module_levels = permissions.get(_key(module))
    if not module_levels:
        return False
    granted = {_key(lvl) for lvl in module_levels}
    return _key(level) in granted or PermissionLevel.FULL.value in granted


def default_permissions_for(role: Union[str, AdminRole]) -> Optional[PermissionGrid]:
    """Fresh copy of the role's default grid, or None for roles without one."""
    grid = DEFAULT_PERMISSIONS_BY_ROLE[AdminRole(role)]
    if grid is NO_DEFAULT:
        return None
    return {module: list(levels) for module, levels in grid.items()}


def normalize_permissions(permissions: Mapping[str, Any]) -> PermissionGrid:
    """Validate a grid and return it with levels de-duplicated in canonical order.

    Raises:
        ValueError: unknown module or level, or levels not given as a list.
    """
    normalized: PermissionGrid = {}
    for module, levels in permissions.items():
        module = _key(module)
        if module not in MODULES:
            raise ValueError(f"Unknown permission module: {module}")
        if isinstance(levels, (str, bytes)) or not isinstance(levels, Iterable):
            raise ValueError(f"Levels for '{module}' must be a list")
        requested = {_key(lvl) for lvl in levels}
        unknown = requested - set(LEVELS)
        if unknown:
            raise ValueError(f"Unknown permission level(s) for '{module}': {', '.join(sorted(unknown))}")
        normalized[module] = [lvl for lvl in LEVELS if lvl in requested]
    return normalized


def accessible_modules(permissions: Optional[Mapping[str, Iterable[str]]]) -> List[str]:
    """Modules the grid can at least read, in canonical order (navigation filter)."""
    return [module for module in MODULES if has_permission(permissions, module, PermissionLevel.READ)]
