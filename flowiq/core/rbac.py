"""Role-based access control: roles, permission catalogue, and route access.

Permissions are the single source of truth. Route access is derived from
them through ROUTE_RULES: each protected path prefix names the permission
it requires (None means any signed-in user). A path is allowed when its
longest matching rule is satisfied by the role's permission set. Paths
with no rule and roles that are not recognised are denied.

Every table here is built once at import and never mutated.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

from flowiq.core.config import API_V1_PREFIX


class Role(str, Enum):
    """Closed set of user roles."""

    ADMIN = "admin"
    MANAGER = "manager"
    ACCOUNTANT = "accountant"
    INVENTORY_MANAGER = "inventory_manager"
    VIEWER = "viewer"


@dataclass(frozen=True)
class PermissionInfo:
    """Descriptive metadata for a permission; only `id` is enforced."""

    id: str
    name: str
    description: str


_CATALOGUE = (
    # Cash flow
    PermissionInfo("cash-flow.view", "View Cash Flow", "Can view cash flow data and reports"),
    PermissionInfo(
        "cash-flow.manage", "Manage Cash Flow", "Can manage cash flow entries and transactions"
    ),
    PermissionInfo(
        "cash-flow.forecast",
        "Access Cash Flow Forecasts",
        "Can access AI-powered cash flow forecasts",
    ),
    # Inventory
    PermissionInfo("inventory.view", "View Inventory", "Can view inventory data and reports"),
    PermissionInfo(
        "inventory.manage", "Manage Inventory", "Can manage inventory items and stock levels"
    ),
    PermissionInfo("inventory.orders", "Manage Orders", "Can process and manage orders"),
    # Users
    PermissionInfo("users.view", "View Users", "Can view user information"),
    PermissionInfo("users.manage", "Manage Users", "Can create, edit, and delete users"),
    # Reports
    PermissionInfo("reports.view", "View Reports", "Can view financial and inventory reports"),
    PermissionInfo("reports.generate", "Generate Reports", "Can generate and export reports"),
)

PERMISSIONS: MappingProxyType[str, PermissionInfo] = MappingProxyType(
    {p.id: p for p in _CATALOGUE}
)

ROLE_PERMISSIONS: MappingProxyType[Role, frozenset[str]] = MappingProxyType(
    {
        Role.ADMIN: frozenset(PERMISSIONS),
        Role.MANAGER: frozenset(
            {
                "cash-flow.view",
                "cash-flow.manage",
                "cash-flow.forecast",
                "inventory.view",
                "inventory.manage",
                "inventory.orders",
                "reports.view",
                "reports.generate",
            }
        ),
        Role.ACCOUNTANT: frozenset(
            {
                "cash-flow.view",
                "cash-flow.manage",
                "cash-flow.forecast",
                "reports.view",
                "reports.generate",
            }
        ),
        Role.INVENTORY_MANAGER: frozenset(
            {
                "inventory.view",
                "inventory.manage",
                "inventory.orders",
                "reports.view",
            }
        ),
        Role.VIEWER: frozenset({"cash-flow.view", "inventory.view", "reports.view"}),
    }
)

# Path prefix -> required permission (None: any authenticated user).
ROUTE_RULES: MappingProxyType[str, str | None] = MappingProxyType(
    {
        "/dashboard": None,
        "/settings": None,
        "/ai-chat": None,
        "/cash-flow": "cash-flow.view",
        "/cash-flow/forecast": "cash-flow.forecast",
        "/inventory": "inventory.view",
        "/inventory/orders": "inventory.orders",
        "/reports": "reports.view",
        "/admin": "users.manage",
        f"{API_V1_PREFIX}/users": "users.view",
        f"{API_V1_PREFIX}/cashflow": "cash-flow.view",
        f"{API_V1_PREFIX}/inventory": "inventory.view",
        f"{API_V1_PREFIX}/reports": "reports.view",
    }
)

LANDING_PATHS: MappingProxyType[Role, str] = MappingProxyType(
    {
        Role.ADMIN: "/admin/users",
        Role.MANAGER: "/cash-flow/dashboard",
        Role.ACCOUNTANT: "/cash-flow/dashboard",
        Role.INVENTORY_MANAGER: "/inventory/dashboard",
        Role.VIEWER: "/dashboard",
    }
)

DEFAULT_LANDING_PATH = "/dashboard"


def parse_role(value: Role | str | None) -> Role | None:
    """Return the Role for a value, or None if it is not a known role."""
    if isinstance(value, Role):
        return value
    try:
        return Role(value)
    except ValueError:
        return None


def permissions_for(role: Role | str | None) -> frozenset[str]:
    """Permission ids granted to a role; empty for unknown roles."""
    parsed = parse_role(role)
    if parsed is None:
        return frozenset()
    return ROLE_PERMISSIONS.get(parsed, frozenset())


def has_permission(role: Role | str | None, permission_id: str) -> bool:
    """True only if the role is known and its permission set lists permission_id."""
    return permission_id in permissions_for(role)


def path_matches(path: str, prefix: str) -> bool:
    """Prefix match on path segment boundaries (/admin matches /admin/users, not /administer)."""
    if prefix == "/":
        return path == "/"
    return path == prefix or path.startswith(prefix.rstrip("/") + "/")


def _matching_rule(path: str) -> str | None:
    matches = [prefix for prefix in ROUTE_RULES if path_matches(path, prefix)]
    if not matches:
        return None
    return max(matches, key=len)


def can_access_route(role: Role | str | None, path: str) -> bool:
    """Whether a role may reach a path. Unknown roles and unlisted paths are denied."""
    parsed = parse_role(role)
    if parsed is None:
        return False
    prefix = _matching_rule(path)
    if prefix is None:
        return False
    required = ROUTE_RULES[prefix]
    return required is None or has_permission(parsed, required)


def allowed_route_prefixes(role: Role | str | None) -> list[str]:
    """Route prefixes whose rule the role satisfies, in table order."""
    granted = permissions_for(role)
    if parse_role(role) is None:
        return []
    return [
        prefix
        for prefix, required in ROUTE_RULES.items()
        if required is None or required in granted
    ]


def landing_path(role: Role | str | None) -> str:
    """Where a user lands after login."""
    parsed = parse_role(role)
    if parsed is None:
        return DEFAULT_LANDING_PATH
    return LANDING_PATHS[parsed]
