"""
Role-based access control.

Each role maps resources to the actions it may perform on them. ``admin``
holds a wildcard over every resource. An admin can also give an individual
user extra grants (``User.permissions``); grants only ever add to the role.
"""

from typing import Iterable, Mapping, Optional

CREATE = "create"
READ = "read"
UPDATE = "update"
DELETE = "delete"

ALL_ACTIONS = frozenset({CREATE, READ, UPDATE, DELETE})
WILDCARD = "*"
# User management stays with admins; per-user grants cannot reach it
UNGRANTABLE = frozenset({WILDCARD, "users"})

USER_ROLES = ("admin", "manager", "sales", "warehouse", "viewer", "hr")
EMPLOYEE_ROLE = "employee"

CRM_RESOURCES = (
    "leads",
    "opportunities",
    "customers",
    "quotes",
    "sales_orders",
    "invoices",
    "tasks",
    "activities",
)
HR_RESOURCES = (
    "employees",
    "attendance",
    "payroll",
    "leave_requests",
    "performance",
    "hr_reports",
)


def _grant(resources: Iterable[str], actions: Iterable[str]) -> dict[str, frozenset]:
    actions = frozenset(actions)
    return {resource: actions for resource in resources}


ROLE_PERMISSIONS: dict[str, dict[str, frozenset]] = {
    "admin": {WILDCARD: ALL_ACTIONS},
    "manager": {
        **_grant(CRM_RESOURCES, ALL_ACTIONS),
        **_grant(("payments", "deliveries", "documents", "promotions", "credit_limits", "approvals"),
                 {CREATE, READ, UPDATE}),
        **_grant(("products",), {READ, UPDATE}),
        **_grant(("reports", "notifications"), {READ, CREATE, UPDATE}),
        **_grant(HR_RESOURCES, {READ}),
    },
    "sales": {
        **_grant(("leads", "opportunities", "customers", "quotes", "sales_orders", "tasks", "activities"),
                 {CREATE, READ, UPDATE}),
        **_grant(("invoices", "products", "deliveries", "promotions", "reports"), {READ}),
        **_grant(("documents",), {CREATE, READ}),
        **_grant(("notifications",), {READ, UPDATE}),
    },
    "warehouse": {
        **_grant(("tasks",), {READ, UPDATE}),
        **_grant(("products",), {CREATE, READ, UPDATE}),
        **_grant(("deliveries",), {CREATE, READ, UPDATE}),
        **_grant(("sales_orders",), {READ}),
        **_grant(("notifications",), {READ, UPDATE}),
    },
    "viewer": {
        **_grant(CRM_RESOURCES + ("products", "deliveries"), {READ}),
        **_grant(("notifications",), {READ, UPDATE}),
    },
    "hr": {
        **_grant(HR_RESOURCES, ALL_ACTIONS),
        **_grant(("documents",), {CREATE, READ, UPDATE}),
        **_grant(("notifications",), {READ, UPDATE}),
    },
    EMPLOYEE_ROLE: {
        **_grant(("attendance",), {CREATE, READ, UPDATE}),
        **_grant(("leave_requests",), {CREATE, READ}),
    },
}


def normalize_grants(grants: Optional[Mapping]) -> dict[str, frozenset]:
    """
    Keep the well-formed part of a user's extra grants.

    ``{"invoices": ["read", "update"]}`` style. Unknown actions, the wildcard
    and user management are dropped so a grant can never make someone an admin.
    """
    normalized: dict[str, frozenset] = {}
    for resource, actions in (grants or {}).items():
        if resource in UNGRANTABLE or not isinstance(actions, (list, tuple, set, frozenset)):
            continue
        allowed = frozenset(a for a in actions if a in ALL_ACTIONS)
        if allowed:
            normalized[resource] = allowed
    return normalized


def has_permission(role: str, resource: str, action: str, grants: Optional[Mapping] = None) -> bool:
    """Return True if ``role`` (plus any per-user ``grants``) may perform ``action`` on ``resource``."""
    permissions = ROLE_PERMISSIONS.get(role, {})
    if action in permissions.get(WILDCARD, frozenset()):
        return True
    if action in permissions.get(resource, frozenset()):
        return True
    return action in normalize_grants(grants).get(resource, frozenset())


def permissions_for(role: str, grants: Optional[Mapping] = None) -> dict[str, list[str]]:
    """Serializable view of a role's permissions merged with per-user grants, used by /auth/me."""
    merged = dict(ROLE_PERMISSIONS.get(role, {}))
    for resource, actions in normalize_grants(grants).items():
        merged[resource] = merged.get(resource, frozenset()) | actions
    return {resource: sorted(actions) for resource, actions in merged.items()}
