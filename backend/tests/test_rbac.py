"""
Tests for app/core/rbac.py - role permission matrix.
"""
import pytest


class TestHasPermission:

    def test_admin_has_wildcard(self):
        from app.core.rbac import has_permission

        assert has_permission("admin", "invoices", "delete") is True
        assert has_permission("admin", "anything-at-all", "read") is True

    @pytest.mark.parametrize(
        "role, resource, action, allowed",
        [
            ("sales", "leads", "create", True),
            ("sales", "leads", "delete", False),
            ("sales", "invoices", "read", True),
            ("sales", "invoices", "create", False),
            ("warehouse", "deliveries", "create", True),
            ("warehouse", "leads", "read", False),
            ("viewer", "customers", "read", True),
            ("viewer", "customers", "update", False),
            ("hr", "payroll", "delete", True),
            ("hr", "leads", "read", False),
            ("manager", "employees", "read", True),
            ("manager", "employees", "update", False),
            ("manager", "invoices", "delete", True),
            ("sales", "tasks", "create", True),
            ("sales", "activities", "delete", False),
            ("warehouse", "tasks", "update", True),
            ("warehouse", "activities", "read", False),
            ("viewer", "tasks", "read", True),
            ("manager", "users", "read", False),
        ],
    )
    def test_role_matrix(self, role, resource, action, allowed):
        from app.core.rbac import has_permission

        assert has_permission(role, resource, action) is allowed

    def test_employee_self_service_scope(self):
        from app.core.rbac import has_permission

        assert has_permission("employee", "attendance", "create") is True
        assert has_permission("employee", "attendance", "update") is True
        assert has_permission("employee", "leave_requests", "create") is True
        assert has_permission("employee", "leave_requests", "update") is False
        assert has_permission("employee", "payroll", "read") is False
        assert has_permission("employee", "employees", "read") is False

    def test_unknown_role_has_nothing(self):
        from app.core.rbac import has_permission

        assert has_permission("intern", "leads", "read") is False


class TestPermissionsFor:

    def test_serializable_and_sorted(self):
        from app.core.rbac import permissions_for

        permissions = permissions_for("employee")

        assert permissions == {
            "attendance": ["create", "read", "update"],
            "leave_requests": ["create", "read"],
        }

    def test_admin_wildcard(self):
        from app.core.rbac import permissions_for

        assert permissions_for("admin") == {"*": ["create", "delete", "read", "update"]}

    def test_unknown_role(self):
        from app.core.rbac import permissions_for

        assert permissions_for("nobody") == {}

    def test_grants_add_to_the_role(self):
        from app.core.rbac import permissions_for

        permissions = permissions_for("sales", {"invoices": ["update"], "payroll": ["read"]})

        assert permissions["invoices"] == ["read", "update"]
        assert permissions["payroll"] == ["read"]


class TestGrants:

    def test_grant_allows_an_action_outside_the_role(self):
        from app.core.rbac import has_permission

        assert has_permission("sales", "payroll", "read") is False
        assert has_permission("sales", "payroll", "read", {"payroll": ["read"]}) is True
        assert has_permission("sales", "payroll", "delete", {"payroll": ["read"]}) is False

    def test_ungrantable_resources_are_dropped(self):
        from app.core.rbac import normalize_grants

        grants = normalize_grants({
            "*": ["read", "create"],
            "users": ["create"],
            "leads": ["delete", "purge"],
            "quotes": "read",
            "payments": [],
        })

        assert grants == {"leads": frozenset({"delete"})}

    def test_wildcard_grant_never_makes_an_admin(self):
        from app.core.rbac import has_permission

        assert has_permission("viewer", "users", "delete", {"*": ["delete"], "users": ["delete"]}) is False

    def test_missing_grants(self):
        from app.core.rbac import normalize_grants

        assert normalize_grants(None) == {}
