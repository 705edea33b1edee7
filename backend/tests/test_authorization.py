"""
Role permission and route access checks
"""
import pytest

from hotelops.config.permissions import ALL_PERMISSIONS, ROLE_PERMISSIONS, ROLES, ROUTE_ACCESS
from hotelops.services.authorization import (
    UNAUTHORIZED_NOTICE, Authorizer, get_role_permissions, guard,
)

LIMITED_ROLES = ["receptionist", "accounts", "housekeeping"]


class TestRolePermissions:

    @pytest.mark.parametrize("role", LIMITED_ROLES)
    def test_limited_role_holds_exactly_its_set(self, role, profile_of):
        authorizer = Authorizer(profile_of(role))
        for permission in ALL_PERMISSIONS:
            assert authorizer.has_permission(permission) == (permission in ROLE_PERMISSIONS[role])

    @pytest.mark.parametrize("role", ["admin", "manager"])
    def test_full_access_roles_hold_everything(self, role, profile_of):
        authorizer = Authorizer(profile_of(role))
        assert all(authorizer.has_permission(p) for p in ALL_PERMISSIONS)
        assert authorizer.has_permission("not.registered")

    def test_housekeeping_set(self, profile_of):
        assert get_role_permissions("housekeeping") == {
            "dashboard.view", "rooms.view", "rooms.update_status", "reservations.view",
        }

    def test_receptionist_cannot_cancel_or_delete(self, profile_of):
        authorizer = Authorizer(profile_of("receptionist"))
        assert authorizer.has_permission("frontdesk.checkin")
        assert not authorizer.has_permission("reservations.cancel")
        assert not authorizer.has_permission("guests.delete")

    def test_unknown_role_gets_nothing(self, profile_of):
        authorizer = Authorizer(profile_of("concierge"))
        assert get_role_permissions("concierge") == frozenset()
        assert not authorizer.has_permission("dashboard.view")
        assert not authorizer.can_access_route("/dashboard")

    def test_no_actor_denies_everything(self, profile_of):
        authorizer = Authorizer(None)
        assert authorizer.role is None
        assert not authorizer.has_permission("dashboard.view")
        assert not authorizer.can_access_route("/dashboard")
        assert authorizer.granted_permissions() == []


class TestPermissionSets:

    @pytest.mark.parametrize("role", ["admin", "manager", *LIMITED_ROLES, None])
    def test_empty_lists(self, role, profile_of):
        authorizer = Authorizer(profile_of(role) if role else None)
        assert authorizer.has_any_permission([]) is False
        assert authorizer.has_all_permissions([]) is True

    def test_any_and_all(self, profile_of):
        authorizer = Authorizer(profile_of("accounts"))
        assert authorizer.has_any_permission(["rooms.delete", "billing.refund"])
        assert not authorizer.has_all_permissions(["rooms.delete", "billing.refund"])
        assert authorizer.has_all_permissions(["billing.view", "analytics.financial"])


class TestRouteAccess:

    @pytest.mark.parametrize("role", LIMITED_ROLES)
    def test_unregistered_route_denied(self, role, profile_of):
        assert not Authorizer(profile_of(role)).can_access_route("/secret")

    @pytest.mark.parametrize("role", ["admin", "manager"])
    def test_full_access_roles_open_any_route(self, role, profile_of):
        assert Authorizer(profile_of(role)).can_access_route("/secret")

    def test_route_table(self, profile_of):
        housekeeping = Authorizer(profile_of("housekeeping"))
        assert housekeeping.can_access_route("/rooms")
        assert not housekeeping.can_access_route("/guests")
        assert housekeeping.accessible_routes() == ["/dashboard", "/rooms"]

        accounts = Authorizer(profile_of("accounts"))
        assert accounts.accessible_routes() == [
            route for route, roles in ROUTE_ACCESS.items() if "accounts" in roles
        ]


class TestRoleFlags:

    def test_flags(self, profile_of):
        authorizer = Authorizer(profile_of("receptionist"))
        assert authorizer.is_receptionist
        assert not authorizer.is_admin
        assert not authorizer.is_manager
        assert not authorizer.is_accounts
        assert not authorizer.is_housekeeping
        assert authorizer.role == "receptionist"


class TestGuard:

    def test_no_permissions_renders_children(self, profile_of):
        assert guard(Authorizer(None), "content") == "content"

    def test_single_permission(self, profile_of):
        housekeeping = Authorizer(profile_of("housekeeping"))
        assert guard(housekeeping, "content", "rooms.update_status") == "content"
        assert guard(housekeeping, "content", "rooms.delete") is None

    def test_list_any_versus_all(self, profile_of):
        housekeeping = Authorizer(profile_of("housekeeping"))
        permissions = ["rooms.view", "rooms.delete"]
        assert guard(housekeeping, "content", permissions) == "content"
        assert guard(housekeeping, "content", permissions, require_all=True) is None

    def test_fallback_wins_over_notice(self, profile_of):
        housekeeping = Authorizer(profile_of("housekeeping"))
        assert guard(housekeeping, "content", "billing.view", fallback="other", show_unauthorized=True) == "other"

    def test_unauthorized_notice(self, profile_of):
        housekeeping = Authorizer(profile_of("housekeeping"))
        assert guard(housekeeping, "content", "billing.view", show_unauthorized=True) == UNAUTHORIZED_NOTICE

    def test_empty_list_denies_under_any(self, profile_of):
        housekeeping = Authorizer(profile_of("housekeeping"))
        assert guard(housekeeping, "content", [], show_unauthorized=True) == UNAUTHORIZED_NOTICE
        assert guard(Authorizer(profile_of("admin")), "content", []) is None

    def test_empty_list_grants_under_all(self, profile_of):
        housekeeping = Authorizer(profile_of("housekeeping"))
        assert guard(housekeeping, "content", [], require_all=True) == "content"

    def test_empty_string_is_no_permission(self, profile_of):
        assert guard(Authorizer(profile_of("housekeeping")), "content", "") == "content"


def test_every_role_has_a_permission_set():
    assert set(ROLE_PERMISSIONS) == set(ROLES)
    for granted in ROLE_PERMISSIONS.values():
        assert granted <= set(ALL_PERMISSIONS)
