"""Unit tests for route access decisions and navigation."""

import pytest

from inventory.controllers.route_protector import (
    AccessLevel,
    NavItem,
    RouteDecision,
    check,
    landing_for,
    navigation,
)
from inventory.services.auth_guard import AuthGuard


@pytest.fixture
def signed_out(session_store, mock_backend, settings):
    return AuthGuard(session_store, mock_backend, settings)


class TestCheck:
    """check() against the live guard state."""

    @pytest.mark.parametrize("access", [AccessLevel.AUTHENTICATED, AccessLevel.ADMIN])
    def test_signed_out_goes_to_login(self, signed_out, access):
        assert check(access, signed_out) == RouteDecision(allowed=False, redirect_to="/login")

    def test_public_always_allowed(self, signed_out):
        assert check(AccessLevel.PUBLIC, signed_out).allowed is True

    async def test_regular_user_on_admin_view_goes_to_own_area(self, guard_factory):
        guard = await guard_factory(role="user", username="bob")
        assert check(AccessLevel.ADMIN, guard) == RouteDecision(allowed=False, redirect_to="/user")

    async def test_admin_allowed_everywhere(self, guard_factory):
        guard = await guard_factory(role="admin")
        assert check(AccessLevel.ADMIN, guard).allowed is True
        assert check(AccessLevel.AUTHENTICATED, guard).allowed is True

    async def test_decision_follows_logout(self, guard_factory):
        guard = await guard_factory(role="admin")
        guard.logout()
        assert check(AccessLevel.AUTHENTICATED, guard).redirect_to == "/login"


class TestLandingAndNavigation:
    def test_signed_out(self, signed_out):
        assert landing_for(signed_out) is None
        assert [item.path for item in navigation(signed_out)] == ["/", "/login", "/register"]

    async def test_regular_user_menu(self, guard_factory):
        guard = await guard_factory(role="user", username="bob")
        assert landing_for(guard) == "/user"
        assert navigation(guard) == [NavItem("Dashboard", "/user"), NavItem("Equipment", "/equipments")]

    async def test_admin_menu_has_users(self, guard_factory):
        guard = await guard_factory(role="admin")
        assert landing_for(guard) == "/admin"
        assert NavItem("Users", "/users") in navigation(guard)
