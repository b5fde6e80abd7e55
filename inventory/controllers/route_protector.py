"""Per-navigation access decisions."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import structlog

from inventory.services.auth_guard import AuthGuard

logger = structlog.get_logger(__name__)

LOGIN_PATH = "/login"
ADMIN_HOME = "/admin"
USER_HOME = "/user"


class AccessLevel(str, Enum):
    """Role a view requires."""

    PUBLIC = "public"
    AUTHENTICATED = "authenticated"
    ADMIN = "admin"


@dataclass(frozen=True)
class RouteDecision:
    """Whether to render the view, and where to go instead."""

    allowed: bool
    redirect_to: Optional[str] = None


@dataclass(frozen=True)
class NavItem:
    label: str
    path: str


def landing_for(guard: AuthGuard) -> Optional[str]:
    """Default area of the current user, or None when signed out."""
    if not guard.is_authenticated:
        return None
    return ADMIN_HOME if guard.is_admin else USER_HOME


def check(access: AccessLevel, guard: AuthGuard) -> RouteDecision:
    """Decide whether the current session may open a view.

    Evaluated against the guard's live state on every call. A signed-out
    visitor is sent to the login page; a signed-in user without the admin
    role is sent to their own landing area rather than an error page.
    """
    if access == AccessLevel.PUBLIC:
        return RouteDecision(allowed=True)

    if not guard.is_authenticated:
        logger.info("route_redirect_unauthenticated", required=access.value)
        return RouteDecision(allowed=False, redirect_to=LOGIN_PATH)

    if access == AccessLevel.ADMIN and not guard.is_admin:
        logger.info(
            "route_redirect_insufficient_role",
            required=access.value,
            username=guard.user.username,
        )
        return RouteDecision(allowed=False, redirect_to=landing_for(guard))

    return RouteDecision(allowed=True)


def navigation(guard: AuthGuard) -> list[NavItem]:
    """Menu entries available to the current session."""
    if not guard.is_authenticated:
        return [NavItem("Home", "/"), NavItem("Sign in", LOGIN_PATH), NavItem("Register", "/register")]

    items = [
        NavItem("Dashboard", landing_for(guard)),
        NavItem("Equipment", "/equipments"),
    ]
    if guard.is_admin:
        items.append(NavItem("Users", "/users"))
    return items
