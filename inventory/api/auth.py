"""Authentication API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import AliasChoices, BaseModel, Field
import structlog

from inventory.api.dependencies import get_context
from inventory.api.responses import see_other
from inventory.context import AppContext
from inventory.controllers.route_protector import landing_for, navigation
from inventory.services.auth_guard import AuthGuard

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Auth"])


class LoginBody(BaseModel):
    """Login form as posted by the browser; validated by the guard."""

    username: str = ""
    password: str = ""


class RegisterBody(BaseModel):
    """Registration form as posted by the browser; validated by the guard."""

    username: str = ""
    email: str = ""
    password: str = ""
    confirm_password: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("confirmPassword", "confirm_password")
    )
    role: Optional[str] = None


def session_view(guard: AuthGuard) -> dict:
    """Authentication state plus the menu it unlocks."""
    session = guard.session
    return {
        "authenticated": guard.is_authenticated,
        "isAdmin": guard.is_admin,
        "user": guard.user.model_dump(mode="json") if guard.user else None,
        "expiry": session.expiry.isoformat() if session and session.expiry else None,
        "navigation": [{"label": item.label, "path": item.path} for item in navigation(guard)],
    }


def _signed_in(guard: AuthGuard) -> dict:
    view = session_view(guard)
    view["redirectTo"] = landing_for(guard)
    return view


@router.get("/login")
async def login_page(context: AppContext = Depends(get_context)):
    """Login view; a signed-in user is sent to their landing area."""
    if context.guard.is_authenticated:
        return see_other(landing_for(context.guard))
    return {"view": "login", "fields": ["username", "password"], **session_view(context.guard)}


@router.get("/register")
async def register_page(context: AppContext = Depends(get_context)):
    """Registration view; a signed-in user is sent to their landing area."""
    if context.guard.is_authenticated:
        return see_other(landing_for(context.guard))
    roles = ["user", "admin"] if context.settings.allow_self_service_admin else ["user"]
    return {
        "view": "register",
        "fields": ["username", "email", "password", "confirmPassword", "role"],
        "roles": roles,
        **session_view(context.guard),
    }


@router.post("/auth/login")
async def login(body: LoginBody, context: AppContext = Depends(get_context)) -> dict:
    """Sign in with username and password.

    Returns:
        Session view with the landing path to navigate to

    Raises:
        ValidationError (400): Blank username or password
        AuthError (401): Invalid credentials
        AuthError (502): Authentication service unreachable
    """
    await context.guard.login(body.username, body.password)
    return _signed_in(context.guard)


@router.post("/auth/register", status_code=201)
async def register(body: RegisterBody, context: AppContext = Depends(get_context)) -> dict:
    """Create an account and sign it in.

    Raises:
        ValidationError (400): Bad field, password mismatch, or disallowed role
        AuthError (401): Registration rejected by the backend
    """
    await context.guard.register(
        body.username,
        body.email,
        body.password,
        role=body.role,
        confirm_password=body.confirm_password,
    )
    return _signed_in(context.guard)


@router.post("/auth/logout")
async def logout(context: AppContext = Depends(get_context)) -> dict:
    """Sign out; safe to call when already signed out."""
    context.guard.logout()
    return session_view(context.guard)


@router.get("/auth/session")
async def current_session(context: AppContext = Depends(get_context)) -> dict:
    """Current authentication state."""
    return session_view(context.guard)
