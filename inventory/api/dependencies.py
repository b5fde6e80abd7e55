"""FastAPI dependencies for the application context and route protection."""

from fastapi import Depends, HTTPException, Request, status

from inventory.context import AppContext
from inventory.controllers.route_protector import AccessLevel, check


def get_context(request: Request) -> AppContext:
    """The AppContext built at startup (or installed by a test)."""
    return request.app.state.context


def _protected(access: AccessLevel):
    async def dependency(context: AppContext = Depends(get_context)) -> AppContext:
        """Redirect (303) when the current session may not open the view.

        Raises:
            HTTPException 303: With Location set to the login page or the
                user's own landing area
        """
        decision = check(access, context.guard)
        if not decision.allowed:
            raise HTTPException(
                status_code=status.HTTP_303_SEE_OTHER,
                detail="Redirecting",
                headers={"Location": decision.redirect_to},
            )
        return context

    return dependency


require_authenticated = _protected(AccessLevel.AUTHENTICATED)
require_admin = _protected(AccessLevel.ADMIN)
