"""User management endpoints (admin only)."""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query, Response, status
import structlog

from inventory.api.auth import session_view
from inventory.api.dependencies import require_admin
from inventory.api.responses import raise_failure, see_other
from inventory.context import AppContext
from inventory.controllers.forms import UserFormController
from inventory.controllers.user_list import UserListController
from inventory.models.common import wildcard_to_none

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("")
async def list_users(
    search: Optional[str] = None,
    role: Optional[str] = None,
    page: int = Query(default=1),
    context: AppContext = Depends(require_admin),
):
    """One page of users, filtered by search term and role."""
    controller = context.user_list
    requested = {"search": wildcard_to_none(search), "role": wildcard_to_none(role)}
    if requested != controller.filters:
        await controller.set_filter(**requested)
    else:
        await controller.go_to_page(page)

    if controller.session_expired:
        return see_other("/login")
    return {"view": "users", **controller.snapshot(), **session_view(context.guard)}


@router.get("/assignable")
async def assignable_users(context: AppContext = Depends(require_admin)):
    """Options for the equipment form's assignee selector."""
    controller = context.user_list
    users = await controller.assignable_users()
    if controller.session_expired:
        return see_other("/login")
    return {
        "users": [
            {"id": user.id, "username": user.username, "label": user.full_name}
            for user in users
        ],
        "error": controller.error,
    }


async def _save(controller: UserListController, form: UserFormController):
    saved = await controller.save(form.submit(), password=form.password)
    if controller.session_expired:
        return see_other("/login")
    if saved is None:
        raise_failure(controller)
    return saved.to_document()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    body: dict[str, Any] = Body(...),
    context: AppContext = Depends(require_admin),
):
    """Create a user from the user form."""
    form = UserFormController()
    form.update(**body)
    return await _save(context.user_list, form)


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    body: dict[str, Any] = Body(...),
    context: AppContext = Depends(require_admin),
):
    """Edit a user; fields missing from the body keep their current value."""
    existing = await context.repositories.users.get(user_id)
    form = UserFormController(existing)
    form.update(**body)
    return await _save(context.user_list, form)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: str,
    context: AppContext = Depends(require_admin),
):
    """Delete a user (admin only)."""
    controller = context.user_list
    deleted = await controller.delete(user_id)
    if controller.session_expired:
        return see_other("/login")
    if not deleted:
        raise_failure(controller)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
