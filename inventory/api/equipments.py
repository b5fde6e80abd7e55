"""Equipment list, detail and maintenance endpoints."""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query, Request, Response, status
import structlog

from inventory.api.auth import session_view
from inventory.api.dependencies import require_admin, require_authenticated
from inventory.api.responses import error_response, raise_failure, see_other
from inventory.context import AppContext
from inventory.controllers.equipment_detail import EquipmentDetailController
from inventory.controllers.equipment_list import EquipmentListController
from inventory.controllers.forms import EquipmentFormController
from inventory.models.common import wildcard_to_none

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/equipments", tags=["Equipment"])


@router.get("")
async def list_equipments(
    search: Optional[str] = None,
    type: Optional[str] = None,
    status_filter: Optional[str] = Query(default=None, alias="status"),
    assigned_to: Optional[str] = Query(default=None, alias="assignedTo"),
    page: int = Query(default=1),
    context: AppContext = Depends(require_authenticated),
):
    """One page of equipment.

    A change to any filter sends the list back to page 1 regardless of the
    requested page. Load failures are reported inline and the previous
    page stays on screen.
    """
    controller = context.equipment_list
    requested = {
        "search": wildcard_to_none(search),
        "type": wildcard_to_none(type),
        "status": wildcard_to_none(status_filter),
        "assigned_to": wildcard_to_none(assigned_to),
    }
    if requested != controller.filters:
        await controller.set_filter(**requested)
    else:
        await controller.go_to_page(page)

    if controller.session_expired:
        return see_other("/login")
    return {"view": "equipments", **controller.snapshot(), **session_view(context.guard)}


async def _save(controller: EquipmentListController, form: EquipmentFormController):
    saved = await controller.save(form.submit())
    if controller.session_expired:
        return see_other("/login")
    if saved is None:
        raise_failure(controller)
    return saved.to_document()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_equipment(
    body: dict[str, Any] = Body(...),
    context: AppContext = Depends(require_admin),
):
    """Create an item from the equipment form (admin only)."""
    form = EquipmentFormController()
    form.update(**body)
    return await _save(context.equipment_list, form)


@router.put("/{equipment_id}")
async def update_equipment(
    equipment_id: str,
    body: dict[str, Any] = Body(...),
    context: AppContext = Depends(require_admin),
):
    """Edit an item; fields missing from the body keep their current value."""
    existing = await context.repositories.equipment.get(equipment_id)
    form = EquipmentFormController(existing)
    form.update(**body)
    return await _save(context.equipment_list, form)


@router.delete("/{equipment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_equipment(
    equipment_id: str,
    context: AppContext = Depends(require_admin),
):
    """Delete an item (admin only)."""
    controller = context.equipment_list
    deleted = await controller.delete(equipment_id)
    if controller.session_expired:
        return see_other("/login")
    if not deleted:
        raise_failure(controller)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def _detail(context: AppContext, equipment_id: str) -> EquipmentDetailController:
    return EquipmentDetailController(
        context.guard,
        context.repositories.equipment,
        context.repositories.maintenance,
        equipment_id,
    )


@router.get("/{equipment_id}")
async def equipment_detail(
    equipment_id: str,
    context: AppContext = Depends(require_authenticated),
):
    """An item with its maintenance history, most recent first."""
    controller = _detail(context, equipment_id)
    await controller.load()
    if controller.session_expired:
        return see_other("/login")
    if controller.failure is not None:
        raise controller.failure
    return {"view": "equipment", **controller.snapshot(), **session_view(context.guard)}


@router.post("/{equipment_id}/maintenances", status_code=status.HTTP_201_CREATED)
async def add_maintenance(
    request: Request,
    equipment_id: str,
    body: dict[str, Any] = Body(...),
    context: AppContext = Depends(require_authenticated),
):
    """Log a maintenance event (admins and the assigned user)."""
    controller = _detail(context, equipment_id)
    await controller.load()
    if controller.session_expired:
        return see_other("/login")
    if controller.failure is not None:
        raise controller.failure
    if not controller.can_add_maintenance:
        return error_response(
            request,
            status.HTTP_403_FORBIDDEN,
            "Forbidden",
            "You cannot log maintenance for this equipment",
        )

    created = await controller.add_maintenance(body)
    if controller.session_expired:
        return see_other("/login")
    if created is None:
        raise_failure(controller)
    return created.to_document()
