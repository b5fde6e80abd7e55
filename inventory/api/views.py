"""Landing page and dashboards."""

from fastapi import APIRouter, Depends
import structlog

from inventory.api.auth import session_view
from inventory.api.dependencies import get_context, require_admin, require_authenticated
from inventory.api.responses import see_other
from inventory.context import AppContext
from inventory.controllers.dashboard import DashboardController
from inventory.controllers.route_protector import landing_for

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Views"])


@router.get("/")
async def home(context: AppContext = Depends(get_context)):
    """Signed-in users go to their dashboard; visitors get the public home."""
    landing = landing_for(context.guard)
    if landing is not None:
        return see_other(landing)
    return {
        "view": "home",
        "title": "Equipment Inventory",
        "description": "Track equipment, its assignees and its maintenance history.",
        **session_view(context.guard),
    }


@router.get("/admin")
async def admin_dashboard(context: AppContext = Depends(require_admin)):
    """Equipment totals, broken equipment, and registered users."""
    dashboard = DashboardController(context.guard, context.repositories)
    summary = await dashboard.admin_summary()
    if dashboard.session_expired:
        return see_other("/login")
    return {
        "view": "admin",
        "totalEquipment": summary.total_equipment,
        "brokenEquipment": summary.broken_equipment,
        "userCount": summary.user_count,
        "error": dashboard.error,
        **session_view(context.guard),
    }


@router.get("/user")
async def user_dashboard(context: AppContext = Depends(require_authenticated)):
    """Equipment assigned to the signed-in user."""
    dashboard = DashboardController(context.guard, context.repositories)
    summary = await dashboard.user_summary()
    if dashboard.session_expired:
        return see_other("/login")
    return {
        "view": "user",
        "equipments": [item.to_document() for item in summary.assigned],
        "isEmpty": summary.is_empty,
        "emptyMessage": "No equipment is assigned to you" if summary.is_empty else None,
        "error": dashboard.error,
        **session_view(context.guard),
    }
