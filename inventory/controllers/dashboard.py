"""Landing dashboards for admins and regular users."""

from dataclasses import dataclass, field

import structlog

from inventory.controllers.base import ViewController
from inventory.errors import AuthError, InventoryError
from inventory.models.equipment import Equipment, EquipmentQuery, EquipmentStatus
from inventory.services.auth_guard import AuthGuard
from inventory.services.repository import Repositories

logger = structlog.get_logger(__name__)

# Page size used when walking every page of a listing
SCAN_PAGE_SIZE = 100


@dataclass
class AdminSummary:
    total_equipment: int = 0
    broken_equipment: int = 0
    user_count: int = 0


@dataclass
class UserSummary:
    assigned: list[Equipment] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.assigned


class DashboardController(ViewController):
    """Computes the figures shown on /admin and the list shown on /user."""

    view_name = "dashboard"

    def __init__(self, guard: AuthGuard, repositories: Repositories):
        super().__init__(guard)
        self.repositories = repositories

    async def admin_summary(self) -> AdminSummary:
        """Total equipment, equipment 'En panne', and registered users."""
        summary = AdminSummary()
        if not self._require_admin("admin_summary"):
            return summary

        equipment = self.repositories.equipment
        try:
            total = await equipment.list(EquipmentQuery(page=1, limit=1))
            broken = await equipment.list(
                EquipmentQuery(status=EquipmentStatus.BROKEN, page=1, limit=1)
            )
            users = await self.repositories.users.list_all()
        except AuthError as e:
            self._session_rejected(e)
            return summary
        except InventoryError as e:
            self._load_failed(e, "admin_summary")
            return summary

        summary.total_equipment = total.total_count
        summary.broken_equipment = broken.total_count
        summary.user_count = len(users)
        logger.info(
            "admin_dashboard_loaded",
            total_equipment=summary.total_equipment,
            broken_equipment=summary.broken_equipment,
            user_count=summary.user_count,
        )
        return summary

    async def user_summary(self) -> UserSummary:
        """Equipment assigned to the current user, matched by id or username."""
        summary = UserSummary()
        user = self.guard.user
        if user is None:
            return summary

        scope = user.id or user.username
        page_number = 1
        try:
            while True:
                page = await self.repositories.equipment.list(
                    EquipmentQuery(assigned_to=scope, page=page_number, limit=SCAN_PAGE_SIZE)
                )
                summary.assigned.extend(
                    item for item in page.items if item.is_assigned_to(user.id, user.username)
                )
                if page_number >= page.total_pages:
                    break
                page_number += 1
        except AuthError as e:
            self._session_rejected(e)
            return UserSummary()
        except InventoryError as e:
            self._load_failed(e, "user_summary")
            return UserSummary()

        logger.info("user_dashboard_loaded", assigned_count=len(summary.assigned))
        return summary
