"""Equipment list view."""

from typing import Optional

import pydantic
import structlog

from inventory.controllers.listing import ListController
from inventory.errors import AuthError, InventoryError, ValidationError
from inventory.models.common import Page
from inventory.models.equipment import Equipment, EquipmentQuery
from inventory.services.auth_guard import AuthGuard
from inventory.services.repository import EquipmentRepository

logger = structlog.get_logger(__name__)


class EquipmentListController(ListController[Equipment]):
    """Search, type, status and assignee filters over the equipment list.

    The assignee filter is only honoured for admins; everyone else is
    always scoped to the equipment assigned to them.
    """

    view_name = "equipment_list"
    filter_names = ("search", "type", "status", "assigned_to")

    def __init__(self, guard: AuthGuard, repository: EquipmentRepository, page_size: int = 10):
        super().__init__(guard, page_size)
        self.repository = repository

    def _scope(self) -> Optional[str]:
        if self.guard.is_admin:
            return self.filters["assigned_to"]
        user = self.guard.user
        if user is None:
            return None
        return user.id or user.username

    def _query(self) -> EquipmentQuery:
        try:
            return EquipmentQuery(
                search=self.filters["search"],
                type=self.filters["type"],
                status=self.filters["status"],
                assigned_to=self._scope(),
                page=self.current_page,
                limit=self.page_size,
            )
        except pydantic.ValidationError as e:
            raise ValidationError.from_pydantic(e)

    async def _fetch(self, query: EquipmentQuery) -> Page[Equipment]:
        return await self.repository.list(query)

    async def save(self, equipment: Equipment) -> Optional[Equipment]:
        """Create (no id) or update an item, then reload the list. Admin only."""
        if not self._require_admin("save"):
            return None
        if self.submitting:
            logger.info("equipment_save_ignored_in_flight")
            return None

        self.submitting = True
        self.dismiss_error()
        try:
            if equipment.id is None:
                saved = await self.repository.create(equipment)
            else:
                saved = await self.repository.update(equipment)
        except AuthError as e:
            self._session_rejected(e)
            return None
        except InventoryError as e:
            self._mutation_failed(e, "save")
            return None
        finally:
            self.submitting = False

        logger.info("equipment_saved", equipment_id=saved.id, created=equipment.id is None)
        await self.load()
        return saved

    async def delete(self, equipment_id: str) -> bool:
        """Remove an item, then reload (the page clamps if it emptied). Admin only."""
        if not self._require_admin("delete"):
            return False
        if self.submitting:
            return False

        self.submitting = True
        self.dismiss_error()
        try:
            await self.repository.delete(equipment_id)
        except AuthError as e:
            self._session_rejected(e)
            return False
        except InventoryError as e:
            self._mutation_failed(e, "delete")
            return False
        finally:
            self.submitting = False

        logger.info("equipment_removed", equipment_id=equipment_id)
        await self.load()
        return True

    def snapshot(self) -> dict:
        view = super().snapshot()
        view["equipments"] = [item.to_document() for item in self.items]
        return view
