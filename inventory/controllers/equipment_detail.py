"""Equipment detail view with its maintenance history."""

from typing import Any, Mapping, Optional

import pydantic
import structlog

from inventory.controllers.base import ViewController
from inventory.errors import AuthError, InventoryError, NotFoundError, ValidationError
from inventory.models.equipment import Equipment
from inventory.models.maintenance import MaintenanceCreate, MaintenanceRecord
from inventory.services.auth_guard import AuthGuard
from inventory.services.repository import EquipmentRepository, MaintenanceRepository

logger = structlog.get_logger(__name__)

NOT_FOUND_MESSAGE = "Equipment not found"


class EquipmentDetailController(ViewController):
    """One equipment item and its maintenance log.

    Non-admins only see equipment assigned to them; anything else is
    reported as not found.
    """

    view_name = "equipment_detail"

    def __init__(
        self,
        guard: AuthGuard,
        equipment: EquipmentRepository,
        maintenance: MaintenanceRepository,
        equipment_id: str,
    ):
        super().__init__(guard)
        self.equipment_repository = equipment
        self.maintenance_repository = maintenance
        self.equipment_id = equipment_id
        self.equipment: Optional[Equipment] = None
        self.history: list[MaintenanceRecord] = []
        self.not_found = False

    def _visible(self, equipment: Equipment) -> bool:
        if self.guard.is_admin:
            return True
        user = self.guard.user
        return user is not None and equipment.is_assigned_to(user.id, user.username)

    @property
    def can_add_maintenance(self) -> bool:
        return self.equipment is not None and self._visible(self.equipment)

    async def load(self) -> None:
        self.loading = True
        self.session_expired = False
        try:
            equipment = await self.equipment_repository.get(self.equipment_id)
            if not self._visible(equipment):
                logger.warning(
                    "equipment_detail_hidden",
                    equipment_id=self.equipment_id,
                    username=self.guard.user.username if self.guard.user else None,
                )
                raise NotFoundError(NOT_FOUND_MESSAGE)
            history = await self.maintenance_repository.list_for_equipment(self.equipment_id)
        except AuthError as e:
            self._session_rejected(e)
            return
        except NotFoundError as e:
            self.equipment = None
            self.history = []
            self.not_found = True
            self.error = NOT_FOUND_MESSAGE
            self.failure = e
            return
        except InventoryError as e:
            self._load_failed(e, "load")
            return
        finally:
            self.loading = False

        self.equipment = equipment
        self.history = history
        self.not_found = False
        self.error = None
        self.failure = None
        logger.info(
            "equipment_detail_loaded",
            equipment_id=self.equipment_id,
            maintenance_count=len(history),
        )

    async def add_maintenance(self, form: Mapping[str, Any]) -> Optional[MaintenanceRecord]:
        """Log a maintenance event, then reload the history.

        Allowed for admins and the assigned user. Ignored while a previous
        submission is still in flight.
        """
        if self.submitting:
            logger.info("maintenance_submit_ignored_in_flight", equipment_id=self.equipment_id)
            return None
        if not self.can_add_maintenance:
            self.error = "You cannot log maintenance for this equipment"
            return None

        self.dismiss_error()
        try:
            record = MaintenanceCreate.model_validate({**form, "equipmentId": self.equipment_id})
        except pydantic.ValidationError as e:
            self._mutation_failed(ValidationError.from_pydantic(e), "add_maintenance")
            return None

        self.submitting = True
        try:
            created = await self.maintenance_repository.create(record)
        except AuthError as e:
            self._session_rejected(e)
            return None
        except InventoryError as e:
            self._mutation_failed(e, "add_maintenance")
            return None
        finally:
            self.submitting = False

        logger.info("maintenance_added", equipment_id=self.equipment_id, maintenance_id=created.id)
        await self.load()
        return created

    def snapshot(self) -> dict:
        return {
            "equipment": self.equipment.to_document() if self.equipment else None,
            "maintenances": [record.to_document() for record in self.history],
            "canAddMaintenance": self.can_add_maintenance,
            "canEdit": self.guard.is_admin,
            "loading": self.loading,
            "submitting": self.submitting,
            "error": self.error,
        }
