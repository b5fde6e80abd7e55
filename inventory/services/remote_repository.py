"""Repositories backed by the inventory HTTP API."""

from __future__ import annotations

from typing import Any, Optional

import structlog

from inventory.errors import NetworkError
from inventory.models.common import Page, UserReference, paginate
from inventory.models.equipment import Equipment, EquipmentQuery
from inventory.models.maintenance import MaintenanceCreate, MaintenanceRecord
from inventory.models.user import AppUser
from inventory.services.api_client import ApiClient
from inventory.services.repository import (
    EquipmentRepository,
    MaintenanceRepository,
    Repositories,
    UNEXPECTED_RESPONSE,
    UserRepository,
    parsing_records,
)

logger = structlog.get_logger(__name__)


def _equipment_page(data: Any, query: EquipmentQuery) -> Page[Equipment]:
    """Build a Page from {equipments, currentPage, totalPages, totalCount}.

    A bare array (older backends without pagination) is paginated locally.
    """
    with parsing_records("equipments"):
        if isinstance(data, list):
            items = [Equipment.model_validate(doc) for doc in data]
            return paginate(items, query.page, query.limit)

        data = data or {}
        if not isinstance(data, dict):
            logger.error("equipment_page_malformed", body_type=type(data).__name__)
            raise NetworkError(UNEXPECTED_RESPONSE)
        items = [Equipment.model_validate(doc) for doc in data.get("equipments", [])]
        total_count = data.get("totalCount", len(items))
        return Page(
            items=items,
            current_page=data.get("currentPage", query.page),
            total_pages=data.get("totalPages", 0 if total_count == 0 else 1),
            total_count=total_count,
        )


class RemoteEquipmentRepository(EquipmentRepository):
    """GET/POST/PUT/DELETE /equipments."""

    def __init__(self, api: ApiClient):
        self.api = api

    async def list(self, query: EquipmentQuery) -> Page[Equipment]:
        data = await self.api.get("/equipments", params=query.to_params())
        page = _equipment_page(data, query)
        logger.debug(
            "remote_equipment_listed",
            page=page.current_page,
            total_count=page.total_count,
        )
        return page

    async def get(self, equipment_id: str) -> Equipment:
        data = await self.api.get(f"/equipments/{equipment_id}")
        with parsing_records("equipments"):
            return Equipment.model_validate(data)

    async def create(self, equipment: Equipment) -> Equipment:
        data = await self.api.post("/equipments", json=equipment.to_payload())
        with parsing_records("equipments"):
            return Equipment.model_validate(data)

    async def update(self, equipment: Equipment) -> Equipment:
        data = await self.api.put(f"/equipments/{equipment.id}", json=equipment.to_payload())
        with parsing_records("equipments"):
            return Equipment.model_validate(data) if data else equipment

    async def delete(self, equipment_id: str) -> None:
        await self.api.delete(f"/equipments/{equipment_id}")


class RemoteUserRepository(UserRepository):
    """GET/POST/PUT/DELETE /users."""

    def __init__(self, api: ApiClient):
        self.api = api

    async def list_all(self) -> list[AppUser]:
        data = await self.api.get("/users")
        if isinstance(data, dict):
            data = data.get("users", [])
        with parsing_records("users"):
            return [AppUser.model_validate(doc) for doc in data or []]

    async def get(self, user_id: str) -> AppUser:
        data = await self.api.get(f"/users/{user_id}")
        with parsing_records("users"):
            return AppUser.model_validate(data)

    async def create(self, user: AppUser, password: Optional[str] = None) -> AppUser:
        body = user.to_document()
        body.pop("id", None)
        if password:
            body["password"] = password
        data = await self.api.post("/users", json=body)
        with parsing_records("users"):
            return AppUser.model_validate(data)

    async def update(self, user: AppUser) -> AppUser:
        body = user.model_dump(mode="json", by_alias=True, exclude={"id"})
        data = await self.api.put(f"/users/{user.id}", json=body)
        with parsing_records("users"):
            return AppUser.model_validate(data) if data else user

    async def delete(self, user_id: str) -> None:
        await self.api.delete(f"/users/{user_id}")


class RemoteMaintenanceRepository(MaintenanceRepository):
    """GET /maintenances/:equipmentId and POST /maintenances."""

    def __init__(self, api: ApiClient):
        self.api = api

    async def list_for_equipment(self, equipment_id: str) -> list[MaintenanceRecord]:
        data = await self.api.get(f"/maintenances/{equipment_id}")
        with parsing_records("maintenances"):
            return [MaintenanceRecord.model_validate(doc) for doc in data or []]

    async def create(
        self, record: MaintenanceCreate, performed_by: Optional[UserReference] = None
    ) -> MaintenanceRecord:
        # performedBy is stamped server-side from the bearer token
        data = await self.api.post("/maintenances", json=record.to_document())
        with parsing_records("maintenances"):
            return MaintenanceRecord.model_validate(data)


def build_remote_repositories(api: ApiClient) -> Repositories:
    """Wire the API-backed repositories around one client."""
    return Repositories(
        equipment=RemoteEquipmentRepository(api),
        users=RemoteUserRepository(api),
        maintenance=RemoteMaintenanceRepository(api),
    )
