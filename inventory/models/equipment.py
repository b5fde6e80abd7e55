"""Equipment models and list query."""

from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

from inventory.models.common import (
    CamelModel,
    UserReference,
    blank_to_none,
    date_part,
    wildcard_to_none,
)


class EquipmentType(str, Enum):
    """Kinds of tracked equipment."""

    COMPUTER = "Ordinateur"
    PRINTER = "Imprimante"
    SERVER = "Serveur"
    NETWORK = "Réseau"
    OTHER = "Autre"


class EquipmentStatus(str, Enum):
    """Operational status of an equipment item."""

    IN_SERVICE = "En service"
    BROKEN = "En panne"
    IN_MAINTENANCE = "En maintenance"
    OUT_OF_SERVICE = "Hors service"


class Equipment(CamelModel):
    """An inventory item, optionally assigned to a user."""

    id: Optional[str] = Field(default=None, validation_alias=AliasChoices("id", "_id"))
    name: str
    type: EquipmentType
    serial_number: str
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    purchase_date: Optional[date] = None
    warranty_end_date: Optional[date] = None
    status: EquipmentStatus = EquipmentStatus.IN_SERVICE
    assigned_to: Optional[UserReference] = None
    location: str
    notes: Optional[str] = None
    created_by: Optional[UserReference] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("manufacturer", "model", "notes", "assigned_to", "created_by", mode="before")
    @classmethod
    def blank_is_absent(cls, v: Any) -> Any:
        return blank_to_none(v)

    @field_validator("purchase_date", "warranty_end_date", mode="before")
    @classmethod
    def accept_iso_datetimes(cls, v: Any) -> Any:
        return date_part(v)

    def is_assigned_to(self, user_id: Optional[str], username: Optional[str] = None) -> bool:
        """Whether this item is assigned to the given user (id, or username as fallback)."""
        if self.assigned_to is None:
            return False
        if user_id and self.assigned_to.id == user_id:
            return True
        return bool(username) and username in (self.assigned_to.username, self.assigned_to.id)

    def to_payload(self) -> dict[str, Any]:
        """Request body for create/update: references collapse to ids."""
        payload = self.model_dump(
            mode="json",
            by_alias=True,
            exclude={"id", "created_by", "created_at", "updated_at"},
        )
        payload["assignedTo"] = self.assigned_to.id if self.assigned_to else None
        return payload


class EquipmentQuery(BaseModel):
    """Conjunction of list filters plus the page cursor.

    Empty and 'all' filters mean "no constraint" and are never sent.
    """

    search: Optional[str] = None
    type: Optional[EquipmentType] = None
    status: Optional[EquipmentStatus] = None
    assigned_to: Optional[str] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1)

    @field_validator("search", "type", "status", "assigned_to", mode="before")
    @classmethod
    def drop_wildcards(cls, v: Any) -> Any:
        v = wildcard_to_none(v)
        return v.strip() if isinstance(v, str) else v

    def to_params(self) -> dict[str, Any]:
        """Query-string parameters for GET /equipments."""
        params: dict[str, Any] = {}
        if self.search:
            params["search"] = self.search
        if self.type is not None:
            params["type"] = self.type.value
        if self.status is not None:
            params["status"] = self.status.value
        if self.assigned_to:
            params["assignedTo"] = self.assigned_to
        params["page"] = self.page
        params["limit"] = self.limit
        return params

    def matches(self, equipment: Equipment) -> bool:
        """Apply the same predicates locally (snapshot data source)."""
        if self.type is not None and equipment.type != self.type:
            return False
        if self.status is not None and equipment.status != self.status:
            return False
        if self.assigned_to and not equipment.is_assigned_to(self.assigned_to, self.assigned_to):
            return False
        if self.search:
            needle = self.search.lower()
            haystack = (
                equipment.name,
                equipment.serial_number,
                equipment.manufacturer or "",
                equipment.model or "",
                equipment.location,
            )
            return any(needle in field.lower() for field in haystack)
        return True
