"""Maintenance log models."""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import AliasChoices, Field, field_validator

from inventory.models.common import CamelModel, UserReference, blank_to_none, date_part


class MaintenanceRecord(CamelModel):
    """One service event logged against one equipment item."""

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    equipment_id: str = Field(
        validation_alias=AliasChoices("equipmentId", "equipment_id", "equipment")
    )
    maintenance_date: date
    description: str
    performed_by: Optional[UserReference] = None
    cost: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("maintenance_date", mode="before")
    @classmethod
    def accept_iso_datetime(cls, v: Any) -> Any:
        return date_part(v)

    @field_validator("equipment_id", mode="before")
    @classmethod
    def populated_equipment_to_id(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return v.get("_id") or v.get("id")
        return v


class MaintenanceCreate(CamelModel):
    """Body of POST /maintenances."""

    equipment_id: str
    maintenance_date: date
    description: str = Field(..., min_length=1)
    cost: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None

    @field_validator("cost", "notes", mode="before")
    @classmethod
    def blank_is_absent(cls, v: Any) -> Any:
        return blank_to_none(v)

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Description cannot be empty or whitespace only")
        return stripped
