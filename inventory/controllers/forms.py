"""Editable form state for equipment and users.

Field state is a mapping of strings keyed by the camelCase wire names.
submit() turns it into a normalized model: blank optional fields become
None (never ""), dates are parsed, and the id is kept on edit.
"""

from datetime import date
from typing import Any, Optional

import pydantic
from pydantic.alias_generators import to_camel

from inventory.errors import ValidationError
from inventory.models.common import UserReference
from inventory.models.equipment import Equipment, EquipmentStatus, EquipmentType
from inventory.models.user import AppUser, Role


# Stamped by the data source; echoed back in documents but never edited
READ_ONLY_FIELDS = frozenset({"id", "_id", "createdBy", "createdAt", "updatedAt"})


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, dict):
        # populated reference, e.g. {"id": ..., "username": ...}
        return _text(value.get("id") or value.get("_id"))
    if isinstance(value, date):
        return value.isoformat()
    if hasattr(value, "value"):
        return str(value.value)
    return str(value)


def _optional(value: str) -> Optional[str]:
    stripped = value.strip()
    return stripped or None


def _parse_date(field: str, value: str) -> Optional[date]:
    value = value.strip()
    if not value:
        return None
    try:
        return date.fromisoformat(value.split("T", 1)[0])
    except ValueError:
        raise ValidationError(field, f"Field '{field}' must be a date (YYYY-MM-DD)")


class FormController:
    """Base: holds string field state and enforces required fields."""

    fields: tuple[str, ...] = ()
    required: tuple[str, ...] = ()
    defaults: dict[str, str] = {}

    def __init__(self, record_id: Optional[str] = None, values: Optional[dict[str, str]] = None):
        self.record_id = record_id
        self.values = {name: self.defaults.get(name, "") for name in self.fields}
        if values:
            self.values.update(values)

    @property
    def is_edit(self) -> bool:
        return self.record_id is not None

    def update(self, **fields: Any) -> None:
        """Edit field state; snake_case and camelCase names are both accepted."""
        for name, value in fields.items():
            key = name if name in self.values else to_camel(name)
            if name in READ_ONLY_FIELDS or key in READ_ONLY_FIELDS:
                continue
            if key not in self.values:
                raise ValidationError(name, f"Unknown field '{name}'")
            self.values[key] = _text(value)

    def _check_required(self) -> None:
        for name in self.required:
            if not self.values[name].strip():
                raise ValidationError(name)


class EquipmentFormController(FormController):
    """Create or edit one equipment item.

    No cross-field validation: a warranty ending before the purchase
    date is accepted.
    """

    fields = (
        "name",
        "type",
        "serialNumber",
        "manufacturer",
        "model",
        "purchaseDate",
        "warrantyEndDate",
        "status",
        "assignedTo",
        "location",
        "notes",
    )
    required = ("name", "type", "serialNumber", "status", "location")
    defaults = {
        "type": EquipmentType.COMPUTER.value,
        "status": EquipmentStatus.IN_SERVICE.value,
    }

    def __init__(self, record: Optional[Equipment] = None):
        values = None
        if record is not None:
            values = {
                "name": record.name,
                "type": _text(record.type),
                "serialNumber": record.serial_number,
                "manufacturer": _text(record.manufacturer),
                "model": _text(record.model),
                "purchaseDate": _text(record.purchase_date),
                "warrantyEndDate": _text(record.warranty_end_date),
                "status": _text(record.status),
                "assignedTo": record.assigned_to.id if record.assigned_to else "",
                "location": record.location,
                "notes": _text(record.notes),
            }
        super().__init__(record.id if record else None, values)
        self.record = record

    def submit(self) -> Equipment:
        """Validate and return the normalized record.

        Raises:
            ValidationError: On the first missing required field or a bad value
        """
        self._check_required()
        v = self.values

        try:
            equipment_type = EquipmentType(v["type"].strip())
        except ValueError:
            raise ValidationError("type", f"Unknown equipment type '{v['type']}'")
        try:
            status = EquipmentStatus(v["status"].strip())
        except ValueError:
            raise ValidationError("status", f"Unknown equipment status '{v['status']}'")

        assignee = _optional(v["assignedTo"])
        try:
            return Equipment(
                id=self.record_id,
                name=v["name"].strip(),
                type=equipment_type,
                serial_number=v["serialNumber"].strip(),
                manufacturer=_optional(v["manufacturer"]),
                model=_optional(v["model"]),
                purchase_date=_parse_date("purchaseDate", v["purchaseDate"]),
                warranty_end_date=_parse_date("warrantyEndDate", v["warrantyEndDate"]),
                status=status,
                assigned_to=UserReference(id=assignee) if assignee else None,
                location=v["location"].strip(),
                notes=_optional(v["notes"]),
                created_by=self.record.created_by if self.record else None,
                created_at=self.record.created_at if self.record else None,
            )
        except pydantic.ValidationError as e:
            raise ValidationError.from_pydantic(e)


class UserFormController(FormController):
    """Create or edit one application user.

    The password field is only used on create; it is never prefilled.
    """

    fields = ("username", "email", "firstName", "lastName", "role", "password")
    required = ("username", "email", "role")
    defaults = {"role": Role.USER.value}

    def __init__(self, record: Optional[AppUser] = None):
        values = None
        if record is not None:
            values = {
                "username": record.username,
                "email": record.email,
                "firstName": _text(record.first_name),
                "lastName": _text(record.last_name),
                "role": record.role.value,
            }
        super().__init__(record.id if record else None, values)

    @property
    def password(self) -> Optional[str]:
        return self.values["password"] or None

    def submit(self) -> AppUser:
        """Validate and return the normalized user.

        Raises:
            ValidationError: On the first missing required field or a bad role
        """
        self._check_required()
        v = self.values
        try:
            role = Role(v["role"].strip())
        except ValueError:
            raise ValidationError("role", "Role must be 'admin' or 'user'")

        try:
            return AppUser(
                id=self.record_id,
                username=v["username"].strip(),
                email=v["email"].strip(),
                first_name=_optional(v["firstName"]),
                last_name=_optional(v["lastName"]),
                role=role,
            )
        except pydantic.ValidationError as e:
            raise ValidationError.from_pydantic(e)
