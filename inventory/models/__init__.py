"""Models package exports."""

from inventory.models.auth import AuthResponse, LoginRequest, RegisterRequest
from inventory.models.common import Page, UserReference
from inventory.models.equipment import (
    Equipment,
    EquipmentQuery,
    EquipmentStatus,
    EquipmentType,
)
from inventory.models.maintenance import MaintenanceCreate, MaintenanceRecord
from inventory.models.user import AppUser, Role, Session, SessionUser, UserQuery

__all__ = [
    "AppUser",
    "AuthResponse",
    "Equipment",
    "EquipmentQuery",
    "EquipmentStatus",
    "EquipmentType",
    "LoginRequest",
    "MaintenanceCreate",
    "MaintenanceRecord",
    "Page",
    "RegisterRequest",
    "Role",
    "Session",
    "SessionUser",
    "UserQuery",
    "UserReference",
]
