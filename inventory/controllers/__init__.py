"""Controllers package exports."""

from inventory.controllers.dashboard import DashboardController
from inventory.controllers.equipment_detail import EquipmentDetailController
from inventory.controllers.equipment_list import EquipmentListController
from inventory.controllers.forms import EquipmentFormController, UserFormController
from inventory.controllers.route_protector import AccessLevel, RouteDecision, check, landing_for, navigation
from inventory.controllers.user_list import UserListController

__all__ = [
    "AccessLevel",
    "DashboardController",
    "EquipmentDetailController",
    "EquipmentFormController",
    "EquipmentListController",
    "RouteDecision",
    "UserFormController",
    "UserListController",
    "check",
    "landing_for",
    "navigation",
]
