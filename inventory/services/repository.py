"""Data-access interface shared by the remote and local data sources.

Controllers depend only on these abstract repositories; which
implementation backs them is chosen from settings.data_source.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

import pydantic
import structlog

from inventory.errors import NetworkError
from inventory.models.common import Page, UserReference, paginate
from inventory.models.equipment import Equipment, EquipmentQuery
from inventory.models.maintenance import MaintenanceCreate, MaintenanceRecord
from inventory.models.user import AppUser, UserQuery

logger = structlog.get_logger(__name__)


class EquipmentRepository(ABC):
    """Equipment records."""

    @abstractmethod
    async def list(self, query: EquipmentQuery) -> Page[Equipment]:
        """Return one filtered page of equipment."""

    @abstractmethod
    async def get(self, equipment_id: str) -> Equipment:
        """Return one item; raises NotFoundError when absent."""

    @abstractmethod
    async def create(self, equipment: Equipment) -> Equipment:
        """Store a new item and return it with its assigned id."""

    @abstractmethod
    async def update(self, equipment: Equipment) -> Equipment:
        """Replace an existing item."""

    @abstractmethod
    async def delete(self, equipment_id: str) -> None:
        """Remove an item."""


class UserRepository(ABC):
    """Application users."""

    @abstractmethod
    async def list_all(self) -> list[AppUser]:
        """Every user, e.g. for the assignment selector."""

    async def list(self, query: UserQuery) -> Page[AppUser]:
        """Filtered page of users; filtering happens client-side."""
        users = [u for u in await self.list_all() if query.matches(u)]
        users.sort(key=lambda u: u.username.lower())
        return paginate(users, query.page, query.limit)

    @abstractmethod
    async def get(self, user_id: str) -> AppUser:
        """Return one user; raises NotFoundError when absent."""

    @abstractmethod
    async def create(self, user: AppUser, password: str | None = None) -> AppUser:
        """Store a new user and return it with its assigned id."""

    @abstractmethod
    async def update(self, user: AppUser) -> AppUser:
        """Replace an existing user."""

    @abstractmethod
    async def delete(self, user_id: str) -> None:
        """Remove a user."""


class MaintenanceRepository(ABC):
    """Append-only maintenance history."""

    @abstractmethod
    async def list_for_equipment(self, equipment_id: str) -> list[MaintenanceRecord]:
        """History of one item, most recent first."""

    @abstractmethod
    async def create(
        self, record: MaintenanceCreate, performed_by: UserReference | None = None
    ) -> MaintenanceRecord:
        """Append a record. Remote backends stamp performedBy from the token."""


@dataclass
class Repositories:
    """The three repositories of one data source."""

    equipment: EquipmentRepository
    users: UserRepository
    maintenance: MaintenanceRepository


UNEXPECTED_RESPONSE = "The server returned an unexpected response"


@contextmanager
def parsing_records(source: str, message: str = UNEXPECTED_RESPONSE) -> Iterator[None]:
    """Turn a malformed record into a NetworkError.

    Raises:
        NetworkError: If a pydantic model rejects a record parsed in the block
    """
    try:
        yield
    except pydantic.ValidationError as e:
        logger.error("malformed_records", source=source, error_count=e.error_count(), error=str(e))
        raise NetworkError(message)
