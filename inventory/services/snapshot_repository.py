"""Local snapshot data source.

Each collection is one JSON array on disk, read and rewritten as a whole
on every mutation. Tokens are checked the way the API would check them,
so an expired or foreign token still surfaces as a 401-style AuthError.
"""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional
from uuid import uuid4

import structlog

from inventory.errors import (
    AuthError,
    AuthErrorReason,
    NetworkError,
    NotFoundError,
    ValidationError,
)
from inventory.models.common import Page, UserReference, paginate
from inventory.models.equipment import Equipment, EquipmentQuery
from inventory.models.maintenance import MaintenanceCreate, MaintenanceRecord
from inventory.models.user import AppUser, Role
from inventory.services.repository import (
    EquipmentRepository,
    MaintenanceRepository,
    Repositories,
    UserRepository,
    parsing_records,
)
from inventory.services.token_service import TokenService

logger = structlog.get_logger(__name__)

EQUIPMENTS = "equipments"
USERS = "users"
MAINTENANCES = "maintenances"
CREDENTIALS = "credentials"

_UNREADABLE = "Local {} data is unreadable"


class SnapshotStore:
    """Whole-collection JSON snapshots stored under one directory."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _path(self, collection: str) -> Path:
        return self.directory / f"{collection}.json"

    def read(self, collection: str) -> list[dict[str, Any]]:
        """Return every record of a collection ([] when never written).

        Raises:
            NetworkError: If the snapshot exists but cannot be parsed
        """
        path = self._path(collection)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        try:
            records = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error("snapshot_corrupt", collection=collection, error=str(e))
            raise NetworkError(_UNREADABLE.format(collection))
        if not isinstance(records, list):
            logger.error("snapshot_not_a_list", collection=collection)
            raise NetworkError(_UNREADABLE.format(collection))
        return records

    def write(self, collection: str, records: list[dict[str, Any]]) -> None:
        """Replace a collection with a new snapshot, atomically."""
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(collection)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{collection}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(records, fh, ensure_ascii=False, indent=2)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("snapshot_written", collection=collection, count=len(records))


class LocalAuthority:
    """Verifies the caller's token against the local signing secret."""

    def __init__(self, token_service: TokenService, token_provider: Callable[[], Optional[str]]):
        self.token_service = token_service
        self.token_provider = token_provider

    def require_session(self) -> dict:
        """Claims of the current token.

        Raises:
            AuthError: UNAUTHORIZED when there is no valid token
        """
        token = self.token_provider()
        if not token:
            raise AuthError(AuthErrorReason.UNAUTHORIZED)
        try:
            return self.token_service.validate_access_token(token)
        except ValueError as e:
            logger.warning("local_token_rejected", error=str(e))
            raise AuthError(AuthErrorReason.UNAUTHORIZED)

    def require_admin(self) -> dict:
        """Claims of the current token, which must carry the admin role.

        Raises:
            AuthError: UNAUTHORIZED without a valid token, FORBIDDEN for non-admins
        """
        claims = self.require_session()
        if claims.get("role") != Role.ADMIN.value:
            raise AuthError(AuthErrorReason.FORBIDDEN)
        return claims


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _caller(claims: dict) -> UserReference:
    return UserReference(id=claims.get("id") or claims["sub"], username=claims.get("username"))


class LocalUserRepository(UserRepository):
    """Users kept in the 'users' snapshot; local passwords live in 'credentials'."""

    def __init__(self, store: SnapshotStore, authority: LocalAuthority, token_service: TokenService):
        self.store = store
        self.authority = authority
        self.token_service = token_service

    def _load(self) -> list[AppUser]:
        docs = self.store.read(USERS)
        with parsing_records(USERS, _UNREADABLE.format(USERS)):
            return [AppUser.model_validate(doc) for doc in docs]

    def _save(self, users: list[AppUser]) -> None:
        self.store.write(USERS, [u.to_document() for u in users])

    def find_by_id(self, user_id: str) -> Optional[AppUser]:
        return next((u for u in self._load() if u.id == user_id), None)

    def find_by_username(self, username: str) -> Optional[AppUser]:
        wanted = username.lower()
        return next((u for u in self._load() if u.username.lower() == wanted), None)

    def add(self, user: AppUser, password: Optional[str] = None) -> AppUser:
        """Insert a user without a token check (registration, seeding).

        Raises:
            ValidationError: If the username is already taken
        """
        users = self._load()
        if any(u.username.lower() == user.username.lower() for u in users):
            raise ValidationError("username", f"Username '{user.username}' already exists")

        created = user.model_copy(update={"id": str(uuid4())})
        users.append(created)
        self._save(users)

        if password:
            credentials = self.store.read(CREDENTIALS)
            credentials.append({
                "userId": created.id,
                "passwordHash": self.token_service.hash_password(password),
            })
            self.store.write(CREDENTIALS, credentials)

        logger.info("user_created", user_id=created.id, username=created.username, role=created.role.value)
        return created

    def password_hash_for(self, user_id: str) -> Optional[str]:
        for entry in self.store.read(CREDENTIALS):
            if entry.get("userId") == user_id:
                return entry.get("passwordHash")
        return None

    async def list_all(self) -> list[AppUser]:
        self.authority.require_session()
        return self._load()

    async def get(self, user_id: str) -> AppUser:
        self.authority.require_session()
        user = self.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def create(self, user: AppUser, password: Optional[str] = None) -> AppUser:
        self.authority.require_admin()
        return self.add(user, password)

    async def update(self, user: AppUser) -> AppUser:
        self.authority.require_admin()
        users = self._load()
        index = next((i for i, u in enumerate(users) if u.id == user.id), None)
        if index is None:
            raise NotFoundError("User not found")
        if any(u.id != user.id and u.username.lower() == user.username.lower() for u in users):
            raise ValidationError("username", f"Username '{user.username}' already exists")

        users[index] = user
        self._save(users)
        logger.info("user_updated", user_id=user.id)
        return user

    async def delete(self, user_id: str) -> None:
        claims = self.authority.require_admin()
        users = self._load()
        remaining = [u for u in users if u.id != user_id]
        if len(remaining) == len(users):
            raise NotFoundError("User not found")
        self._save(remaining)

        credentials = [c for c in self.store.read(CREDENTIALS) if c.get("userId") != user_id]
        self.store.write(CREDENTIALS, credentials)

        # Equipment must never point at a missing user
        equipments = self.store.read(EQUIPMENTS)
        released = 0
        for doc in equipments:
            assigned = doc.get("assignedTo")
            if isinstance(assigned, dict) and assigned.get("id") == user_id:
                doc["assignedTo"] = None
                released += 1
        if released:
            self.store.write(EQUIPMENTS, equipments)

        logger.info(
            "user_deleted",
            admin_id=claims.get("id"),
            target_user_id=user_id,
            released_equipment=released,
        )


class LocalEquipmentRepository(EquipmentRepository):
    """Equipment kept in the 'equipments' snapshot."""

    def __init__(self, store: SnapshotStore, authority: LocalAuthority, users: LocalUserRepository):
        self.store = store
        self.authority = authority
        self.users = users

    def _load(self) -> list[Equipment]:
        docs = self.store.read(EQUIPMENTS)
        with parsing_records(EQUIPMENTS, _UNREADABLE.format(EQUIPMENTS)):
            return [Equipment.model_validate(doc) for doc in docs]

    def _save(self, items: list[Equipment]) -> None:
        self.store.write(EQUIPMENTS, [item.to_document() for item in items])

    def _resolve_assignee(self, equipment: Equipment) -> Equipment:
        """Check the assignee exists and store a populated reference."""
        if equipment.assigned_to is None:
            return equipment
        user = self.users.find_by_id(equipment.assigned_to.id)
        if user is None:
            raise ValidationError("assigned_to", "Assigned user does not exist")
        return equipment.model_copy(update={"assigned_to": user.reference()})

    async def list(self, query: EquipmentQuery) -> Page[Equipment]:
        self.authority.require_session()
        matches = [item for item in self._load() if query.matches(item)]
        return paginate(matches, query.page, query.limit)

    async def get(self, equipment_id: str) -> Equipment:
        self.authority.require_session()
        item = next((e for e in self._load() if e.id == equipment_id), None)
        if item is None:
            raise NotFoundError("Equipment not found")
        return item

    async def create(self, equipment: Equipment) -> Equipment:
        claims = self.authority.require_admin()
        now = _now()
        created = self._resolve_assignee(equipment).model_copy(update={
            "id": str(uuid4()),
            "created_by": _caller(claims),
            "created_at": now,
            "updated_at": now,
        })
        items = self._load()
        items.append(created)
        self._save(items)
        logger.info("equipment_created", equipment_id=created.id, name=created.name)
        return created

    async def update(self, equipment: Equipment) -> Equipment:
        self.authority.require_admin()
        items = self._load()
        index = next((i for i, e in enumerate(items) if e.id == equipment.id), None)
        if index is None:
            raise NotFoundError("Equipment not found")

        existing = items[index]
        updated = self._resolve_assignee(equipment).model_copy(update={
            "created_by": existing.created_by,
            "created_at": existing.created_at,
            "updated_at": _now(),
        })
        items[index] = updated
        self._save(items)
        logger.info("equipment_updated", equipment_id=updated.id)
        return updated

    async def delete(self, equipment_id: str) -> None:
        self.authority.require_admin()
        items = self._load()
        remaining = [e for e in items if e.id != equipment_id]
        if len(remaining) == len(items):
            raise NotFoundError("Equipment not found")
        self._save(remaining)
        logger.info("equipment_deleted", equipment_id=equipment_id)


class LocalMaintenanceRepository(MaintenanceRepository):
    """Maintenance history kept in the 'maintenances' snapshot."""

    def __init__(self, store: SnapshotStore, authority: LocalAuthority):
        self.store = store
        self.authority = authority

    async def list_for_equipment(self, equipment_id: str) -> list[MaintenanceRecord]:
        self.authority.require_session()
        docs = self.store.read(MAINTENANCES)
        with parsing_records(MAINTENANCES, _UNREADABLE.format(MAINTENANCES)):
            records = [
                MaintenanceRecord.model_validate(doc)
                for doc in docs
                if doc.get("equipmentId") == equipment_id
            ]
        records.sort(key=lambda r: r.maintenance_date, reverse=True)
        return records

    async def create(
        self, record: MaintenanceCreate, performed_by: Optional[UserReference] = None
    ) -> MaintenanceRecord:
        claims = self.authority.require_session()
        if not any(doc.get("id") == record.equipment_id for doc in self.store.read(EQUIPMENTS)):
            raise NotFoundError("Equipment not found")

        created = MaintenanceRecord(
            id=str(uuid4()),
            equipment_id=record.equipment_id,
            maintenance_date=record.maintenance_date,
            description=record.description,
            performed_by=performed_by or _caller(claims),
            cost=record.cost,
            notes=record.notes,
            created_at=_now(),
        )
        records = self.store.read(MAINTENANCES)
        records.append(created.to_document())
        self.store.write(MAINTENANCES, records)
        logger.info(
            "maintenance_recorded",
            equipment_id=created.equipment_id,
            maintenance_id=created.id,
        )
        return created


@dataclass
class LocalRepositories(Repositories):
    """Snapshot repositories; the user repository also backs local sign-in."""

    users: LocalUserRepository


def build_local_repositories(
    store: SnapshotStore,
    token_service: TokenService,
    token_provider: Callable[[], Optional[str]],
) -> LocalRepositories:
    """Wire the snapshot-backed repositories around one token authority."""
    authority = LocalAuthority(token_service, token_provider)
    users = LocalUserRepository(store, authority, token_service)
    return LocalRepositories(
        equipment=LocalEquipmentRepository(store, authority, users),
        users=users,
        maintenance=LocalMaintenanceRepository(store, authority),
    )
