"""Explicit application context.

Everything that would otherwise be a module-level singleton (the guard,
the API client, the repositories) is built here once and passed by
reference. Tests build their own isolated context.
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from inventory.config import Settings, get_settings
from inventory.controllers.equipment_list import EquipmentListController
from inventory.controllers.user_list import UserListController
from inventory.services.api_client import ApiClient
from inventory.services.auth_backend import AuthBackend, LocalAuthBackend, RemoteAuthBackend
from inventory.services.auth_guard import AuthGuard
from inventory.services.remote_repository import build_remote_repositories
from inventory.services.repository import Repositories
from inventory.services.session_store import SessionStore
from inventory.services.snapshot_repository import (
    SnapshotStore,
    build_local_repositories,
)
from inventory.services.token_service import TokenService

logger = structlog.get_logger(__name__)


@dataclass
class AppContext:
    """The collaborators shared by every view of one process."""

    settings: Settings
    session_store: SessionStore
    guard: AuthGuard
    repositories: Repositories
    equipment_list: EquipmentListController
    user_list: UserListController
    api: Optional[ApiClient] = None

    async def close(self) -> None:
        """Release network resources."""
        if self.api is not None:
            await self.api.close()


class _GuardToken:
    """Reads the bearer token from a guard that is created afterwards."""

    def __init__(self):
        self.guard: Optional[AuthGuard] = None

    def __call__(self) -> Optional[str]:
        return self.guard.token if self.guard else None


def build_context(settings: Optional[Settings] = None, initialize: bool = True) -> AppContext:
    """Wire the data source selected by settings.data_source.

    Args:
        settings: Settings to use (defaults to get_settings())
        initialize: Restore the persisted session immediately

    Returns:
        A ready-to-use AppContext
    """
    settings = settings or get_settings()
    store = SessionStore(settings.session_path)
    token_provider = _GuardToken()

    api: Optional[ApiClient] = None
    backend: AuthBackend
    if settings.data_source == "local":
        token_service = TokenService(settings)
        repositories = build_local_repositories(
            SnapshotStore(settings.data_path), token_service, token_provider
        )
        backend = LocalAuthBackend(repositories.users, token_service)
    else:
        api = ApiClient(settings, token_provider=token_provider)
        repositories = build_remote_repositories(api)
        backend = RemoteAuthBackend(api)

    guard = AuthGuard(store, backend, settings)
    token_provider.guard = guard

    if initialize:
        guard.initialize()

    logger.info(
        "context_built",
        data_source=settings.data_source,
        authenticated=guard.is_authenticated,
    )
    return AppContext(
        settings=settings,
        session_store=store,
        guard=guard,
        repositories=repositories,
        equipment_list=EquipmentListController(guard, repositories.equipment, settings.page_size),
        user_list=UserListController(guard, repositories.users, settings.page_size),
        api=api,
    )
