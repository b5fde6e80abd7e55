"""User management view (admin only)."""

from typing import Optional

import pydantic
import structlog

from inventory.controllers.listing import ListController
from inventory.errors import AuthError, InventoryError, ValidationError
from inventory.models.common import Page
from inventory.models.user import AppUser, UserQuery
from inventory.services.auth_guard import AuthGuard
from inventory.services.repository import UserRepository

logger = structlog.get_logger(__name__)


class UserListController(ListController[AppUser]):
    """Search and role filters over application users."""

    view_name = "user_list"
    filter_names = ("search", "role")

    def __init__(self, guard: AuthGuard, repository: UserRepository, page_size: int = 10):
        super().__init__(guard, page_size)
        self.repository = repository

    def _allowed(self) -> bool:
        return self._require_admin("load")

    def _query(self) -> UserQuery:
        try:
            return UserQuery(
                search=self.filters["search"],
                role=self.filters["role"],
                page=self.current_page,
                limit=self.page_size,
            )
        except pydantic.ValidationError as e:
            raise ValidationError.from_pydantic(e)

    async def _fetch(self, query: UserQuery) -> Page[AppUser]:
        return await self.repository.list(query)

    async def assignable_users(self) -> list[AppUser]:
        """Every user, sorted by username, for the equipment assignee selector."""
        try:
            users = await self.repository.list_all()
        except AuthError as e:
            self._session_rejected(e)
            return []
        except InventoryError as e:
            self._load_failed(e, "assignable_users")
            return []
        return sorted(users, key=lambda u: u.username.lower())

    async def save(self, user: AppUser, password: Optional[str] = None) -> Optional[AppUser]:
        """Create (no id) or update a user, then reload. Admin only."""
        if not self._require_admin("save"):
            return None
        if self.submitting:
            return None

        self.submitting = True
        self.dismiss_error()
        try:
            if user.id is None:
                saved = await self.repository.create(user, password=password)
            else:
                saved = await self.repository.update(user)
        except AuthError as e:
            self._session_rejected(e)
            return None
        except InventoryError as e:
            self._mutation_failed(e, "save")
            return None
        finally:
            self.submitting = False

        logger.info("app_user_saved", user_id=saved.id, created=user.id is None)
        await self.load()
        return saved

    async def delete(self, user_id: str) -> bool:
        """Remove a user, then reload. Admin only."""
        if not self._require_admin("delete"):
            return False
        if self.guard.user is not None and self.guard.user.id == user_id:
            self._mutation_failed(ValidationError("id", "You cannot delete your own account"), "delete")
            return False
        if self.submitting:
            return False

        self.submitting = True
        self.dismiss_error()
        try:
            await self.repository.delete(user_id)
        except AuthError as e:
            self._session_rejected(e)
            return False
        except InventoryError as e:
            self._mutation_failed(e, "delete")
            return False
        finally:
            self.submitting = False

        logger.info("app_user_removed", user_id=user_id)
        await self.load()
        return True

    def snapshot(self) -> dict:
        view = super().snapshot()
        view["users"] = [user.to_document() for user in self.items]
        return view
