"""Unit tests for UserListController."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from inventory.controllers.base import ADMIN_ONLY_MESSAGE
from inventory.controllers.user_list import UserListController
from inventory.errors import AuthError, AuthErrorReason, NotFoundError
from inventory.models.common import paginate
from inventory.models.user import AppUser, Role
from inventory.services.repository import UserRepository


def _user(user_id: str, username: str, role: Role = Role.USER) -> AppUser:
    return AppUser(id=user_id, username=username, email=f"{username}@example.com", role=role)


@pytest.fixture
def repository():
    repo = MagicMock(spec=UserRepository)
    users = [_user("u-3", "zoe"), _user("u-1", "alice", Role.ADMIN), _user("u-2", "Bob")]
    repo.list_all = AsyncMock(return_value=users)
    repo.list = AsyncMock(side_effect=lambda q: paginate([u for u in users if q.matches(u)], q.page, q.limit))
    repo.create = AsyncMock()
    repo.update = AsyncMock()
    repo.delete = AsyncMock()
    return repo


class TestUserList:
    """Loading, access control and mutations."""

    async def test_admin_loads_filtered_page(self, guard_factory, repository):
        controller = UserListController(await guard_factory(), repository)

        await controller.set_filter(role="user")

        assert [u.username for u in controller.items] == ["zoe", "Bob"]
        assert controller.snapshot()["users"][0]["username"] == "zoe"

    async def test_regular_user_is_refused(self, guard_factory, repository):
        controller = UserListController(await guard_factory(role="user", username="bob"), repository)

        await controller.load()

        repository.list.assert_not_called()
        assert controller.error == ADMIN_ONLY_MESSAGE
        assert controller.loaded is False

    async def test_assignable_users_sorted_by_username(self, guard_factory, repository):
        controller = UserListController(await guard_factory(), repository)
        users = await controller.assignable_users()
        assert [u.username for u in users] == ["alice", "Bob", "zoe"]

    async def test_assignable_users_on_rejected_token(self, guard_factory, repository):
        controller = UserListController(await guard_factory(), repository)
        repository.list_all.side_effect = AuthError(AuthErrorReason.UNAUTHORIZED)

        assert await controller.assignable_users() == []
        assert controller.session_expired is True
        assert controller.guard.is_authenticated is False

    async def test_create_passes_password(self, guard_factory, repository):
        controller = UserListController(await guard_factory(), repository)
        repository.create.return_value = _user("u-9", "carol")

        saved = await controller.save(AppUser(username="carol", email="carol@example.com"), password="pw")

        assert saved.id == "u-9"
        assert repository.create.call_args.kwargs["password"] == "pw"

    async def test_cannot_delete_own_account(self, guard_factory, repository):
        controller = UserListController(await guard_factory(user_id="u-1"), repository)

        assert await controller.delete("u-1") is False

        repository.delete.assert_not_called()
        assert controller.error == "You cannot delete your own account"

    async def test_delete_missing_user_reports_error(self, guard_factory, repository):
        controller = UserListController(await guard_factory(user_id="u-1"), repository)
        repository.delete.side_effect = NotFoundError("User not found")

        assert await controller.delete("u-404") is False
        assert controller.error == "User not found"
        assert isinstance(controller.failure, NotFoundError)
