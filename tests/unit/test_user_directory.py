"""
Tests for internos/services/user_directory.py

The repository is replaced with an AsyncMock so the deletion rules can be
checked in isolation.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from internos.database.exceptions import DatabaseConstraintError
from internos.services.exceptions import BadRequestError, NotFoundError
from internos.services.user_directory import UserDirectoryService

NO_DEPENDENCIES = {"assigned_tasks": 0, "created_tasks": 0, "comments": 0, "activities": 0}


@pytest.fixture
def users():
    repo = AsyncMock()
    known = {
        1: SimpleNamespace(id=1, email="admin@example.com", role="Admin"),
        2: SimpleNamespace(id=2, email="intern@example.com", role="Intern"),
        3: SimpleNamespace(id=3, email="mentor@example.com", role="Mentor"),
    }
    repo.get_by_id.side_effect = lambda user_id: known.get(user_id)
    repo.count_dependencies.return_value = dict(NO_DEPENDENCIES)
    repo.delete.return_value = True
    repo.reassign_and_delete.return_value = dict(NO_DEPENDENCIES)
    return repo


@pytest.fixture
def service(users):
    svc = UserDirectoryService()
    svc.users = users
    return svc


class TestDeleteUser:

    @pytest.mark.asyncio
    async def test_cannot_delete_self(self, service, users):
        with pytest.raises(BadRequestError, match="your own account"):
            await service.delete_user(actor_id=1, user_id=1)
        users.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_target(self, service):
        with pytest.raises(NotFoundError):
            await service.delete_user(actor_id=1, user_id=42)

    @pytest.mark.asyncio
    async def test_replacement_equal_to_target(self, service):
        with pytest.raises(BadRequestError, match="same as the user"):
            await service.delete_user(actor_id=1, user_id=2, reassign_to_user_id=2)

    @pytest.mark.asyncio
    async def test_dependencies_without_replacement(self, service, users):
        users.count_dependencies.return_value = {
            "assigned_tasks": 2, "created_tasks": 0, "comments": 1, "activities": 4,
        }

        with pytest.raises(BadRequestError) as exc_info:
            await service.delete_user(actor_id=1, user_id=2)

        assert exc_info.value.to_dict()["dependencies"] == {
            "assignedTasks": 2, "createdTasks": 0, "comments": 1, "activities": 4,
        }
        users.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_replacement(self, service, users):
        with pytest.raises(BadRequestError, match="Replacement user not found"):
            await service.delete_user(actor_id=1, user_id=2, reassign_to_user_id=77)
        users.reassign_and_delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_reassign_and_delete(self, service, users):
        users.count_dependencies.return_value = {
            "assigned_tasks": 1, "created_tasks": 0, "comments": 0, "activities": 0,
        }

        message = await service.delete_user(actor_id=1, user_id=2, reassign_to_user_id=3)

        assert message == "User reassigned and deleted successfully."
        users.reassign_and_delete.assert_awaited_once_with(2, 3)
        users.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_plain_delete(self, service, users):
        message = await service.delete_user(actor_id=1, user_id=2)

        assert message == "User deleted successfully"
        users.delete.assert_awaited_once_with(2)

    @pytest.mark.asyncio
    async def test_constraint_race_is_bad_request(self, service, users):
        users.delete.side_effect = DatabaseConstraintError("still referenced")

        with pytest.raises(BadRequestError):
            await service.delete_user(actor_id=1, user_id=2)


class TestDependencies:

    @pytest.mark.asyncio
    async def test_totals(self, service, users):
        users.count_dependencies.return_value = {
            "assigned_tasks": 2, "created_tasks": 1, "comments": 3, "activities": 0,
        }

        report = await service.get_dependencies(2)

        assert report["total_tasks"] == 3
        assert report["total_dependencies"] == 6
        assert report["has_dependencies"] is True

    @pytest.mark.asyncio
    async def test_no_dependencies(self, service):
        report = await service.get_dependencies(3)

        assert report["total_dependencies"] == 0
        assert report["has_dependencies"] is False


class TestUpdateUser:

    @pytest.mark.asyncio
    async def test_email_taken(self, service, users):
        users.email_in_use.return_value = True

        with pytest.raises(BadRequestError, match="Email already in use"):
            await service.update_user(2, email="mentor@example.com")

    @pytest.mark.asyncio
    async def test_unknown_role_ignored(self, service, users):
        users.update.return_value = SimpleNamespace(id=2)

        await service.update_user(2, full_name="New Name", role="Overlord")

        users.update.assert_awaited_once_with(2, full_name="New Name", email=None, role=None)

    @pytest.mark.asyncio
    async def test_unchanged_email_not_checked(self, service, users):
        users.update.return_value = SimpleNamespace(id=2)

        await service.update_user(2, email="intern@example.com", role="mentor")

        users.email_in_use.assert_not_called()
        users.update.assert_awaited_once_with(2, full_name=None, email=None, role="Mentor")
