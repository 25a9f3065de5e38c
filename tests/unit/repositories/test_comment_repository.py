"""Unit tests for CommentRepository."""

import pytest
from datetime import timedelta

from internos.database.repositories.comments import CommentRepository
from internos.database.repositories.tasks import TaskRepository
from internos.database.models import UserRoleEnum
from internos.database.exceptions import EntityNotFoundError
from internos.utils.datetime_utils import utc_now


@pytest.fixture
def repo(sqlite_db):
    return CommentRepository(sqlite_db)


@pytest.mark.asyncio
async def test_thread_is_oldest_first_with_author(repo, sqlite_db, make_user):
    mentor = await make_user(UserRoleEnum.MENTOR, full_name="Grace Hopper")
    intern = await make_user(UserRoleEnum.INTERN, full_name="Alan Turing")
    task = await TaskRepository(sqlite_db).create("Comment target", "", intern.id, mentor.id)

    await repo.add(task.id, intern.id, "question")
    await repo.add(task.id, mentor.id, "answer")

    thread = await repo.get_by_task(task.id)

    assert [c.content for c in thread] == ["question", "answer"]
    assert [c.user.full_name for c in thread] == ["Alan Turing", "Grace Hopper"]


@pytest.mark.asyncio
async def test_add_to_missing_task(repo, make_user):
    intern = await make_user(UserRoleEnum.INTERN)

    with pytest.raises(EntityNotFoundError):
        await repo.add(42, intern.id, "anyone there?")


@pytest.mark.asyncio
async def test_count_since(repo, sqlite_db, make_user):
    mentor = await make_user(UserRoleEnum.MENTOR)
    intern = await make_user(UserRoleEnum.INTERN)
    task = await TaskRepository(sqlite_db).create("Counted", "", intern.id, mentor.id)
    await repo.add(task.id, intern.id, "one")
    await repo.add(task.id, intern.id, "two")

    assert await repo.count_since(utc_now() - timedelta(hours=1)) == 2
    assert await repo.count_since(utc_now() + timedelta(hours=1)) == 0
