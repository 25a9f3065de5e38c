"""
Unit tests for UserRepository, including reassign-and-delete atomicity.
"""

import pytest

from internos.database.repositories.users import UserRepository
from internos.database.repositories.tasks import TaskRepository
from internos.database.repositories.comments import CommentRepository
from internos.database.repositories.messages import MessageRepository
from internos.database.models import UserRoleEnum
from internos.database.exceptions import (
    DatabaseConstraintError,
    DatabaseOperationError,
    EntityNotFoundError,
)


@pytest.fixture
def repo(sqlite_db):
    return UserRepository(sqlite_db)


async def _seed_work(sqlite_db, mentor, intern):
    """One task from mentor to intern, a comment by each, a message each way."""
    task = await TaskRepository(sqlite_db).create("Seeded task", "", intern.id, mentor.id)
    comments = CommentRepository(sqlite_db)
    await comments.add(task.id, intern.id, "on it")
    await comments.add(task.id, mentor.id, "thanks")
    messages = MessageRepository(sqlite_db)
    await messages.add(mentor.id, intern.id, "hello")
    await messages.add(intern.id, mentor.id, "hi")
    return task


# ============================================================
# CRUD TESTS
# ============================================================

@pytest.mark.asyncio
async def test_create_and_lookup(repo):
    user = await repo.create("Ada Lovelace", "ada@example.com", "hash", UserRoleEnum.MENTOR)

    assert user.id is not None
    assert user.role == "Mentor"
    assert (await repo.get_by_id(user.id)).email == "ada@example.com"
    assert (await repo.get_by_email("ada@example.com")).id == user.id
    assert (await repo.get_by_email("  ADA@Example.COM ")).id == user.id
    assert await repo.get_by_email("ada@example.org") is None


@pytest.mark.asyncio
async def test_create_duplicate_email(repo):
    await repo.create("First", "dup@example.com", "hash")

    with pytest.raises(DatabaseConstraintError):
        await repo.create("Second", "dup@example.com", "hash")


@pytest.mark.asyncio
async def test_email_in_use_excludes_self(repo):
    user = await repo.create("Owner", "owner@example.com", "hash")

    assert await repo.email_in_use("owner@example.com")
    assert not await repo.email_in_use("owner@example.com", exclude_id=user.id)
    assert not await repo.email_in_use("nobody@example.com")


@pytest.mark.asyncio
async def test_list_by_role(repo, make_user):
    await make_user(UserRoleEnum.INTERN, full_name="Zed")
    await make_user(UserRoleEnum.INTERN, full_name="Amy")
    await make_user(UserRoleEnum.MENTOR)

    interns = await repo.list_by_role(UserRoleEnum.INTERN)

    assert [u.full_name for u in interns] == ["Amy", "Zed"]
    assert len(await repo.list_all()) == 3


@pytest.mark.asyncio
async def test_update_skips_none(repo, make_user):
    user = await make_user(UserRoleEnum.INTERN, full_name="Before")

    updated = await repo.update(user.id, full_name="After", email=None, role=None)

    assert updated.full_name == "After"
    assert updated.email == user.email
    assert await repo.update(999, full_name="Ghost") is None


@pytest.mark.asyncio
async def test_count_by_role_zero_filled(repo, make_user):
    await make_user(UserRoleEnum.INTERN)

    assert await repo.count_by_role() == {"Admin": 0, "Mentor": 0, "Intern": 1}


# ============================================================
# DELETION TESTS
# ============================================================

@pytest.mark.asyncio
async def test_count_dependencies(repo, sqlite_db, make_user):
    mentor = await make_user(UserRoleEnum.MENTOR)
    intern = await make_user(UserRoleEnum.INTERN)
    await _seed_work(sqlite_db, mentor, intern)

    assert await repo.count_dependencies(mentor.id) == {
        "assigned_tasks": 0,
        "created_tasks": 1,
        "comments": 1,
        "activities": 1,
    }
    assert await repo.count_dependencies(intern.id) == {
        "assigned_tasks": 1,
        "created_tasks": 0,
        "comments": 1,
        "activities": 0,
    }


@pytest.mark.asyncio
async def test_delete_user_without_dependencies(repo, sqlite_db, make_user):
    """Outright deletion also drops the user's direct messages."""
    lonely = await make_user(UserRoleEnum.INTERN)
    other = await make_user(UserRoleEnum.MENTOR)
    await MessageRepository(sqlite_db).add(other.id, lonely.id, "welcome")

    assert await repo.delete(lonely.id) is True
    assert await repo.get_by_id(lonely.id) is None
    assert await MessageRepository(sqlite_db).get_for_user(other.id) == []
    assert await repo.delete(lonely.id) is False


@pytest.mark.asyncio
async def test_delete_user_with_dependencies_is_rejected(repo, sqlite_db, make_user):
    mentor = await make_user(UserRoleEnum.MENTOR)
    intern = await make_user(UserRoleEnum.INTERN)
    await _seed_work(sqlite_db, mentor, intern)

    with pytest.raises(DatabaseConstraintError):
        await repo.delete(intern.id)

    # Rolled back: the user and their messages are still there
    assert await repo.get_by_id(intern.id) is not None
    assert len(await MessageRepository(sqlite_db).get_for_user(intern.id)) == 2


@pytest.mark.asyncio
async def test_reassign_and_delete(repo, sqlite_db, make_user):
    mentor = await make_user(UserRoleEnum.MENTOR)
    intern = await make_user(UserRoleEnum.INTERN)
    replacement = await make_user(UserRoleEnum.INTERN)
    task = await _seed_work(sqlite_db, mentor, intern)

    moved = await repo.reassign_and_delete(intern.id, replacement.id)

    assert moved == {"assigned_tasks": 1, "created_tasks": 0, "comments": 1, "activities": 0}
    assert await repo.get_by_id(intern.id) is None
    assert (await TaskRepository(sqlite_db).get_by_id(task.id)).assigned_to_user_id == replacement.id

    thread = await CommentRepository(sqlite_db).get_by_task(task.id)
    assert {c.user_id for c in thread} == {mentor.id, replacement.id}

    assert await MessageRepository(sqlite_db).get_for_user(mentor.id) == []


@pytest.mark.asyncio
async def test_reassign_and_delete_missing_users(repo, make_user):
    user = await make_user(UserRoleEnum.INTERN)

    with pytest.raises(EntityNotFoundError):
        await repo.reassign_and_delete(999, user.id)

    with pytest.raises(EntityNotFoundError):
        await repo.reassign_and_delete(user.id, 999)


@pytest.mark.asyncio
async def test_reassign_and_delete_is_atomic(repo, sqlite_db, make_user, monkeypatch):
    """A failure on the final step leaves every dependent row where it was."""
    mentor = await make_user(UserRoleEnum.MENTOR)
    intern = await make_user(UserRoleEnum.INTERN)
    replacement = await make_user(UserRoleEnum.INTERN)
    await _seed_work(sqlite_db, mentor, intern)
    before = await repo.count_dependencies(intern.id)

    async def _boom(session, user_id):
        raise RuntimeError("disk full")

    monkeypatch.setattr(UserRepository, "_remove_user", staticmethod(_boom))

    with pytest.raises(DatabaseOperationError):
        await repo.reassign_and_delete(intern.id, replacement.id)

    assert await repo.get_by_id(intern.id) is not None
    assert await repo.count_dependencies(intern.id) == before
    assert await repo.count_dependencies(replacement.id) == {
        "assigned_tasks": 0,
        "created_tasks": 0,
        "comments": 0,
        "activities": 0,
    }
    assert len(await MessageRepository(sqlite_db).get_for_user(intern.id)) == 2


@pytest.mark.asyncio
async def test_email_in_use_ignores_case(repo):
    await repo.create("Owner", "Owner@example.com", "hash")

    assert await repo.email_in_use("owner@EXAMPLE.com")
