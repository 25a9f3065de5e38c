"""
Tests for internos/services/messaging.py

Conversation id helpers are pure; the service runs against SQLite.
"""

from datetime import datetime
from types import SimpleNamespace

import pytest

from internos.database.models import UserRoleEnum
from internos.services.exceptions import BadRequestError, ForbiddenError, NotFoundError, UnauthorizedError
from internos.services.messaging import (
    MessagingService,
    build_conversation_id,
    parse_conversation_id,
    group_conversations,
)


class TestConversationIds:

    def test_build_is_order_independent(self):
        assert build_conversation_id(7, 3) == "conv-3-7"
        assert build_conversation_id(3, 7) == "conv-3-7"

    def test_parse(self):
        assert parse_conversation_id("conv-3-7") == (3, 7)
        assert parse_conversation_id("CONV-10-2") == (10, 2)

    @pytest.mark.parametrize("bad", [None, "", "abc", "conv-3", "conv-a-b", "conv--1-2", "conv-1-2-3"])
    def test_parse_rejects_malformed(self, bad):
        with pytest.raises(BadRequestError):
            parse_conversation_id(bad)


class TestGroupConversations:

    def _user(self, id, name, role="Intern"):
        return SimpleNamespace(id=id, full_name=name, role=role)

    def _message(self, id, sender, recipient, content, minute):
        return SimpleNamespace(
            id=id,
            sender_user_id=sender.id,
            recipient_user_id=recipient.id,
            sender=sender,
            recipient=recipient,
            content=content,
            created_at=datetime(2026, 3, 1, 12, minute),
        )

    def test_one_summary_per_partner_newest_first(self):
        me = self._user(1, "Me")
        bob = self._user(2, "Bob", "Mentor")
        cat = self._user(3, "Cat", "Admin")
        messages = [
            self._message(1, me, bob, "hi bob", 0),
            self._message(2, bob, me, "hey", 5),
            self._message(3, cat, me, "welcome", 3),
        ]

        summaries = group_conversations(me, messages)

        assert [s.id for s in summaries] == ["conv-1-2", "conv-1-3"]
        assert summaries[0].last_message == "hey"
        assert summaries[0].participant_ids == [1, 2]
        assert summaries[0].participant_names == ["Me", "Bob"]
        assert summaries[1].participant_roles == ["Intern", "Admin"]

    def test_empty(self):
        assert group_conversations(self._user(1, "Me"), []) == []


# ============================================================
# SERVICE
# ============================================================

@pytest.fixture
def service(sqlite_db):
    return MessagingService()


@pytest.mark.asyncio
async def test_send_and_read_conversation(service, make_user):
    intern = await make_user(UserRoleEnum.INTERN, full_name="Ivy Intern")
    mentor = await make_user(UserRoleEnum.MENTOR, full_name="Max Mentor")

    sent = await service.send_message(intern.id, mentor.id, "  Can we pair today?  ")
    await service.send_message(mentor.id, intern.id, "Sure, 3pm")

    assert sent.content == "Can we pair today?"
    assert sent.sender_name == "Ivy Intern"
    assert sent.conversation_id == build_conversation_id(intern.id, mentor.id)
    assert sent.id.startswith("msg-")

    thread = await service.get_conversation_messages(mentor.id, sent.conversation_id)
    assert [m.content for m in thread] == ["Can we pair today?", "Sure, 3pm"]
    assert thread[1].sender_role == "Mentor"

    conversations = await service.list_conversations(intern.id)
    assert len(conversations) == 1
    assert conversations[0].last_message == "Sure, 3pm"


@pytest.mark.asyncio
async def test_send_validation(service, make_user):
    intern = await make_user(UserRoleEnum.INTERN)
    mentor = await make_user(UserRoleEnum.MENTOR)

    with pytest.raises(BadRequestError):
        await service.send_message(intern.id, mentor.id, "   ")
    with pytest.raises(BadRequestError):
        await service.send_message(intern.id, intern.id, "note to self")
    with pytest.raises(BadRequestError):
        await service.send_message(intern.id, 0, "hello")
    with pytest.raises(NotFoundError):
        await service.send_message(intern.id, 999, "hello")


@pytest.mark.asyncio
async def test_outsider_cannot_read(service, make_user):
    alice = await make_user(UserRoleEnum.INTERN)
    bob = await make_user(UserRoleEnum.MENTOR)
    eve = await make_user(UserRoleEnum.INTERN)
    await service.send_message(alice.id, bob.id, "private")

    with pytest.raises(ForbiddenError):
        await service.get_conversation_messages(eve.id, build_conversation_id(alice.id, bob.id))


@pytest.mark.asyncio
async def test_start_conversation_persists_nothing(service, make_user):
    intern = await make_user(UserRoleEnum.INTERN)
    mentor = await make_user(UserRoleEnum.MENTOR)

    summary = await service.start_conversation(intern.id, mentor.id)

    assert summary.id == build_conversation_id(intern.id, mentor.id)
    assert summary.last_message == "Conversation started"
    assert await service.list_conversations(intern.id) == []

    with pytest.raises(BadRequestError):
        await service.start_conversation(intern.id, intern.id)


@pytest.mark.asyncio
async def test_list_conversations_for_deleted_caller(service):
    with pytest.raises(UnauthorizedError):
        await service.list_conversations(999)
