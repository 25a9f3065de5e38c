"""
Direct messaging between two users.

Conversations are not stored. A conversation id is derived from the sorted
pair of participant ids ("conv-{low}-{high}") and messages are grouped by
it at read time.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, List, Tuple, Dict

from ..database.repositories.messages import get_message_repository, MessageRepository
from ..database.repositories.users import get_user_repository, UserRepository
from ..database.models import MessageDB, UserDB
from ..utils.datetime_utils import utc_now
from .exceptions import BadRequestError, ForbiddenError, NotFoundError, UnauthorizedError

logger = logging.getLogger(__name__)

_CONVERSATION_ID = re.compile(r"^conv-(\d+)-(\d+)$", re.IGNORECASE)


def build_conversation_id(user_id_a: int, user_id_b: int) -> str:
    """Order-independent id for the conversation between two users."""
    low, high = sorted((user_id_a, user_id_b))
    return f"conv-{low}-{high}"


def parse_conversation_id(conversation_id: Optional[str]) -> Tuple[int, int]:
    """
    Inverse of build_conversation_id.

    Raises:
        BadRequestError: If the id is not of the form conv-<int>-<int>
    """
    match = _CONVERSATION_ID.match((conversation_id or "").strip())
    if not match:
        raise BadRequestError("Invalid conversation id.")
    return int(match.group(1)), int(match.group(2))


@dataclass
class ConversationSummary:
    id: str
    participant_ids: List[int]
    participant_names: List[str]
    participant_roles: List[str]
    last_message: str
    last_message_at: datetime


@dataclass
class MessageView:
    id: str
    conversation_id: str
    sender_id: int
    sender_name: str
    sender_role: str
    recipient_id: int
    content: str
    created_at: datetime

    @classmethod
    def from_db(cls, message: MessageDB, sender: Optional[UserDB] = None) -> "MessageView":
        sender = sender or message.sender
        return cls(
            id=f"msg-{message.id}",
            conversation_id=build_conversation_id(message.sender_user_id, message.recipient_user_id),
            sender_id=message.sender_user_id,
            sender_name=sender.full_name,
            sender_role=sender.role,
            recipient_id=message.recipient_user_id,
            content=message.content,
            created_at=message.created_at,
        )


def group_conversations(user: UserDB, messages: List[MessageDB]) -> List[ConversationSummary]:
    """
    Collapse a user's messages into one summary per conversation.

    The newest message of each group becomes its preview; groups are sorted
    by that message's time, newest first.
    """
    latest: Dict[str, MessageDB] = {}
    for message in messages:
        key = build_conversation_id(message.sender_user_id, message.recipient_user_id)
        current = latest.get(key)
        if current is None or (message.created_at, message.id) > (current.created_at, current.id):
            latest[key] = message

    summaries = []
    for key, message in latest.items():
        partner = message.recipient if message.sender_user_id == user.id else message.sender
        summaries.append(ConversationSummary(
            id=key,
            participant_ids=[user.id, partner.id],
            participant_names=[user.full_name, partner.full_name],
            participant_roles=[user.role, partner.role],
            last_message=message.content,
            last_message_at=message.created_at,
        ))

    summaries.sort(key=lambda c: c.last_message_at, reverse=True)
    return summaries


class MessagingService:
    """Service for direct messages."""

    def __init__(self):
        self.messages: MessageRepository = get_message_repository()
        self.users: UserRepository = get_user_repository()

    async def _participants(self, caller_id: int, other_id: int) -> Tuple[UserDB, UserDB]:
        """Validate a caller/partner pair and load both users."""
        if other_id <= 0:
            raise BadRequestError("Invalid participant user id.")
        if caller_id == other_id:
            raise BadRequestError("Cannot start a conversation with yourself.")

        caller = await self.users.get_by_id(caller_id)
        other = await self.users.get_by_id(other_id)
        if not caller or not other:
            raise NotFoundError("User not found.")
        return caller, other

    async def send_message(self, sender_id: int, recipient_id: int, content: Optional[str]) -> MessageView:
        """
        Store a message from the caller.

        Raises:
            BadRequestError: Bad recipient id, blank content or self-message
            NotFoundError: If either party does not exist
        """
        if recipient_id <= 0:
            raise BadRequestError("Invalid recipient user id.")
        if not content or not content.strip():
            raise BadRequestError("Message content is required.")
        if sender_id == recipient_id:
            raise BadRequestError("Cannot send a message to yourself.")

        sender, _ = await self._participants(sender_id, recipient_id)

        saved = await self.messages.add(sender_id, recipient_id, content.strip())
        return MessageView.from_db(saved, sender=sender)

    async def start_conversation(self, caller_id: int, participant_id: int) -> ConversationSummary:
        """Summary for a new conversation. Nothing is persisted."""
        caller, partner = await self._participants(caller_id, participant_id)

        return ConversationSummary(
            id=build_conversation_id(caller_id, participant_id),
            participant_ids=[caller.id, partner.id],
            participant_names=[caller.full_name, partner.full_name],
            participant_roles=[caller.role, partner.role],
            last_message="Conversation started",
            last_message_at=utc_now(),
        )

    async def list_conversations(self, caller_id: int) -> List[ConversationSummary]:
        caller = await self.users.get_by_id(caller_id)
        if not caller:
            raise UnauthorizedError("User no longer exists.")

        messages = await self.messages.get_for_user(caller_id)
        return group_conversations(caller, messages)

    async def get_conversation_messages(self, caller_id: int, conversation_id: str) -> List[MessageView]:
        """
        Messages in a conversation, oldest first.

        Raises:
            BadRequestError: If the id is malformed
            ForbiddenError: If the caller is not a participant
        """
        user_a, user_b = parse_conversation_id(conversation_id)
        if caller_id not in (user_a, user_b):
            raise ForbiddenError("You are not a participant in this conversation.")

        messages = await self.messages.get_for_conversation(user_a, user_b)
        return [MessageView.from_db(m) for m in messages]


# Singleton
_messaging_service: Optional[MessagingService] = None


def get_messaging_service() -> MessagingService:
    """Get the messaging service singleton."""
    global _messaging_service
    if _messaging_service is None:
        _messaging_service = MessagingService()
    return _messaging_service
