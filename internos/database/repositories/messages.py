"""
Message repository for direct messages.

There is no conversation table: a conversation is every message between the
same two users, grouped at query time.
"""

import logging
from typing import Optional, List

from sqlalchemy import select, and_, or_
from sqlalchemy.orm import selectinload
from sqlalchemy.exc import IntegrityError

from .base import BaseRepository
from ..models import MessageDB
from ..exceptions import DatabaseConstraintError
from ...utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


class MessageRepository(BaseRepository):
    """Repository for message operations."""

    async def add(self, sender_user_id: int, recipient_user_id: int, content: str) -> MessageDB:
        """Persist one message."""
        async with self.db.session() as session:
            try:
                message = MessageDB(
                    sender_user_id=sender_user_id,
                    recipient_user_id=recipient_user_id,
                    content=content,
                    created_at=utc_now(),
                )
                session.add(message)
                await session.flush()

                logger.info(f"Message {message.id}: {sender_user_id} -> {recipient_user_id}")
                return message

            except IntegrityError as e:
                logger.error(f"Constraint violation saving message: {e}")
                raise DatabaseConstraintError("Cannot save message: unknown sender or recipient") from e

    async def get_for_user(self, user_id: int) -> List[MessageDB]:
        """Every message sent or received by a user, newest first."""
        async with self.db.session() as session:
            result = await session.execute(
                select(MessageDB)
                .options(
                    selectinload(MessageDB.sender),
                    selectinload(MessageDB.recipient),
                )
                .where(
                    or_(
                        MessageDB.sender_user_id == user_id,
                        MessageDB.recipient_user_id == user_id,
                    )
                )
                .order_by(MessageDB.created_at.desc(), MessageDB.id.desc())
            )
            return list(result.scalars().all())

    async def get_for_conversation(self, user_id_a: int, user_id_b: int) -> List[MessageDB]:
        """Every message between two users, oldest first."""
        async with self.db.session() as session:
            result = await session.execute(
                select(MessageDB)
                .options(
                    selectinload(MessageDB.sender),
                    selectinload(MessageDB.recipient),
                )
                .where(
                    or_(
                        and_(
                            MessageDB.sender_user_id == user_id_a,
                            MessageDB.recipient_user_id == user_id_b,
                        ),
                        and_(
                            MessageDB.sender_user_id == user_id_b,
                            MessageDB.recipient_user_id == user_id_a,
                        ),
                    )
                )
                .order_by(MessageDB.created_at.asc(), MessageDB.id.asc())
            )
            return list(result.scalars().all())


# Singleton
_message_repository: Optional[MessageRepository] = None


def get_message_repository() -> MessageRepository:
    """Get the message repository singleton."""
    global _message_repository
    if _message_repository is None:
        _message_repository = MessageRepository()
    return _message_repository
