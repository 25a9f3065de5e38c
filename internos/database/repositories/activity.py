"""
Activity log repository.

The activity log is append-only: entries are added as a side effect of task
and user mutations and are never edited, except that deleting a task nulls
the task reference and deleting a user with a replacement moves the actor.
"""

import logging
from typing import Optional, List

from sqlalchemy import select
from sqlalchemy.orm import selectinload
from sqlalchemy.ext.asyncio import AsyncSession

from .base import BaseRepository
from ..models import ActivityLogDB
from ...utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


class ActivityRepository(BaseRepository):
    """Repository for activity log operations."""

    @staticmethod
    def add_entry(
        session: AsyncSession,
        action: str,
        user_id: int,
        task_id: Optional[int] = None,
    ) -> ActivityLogDB:
        """Stage an entry on an open session so it commits with the mutation it describes."""
        entry = ActivityLogDB(
            action=action,
            user_id=user_id,
            task_id=task_id,
            timestamp=utc_now(),
        )
        session.add(entry)
        logger.debug(f"Activity: {action} by user {user_id} (task={task_id})")
        return entry

    async def get_logs(self, limit: Optional[int] = None) -> List[ActivityLogDB]:
        """All entries, newest first, with actor and task loaded."""
        async with self.db.session() as session:
            query = (
                select(ActivityLogDB)
                .options(
                    selectinload(ActivityLogDB.user),
                    selectinload(ActivityLogDB.task),
                )
                .order_by(ActivityLogDB.timestamp.desc(), ActivityLogDB.id.desc())
            )
            if limit:
                query = query.limit(limit)

            result = await session.execute(query)
            return list(result.scalars().all())

    async def get_recent(self, limit: int = 5) -> List[ActivityLogDB]:
        """Most recent entries (dashboard feed)."""
        return await self.get_logs(limit=limit)


# Singleton
_activity_repository: Optional[ActivityRepository] = None


def get_activity_repository() -> ActivityRepository:
    """Get the activity repository singleton."""
    global _activity_repository
    if _activity_repository is None:
        _activity_repository = ActivityRepository()
    return _activity_repository
