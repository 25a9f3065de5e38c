"""
Relational store for InternOS.

Handles:
- Users and roles
- Tasks with their four-state lifecycle
- Comment threads
- Activity logs (append-only audit trail)
- Direct messages
"""

from .connection import (
    get_database,
    set_database,
    Database,
    init_database,
    close_database,
)
from .models import (
    Base,
    UserDB,
    TaskDB,
    CommentDB,
    ActivityLogDB,
    MessageDB,
    UserRoleEnum,
    TaskStatusEnum,
)

__all__ = [
    "get_database",
    "set_database",
    "Database",
    "init_database",
    "close_database",
    "Base",
    "UserDB",
    "TaskDB",
    "CommentDB",
    "ActivityLogDB",
    "MessageDB",
    "UserRoleEnum",
    "TaskStatusEnum",
]
