"""
Repository classes for database operations.

Each repository handles CRUD and complex queries for its entity type.
"""

from .users import UserRepository, get_user_repository
from .tasks import TaskRepository, get_task_repository
from .comments import CommentRepository, get_comment_repository
from .activity import ActivityRepository, get_activity_repository
from .messages import MessageRepository, get_message_repository

__all__ = [
    "UserRepository",
    "get_user_repository",
    "TaskRepository",
    "get_task_repository",
    "CommentRepository",
    "get_comment_repository",
    "ActivityRepository",
    "get_activity_repository",
    "MessageRepository",
    "get_message_repository",
]
