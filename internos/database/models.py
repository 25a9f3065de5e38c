"""
SQLAlchemy models for the relational store.

Schema includes:
- Users with roles (Admin, Mentor, Intern)
- Tasks assigned to interns, with a four-state lifecycle
- Comments per task
- Activity logs (append-only audit trail)
- Direct messages between two users
"""

from datetime import datetime
from typing import Optional, List
from sqlalchemy import (
    String,
    Text,
    Integer,
    DateTime,
    ForeignKey,
    Index,
)
from sqlalchemy.orm import DeclarativeBase, relationship, Mapped, mapped_column
import enum

from ..utils.datetime_utils import utc_now


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


# ==================== ENUMS ====================

class UserRoleEnum(str, enum.Enum):
    ADMIN = "Admin"
    MENTOR = "Mentor"
    INTERN = "Intern"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["UserRoleEnum"]:
        """Case-insensitive lookup by name. Returns None when unparseable."""
        if not value or not isinstance(value, str):
            return None
        wanted = value.strip().lower()
        for role in cls:
            if role.value.lower() == wanted:
                return role
        return None


class TaskStatusEnum(str, enum.Enum):
    PENDING = "Pending"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    SUBMITTED = "Submitted"

    @property
    def code(self) -> int:
        """Integer code used by the web clients."""
        return _STATUS_CODES[self]

    @classmethod
    def from_code(cls, code: int) -> Optional["TaskStatusEnum"]:
        for status, status_code in _STATUS_CODES.items():
            if status_code == code:
                return status
        return None

    @classmethod
    def parse(cls, value) -> Optional["TaskStatusEnum"]:
        """Accept an integer code, a numeric string or a status name."""
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return cls.from_code(value)
        if isinstance(value, str):
            stripped = value.strip()
            if stripped.lstrip("-").isdigit():
                return cls.from_code(int(stripped))
            for status in cls:
                if status.value.lower() == stripped.lower():
                    return status
        return None


_STATUS_CODES = {
    TaskStatusEnum.PENDING: 0,
    TaskStatusEnum.IN_PROGRESS: 1,
    TaskStatusEnum.COMPLETED: 2,
    TaskStatusEnum.SUBMITTED: 3,
}


# ==================== USERS ====================

class UserDB(Base):
    """User accounts."""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    full_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), default=UserRoleEnum.INTERN.value)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)

    # Relationships
    assigned_tasks: Mapped[List["TaskDB"]] = relationship(
        "TaskDB",
        foreign_keys="TaskDB.assigned_to_user_id",
        back_populates="assigned_to",
    )

    __table_args__ = (
        Index("idx_users_email", "email", unique=True),
        Index("idx_users_role", "role"),
    )


# ==================== TASKS ====================

class TaskDB(Base):
    """Tasks assigned by admins or mentors to interns."""
    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Core fields
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(String(20), default=TaskStatusEnum.PENDING.value)

    # Timing
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Assignment
    assigned_to_user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    created_by_user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )

    # Relationships
    assigned_to: Mapped["UserDB"] = relationship(
        "UserDB", foreign_keys=[assigned_to_user_id], back_populates="assigned_tasks"
    )
    created_by: Mapped["UserDB"] = relationship("UserDB", foreign_keys=[created_by_user_id])
    comments: Mapped[List["CommentDB"]] = relationship(
        "CommentDB",
        back_populates="task",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_tasks_status", "status"),
        Index("idx_tasks_assignee", "assigned_to_user_id"),
        Index("idx_tasks_creator", "created_by_user_id"),
        Index("idx_tasks_due_date", "due_date"),
        Index("idx_tasks_created", "created_at"),
    )


# ==================== COMMENTS ====================

class CommentDB(Base):
    """Comment thread entries on a task."""
    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)

    task_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)

    # Relationships
    task: Mapped["TaskDB"] = relationship("TaskDB", back_populates="comments")
    user: Mapped["UserDB"] = relationship("UserDB")

    __table_args__ = (
        Index("idx_comments_task", "task_id"),
        Index("idx_comments_user", "user_id"),
        Index("idx_comments_created", "created_at"),
    )


# ==================== ACTIVITY LOGS ====================

class ActivityLogDB(Base):
    """Append-only audit trail of user and task actions."""
    __tablename__ = "activity_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    action: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=utc_now)

    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    # Null for user-scoped actions and after the task is deleted
    task_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True
    )

    # Relationships
    user: Mapped[Optional["UserDB"]] = relationship("UserDB")
    task: Mapped[Optional["TaskDB"]] = relationship("TaskDB")

    __table_args__ = (
        Index("idx_activity_user", "user_id"),
        Index("idx_activity_task", "task_id"),
        Index("idx_activity_timestamp", "timestamp"),
    )


# ==================== MESSAGES ====================

class MessageDB(Base):
    """Direct message between two users. Conversations are derived, not stored."""
    __tablename__ = "messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sender_user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    recipient_user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)

    # Relationships
    sender: Mapped["UserDB"] = relationship("UserDB", foreign_keys=[sender_user_id])
    recipient: Mapped["UserDB"] = relationship("UserDB", foreign_keys=[recipient_user_id])

    __table_args__ = (
        Index("idx_msg_sender", "sender_user_id"),
        Index("idx_msg_recipient", "recipient_user_id"),
        Index("idx_msg_created", "created_at"),
    )
