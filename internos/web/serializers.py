"""
Response shapes for the HTTP API.

Keys are camelCase and timestamps are ISO-8601 with an explicit UTC offset.
"""

from typing import Dict, Any, Optional

from ..database.models import UserDB, TaskDB, CommentDB, ActivityLogDB, TaskStatusEnum
from ..services.messaging import ConversationSummary, MessageView
from ..services.storage import StoredFile, public_url
from ..utils.datetime_utils import isoformat_utc


def user_to_dict(user: UserDB) -> Dict[str, Any]:
    return {
        "id": user.id,
        "fullName": user.full_name,
        "email": user.email,
        "role": user.role,
    }


def task_to_dict(task: TaskDB) -> Dict[str, Any]:
    status = TaskStatusEnum(task.status)
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "status": status.value,
        "statusCode": status.code,
        "assignedToUserId": task.assigned_to_user_id,
        "createdByUserId": task.created_by_user_id,
        "createdAt": isoformat_utc(task.created_at),
        "dueDate": isoformat_utc(task.due_date),
        "completedAt": isoformat_utc(task.completed_at),
    }


def task_summary_to_dict(summary: Dict[str, Any]) -> Dict[str, Any]:
    """Task list entry with its comment rollup."""
    return {
        **task_to_dict(summary["task"]),
        "commentCount": summary["comment_count"],
        "latestComment": summary["latest_comment"],
    }


def comment_to_dict(comment: CommentDB) -> Dict[str, Any]:
    return {
        "id": comment.id,
        "content": comment.content,
        "createdAt": isoformat_utc(comment.created_at),
        "userName": comment.user.full_name if comment.user else "Unknown",
    }


def activity_to_dict(entry: ActivityLogDB) -> Dict[str, Any]:
    return {
        "id": entry.id,
        "action": entry.action,
        "timestamp": isoformat_utc(entry.timestamp),
        "userName": entry.user.full_name if entry.user else "Unknown",
        "taskTitle": entry.task.title if entry.task else "N/A",
    }


def message_to_dict(message: MessageView) -> Dict[str, Any]:
    return {
        "id": message.id,
        "conversationId": message.conversation_id,
        "senderId": message.sender_id,
        "senderName": message.sender_name,
        "senderRole": message.sender_role,
        "recipientId": message.recipient_id,
        "content": message.content,
        "createdAt": isoformat_utc(message.created_at),
    }


def conversation_to_dict(conversation: ConversationSummary) -> Dict[str, Any]:
    return {
        "id": conversation.id,
        "participantIds": conversation.participant_ids,
        "participantNames": conversation.participant_names,
        "participantRoles": conversation.participant_roles,
        "lastMessage": conversation.last_message,
        "lastMessageAt": isoformat_utc(conversation.last_message_at),
    }


def stored_file_to_dict(stored: StoredFile, base_url: str) -> Dict[str, Any]:
    return {
        "fileName": stored.name,
        "fileUrl": public_url(base_url, stored.relative_url),
        "sizeBytes": stored.size_bytes,
        "uploadedAt": isoformat_utc(stored.uploaded_at),
    }


def photo_url(stored: Optional[StoredFile], base_url: str) -> Optional[str]:
    return public_url(base_url, stored.relative_url) if stored else None
