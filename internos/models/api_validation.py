"""
Pydantic models for API request bodies.

Field names are snake_case in Python and camelCase on the wire.
Validation failures surface as 400 {"message": "Validation failed.", "errors": [...]}.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, EmailStr, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts camelCase (wire) or snake_case (Python) field names."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _strip_required(value: str, field_name: str) -> str:
    stripped = value.strip()
    if not stripped:
        raise ValueError(f"{field_name} cannot be empty")
    return stripped


# ============================================
# AUTH
# ============================================

class RegisterRequest(CamelModel):
    """Self-service registration."""
    full_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=100)
    role: Optional[str] = "Intern"

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v):
        return _strip_required(v, "fullName")


class LoginRequest(CamelModel):
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=100)


# ============================================
# TASKS
# ============================================

class CreateTaskRequest(CamelModel):
    """Validation for task creation (POST /api/tasks)."""
    title: str = Field(..., min_length=5, max_length=100)
    description: str
    assigned_to_user_id: int = Field(..., ge=1)
    due_date: Optional[datetime] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        stripped = v.strip()
        if len(stripped) < 5:
            raise ValueError("Title must be between 5 and 100 characters")
        return stripped


class ReviewTaskRequest(CamelModel):
    approved: bool
    feedback: Optional[str] = Field(None, max_length=2000)


# ============================================
# MESSAGES
# ============================================

class SendMessageRequest(CamelModel):
    """Content is checked for blankness by the service, which answers 400."""
    recipient_user_id: int
    content: Optional[str] = Field(None, max_length=5000)
    # Ignored; the conversation is derived from the two participants
    conversation_id: Optional[str] = None


class StartConversationRequest(CamelModel):
    participant_user_id: int


# ============================================
# USER DIRECTORY
# ============================================

class CreateUserRequest(CamelModel):
    """Admin-created account."""
    full_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=100)
    role: Optional[str] = "Intern"

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v):
        return _strip_required(v, "fullName")


class UpdateUserRequest(CamelModel):
    """Partial update; omitted or empty fields are left unchanged."""
    full_name: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    role: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def empty_email_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


# ============================================
# PROFILE
# ============================================

class UpdateProfileRequest(CamelModel):
    full_name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v):
        stripped = v.strip()
        if len(stripped) < 2:
            raise ValueError("fullName must be at least 2 characters after stripping")
        return stripped


class ChangePasswordRequest(CamelModel):
    old_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=100)
