"""Request models for the HTTP API."""

from .api_validation import (
    RegisterRequest,
    LoginRequest,
    CreateTaskRequest,
    ReviewTaskRequest,
    SendMessageRequest,
    StartConversationRequest,
    CreateUserRequest,
    UpdateUserRequest,
    UpdateProfileRequest,
    ChangePasswordRequest,
)

__all__ = [
    "RegisterRequest",
    "LoginRequest",
    "CreateTaskRequest",
    "ReviewTaskRequest",
    "SendMessageRequest",
    "StartConversationRequest",
    "CreateUserRequest",
    "UpdateUserRequest",
    "UpdateProfileRequest",
    "ChangePasswordRequest",
]
