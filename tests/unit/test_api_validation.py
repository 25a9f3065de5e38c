"""
Tests for API input validation models (api_validation.py).
"""

import pytest
from pydantic import ValidationError
from internos.models.api_validation import (
    RegisterRequest,
    CreateTaskRequest,
    ReviewTaskRequest,
    SendMessageRequest,
    UpdateUserRequest,
    UpdateProfileRequest,
    ChangePasswordRequest,
)


class TestRegisterRequest:
    """Tests for RegisterRequest."""

    def test_camel_case_fields(self):
        data = RegisterRequest(**{"fullName": "  Ada  ", "email": "ada@example.com", "password": "x"})
        assert data.full_name == "Ada"
        assert data.role == "Intern"

    def test_snake_case_also_accepted(self):
        data = RegisterRequest(full_name="Ada", email="ada@example.com", password="x", role="Mentor")
        assert data.role == "Mentor"

    def test_long_unknown_role_is_accepted(self):
        data = RegisterRequest(fullName="Ada", email="ada@example.com", password="x", role="SeniorStaffEngineerLead")
        assert data.role == "SeniorStaffEngineerLead"

    def test_blank_name(self):
        with pytest.raises(ValidationError):
            RegisterRequest(fullName="   ", email="ada@example.com", password="x")

    def test_bad_email(self):
        with pytest.raises(ValidationError):
            RegisterRequest(fullName="Ada", email="ada-at-example", password="x")


class TestCreateTaskRequest:
    """Tests for CreateTaskRequest."""

    def test_valid(self):
        data = CreateTaskRequest(
            title="  Write docs  ", description="", assignedToUserId=3, dueDate="2026-05-01T09:00:00Z"
        )
        assert data.title == "Write docs"
        assert data.assigned_to_user_id == 3
        assert data.due_date.year == 2026

    @pytest.mark.parametrize("title", ["abc", "   abcd   ", "x" * 101])
    def test_title_length(self, title):
        with pytest.raises(ValidationError):
            CreateTaskRequest(title=title, description="", assignedToUserId=1)

    def test_assignee_must_be_positive(self):
        with pytest.raises(ValidationError):
            CreateTaskRequest(title="Valid title", description="", assignedToUserId=0)

    def test_description_required(self):
        with pytest.raises(ValidationError):
            CreateTaskRequest(title="Valid title", assignedToUserId=1)


class TestOtherRequests:

    def test_review_feedback_optional(self):
        assert ReviewTaskRequest(approved=True).feedback is None

    def test_message_conversation_id_ignored(self):
        data = SendMessageRequest(recipientUserId=4, content="hi", conversationId="conv-1-4")
        assert data.recipient_user_id == 4

    def test_update_user_empty_email(self):
        assert UpdateUserRequest(email="").email is None
        assert UpdateUserRequest(email="  ").email is None

    def test_profile_name_min_length(self):
        with pytest.raises(ValidationError):
            UpdateProfileRequest(fullName=" a ", email="a@example.com")

    def test_new_password_min_length(self):
        with pytest.raises(ValidationError):
            ChangePasswordRequest(oldPassword="old", newPassword="short")
