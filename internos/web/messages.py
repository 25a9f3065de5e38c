"""Direct messaging routes."""

from fastapi import APIRouter, Depends

from ..models.api_validation import SendMessageRequest, StartConversationRequest
from ..security.dependencies import CurrentUser, get_current_user
from ..services.messaging import get_messaging_service
from .serializers import message_to_dict, conversation_to_dict

router = APIRouter(prefix="/api/messages", tags=["messages"])


@router.get("/conversations")
async def get_conversations(user: CurrentUser = Depends(get_current_user)):
    """The caller's conversations, most recently active first."""
    conversations = await get_messaging_service().list_conversations(user.user_id)
    return [conversation_to_dict(c) for c in conversations]


@router.get("/conversations/{conversation_id}")
async def get_conversation_messages(
    conversation_id: str,
    user: CurrentUser = Depends(get_current_user),
):
    messages = await get_messaging_service().get_conversation_messages(user.user_id, conversation_id)
    return [message_to_dict(m) for m in messages]


@router.post("/conversations")
async def start_conversation(
    data: StartConversationRequest,
    user: CurrentUser = Depends(get_current_user),
):
    conversation = await get_messaging_service().start_conversation(
        user.user_id, data.participant_user_id
    )
    return conversation_to_dict(conversation)


@router.post("")
async def send_message(data: SendMessageRequest, user: CurrentUser = Depends(get_current_user)):
    message = await get_messaging_service().send_message(
        user.user_id, data.recipient_user_id, data.content
    )
    return message_to_dict(message)
