from fastapi import APIRouter, Depends, HTTPException, status, WebSocket, Query
from sqlalchemy.ext.asyncio import AsyncSession
from config import get_db
from models import Conversation
from routers.auth.auth import get_current_user, authenticate_websocket
from routers.auth.session import AuthSession
from routers.profiles.helpers import profile_helpers
from dependencies.rbac import require_chat_read, require_chat_write
from utils.realtime import realtime_hub, stream_subscription
from utils.response_helpers import safe_model_validate, safe_model_validate_list
from .schemas import (
    ConversationCreate, MessageCreate, ConversationResponse, MessageResponse,
    ConversationListResponse, MarkReadResponse
)
from .helpers import chat_helpers
from typing import List, Optional
from uuid import UUID
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["Chat"])


async def load_conversation_for(
    db: AsyncSession,
    conversation_id: UUID,
    current_user: AuthSession,
    roles=("customer", "tailor", "admin")
) -> Conversation:
    current_user.require_role(*roles)
    conversation = await chat_helpers.get_conversation(db, conversation_id)
    if conversation is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Conversation not found"
        )
    if current_user.role != "admin":
        participant_id = conversation.customer_id if current_user.role == "customer" else conversation.tailor_id
        if str(participant_id) != current_user.profile_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You are not part of this conversation"
            )
    return conversation


@router.post("/conversations", response_model=ConversationResponse)
async def get_or_create_conversation(
    conversation_data: ConversationCreate,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_chat_write)
):
    """
    Open the conversation with a tailor (as a customer) or with a customer
    (as a tailor). The same pair always gets the same conversation.
    """
    try:
        profile = current_user.require_role("customer", "tailor")

        if current_user.role == "customer":
            if conversation_data.tailor_id is None:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="tailor_id is required"
                )
            counterpart = await profile_helpers.get_tailor(db, conversation_data.tailor_id)
            customer_id, tailor_id = profile.id, conversation_data.tailor_id
        else:
            if conversation_data.customer_id is None:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="customer_id is required"
                )
            counterpart = await profile_helpers.get_customer(db, conversation_data.customer_id)
            customer_id, tailor_id = conversation_data.customer_id, profile.id

        if counterpart is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Chat participant not found"
            )

        conversation = await chat_helpers.get_or_create_conversation(
            db, customer_id, tailor_id, conversation_data.order_id
        )
        return safe_model_validate(ConversationResponse, conversation)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error opening conversation: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to open conversation"
        )


@router.get("/conversations", response_model=ConversationListResponse)
async def get_conversations(
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_chat_read)
):
    """Active conversations, most recent activity first"""
    profile = current_user.require_role("customer", "tailor")
    conversations = await chat_helpers.get_conversations(db, profile.id, current_user.role)
    return ConversationListResponse(
        conversations=safe_model_validate_list(ConversationResponse, conversations),
        total=len(conversations)
    )


@router.get("/conversations/{conversation_id}", response_model=ConversationResponse)
async def get_conversation(
    conversation_id: UUID,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_chat_read)
):
    conversation = await load_conversation_for(db, conversation_id, current_user)
    return safe_model_validate(ConversationResponse, conversation)


@router.get("/conversations/{conversation_id}/messages", response_model=List[MessageResponse])
async def get_messages(
    conversation_id: UUID,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_chat_read)
):
    """Messages in the order they were sent"""
    conversation = await load_conversation_for(db, conversation_id, current_user)
    messages = await chat_helpers.get_messages(db, conversation.id)
    return safe_model_validate_list(MessageResponse, messages)


@router.post("/conversations/{conversation_id}/messages", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    conversation_id: UUID,
    message_data: MessageCreate,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_chat_write)
):
    try:
        conversation = await load_conversation_for(db, conversation_id, current_user, roles=("customer", "tailor"))
        if not conversation.is_active:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Conversation is closed"
            )

        message = await chat_helpers.send_message(
            db,
            conversation_id=conversation.id,
            sender_id=current_user.user_id,
            sender_type=current_user.role,
            content=message_data.content,
            attachment_url=message_data.attachment_url
        )
        if message is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Conversation not found"
            )
        return safe_model_validate(MessageResponse, message)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error sending message: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send message"
        )


@router.post("/conversations/{conversation_id}/read", response_model=MarkReadResponse)
async def mark_messages_as_read(
    conversation_id: UUID,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_chat_write)
):
    try:
        conversation = await load_conversation_for(db, conversation_id, current_user, roles=("customer", "tailor"))
        marked = await chat_helpers.mark_messages_as_read(db, conversation.id)
        return MarkReadResponse(conversation_id=str(conversation.id), marked_read=marked)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error marking messages read: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to mark messages as read"
        )


@router.post("/conversations/{conversation_id}/close", response_model=ConversationResponse)
async def close_conversation(
    conversation_id: UUID,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_chat_write)
):
    try:
        conversation = await load_conversation_for(db, conversation_id, current_user, roles=("customer", "tailor"))
        conversation = await chat_helpers.close_conversation(db, conversation.id)
        return safe_model_validate(ConversationResponse, conversation)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error closing conversation: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to close conversation"
        )


@router.websocket("/ws/{conversation_id}")
async def chat_websocket(
    websocket: WebSocket,
    conversation_id: UUID,
    token: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    """
    Stream new messages of a conversation.
    Authenticates with ?token=<access token>; participants only.
    """
    session = await authenticate_websocket(websocket, token, db)
    if session is None:
        return

    try:
        await load_conversation_for(db, conversation_id, session)
    except HTTPException as e:
        await websocket.close(code=4003 if e.status_code == status.HTTP_403_FORBIDDEN else 4004, reason=str(e.detail))
        return

    await db.close()

    await websocket.accept()
    subscription = realtime_hub.subscribe("messages", "conversation_id", conversation_id)
    logger.info(f"User {session.user_id} joined conversation {conversation_id}")
    await stream_subscription(websocket, subscription)
