from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from enum import Enum
from uuid import UUID


class SenderType(str, Enum):
    CUSTOMER = "customer"
    TAILOR = "tailor"


class ConversationCreate(BaseModel):
    """Opened by a customer with a tailor, or by a tailor with a customer"""
    tailor_id: Optional[UUID] = None
    customer_id: Optional[UUID] = None
    order_id: Optional[UUID] = None


class MessageCreate(BaseModel):
    content: str = Field(min_length=1, max_length=5000)
    attachment_url: Optional[str] = Field(None, max_length=500)


class ConversationResponse(BaseModel):
    id: str
    customer_id: str
    tailor_id: str
    order_id: Optional[str] = None
    last_message_at: datetime
    is_active: bool
    created_at: datetime


class MessageResponse(BaseModel):
    id: str
    conversation_id: str
    sender_id: str
    sender_type: SenderType
    content: str
    attachment_url: Optional[str] = None
    is_read: bool
    created_at: datetime


class ConversationListResponse(BaseModel):
    conversations: List[ConversationResponse]
    total: int


class MarkReadResponse(BaseModel):
    conversation_id: str
    marked_read: int
