from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from enum import Enum
from uuid import UUID


class DisputeStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class DisputePriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DisputeCreate(BaseModel):
    order_id: UUID
    subject: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    priority: DisputePriority = DisputePriority.MEDIUM


class DisputeStatusUpdate(BaseModel):
    status: DisputeStatus
    resolution_notes: Optional[str] = None


class DisputeMessageCreate(BaseModel):
    content: str = Field(min_length=1, max_length=5000)


class DisputeResponse(BaseModel):
    id: str
    order_id: str
    customer_id: str
    tailor_id: str
    subject: str
    description: str
    status: DisputeStatus
    priority: str
    raised_by: str
    resolution_notes: Optional[str] = None
    resolved_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    resolved_at: Optional[datetime] = None


class DisputeMessageResponse(BaseModel):
    id: str
    dispute_id: str
    sender_id: str
    sender_type: str
    content: str
    created_at: datetime


class DisputeWithMessagesResponse(DisputeResponse):
    messages: List[DisputeMessageResponse] = []


class DisputeListResponse(BaseModel):
    disputes: List[DisputeResponse]
    total: int
