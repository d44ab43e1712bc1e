from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from enum import Enum
from uuid import UUID


class OrderStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    IN_PROGRESS = "in_progress"
    READY = "ready"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class OrderItemCreate(BaseModel):
    garment_type: str = Field(min_length=1, max_length=100)
    fabric_type: Optional[str] = None
    color: Optional[str] = None
    quantity: int = Field(default=1, gt=0)
    unit_price: float = Field(ge=0)
    notes: Optional[str] = None
    design_model_id: Optional[UUID] = None


class OrderCreate(BaseModel):
    tailor_id: UUID
    total_amount: float = Field(ge=0)
    delivery_address: Optional[str] = None
    delivery_date_estimate: Optional[datetime] = None
    measurement_id: Optional[UUID] = None
    notes: Optional[str] = None
    design_references: List[str] = []
    items: List[OrderItemCreate] = Field(min_length=1)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    notes: Optional[str] = None


class OrderRejection(BaseModel):
    reason: str = Field(min_length=1)


class OrderCancellation(BaseModel):
    reason: Optional[str] = None


class OrderItemResponse(BaseModel):
    id: str
    order_id: str
    garment_type: str
    fabric_type: Optional[str] = None
    color: Optional[str] = None
    quantity: int
    unit_price: float
    notes: Optional[str] = None
    design_model_id: Optional[str] = None
    created_at: datetime


class OrderStatusHistoryResponse(BaseModel):
    id: str
    order_id: str
    status: OrderStatus
    changed_by: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime


class OrderResponse(BaseModel):
    id: str
    order_number: str
    customer_id: str
    tailor_id: str
    status: OrderStatus
    total_amount: float
    advance_paid: float
    final_paid: float
    delivery_address: Optional[str] = None
    delivery_date_estimate: Optional[datetime] = None
    actual_delivery_date: Optional[datetime] = None
    notes: Optional[str] = None
    design_references: List[str] = []
    measurement_id: Optional[str] = None
    rejected_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class OrderWithDetailsResponse(OrderResponse):
    items: List[OrderItemResponse] = []
    status_history: List[OrderStatusHistoryResponse] = []


class OrderListResponse(BaseModel):
    orders: List[OrderResponse]
    total: int
