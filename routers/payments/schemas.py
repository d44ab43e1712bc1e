from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from enum import Enum
from uuid import UUID


class PaymentStatus(str, Enum):
    PENDING = "pending"
    CAPTURED = "captured"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentType(str, Enum):
    ADVANCE = "advance"
    FINAL = "final"
    FULL = "full"


class PaymentCreate(BaseModel):
    order_id: UUID
    amount: float = Field(gt=0, description="Amount in rupees")
    payment_type: PaymentType
    create_checkout: bool = Field(default=True, description="Create a Razorpay order for the checkout widget")


class PaymentStatusUpdate(BaseModel):
    status: PaymentStatus
    razorpay_payment_id: Optional[str] = None


class PaymentResponse(BaseModel):
    id: str
    order_id: str
    customer_id: str
    tailor_id: str
    amount: float
    currency: str
    payment_method: str
    payment_type: PaymentType
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    status: PaymentStatus
    captured_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class CheckoutOptions(BaseModel):
    """Options passed to the Razorpay checkout widget"""
    key: str = Field(description="Razorpay public key")
    amount: int = Field(description="Amount in paise")
    currency: str = Field(description="Currency code")
    name: str
    description: str
    order_id: str = Field(description="Razorpay order ID")


class PaymentOrderResponse(BaseModel):
    payment: PaymentResponse
    checkout: Optional[CheckoutOptions] = None


class PaymentVerification(BaseModel):
    razorpay_order_id: str = Field(description="Razorpay order ID")
    razorpay_payment_id: str = Field(description="Razorpay payment ID")
    razorpay_signature: str = Field(description="Razorpay signature for verification")


class PaymentVerificationResponse(BaseModel):
    verified: bool
    message: str
    payment: PaymentResponse


class EarningsResponse(BaseModel):
    payments: List[PaymentResponse]
    total_earned: float
    currency: str = "INR"
