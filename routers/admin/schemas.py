from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime


class DashboardStats(BaseModel):
    total_customers: int
    total_tailors: int
    total_users: int
    total_orders: int
    total_revenue: float
    active_disputes: int
    currency: str = "INR"


class UserListItem(BaseModel):
    id: str
    user_id: str
    email: Optional[str] = None
    role: str
    created_at: datetime


class UserListResponse(BaseModel):
    users: List[UserListItem]
    page: int
    limit: int
    total: int


class TailorVerificationUpdate(BaseModel):
    is_verified: bool
