from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from enum import Enum
from uuid import UUID


class UserRole(str, Enum):
    CUSTOMER = "customer"
    TAILOR = "tailor"
    ADMIN = "admin"


class CustomerProfileResponse(BaseModel):
    id: str
    user_id: str
    full_name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    profile_image_url: Optional[str] = None
    bio: Optional[str] = None
    preferred_style: Optional[str] = None
    budget_preference: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class TailorProfileResponse(BaseModel):
    id: str
    user_id: str
    full_name: str
    email: str
    phone: str
    business_name: str
    address: str
    city: str
    state: str
    postal_code: str
    country: Optional[str] = None
    profile_image_url: Optional[str] = None
    business_image_url: Optional[str] = None
    bio: Optional[str] = None
    specializations: List[str] = []
    experience_years: Optional[int] = None
    rating: float
    total_orders: int
    total_customers: int
    is_verified: bool
    service_radius_km: float
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    created_at: datetime
    updated_at: datetime


class AdminProfileResponse(BaseModel):
    id: str
    user_id: str
    full_name: str
    email: str
    permissions: List[str] = []
    created_at: datetime
    updated_at: datetime


class CustomerProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    bio: Optional[str] = None
    preferred_style: Optional[str] = None
    budget_preference: Optional[str] = None


class TailorProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=20)
    business_name: Optional[str] = Field(None, min_length=1, max_length=200)
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    bio: Optional[str] = None
    specializations: Optional[List[str]] = None
    experience_years: Optional[int] = Field(None, ge=0)
    service_radius_km: Optional[float] = Field(None, ge=0)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class AdminProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=200)


class ProfileImageUpload(BaseModel):
    """Response schema for profile image upload"""
    profile_image_url: str
    message: str


class TailorListResponse(BaseModel):
    tailors: List[TailorProfileResponse]
    total: int


class ReviewCreate(BaseModel):
    rating: int = Field(ge=1, le=5, description="Rating from 1 to 5 stars")
    title: Optional[str] = Field(None, max_length=200)
    comment: Optional[str] = None
    order_id: Optional[UUID] = None


class ReviewResponse(BaseModel):
    id: str
    tailor_id: str
    customer_id: str
    order_id: Optional[str] = None
    rating: int
    title: Optional[str] = None
    comment: Optional[str] = None
    is_published: bool
    created_at: datetime
    updated_at: datetime


PROFILE_RESPONSE_MODELS = {
    UserRole.CUSTOMER.value: CustomerProfileResponse,
    UserRole.TAILOR.value: TailorProfileResponse,
    UserRole.ADMIN.value: AdminProfileResponse,
}

PROFILE_UPDATE_MODELS = {
    UserRole.CUSTOMER.value: CustomerProfileUpdate,
    UserRole.TAILOR.value: TailorProfileUpdate,
    UserRole.ADMIN.value: AdminProfileUpdate,
}
