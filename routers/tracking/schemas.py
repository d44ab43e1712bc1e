from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from enum import Enum


class TrackingStatus(str, Enum):
    PENDING = "pending"
    IN_TRANSIT = "in_transit"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"


class LocationUpdate(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    address: Optional[str] = None
    status: TrackingStatus


class TrackingResponse(BaseModel):
    id: str
    order_id: str
    latitude: float
    longitude: float
    address: Optional[str] = None
    status: TrackingStatus
    updated_by: str
    created_at: datetime


class LatestTrackingResponse(BaseModel):
    tracking: Optional[TrackingResponse] = None
    maps_url: Optional[str] = None
    distance_km: Optional[float] = Field(None, description="Distance from the tailor's shop to the latest location")


class TrackingHistoryResponse(BaseModel):
    order_id: str
    updates: List[TrackingResponse]
