from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from models import DeliveryTracking, TRACKING_STATUSES
from routers.profiles.helpers import as_uuid
from utils.realtime import realtime_hub
from utils.response_helpers import row_to_event_payload
from .schemas import TrackingResponse
from typing import Any, List, Optional
import math
import logging

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0

MAPS_EMBED_URL = (
    "https://www.google.com/maps/embed?pb=!1m14!1m12!1m3!1d3671.8449364918146"
    "!2d{longitude}!3d{latitude}!2m3!1f0!2f0!3f0!3m2!1i1024!2i768!4f13.1"
    "!5e0!3m2!1sen!2sin!4v1234567890"
)


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometres (haversine)"""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def get_maps_url(latitude: float, longitude: float) -> str:
    return MAPS_EMBED_URL.format(latitude=latitude, longitude=longitude)


class TrackingHelpers:

    async def update_delivery_location(
        self,
        db: AsyncSession,
        order_id: Any,
        latitude: float,
        longitude: float,
        tracking_status: str,
        tailor_id: Any,
        address: Optional[str] = None
    ) -> DeliveryTracking:
        """Append a location row and publish it to order subscribers"""
        if tracking_status not in TRACKING_STATUSES:
            raise ValueError(f"Invalid tracking status: {tracking_status}")

        tracking = DeliveryTracking(
            order_id=as_uuid(order_id),
            latitude=latitude,
            longitude=longitude,
            address=address,
            status=tracking_status,
            updated_by=as_uuid(tailor_id),
        )
        db.add(tracking)
        await db.commit()
        await db.refresh(tracking)

        delivered = realtime_hub.publish("delivery_tracking", row_to_event_payload(TrackingResponse, tracking))
        logger.info(f"Tracking update for order {order_id} published to {delivered} subscribers")
        return tracking

    async def get_delivery_tracking(self, db: AsyncSession, order_id: Any) -> List[DeliveryTracking]:
        result = await db.execute(
            select(DeliveryTracking)
            .where(DeliveryTracking.order_id == as_uuid(order_id))
            .order_by(DeliveryTracking.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_latest_tracking(self, db: AsyncSession, order_id: Any) -> Optional[DeliveryTracking]:
        result = await db.execute(
            select(DeliveryTracking)
            .where(DeliveryTracking.order_id == as_uuid(order_id))
            .order_by(DeliveryTracking.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()


tracking_helpers = TrackingHelpers()
