from fastapi import APIRouter, Depends, HTTPException, status, WebSocket, Query
from sqlalchemy.ext.asyncio import AsyncSession
from config import get_db
from routers.auth.auth import get_current_user, authenticate_websocket
from routers.auth.session import AuthSession
from routers.orders.orders import load_order_for
from routers.profiles.helpers import profile_helpers
from dependencies.rbac import require_tracking_read, require_tracking_write
from utils.realtime import realtime_hub, stream_subscription
from utils.response_helpers import safe_model_validate, safe_model_validate_list
from .schemas import LocationUpdate, TrackingResponse, LatestTrackingResponse, TrackingHistoryResponse
from .helpers import tracking_helpers, calculate_distance, get_maps_url
from typing import Optional
from uuid import UUID
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tracking", tags=["Delivery Tracking"])


@router.post("/{order_id}", response_model=TrackingResponse, status_code=status.HTTP_201_CREATED)
async def update_delivery_location(
    order_id: UUID,
    location: LocationUpdate,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_tracking_write)
):
    """Post the current delivery location for an order"""
    try:
        tailor = current_user.require_role("tailor")
        order = await load_order_for(db, order_id, current_user, roles=("tailor",))

        tracking = await tracking_helpers.update_delivery_location(
            db,
            order_id=order.id,
            latitude=location.latitude,
            longitude=location.longitude,
            tracking_status=location.status.value,
            tailor_id=tailor.id,
            address=location.address
        )
        return safe_model_validate(TrackingResponse, tracking)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating delivery location: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update delivery location"
        )


@router.get("/{order_id}", response_model=TrackingHistoryResponse)
async def get_delivery_tracking(
    order_id: UUID,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_tracking_read)
):
    """Location history for an order, newest first"""
    order = await load_order_for(db, order_id, current_user)
    updates = await tracking_helpers.get_delivery_tracking(db, order.id)
    return TrackingHistoryResponse(
        order_id=str(order.id),
        updates=safe_model_validate_list(TrackingResponse, updates)
    )


@router.get("/{order_id}/latest", response_model=LatestTrackingResponse)
async def get_latest_tracking(
    order_id: UUID,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_tracking_read)
):
    order = await load_order_for(db, order_id, current_user)
    latest = await tracking_helpers.get_latest_tracking(db, order.id)
    if latest is None:
        return LatestTrackingResponse()

    distance_km = None
    tailor = await profile_helpers.get_tailor(db, order.tailor_id)
    if tailor is not None and tailor.latitude is not None and tailor.longitude is not None:
        distance_km = round(
            calculate_distance(tailor.latitude, tailor.longitude, latest.latitude, latest.longitude), 2
        )

    return LatestTrackingResponse(
        tracking=safe_model_validate(TrackingResponse, latest),
        maps_url=get_maps_url(latest.latitude, latest.longitude),
        distance_km=distance_km
    )


@router.websocket("/ws/{order_id}")
async def tracking_websocket(
    websocket: WebSocket,
    order_id: UUID,
    token: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    """
    Stream new location rows for an order.
    Authenticates with ?token=<access token>; only the order's customer,
    tailor or an admin may subscribe.
    """
    session = await authenticate_websocket(websocket, token, db)
    if session is None:
        return

    try:
        await load_order_for(db, order_id, session)
    except HTTPException as e:
        await websocket.close(code=4003 if e.status_code == status.HTTP_403_FORBIDDEN else 4004, reason=str(e.detail))
        return

    await db.close()

    await websocket.accept()
    subscription = realtime_hub.subscribe("delivery_tracking", "order_id", order_id)
    logger.info(f"User {session.user_id} watching delivery of order {order_id}")
    await stream_subscription(websocket, subscription)
