from fastapi import APIRouter, Depends, HTTPException, status, Query, BackgroundTasks
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from config import get_db
from models import Order, DesignModel
from routers.auth.auth import get_current_user
from routers.auth.session import AuthSession
from routers.profiles.helpers import profile_helpers
from routers.measurements.helpers import measurement_helpers
from dependencies.rbac import require_order_read, require_order_write
from utils.response_helpers import safe_model_validate, safe_model_validate_list, row_to_event_payload
from utils.notifications import (
    send_email, send_sms,
    get_order_placed_email, get_order_placed_sms,
    get_order_status_email, get_order_status_sms
)
from .schemas import (
    OrderCreate, OrderStatusUpdate, OrderRejection, OrderCancellation,
    OrderResponse, OrderWithDetailsResponse, OrderListResponse,
    OrderItemResponse, OrderStatusHistoryResponse
)
from .helpers import order_helpers
from typing import List, Optional
from uuid import UUID
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["Orders"])


def ensure_order_participant(current_user: AuthSession, order: Order, roles=("customer", "tailor", "admin")):
    """Raise 403 unless the caller is the order's customer or tailor (or an admin)"""
    current_user.require_role(*roles)
    if current_user.role == "admin":
        return
    owner_id = order.customer_id if current_user.role == "customer" else order.tailor_id
    if str(owner_id) != current_user.profile_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have access to this order"
        )


async def load_order_for(db: AsyncSession, order_id: UUID, current_user: AuthSession, roles=("customer", "tailor", "admin")) -> Order:
    order = await order_helpers.get_order(db, order_id)
    if order is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Order not found"
        )
    ensure_order_participant(current_user, order, roles)
    return order


async def send_order_placed_notifications(order: Order, items: list, db: AsyncSession, background_tasks: BackgroundTasks):
    order_data = row_to_event_payload(OrderResponse, order)
    order_data["items"] = [row_to_event_payload(OrderItemResponse, item) for item in items]

    customer = await profile_helpers.get_customer(db, order.customer_id)
    tailor = await profile_helpers.get_tailor(db, order.tailor_id)

    for profile, is_customer in ((customer, True), (tailor, False)):
        if profile is None:
            continue
        if profile.email:
            subject, body = get_order_placed_email(order_data, is_customer=is_customer)
            background_tasks.add_task(send_email, profile.email, subject, body)
        if profile.phone:
            background_tasks.add_task(send_sms, profile.phone, get_order_placed_sms(order_data, is_customer=is_customer))


async def send_order_status_notifications(order: Order, notes: Optional[str], db: AsyncSession, background_tasks: BackgroundTasks):
    order_data = row_to_event_payload(OrderResponse, order)
    customer = await profile_helpers.get_customer(db, order.customer_id)
    if customer is None:
        return
    if customer.email:
        subject, body = get_order_status_email(order_data, notes)
        background_tasks.add_task(send_email, customer.email, subject, body)
    if customer.phone:
        background_tasks.add_task(send_sms, customer.phone, get_order_status_sms(order_data))


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    order_data: OrderCreate,
    background_tasks: BackgroundTasks,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_order_write)
):
    """
    Place an order with a tailor
    """
    try:
        customer = current_user.require_role("customer")

        tailor = await profile_helpers.get_tailor(db, order_data.tailor_id)
        if tailor is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Tailor not found"
            )

        if order_data.measurement_id is not None:
            measurement = await measurement_helpers.get_measurement(
                db, order_data.measurement_id, customer.id
            )
            if measurement is None:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="Measurement not found"
                )

        design_ids = {item.design_model_id for item in order_data.items if item.design_model_id}
        if design_ids:
            result = await db.execute(
                select(DesignModel.id)
                .where(DesignModel.id.in_(design_ids))
                .where(DesignModel.is_approved.is_(True))
            )
            if len(result.scalars().all()) != len(design_ids):
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="Design not found"
                )

        order = await order_helpers.create_order(
            db,
            customer_id=customer.id,
            tailor_id=tailor.id,
            total_amount=order_data.total_amount,
            items=[item.model_dump() for item in order_data.items],
            delivery_address=order_data.delivery_address,
            measurement_id=order_data.measurement_id,
            notes=order_data.notes,
            delivery_date_estimate=order_data.delivery_date_estimate,
            design_references=order_data.design_references,
            changed_by=current_user.user_id
        )

        items = await order_helpers.get_order_items(db, order.id)
        await send_order_placed_notifications(order, items, db, background_tasks)

        return safe_model_validate(OrderResponse, order)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating order: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create order"
        )


@router.get("", response_model=OrderListResponse)
async def get_my_orders(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_order_read)
):
    """
    Orders of the signed-in customer or tailor, newest first. Admins see every order.
    """
    current_user.require_role("customer", "tailor", "admin")
    if current_user.role == "customer":
        orders = await order_helpers.get_customer_orders(db, current_user.profile_id)
    elif current_user.role == "tailor":
        orders = await order_helpers.get_tailor_orders(db, current_user.profile_id)
    else:
        orders = await order_helpers.list_orders(db, limit=limit, offset=offset)

    return OrderListResponse(
        orders=safe_model_validate_list(OrderResponse, orders),
        total=len(orders)
    )


@router.get("/{order_id}", response_model=OrderWithDetailsResponse)
async def get_order(
    order_id: UUID,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_order_read)
):
    order = await load_order_for(db, order_id, current_user)
    items = await order_helpers.get_order_items(db, order.id)
    history = await order_helpers.get_status_history(db, order.id)

    order_dict = safe_model_validate(OrderResponse, order).model_dump()
    order_dict["items"] = safe_model_validate_list(OrderItemResponse, items)
    order_dict["status_history"] = safe_model_validate_list(OrderStatusHistoryResponse, history)
    return OrderWithDetailsResponse.model_validate(order_dict)


@router.get("/{order_id}/items", response_model=List[OrderItemResponse])
async def get_order_items(
    order_id: UUID,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_order_read)
):
    order = await load_order_for(db, order_id, current_user)
    items = await order_helpers.get_order_items(db, order.id)
    return safe_model_validate_list(OrderItemResponse, items)


@router.get("/{order_id}/history", response_model=List[OrderStatusHistoryResponse])
async def get_order_history(
    order_id: UUID,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_order_read)
):
    """Status history, oldest first"""
    order = await load_order_for(db, order_id, current_user)
    history = await order_helpers.get_status_history(db, order.id)
    return safe_model_validate_list(OrderStatusHistoryResponse, history)


async def _apply_transition(
    db: AsyncSession,
    background_tasks: BackgroundTasks,
    order: Order,
    operation,
    notes: Optional[str] = None,
    **kwargs
) -> OrderResponse:
    try:
        updated = await operation(db, order.id, **kwargs)
        if updated is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Order not found"
            )
        await send_order_status_notifications(updated, notes, db, background_tasks)
        return safe_model_validate(OrderResponse, updated)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating order {order.id}: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update order"
        )


@router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: UUID,
    status_update: OrderStatusUpdate,
    background_tasks: BackgroundTasks,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_order_write)
):
    """Set any status; no transition rules are enforced"""
    order = await load_order_for(db, order_id, current_user, roles=("tailor", "admin"))

    async def set_status(db, order_id, changed_by):
        return await order_helpers.update_order_status(
            db, order_id, status_update.status.value, status_update.notes, changed_by
        )

    return await _apply_transition(
        db, background_tasks, order, set_status, status_update.notes,
        changed_by=current_user.user_id
    )


@router.post("/{order_id}/accept", response_model=OrderResponse)
async def accept_order(
    order_id: UUID,
    background_tasks: BackgroundTasks,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_order_write)
):
    order = await load_order_for(db, order_id, current_user, roles=("tailor", "admin"))
    return await _apply_transition(
        db, background_tasks, order, order_helpers.accept_order,
        changed_by=current_user.user_id
    )


@router.post("/{order_id}/reject", response_model=OrderResponse)
async def reject_order(
    order_id: UUID,
    rejection: OrderRejection,
    background_tasks: BackgroundTasks,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_order_write)
):
    order = await load_order_for(db, order_id, current_user, roles=("tailor", "admin"))
    return await _apply_transition(
        db, background_tasks, order, order_helpers.reject_order, rejection.reason,
        reason=rejection.reason, changed_by=current_user.user_id
    )


@router.post("/{order_id}/start", response_model=OrderResponse)
async def start_order(
    order_id: UUID,
    background_tasks: BackgroundTasks,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_order_write)
):
    order = await load_order_for(db, order_id, current_user, roles=("tailor", "admin"))
    return await _apply_transition(
        db, background_tasks, order, order_helpers.start_order,
        changed_by=current_user.user_id
    )


@router.post("/{order_id}/ready", response_model=OrderResponse)
async def mark_order_ready(
    order_id: UUID,
    background_tasks: BackgroundTasks,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_order_write)
):
    order = await load_order_for(db, order_id, current_user, roles=("tailor", "admin"))
    return await _apply_transition(
        db, background_tasks, order, order_helpers.mark_ready,
        changed_by=current_user.user_id
    )


@router.post("/{order_id}/ship", response_model=OrderResponse)
async def ship_order(
    order_id: UUID,
    background_tasks: BackgroundTasks,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_order_write)
):
    order = await load_order_for(db, order_id, current_user, roles=("tailor", "admin"))
    return await _apply_transition(
        db, background_tasks, order, order_helpers.ship_order,
        changed_by=current_user.user_id
    )


@router.post("/{order_id}/complete", response_model=OrderResponse)
async def complete_order(
    order_id: UUID,
    background_tasks: BackgroundTasks,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_order_write)
):
    """Mark the order delivered and stamp the delivery date"""
    order = await load_order_for(db, order_id, current_user)
    return await _apply_transition(
        db, background_tasks, order, order_helpers.complete_order,
        changed_by=current_user.user_id
    )


@router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: UUID,
    background_tasks: BackgroundTasks,
    cancellation: Optional[OrderCancellation] = None,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_order_write)
):
    order = await load_order_for(db, order_id, current_user)
    reason = cancellation.reason if cancellation else None
    return await _apply_transition(
        db, background_tasks, order, order_helpers.cancel_order, reason,
        reason=reason, changed_by=current_user.user_id
    )
