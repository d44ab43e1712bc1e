from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from config import get_db
from models import Dispute
from routers.auth.auth import get_current_user
from routers.auth.session import AuthSession
from routers.orders.orders import load_order_for
from dependencies.rbac import require_dispute_read, require_dispute_write
from utils.response_helpers import safe_model_validate, safe_model_validate_list
from .schemas import (
    DisputeCreate, DisputeStatusUpdate, DisputeMessageCreate,
    DisputeResponse, DisputeMessageResponse, DisputeWithMessagesResponse, DisputeListResponse
)
from .helpers import dispute_helpers
from typing import List
from uuid import UUID
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/disputes", tags=["Disputes"])


async def load_dispute_for(db: AsyncSession, dispute_id: UUID, current_user: AuthSession) -> Dispute:
    current_user.require_role("customer", "tailor", "admin")
    dispute = await dispute_helpers.get_dispute(db, dispute_id)
    if dispute is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Dispute not found"
        )
    if current_user.role != "admin":
        party_id = dispute.customer_id if current_user.role == "customer" else dispute.tailor_id
        if str(party_id) != current_user.profile_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have access to this dispute"
            )
    return dispute


@router.post("", response_model=DisputeResponse, status_code=status.HTTP_201_CREATED)
async def create_dispute(
    dispute_data: DisputeCreate,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_dispute_write)
):
    """Raise a dispute on an order as its customer or tailor"""
    try:
        current_user.require_role("customer", "tailor")
        order = await load_order_for(db, dispute_data.order_id, current_user, roles=("customer", "tailor"))

        dispute = await dispute_helpers.create_dispute(
            db,
            order_id=order.id,
            customer_id=order.customer_id,
            tailor_id=order.tailor_id,
            subject=dispute_data.subject,
            description=dispute_data.description,
            raised_by=current_user.role,
            priority=dispute_data.priority.value
        )
        return safe_model_validate(DisputeResponse, dispute)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating dispute: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create dispute"
        )


@router.get("", response_model=DisputeListResponse)
async def get_disputes(
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_dispute_read)
):
    current_user.require_role("customer", "tailor", "admin")
    disputes = await dispute_helpers.get_disputes(db, current_user.profile_id, current_user.role)
    return DisputeListResponse(
        disputes=safe_model_validate_list(DisputeResponse, disputes),
        total=len(disputes)
    )


@router.get("/{dispute_id}", response_model=DisputeWithMessagesResponse)
async def get_dispute(
    dispute_id: UUID,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_dispute_read)
):
    dispute = await load_dispute_for(db, dispute_id, current_user)
    messages = await dispute_helpers.get_dispute_messages(db, dispute.id)

    dispute_dict = safe_model_validate(DisputeResponse, dispute).model_dump()
    dispute_dict["messages"] = safe_model_validate_list(DisputeMessageResponse, messages)
    return DisputeWithMessagesResponse.model_validate(dispute_dict)


@router.put("/{dispute_id}/status", response_model=DisputeResponse)
async def update_dispute_status(
    dispute_id: UUID,
    status_update: DisputeStatusUpdate,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_dispute_write)
):
    """Move a dispute through its workflow (admins only)"""
    try:
        current_user.require_role("admin")

        dispute = await dispute_helpers.update_dispute_status(
            db,
            dispute_id,
            status_update.status.value,
            resolution_notes=status_update.resolution_notes,
            resolved_by=current_user.user_id
        )
        if dispute is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Dispute not found"
            )
        return safe_model_validate(DisputeResponse, dispute)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating dispute {dispute_id}: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update dispute"
        )


@router.post("/{dispute_id}/messages", response_model=DisputeMessageResponse, status_code=status.HTTP_201_CREATED)
async def add_dispute_message(
    dispute_id: UUID,
    message_data: DisputeMessageCreate,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_dispute_write)
):
    try:
        dispute = await load_dispute_for(db, dispute_id, current_user)
        message = await dispute_helpers.add_dispute_message(
            db,
            dispute_id=dispute.id,
            sender_id=current_user.user_id,
            sender_type=current_user.role,
            content=message_data.content
        )
        return safe_model_validate(DisputeMessageResponse, message)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error adding dispute message: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to add message"
        )


@router.get("/{dispute_id}/messages", response_model=List[DisputeMessageResponse])
async def get_dispute_messages(
    dispute_id: UUID,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_dispute_read)
):
    """Dispute thread, oldest first"""
    dispute = await load_dispute_for(db, dispute_id, current_user)
    messages = await dispute_helpers.get_dispute_messages(db, dispute.id)
    return safe_model_validate_list(DisputeMessageResponse, messages)
