from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from config import get_db, PAYMENT_CURRENCY
from models import UserProfile, CustomerProfile, TailorProfile, Order, Dispute
from routers.auth.auth import get_current_user
from routers.auth.session import AuthSession
from routers.profiles.helpers import profile_helpers
from routers.profiles.schemas import TailorProfileResponse, UserRole
from dependencies.rbac import require_admin, require_admin_write
from utils.response_helpers import safe_model_validate
from .schemas import DashboardStats, UserListItem, UserListResponse, TailorVerificationUpdate
from typing import Optional
from uuid import UUID
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/dashboard", response_model=DashboardStats)
async def get_dashboard_stats(
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_admin)
):
    """
    Admin only: platform totals
    """
    try:
        customers = (await db.execute(select(func.count(CustomerProfile.id)))).scalar() or 0
        tailors = (await db.execute(select(func.count(TailorProfile.id)))).scalar() or 0
        orders = (await db.execute(select(func.count(Order.id)))).scalar() or 0
        revenue = (await db.execute(select(func.coalesce(func.sum(Order.total_amount), 0.0)))).scalar() or 0.0
        open_disputes = (
            await db.execute(select(func.count(Dispute.id)).where(Dispute.status == "open"))
        ).scalar() or 0

        return DashboardStats(
            total_customers=customers,
            total_tailors=tailors,
            total_users=customers + tailors,
            total_orders=orders,
            total_revenue=float(revenue),
            active_disputes=open_disputes,
            currency=PAYMENT_CURRENCY
        )

    except Exception as e:
        logger.error(f"Dashboard stats failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve dashboard stats"
        )


@router.get("/users", response_model=UserListResponse)
async def list_all_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    role: Optional[UserRole] = None,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_admin)
):
    """
    Admin only: List all users with pagination and optional role filter
    """
    try:
        offset = (page - 1) * limit

        query = select(UserProfile)
        count_query = select(func.count(UserProfile.id))
        if role:
            query = query.where(UserProfile.role == role.value)
            count_query = count_query.where(UserProfile.role == role.value)

        total = (await db.execute(count_query)).scalar() or 0
        result = await db.execute(query.order_by(UserProfile.created_at.desc()).offset(offset).limit(limit))
        users = result.scalars().all()

        return UserListResponse(
            users=[safe_model_validate(UserListItem, user) for user in users],
            page=page,
            limit=limit,
            total=total
        )

    except Exception as e:
        logger.error(f"List users failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve users"
        )


@router.put("/tailors/{tailor_id}/verification", response_model=TailorProfileResponse)
async def set_tailor_verification(
    tailor_id: UUID,
    verification: TailorVerificationUpdate,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_admin_write)
):
    """
    Admin only: verify or unverify a tailor
    """
    try:
        tailor = await profile_helpers.set_tailor_verified(db, tailor_id, verification.is_verified)
        if tailor is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Tailor not found"
            )
        logger.info(f"Admin {current_user.user_id} set tailor {tailor_id} verified={verification.is_verified}")
        return safe_model_validate(TailorProfileResponse, tailor)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Tailor verification failed: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update tailor verification"
        )
