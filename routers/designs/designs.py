from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from config import get_db
from models import DesignModel
from routers.auth.auth import get_current_user
from routers.auth.session import AuthSession
from dependencies.rbac import require_design_read
from utils.response_helpers import safe_model_validate, safe_model_validate_list
from .schemas import DesignResponse
from typing import List, Optional
from uuid import UUID
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/designs", tags=["Virtual Try-On"])


@router.get("", response_model=List[DesignResponse])
async def list_designs(
    garment_type: Optional[str] = Query(None),
    limit: int = Query(12, ge=1, le=50),
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_design_read)
):
    """Approved designs for the virtual try-on catalogue"""
    query = select(DesignModel).where(DesignModel.is_approved.is_(True))
    if garment_type:
        query = query.where(DesignModel.garment_type == garment_type)
    result = await db.execute(query.order_by(DesignModel.created_at.desc()).limit(limit))
    return safe_model_validate_list(DesignResponse, result.scalars().all())


@router.get("/{design_id}", response_model=DesignResponse)
async def get_design(
    design_id: UUID,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_design_read)
):
    result = await db.execute(
        select(DesignModel)
        .where(DesignModel.id == design_id)
        .where(DesignModel.is_approved.is_(True))
    )
    design = result.scalar_one_or_none()
    if design is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Design not found"
        )
    return safe_model_validate(DesignResponse, design)
