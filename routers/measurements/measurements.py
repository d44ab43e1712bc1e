from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from config import get_db
from routers.auth.auth import get_current_user
from routers.auth.session import AuthSession
from dependencies.rbac import require_measurement_access
from utils.response_helpers import safe_model_validate, safe_model_validate_list
from .schemas import MeasurementCreate, MeasurementUpdate, MeasurementResponse
from .helpers import measurement_helpers
from typing import List
from uuid import UUID
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/measurements", tags=["Measurements"])


@router.get("", response_model=List[MeasurementResponse])
async def list_measurements(
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_measurement_access)
):
    """Saved measurements, newest first"""
    customer = current_user.require_role("customer")
    measurements = await measurement_helpers.list_measurements(db, customer.id)
    return safe_model_validate_list(MeasurementResponse, measurements)


@router.post("", response_model=MeasurementResponse, status_code=status.HTTP_201_CREATED)
async def create_measurement(
    measurement_data: MeasurementCreate,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_measurement_access)
):
    try:
        customer = current_user.require_role("customer")
        measurement = await measurement_helpers.create_measurement(
            db, customer.id, measurement_data.model_dump()
        )
        return safe_model_validate(MeasurementResponse, measurement)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error saving measurement: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save measurement"
        )


@router.put("/{measurement_id}", response_model=MeasurementResponse)
async def update_measurement(
    measurement_id: UUID,
    measurement_update: MeasurementUpdate,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_measurement_access)
):
    try:
        customer = current_user.require_role("customer")
        measurement = await measurement_helpers.update_measurement(
            db, measurement_id, customer.id, measurement_update.model_dump(exclude_unset=True)
        )
        if measurement is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Measurement not found"
            )
        return safe_model_validate(MeasurementResponse, measurement)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating measurement: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update measurement"
        )


@router.delete("/{measurement_id}")
async def delete_measurement(
    measurement_id: UUID,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_measurement_access)
):
    try:
        customer = current_user.require_role("customer")
        deleted = await measurement_helpers.delete_measurement(db, measurement_id, customer.id)
        if not deleted:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Measurement not found"
            )
        return {"message": "Measurement deleted successfully"}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error deleting measurement: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete measurement"
        )
