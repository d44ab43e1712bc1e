from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File, Query, Body
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import ValidationError
from config import get_db
from routers.auth.auth import get_current_user
from routers.auth.session import AuthSession
from dependencies.rbac import (
    require_profile_read, require_profile_write,
    require_tailor_read, require_review_read, require_review_write
)
from utils.response_helpers import safe_model_validate, safe_model_validate_list
from .schemas import (
    TailorProfileResponse, TailorListResponse, ProfileImageUpload,
    ReviewCreate, ReviewResponse,
    PROFILE_RESPONSE_MODELS, PROFILE_UPDATE_MODELS
)
from .helpers import profile_helpers
from typing import Any, Dict, List
from uuid import UUID
import logging

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Profiles"])


@router.get("/profiles/me")
async def get_my_profile(
    current_user: AuthSession = Depends(get_current_user),
    _: bool = Depends(require_profile_read)
):
    """Get the role profile of the signed-in user"""
    if current_user.profile is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found"
        )
    return safe_model_validate(PROFILE_RESPONSE_MODELS[current_user.role], current_user.profile)


@router.put("/profiles/me")
async def update_my_profile(
    profile_update: Dict[str, Any] = Body(...),
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_profile_write)
):
    """
    Update the signed-in user's profile.
    The accepted fields depend on the role; role, rating and order counters
    are never updated here.
    """
    try:
        update_model = PROFILE_UPDATE_MODELS[current_user.role]
        try:
            validated = update_model.model_validate(profile_update)
        except ValidationError as e:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=e.errors(include_url=False, include_context=False)
            )

        profile = await profile_helpers.update_profile(
            db,
            current_user.user_id,
            current_user.role,
            validated.model_dump(exclude_unset=True)
        )
        if profile is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Profile not found"
            )

        current_user.profile = profile
        return safe_model_validate(PROFILE_RESPONSE_MODELS[current_user.role], profile)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating profile: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update profile"
        )


@router.post("/profiles/me/image", response_model=ProfileImageUpload)
async def upload_profile_image(
    file: UploadFile = File(..., description="Profile image file (JPEG, PNG, GIF, or WebP, max 5MB)"),
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_profile_write)
):
    """
    Upload a new profile image

    Maximum file size: 5MB
    """
    try:
        profile = current_user.require_role("customer", "tailor")
        old_image_url = profile.profile_image_url

        image_url = await profile_helpers.upload_profile_image(current_user.profile_id, file)
        try:
            await profile_helpers.update_profile(
                db, current_user.user_id, current_user.role, {"profile_image_url": image_url}
            )
        except Exception:
            await profile_helpers.delete_profile_image(image_url)
            raise

        if old_image_url:
            await profile_helpers.delete_profile_image(old_image_url)

        return ProfileImageUpload(
            profile_image_url=image_url,
            message="Profile image uploaded successfully"
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error uploading profile image: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to upload profile image"
        )


@router.get("/tailors", response_model=TailorListResponse)
async def list_tailors(
    verified_only: bool = Query(True),
    limit: int = Query(6, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_tailor_read)
):
    """Tailors ordered by rating, best first"""
    tailors = await profile_helpers.list_tailors(db, verified_only=verified_only, limit=limit, offset=offset)
    return TailorListResponse(
        tailors=safe_model_validate_list(TailorProfileResponse, tailors),
        total=len(tailors)
    )


@router.get("/tailors/{tailor_id}", response_model=TailorProfileResponse)
async def get_tailor(
    tailor_id: UUID,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_tailor_read)
):
    tailor = await profile_helpers.get_tailor(db, tailor_id)
    if tailor is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Tailor not found"
        )
    return safe_model_validate(TailorProfileResponse, tailor)


@router.get("/tailors/{tailor_id}/reviews", response_model=List[ReviewResponse])
async def get_tailor_reviews(
    tailor_id: UUID,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_review_read)
):
    reviews = await profile_helpers.get_tailor_reviews(db, tailor_id)
    return safe_model_validate_list(ReviewResponse, reviews)


@router.post("/tailors/{tailor_id}/reviews", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
async def create_tailor_review(
    tailor_id: UUID,
    review_data: ReviewCreate,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_review_write)
):
    try:
        customer = current_user.require_role("customer")

        tailor = await profile_helpers.get_tailor(db, tailor_id)
        if tailor is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Tailor not found"
            )

        review = await profile_helpers.create_review(
            db,
            customer_id=customer.id,
            tailor_id=tailor.id,
            rating=review_data.rating,
            title=review_data.title,
            comment=review_data.comment,
            order_id=review_data.order_id
        )
        logger.info(f"Customer {customer.id} reviewed tailor {tailor.id}")
        return safe_model_validate(ReviewResponse, review)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating review: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create review"
        )
