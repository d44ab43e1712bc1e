from fastapi import HTTPException, status, UploadFile
from supabase import Client
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from config import get_supabase_admin_client, SUPABASE_STORAGE_BUCKET
from models import UserProfile, CustomerProfile, TailorProfile, AdminProfile, TailorReview
from typing import Any, Dict, List, Optional, Union
import uuid
import os
import logging

logger = logging.getLogger(__name__)

ROLE_PROFILE_MODELS = {
    "customer": CustomerProfile,
    "tailor": TailorProfile,
    "admin": AdminProfile,
}

# Aggregates and identity fields that profile updates never touch
PROTECTED_PROFILE_FIELDS = {
    "id", "user_id", "user_profile_id", "role", "email",
    "rating", "total_orders", "total_customers", "is_verified",
    "created_at", "updated_at",
}

ALLOWED_IMAGE_TYPES = ["image/jpeg", "image/png", "image/gif", "image/webp"]
MAX_IMAGE_BYTES = 5 * 1024 * 1024

RoleProfile = Union[CustomerProfile, TailorProfile, AdminProfile]


def as_uuid(value: Any) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value))


class ProfileHelpers:
    """Profile store operations for the customer, tailor and admin tables"""

    def __init__(self):
        self._storage = None

    @property
    def storage(self):
        if self._storage is None:
            client: Client = get_supabase_admin_client()
            self._storage = client.storage
        return self._storage

    async def get_user_profile(self, db: AsyncSession, user_id: Any) -> Optional[UserProfile]:
        result = await db.execute(
            select(UserProfile).where(UserProfile.user_id == as_uuid(user_id))
        )
        return result.scalar_one_or_none()

    async def get_profile(self, db: AsyncSession, user_id: Any, role: str) -> Optional[RoleProfile]:
        """Role-specific profile for an auth user, or None"""
        model = ROLE_PROFILE_MODELS.get(role)
        if model is None:
            return None
        result = await db.execute(select(model).where(model.user_id == as_uuid(user_id)))
        return result.scalar_one_or_none()

    async def create_profile(
        self,
        db: AsyncSession,
        user_id: Any,
        email: str,
        role: str,
        full_name: str,
        phone: Optional[str] = None
    ) -> RoleProfile:
        """
        Create the identity record and its role profile in one transaction.
        Calling again with the same role returns the existing profile; a
        different role is refused because roles are immutable.
        """
        user_id = as_uuid(user_id)
        existing = await self.get_user_profile(db, user_id)
        if existing:
            if existing.role != role:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail=f"User already registered as {existing.role}; role cannot be changed"
                )
            profile = await self.get_profile(db, user_id, role)
            if profile:
                return profile

        if role not in ROLE_PROFILE_MODELS:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unknown role: {role}"
            )

        user_profile = existing or UserProfile(user_id=user_id, email=email, role=role)
        if existing is None:
            db.add(user_profile)
            await db.flush()

        if role == "customer":
            profile = CustomerProfile(
                user_profile_id=user_profile.id,
                user_id=user_id,
                full_name=full_name,
                email=email,
                phone=phone,
            )
        elif role == "tailor":
            profile = TailorProfile(
                user_profile_id=user_profile.id,
                user_id=user_id,
                full_name=full_name,
                email=email,
                phone=phone or "",
                business_name=full_name,
                address="",
                city="",
                state="",
                postal_code="",
            )
        else:
            profile = AdminProfile(
                user_profile_id=user_profile.id,
                user_id=user_id,
                full_name=full_name,
                email=email,
            )

        db.add(profile)
        await db.commit()
        await db.refresh(profile)
        logger.info(f"Created {role} profile {profile.id} for user {user_id}")
        return profile

    async def update_profile(
        self,
        db: AsyncSession,
        user_id: Any,
        role: str,
        updates: Dict[str, Any]
    ) -> Optional[RoleProfile]:
        profile = await self.get_profile(db, user_id, role)
        if profile is None:
            return None

        for field, value in updates.items():
            if field in PROTECTED_PROFILE_FIELDS or not hasattr(profile, field):
                continue
            setattr(profile, field, value)

        await db.commit()
        await db.refresh(profile)
        return profile

    async def get_tailor(self, db: AsyncSession, tailor_id: Any) -> Optional[TailorProfile]:
        result = await db.execute(select(TailorProfile).where(TailorProfile.id == as_uuid(tailor_id)))
        return result.scalar_one_or_none()

    async def get_customer(self, db: AsyncSession, customer_id: Any) -> Optional[CustomerProfile]:
        result = await db.execute(select(CustomerProfile).where(CustomerProfile.id == as_uuid(customer_id)))
        return result.scalar_one_or_none()

    async def list_tailors(
        self,
        db: AsyncSession,
        verified_only: bool = True,
        limit: int = 6,
        offset: int = 0
    ) -> List[TailorProfile]:
        query = select(TailorProfile)
        if verified_only:
            query = query.where(TailorProfile.is_verified.is_(True))
        query = query.order_by(TailorProfile.rating.desc()).offset(offset).limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_tailor_reviews(self, db: AsyncSession, tailor_id: Any) -> List[TailorReview]:
        result = await db.execute(
            select(TailorReview)
            .where(TailorReview.tailor_id == as_uuid(tailor_id))
            .where(TailorReview.is_published.is_(True))
            .order_by(TailorReview.created_at.desc())
        )
        return list(result.scalars().all())

    async def create_review(
        self,
        db: AsyncSession,
        customer_id: Any,
        tailor_id: Any,
        rating: int,
        title: Optional[str] = None,
        comment: Optional[str] = None,
        order_id: Optional[Any] = None
    ) -> TailorReview:
        review = TailorReview(
            tailor_id=as_uuid(tailor_id),
            customer_id=as_uuid(customer_id),
            order_id=as_uuid(order_id) if order_id else None,
            rating=rating,
            title=title,
            comment=comment,
        )
        db.add(review)
        await db.commit()
        await db.refresh(review)
        return review

    async def set_tailor_verified(self, db: AsyncSession, tailor_id: Any, is_verified: bool) -> Optional[TailorProfile]:
        tailor = await self.get_tailor(db, tailor_id)
        if tailor is None:
            return None
        tailor.is_verified = is_verified
        await db.commit()
        await db.refresh(tailor)
        return tailor

    async def upload_profile_image(self, profile_id: str, file: UploadFile) -> str:
        """
        Upload profile image to Supabase Storage and return the public URL
        """
        try:
            logger.info(f"Starting upload for profile_id: {profile_id}")

            if file.content_type not in ALLOWED_IMAGE_TYPES:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"File type {file.content_type} not allowed"
                )

            file_content = await file.read()
            if len(file_content) > MAX_IMAGE_BYTES:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="File size must be less than 5MB"
                )

            file_extension = os.path.splitext(file.filename)[1] if file.filename else '.jpg'
            unique_filename = f"profiles/{profile_id}/{uuid.uuid4()}{file_extension}"

            self.storage.from_(SUPABASE_STORAGE_BUCKET).upload(
                path=unique_filename,
                file=file_content,
                file_options={"content-type": file.content_type}
            )

            public_url = self.storage.from_(SUPABASE_STORAGE_BUCKET).get_public_url(unique_filename)
            logger.info(f"Public URL: {public_url}")

            return public_url

        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Unexpected error uploading profile image: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to upload image"
            )

    async def delete_profile_image(self, image_url: str) -> bool:
        """
        Delete a profile image from Supabase Storage.
        Only objects under profiles/ in our own bucket are touched.
        """
        try:
            if "/storage/v1/object/public/" not in image_url:
                return False

            parts = image_url.split("/storage/v1/object/public/")[1]
            bucket, _, path = parts.partition("/")
            if bucket != SUPABASE_STORAGE_BUCKET or not path.startswith("profiles/"):
                logger.warning(f"Not removing image outside the profile folder: {image_url}")
                return False

            self.storage.from_(SUPABASE_STORAGE_BUCKET).remove([path])
            return True

        except Exception as e:
            logger.warning(f"Failed to delete profile image: {str(e)}")
            return False


profile_helpers = ProfileHelpers()
