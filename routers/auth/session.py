"""
Request-owned authentication session.

An AuthSession holds the signed-in identity, its role and its role profile.
The role is read from the identity record, so exactly one role table is
consulted per session.
"""
from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from routers.profiles.helpers import profile_helpers
from routers.profiles.schemas import PROFILE_RESPONSE_MODELS
from utils.response_helpers import safe_model_validate
from .helpers import auth_helpers, AuthIdentity
from .schemas import UserRegister, SessionResponse
from typing import Any, Optional
import logging

logger = logging.getLogger(__name__)


class AuthSession:

    def __init__(self):
        self.user: Optional[AuthIdentity] = None
        self.role: Optional[str] = None
        self.profile: Optional[Any] = None
        self.error: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def user_id(self) -> Optional[str]:
        return self.user.id if self.user else None

    @property
    def profile_id(self) -> Optional[str]:
        return str(self.profile.id) if self.profile is not None else None

    def require_role(self, *roles: str):
        """Raise 403 unless the session holds a profile in one of the given roles"""
        if self.role is None or self.profile is None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Profile required. Complete registration before using this resource"
            )
        if self.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied for role {self.role}"
            )
        return self.profile

    async def initialize(self, db: AsyncSession, identity: AuthIdentity) -> "AuthSession":
        """Load role and profile for a verified identity"""
        self.clear()
        self.user = identity

        user_profile = await profile_helpers.get_user_profile(db, identity.id)
        if user_profile is None:
            logger.info(f"User {identity.id} has no profile yet")
            return self

        self.role = user_profile.role
        self.profile = await profile_helpers.get_profile(db, identity.id, user_profile.role)
        if self.profile is None:
            logger.warning(f"User {identity.id} is tagged {user_profile.role} but has no {user_profile.role} profile")
        return self

    async def sign_up(self, db: AsyncSession, data: UserRegister):
        """Create the auth account and its profile; returns the provider session (may be None)"""
        self.clear()
        auth_response = auth_helpers.supabase.auth.sign_up({
            "email": data.email,
            "password": data.password,
            "options": {
                "data": {
                    "full_name": data.full_name,
                    "role": data.role.value
                }
            }
        })

        if auth_response.user is None:
            self.error = "Failed to create user account"
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=self.error
            )

        user = auth_response.user
        profile = await profile_helpers.create_profile(
            db,
            user_id=user.id,
            email=data.email,
            role=data.role.value,
            full_name=data.full_name,
            phone=data.phone
        )

        self.user = AuthIdentity(id=str(user.id), email=user.email or data.email)
        self.role = data.role.value
        self.profile = profile
        logger.info(f"Registered {self.role} {user.id}")
        return auth_response.session

    async def sign_in(self, db: AsyncSession, email: str, password: str):
        """Password sign-in followed by initialize(); returns the provider session"""
        self.clear()
        try:
            auth_response = auth_helpers.supabase.auth.sign_in_with_password({
                "email": email,
                "password": password
            })
        except Exception as e:
            logger.warning(f"Sign-in rejected for {email}: {str(e)}")
            auth_response = None

        if auth_response is None or auth_response.user is None or auth_response.session is None:
            self.error = "Invalid email or password"
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=self.error
            )

        user = auth_response.user
        await self.initialize(db, AuthIdentity(id=str(user.id), email=user.email))
        return auth_response.session

    def sign_out(self):
        try:
            auth_helpers.supabase.auth.sign_out()
        except Exception as e:
            logger.error(f"Logout failed: {str(e)}")
        self.clear()

    def clear(self):
        self.user = None
        self.role = None
        self.profile = None
        self.error = None

    def to_response(self) -> SessionResponse:
        profile = None
        if self.profile is not None and self.role in PROFILE_RESPONSE_MODELS:
            profile = safe_model_validate(PROFILE_RESPONSE_MODELS[self.role], self.profile).model_dump(mode="json")
        return SessionResponse(
            user_id=self.user_id,
            email=self.user.email if self.user else None,
            role=self.role,
            profile=profile,
            error=self.error
        )
