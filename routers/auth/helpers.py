from supabase import Client
from fastapi import HTTPException, status
from config import get_supabase_client, JWT_SECRET_KEY, JWT_ALGORITHM
from pydantic import BaseModel
from typing import Any, Dict, Optional
import jwt
import logging

logger = logging.getLogger(__name__)


class AuthIdentity(BaseModel):
    """Identity claims carried by a verified Supabase access token"""
    id: str
    email: Optional[str] = None
    payload: Dict[str, Any] = {}


class AuthHelpers:
    """Helper functions for authentication operations"""

    def __init__(self):
        self._supabase = None

    @property
    def supabase(self) -> Client:
        if self._supabase is None:
            self._supabase = get_supabase_client()
        return self._supabase

    def verify_token(self, token: str) -> AuthIdentity:
        """
        Verify JWT token locally without calling Supabase API
        """
        try:
            payload = jwt.decode(
                token,
                JWT_SECRET_KEY,
                algorithms=[JWT_ALGORITHM],
                options={
                    "verify_exp": True,
                    "verify_iat": True,
                    "verify_signature": True,
                    "verify_aud": False
                }
            )

            user_id = payload.get("sub")
            if not user_id:
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Invalid token: missing user ID"
                )

            return AuthIdentity(id=user_id, email=payload.get("email"), payload=payload)

        except HTTPException:
            raise
        except jwt.ExpiredSignatureError:
            logger.warning("JWT token expired")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token expired"
            )
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid JWT token: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token"
            )
        except Exception as e:
            logger.error(f"JWT verification failed: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token verification failed"
            )

    async def refresh_token(self, refresh_token: str):
        """Refresh access token using refresh token"""
        try:
            auth_response = self.supabase.auth.refresh_session(refresh_token)

            if auth_response.session is None:
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Invalid refresh token"
                )

            return auth_response.session

        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Token refresh error: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid refresh token"
            )

auth_helpers = AuthHelpers()
