from fastapi import APIRouter, Depends, HTTPException, status, Request, WebSocket
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from config import get_db
from .schemas import (
    UserRegister,
    UserLogin,
    RefreshRequest,
    AuthResponse,
    TokenResponse,
    SessionResponse
)
from .helpers import auth_helpers
from .session import AuthSession
from typing import Optional
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

security = HTTPBearer()


async def authenticate_token(db: AsyncSession, token: str) -> AuthSession:
    """Verify a bearer token and build the session for it"""
    identity = auth_helpers.verify_token(token)
    session = AuthSession()
    await session.initialize(db, identity)
    return session


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> AuthSession:
    """Get current session from JWT token"""
    session = await authenticate_token(db, credentials.credentials)
    logger.info(f"User {session.user_id} authenticated with role: {session.role}")
    request.state.current_user = session
    return session


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db)
):
    session = AuthSession()
    try:
        provider_session = await session.sign_up(db, user_data)

        if provider_session is None:
            return AuthResponse(
                access_token="",
                refresh_token="",
                session=session.to_response(),
                message="User created successfully. Please check your email to verify your account before logging in."
            )

        return AuthResponse(
            access_token=provider_session.access_token,
            refresh_token=provider_session.refresh_token,
            session=session.to_response()
        )

    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Registration failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Registration failed"
        )


@router.post("/login", response_model=AuthResponse)
async def login(
    user_data: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    session = AuthSession()
    try:
        provider_session = await session.sign_in(db, user_data.email, user_data.password)

        return AuthResponse(
            access_token=provider_session.access_token,
            refresh_token=provider_session.refresh_token,
            session=session.to_response()
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Login failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(request_data: RefreshRequest):
    provider_session = await auth_helpers.refresh_token(request_data.refresh_token)
    return TokenResponse(
        access_token=provider_session.access_token,
        refresh_token=provider_session.refresh_token
    )


@router.post("/logout")
async def logout(current_user: AuthSession = Depends(get_current_user)):
    current_user.sign_out()
    return {"message": "Successfully logged out"}


@router.get("/session", response_model=SessionResponse)
async def get_session(current_user: AuthSession = Depends(get_current_user)):
    """Identity, role and profile of the signed-in user"""
    return current_user.to_response()


async def authenticate_websocket(websocket: WebSocket, token: Optional[str], db: AsyncSession) -> Optional[AuthSession]:
    """Authenticate a WebSocket from its ?token= query; closes with 4001 on failure"""
    if not token:
        await websocket.close(code=4001, reason="Authentication required")
        return None
    try:
        return await authenticate_token(db, token)
    except HTTPException as e:
        logger.warning(f"WebSocket authentication failed: {e.detail}")
        await websocket.close(code=4001, reason="Invalid token")
        return None
