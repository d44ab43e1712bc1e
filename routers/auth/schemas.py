from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Dict, Any
from routers.profiles.schemas import UserRole

# Request schemas
class UserRegister(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    role: UserRole
    full_name: str = Field(min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=20)

class UserLogin(BaseModel):
    email: EmailStr
    password: str

class RefreshRequest(BaseModel):
    refresh_token: str

# Response schemas
class SessionResponse(BaseModel):
    user_id: Optional[str] = None
    email: Optional[str] = None
    role: Optional[UserRole] = None
    profile: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

class AuthResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    session: Optional[SessionResponse] = None
    message: Optional[str] = None

class TokenResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
