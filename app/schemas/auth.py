"""Authentication schemas"""

from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, EmailStr, Field


class Token(BaseModel):
    """JWT token response"""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class TokenPayload(BaseModel):
    """JWT token payload"""
    sub: str  # User ID
    type: str
    exp: datetime


class RefreshRequest(BaseModel):
    """Token refresh request"""
    refresh_token: str


class SignupRequest(BaseModel):
    """Create account request"""
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)


class EmailTokenRequest(BaseModel):
    """Email verification link payload"""
    token: str


class PasswordResetRequest(BaseModel):
    """Request a password reset email"""
    email: EmailStr


class PasswordResetConfirm(BaseModel):
    """Set a new password from a reset link"""
    token: str
    new_password: str = Field(..., min_length=6)


class UserResponse(BaseModel):
    """User response"""
    id: UUID
    email: str
    name: str
    is_admin: bool
    email_verified: bool
    is_active: bool
    created_at: datetime
    last_login: Optional[datetime]

    class Config:
        from_attributes = True


class RouteDecision(BaseModel):
    """Where the client should land for a requested area"""
    allowed: bool
    redirect: Optional[str] = None
