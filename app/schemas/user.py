"""User administration and account schemas"""

from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, Field


class UserListItem(BaseModel):
    """Row in the admin users table"""
    id: UUID
    name: str
    email: str
    is_admin: bool
    created_at: datetime

    class Config:
        from_attributes = True


class AccountResponse(BaseModel):
    """Current user's profile"""
    name: str
    email: str


class AccountUpdate(BaseModel):
    """Profile changes a user may make to their own account"""
    name: str = Field(..., min_length=1)
