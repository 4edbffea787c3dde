"""Menu schemas"""

from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field


class MenuItemCreate(BaseModel):
    """Create menu item request"""
    item_code: Optional[str] = None
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    price_cents: int = Field(..., ge=0)


class MenuItemUpdate(BaseModel):
    """Update menu item request"""
    item_code: Optional[str] = None
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price_cents: Optional[int] = Field(None, ge=0)


class MenuItemResponse(BaseModel):
    """Menu item response"""
    id: UUID
    item_code: Optional[str]
    name: str
    description: Optional[str]
    price_cents: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
