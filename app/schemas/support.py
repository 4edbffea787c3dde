"""Support ticket schemas"""

from datetime import datetime
from typing import Optional, List
from uuid import UUID
from pydantic import BaseModel, Field

from app.models.support import TicketArea


class TicketCreate(BaseModel):
    """Open a new support ticket"""
    area: TicketArea = TicketArea.FEEDBACK
    subject: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    order_code: Optional[str] = None


class MessageCreate(BaseModel):
    """Reply on a ticket"""
    text: str


class MessageResponse(BaseModel):
    text: str
    sender_id: UUID
    sender_name: str
    created_at: datetime

    class Config:
        from_attributes = True


class TicketResponse(BaseModel):
    """Support ticket with its message log"""
    id: UUID
    user_id: UUID
    user_name: Optional[str]
    area: str
    subject: str
    order_code: Optional[str]
    status: str
    messages: List[MessageResponse] = []
    created_at: datetime
    last_updated_at: datetime

    class Config:
        from_attributes = True
