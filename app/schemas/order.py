"""Order schemas"""

from datetime import datetime
from typing import Optional, List, Literal
from uuid import UUID
from pydantic import BaseModel, Field


class OrderItemCreate(BaseModel):
    """Cart line; name and price are taken from the menu at checkout"""
    name: str = Field(..., min_length=1)
    quantity: int = Field(1, ge=1)


class OrderCreate(BaseModel):
    """Checkout request"""
    items: List[OrderItemCreate]
    payment_method: Literal["gpay", "phonepe", "paytm", "other"]
    schedule_later: Optional[datetime] = None
    notes: Optional[str] = None


class PaymentUpdate(BaseModel):
    """Manually set the payment-settled flag"""
    payment_settled: bool


class OrderItemResponse(BaseModel):
    """Order item in response"""
    name: str
    quantity: int
    price_cents: int = 0


class OrderResponse(BaseModel):
    """Order response"""
    id: UUID
    order_code: str
    user_id: UUID
    customer_name: Optional[str] = None
    items: List[OrderItemResponse]
    amount_cents: int
    payment_method: str
    payment_settled: bool
    schedule_later: Optional[datetime]
    status: str
    is_notified: bool
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime


class MyOrdersResponse(BaseModel):
    """Current user's orders split by tab"""
    pending: List[OrderResponse]
    past: List[OrderResponse]


class OrderDeskResponse(BaseModel):
    """Pending orders for the kitchen desk"""
    orders: List[OrderResponse]
    scheduled_orders: List[OrderResponse]
