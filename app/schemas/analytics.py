"""Analytics and notification schemas"""

from typing import List
from uuid import UUID
from pydantic import BaseModel


class ItemCount(BaseModel):
    name: str
    quantity: int


class DailyRevenue(BaseModel):
    date: str  # YYYY-MM-DD (UTC)
    revenue_cents: int


class StatusBreakdown(BaseModel):
    """Order counts per status; unrecognized statuses are counted, not dropped"""
    pending: int = 0
    ready: int = 0
    cancelled: int = 0
    unrecognized: int = 0
    total: int = 0


class DashboardSummary(BaseModel):
    top_items: List[ItemCount]
    daily_revenue: List[DailyRevenue]
    status_breakdown: StatusBreakdown


class PaymentsOverview(BaseModel):
    total_revenue_cents: int
    pending_payments: int
    total_transactions: int
    trend: List[DailyRevenue]


class NotificationItem(BaseModel):
    id: UUID  # Order document id
    message: str


class NotificationsResponse(BaseModel):
    notifications: List[NotificationItem]
    has_unread: bool
