"""Admin analytics endpoints"""

from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.analytics.aggregation import build_dashboard, payments_overview
from app.config import settings
from app.database import get_db
from app.models.user import User
from app.realtime.queries import all_orders_query
from app.schemas.analytics import DashboardSummary, PaymentsOverview
from app.api.auth import get_admin_user

router = APIRouter()


@router.get("/dashboard", response_model=DashboardSummary)
async def dashboard(
    current_user: User = Depends(get_admin_user),
    db: AsyncSession = Depends(get_db),
):
    """Top items, 30 day revenue trend and status breakdown"""
    result = await db.execute(all_orders_query())
    return build_dashboard(
        result.scalars().all(),
        now=datetime.utcnow(),
        revenue_days=settings.dashboard_revenue_days,
        top_limit=settings.dashboard_top_items,
    )


@router.get("/payments", response_model=PaymentsOverview)
async def payments(
    current_user: User = Depends(get_admin_user),
    db: AsyncSession = Depends(get_db),
):
    """Revenue totals for the payments page"""
    result = await db.execute(all_orders_query())
    return payments_overview(result.scalars().all(), trend_days=settings.payments_trend_days)
