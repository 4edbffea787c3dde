"""Dashboard aggregations over an in-memory order snapshot

Every function here is pure: the output depends only on the orders passed
in and, for time windows, the ``now`` instant supplied by the caller.
"""

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Sequence
import structlog

from app.models.order import Order, OrderStatus
from app.schemas.analytics import (
    DailyRevenue,
    DashboardSummary,
    ItemCount,
    PaymentsOverview,
    StatusBreakdown,
)

logger = structlog.get_logger()


def _ready(orders: Iterable[Order]) -> List[Order]:
    return [order for order in orders if order.status == OrderStatus.READY.value]


def _revenue_by_day(orders: Iterable[Order]) -> List[DailyRevenue]:
    buckets: Dict[str, int] = defaultdict(int)
    for order in orders:
        if order.created_at is None:
            continue
        buckets[order.created_at.date().isoformat()] += order.amount_cents or 0
    return [
        DailyRevenue(date=date, revenue_cents=revenue)
        for date, revenue in sorted(buckets.items())
    ]


def top_items(orders: Sequence[Order], limit: int = 5) -> List[ItemCount]:
    """
    Best sellers among ready orders by summed quantity.

    Ties are broken by item name ascending so the ranking does not depend
    on the order documents arrived in.
    """
    counts: Dict[str, int] = defaultdict(int)
    for order in _ready(orders):
        for item in order.items_json or []:
            counts[item["name"]] += int(item.get("quantity", 0))

    ranked = sorted(counts.items(), key=lambda entry: (-entry[1], entry[0]))
    return [ItemCount(name=name, quantity=quantity) for name, quantity in ranked[:limit]]


def daily_revenue(orders: Sequence[Order], now: datetime, days: int = 30) -> List[DailyRevenue]:
    """Revenue of ready orders per UTC calendar day over the trailing window"""
    window_start = now - timedelta(days=days)
    recent = [
        order for order in _ready(orders)
        if order.created_at is not None and order.created_at >= window_start
    ]
    return _revenue_by_day(recent)


def status_breakdown(orders: Sequence[Order]) -> StatusBreakdown:
    """Count orders per status; anything unexpected is counted and logged"""
    breakdown = StatusBreakdown(total=len(orders))
    unexpected = []

    for order in orders:
        if order.status == OrderStatus.PENDING.value:
            breakdown.pending += 1
        elif order.status == OrderStatus.READY.value:
            breakdown.ready += 1
        elif order.status == OrderStatus.CANCELLED.value:
            breakdown.cancelled += 1
        else:
            breakdown.unrecognized += 1
            unexpected.append(order.order_code)

    if unexpected:
        logger.warning(
            "Orders with unrecognized status",
            count=len(unexpected),
            order_codes=unexpected,
        )

    return breakdown


def build_dashboard(
    orders: Sequence[Order],
    now: datetime,
    revenue_days: int = 30,
    top_limit: int = 5,
) -> DashboardSummary:
    return DashboardSummary(
        top_items=top_items(orders, limit=top_limit),
        daily_revenue=daily_revenue(orders, now, days=revenue_days),
        status_breakdown=status_breakdown(orders),
    )


def payments_overview(orders: Sequence[Order], trend_days: int = 7) -> PaymentsOverview:
    """Totals for the payments page plus the most recent daily revenue buckets"""
    ready = _ready(orders)
    trend = _revenue_by_day(ready)
    return PaymentsOverview(
        total_revenue_cents=sum(order.amount_cents or 0 for order in ready),
        pending_payments=sum(1 for order in orders if order.status == OrderStatus.PENDING.value),
        total_transactions=len(orders),
        trend=trend[-trend_days:] if trend_days > 0 else [],
    )
