"""
Sales reports over a trailing time window, and their text/JSON export.
"""

from typing import Any, Dict, List, Optional, Sequence
from datetime import datetime, timedelta, timezone
import json
import logging

from magicsell.schemas.order import Order
from magicsell.services.aggregator import parse_amount, shop_of
from magicsell.services.bucketing import group_by, parse_timestamp

logger = logging.getLogger(__name__)

TIME_RANGE_DAYS = {
    "week": 7,
    "month": 30,
    "quarter": 90,
    "year": 365,
}
DEFAULT_TIME_RANGE = "month"


def _window(orders: Sequence[Order], start: datetime, end: datetime) -> List[Order]:
    selected = []
    for order in orders:
        created = parse_timestamp(order.created_at)
        if created is not None and start <= created <= end:
            selected.append(order)
    return selected


def _revenue(orders: Sequence[Order]) -> float:
    return sum(parse_amount(o.total_amount) for o in orders)


def growth_rate(current: float, previous: float) -> float:
    """Percentage change against the previous window."""
    if previous > 0:
        return round((current - previous) / previous * 100, 1)
    return 100.0 if current > 0 else 0.0


def _leader(totals: Dict[str, float]) -> Optional[str]:
    best = None
    for key, value in totals.items():
        if best is None or value > totals[best]:
            best = key
    return best


def monthly_trends(orders: Sequence[Order]) -> Dict[str, List[float]]:
    def month_of(order: Order) -> str:
        return parse_timestamp(order.created_at).strftime("%Y-%m")

    months = group_by(orders, month_of)
    revenue, counts, average = [], [], []
    for month in sorted(months):
        month_revenue = _revenue(months[month])
        revenue.append(round(month_revenue, 2))
        counts.append(len(months[month]))
        average.append(round(month_revenue / len(months[month]), 2))
    return {"months": sorted(months), "revenue": revenue, "orders": counts, "average": average}


def insights(total_orders: int, average: float, growth: float) -> List[Dict[str, str]]:
    if growth > 0:
        trend = {
            "type": "positive",
            "title": "Revenue Growth",
            "description": f"{growth:.1f}% increase compared to last period",
            "value": f"+{growth:.1f}%",
        }
    else:
        trend = {
            "type": "warning",
            "title": "Revenue Decline",
            "description": f"{abs(growth):.1f}% decrease compared to last period",
            "value": f"{growth:.1f}%",
        }

    return [
        trend,
        {
            "type": "info",
            "title": "Order Efficiency",
            "description": f"Average order value: £{average:.2f}",
            "value": f"£{average:.2f}",
        },
        {
            "type": "success",
            "title": "Performance",
            "description": f"{total_orders} orders processed successfully",
            "value": str(total_orders),
        },
    ]


def sales_report(
    orders: Sequence[Order],
    time_range: str = DEFAULT_TIME_RANGE,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Summarise orders created within the trailing window.

    Growth compares the window's revenue with the window of equal length
    immediately before it.
    """
    now = now or datetime.now(timezone.utc)
    days = TIME_RANGE_DAYS.get(time_range, TIME_RANGE_DAYS[DEFAULT_TIME_RANGE])
    start = now - timedelta(days=days)

    current = _window(orders, start, now)
    previous = _window(orders, start - timedelta(days=days), start - timedelta(microseconds=1))

    total_revenue = _revenue(current)
    total_orders = len(current)
    average = total_revenue / total_orders if total_orders else 0.0
    growth = growth_rate(total_revenue, _revenue(previous))

    shops: Dict[str, float] = {}
    payments: Dict[str, float] = {}
    for order in current:
        amount = parse_amount(order.total_amount)
        shops[shop_of(order)] = shops.get(shop_of(order), 0.0) + amount
        method = order.payment_method or "Not Set"
        payments[method] = payments.get(method, 0.0) + amount

    logger.info(f"Sales report for {time_range}: {total_orders} orders, revenue {total_revenue:.2f}")

    return {
        "timeRange": time_range,
        "startDate": start.date().isoformat(),
        "endDate": now.date().isoformat(),
        "summary": {
            "totalRevenue": round(total_revenue, 2),
            "totalOrders": total_orders,
            "averageOrderValue": round(average, 2),
            "growthRate": growth,
            "topPerformingShop": _leader(shops),
            "mostPopularPayment": _leader(payments),
        },
        "trends": monthly_trends(current),
        "breakdown": {"shops": shops, "payments": payments},
        "insights": insights(total_orders, average, growth),
    }


def export_report(report: Dict[str, Any], fmt: str, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or datetime.now(timezone.utc)
    stamp = now.date().isoformat()

    if fmt == "txt":
        summary = report.get("summary") or {}
        body = (
            f"Sales Report - {stamp}\n\n"
            f"Total Revenue: £{float(summary.get('totalRevenue', 0)):.2f}\n"
            f"Total Orders: {summary.get('totalOrders', 0)}\n"
            f"Average Order Value: £{float(summary.get('averageOrderValue', 0)):.2f}\n"
            f"Growth Rate: {float(summary.get('growthRate', 0)):.1f}%\n"
        )
    else:
        body = json.dumps(report, indent=2)

    return {"success": True, "data": body, "filename": f"sales-report-{stamp}.{fmt}"}
