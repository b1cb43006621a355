"""
Sales aggregation.

Computes the per-bucket metrics (revenue, status counts, payment breakdown,
top shop) for day and week buckets, plus the whole-ledger summary served by
the analytics endpoint.
"""

from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple
from dataclasses import dataclass, field
from datetime import datetime, timezone
import math

from magicsell.schemas.order import Order, OrderStatus, PaymentMethod
from magicsell.services.bucketing import parse_timestamp, day_key

NO_SHOP = "N/A"

# Payment methods that have their own breakdown slot. "Bank Transfer" is
# reported as "Bank"; every other method is dropped from the breakdown.
PAYMENT_SLOTS = {
    PaymentMethod.BALANCE.value: "Balance",
    PaymentMethod.CASH.value: "Cash",
    PaymentMethod.CARD.value: "Card",
    PaymentMethod.BANK_TRANSFER.value: "Bank",
}


def empty_breakdown() -> Dict[str, float]:
    return {"Balance": 0, "Cash": 0, "Card": 0, "Bank": 0}


def parse_amount(value: Any) -> float:
    """Numeric value of an order total; missing or non-numeric counts as 0."""
    if value is None or value == "" or isinstance(value, bool):
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(amount) or math.isinf(amount):
        return 0.0
    return amount


def shop_of(order: Order) -> str:
    return order.shop_name or NO_SHOP


@dataclass
class BucketMetrics:
    """Metrics for one day or week bucket."""
    total_revenue: float = 0.0
    total_orders: int = 0
    delivered_orders: int = 0
    pending_orders: int = 0
    in_process_orders: int = 0
    average_order_value: float = 0.0
    top_shop: str = NO_SHOP
    top_shop_revenue: float = 0.0
    payment_breakdown: Dict[str, float] = field(default_factory=empty_breakdown)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalRevenue": self.total_revenue,
            "totalOrders": self.total_orders,
            "deliveredOrders": self.delivered_orders,
            "pendingOrders": self.pending_orders,
            "inProcessOrders": self.in_process_orders,
            "averageOrderValue": self.average_order_value,
            "topShop": self.top_shop,
            "topShopRevenue": self.top_shop_revenue,
            "paymentBreakdown": dict(self.payment_breakdown),
        }


def payment_breakdown(orders: Iterable[Order]) -> Dict[str, float]:
    breakdown = empty_breakdown()
    for order in orders:
        slot = PAYMENT_SLOTS.get(order.payment_method or "")
        if slot is not None:
            breakdown[slot] += parse_amount(order.total_amount)
    return breakdown


def revenue_by_shop(orders: Iterable[Order]) -> Dict[str, float]:
    """Summed revenue per shop, shops in first-encounter order."""
    revenue: Dict[str, float] = {}
    for order in orders:
        shop = shop_of(order)
        revenue[shop] = revenue.get(shop, 0) + parse_amount(order.total_amount)
    return revenue


def top_shop(orders: Iterable[Order]) -> Tuple[str, float]:
    """
    Shop with the highest summed revenue.

    Folds left to right with a strict comparison, so among equal revenues the
    shop seen first wins.
    """
    best_shop, best_revenue = NO_SHOP, None
    for shop, revenue in revenue_by_shop(orders).items():
        if best_revenue is None or revenue > best_revenue:
            best_shop, best_revenue = shop, revenue
    return best_shop, best_revenue or 0


def aggregate_bucket(orders: Sequence[Order]) -> BucketMetrics:
    total_revenue = sum(parse_amount(o.total_amount) for o in orders)
    total_orders = len(orders)
    shop, shop_revenue = top_shop(orders)

    return BucketMetrics(
        total_revenue=total_revenue,
        total_orders=total_orders,
        delivered_orders=sum(1 for o in orders if o.status == OrderStatus.DELIVERED.value),
        pending_orders=sum(1 for o in orders if o.status == OrderStatus.PENDING.value),
        in_process_orders=sum(1 for o in orders if o.status == OrderStatus.IN_PROCESS.value),
        average_order_value=total_revenue / total_orders if total_orders > 0 else 0,
        top_shop=shop,
        top_shop_revenue=shop_revenue,
        payment_breakdown=payment_breakdown(orders),
    )


def day_bucket_id(day: str) -> int:
    return int(day.replace("-", ""))


def week_bucket_id(week: str) -> int:
    # Only the week number; the year is not part of the id.
    return int(week.split("-W")[1])


def build_daily_sales(days: Dict[str, List[Order]]) -> List[Dict[str, Any]]:
    return [
        {"id": day_bucket_id(day), "date": day, **aggregate_bucket(orders).to_dict()}
        for day, orders in days.items()
    ]


def build_weekly_sales(weeks: Dict[str, List[Order]]) -> List[Dict[str, Any]]:
    return [
        {"id": week_bucket_id(week), "week": week, **aggregate_bucket(orders).to_dict()}
        for week, orders in weeks.items()
    ]


def hourly_breakdown(orders: Iterable[Order]) -> Dict[str, float]:
    """Revenue per UTC hour of creation."""
    breakdown: Dict[str, float] = {}
    for order in orders:
        created = parse_timestamp(order.created_at)
        if created is None:
            continue
        hour = str(created.hour)
        breakdown[hour] = breakdown.get(hour, 0) + parse_amount(order.total_amount)
    return breakdown


def weekday_breakdown(orders: Iterable[Order]) -> Dict[str, float]:
    """Revenue per weekday name of creation."""
    breakdown: Dict[str, float] = {}
    for order in orders:
        created = parse_timestamp(order.created_at)
        if created is None:
            continue
        weekday = created.strftime("%A")
        breakdown[weekday] = breakdown.get(weekday, 0) + parse_amount(order.total_amount)
    return breakdown


def ledger_summary(orders: Sequence[Order], now: Optional[datetime] = None) -> Dict[str, Any]:
    """Whole-ledger totals, including cancelled orders and the top five shops."""
    now = now or datetime.now(timezone.utc)
    today = day_key(now)

    total_orders = len(orders)
    total_revenue = sum(parse_amount(o.total_amount) for o in orders)

    shop_stats: Dict[str, Dict[str, float]] = {}
    for order in orders:
        stats = shop_stats.setdefault(shop_of(order), {"count": 0, "revenue": 0})
        stats["count"] += 1
        stats["revenue"] += parse_amount(order.total_amount)

    top_shops = sorted(
        ({"shop": shop, **stats} for shop, stats in shop_stats.items()),
        key=lambda s: s["revenue"],
        reverse=True,
    )[:5]

    todays_orders = 0
    for order in orders:
        created = parse_timestamp(order.created_at)
        if created is None or day_key(created) == today:
            todays_orders += 1

    def count(status: OrderStatus) -> int:
        return sum(1 for o in orders if o.status == status.value)

    return {
        "totalOrders": total_orders,
        "pendingOrders": count(OrderStatus.PENDING),
        "inProcessOrders": count(OrderStatus.IN_PROCESS),
        "deliveredOrders": count(OrderStatus.DELIVERED),
        "cancelledOrders": count(OrderStatus.CANCELLED),
        "totalRevenue": total_revenue,
        "averageOrderValue": total_revenue / total_orders if total_orders > 0 else 0,
        "topShops": top_shops,
        "todaysOrders": todays_orders,
    }
