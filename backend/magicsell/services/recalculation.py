"""
Analytics recalculation.

Turns the order ledger into the full replacement set of derived collections:
daily sales, weekly sales, the prediction, the report and the synthetic
notifications. Pure with respect to its input; the caller persists the result.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence, Union
from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging

from pydantic import ValidationError

from magicsell.schemas.order import Order
from magicsell.services.aggregator import (
    build_daily_sales,
    build_weekly_sales,
    empty_breakdown,
    parse_amount,
    NO_SHOP,
)
from magicsell.services.bucketing import bucket_orders
from magicsell.services.forecaster import ForecastingService
from magicsell.services.notifier import delivery_notifications

logger = logging.getLogger(__name__)

DERIVED_COLLECTIONS = ("dailySales", "weeklySales", "predictions", "reports", "notifications")


@dataclass
class AnalyticsResult:
    """Replacement set of derived collections."""
    daily_sales: List[Dict[str, Any]] = field(default_factory=list)
    weekly_sales: List[Dict[str, Any]] = field(default_factory=list)
    predictions: List[Dict[str, Any]] = field(default_factory=list)
    reports: List[Dict[str, Any]] = field(default_factory=list)
    notifications: List[Dict[str, Any]] = field(default_factory=list)
    skipped_orders: int = 0

    def collections(self) -> Dict[str, List[Dict[str, Any]]]:
        """Derived collections in their persistence order."""
        return {
            "dailySales": self.daily_sales,
            "weeklySales": self.weekly_sales,
            "predictions": self.predictions,
            "reports": self.reports,
            "notifications": self.notifications,
        }


def coerce_order(raw: Union[Order, Mapping[str, Any], Any]) -> Optional[Order]:
    """Order model for a ledger entry, or None when the entry is malformed."""
    if isinstance(raw, Order):
        return raw
    if not isinstance(raw, Mapping):
        logger.warning(f"Skipping ledger entry of type {type(raw).__name__}")
        return None
    try:
        return Order.model_validate(dict(raw))
    except ValidationError as e:
        logger.warning(f"Skipping malformed order {raw.get('id')!r}: {e.error_count()} validation error(s)")
        return None


def build_report(weekly_sales: Sequence[Dict[str, Any]], now: datetime) -> Dict[str, Any]:
    """Summary of the last weekly bucket, with defaults when there is none."""
    latest = weekly_sales[-1] if weekly_sales else {}
    return {
        "id": 1,
        "type": "comprehensive",
        "date": now.date().isoformat(),
        "totalRevenue": latest.get("totalRevenue", 0),
        "totalOrders": latest.get("totalOrders", 0),
        "averageOrderValue": latest.get("averageOrderValue", 0),
        "topShop": latest.get("topShop", NO_SHOP),
        "paymentBreakdown": dict(latest.get("paymentBreakdown") or empty_breakdown()),
    }


def recalculate(
    orders: Sequence[Union[Order, Mapping[str, Any]]],
    now: Optional[datetime] = None,
    forecaster: Optional[ForecastingService] = None,
) -> AnalyticsResult:
    """
    Recompute every derived collection from the order ledger.

    Malformed entries are logged and left out; this never raises for the
    shape of the data. ``now`` only feeds the report date and the fallback
    notification timestamp.
    """
    now = now or datetime.now(timezone.utc)
    forecaster = forecaster or ForecastingService()

    coerced = [coerce_order(raw) for raw in orders]
    valid = [o for o in coerced if o is not None]

    buckets = bucket_orders(valid)
    daily_sales = build_daily_sales(buckets.days)
    weekly_sales = build_weekly_sales(buckets.weeks)

    predictions = [forecaster.predict_next_period(daily_sales)]
    reports = [build_report(weekly_sales, now)]

    # The last ledger entry decides; a malformed one yields no notification
    last = coerced[-1] if coerced else None
    notifications = delivery_notifications([last], now) if last is not None else []

    skipped = len(coerced) - len(valid) + len(buckets.skipped)

    logger.info(
        f"Recalculated analytics: {len(daily_sales)} daily, {len(weekly_sales)} weekly, "
        f"{len(valid)} orders, revenue {sum(parse_amount(o.total_amount) for o in valid):.2f}"
    )
    if skipped:
        logger.warning(f"{skipped} ledger entries left out of the recalculation")

    return AnalyticsResult(
        daily_sales=daily_sales,
        weekly_sales=weekly_sales,
        predictions=predictions,
        reports=reports,
        notifications=notifications,
        skipped_orders=skipped,
    )
