"""
Order bucketing.

Groups ledger orders into calendar-day and ISO-week buckets keyed by their
creation timestamp (UTC).
"""

from typing import Callable, Dict, Iterable, List, Optional, Union
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
import logging
import math

from magicsell.schemas.order import Order

logger = logging.getLogger(__name__)


def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp into an aware UTC datetime, or None."""
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        # Offsets that push the instant past year 1 or 9999
        return None


def day_key(moment: datetime) -> str:
    """YYYY-MM-DD of the UTC calendar date."""
    return moment.date().isoformat()


def iso_week_key(day: Union[date, datetime]) -> str:
    """
    ISO-8601 week key, e.g. ``2024-W1``.

    Shifts the date to the Thursday of its Monday-start week; the Thursday's
    year is the week-numbering year and the week number is its day-of-year
    divided by seven, rounded up.
    """
    if isinstance(day, datetime):
        day = day.date()
    thursday = day + timedelta(days=4 - day.isoweekday())
    year_start = date(thursday.year, 1, 1)
    week = math.ceil(((thursday - year_start).days + 1) / 7)
    return f"{thursday.year}-W{week}"


@dataclass
class Buckets:
    """Orders grouped by day and by ISO week, keys in first-encounter order."""
    days: Dict[str, List[Order]] = field(default_factory=dict)
    weeks: Dict[str, List[Order]] = field(default_factory=dict)
    skipped: List[int] = field(default_factory=list)


def group_by(orders: Iterable[Order], key_fn: Callable[[Order], str]) -> Dict[str, List[Order]]:
    grouped: Dict[str, List[Order]] = {}
    for order in orders:
        grouped.setdefault(key_fn(order), []).append(order)
    return grouped


def bucket_orders(orders: Iterable[Order]) -> Buckets:
    """
    Partition orders into day and week buckets.

    Orders without a readable creation timestamp are left out and reported
    in ``Buckets.skipped``.
    """
    buckets = Buckets()

    for order in orders:
        created = parse_timestamp(order.created_at)
        if created is None:
            logger.warning(
                "Order %s has no usable createdAt (%r); left out of sales buckets",
                order.id, order.created_at,
            )
            buckets.skipped.append(order.id)
            continue

        buckets.days.setdefault(day_key(created), []).append(order)
        buckets.weeks.setdefault(iso_week_key(created), []).append(order)

    return buckets
