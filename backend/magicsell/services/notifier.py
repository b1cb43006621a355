"""
Notifications derived from ledger state, and their merge with the
user-created notifications stored in the same collection.
"""

from typing import Any, Dict, List, Optional, Sequence
from datetime import datetime, timezone

from magicsell.schemas.order import Order, OrderStatus

SYNTHETIC_NOTIFICATION_ID = 1


def utc_now_iso(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.isoformat().replace("+00:00", "Z")


def delivery_notifications(orders: Sequence[Order], now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """
    Zero or one "delivered" notification for the last order in the ledger.

    The last order by ledger position decides, not the most recent delivery.
    """
    if not orders:
        return []

    latest = orders[-1]
    if latest.status != OrderStatus.DELIVERED.value:
        return []

    return [{
        "id": SYNTHETIC_NOTIFICATION_ID,
        "type": "order_update",
        "message": f"Order #{latest.id} delivered successfully",
        "timestamp": latest.delivered_at or utc_now_iso(now),
        "read": False,
        "synthetic": True,
    }]


def is_synthetic(notification: Dict[str, Any]) -> bool:
    return bool(notification.get("synthetic"))


def merge_notifications(
    synthetic: Sequence[Dict[str, Any]],
    stored: Sequence[Dict[str, Any]],
) -> List[Dict[str, Any]]:
    """Fresh synthetic entries first, then the stored user notifications."""
    return list(synthetic) + [n for n in stored if not is_synthetic(n)]
