# backend/tests/test_notifier.py
"""
Tests for derived notifications and their merge with stored ones.
"""

from magicsell.services.notifier import delivery_notifications, merge_notifications, utc_now_iso
from tests.factories import FIXED_NOW, make_order


def test_last_order_delivered_produces_one_notification():
    orders = [make_order(1), make_order(2, status="Delivered", deliveredAt="2024-01-02T16:00:00Z")]

    notifications = delivery_notifications(orders, FIXED_NOW)

    assert notifications == [{
        "id": 1,
        "type": "order_update",
        "message": "Order #2 delivered successfully",
        "timestamp": "2024-01-02T16:00:00Z",
        "read": False,
        "synthetic": True,
    }]


def test_missing_delivery_time_uses_now():
    notifications = delivery_notifications([make_order(3, status="Delivered")], FIXED_NOW)
    assert notifications[0]["timestamp"] == "2024-01-03T12:00:00Z"


def test_no_notification_when_last_order_not_delivered():
    assert delivery_notifications([make_order(1, status="Delivered"), make_order(2)], FIXED_NOW) == []
    assert delivery_notifications([], FIXED_NOW) == []


def test_merge_replaces_old_synthetic_entries():
    stored = [
        {"id": 1, "message": "Order #1 delivered successfully", "synthetic": True},
        {"id": 2, "message": "Van 2 is late"},
    ]
    fresh = [{"id": 1, "message": "Order #5 delivered successfully", "synthetic": True}]

    merged = merge_notifications(fresh, stored)

    assert [n["message"] for n in merged] == ["Order #5 delivered successfully", "Van 2 is late"]


def test_utc_now_iso_uses_z_suffix():
    assert utc_now_iso(FIXED_NOW) == "2024-01-03T12:00:00Z"
