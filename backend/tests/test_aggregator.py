# backend/tests/test_aggregator.py
"""
Tests for bucket metrics and the whole-ledger summary.
"""

import math
from datetime import datetime, timezone

import pytest

from magicsell.services.aggregator import (
    aggregate_bucket,
    day_bucket_id,
    hourly_breakdown,
    ledger_summary,
    parse_amount,
    payment_breakdown,
    top_shop,
    week_bucket_id,
    weekday_breakdown,
)
from tests.factories import make_order


@pytest.mark.parametrize("value, expected", [
    (12.5, 12.5),
    ("12.5", 12.5),
    ("0", 0.0),
    (None, 0.0),
    ("", 0.0),
    ("abc", 0.0),
    (True, 0.0),
    ("nan", 0.0),
    ("inf", 0.0),
])
def test_parse_amount(value, expected):
    assert parse_amount(value) == expected


def test_payment_breakdown_maps_bank_transfer_and_drops_unknown_methods():
    orders = [
        make_order(1, totalAmount=50, paymentMethod="Cash"),
        make_order(2, totalAmount=30, paymentMethod="Bank Transfer"),
        make_order(3, totalAmount=20, paymentMethod="Bank"),
        make_order(4, totalAmount=10, paymentMethod="Crypto"),
        make_order(5, totalAmount=5, paymentMethod=""),
    ]

    assert payment_breakdown(orders) == {"Balance": 0, "Cash": 50, "Card": 0, "Bank": 30}


def test_payment_breakdown_never_exceeds_revenue():
    orders = [
        make_order(1, totalAmount=50, paymentMethod="Card"),
        make_order(2, totalAmount=70, paymentMethod="Voucher"),
    ]
    metrics = aggregate_bucket(orders)

    assert sum(metrics.payment_breakdown.values()) <= metrics.total_revenue


def test_top_shop_tie_goes_to_first_seen_shop():
    orders = [
        make_order(1, shopName="B", totalAmount=50),
        make_order(2, shopName="A", totalAmount=30),
        make_order(3, shopName="A", totalAmount=20),
    ]

    assert top_shop(orders) == ("B", 50)


def test_top_shop_without_orders():
    assert top_shop([]) == ("N/A", 0)


def test_aggregate_bucket_counts_and_average():
    orders = [
        make_order(1, totalAmount="10.10", status="Delivered"),
        make_order(2, totalAmount=20.2, status="Pending"),
        make_order(3, totalAmount=30.3, status="In Process"),
        make_order(4, totalAmount=5, status="Cancelled"),
        make_order(5, totalAmount=None, status="Delivered"),
    ]

    metrics = aggregate_bucket(orders)

    assert metrics.total_orders == 5
    assert metrics.delivered_orders == 2
    assert metrics.pending_orders == 1
    assert metrics.in_process_orders == 1
    assert metrics.delivered_orders + metrics.pending_orders + metrics.in_process_orders <= metrics.total_orders
    assert math.isclose(metrics.average_order_value * metrics.total_orders, metrics.total_revenue)
    assert metrics.total_revenue == pytest.approx(65.6)


def test_aggregate_bucket_empty_defaults():
    data = aggregate_bucket([]).to_dict()

    assert data["totalRevenue"] == 0
    assert data["averageOrderValue"] == 0
    assert data["topShop"] == "N/A"
    assert data["paymentBreakdown"] == {"Balance": 0, "Cash": 0, "Card": 0, "Bank": 0}


def test_orders_without_shop_count_as_na():
    metrics = aggregate_bucket([make_order(1, shopName=None, totalAmount=10)])
    assert metrics.top_shop == "N/A"


def test_bucket_ids():
    assert day_bucket_id("2024-01-02") == 20240102
    assert week_bucket_id("2024-W1") == 1
    assert week_bucket_id("2023-W52") == 52


def test_hourly_and_weekday_breakdowns():
    orders = [
        make_order(1, totalAmount=10, createdAt="2024-01-01T09:15:00Z"),
        make_order(2, totalAmount=5, createdAt="2024-01-01T09:45:00Z"),
        make_order(3, totalAmount=7, createdAt="2024-01-02T17:00:00Z"),
    ]

    assert hourly_breakdown(orders) == {"9": 15, "17": 7}
    assert weekday_breakdown(orders) == {"Monday": 15, "Tuesday": 7}


def test_ledger_summary():
    now = datetime(2024, 1, 3, 12, tzinfo=timezone.utc)
    orders = [make_order(i, shopName=f"Shop {i}", totalAmount=i * 10, status="Delivered") for i in range(1, 7)]
    orders.append(make_order(7, shopName="Shop 1", totalAmount=5, status="Cancelled", createdAt="2024-01-03T08:00:00Z"))
    orders.append(make_order(8, totalAmount=0, createdAt=None))

    summary = ledger_summary(orders, now=now)

    assert summary["totalOrders"] == 8
    assert summary["cancelledOrders"] == 1
    assert summary["deliveredOrders"] == 6
    assert summary["pendingOrders"] == 1
    assert summary["totalRevenue"] == 215
    assert [s["shop"] for s in summary["topShops"]] == ["Shop 6", "Shop 5", "Shop 4", "Shop 3", "Shop 2"]
    # Today's order plus the one without a creation time
    assert summary["todaysOrders"] == 2
