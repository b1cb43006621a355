# backend/tests/test_reports.py
"""
Tests for trailing-window sales reports and their export.
"""

import json

import pytest

from magicsell.services.reports import export_report, growth_rate, monthly_trends, sales_report
from tests.factories import FIXED_NOW, make_order


@pytest.fixture
def orders():
    return [
        # Previous 7-day window
        make_order(1, totalAmount=50, createdAt="2023-12-22T10:00:00Z"),
        # Current 7-day window
        make_order(2, totalAmount=40, shopName="A", paymentMethod="Cash", createdAt="2023-12-30T10:00:00Z"),
        make_order(3, totalAmount=35, shopName="B", paymentMethod="Card", createdAt="2024-01-02T10:00:00Z"),
        make_order(4, totalAmount=25, shopName="B", paymentMethod="", createdAt="2024-01-03T09:00:00Z"),
        # Outside both windows
        make_order(5, totalAmount=999, createdAt="2023-06-01T10:00:00Z"),
        make_order(6, totalAmount=999, createdAt=None),
    ]


def test_weekly_report(orders):
    report = sales_report(orders, "week", now=FIXED_NOW)
    summary = report["summary"]

    assert summary["totalOrders"] == 3
    assert summary["totalRevenue"] == 100
    assert summary["averageOrderValue"] == pytest.approx(33.33)
    assert summary["growthRate"] == 100.0
    assert summary["topPerformingShop"] == "B"
    assert summary["mostPopularPayment"] == "Cash"
    assert report["breakdown"]["payments"] == {"Cash": 40, "Card": 35, "Not Set": 25}
    assert report["trends"]["months"] == ["2023-12", "2024-01"]
    assert report["trends"]["revenue"] == [40, 60]
    assert report["startDate"] == "2023-12-27"


def test_growth_rate():
    assert growth_rate(150, 100) == 50.0
    assert growth_rate(50, 100) == -50.0
    assert growth_rate(10, 0) == 100.0
    assert growth_rate(0, 0) == 0.0


def test_report_is_deterministic(orders):
    assert sales_report(orders, "month", now=FIXED_NOW) == sales_report(orders, "month", now=FIXED_NOW)


def test_unknown_range_defaults_to_month(orders):
    report = sales_report(orders, "fortnight", now=FIXED_NOW)
    assert report["startDate"] == "2023-12-04"
    assert report["summary"]["totalOrders"] == 4


def test_empty_report():
    report = sales_report([], "year", now=FIXED_NOW)

    assert report["summary"]["topPerformingShop"] is None
    assert report["summary"]["averageOrderValue"] == 0
    assert report["insights"][0]["title"] == "Revenue Decline"


def test_insights_describe_growth(orders):
    insights = sales_report(orders, "week", now=FIXED_NOW)["insights"]

    assert insights[0]["value"] == "+100.0%"
    assert insights[1]["value"] == "£33.33"
    assert insights[2]["value"] == "3"


def test_monthly_trends_empty():
    assert monthly_trends([]) == {"months": [], "revenue": [], "orders": [], "average": []}


def test_export_txt_and_json(orders):
    report = sales_report(orders, "week", now=FIXED_NOW)

    txt = export_report(report, "txt", now=FIXED_NOW)
    assert txt["filename"] == "sales-report-2024-01-03.txt"
    assert "Growth Rate: 100.0%" in txt["data"]

    exported = export_report(report, "json", now=FIXED_NOW)
    assert json.loads(exported["data"]) == report
