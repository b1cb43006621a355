# backend/tests/test_api_analytics.py
"""
API tests for sales analytics, predictions, reports, notifications and
data export.
"""

from io import BytesIO

import pandas as pd
import pytest


def seed(client):
    client.post("/api/orders", json={"shopName": "A", "totalAmount": 40, "paymentMethod": "Cash"})
    client.post("/api/orders", json={"shopName": "B", "totalAmount": 60, "paymentMethod": "Bank Transfer"})
    client.put("/api/orders/2", json={"status": "Delivered"})


def test_daily_and_weekly_sales(client):
    seed(client)

    daily = client.get("/api/daily-sales").json()
    assert len(daily) == 1
    assert daily[0]["id"] == 20240103
    assert daily[0]["topShop"] == "B"
    assert daily[0]["paymentBreakdown"] == {"Balance": 0, "Cash": 40, "Card": 0, "Bank": 60}

    assert client.get("/api/daily-sales/2024-01-03").json()["totalOrders"] == 2
    assert client.get("/api/daily-sales/2024-01-04").status_code == 404

    assert client.get("/api/weekly-sales/2024-W1").json()["deliveredOrders"] == 1
    assert client.get("/api/weekly-sales/2024-W2").status_code == 404


def test_analytics_summary(client):
    seed(client)

    body = client.get("/api/analytics").json()

    assert body["totalOrders"] == 2
    assert body["deliveredOrders"] == 1
    assert body["totalRevenue"] == 100
    assert body["todaysOrders"] == 2
    assert body["topShops"][0] == {"shop": "B", "count": 1, "revenue": 60}
    assert len(body["dailySales"]) == 1


def test_recalculate_endpoints(client):
    seed(client)

    body = client.post("/api/recalculate-analytics").json()
    assert body["data"] == {"dailySales": 1, "weeklySales": 1, "totalOrders": 2, "totalRevenue": 100}

    day = client.post("/api/calculate-daily-sales/2024-01-03").json()
    assert day["hourlyBreakdown"] == {"12": 100}

    week = client.post("/api/calculate-weekly-sales/2024-W1").json()
    assert week["dailyBreakdown"] == {"Wednesday": 100}

    assert client.post("/api/calculate-daily-sales/2024-02-01").status_code == 404
    assert client.post("/api/calculate-daily-sales/yesterday").status_code == 400
    assert client.post("/api/calculate-weekly-sales/2024-W9").status_code == 404
    assert client.post("/api/calculate-weekly-sales/week9").status_code == 400


def test_predictions(client):
    seed(client)

    stored = client.get("/api/predictions").json()
    assert stored[0]["predictedValue"] == pytest.approx(110.0)

    body = client.post("/api/predictions/calculate", json={
        "type": "revenue",
        "timeframe": "7days",
        "historicalData": [{"value": 10, "date": "2024-01-01"}, {"value": "20"}, {"value": 30}],
    }).json()
    assert body["trend"] == "up"
    assert body["predictions"][0] == {"date": "2024-01-03", "value": 40.0, "confidence": 1.0}
    assert len(body["predictions"]) == 7

    empty = client.post("/api/predictions/calculate", json={"historicalData": []}).json()
    assert empty == {"predictions": [], "accuracy": 0, "trend": "stable"}


def test_reports(client):
    seed(client)

    assert client.get("/api/reports").json()[0]["totalRevenue"] == 100

    report = client.get("/api/reports/sales", params={"timeRange": "week"}).json()
    assert report["summary"]["totalOrders"] == 2
    assert report["summary"]["topPerformingShop"] == "B"
    assert report["summary"]["growthRate"] == 100.0
    assert client.get("/api/reports/sales", params={"timeRange": "decade"}).status_code == 422

    exported = client.post("/api/reports/export", json={"reportData": report, "format": "txt"}).json()
    assert exported["filename"] == "sales-report-2024-01-03.txt"
    assert "Total Revenue: £100.00" in exported["data"]


def test_notifications_api(client):
    created = client.post("/api/notifications", json={"type": "info", "message": "Van 2 is late"})
    assert created.status_code == 201
    notification_id = created.json()["id"]

    sent = client.post("/api/notifications/send", json={"title": "Stock", "body": "Milk low"}).json()
    assert sent["success"] is True
    assert sent["notification"]["priority"] == "medium"

    marked = client.put(f"/api/notifications/{notification_id}", json={"read": True}).json()
    assert marked["read"] is True

    assert client.delete(f"/api/notifications/{notification_id}").status_code == 200
    assert client.delete(f"/api/notifications/{notification_id}").status_code == 404
    assert len(client.get("/api/notifications").json()) == 1


def test_export_orders_csv(client):
    seed(client)

    response = client.get("/api/data/export/orders")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment; filename=orders_2024-01-03.csv" == response.headers["content-disposition"]
    df = pd.read_csv(BytesIO(response.content))
    assert list(df["shopName"]) == ["A", "B"]


def test_export_daily_sales_xlsx(client):
    seed(client)

    response = client.get("/api/data/export/daily-sales", params={"format": "xlsx"})

    df = pd.read_excel(BytesIO(response.content), sheet_name="Daily Sales")
    assert df.loc[0, "totalRevenue"] == 100
    assert df.loc[0, "paymentBreakdown.Bank"] == 60


def test_export_unknown_dataset(client):
    assert client.get("/api/data/export/invoices").status_code == 404


def test_storage_stats(client):
    seed(client)

    body = client.get("/api/storage/stats").json()

    assert body["backend"] == "file"
    assert body["collections"]["orders"] == 2
    assert body["collections"]["dailySales"] == 1
