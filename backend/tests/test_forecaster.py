# backend/tests/test_forecaster.py
"""
Tests for the revenue forecasting service.
"""

from datetime import date

import pytest

from magicsell.config import Settings
from magicsell.services.forecaster import ForecastingService


@pytest.fixture
def forecaster():
    return ForecastingService(Settings())


def test_next_period_without_history_uses_fallback(forecaster):
    prediction = forecaster.predict_next_period([])

    assert prediction["id"] == 1
    assert prediction["type"] == "revenue"
    assert prediction["predictedValue"] == 850.00
    assert prediction["confidence"] == 85


def test_next_period_uses_last_day(forecaster):
    prediction = forecaster.predict_next_period([{"totalRevenue": 500}, {"totalRevenue": 200}])
    assert prediction["predictedValue"] == pytest.approx(220.0)


def test_constants_come_from_settings():
    forecaster = ForecastingService(Settings(fallback_prediction=100.0, prediction_confidence=50))
    prediction = forecaster.predict_next_period([])
    assert prediction["predictedValue"] == 100.0
    assert prediction["confidence"] == 50


def test_linear_projection_on_a_straight_line(forecaster):
    projection = forecaster.linear_projection([10, 20, 30], timeframe="7days", start=date(2024, 1, 1))
    data = projection.to_dict()

    assert len(data["predictions"]) == 7
    assert data["predictions"][0] == {"date": "2024-01-01", "value": 40.0, "confidence": 1.0}
    assert data["predictions"][1]["value"] == 50.0
    assert data["predictions"][6]["date"] == "2024-01-07"
    assert data["accuracy"] == 100
    assert data["trend"] == "up"
    assert data["growthRate"] == "1000.0"


def test_linear_projection_clamps_values_and_confidence(forecaster):
    projection = forecaster.linear_projection(["30", "20", "10"], timeframe="other", start=date(2024, 1, 1))

    assert len(projection.predictions) == 90
    assert projection.trend == "down"
    assert all(p.value >= 0 for p in projection.predictions)
    assert projection.predictions[-1].confidence == 0.6


def test_linear_projection_timeframes(forecaster):
    assert len(forecaster.linear_projection([1, 2], timeframe="30days").predictions) == 30


def test_linear_projection_needs_two_points(forecaster):
    data = forecaster.linear_projection([5]).to_dict()
    assert data == {"predictions": [], "accuracy": 0, "trend": "stable"}


def test_linear_projection_accuracy_is_r_squared(forecaster):
    projection = forecaster.linear_projection([1, 3, 2, 4], start=date(2024, 1, 1))
    # slope 0.8, r^2 = 0.64
    assert projection.accuracy == 64
