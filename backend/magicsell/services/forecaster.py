"""
Revenue Forecasting Service.

Two pathways:
- Next-period prediction stored on every recalculation. This is a placeholder
  heuristic (last day's revenue grown by a fixed factor with a fixed
  confidence), not a statistical model.
- Linear projection of an externally supplied series, served on demand.
"""

from typing import Any, Dict, List, Optional, Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
import logging

from magicsell.config import get_settings
from magicsell.services.aggregator import parse_amount

logger = logging.getLogger(__name__)

PREDICTION_FACTORS = ["historical_trend", "day_of_week", "seasonal_pattern"]


class Timeframe(str, Enum):
    """Projection horizons; any other value projects 90 days."""
    WEEK = "7days"
    MONTH = "30days"
    QUARTER = "90days"


TIMEFRAME_DAYS = {
    Timeframe.WEEK.value: 7,
    Timeframe.MONTH.value: 30,
}


@dataclass
class ProjectedPoint:
    """One projected value."""
    date: date
    value: float
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "value": self.value,
            "confidence": self.confidence,
        }


@dataclass
class LinearProjection:
    """Result of an ordinary least squares projection."""
    predictions: List[ProjectedPoint] = field(default_factory=list)
    accuracy: int = 0
    trend: str = "stable"
    growth_rate: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "predictions": [p.to_dict() for p in self.predictions],
            "accuracy": self.accuracy,
            "trend": self.trend,
        }
        if self.growth_rate is not None:
            result["growthRate"] = self.growth_rate
        return result


class ForecastingService:
    """
    Revenue forecasts for the sales dashboard.

    Constants come from settings so deployments can tune the placeholder
    without code changes.
    """

    # Confidence decay per projected day, and its floor
    CONFIDENCE_DECAY = 0.015
    MIN_CONFIDENCE = 0.6

    def __init__(self, settings=None):
        settings = settings or get_settings()
        self.fallback_prediction = settings.fallback_prediction
        self.confidence = settings.prediction_confidence
        self.growth_factor = settings.prediction_growth_factor

    def predict_next_period(self, daily_sales: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Next-day revenue prediction from the last day bucket.

        Uses the fallback constant when there are no day buckets.
        """
        if daily_sales:
            predicted = daily_sales[-1]["totalRevenue"] * self.growth_factor
        else:
            predicted = self.fallback_prediction

        return {
            "id": 1,
            "type": "revenue",
            "timeframe": "tomorrow",
            "predictedValue": predicted,
            "confidence": self.confidence,
            "factors": list(PREDICTION_FACTORS),
        }

    def _fit(self, values: List[float]):
        """
        Ordinary least squares over (index, value).

        Returns (slope, intercept, r_squared).
        """
        n = len(values)
        xs = range(n)
        sum_x = sum(xs)
        sum_y = sum(values)
        sum_xy = sum(x * y for x, y in zip(xs, values))
        sum_x2 = sum(x * x for x in xs)

        slope = (n * sum_xy - sum_x * sum_y) / (n * sum_x2 - sum_x * sum_x)
        intercept = (sum_y - slope * sum_x) / n

        mean_y = sum_y / n
        ss_tot = sum((y - mean_y) ** 2 for y in values)
        ss_res = sum((y - (slope * x + intercept)) ** 2 for x, y in zip(xs, values))
        r_squared = 1 - ss_res / ss_tot if ss_tot > 0 else 1.0

        return slope, intercept, r_squared

    def linear_projection(
        self,
        series: Sequence[Any],
        timeframe: str = Timeframe.WEEK.value,
        start: Optional[date] = None,
    ) -> LinearProjection:
        """
        Fit a straight line to the series and project it forward.

        Args:
            series: Historical values (numbers or numeric text)
            timeframe: 7days, 30days, anything else projects 90 days
            start: Date of the first projected point (defaults to today)

        Returns:
            LinearProjection; empty with trend "stable" below two points
        """
        values = [parse_amount(v) for v in series]
        if len(values) < 2:
            return LinearProjection()

        slope, intercept, r_squared = self._fit(values)
        n = len(values)
        days = TIMEFRAME_DAYS.get(timeframe, 90)
        start = start or date.today()

        predictions = []
        for i in range(days):
            predicted = slope * (n + i) + intercept
            predictions.append(ProjectedPoint(
                date=start + timedelta(days=i),
                value=max(0, round(predicted, 2)),
                confidence=max(self.MIN_CONFIDENCE, 1 - i * self.CONFIDENCE_DECAY),
            ))

        accuracy = int(round(min(max(r_squared, 0.0), 1.0) * 100))
        logger.info(f"Projected {days} points from {n} values (slope={slope:.4f}, r2={r_squared:.3f})")

        return LinearProjection(
            predictions=predictions,
            accuracy=accuracy,
            trend="up" if slope > 0 else "down",
            growth_rate=f"{slope * 100:.1f}",
        )
