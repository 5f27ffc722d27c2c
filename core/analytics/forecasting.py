"""
Forecaster

Two forecast paths:

- forecast(): caller-selected model (linear / exponential / average) over
  a prepared time series, with confidence bounds and data-quality warnings.
- generate_value_forecast(): per-property projection straight from value
  history. Picks compound-growth extrapolation ("ARIMA" with 5+ points,
  "Exponential Smoothing" below that) and falls back to a conservative
  simple trend when history is too thin.

neighborhood_forecast() fans generate_value_forecast() out over every
property in a neighborhood and averages the results.
"""

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from statistics import mean, pstdev
from typing import List, Optional, Sequence, Tuple, Union

from .errors import InsufficientDataError
from .models import (
    ForecastModel,
    ForecastPoint,
    ForecastResult,
    NeighborhoodForecast,
    NeighborhoodForecastPoint,
    Property,
    PropertyForecast,
    TimeSeriesPoint,
)
from .stats import linear_regression, r_squared
from .trends import TrendAnalyzer, history_points


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Constants
# =============================================================================

MIN_FORECAST_POINTS = 3
LIMITED_HISTORY_POINTS = 5
LIMITED_HISTORY_PENALTY = 0.1

# Confidence lost when every point is interpolated
INTERPOLATION_PENALTY = 0.3

# Per-model uncertainty factor (share of predicted value per horizon year)
LINEAR_UNCERTAINTY = 0.2
EXPONENTIAL_UNCERTAINTY = 0.25
AVERAGE_UNCERTAINTY = 0.15

# Model-specific confidence parameters
EXPONENTIAL_MAX_CONFIDENCE = 0.9
EXPONENTIAL_VARIANCE_PENALTY = 2.0
AVERAGE_MAX_CONFIDENCE = 0.7
AVERAGE_WINDOW = 3

# Warning thresholds
MIN_R_SQUARED = 0.7
MAX_GROWTH_STDDEV = 0.1

# Value forecast (per-property path)
ARIMA_MIN_POINTS = 5
CONFIDENCE_Z = 1.96  # 95% interval
VARIANCE_CONFIDENCE_FACTOR = 5.0
FULL_HISTORY_POINTS = 10

# Simple trend fallback
DEFAULT_GROWTH_RATE = 0.03
SIMPLE_TREND_CONFIDENCE = 0.3
SIMPLE_TREND_HISTORY_CONFIDENCE = 0.4
SIMPLE_TREND_BOUND = 0.10

METHOD_ARIMA = "ARIMA"
METHOD_EXPONENTIAL_SMOOTHING = "Exponential Smoothing"
METHOD_SIMPLE_TREND = "Simple Trend"

WARNING_LOW_CORRELATION = "Low correlation in historical data may reduce forecast accuracy"
WARNING_VARIABLE_GROWTH = "Highly variable growth rates in historical data"
WARNING_AVERAGE_MODEL = "Simple averaging provides less precise forecasts than regression models"
WARNING_LIMITED_HISTORY = "Limited historical data may affect forecast reliability"


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def banded_point(year: int, value: float, width: float) -> ForecastPoint:
    """Forecast point with value floored at 0, so lower <= value <= upper."""
    value = max(0.0, value)
    return ForecastPoint(
        year=year,
        value=value,
        lower_bound=max(0.0, value - width),
        upper_bound=value + width,
    )


def growth_rates(values: Sequence[float]) -> List[float]:
    """Period-over-period growth, skipping periods with a non-positive base."""
    return [
        current / previous - 1
        for previous, current in zip(values, values[1:])
        if previous > 0
    ]


class Forecaster:
    """
    Multi-model value forecasting.

    Stateless apart from the injected reference year, which anchors
    per-property forecasts so identical inputs reproduce exactly.
    """

    def __init__(
        self,
        reference_year: Optional[int] = None,
        trend_analyzer: Optional[TrendAnalyzer] = None,
        max_workers: Optional[int] = None,
        default_growth_rate: float = DEFAULT_GROWTH_RATE,
    ):
        """
        Initialize the forecaster.

        Args:
            reference_year: The "current" year for per-property forecasts (default: this year)
            trend_analyzer: Trend analyzer used for growth estimates
            max_workers: Thread pool size for neighborhood fan-out (default: executor default)
            default_growth_rate: Annual growth assumed when history gives none
        """
        self._reference_year = reference_year or date.today().year
        self._trends = trend_analyzer or TrendAnalyzer(reference_year=self._reference_year)
        self._max_workers = max_workers
        self._default_growth_rate = default_growth_rate

    @property
    def reference_year(self) -> int:
        return self._reference_year

    # -------------------------------------------------------------------------
    # Model-based forecast
    # -------------------------------------------------------------------------

    def forecast(
        self,
        series: List[TimeSeriesPoint],
        years: int = 3,
        model: Union[ForecastModel, str] = ForecastModel.LINEAR,
    ) -> ForecastResult:
        """
        Forecast a time series forward under the selected model.

        Args:
            series: Historical points (interpolated points lower confidence)
            years: Number of annual predictions
            model: ForecastModel or its string name

        Returns:
            ForecastResult with one prediction per horizon year

        Raises:
            InsufficientDataError: fewer than 3 points, or exponential
                growth cannot be computed
            ValueError: unknown model name
        """
        if isinstance(model, str):
            resolved = ForecastModel.from_string(model)
            if resolved is None:
                raise ValueError(f"Unknown forecasting model: {model}")
            model = resolved

        if len(series) < MIN_FORECAST_POINTS:
            raise InsufficientDataError(
                "Insufficient data points for forecasting. Need at least 3 data points."
            )

        ordered = sorted(series, key=lambda p: p.year)
        interpolated = sum(1 for p in ordered if p.interpolated)
        penalty = interpolated / len(ordered) * INTERPOLATION_PENALTY

        warnings: List[str] = []

        if model is ForecastModel.LINEAR:
            values, confidence = self._linear(ordered, years, penalty, warnings)
            factor = LINEAR_UNCERTAINTY
        elif model is ForecastModel.EXPONENTIAL:
            values, confidence = self._exponential(ordered, years, penalty, warnings)
            factor = EXPONENTIAL_UNCERTAINTY
        else:
            values, confidence = self._moving_average(ordered, years, penalty, warnings)
            factor = AVERAGE_UNCERTAINTY

        predictions = self._with_bounds(ordered[-1].year, values, confidence, factor)

        if len(ordered) < LIMITED_HISTORY_POINTS:
            warnings.append(WARNING_LIMITED_HISTORY)
            confidence = max(0.0, confidence - LIMITED_HISTORY_PENALTY)

        return ForecastResult(
            predictions=predictions,
            model=model,
            confidence=confidence,
            warnings=warnings,
        )

    def _linear(self, ordered, years, penalty, warnings):
        x = list(range(len(ordered)))
        y = [p.value for p in ordered]

        slope, intercept = linear_regression(x, y)
        fit = r_squared(x, y, slope, intercept)
        confidence = _clamp(fit - penalty)

        if fit < MIN_R_SQUARED:
            warnings.append(WARNING_LOW_CORRELATION)

        last_index = len(ordered) - 1
        values = [slope * (last_index + i) + intercept for i in range(1, years + 1)]
        return values, confidence

    def _exponential(self, ordered, years, penalty, warnings):
        try:
            trend = self._trends.analyze_trend(ordered)
        except InsufficientDataError as e:
            raise InsufficientDataError(
                "Could not calculate growth trend for exponential forecast"
            ) from e

        rates = growth_rates([p.value for p in ordered])
        spread = pstdev(rates) if rates else 0.0
        confidence = _clamp(EXPONENTIAL_MAX_CONFIDENCE - spread * EXPONENTIAL_VARIANCE_PENALTY - penalty)

        if spread > MAX_GROWTH_STDDEV:
            warnings.append(WARNING_VARIABLE_GROWTH)

        last_value = ordered[-1].value
        values = [last_value * (1 + trend.growth_rate) ** i for i in range(1, years + 1)]
        return values, confidence

    def _moving_average(self, ordered, years, penalty, warnings):
        recent = [p.value for p in ordered[-AVERAGE_WINDOW:]]
        average_change = (recent[-1] - recent[0]) / (len(recent) - 1)
        confidence = _clamp(AVERAGE_MAX_CONFIDENCE - penalty)

        warnings.append(WARNING_AVERAGE_MODEL)

        last_value = ordered[-1].value
        values = [last_value + average_change * i for i in range(1, years + 1)]
        return values, confidence

    @staticmethod
    def _with_bounds(
        last_year: int,
        values: List[float],
        confidence: float,
        factor: float,
    ) -> List[ForecastPoint]:
        """
        Attach uncertainty bands that widen with the horizon.

        Projected values are floored at 0. Width is (1 - confidence) x value
        x factor x horizon, never narrower than the previous horizon's band.
        """
        predictions = []
        width = 0.0
        for i, value in enumerate(values, start=1):
            value = max(0.0, value)
            width = max(width, (1 - confidence) * value * factor * i)
            predictions.append(banded_point(last_year + i, value, width))
        return predictions

    # -------------------------------------------------------------------------
    # Per-property forecast
    # -------------------------------------------------------------------------

    def generate_value_forecast(self, prop: Property, years: int = 3) -> PropertyForecast:
        """
        Project a property's value directly from its value history.

        Uses the mean annual growth rate with bounds of 1.96 standard
        deviations widening with the square root of the horizon. The
        current value is appended at the reference year when the history
        does not already cover it.
        """
        history = history_points(prop.value_history)
        if len(history) < 2:
            return self._simple_forecast(prop, years)

        points = dict(history)
        current_value = prop.numeric_value
        if self._reference_year not in points and current_value is not None:
            points[self._reference_year] = current_value
        series = sorted(points.items())

        if len(series) < MIN_FORECAST_POINTS:
            return self._simple_forecast(prop, years, series)

        rates = growth_rates([value for _, value in series])
        if not rates:
            logger.warning("No usable growth periods for %s, using simple trend", prop.id)
            return self._simple_forecast(prop, years)

        avg_growth = mean(rates)
        spread = pstdev(rates)

        base_year, base_value = series[-1]
        forecasted = []
        for i in range(1, years + 1):
            value = base_value * (1 + avg_growth) ** i
            width = CONFIDENCE_Z * spread * abs(value) * math.sqrt(i)
            forecasted.append(banded_point(base_year + i, value, width))

        variance_weight = max(0.0, 1 - spread * VARIANCE_CONFIDENCE_FACTOR)
        history_weight = min(1.0, len(series) / FULL_HISTORY_POINTS)

        return PropertyForecast(
            property_id=prop.id,
            base_value=base_value,
            forecasted_values=forecasted,
            confidence_level=_clamp(0.5 * variance_weight + 0.5 * history_weight),
            forecast_method=METHOD_ARIMA if len(series) >= ARIMA_MIN_POINTS else METHOD_EXPONENTIAL_SMOOTHING,
            avg_annual_growth_rate=avg_growth,
        )

    def _simple_forecast(
        self,
        prop: Property,
        years: int,
        series: Optional[List[Tuple[int, float]]] = None,
    ) -> PropertyForecast:
        """
        Conservative fallback: the default growth rate (3% a year), or the historic mean growth when
        at least two points are known, with 10% bounds widening with sqrt(horizon).
        """
        base_value = prop.numeric_value
        if base_value is None:
            base_value = series[-1][1] if series else 0.0

        avg_growth = self._default_growth_rate
        confidence = SIMPLE_TREND_CONFIDENCE

        if series and len(series) >= 2:
            rates = growth_rates([value for _, value in series])
            if rates:
                avg_growth = mean(rates)
                confidence = SIMPLE_TREND_HISTORY_CONFIDENCE

        forecasted = []
        for i in range(1, years + 1):
            value = base_value * (1 + avg_growth) ** i
            width = abs(value) * SIMPLE_TREND_BOUND * math.sqrt(i)
            forecasted.append(banded_point(self._reference_year + i, value, width))

        return PropertyForecast(
            property_id=prop.id,
            base_value=base_value,
            forecasted_values=forecasted,
            confidence_level=confidence,
            forecast_method=METHOD_SIMPLE_TREND,
            avg_annual_growth_rate=avg_growth,
        )

    # -------------------------------------------------------------------------
    # Neighborhood forecast
    # -------------------------------------------------------------------------

    def neighborhood_forecast(
        self,
        neighborhood: str,
        properties: List[Property],
        years: int = 3,
    ) -> NeighborhoodForecast:
        """
        Average per-property forecasts across a neighborhood.

        Per-property forecasts are independent and run on a thread pool;
        results are collected in input order before averaging.
        """
        members = [
            p for p in properties
            if p.neighborhood == neighborhood and p.value_history
        ]

        base_values = [p.numeric_value for p in members if p.numeric_value is not None]
        avg_base_value = mean(base_values) if base_values else 0.0

        if not members:
            return NeighborhoodForecast(
                neighborhood=neighborhood,
                avg_base_value=avg_base_value,
                avg_annual_growth_rate=0.0,
                forecasted_values=[
                    NeighborhoodForecastPoint(year=self._reference_year + i, avg_value=avg_base_value)
                    for i in range(1, years + 1)
                ],
                confidence_level=0.0,
                property_count=0,
            )

        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            forecasts = list(executor.map(
                lambda p: self.generate_value_forecast(p, years), members,
            ))

        logger.debug("Forecast %d properties in %s", len(forecasts), neighborhood)

        forecasted_values = [
            NeighborhoodForecastPoint(
                year=self._reference_year + i + 1,
                avg_value=mean(f.forecasted_values[i].value for f in forecasts),
            )
            for i in range(years)
        ]

        return NeighborhoodForecast(
            neighborhood=neighborhood,
            avg_base_value=avg_base_value,
            avg_annual_growth_rate=mean(f.avg_annual_growth_rate for f in forecasts),
            forecasted_values=forecasted_values,
            confidence_level=mean(f.confidence_level for f in forecasts),
            property_count=len(members),
        )
