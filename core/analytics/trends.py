"""
Trend Analyzer

Converts a property's value history into an annual time series, fills
interior gaps by linear interpolation and summarises compound growth.
"""

import logging
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from .errors import InsufficientDataError
from .models import (
    Property,
    PropertyTrendComparison,
    TimeSeriesPoint,
    TrendAnalysisResult,
    TrendDirection,
    parse_decimal,
)


logger = logging.getLogger(__name__)


# CAGR beyond +/- 0.5% counts as a trend
STABLE_GROWTH_BAND = 0.005


def history_points(value_history: Dict[str, str]) -> List[Tuple[int, float]]:
    """
    Parse a year -> decimal-string mapping into sorted (year, value) pairs.

    Entries whose year or value does not parse are skipped.
    """
    points = []
    for raw_year, raw_value in value_history.items():
        try:
            year = int(str(raw_year).strip())
        except ValueError:
            continue
        value = parse_decimal(raw_value)
        if value is None:
            continue
        points.append((year, value))
    return sorted(points)


class TrendAnalyzer:
    """
    Time-series conversion and trend analysis.

    The reference year (used when a property has no history) is injected
    so identical inputs always give identical series.
    """

    def __init__(self, reference_year: Optional[int] = None):
        """
        Args:
            reference_year: Year assigned to a lone current-value point (default: this year)
        """
        self._reference_year = reference_year or date.today().year

    def to_time_series(self, prop: Property) -> List[TimeSeriesPoint]:
        """
        Convert a property's value history into a sorted time series.

        Falls back to a single point at the reference year holding the
        current value when there is no usable history. Returns an empty
        list when neither is available.
        """
        points = history_points(prop.value_history)
        if points:
            return [TimeSeriesPoint(year=year, value=value) for year, value in points]

        current = prop.numeric_value
        if current is None:
            return []
        return [TimeSeriesPoint(year=self._reference_year, value=current)]

    def fill_gaps(self, series: List[TimeSeriesPoint]) -> List[TimeSeriesPoint]:
        """
        Fill missing years by linear interpolation.

        Known points are passed through untouched. A missing year is only
        filled when known years exist on both sides; otherwise it is
        omitted. Duplicate years keep the last occurrence.

        Returns:
            New sorted series covering [min year, max year]
        """
        if len(series) <= 1:
            return list(series)

        by_year = {point.year: point for point in sorted(series, key=lambda p: p.year)}
        known_years = sorted(by_year)
        start_year, end_year = known_years[0], known_years[-1]

        result = []
        previous_known = start_year
        for year in range(start_year, end_year + 1):
            if year in by_year:
                result.append(by_year[year])
                previous_known = year
                continue

            next_known = next((y for y in known_years if y > year), None)
            if next_known is None:
                continue

            prev_value = by_year[previous_known].value
            next_value = by_year[next_known].value
            interpolated = prev_value + (next_value - prev_value) * (year - previous_known) / (next_known - previous_known)

            result.append(TimeSeriesPoint(year=year, value=interpolated, interpolated=True))

        return result

    def analyze_trend(self, series: List[TimeSeriesPoint]) -> TrendAnalysisResult:
        """
        Summarise growth between the first and last points.

        Raises:
            InsufficientDataError: fewer than 2 points, a zero-year span,
                or a non-positive start value (CAGR undefined)
        """
        if len(series) < 2:
            raise InsufficientDataError(
                "Insufficient data points for trend analysis. Need at least 2 data points."
            )

        ordered = sorted(series, key=lambda p: p.year)
        first, last = ordered[0], ordered[-1]

        years = last.year - first.year
        if years == 0:
            raise InsufficientDataError("Insufficient time range for trend analysis")

        if first.value <= 0:
            raise InsufficientDataError("Cannot compute growth from a non-positive start value")

        total_change = last.value - first.value
        average_annual_change = total_change / years

        ratio = last.value / first.value
        # A negative end value has no real root; treat it as a total loss
        growth_rate = ratio ** (1 / years) - 1 if ratio > 0 else -1.0

        if growth_rate > STABLE_GROWTH_BAND:
            direction = TrendDirection.UP
        elif growth_rate < -STABLE_GROWTH_BAND:
            direction = TrendDirection.DOWN
        else:
            direction = TrendDirection.STABLE

        return TrendAnalysisResult(
            direction=direction,
            growth_rate=growth_rate,
            average_annual_change=average_annual_change,
            total_change=total_change,
            start_value=first.value,
            end_value=last.value,
        )

    def compare_properties(
        self,
        items: Iterable[Tuple[Property, List[TimeSeriesPoint]]],
    ) -> List[PropertyTrendComparison]:
        """
        Trend summaries for several properties, in input order.

        A property whose series cannot be analysed is reported with zero
        growth and its current value.
        """
        comparisons = []
        for prop, series in items:
            try:
                trend = self.analyze_trend(series)
            except InsufficientDataError as e:
                logger.warning("Trend comparison skipped growth for %s: %s", prop.id, e)
                comparisons.append(PropertyTrendComparison(
                    id=prop.id,
                    address=prop.address,
                    parcel_id=prop.parcel_id,
                    current_value=prop.numeric_value or 0.0,
                    growth_rate=0.0,
                    total_appreciation=0.0,
                    average_annual_change=0.0,
                ))
                continue

            comparisons.append(PropertyTrendComparison(
                id=prop.id,
                address=prop.address,
                parcel_id=prop.parcel_id,
                current_value=trend.end_value,
                growth_rate=trend.growth_rate,
                total_appreciation=trend.total_change,
                average_annual_change=trend.average_annual_change,
            ))

        return comparisons
