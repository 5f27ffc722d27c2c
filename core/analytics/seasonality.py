"""
Quarterly seasonality detection.

Seasonal factor per quarter = quarter mean / mean of the quarter means.
"""

import logging
import re
from statistics import mean
from typing import Dict, List

from .models import QuarterlyValue, SeasonalPattern, parse_decimal


logger = logging.getLogger(__name__)


# At least two full years of quarters
MIN_QUARTERLY_POINTS = 8

SEASONALITY_THRESHOLD = 0.05
PEAK_FACTOR = 1.02
TROUGH_FACTOR = 0.98

QUARTERS = ("Q1", "Q2", "Q3", "Q4")

_QUARTER_PATTERN = re.compile(r"^(\d{4})(Q[1-4])$")


def _no_seasonality() -> SeasonalPattern:
    return SeasonalPattern(
        has_seasonal=False,
        seasonality_strength=0.0,
        peak_quarters=[],
        trough_quarters=[],
        seasonal_factors={q: 1.0 for q in QUARTERS},
    )


def detect_seasonal_patterns(quarterly_values: List[QuarterlyValue]) -> SeasonalPattern:
    """
    Detect quarterly seasonality in a value series.

    Entries whose quarter label or value does not parse are ignored.
    Quarters with no observations are left out of the factors.
    """
    by_quarter: Dict[str, List[float]] = {}
    count = 0
    for qv in quarterly_values:
        match = _QUARTER_PATTERN.match(qv.quarter.strip())
        value = parse_decimal(qv.value)
        if match is None or value is None:
            logger.debug("Skipping quarterly value %r", qv)
            continue
        by_quarter.setdefault(match.group(2), []).append(value)
        count += 1

    if count < MIN_QUARTERLY_POINTS:
        return _no_seasonality()

    quarter_means = {q: mean(by_quarter[q]) for q in QUARTERS if q in by_quarter}
    overall = mean(quarter_means.values())
    if overall == 0:
        return _no_seasonality()

    factors = {q: m / overall for q, m in quarter_means.items()}
    strength = max(abs(f - 1) for f in factors.values())

    ranked = sorted(factors, key=lambda q: factors[q], reverse=True)

    return SeasonalPattern(
        has_seasonal=strength > SEASONALITY_THRESHOLD,
        seasonality_strength=strength,
        peak_quarters=[q for q in ranked if factors[q] > PEAK_FACTOR],
        trough_quarters=[q for q in ranked if factors[q] < TROUGH_FACTOR],
        seasonal_factors=factors,
    )
