"""
Chart data helpers.

Reduce analytics results into plottable series: histogram bins, a
correlation matrix, residual map points, prediction scatter points and
coefficient impact bars. Rendering is left to the caller.
"""

import math
from dataclasses import asdict, dataclass
from statistics import mean, median, pstdev
from typing import List, Optional, Sequence

from core.analytics.models import Property, RegressionFit, parse_decimal
from core.analytics.stats import pearson


# =============================================================================
# Colour Scale
# =============================================================================

NEUTRAL_COLOR = "#9ca3af"
# Actual below predicted (overvalued by the model): red channel varies
OVERVALUED_COLOR = "#{:02x}4444"
# Actual above predicted (undervalued): green channel varies
UNDERVALUED_COLOR = "#44{:02x}44"

MIN_CORRELATION_PAIRS = 3


@dataclass(frozen=True)
class HistogramBin:
    min: float
    max: float
    count: int
    frequency: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class CorrelationCell:
    x_variable: str
    y_variable: str
    correlation: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ResidualMapPoint:
    property_id: str
    latitude: float
    longitude: float
    address: str
    actual: float
    predicted: float
    residual: float
    percent_error: float
    color: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ScatterPoint:
    x: float  # predicted
    y: float  # actual
    property_id: str
    error: float
    error_percent: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class CoefficientImpact:
    variable: str
    coefficient: float
    impact: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class SummaryStatistics:
    min: float
    max: float
    mean: float
    median: float
    standard_deviation: float
    count: int

    def to_dict(self) -> dict:
        return asdict(self)


# =============================================================================
# Distributions
# =============================================================================


def generate_histogram_data(values: Sequence[float], num_bins: int = 10) -> List[HistogramBin]:
    """
    Equal-width histogram over [min, max].

    The maximum lands in the last bin. When every value is equal the
    range is zero and all values are counted in the first bin.
    """
    if not values or num_bins <= 0:
        return []

    low = min(values)
    high = max(values)
    width = (high - low) / num_bins

    counts = [0] * num_bins
    for value in values:
        if width == 0:
            counts[0] += 1
        elif value == high:
            counts[-1] += 1
        else:
            counts[min(num_bins - 1, int((value - low) // width))] += 1

    total = len(values)
    return [
        HistogramBin(
            min=low + i * width,
            max=low + (i + 1) * width,
            count=count,
            frequency=count / total,
        )
        for i, count in enumerate(counts)
    ]


def calculate_statistics(values: Sequence[float]) -> SummaryStatistics:
    """Descriptive statistics; population standard deviation. Zeros when empty."""
    if not values:
        return SummaryStatistics(min=0.0, max=0.0, mean=0.0, median=0.0, standard_deviation=0.0, count=0)

    return SummaryStatistics(
        min=min(values),
        max=max(values),
        mean=mean(values),
        median=median(values),
        standard_deviation=pstdev(values),
        count=len(values),
    )


# =============================================================================
# Correlation
# =============================================================================


def _numeric_attribute(prop: Property, variable: str) -> Optional[float]:
    raw = getattr(prop, variable, None)
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return float(raw) if math.isfinite(raw) else None
    if isinstance(raw, str):
        return parse_decimal(raw)
    return None


def generate_correlation_matrix(
    properties: List[Property],
    variables: List[str],
) -> List[CorrelationCell]:
    """
    Pairwise Pearson correlations for every (x, y) pair of variables.

    Variables are Property attribute names; decimal-string fields such as
    "value" are parsed. Each pair uses only properties holding both values,
    and needs at least 3 of them.
    """
    cells = []
    for x_var in variables:
        for y_var in variables:
            pairs = []
            for prop in properties:
                x = _numeric_attribute(prop, x_var)
                y = _numeric_attribute(prop, y_var)
                if x is not None and y is not None:
                    pairs.append((x, y))

            correlation = 0.0
            if len(pairs) >= MIN_CORRELATION_PAIRS:
                xs, ys = zip(*pairs)
                correlation = pearson(xs, ys) or 0.0

            cells.append(CorrelationCell(x_variable=x_var, y_variable=y_var, correlation=correlation))

    return cells


# =============================================================================
# Regression Diagnostics
# =============================================================================


def residual_color(residual: float, max_abs_residual: float) -> str:
    """Red for negative residuals, green for positive, gray for zero."""
    if residual == 0 or max_abs_residual <= 0:
        return NEUTRAL_COLOR

    intensity = min(1.0, abs(residual) / max_abs_residual)
    channel = round(intensity * 255)
    if residual < 0:
        return OVERVALUED_COLOR.format(channel)
    return UNDERVALUED_COLOR.format(channel)


def _percent_error(error: float, actual: float) -> float:
    return error / actual * 100 if actual != 0 else 0.0


def generate_residual_map_data(
    fit: RegressionFit,
    properties: List[Property],
) -> List[ResidualMapPoint]:
    """
    Map points for fitted properties that have coordinates.

    Rows of the fit are matched to properties by id; fitted properties
    missing from `properties` or lacking coordinates are left out.
    """
    by_id = {p.id: p for p in properties if p.has_coordinates}
    residuals = fit.residuals
    if not residuals:
        return []

    max_abs = max(abs(r) for r in residuals)

    points = []
    for prop_id, actual, predicted, residual in zip(
        fit.property_ids, fit.actual_values, fit.predicted_values, residuals,
    ):
        prop = by_id.get(prop_id)
        if prop is None:
            continue
        points.append(ResidualMapPoint(
            property_id=prop.id,
            latitude=prop.latitude,
            longitude=prop.longitude,
            address=prop.address,
            actual=actual,
            predicted=predicted,
            residual=residual,
            percent_error=_percent_error(residual, actual),
            color=residual_color(residual, max_abs),
        ))
    return points


def generate_prediction_scatter_data(fit: RegressionFit) -> List[ScatterPoint]:
    """Predicted (x) against actual (y) for every fitted property."""
    return [
        ScatterPoint(
            x=predicted,
            y=actual,
            property_id=prop_id,
            error=actual - predicted,
            error_percent=_percent_error(actual - predicted, actual),
        )
        for prop_id, actual, predicted in zip(fit.property_ids, fit.actual_values, fit.predicted_values)
    ]


def generate_coefficient_impact_data(fit: RegressionFit) -> List[CoefficientImpact]:
    """Coefficients ranked by absolute size."""
    impacts = [
        CoefficientImpact(variable=name, coefficient=fit.coefficients[name], impact=abs(fit.coefficients[name]))
        for name in fit.features
    ]
    return sorted(impacts, key=lambda item: item.impact, reverse=True)
