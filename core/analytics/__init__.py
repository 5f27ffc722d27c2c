"""
Property Analytics Engine v1.0

Comparable selection, valuation-gap analysis, value trends and forecasting
over an in-memory property collection. Every component is stateless and
deterministic for a given reference year.
"""

from .errors import InsufficientDataError
from .models import (
    Property,
    SimilarityWeights,
    DEFAULT_WEIGHTS,
    merge_weights,
    ComparableFilters,
    ComparablePropertyResult,
    ValuationStatus,
    ValuationAnalysisResult,
    ComparableValueAnalysis,
    TimeSeriesPoint,
    TrendDirection,
    TrendAnalysisResult,
    PropertyTrendComparison,
    ForecastModel,
    ForecastPoint,
    ForecastResult,
    PropertyForecast,
    NeighborhoodForecast,
    QuarterlyValue,
    SeasonalPattern,
    ForecastAccuracy,
    InfluenceRadiusResult,
    PriceSensitivityResult,
    RegressionFit,
    parse_decimal,
)
from .filters import ComparableFilter, haversine_km
from .similarity import SimilarityScorer
from .comparables import ComparableSelector
from .valuation import ValuationAnalyzer
from .trends import TrendAnalyzer
from .forecasting import Forecaster
from .seasonality import detect_seasonal_patterns
from .backtesting import get_forecast_accuracy
from .influence import calculate_value_influence_radius
from .sensitivity import analyze_price_sensitivity

__all__ = [
    # Errors
    "InsufficientDataError",
    # Models
    "Property",
    "SimilarityWeights",
    "DEFAULT_WEIGHTS",
    "merge_weights",
    "ComparableFilters",
    "ComparablePropertyResult",
    "ValuationStatus",
    "ValuationAnalysisResult",
    "ComparableValueAnalysis",
    "TimeSeriesPoint",
    "TrendDirection",
    "TrendAnalysisResult",
    "PropertyTrendComparison",
    "ForecastModel",
    "ForecastPoint",
    "ForecastResult",
    "PropertyForecast",
    "NeighborhoodForecast",
    "QuarterlyValue",
    "SeasonalPattern",
    "ForecastAccuracy",
    "InfluenceRadiusResult",
    "PriceSensitivityResult",
    "RegressionFit",
    "parse_decimal",
    # Engine
    "ComparableFilter",
    "haversine_km",
    "SimilarityScorer",
    "ComparableSelector",
    "ValuationAnalyzer",
    "TrendAnalyzer",
    "Forecaster",
    "detect_seasonal_patterns",
    "get_forecast_accuracy",
    "calculate_value_influence_radius",
    "analyze_price_sensitivity",
]

__version__ = "1.0"
