"""
Property Analytics - Core Business Logic

Pipeline building blocks:
1. Eligibility filtering (hard constraints)
2. Similarity scoring and comparable ranking
3. Valuation-gap analysis
4. Value trends and forecasting
"""

from .analytics import (
    Property,
    ComparableFilters,
    SimilarityScorer,
    ComparableSelector,
    ValuationAnalyzer,
    TrendAnalyzer,
    Forecaster,
    InsufficientDataError,
)

__all__ = [
    "Property",
    "ComparableFilters",
    "SimilarityScorer",
    "ComparableSelector",
    "ValuationAnalyzer",
    "TrendAnalyzer",
    "Forecaster",
    "InsufficientDataError",
]
