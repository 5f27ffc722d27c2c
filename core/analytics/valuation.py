"""
Valuation Analyzer

Two alternative valuation-gap analyses, both exposed so the caller can
choose:

(a) Neighborhood baseline - subject price per square foot against the
    average of its neighborhood peers (or its comparables when it has no
    peers), classified as undervalued / overvalued / fair value.
(b) Comparable average - estimated value as the mean of the top
    comparables, with value range, market percentile and a bounded
    confidence score.

Missing or zero inputs degrade to 0 / None fields, never NaN.
"""

import logging
from datetime import date
from statistics import mean
from typing import List, Optional

from .comparables import ComparableSelector
from .models import (
    ComparableFilters,
    ComparablePropertyResult,
    ComparableValueAnalysis,
    Property,
    ValuationAnalysisResult,
    ValuationStatus,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Constants
# =============================================================================

# Percentage gap beyond which a property is under/overvalued
UNDERVALUED_THRESHOLD = -10.0
OVERVALUED_THRESHOLD = 10.0

# Suggested value range (+/- fraction)
SUGGESTED_VALUE_SPREAD = 0.05

# Comparables used as the fallback baseline
BASELINE_COMPARABLES = 5

# Comparable-average confidence: min(85, 50 + 5 x count + 20 x mean similarity)
CONFIDENCE_BASE = 50.0
CONFIDENCE_PER_COMPARABLE = 5.0
CONFIDENCE_SIMILARITY_FACTOR = 20.0
CONFIDENCE_CAP = 85.0


def classify_valuation(percentage_difference: float) -> ValuationStatus:
    """Map a percentage gap to a valuation status."""
    if percentage_difference < UNDERVALUED_THRESHOLD:
        return ValuationStatus.UNDERVALUED
    if percentage_difference > OVERVALUED_THRESHOLD:
        return ValuationStatus.OVERVALUED
    return ValuationStatus.FAIR_VALUE


def percentage_difference(subject: float, baseline: float) -> float:
    """(subject - baseline) / baseline x 100, or 0 when either side is unusable."""
    if baseline <= 0 or subject <= 0:
        return 0.0
    return (subject - baseline) / baseline * 100


class ValuationAnalyzer:
    """
    Valuation-gap analysis for a subject property.

    Uses ComparableSelector for the comparable set; the reference year
    (for property age) is injected so results are reproducible.
    """

    def __init__(
        self,
        selector: Optional[ComparableSelector] = None,
        reference_year: Optional[int] = None,
    ):
        """
        Initialize the analyzer.

        Args:
            selector: Comparable selector (default: a fresh one)
            reference_year: Year used to compute property age (default: this year)
        """
        self._selector = selector or ComparableSelector()
        self._reference_year = reference_year or date.today().year

    def analyze_property_value(
        self,
        subject: Property,
        population: List[Property],
        filters: Optional[ComparableFilters] = None,
    ) -> ValuationAnalysisResult:
        """
        Neighborhood-baseline valuation analysis.

        Args:
            subject: Property being analysed
            population: All known properties (subject may be included)
            filters: Optional constraints for the comparable fallback

        Returns:
            ValuationAnalysisResult with status and suggested value
        """
        subject_ppsf = subject.price_per_square_foot or 0.0

        comparables = self._selector.find(
            subject, population, filters, max_results=BASELINE_COMPARABLES,
        )

        baseline = self._neighborhood_baseline(subject, population)
        if baseline is None:
            logger.debug("No neighborhood peers for %s, using comparable baseline", subject.id)
            baseline = self._comparable_baseline(comparables)

        gap = percentage_difference(subject_ppsf, baseline)

        suggested_value = None
        value_range_min = None
        value_range_max = None
        if subject.square_feet and subject.square_feet > 0 and baseline > 0:
            suggested_value = subject.square_feet * baseline
            value_range_min = suggested_value * (1 - SUGGESTED_VALUE_SPREAD)
            value_range_max = suggested_value * (1 + SUGGESTED_VALUE_SPREAD)

        return ValuationAnalysisResult(
            property=subject,
            valuation_status=classify_valuation(gap),
            price_per_square_foot=subject_ppsf,
            baseline_price_per_square_foot=baseline,
            percentage_difference=gap,
            comparable_properties=comparables,
            suggested_value=suggested_value,
            value_range_min=value_range_min,
            value_range_max=value_range_max,
        )

    def analyze_comparable_value(
        self,
        subject: Property,
        population: List[Property],
        max_comparables: int = BASELINE_COMPARABLES,
    ) -> ComparableValueAnalysis:
        """
        Comparable-average valuation analysis.

        Args:
            subject: Property being analysed
            population: All known properties, also used for the market percentile
            max_comparables: Number of top comparables averaged

        Returns:
            ComparableValueAnalysis with estimate, range, percentile, confidence
        """
        comparables = self._selector.find(subject, population, max_results=max_comparables)
        subject_value = subject.numeric_value

        comp_values = [
            c.property.numeric_value for c in comparables
            if c.property.numeric_value is not None
        ]

        if comp_values:
            estimated_value = mean(comp_values)
        else:
            estimated_value = subject_value or 0.0

        range_values = comp_values + ([subject_value] if subject_value is not None else [])
        value_range = (min(range_values), max(range_values)) if range_values else (0.0, 0.0)

        property_age = None
        if subject.year_built is not None:
            property_age = self._reference_year - subject.year_built

        value_to_land_ratio = None
        land_value = subject.numeric_land_value
        if subject_value is not None and land_value is not None and land_value > 0:
            value_to_land_ratio = subject_value / land_value

        return ComparableValueAnalysis(
            property=subject,
            estimated_value=estimated_value,
            value_range=value_range,
            market_percentile=self.market_percentile(subject, population),
            confidence_score=self._comparable_confidence(comparables),
            price_per_square_foot=subject.price_per_square_foot or 0.0,
            comparable_properties=comparables,
            property_age=property_age,
            value_to_land_ratio=value_to_land_ratio,
        )

    @staticmethod
    def market_percentile(subject: Property, population: List[Property]) -> float:
        """
        Position of the subject's value within the population (0-100).

        The share of population values strictly below the subject's value;
        100 when the subject is above every value, 0 when it has none.
        """
        subject_value = subject.numeric_value
        if subject_value is None:
            return 0.0

        values = sorted(
            p.numeric_value for p in population if p.numeric_value is not None
        )
        if not values:
            return 0.0

        for position, value in enumerate(values):
            if value >= subject_value:
                return round(position / len(values) * 100, 1)
        return 100.0

    @staticmethod
    def _neighborhood_baseline(subject: Property, population: List[Property]) -> Optional[float]:
        """Average price per square foot of same-neighborhood peers, if any."""
        if subject.neighborhood is None:
            return None

        peer_ppsf = [
            p.price_per_square_foot for p in population
            if p.id != subject.id
            and p.neighborhood == subject.neighborhood
            and p.price_per_square_foot is not None
        ]
        if not peer_ppsf:
            return None
        return mean(peer_ppsf)

    @staticmethod
    def _comparable_baseline(comparables: List[ComparablePropertyResult]) -> float:
        comp_ppsf = [
            c.property.price_per_square_foot for c in comparables
            if c.property.price_per_square_foot is not None
        ]
        return mean(comp_ppsf) if comp_ppsf else 0.0

    @staticmethod
    def _comparable_confidence(comparables: List[ComparablePropertyResult]) -> float:
        count = len(comparables)
        mean_similarity = mean(c.similarity_score for c in comparables) if comparables else 0.0
        score = CONFIDENCE_BASE + CONFIDENCE_PER_COMPARABLE * count + CONFIDENCE_SIMILARITY_FACTOR * mean_similarity
        return min(CONFIDENCE_CAP, max(0.0, score))
