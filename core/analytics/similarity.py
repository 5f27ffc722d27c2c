"""
Similarity Scorer

Pairwise weighted similarity between two property records.

Only attributes present on BOTH records are scored; the result is
renormalised by the total weight actually applied, so missing data
degrades the score's coverage rather than counting as a mismatch.
"""

import logging
import statistics
from typing import Dict, List, Optional

from .filters import distance_between
from .models import (
    DEFAULT_WEIGHTS,
    Property,
    SimilarityWeights,
    merge_weights,
)
from .stats import pearson


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Constants
# =============================================================================

# Year-built similarity decays linearly to zero over this many years
YEAR_BUILT_HORIZON = 50

# Location similarity decays linearly to zero over this distance (km)
LOCATION_HORIZON_KM = 5.0

# Bedroom difference -> share of weight
BEDROOM_SIMILARITY = {0: 1.0, 1: 0.8, 2: 0.4}

# (max bathroom difference, share of weight), checked in order
BATHROOM_SIMILARITY = ((0.0, 1.0), (0.5, 0.8), (1.0, 0.6), (1.5, 0.3))

# Market-weighted similarity thresholds
MIN_MARKET_POPULATION = 10
MIN_FEATURE_SAMPLES = 5
MIN_CATEGORY_SIZE = 3
MIN_FEATURE_WEIGHT = 0.05
DEFAULT_LOCATION_IMPORTANCE = 0.1
DEFAULT_CATEGORY_IMPORTANCE = 0.1
MAX_CATEGORY_IMPORTANCE = 0.8

NUMERIC_FEATURES = ("square_feet", "year_built", "bedrooms", "bathrooms", "lot_size")


def proportional_similarity(base: float, other: float) -> float:
    """1 - |delta| / base, floored at 0. A zero base only matches itself."""
    if base <= 0:
        return 1.0 if other == base else 0.0
    return max(0.0, 1.0 - abs(other - base) / base)


def year_built_similarity(base: int, other: int) -> float:
    return 1.0 - min(abs(other - base), YEAR_BUILT_HORIZON) / YEAR_BUILT_HORIZON


def bedroom_similarity(base: int, other: int) -> float:
    return BEDROOM_SIMILARITY.get(abs(int(other) - int(base)), 0.0)


def bathroom_similarity(base: float, other: float) -> float:
    diff = abs(other - base)
    for max_diff, share in BATHROOM_SIMILARITY:
        if diff <= max_diff:
            return share
    return 0.0


def location_similarity(distance_km: float) -> float:
    return max(0.0, 1.0 - distance_km / LOCATION_HORIZON_KM)


class SimilarityScorer:
    """
    Weighted attribute similarity between a base property and a candidate.

    Scoring rules:
    - property_type, neighborhood: exact match (1 or 0)
    - square_feet, lot_size: proportional difference against the base
    - year_built: linear decay over a 50-year horizon
    - bedrooms: exact 1.0, off by one 0.8, off by two 0.4
    - bathrooms: exact 1.0, <=0.5 0.8, <=1 0.6, <=1.5 0.3
    - location: linear decay over 5 km between coordinates

    Small room-count deviations barely penalise; large ones dominate.
    """

    def score(
        self,
        base: Property,
        candidate: Property,
        weights: Optional[SimilarityWeights] = None,
    ) -> float:
        """
        Score candidate against base.

        Args:
            base: Reference property
            candidate: Property being compared
            weights: Optional partial weights merged over the defaults

        Returns:
            Similarity in [0, 1]; 0 when both records share an id
        """
        if base.id == candidate.id:
            return 0.0

        resolved = merge_weights(weights)
        total = 0.0
        applied = 0.0

        for similarity, weight in self._attribute_scores(base, candidate, resolved):
            if weight <= 0:
                continue
            total += similarity * weight
            applied += weight

        if applied <= 0:
            return 0.0

        return min(1.0, max(0.0, total / applied))

    def _attribute_scores(
        self,
        base: Property,
        candidate: Property,
        weights: SimilarityWeights,
    ):
        """Yield (similarity, weight) for each attribute both records hold."""
        if base.property_type is not None and candidate.property_type is not None:
            yield (1.0 if base.property_type == candidate.property_type else 0.0), weights.property_type

        if base.square_feet is not None and candidate.square_feet is not None:
            yield proportional_similarity(base.square_feet, candidate.square_feet), weights.square_feet

        if base.year_built is not None and candidate.year_built is not None:
            yield year_built_similarity(base.year_built, candidate.year_built), weights.year_built

        if base.bedrooms is not None and candidate.bedrooms is not None:
            yield bedroom_similarity(base.bedrooms, candidate.bedrooms), weights.bedrooms

        if base.bathrooms is not None and candidate.bathrooms is not None:
            yield bathroom_similarity(base.bathrooms, candidate.bathrooms), weights.bathrooms

        if base.lot_size is not None and candidate.lot_size is not None:
            yield proportional_similarity(base.lot_size, candidate.lot_size), weights.lot_size

        if base.neighborhood is not None and candidate.neighborhood is not None:
            yield (1.0 if base.neighborhood == candidate.neighborhood else 0.0), weights.neighborhood

        distance = distance_between(base, candidate)
        if distance is not None:
            yield location_similarity(distance), weights.location

    # -------------------------------------------------------------------------
    # Market-weighted similarity
    # -------------------------------------------------------------------------

    def auto_weighted_score(
        self,
        base: Property,
        candidate: Property,
        population: List[Property],
    ) -> float:
        """Score using weights derived from how each feature tracks value in the market."""
        return self.score(base, candidate, self.market_weights(base, population))

    def market_weights(
        self,
        base: Property,
        population: List[Property],
    ) -> SimilarityWeights:
        """
        Derive similarity weights from the market around base.

        Each feature's importance is its correlation with value among
        same-type peers (between-group variance for categorical features).
        Importances are normalised and every feature keeps a 0.05 floor.
        Falls back to DEFAULT_WEIGHTS when the market is too thin.
        """
        if len(population) < MIN_MARKET_POPULATION:
            return DEFAULT_WEIGHTS

        peers = population
        if base.property_type is not None:
            peers = [p for p in population if p.property_type == base.property_type]

        valued = [p for p in peers if p.numeric_value is not None]
        if len(peers) < MIN_FEATURE_SAMPLES or len(valued) < MIN_FEATURE_SAMPLES:
            return DEFAULT_WEIGHTS

        values = [p.numeric_value for p in valued]
        importance: Dict[str, float] = {}

        for feature in NUMERIC_FEATURES:
            feature_values = [float(getattr(p, feature) or 0) for p in valued]
            if sum(1 for v in feature_values if v > 0) < MIN_FEATURE_SAMPLES:
                importance[feature] = 0.0
                continue
            importance[feature] = abs(pearson(feature_values, values) or 0.0)

        importance["location"] = self._location_importance(base, valued)
        importance["neighborhood"] = _categorical_importance(valued, "neighborhood", values)
        importance["property_type"] = _categorical_importance(valued, "property_type", values)

        total = sum(importance.values())
        if total <= 0:
            return DEFAULT_WEIGHTS

        logger.debug("Market feature importance for %s: %s", base.id, importance)

        return SimilarityWeights(**{
            feature: MIN_FEATURE_WEIGHT + (1 - MIN_FEATURE_WEIGHT) * (share / total)
            for feature, share in importance.items()
        })

    def _location_importance(self, base: Property, valued: List[Property]) -> float:
        if not base.has_coordinates:
            return DEFAULT_LOCATION_IMPORTANCE

        located = [p for p in valued if p.has_coordinates]
        if len(located) < MIN_FEATURE_SAMPLES:
            return DEFAULT_LOCATION_IMPORTANCE

        inverse_distances = [1 / (distance_between(base, p) + 0.1) for p in located]
        correlation = pearson(inverse_distances, [p.numeric_value for p in located])
        if correlation is None:
            return DEFAULT_LOCATION_IMPORTANCE
        return abs(correlation)


def _categorical_importance(
    properties: List[Property],
    attribute: str,
    values: List[float],
) -> float:
    """
    Between-category variance of mean value relative to overall variance.

    Only categories with at least three members count. Bounded to
    [0.1, 0.8]; 0.1 when there is nothing to compare.
    """
    groups: Dict[str, List[float]] = {}
    for prop, value in zip(properties, values):
        category = getattr(prop, attribute)
        if category:
            groups.setdefault(category, []).append(value)

    if len(groups) <= 1:
        return DEFAULT_CATEGORY_IMPORTANCE

    means = [statistics.mean(v) for v in groups.values() if len(v) >= MIN_CATEGORY_SIZE]
    if len(means) <= 1:
        return DEFAULT_CATEGORY_IMPORTANCE

    overall_variance = statistics.pvariance(values)
    if overall_variance == 0:
        return DEFAULT_CATEGORY_IMPORTANCE

    ratio = statistics.pvariance(means) / overall_variance
    return min(MAX_CATEGORY_IMPORTANCE, max(DEFAULT_CATEGORY_IMPORTANCE, ratio))
