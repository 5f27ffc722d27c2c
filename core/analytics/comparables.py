"""
Comparable Selector

Pipeline order:
1. FILTER - Apply hard eligibility filters
2. SCORE - Weighted similarity against the subject
3. ANNOTATE - Distance, price and size differences where computable
4. RANK - Descending by similarity (stable), truncated
"""

import logging
from typing import List, Optional

from .filters import ComparableFilter, distance_between
from .models import ComparableFilters, ComparablePropertyResult, Property
from .similarity import SimilarityScorer


logger = logging.getLogger(__name__)


DEFAULT_MAX_RESULTS = 5


class ComparableSelector:
    """
    Selects and ranks comparable properties for a subject.

    Stateless: the scorer and filter are injected (or built fresh) per
    instance, and candidate collections are never modified.
    """

    def __init__(
        self,
        scorer: Optional[SimilarityScorer] = None,
        eligibility: Optional[ComparableFilter] = None,
    ):
        self._scorer = scorer or SimilarityScorer()
        self._filter = eligibility or ComparableFilter()

    def find(
        self,
        base: Property,
        candidates: List[Property],
        filters: Optional[ComparableFilters] = None,
        max_results: int = DEFAULT_MAX_RESULTS,
    ) -> List[ComparablePropertyResult]:
        """
        Find the most similar comparables for base.

        Args:
            base: Subject property
            candidates: Potential comparables (base itself is skipped)
            filters: Optional hard constraints and weight override
            max_results: Maximum number of results

        Returns:
            Results sorted by similarity_score descending; empty when
            nothing survives filtering
        """
        if max_results <= 0:
            return []

        eligible = self._filter.filter(base, candidates, filters)
        if not eligible:
            return []

        weights = filters.weights if filters else None
        base_value = base.numeric_value

        results = []
        for candidate in eligible:
            score = self._scorer.score(base, candidate, weights)

            candidate_value = candidate.numeric_value
            price_difference = None
            if base_value is not None and candidate_value is not None:
                price_difference = candidate_value - base_value

            size_difference = None
            if base.square_feet is not None and candidate.square_feet is not None:
                size_difference = candidate.square_feet - base.square_feet

            results.append(ComparablePropertyResult(
                property=candidate,
                similarity_score=score,
                distance_km=distance_between(base, candidate),
                price_difference=price_difference,
                size_difference=size_difference,
            ))

        # sorted() is stable, so equal scores keep their input order
        ranked = sorted(results, key=lambda r: r.similarity_score, reverse=True)

        logger.debug(
            "Ranked %d comparables for %s, returning top %d",
            len(ranked), base.id, min(max_results, len(ranked)),
        )
        return ranked[:max_results]
