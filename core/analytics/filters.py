"""
Comparable Eligibility Filters

Hard constraints applied before similarity ranking:
- Geographic radius (haversine, km)
- Same neighborhood (on request)
- Property type (exact match)
- Inclusive ranges for bedrooms, bathrooms, square feet, year built, value

Every constraint is skipped, not failed, when the attribute it reads is
absent on either side.
"""

import logging
import math
from typing import List, Optional

from .models import ComparableFilters, Property


logger = logging.getLogger(__name__)


# Mean Earth radius (km)
EARTH_RADIUS_KM = 6371.0


def haversine_km(
    lat1: float, lon1: float,
    lat2: float, lon2: float,
) -> float:
    """
    Great-circle distance between two points in kilometres.

    Args:
        lat1, lon1: First point coordinates (degrees)
        lat2, lon2: Second point coordinates (degrees)

    Returns:
        Distance in kilometres
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2) ** 2
    )
    # Rounding can push a fractionally above 1 for antipodal points
    c = 2 * math.asin(math.sqrt(min(1.0, a)))

    return EARTH_RADIUS_KM * c


def distance_between(a: Property, b: Property) -> Optional[float]:
    """Distance in km, or None when either property lacks coordinates."""
    if not (a.has_coordinates and b.has_coordinates):
        return None
    return haversine_km(a.latitude, a.longitude, b.latitude, b.longitude)


def _within(value: Optional[float], low: Optional[float], high: Optional[float]) -> bool:
    """Inclusive range check; an absent value or bound never fails."""
    if value is None:
        return True
    if low is not None and value < low:
        return False
    if high is not None and value > high:
        return False
    return True


class ComparableFilter:
    """
    Applies hard filters to candidate comparables.

    A candidate must pass ALL applicable filters to survive. The input
    sequence is never modified; a new list is returned.
    """

    def filter(
        self,
        subject: Property,
        candidates: List[Property],
        filters: Optional[ComparableFilters] = None,
    ) -> List[Property]:
        """
        Filter candidates to those eligible as comparables for subject.

        The subject itself (matched by id) is always excluded.

        Args:
            subject: The property comparables are sought for
            candidates: All potential comparables
            filters: Optional hard constraints

        Returns:
            Eligible candidates, in their original order
        """
        filters = filters or ComparableFilters()

        result = [
            candidate for candidate in candidates
            if candidate.id != subject.id and self.is_eligible(subject, candidate, filters)
        ]

        logger.debug(
            "Comparable filter kept %d of %d candidates for %s",
            len(result), len(candidates), subject.id,
        )
        return result

    def is_eligible(
        self,
        subject: Property,
        candidate: Property,
        filters: ComparableFilters,
    ) -> bool:
        """Check a single candidate against every applicable filter."""
        if filters.max_distance_km is not None:
            distance = distance_between(subject, candidate)
            if distance is not None and distance > filters.max_distance_km:
                return False

        if filters.same_neighborhood:
            if (
                subject.neighborhood is not None
                and candidate.neighborhood is not None
                and subject.neighborhood != candidate.neighborhood
            ):
                return False

        if filters.property_type is not None and candidate.property_type is not None:
            if candidate.property_type != filters.property_type:
                return False

        if not _within(candidate.bedrooms, filters.min_bedrooms, filters.max_bedrooms):
            return False

        if not _within(candidate.bathrooms, filters.min_bathrooms, filters.max_bathrooms):
            return False

        if not _within(candidate.square_feet, filters.min_square_feet, filters.max_square_feet):
            return False

        if not _within(candidate.year_built, filters.min_year_built, filters.max_year_built):
            return False

        if not _within(candidate.numeric_value, filters.min_value, filters.max_value):
            return False

        return True
