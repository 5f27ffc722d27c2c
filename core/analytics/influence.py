"""
Value influence radius.

How strongly nearby sales pull on a subject's value, modelled as
exponential decay with distance. The decay rate adapts to density: it is
the inverse of the distance to the 10th-nearest valued neighbour, so
influence falls off faster where properties are packed closely.
"""

import logging
import math
from typing import List

from .filters import haversine_km
from .models import InfluencedProperty, InfluenceRadiusResult, Property


logger = logging.getLogger(__name__)


DEFAULT_MAX_RADIUS_KM = 5.0

# Nth-nearest neighbour that sets the reference distance
REFERENCE_NEIGHBOR = 10


def calculate_value_influence_radius(
    subject: Property,
    population: List[Property],
    max_radius_km: float = DEFAULT_MAX_RADIUS_KM,
) -> InfluenceRadiusResult:
    """
    Influence of valued neighbours within max_radius_km of the subject.

    Args:
        subject: Property at the centre
        population: Candidate neighbours (the subject itself is skipped)
        max_radius_km: Search radius

    Returns:
        InfluenceRadiusResult with neighbours sorted by influence descending.
        A subject without coordinates yields an all-zero result; no
        neighbours in range yields radius max_radius_km / 2 and decay 1.
    """
    if not subject.has_coordinates:
        return InfluenceRadiusResult(
            property_id=subject.id,
            radius_km=0.0,
            decay_rate=0.0,
        )

    neighbours = []
    for p in population:
        if p.id == subject.id or not p.has_coordinates or p.numeric_value is None:
            continue
        distance = haversine_km(subject.latitude, subject.longitude, p.latitude, p.longitude)
        if distance <= max_radius_km:
            neighbours.append((p, distance))

    if not neighbours:
        return InfluenceRadiusResult(
            property_id=subject.id,
            radius_km=max_radius_km / 2,
            decay_rate=1.0,
        )

    neighbours.sort(key=lambda item: item[1])
    reference_distance = neighbours[min(len(neighbours), REFERENCE_NEIGHBOR) - 1][1]

    # Co-located neighbours only
    decay_rate = 1 / reference_distance if reference_distance > 0 else 1.0

    influenced = [
        InfluencedProperty(
            property=p,
            distance_km=distance,
            influence_score=math.exp(-decay_rate * distance),
        )
        for p, distance in neighbours
    ]
    influenced.sort(key=lambda item: item.influence_score, reverse=True)

    logger.debug(
        "Influence radius for %s: %d neighbours, reference distance %.3f km",
        subject.id, len(influenced), reference_distance,
    )

    return InfluenceRadiusResult(
        property_id=subject.id,
        radius_km=reference_distance * 2,
        decay_rate=decay_rate,
        influenced_properties=influenced,
        total_influence=sum(item.influence_score for item in influenced),
    )
