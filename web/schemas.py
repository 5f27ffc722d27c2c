"""
Request bodies for the analytics API.

Pydantic models validate the wire shape; each converts into the frozen
core dataclasses before any analysis runs.
"""

from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from core.analytics import (
    ComparableFilters,
    Property,
    QuarterlyValue,
    SimilarityWeights,
    TimeSeriesPoint,
)


# Monetary fields arrive as decimal strings, but plain numbers are accepted
Decimal = Optional[Union[str, float]]


class PropertyInput(BaseModel):
    """A property record; every attribute except the id is optional."""
    id: Union[str, int]
    value: Decimal = None
    sale_price: Decimal = None
    land_value: Decimal = None
    tax_assessment: Decimal = None
    square_feet: Optional[float] = None
    year_built: Optional[int] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[float] = None
    lot_size: Optional[float] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    neighborhood: Optional[str] = None
    property_type: Optional[str] = None
    address: str = ""
    parcel_id: str = ""
    value_history: Dict[str, Union[str, float]] = {}

    def to_property(self) -> Property:
        return Property.from_dict(self.model_dump())


class FiltersInput(BaseModel):
    max_distance_km: Optional[float] = Field(default=None, ge=0)
    same_neighborhood: bool = False
    property_type: Optional[str] = None
    min_bedrooms: Optional[int] = None
    max_bedrooms: Optional[int] = None
    min_bathrooms: Optional[float] = None
    max_bathrooms: Optional[float] = None
    min_square_feet: Optional[float] = None
    max_square_feet: Optional[float] = None
    min_year_built: Optional[int] = None
    max_year_built: Optional[int] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    weights: Optional[Dict[str, float]] = None

    def to_filters(self) -> ComparableFilters:
        data = self.model_dump(exclude={"weights"})
        weights = SimilarityWeights.from_dict(self.weights) if self.weights else None
        return ComparableFilters(weights=weights, **data)


class ComparablesRequest(BaseModel):
    subject: PropertyInput
    candidates: List[PropertyInput]
    filters: Optional[FiltersInput] = None
    max_results: Optional[int] = Field(default=None, ge=0)


class ValuationRequest(BaseModel):
    subject: PropertyInput
    properties: List[PropertyInput]
    filters: Optional[FiltersInput] = None
    reference_year: Optional[int] = None


class ComparableValuationRequest(BaseModel):
    subject: PropertyInput
    properties: List[PropertyInput]
    max_comparables: Optional[int] = Field(default=None, ge=0)
    reference_year: Optional[int] = None


class TrendRequest(BaseModel):
    property: PropertyInput
    fill_gaps: bool = True
    reference_year: Optional[int] = None


class SeriesPointInput(BaseModel):
    year: int
    value: float
    interpolated: bool = False

    def to_point(self) -> TimeSeriesPoint:
        return TimeSeriesPoint(year=self.year, value=self.value, interpolated=self.interpolated)


class ForecastRequest(BaseModel):
    series: List[SeriesPointInput]
    years: Optional[int] = Field(default=None, ge=1, le=50)
    model: Optional[Literal["linear", "exponential", "average"]] = None


class PropertyForecastRequest(BaseModel):
    property: PropertyInput
    years: Optional[int] = Field(default=None, ge=1, le=50)
    reference_year: Optional[int] = None


class NeighborhoodForecastRequest(BaseModel):
    neighborhood: str
    properties: List[PropertyInput]
    years: Optional[int] = Field(default=None, ge=1, le=50)
    reference_year: Optional[int] = None


class AccuracyRequest(BaseModel):
    properties: List[PropertyInput]


class QuarterlyValueInput(BaseModel):
    quarter: str
    value: Union[str, float]

    def to_quarterly_value(self) -> QuarterlyValue:
        return QuarterlyValue(quarter=self.quarter, value=str(self.value))


class SeasonalityRequest(BaseModel):
    quarterly_values: List[QuarterlyValueInput]


class HistogramRequest(BaseModel):
    values: List[float]
    num_bins: int = Field(default=10, ge=1, le=200)
