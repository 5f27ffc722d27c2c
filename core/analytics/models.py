"""
Data models for the property analytics engine.

Property records arrive from the data layer with every attribute optional.
Monetary fields are decimal strings and are only ever read through
parse_decimal, so "absent" and "unparseable" are handled identically.
"""

import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


PropertyId = Union[str, int]

# Currency symbols, thousands separators and whitespace
_FORMATTING = re.compile(r"[$£€,\s]")


def parse_decimal(raw: Any) -> Optional[float]:
    """
    Parse a decimal-string field into a float.

    Accepts plain numbers and strings such as "250000", "$250,000.00" or
    "1.5e6". Anything else left after stripping formatting, such as a unit
    or a "250k" suffix, makes the field unparseable.

    Args:
        raw: Raw field value from a property record

    Returns:
        The parsed number, or None when missing or unparseable
    """
    if raw is None or isinstance(raw, bool):
        return None

    if isinstance(raw, (int, float)):
        number = float(raw)
    else:
        cleaned = _FORMATTING.sub("", str(raw))
        if not cleaned:
            return None
        try:
            number = float(cleaned)
        except ValueError:
            return None

    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _parse_int(raw: Any) -> Optional[int]:
    number = parse_decimal(raw)
    return int(number) if number is not None else None


# =============================================================================
# Enumerations
# =============================================================================


class ValuationStatus(Enum):
    """
    Valuation gap classification.

    Undervalued: more than 10% below baseline price per square foot
    Overvalued: more than 10% above baseline
    Fair value: within +/- 10%
    """
    UNDERVALUED = "undervalued"
    OVERVALUED = "overvalued"
    FAIR_VALUE = "fair-value"


class TrendDirection(Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class ForecastModel(Enum):
    """Selectable forecasting models."""
    LINEAR = "linear"
    EXPONENTIAL = "exponential"
    AVERAGE = "average"

    @classmethod
    def from_string(cls, value: str) -> Optional["ForecastModel"]:
        """Convert string to ForecastModel, case-insensitive."""
        normalised = value.lower().strip()
        for member in cls:
            if member.value == normalised:
                return member
        return None


# =============================================================================
# Input Records
# =============================================================================

# camelCase keys accepted from the data layer
_FIELD_ALIASES = {
    "salePrice": "sale_price",
    "squareFeet": "square_feet",
    "yearBuilt": "year_built",
    "lotSize": "lot_size",
    "landValue": "land_value",
    "taxAssessment": "tax_assessment",
    "propertyType": "property_type",
    "parcelId": "parcel_id",
    "valueHistory": "value_history",
}


@dataclass(frozen=True)
class Property:
    """
    A real-estate record as supplied by the data layer.

    Every attribute apart from the id may be absent. Monetary fields
    (value, sale_price, land_value, tax_assessment) keep their raw
    decimal-string form; use the numeric_* accessors to read them.
    """
    id: PropertyId

    # Monetary fields (decimal strings)
    value: Optional[str] = None
    sale_price: Optional[str] = None
    land_value: Optional[str] = None
    tax_assessment: Optional[str] = None

    # Physical characteristics
    square_feet: Optional[float] = None
    year_built: Optional[int] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[float] = None
    lot_size: Optional[float] = None

    # Location
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    neighborhood: Optional[str] = None
    property_type: Optional[str] = None

    address: str = ""
    parcel_id: str = ""

    # Year (as string) -> decimal-string value
    value_history: Dict[str, str] = field(default_factory=dict)

    @property
    def numeric_value(self) -> Optional[float]:
        return parse_decimal(self.value)

    @property
    def numeric_sale_price(self) -> Optional[float]:
        return parse_decimal(self.sale_price)

    @property
    def numeric_land_value(self) -> Optional[float]:
        return parse_decimal(self.land_value)

    @property
    def numeric_tax_assessment(self) -> Optional[float]:
        return parse_decimal(self.tax_assessment)

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def price_per_square_foot(self) -> Optional[float]:
        """Value divided by square feet, or None when either is unusable."""
        value = self.numeric_value
        if value is None or not self.square_feet or self.square_feet <= 0:
            return None
        return value / self.square_feet

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Property":
        """
        Build a Property from a camelCase or snake_case mapping.

        Numeric characteristics are coerced; anything that
        does not parse is treated as absent.
        """
        normalised = {_FIELD_ALIASES.get(key, key): val for key, val in data.items()}

        def text(key: str) -> Optional[str]:
            raw = normalised.get(key)
            return None if raw is None else str(raw)

        history = normalised.get("value_history") or {}

        return cls(
            id=normalised.get("id", ""),
            value=text("value"),
            sale_price=text("sale_price"),
            land_value=text("land_value"),
            tax_assessment=text("tax_assessment"),
            square_feet=parse_decimal(normalised.get("square_feet")),
            year_built=_parse_int(normalised.get("year_built")),
            bedrooms=_parse_int(normalised.get("bedrooms")),
            bathrooms=parse_decimal(normalised.get("bathrooms")),
            lot_size=parse_decimal(normalised.get("lot_size")),
            latitude=parse_decimal(normalised.get("latitude")),
            longitude=parse_decimal(normalised.get("longitude")),
            neighborhood=text("neighborhood"),
            property_type=text("property_type"),
            address=str(normalised.get("address") or ""),
            parcel_id=str(normalised.get("parcel_id") or ""),
            value_history={str(year): str(val) for year, val in history.items()},
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "id": self.id,
            "address": self.address,
            "parcel_id": self.parcel_id,
            "value": self.value,
            "sale_price": self.sale_price,
            "square_feet": self.square_feet,
            "year_built": self.year_built,
            "bedrooms": self.bedrooms,
            "bathrooms": self.bathrooms,
            "lot_size": self.lot_size,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "neighborhood": self.neighborhood,
            "property_type": self.property_type,
        }


@dataclass(frozen=True)
class SimilarityWeights:
    """
    Per-attribute similarity weights.

    Any subset may be supplied; unset fields take the defaults in
    DEFAULT_WEIGHTS when merged. Weights need not sum to 1.
    """
    property_type: Optional[float] = None
    square_feet: Optional[float] = None
    year_built: Optional[float] = None
    bedrooms: Optional[float] = None
    bathrooms: Optional[float] = None
    lot_size: Optional[float] = None
    neighborhood: Optional[float] = None
    location: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SimilarityWeights":
        normalised = {_FIELD_ALIASES.get(key, key): val for key, val in data.items()}
        return cls(**{
            name: parse_decimal(normalised.get(name))
            for name in WEIGHT_FIELDS
        })

    def to_dict(self) -> dict:
        return {name: getattr(self, name) for name in WEIGHT_FIELDS}


WEIGHT_FIELDS: Tuple[str, ...] = (
    "property_type",
    "square_feet",
    "year_built",
    "bedrooms",
    "bathrooms",
    "lot_size",
    "neighborhood",
    "location",
)

DEFAULT_WEIGHTS = SimilarityWeights(
    property_type=0.15,
    square_feet=0.15,
    year_built=0.15,
    bedrooms=0.10,
    bathrooms=0.10,
    lot_size=0.10,
    neighborhood=0.15,
    location=0.10,
)


def merge_weights(overrides: Optional[SimilarityWeights] = None) -> SimilarityWeights:
    """
    Merge partial weights over the defaults.

    Returns a new, fully populated SimilarityWeights; neither argument
    nor DEFAULT_WEIGHTS is modified.
    """
    if overrides is None:
        return DEFAULT_WEIGHTS

    merged = {}
    for name in WEIGHT_FIELDS:
        override = getattr(overrides, name)
        merged[name] = override if override is not None else getattr(DEFAULT_WEIGHTS, name)
    return SimilarityWeights(**merged)


@dataclass(frozen=True)
class ComparableFilters:
    """
    Optional hard constraints for comparable selection.

    Each constraint is skipped when the attribute it reads is absent on
    either the subject or the candidate. Range bounds are inclusive.
    """
    max_distance_km: Optional[float] = None
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

    weights: Optional[SimilarityWeights] = None


# =============================================================================
# Comparable & Valuation Results
# =============================================================================


@dataclass(frozen=True)
class ComparablePropertyResult:
    """A candidate ranked against a subject property."""
    property: Property
    similarity_score: float  # 0-1

    distance_km: Optional[float] = None
    price_difference: Optional[float] = None  # candidate - subject value
    size_difference: Optional[float] = None  # candidate - subject square feet

    def to_dict(self) -> dict:
        return {
            "property": self.property.to_dict(),
            "similarity_score": self.similarity_score,
            "distance_km": self.distance_km,
            "price_difference": self.price_difference,
            "size_difference": self.size_difference,
        }


@dataclass(frozen=True)
class ValuationAnalysisResult:
    """
    Neighborhood-baseline valuation gap for a subject property.

    Fields that cannot be computed from the inputs are 0 (ratios) or
    None (suggested value and its range), never NaN.
    """
    property: Property
    valuation_status: ValuationStatus
    price_per_square_foot: float
    baseline_price_per_square_foot: float
    percentage_difference: float
    comparable_properties: List[ComparablePropertyResult] = field(default_factory=list)

    suggested_value: Optional[float] = None
    value_range_min: Optional[float] = None
    value_range_max: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "property": self.property.to_dict(),
            "valuation_status": self.valuation_status.value,
            "price_per_square_foot": self.price_per_square_foot,
            "baseline_price_per_square_foot": self.baseline_price_per_square_foot,
            "percentage_difference": self.percentage_difference,
            "comparable_properties": [c.to_dict() for c in self.comparable_properties],
            "suggested_value": self.suggested_value,
            "value_range_min": self.value_range_min,
            "value_range_max": self.value_range_max,
        }


@dataclass(frozen=True)
class ComparableValueAnalysis:
    """
    Comparable-average valuation for a subject property.

    estimated_value is the mean of the top comparables' values.
    confidence_score is on a 0-85 scale.
    """
    property: Property
    estimated_value: float
    value_range: Tuple[float, float]
    market_percentile: float  # 0-100
    confidence_score: float
    price_per_square_foot: float
    comparable_properties: List[ComparablePropertyResult] = field(default_factory=list)

    property_age: Optional[int] = None
    value_to_land_ratio: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "property": self.property.to_dict(),
            "estimated_value": self.estimated_value,
            "value_range": list(self.value_range),
            "market_percentile": self.market_percentile,
            "confidence_score": self.confidence_score,
            "price_per_square_foot": self.price_per_square_foot,
            "property_age": self.property_age,
            "value_to_land_ratio": self.value_to_land_ratio,
            "comparable_properties": [c.to_dict() for c in self.comparable_properties],
        }


# =============================================================================
# Time Series & Forecast Results
# =============================================================================


@dataclass(frozen=True)
class TimeSeriesPoint:
    year: int
    value: float
    interpolated: bool = False

    def to_dict(self) -> dict:
        return {"year": self.year, "value": self.value, "interpolated": self.interpolated}


@dataclass(frozen=True)
class TrendAnalysisResult:
    """Compound growth summary of a time series."""
    direction: TrendDirection
    growth_rate: float  # CAGR
    average_annual_change: float
    total_change: float
    start_value: float
    end_value: float

    def to_dict(self) -> dict:
        return {
            "direction": self.direction.value,
            "growth_rate": self.growth_rate,
            "average_annual_change": self.average_annual_change,
            "total_change": self.total_change,
            "start_value": self.start_value,
            "end_value": self.end_value,
        }


@dataclass(frozen=True)
class PropertyTrendComparison:
    """Trend summary for one property in a multi-property comparison."""
    id: PropertyId
    address: str
    parcel_id: str
    current_value: float
    growth_rate: float
    total_appreciation: float
    average_annual_change: float

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "address": self.address,
            "parcel_id": self.parcel_id,
            "current_value": self.current_value,
            "growth_rate": self.growth_rate,
            "total_appreciation": self.total_appreciation,
            "average_annual_change": self.average_annual_change,
        }


@dataclass(frozen=True)
class ForecastPoint:
    year: int
    value: float
    lower_bound: float
    upper_bound: float

    def to_dict(self) -> dict:
        return {
            "year": self.year,
            "value": self.value,
            "lower_bound": self.lower_bound,
            "upper_bound": self.upper_bound,
        }


@dataclass(frozen=True)
class ForecastResult:
    """Projection of a time series under one forecasting model."""
    predictions: List[ForecastPoint]
    model: ForecastModel
    confidence: float  # 0-1
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "predictions": [p.to_dict() for p in self.predictions],
            "model": self.model.value,
            "confidence": self.confidence,
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class PropertyForecast:
    """
    Per-property projection built directly from its value history.

    forecast_method is "ARIMA", "Exponential Smoothing" or "Simple Trend".
    """
    property_id: PropertyId
    base_value: float
    forecasted_values: List[ForecastPoint]
    confidence_level: float  # 0-1
    forecast_method: str
    avg_annual_growth_rate: float
    seasonality_adjusted: bool = False

    def to_dict(self) -> dict:
        return {
            "property_id": self.property_id,
            "base_value": self.base_value,
            "forecasted_values": [p.to_dict() for p in self.forecasted_values],
            "confidence_level": self.confidence_level,
            "forecast_method": self.forecast_method,
            "seasonality_adjusted": self.seasonality_adjusted,
            "avg_annual_growth_rate": self.avg_annual_growth_rate,
        }


@dataclass(frozen=True)
class NeighborhoodForecastPoint:
    year: int
    avg_value: float


@dataclass(frozen=True)
class NeighborhoodForecast:
    neighborhood: str
    avg_base_value: float
    avg_annual_growth_rate: float
    forecasted_values: List[NeighborhoodForecastPoint]
    confidence_level: float
    property_count: int

    def to_dict(self) -> dict:
        return {
            "neighborhood": self.neighborhood,
            "avg_base_value": self.avg_base_value,
            "avg_annual_growth_rate": self.avg_annual_growth_rate,
            "forecasted_values": [
                {"year": p.year, "avg_value": p.avg_value} for p in self.forecasted_values
            ],
            "confidence_level": self.confidence_level,
            "property_count": self.property_count,
        }


@dataclass(frozen=True)
class SeasonalPattern:
    """
    Quarterly seasonality summary.

    seasonal_factors maps "Q1".."Q4" to quarter mean / overall mean.
    """
    has_seasonal: bool
    seasonality_strength: float
    peak_quarters: List[str]
    trough_quarters: List[str]
    seasonal_factors: Dict[str, float]

    def to_dict(self) -> dict:
        return {
            "has_seasonal": self.has_seasonal,
            "seasonality_strength": self.seasonality_strength,
            "peak_quarters": list(self.peak_quarters),
            "trough_quarters": list(self.trough_quarters),
            "seasonal_factors": dict(self.seasonal_factors),
        }


@dataclass(frozen=True)
class HorizonAccuracy:
    horizon: str  # e.g. "1-year"
    mape: float


@dataclass(frozen=True)
class ForecastAccuracy:
    """Backtested forecast accuracy across a property population."""
    mape: float  # percent
    rmse: float
    reliability_score: float  # 0-1
    back_test_results: List[HorizonAccuracy] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "mape": self.mape,
            "rmse": self.rmse,
            "reliability_score": self.reliability_score,
            "back_test_results": [
                {"horizon": r.horizon, "mape": r.mape} for r in self.back_test_results
            ],
        }


# =============================================================================
# Market Structure Results
# =============================================================================


@dataclass(frozen=True)
class InfluencedProperty:
    property: Property
    distance_km: float
    influence_score: float


@dataclass(frozen=True)
class InfluenceRadiusResult:
    """Exponential-decay value influence of nearby properties."""
    property_id: PropertyId
    radius_km: float
    decay_rate: float
    influenced_properties: List[InfluencedProperty] = field(default_factory=list)
    total_influence: float = 0.0

    def to_dict(self) -> dict:
        return {
            "property_id": self.property_id,
            "radius_km": self.radius_km,
            "decay_rate": self.decay_rate,
            "influenced_properties": [
                {
                    "property_id": p.property.id,
                    "distance_km": p.distance_km,
                    "influence_score": p.influence_score,
                }
                for p in self.influenced_properties
            ],
            "total_influence": self.total_influence,
        }


@dataclass(frozen=True)
class PriceFactor:
    feature: str
    impact: float  # 0-1, share of total impact
    direction: str  # "positive" or "negative"
    coefficient: float


@dataclass(frozen=True)
class RegressionFit:
    """
    Fitted value model over a set of properties.

    Rows line up with `property_ids`: actual, predicted and residual
    (actual - predicted) values for each fitted property.
    """
    target_variable: str
    features: List[str]
    coefficients: Dict[str, float]
    intercept: float
    r_squared: float
    property_ids: List[PropertyId] = field(default_factory=list)
    actual_values: List[float] = field(default_factory=list)
    predicted_values: List[float] = field(default_factory=list)

    @property
    def residuals(self) -> List[float]:
        return [a - p for a, p in zip(self.actual_values, self.predicted_values)]


@dataclass(frozen=True)
class PriceSensitivityResult:
    factors: List[PriceFactor]
    model_fit: float  # R-squared
    elasticity: Dict[str, float] = field(default_factory=dict)
    fit: Optional[RegressionFit] = None

    def to_dict(self) -> dict:
        return {
            "factors": [
                {
                    "feature": f.feature,
                    "impact": f.impact,
                    "direction": f.direction,
                    "coefficient": f.coefficient,
                }
                for f in self.factors
            ],
            "model_fit": self.model_fit,
            "elasticity": dict(self.elasticity),
        }


@dataclass(frozen=True)
class QuarterlyValue:
    """A quarterly observation; quarter is formatted "YYYYQN" (e.g. "2021Q1")."""
    quarter: str
    value: str
