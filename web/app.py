"""
FastAPI application exposing the property analytics engine.

Production deployment configuration via environment variables.
"""

import logging
import os
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from core.analytics import (
    ComparableSelector,
    Forecaster,
    InsufficientDataError,
    TrendAnalyzer,
    ValuationAnalyzer,
    detect_seasonal_patterns,
    get_forecast_accuracy,
)
from reporting.charts import calculate_statistics, generate_histogram_data
from utils.config import Config
from web.schemas import (
    AccuracyRequest,
    ComparablesRequest,
    ComparableValuationRequest,
    ForecastRequest,
    HistogramRequest,
    NeighborhoodForecastRequest,
    PropertyForecastRequest,
    SeasonalityRequest,
    TrendRequest,
    ValuationRequest,
)


logger = logging.getLogger(__name__)

# =============================================================================
# Environment Configuration
# =============================================================================

IS_PRODUCTION = os.getenv("PRODUCTION", "").lower() == "true"

ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "").split(",") if os.getenv("ALLOWED_ORIGINS") else []
if not ALLOWED_ORIGINS and not IS_PRODUCTION:
    # Development fallback only
    ALLOWED_ORIGINS = ["http://localhost:8000", "http://127.0.0.1:8000"]

VERSION = "1.0.0"


def insufficient_data(e: InsufficientDataError) -> HTTPException:
    logger.info("Rejected request: %s", e)
    return HTTPException(status_code=422, detail=str(e))


def create_app(config: Optional[Config] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    config = config or Config.load()

    app = FastAPI(
        title="Property Analytics",
        description="Comparables, valuation gaps, value trends and forecasts",
        version=VERSION,
        docs_url=None if IS_PRODUCTION else "/docs",
        redoc_url=None if IS_PRODUCTION else "/redoc",
        openapi_url=None if IS_PRODUCTION else "/openapi.json",
        debug=config.debug and not IS_PRODUCTION,
    )

    @app.get("/health", include_in_schema=False)
    def health():
        """Health endpoint. No dependencies, no IO."""
        return {"status": "healthy", "version": VERSION}

    if ALLOWED_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=ALLOWED_ORIGINS,
            allow_credentials=True,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    selector = ComparableSelector()
    max_workers = config.batch_workers or None

    # ==========================================================================
    # Comparables & Valuation
    # ==========================================================================

    @app.post("/api/comparables")
    def comparables(request: ComparablesRequest):
        """Rank comparables for a subject property."""
        subject = request.subject.to_property()
        candidates = [c.to_property() for c in request.candidates]
        filters = request.filters.to_filters() if request.filters else None
        limit = request.max_results if request.max_results is not None else config.max_comparables

        results = selector.find(subject, candidates, filters, max_results=limit)
        return {"comparables": [r.to_dict() for r in results]}

    @app.post("/api/valuation")
    def valuation(request: ValuationRequest):
        """Neighborhood-baseline valuation gap."""
        analyzer = ValuationAnalyzer(selector, reference_year=request.reference_year)
        filters = request.filters.to_filters() if request.filters else None

        result = analyzer.analyze_property_value(
            request.subject.to_property(),
            [p.to_property() for p in request.properties],
            filters,
        )
        return result.to_dict()

    @app.post("/api/valuation/comparable")
    def comparable_valuation(request: ComparableValuationRequest):
        """Comparable-average valuation with percentile and confidence."""
        analyzer = ValuationAnalyzer(selector, reference_year=request.reference_year)
        limit = request.max_comparables if request.max_comparables is not None else config.max_comparables

        result = analyzer.analyze_comparable_value(
            request.subject.to_property(),
            [p.to_property() for p in request.properties],
            limit,
        )
        return result.to_dict()

    # ==========================================================================
    # Trends & Forecasts
    # ==========================================================================

    @app.post("/api/trend")
    def trend(request: TrendRequest):
        """Time series and growth trend for one property."""
        analyzer = TrendAnalyzer(reference_year=request.reference_year)
        series = analyzer.to_time_series(request.property.to_property())
        if request.fill_gaps:
            series = analyzer.fill_gaps(series)

        try:
            result = analyzer.analyze_trend(series)
        except InsufficientDataError as e:
            raise insufficient_data(e)

        return {
            "series": [p.to_dict() for p in series],
            "trend": result.to_dict(),
        }

    @app.post("/api/forecast")
    def forecast(request: ForecastRequest):
        """Model-based forecast of a prepared time series."""
        forecaster = Forecaster()
        years = request.years or config.forecast_years
        model = request.model or config.forecast_model

        try:
            result = forecaster.forecast([p.to_point() for p in request.series], years, model)
        except InsufficientDataError as e:
            raise insufficient_data(e)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))

        return result.to_dict()

    @app.post("/api/forecast/property")
    def property_forecast(request: PropertyForecastRequest):
        """History-driven forecast for one property."""
        forecaster = Forecaster(
            reference_year=request.reference_year,
            default_growth_rate=config.default_growth_rate,
        )
        result = forecaster.generate_value_forecast(
            request.property.to_property(),
            request.years or config.forecast_years,
        )
        return result.to_dict()

    @app.post("/api/forecast/neighborhood")
    def neighborhood_forecast(request: NeighborhoodForecastRequest):
        """Average forecast across a neighborhood."""
        forecaster = Forecaster(
            reference_year=request.reference_year,
            max_workers=max_workers,
            default_growth_rate=config.default_growth_rate,
        )
        result = forecaster.neighborhood_forecast(
            request.neighborhood,
            [p.to_property() for p in request.properties],
            request.years or config.forecast_years,
        )
        return result.to_dict()

    @app.post("/api/forecast/accuracy")
    def forecast_accuracy(request: AccuracyRequest):
        """Backtested forecast accuracy."""
        result = get_forecast_accuracy([p.to_property() for p in request.properties])
        return result.to_dict()

    @app.post("/api/seasonality")
    def seasonality(request: SeasonalityRequest):
        """Quarterly seasonal pattern detection."""
        result = detect_seasonal_patterns([q.to_quarterly_value() for q in request.quarterly_values])
        return result.to_dict()

    # ==========================================================================
    # Chart Data
    # ==========================================================================

    @app.post("/api/charts/histogram")
    def histogram(request: HistogramRequest):
        """Histogram bins and summary statistics for a list of values."""
        return {
            "bins": [b.to_dict() for b in generate_histogram_data(request.values, request.num_bins)],
            "statistics": calculate_statistics(request.values).to_dict(),
        }

    return app


# Create app instance for uvicorn
app = create_app()
