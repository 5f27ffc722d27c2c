"""
Tests for the analytics HTTP API

Verifies:
- Each endpoint returns the serialized analysis
- Insufficient data maps to 422 with the error message
- Invalid request bodies are rejected by validation
"""

import pytest
from pathlib import Path
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from fastapi.testclient import TestClient

from utils.config import Config
from web.app import create_app


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def client():
    return TestClient(create_app(Config(max_comparables=2, forecast_years=3, forecast_model="linear")))


@pytest.fixture
def subject():
    return {
        "id": "S-1",
        "value": "600000",
        "square_feet": 2000,
        "bedrooms": 3,
        "year_built": 2000,
        "neighborhood": "Downtown",
        "property_type": "single_family",
        "latitude": 40.0,
        "longitude": -75.0,
    }


@pytest.fixture
def peers():
    return [
        {"id": "P-1", "value": "500000", "square_feet": 2000, "bedrooms": 3, "year_built": 2000,
         "neighborhood": "Downtown", "property_type": "single_family", "latitude": 40.001, "longitude": -75.0},
        {"id": "P-2", "value": 480000, "square_feet": 1900, "bedrooms": 3, "year_built": 1998,
         "neighborhood": "Downtown", "property_type": "single_family", "latitude": 40.002, "longitude": -75.0},
        {"id": "P-3", "value": "520000", "square_feet": 2100, "bedrooms": 4, "year_built": 2003,
         "neighborhood": "Downtown", "property_type": "single_family", "latitude": 40.2, "longitude": -75.0},
    ]


# =============================================================================
# Test: Health
# =============================================================================

def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


# =============================================================================
# Test: Comparables & Valuation
# =============================================================================

class TestComparablesEndpoints:

    def test_comparables_use_configured_limit(self, client, subject, peers):
        response = client.post("/api/comparables", json={"subject": subject, "candidates": peers})

        assert response.status_code == 200
        comparables = response.json()["comparables"]
        assert len(comparables) == 2
        scores = [c["similarity_score"] for c in comparables]
        assert scores == sorted(scores, reverse=True)

    def test_comparables_with_filters(self, client, subject, peers):
        response = client.post("/api/comparables", json={
            "subject": subject,
            "candidates": peers,
            "filters": {"max_distance_km": 1, "weights": {"location": 0.5}},
            "max_results": 5,
        })

        ids = [c["property"]["id"] for c in response.json()["comparables"]]
        assert sorted(ids) == ["P-1", "P-2"]

    def test_valuation(self, client, subject, peers):
        response = client.post("/api/valuation", json={"subject": subject, "properties": peers})

        assert response.status_code == 200
        assert response.json()["valuation_status"] == "overvalued"

    def test_comparable_valuation(self, client, subject, peers):
        response = client.post("/api/valuation/comparable", json={
            "subject": subject,
            "properties": peers,
            "reference_year": 2024,
        })

        data = response.json()
        assert response.status_code == 200
        assert data["property_age"] == 24
        assert len(data["comparable_properties"]) == 2

    def test_missing_subject_rejected(self, client, peers):
        response = client.post("/api/valuation", json={"properties": peers})
        assert response.status_code == 422


# =============================================================================
# Test: Trends & Forecasts
# =============================================================================

class TestForecastEndpoints:

    def test_trend(self, client):
        response = client.post("/api/trend", json={
            "property": {"id": "P-1", "value_history": {"2010": "100000", "2012": "121000"}},
        })

        data = response.json()
        assert response.status_code == 200
        assert [p["year"] for p in data["series"]] == [2010, 2011, 2012]
        assert data["trend"]["direction"] == "up"

    def test_trend_insufficient_data(self, client):
        response = client.post("/api/trend", json={"property": {"id": "P-1"}})

        assert response.status_code == 422
        assert "Insufficient data points" in response.json()["detail"]

    def test_forecast_defaults(self, client):
        response = client.post("/api/forecast", json={
            "series": [{"year": 2018, "value": 100}, {"year": 2019, "value": 110}, {"year": 2020, "value": 120}],
        })

        data = response.json()
        assert response.status_code == 200
        assert data["model"] == "linear"
        assert len(data["predictions"]) == 3

    def test_forecast_too_short(self, client):
        response = client.post("/api/forecast", json={"series": [{"year": 2020, "value": 100}]})

        assert response.status_code == 422
        assert "at least 3" in response.json()["detail"]

    def test_forecast_unknown_model(self, client):
        response = client.post("/api/forecast", json={
            "series": [{"year": 2018, "value": 100}, {"year": 2019, "value": 110}, {"year": 2020, "value": 120}],
            "model": "prophet",
        })
        assert response.status_code == 422

    def test_property_forecast(self, client):
        response = client.post("/api/forecast/property", json={
            "property": {"id": "P-1", "value": "300000"},
            "years": 2,
            "reference_year": 2024,
        })

        data = response.json()
        assert data["forecast_method"] == "Simple Trend"
        assert [p["year"] for p in data["forecasted_values"]] == [2025, 2026]

    def test_neighborhood_forecast(self, client):
        response = client.post("/api/forecast/neighborhood", json={
            "neighborhood": "Downtown",
            "properties": [
                {"id": "A", "value": "200000", "neighborhood": "Downtown",
                 "value_history": {"2021": "180000", "2022": "190000", "2023": "195000"}},
            ],
            "reference_year": 2024,
        })

        data = response.json()
        assert data["property_count"] == 1
        assert len(data["forecasted_values"]) == 3

    def test_accuracy(self, client):
        response = client.post("/api/forecast/accuracy", json={"properties": []})

        assert response.status_code == 200
        assert response.json()["back_test_results"] == []

    def test_seasonality(self, client):
        values = [
            {"quarter": f"{year}Q{q}", "value": v}
            for year in (2021, 2022)
            for q, v in ((1, "100"), (2, "120"), (3, "100"), (4, "80"))
        ]
        response = client.post("/api/seasonality", json={"quarterly_values": values})

        data = response.json()
        assert data["has_seasonal"] is True
        assert data["peak_quarters"] == ["Q2"]


# =============================================================================
# Test: Chart Data
# =============================================================================

class TestChartEndpoints:

    def test_histogram(self, client):
        response = client.post("/api/charts/histogram", json={"values": [1, 2, 3, 4, 5], "num_bins": 4})

        data = response.json()
        assert [b["count"] for b in data["bins"]] == [1, 1, 1, 2]
        assert data["statistics"]["count"] == 5

    def test_histogram_rejects_zero_bins(self, client):
        response = client.post("/api/charts/histogram", json={"values": [1], "num_bins": 0})
        assert response.status_code == 422
