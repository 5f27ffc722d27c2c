"""
Tests for Forecaster

Verifies:
- At least three points are required; unknown models are rejected
- Linear, exponential and moving-average predictions and confidence
- Uncertainty bands never narrow with the horizon; lower bounds >= 0
- Per-property forecasts across the simple / smoothing / ARIMA paths
- Neighborhood fan-out averages per-property results in order
"""

import pytest
from pathlib import Path
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.analytics import (
    Forecaster,
    ForecastModel,
    InsufficientDataError,
    Property,
    TimeSeriesPoint,
)
from core.analytics.forecasting import (
    WARNING_AVERAGE_MODEL,
    WARNING_LIMITED_HISTORY,
    WARNING_LOW_CORRELATION,
    WARNING_VARIABLE_GROWTH,
    linear_regression,
)


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def forecaster():
    return Forecaster(reference_year=2024)


def series(*pairs, interpolated=()):
    return [
        TimeSeriesPoint(year=y, value=v, interpolated=y in interpolated)
        for y, v in pairs
    ]


def widths(result):
    return [p.upper_bound - p.value for p in result.predictions]


@pytest.fixture
def noisy_series():
    return series((2016, 100.0), (2017, 120.0), (2018, 110.0), (2019, 140.0), (2020, 135.0))


# =============================================================================
# Test: Input Validation
# =============================================================================

class TestValidation:

    def test_fewer_than_three_points(self, forecaster):
        with pytest.raises(InsufficientDataError):
            forecaster.forecast(series((2019, 100.0), (2020, 110.0)))

    def test_unknown_model(self, forecaster, noisy_series):
        with pytest.raises(ValueError):
            forecaster.forecast(noisy_series, 3, "prophet")

    def test_model_name_case_insensitive(self, forecaster, noisy_series):
        result = forecaster.forecast(noisy_series, 2, "Exponential")
        assert result.model == ForecastModel.EXPONENTIAL

    def test_exactly_three_points(self, forecaster):
        result = forecaster.forecast(series((2018, 100.0), (2019, 130.0), (2020, 120.0)), years=4)

        assert len(result.predictions) == 4
        assert [p.year for p in result.predictions] == [2021, 2022, 2023, 2024]
        w = widths(result)
        assert all(later >= earlier for earlier, later in zip(w, w[1:]))

    def test_unsorted_series(self, forecaster, noisy_series):
        shuffled = list(reversed(noisy_series))
        assert forecaster.forecast(shuffled).predictions == forecaster.forecast(noisy_series).predictions


# =============================================================================
# Test: Linear Model
# =============================================================================

class TestLinear:

    def test_regression_values(self, forecaster, noisy_series):
        result = forecaster.forecast(noisy_series, 3, ForecastModel.LINEAR)

        # slope 9, intercept 103 over indices 0..4
        assert [p.value for p in result.predictions] == pytest.approx([148.0, 157.0, 166.0])
        assert result.confidence == pytest.approx(1 - 310 / 1120)
        assert result.warnings == []

    def test_bands(self, forecaster, noisy_series):
        result = forecaster.forecast(noisy_series, 3, ForecastModel.LINEAR)
        c = result.confidence

        first = result.predictions[0]
        assert first.upper_bound - first.value == pytest.approx((1 - c) * 148 * 0.2)
        assert first.lower_bound == pytest.approx(148 - (1 - c) * 148 * 0.2)

    def test_low_fit_warns(self, forecaster):
        result = forecaster.forecast(series(
            (2016, 100.0), (2017, 200.0), (2018, 90.0), (2019, 210.0), (2020, 95.0),
        ))
        assert WARNING_LOW_CORRELATION in result.warnings

    def test_interpolation_penalty(self, forecaster):
        perfect = series(
            (2016, 100.0), (2017, 110.0), (2018, 120.0), (2019, 130.0), (2020, 140.0),
            interpolated=(2017, 2019),
        )
        result = forecaster.forecast(perfect)
        assert result.confidence == pytest.approx(1 - 0.4 * 0.3)

    def test_limited_history_penalty(self, forecaster):
        result = forecaster.forecast(series((2018, 100.0), (2019, 110.0), (2020, 120.0)))

        assert result.confidence == pytest.approx(0.9)
        assert WARNING_LIMITED_HISTORY in result.warnings

    def test_negative_projection_floored_at_zero(self, forecaster):
        # Regression line crosses zero before the first forecast year
        result = forecaster.forecast(series((2018, 100.0), (2019, 60.0), (2020, 30.0)), years=3)

        assert [p.value for p in result.predictions] == [0.0, 0.0, 0.0]
        for p in result.predictions:
            assert 0 <= p.lower_bound <= p.value <= p.upper_bound
        w = widths(result)
        assert all(later >= earlier for earlier, later in zip(w, w[1:]))

    def test_band_ordered_when_crossing_zero(self, forecaster):
        # Declining series that stays positive for one year, then goes negative
        result = forecaster.forecast(series((2018, 100.0), (2019, 70.0), (2020, 40.0)), years=3, model="average")

        assert result.predictions[0].value == pytest.approx(10.0)
        assert [p.value for p in result.predictions[1:]] == [0.0, 0.0]
        for p in result.predictions:
            assert 0 <= p.lower_bound <= p.value <= p.upper_bound

    def test_constant_x_regression(self):
        assert linear_regression([1, 1, 1], [2, 4, 6]) == (0.0, 4.0)


# =============================================================================
# Test: Exponential Model
# =============================================================================

class TestExponential:

    def test_compound_growth(self, forecaster):
        result = forecaster.forecast(series((2018, 100.0), (2019, 110.0), (2020, 121.0)), 2, "exponential")

        assert [p.value for p in result.predictions] == pytest.approx([133.1, 146.41])
        # 0.9 with no growth variance, minus the short-history penalty
        assert result.confidence == pytest.approx(0.8)

    def test_variable_growth_warns(self, forecaster):
        result = forecaster.forecast(
            series((2016, 100.0), (2017, 150.0), (2018, 120.0), (2019, 200.0), (2020, 210.0)),
            model="exponential",
        )
        assert WARNING_VARIABLE_GROWTH in result.warnings

    def test_uncomputable_growth(self, forecaster):
        with pytest.raises(InsufficientDataError, match="exponential forecast"):
            forecaster.forecast(series((2018, 0.0), (2019, 10.0), (2020, 20.0)), model="exponential")


# =============================================================================
# Test: Moving Average Model
# =============================================================================

class TestAverage:

    def test_recent_average_change(self, forecaster):
        result = forecaster.forecast(
            series((2017, 100.0), (2018, 110.0), (2019, 130.0), (2020, 160.0)), 2, "average",
        )

        assert [p.value for p in result.predictions] == pytest.approx([185.0, 210.0])
        assert result.confidence == pytest.approx(0.6)
        assert WARNING_AVERAGE_MODEL in result.warnings
        assert WARNING_LIMITED_HISTORY in result.warnings

    def test_always_warns(self, forecaster, noisy_series):
        result = forecaster.forecast(noisy_series, model="average")
        assert result.warnings == [WARNING_AVERAGE_MODEL]

    def test_to_dict(self, forecaster, noisy_series):
        data = forecaster.forecast(noisy_series, model="average").to_dict()
        assert data["model"] == "average"
        assert len(data["predictions"]) == 3


# =============================================================================
# Test: Per-Property Forecast
# =============================================================================

class TestValueForecast:

    def test_no_history_simple_trend(self, forecaster):
        result = forecaster.generate_value_forecast(Property(id="P-1", value="300000"), 2)

        assert result.forecast_method == "Simple Trend"
        assert result.confidence_level == 0.3
        assert result.avg_annual_growth_rate == 0.03
        first = result.forecasted_values[0]
        assert first.year == 2025
        assert first.value == pytest.approx(309000)
        assert first.upper_bound - first.value == pytest.approx(30900)

    def test_single_history_point_simple_trend(self, forecaster):
        prop = Property(id="P-1", value="300000", value_history={"2022": "280000"})
        assert forecaster.generate_value_forecast(prop).forecast_method == "Simple Trend"

    def test_two_points_use_historic_growth(self, forecaster):
        prop = Property(id="P-1", value_history={"2022": "100000", "2023": "110000"})
        result = forecaster.generate_value_forecast(prop, 1)

        assert result.forecast_method == "Simple Trend"
        assert result.confidence_level == 0.4
        assert result.avg_annual_growth_rate == pytest.approx(0.1)
        assert result.base_value == 110000

    def test_current_value_appended(self, forecaster):
        prop = Property(id="P-1", value="121000", value_history={"2022": "100000", "2023": "110000"})
        result = forecaster.generate_value_forecast(prop, 2)

        assert result.forecast_method == "Exponential Smoothing"
        assert result.base_value == 121000
        assert [p.year for p in result.forecasted_values] == [2025, 2026]

    def test_steady_growth_arima(self, forecaster):
        history = {str(2019 + i): str(100000 * 1.05 ** i) for i in range(5)}
        prop = Property(id="P-1", value=str(100000 * 1.05 ** 5), value_history=history)

        result = forecaster.generate_value_forecast(prop, 3)

        assert result.forecast_method == "ARIMA"
        assert result.avg_annual_growth_rate == pytest.approx(0.05)
        # No variance; six of ten points of history
        assert result.confidence_level == pytest.approx(0.5 + 0.5 * 0.6)
        assert result.forecasted_values[0].value == pytest.approx(100000 * 1.05 ** 6)

    def test_reference_year_not_duplicated(self, forecaster):
        prop = Property(
            id="P-1",
            value="999999",
            value_history={"2022": "100000", "2023": "105000", "2024": "110000"},
        )
        result = forecaster.generate_value_forecast(prop, 1)
        assert result.base_value == 110000

    def test_bands_widen(self, forecaster):
        history = {"2019": "100000", "2020": "112000", "2021": "109000", "2022": "125000", "2023": "131000"}
        result = forecaster.generate_value_forecast(Property(id="P-1", value_history=history), 4)

        w = [p.upper_bound - p.value for p in result.forecasted_values]
        assert all(later >= earlier for earlier, later in zip(w, w[1:]))
        assert all(p.lower_bound >= 0 for p in result.forecasted_values)

    def test_negative_base_keeps_band_ordered(self, forecaster):
        result = forecaster.generate_value_forecast(Property(id="P-1", value="-50000"), 2)

        for p in result.forecasted_values:
            assert p.value == 0.0
            assert p.lower_bound <= p.value <= p.upper_bound

    def test_no_value_anywhere(self, forecaster):
        result = forecaster.generate_value_forecast(Property(id="P-1"), 2)
        assert result.base_value == 0
        assert all(p.value == 0 for p in result.forecasted_values)


# =============================================================================
# Test: Neighborhood Forecast
# =============================================================================

class TestNeighborhoodForecast:

    @pytest.fixture
    def properties(self):
        return [
            Property(id="A", value="200000", neighborhood="Downtown",
                     value_history={"2021": "180000", "2022": "190000", "2023": "195000"}),
            Property(id="B", value="300000", neighborhood="Downtown",
                     value_history={"2020": "250000", "2021": "265000", "2022": "280000", "2023": "290000"}),
            Property(id="C", value="400000", neighborhood="Uptown",
                     value_history={"2021": "380000", "2022": "390000"}),
            Property(id="D", value="500000", neighborhood="Downtown"),
        ]

    def test_averages_members(self, forecaster, properties):
        result = forecaster.neighborhood_forecast("Downtown", properties, 2)

        a = forecaster.generate_value_forecast(properties[0], 2)
        b = forecaster.generate_value_forecast(properties[1], 2)

        assert result.property_count == 2
        assert result.avg_base_value == pytest.approx(250000)
        assert [p.year for p in result.forecasted_values] == [2025, 2026]
        assert result.forecasted_values[1].avg_value == pytest.approx(
            (a.forecasted_values[1].value + b.forecasted_values[1].value) / 2
        )
        assert result.confidence_level == pytest.approx((a.confidence_level + b.confidence_level) / 2)

    def test_deterministic_with_workers(self, properties):
        single = Forecaster(reference_year=2024, max_workers=1).neighborhood_forecast("Downtown", properties)
        pooled = Forecaster(reference_year=2024, max_workers=4).neighborhood_forecast("Downtown", properties)
        assert single == pooled

    def test_empty_neighborhood(self, forecaster, properties):
        result = forecaster.neighborhood_forecast("Nowhere", properties, 3)

        assert result.property_count == 0
        assert result.confidence_level == 0
        assert [p.avg_value for p in result.forecasted_values] == [0.0, 0.0, 0.0]
        assert [p.year for p in result.forecasted_values] == [2025, 2026, 2027]
