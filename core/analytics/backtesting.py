"""
Forecast backtesting.

Replays generate_value_forecast() on truncated value histories and scores
the predictions against the values that were actually recorded later.
"""

import logging
import math
from dataclasses import replace
from statistics import mean
from typing import List

from .forecasting import Forecaster
from .models import ForecastAccuracy, HorizonAccuracy, Property
from .trends import history_points


logger = logging.getLogger(__name__)


MIN_BACKTEST_YEARS = 4
BACKTEST_HORIZONS = (1, 2)

# MAPE at which reliability reaches zero
RELIABILITY_MAPE_CEILING = 0.2


def get_forecast_accuracy(properties: List[Property]) -> ForecastAccuracy:
    """
    Backtest per-property forecasts at 1- and 2-year horizons.

    For each horizon, history is cut so the last `horizon` years are held
    out, the property is forecast from the cut-off year and the prediction
    is compared with the recorded value at cut-off + horizon (when it is
    positive).

    Returns:
        ForecastAccuracy with overall MAPE (%), RMSE, a 0-1 reliability
        score and per-horizon MAPE; all zeros when nothing qualifies
    """
    eligible = [
        (prop, history_points(prop.value_history)) for prop in properties
    ]
    eligible = [(prop, points) for prop, points in eligible if len(points) >= MIN_BACKTEST_YEARS]

    if not eligible:
        return ForecastAccuracy(mape=0.0, rmse=0.0, reliability_score=0.0, back_test_results=[])

    all_errors: List[float] = []
    all_squared: List[float] = []
    results: List[HorizonAccuracy] = []

    for horizon in BACKTEST_HORIZONS:
        horizon_errors = []
        for prop, points in eligible:
            history = dict(points)
            cutoff_year = points[-1 - horizon][0]
            actual = history.get(cutoff_year + horizon)
            if actual is None or actual <= 0:
                continue

            truncated = replace(
                prop,
                value=str(history[cutoff_year]),
                value_history={str(year): str(value) for year, value in points if year <= cutoff_year},
            )

            forecast = Forecaster(reference_year=cutoff_year).generate_value_forecast(truncated, horizon)
            predicted = forecast.forecasted_values[horizon - 1].value

            error = abs((predicted - actual) / actual)
            horizon_errors.append(error)
            all_errors.append(error)
            all_squared.append((predicted - actual) ** 2)

        if horizon_errors:
            results.append(HorizonAccuracy(horizon=f"{horizon}-year", mape=mean(horizon_errors) * 100))

    mape = mean(all_errors) * 100 if all_errors else 0.0
    rmse = math.sqrt(mean(all_squared)) if all_squared else 0.0
    reliability = max(0.0, min(1.0, 1 - (mape / 100) / RELIABILITY_MAPE_CEILING))

    logger.debug("Backtested %d properties, MAPE %.2f%%", len(eligible), mape)

    return ForecastAccuracy(
        mape=mape,
        rmse=rmse,
        reliability_score=reliability,
        back_test_results=results,
    )
