"""
Price sensitivity analysis.

Multiple linear regression of property value on physical features,
reported as normalized standardized-coefficient impacts and elasticities.
"""

import logging
from typing import Dict, List

import numpy as np

from .models import PriceFactor, PriceSensitivityResult, Property, RegressionFit


logger = logging.getLogger(__name__)


MIN_SAMPLES = 5

# A feature must be positive on at least this many properties to enter the model
MIN_FEATURE_OBSERVATIONS = 5

SENSITIVITY_FEATURES = ("square_feet", "year_built", "bedrooms", "bathrooms", "lot_size")

TARGET_VARIABLE = "value"


def _empty_result() -> PriceSensitivityResult:
    return PriceSensitivityResult(factors=[], model_fit=0.0)


def analyze_price_sensitivity(properties: List[Property]) -> PriceSensitivityResult:
    """
    Fit value ~ features by ordinary least squares.

    Only properties with a parseable value and square footage are used;
    other missing features count as 0 and a feature enters the model only
    when enough properties have it.

    Returns:
        PriceSensitivityResult with factors sorted by impact descending,
        R-squared clamped to [0, 1], and the underlying RegressionFit.
        Too little data gives an empty result with model_fit 0.
    """
    rows = [p for p in properties if p.numeric_value is not None and p.square_feet]
    if len(rows) < MIN_SAMPLES:
        logger.debug("Price sensitivity needs %d samples, got %d", MIN_SAMPLES, len(rows))
        return _empty_result()

    y = np.array([p.numeric_value for p in rows], dtype=float)
    columns: Dict[str, np.ndarray] = {
        name: np.array([getattr(p, name) or 0 for p in rows], dtype=float)
        for name in SENSITIVITY_FEATURES
    }
    features = [
        name for name, column in columns.items()
        if np.count_nonzero(column > 0) >= MIN_FEATURE_OBSERVATIONS
    ]
    if not features:
        return _empty_result()

    X = np.column_stack([np.ones(len(rows))] + [columns[name] for name in features])
    beta, _, _, _ = np.linalg.lstsq(X, y, rcond=None)

    intercept = float(beta[0])
    coefficients = {name: float(b) for name, b in zip(features, beta[1:])}
    predicted = X @ beta

    total_ss = float(np.sum((y - y.mean()) ** 2))
    residual_ss = float(np.sum((y - predicted) ** 2))
    r_squared = 1 - residual_ss / total_ss if total_ss > 0 else 0.0
    r_squared = max(0.0, min(1.0, r_squared))

    y_std = float(np.std(y))
    y_mean = float(y.mean())

    impacts = {}
    elasticity = {}
    for name in features:
        column = columns[name]
        x_std = float(np.std(column))
        impacts[name] = abs(coefficients[name] * x_std / y_std) if y_std > 0 else 0.0

        positive = column[column > 0]
        x_mean = float(positive.mean()) if positive.size else 0.0
        elasticity[name] = coefficients[name] * x_mean / y_mean if x_mean > 0 and y_mean != 0 else 0.0

    total_impact = sum(impacts.values())
    if total_impact > 0:
        impacts = {name: impact / total_impact for name, impact in impacts.items()}

    factors = [
        PriceFactor(
            feature=name,
            impact=impacts[name],
            direction="positive" if coefficients[name] >= 0 else "negative",
            coefficient=coefficients[name],
        )
        for name in features
    ]
    factors.sort(key=lambda f: f.impact, reverse=True)

    fit = RegressionFit(
        target_variable=TARGET_VARIABLE,
        features=features,
        coefficients=coefficients,
        intercept=intercept,
        r_squared=r_squared,
        property_ids=[p.id for p in rows],
        actual_values=[float(v) for v in y],
        predicted_values=[float(v) for v in predicted],
    )

    return PriceSensitivityResult(
        factors=factors,
        model_fit=r_squared,
        elasticity=elasticity,
        fit=fit,
    )
