"""
Numeric helpers shared by the forecasting, similarity and chart code.

Thin numpy wrappers that guard the degenerate cases (empty input,
constant series) so callers never see NaN.
"""

from typing import Optional, Sequence, Tuple

import numpy as np


def linear_regression(x: Sequence[float], y: Sequence[float]) -> Tuple[float, float]:
    """
    Ordinary least squares fit y = slope * x + intercept.

    Zero variance in x gives slope 0 and the mean of y as intercept.
    """
    xs = np.asarray(x, dtype=float)
    ys = np.asarray(y, dtype=float)
    if xs.size == 0 or xs.shape != ys.shape:
        raise ValueError("Input sequences must have the same length and not be empty")

    if np.ptp(xs) == 0:
        return 0.0, float(ys.mean())

    slope, intercept = np.polyfit(xs, ys, 1)
    return float(slope), float(intercept)


def r_squared(x: Sequence[float], y: Sequence[float], slope: float, intercept: float) -> float:
    """Coefficient of determination; a constant series is a perfect fit."""
    xs = np.asarray(x, dtype=float)
    ys = np.asarray(y, dtype=float)

    tss = float(np.sum((ys - ys.mean()) ** 2))
    if tss == 0:
        return 1.0
    rss = float(np.sum((ys - np.polyval([slope, intercept], xs)) ** 2))
    return 1 - rss / tss


def pearson(x: Sequence[float], y: Sequence[float]) -> Optional[float]:
    """Pearson correlation, or None when undefined (mismatched, < 2 points, constant input)."""
    xs = np.asarray(x, dtype=float)
    ys = np.asarray(y, dtype=float)
    if xs.size < 2 or xs.shape != ys.shape:
        return None
    if np.ptp(xs) == 0 or np.ptp(ys) == 0:
        return None
    return float(np.corrcoef(xs, ys)[0, 1])
