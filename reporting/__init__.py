"""
Reporting module for the analytics engine.

Chart-ready data helpers and the command-line interface.

Usage:
    from reporting import generate_histogram_data, calculate_statistics

    bins = generate_histogram_data([p.numeric_value for p in properties if p.numeric_value])
    stats = calculate_statistics(values)

CLI:
    python -m reporting.cli forecast data/properties.json P-1001
"""

from .charts import (
    HistogramBin,
    CorrelationCell,
    ResidualMapPoint,
    ScatterPoint,
    CoefficientImpact,
    SummaryStatistics,
    generate_histogram_data,
    generate_correlation_matrix,
    generate_residual_map_data,
    generate_prediction_scatter_data,
    generate_coefficient_impact_data,
    calculate_statistics,
)

__all__ = [
    # Chart data
    "HistogramBin",
    "CorrelationCell",
    "ResidualMapPoint",
    "ScatterPoint",
    "CoefficientImpact",
    "SummaryStatistics",
    "generate_histogram_data",
    "generate_correlation_matrix",
    "generate_residual_map_data",
    "generate_prediction_scatter_data",
    "generate_coefficient_impact_data",
    "calculate_statistics",
]
