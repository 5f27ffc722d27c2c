#!/usr/bin/env python3
"""
CLI for running property analytics over a JSON property file.

Usage:
    python -m reporting.cli comparables <properties_json> <subject_id>
    python -m reporting.cli valuation <properties_json> <subject_id>
    python -m reporting.cli trend <properties_json> <subject_id>
    python -m reporting.cli forecast <properties_json> <subject_id>
    python -m reporting.cli accuracy <properties_json>

The input file holds a JSON list of property objects (or an object with a
"properties" list). Results are printed as JSON.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List

from core.analytics import (
    ComparableSelector,
    Forecaster,
    InsufficientDataError,
    Property,
    TrendAnalyzer,
    ValuationAnalyzer,
    get_forecast_accuracy,
)
from utils.config import Config
from utils.formatting import format_currency, format_percent


logger = logging.getLogger(__name__)


class CLIError(Exception):
    """Input problem reported to the user with exit status 1."""
    pass


def load_properties(path: str) -> List[Property]:
    """
    Load properties from a JSON file.

    Raises:
        CLIError: missing file, invalid JSON or malformed records
    """
    input_path = Path(path)
    if not input_path.exists():
        raise CLIError(f"File not found: {input_path}")

    try:
        with open(input_path, "r") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise CLIError(f"Invalid JSON: {e}") from e

    if isinstance(data, dict):
        data = data.get("properties", [])
    if not isinstance(data, list):
        raise CLIError("Expected a list of properties")

    if not all(isinstance(item, dict) for item in data):
        raise CLIError("Invalid property data: each property must be a JSON object")

    try:
        return [Property.from_dict(item) for item in data]
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise CLIError(f"Invalid property data: {e}") from e


def find_subject(properties: List[Property], subject_id: str) -> Property:
    for prop in properties:
        if str(prop.id) == subject_id:
            return prop
    raise CLIError(f"Property not found: {subject_id}")


def emit(payload, summary: str = "") -> None:
    print(json.dumps(payload, indent=2))
    if summary:
        print(summary, file=sys.stderr)


def cmd_comparables(args, config: Config) -> int:
    properties = load_properties(args.properties_file)
    subject = find_subject(properties, args.subject_id)

    limit = args.limit if args.limit is not None else config.max_comparables
    results = ComparableSelector().find(subject, properties, max_results=limit)

    emit(
        [r.to_dict() for r in results],
        f"{len(results)} comparables for {subject.id}",
    )
    return 0


def cmd_valuation(args, config: Config) -> int:
    properties = load_properties(args.properties_file)
    subject = find_subject(properties, args.subject_id)

    analyzer = ValuationAnalyzer(reference_year=args.reference_year)
    if args.method == "comparable":
        analysis = analyzer.analyze_comparable_value(subject, properties, config.max_comparables)
        summary = f"Estimated value {format_currency(analysis.estimated_value)}"
    else:
        analysis = analyzer.analyze_property_value(subject, properties)
        summary = (
            f"{analysis.valuation_status.value}: "
            f"{format_percent(analysis.percentage_difference)} vs baseline"
        )

    emit(analysis.to_dict(), summary)
    return 0


def cmd_trend(args, config: Config) -> int:
    properties = load_properties(args.properties_file)
    subject = find_subject(properties, args.subject_id)

    analyzer = TrendAnalyzer(reference_year=args.reference_year)
    series = analyzer.fill_gaps(analyzer.to_time_series(subject))
    trend = analyzer.analyze_trend(series)

    emit(
        {
            "series": [p.to_dict() for p in series],
            "trend": trend.to_dict(),
        },
        f"{trend.direction.value} at {format_percent(trend.growth_rate * 100, 2)} a year",
    )
    return 0


def cmd_forecast(args, config: Config) -> int:
    properties = load_properties(args.properties_file)
    subject = find_subject(properties, args.subject_id)

    years = args.years if args.years is not None else config.forecast_years
    trends = TrendAnalyzer(reference_year=args.reference_year)
    forecaster = Forecaster(
        reference_year=args.reference_year,
        trend_analyzer=trends,
        default_growth_rate=config.default_growth_rate,
    )

    if args.model == "property":
        result = forecaster.generate_value_forecast(subject, years)
    else:
        series = trends.fill_gaps(trends.to_time_series(subject))
        result = forecaster.forecast(series, years, args.model or config.forecast_model)

    emit(result.to_dict())
    return 0


def cmd_accuracy(args, config: Config) -> int:
    properties = load_properties(args.properties_file)
    accuracy = get_forecast_accuracy(properties)

    emit(
        accuracy.to_dict(),
        f"MAPE {format_percent(accuracy.mape, 2)}, reliability {accuracy.reliability_score:.2f}",
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Property Analytics - comparables, valuation, trends and forecasts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m reporting.cli comparables data/properties.json P-1001 --limit 3
    python -m reporting.cli valuation data/properties.json P-1001 --method comparable
    python -m reporting.cli forecast data/properties.json P-1001 --model exponential --years 5
    python -m reporting.cli accuracy data/properties.json
        """,
    )
    parser.add_argument(
        "--reference-year",
        type=int,
        default=None,
        help="Year treated as current (default: this year)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # Comparables command
    comp_parser = subparsers.add_parser("comparables", help="Rank comparable properties")
    comp_parser.add_argument("properties_file", help="Path to JSON property file")
    comp_parser.add_argument("subject_id", help="Subject property id")
    comp_parser.add_argument("--limit", type=int, default=None, help="Maximum comparables")
    comp_parser.set_defaults(func=cmd_comparables)

    # Valuation command
    val_parser = subparsers.add_parser("valuation", help="Valuation-gap analysis")
    val_parser.add_argument("properties_file", help="Path to JSON property file")
    val_parser.add_argument("subject_id", help="Subject property id")
    val_parser.add_argument(
        "--method",
        choices=["neighborhood", "comparable"],
        default="neighborhood",
        help="Baseline method (default: neighborhood)",
    )
    val_parser.set_defaults(func=cmd_valuation)

    # Trend command
    trend_parser = subparsers.add_parser("trend", help="Value trend from history")
    trend_parser.add_argument("properties_file", help="Path to JSON property file")
    trend_parser.add_argument("subject_id", help="Subject property id")
    trend_parser.set_defaults(func=cmd_trend)

    # Forecast command
    fc_parser = subparsers.add_parser("forecast", help="Forecast future values")
    fc_parser.add_argument("properties_file", help="Path to JSON property file")
    fc_parser.add_argument("subject_id", help="Subject property id")
    fc_parser.add_argument("--years", type=int, default=None, help="Forecast horizon in years")
    fc_parser.add_argument(
        "--model",
        choices=["linear", "exponential", "average", "property"],
        default=None,
        help="Forecast model; 'property' uses the history-driven forecast",
    )
    fc_parser.set_defaults(func=cmd_forecast)

    # Accuracy command
    acc_parser = subparsers.add_parser("accuracy", help="Backtest forecast accuracy")
    acc_parser.add_argument("properties_file", help="Path to JSON property file")
    acc_parser.set_defaults(func=cmd_accuracy)

    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    config = Config.load()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(levelname)s %(name)s: %(message)s",
    )

    args = build_parser().parse_args(argv)

    try:
        return args.func(args, config)
    except (CLIError, ValueError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
