"""
Tests for the analytics CLI

Verifies:
- Each subcommand prints JSON results for the subject property
- Missing files, bad JSON and unknown ids exit with status 1
"""

import json

import pytest
from pathlib import Path
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from reporting.cli import CLIError, build_parser, load_properties, main


# =============================================================================
# Test Fixtures
# =============================================================================

PROPERTIES = [
    {
        "id": "P-1001",
        "value": "600000",
        "squareFeet": 2000,
        "bedrooms": 3,
        "yearBuilt": 2000,
        "neighborhood": "Downtown",
        "propertyType": "single_family",
        "latitude": 40.0,
        "longitude": -75.0,
        "valueHistory": {"2020": "500000", "2021": "525000", "2022": "551250", "2023": "578812.5"},
    },
    {
        "id": "P-1002",
        "value": "500000",
        "squareFeet": 2000,
        "bedrooms": 3,
        "yearBuilt": 2001,
        "neighborhood": "Downtown",
        "propertyType": "single_family",
        "latitude": 40.001,
        "longitude": -75.0,
    },
    {
        "id": 1003,
        "value": "480000",
        "squareFeet": 1900,
        "bedrooms": 3,
        "yearBuilt": 1998,
        "neighborhood": "Downtown",
        "propertyType": "single_family",
        "latitude": 40.002,
        "longitude": -75.0,
    },
]


@pytest.fixture
def properties_file(tmp_path):
    path = tmp_path / "properties.json"
    path.write_text(json.dumps(PROPERTIES))
    return str(path)


def run(capsys, *argv):
    code = main(["--reference-year", "2024", *argv])
    captured = capsys.readouterr()
    return code, captured.out, captured.err


# =============================================================================
# Test: Loading
# =============================================================================

class TestLoadProperties:

    def test_list(self, properties_file):
        properties = load_properties(properties_file)
        assert [str(p.id) for p in properties] == ["P-1001", "P-1002", "1003"]

    def test_wrapped_object(self, tmp_path):
        path = tmp_path / "wrapped.json"
        path.write_text(json.dumps({"properties": PROPERTIES[:1]}))
        assert len(load_properties(str(path))) == 1

    def test_missing_file(self, tmp_path):
        with pytest.raises(CLIError, match="File not found"):
            load_properties(str(tmp_path / "nope.json"))

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(CLIError, match="Invalid JSON"):
            load_properties(str(path))

    def test_not_a_list(self, tmp_path):
        path = tmp_path / "scalar.json"
        path.write_text("42")
        with pytest.raises(CLIError):
            load_properties(str(path))


# =============================================================================
# Test: Commands
# =============================================================================

class TestCommands:

    def test_comparables(self, capsys, properties_file):
        code, out, err = run(capsys, "comparables", properties_file, "P-1001", "--limit", "1")

        assert code == 0
        results = json.loads(out)
        assert len(results) == 1
        assert results[0]["property"]["id"] == "P-1002"
        assert "1 comparables for P-1001" in err

    def test_numeric_id_matched_as_text(self, capsys, properties_file):
        code, out, _ = run(capsys, "comparables", properties_file, "1003")

        assert code == 0
        ids = [r["property"]["id"] for r in json.loads(out)]
        assert "P-1001" in ids

    def test_valuation(self, capsys, properties_file):
        code, out, err = run(capsys, "valuation", properties_file, "P-1001")

        assert code == 0
        assert json.loads(out)["valuation_status"] == "overvalued"
        assert "overvalued" in err

    def test_comparable_valuation(self, capsys, properties_file):
        code, out, err = run(capsys, "valuation", properties_file, "P-1001", "--method", "comparable")

        assert code == 0
        assert json.loads(out)["property_age"] == 24
        assert "Estimated value $" in err

    def test_trend(self, capsys, properties_file):
        code, out, err = run(capsys, "trend", properties_file, "P-1001")

        assert code == 0
        data = json.loads(out)
        assert data["trend"]["direction"] == "up"
        assert [p["year"] for p in data["series"]] == [2020, 2021, 2022, 2023]
        assert "up at 5.00% a year" in err

    def test_trend_without_history(self, capsys, properties_file):
        code, _, err = run(capsys, "trend", properties_file, "P-1002")

        assert code == 1
        assert "Error:" in err

    def test_forecast_linear(self, capsys, properties_file):
        code, out, _ = run(capsys, "forecast", properties_file, "P-1001", "--years", "2")

        assert code == 0
        data = json.loads(out)
        assert data["model"] == "linear"
        assert [p["year"] for p in data["predictions"]] == [2024, 2025]

    def test_forecast_property(self, capsys, properties_file):
        code, out, _ = run(capsys, "forecast", properties_file, "P-1002", "--model", "property")

        assert code == 0
        assert json.loads(out)["forecast_method"] == "Simple Trend"

    def test_accuracy(self, capsys, properties_file):
        code, out, err = run(capsys, "accuracy", properties_file)

        assert code == 0
        assert len(json.loads(out)["back_test_results"]) == 2
        assert "MAPE" in err


# =============================================================================
# Test: Errors
# =============================================================================

class TestErrors:

    def test_unknown_subject(self, capsys, properties_file):
        code, out, err = run(capsys, "comparables", properties_file, "P-9999")

        assert code == 1
        assert out == ""
        assert "Property not found: P-9999" in err

    def test_missing_file(self, capsys, tmp_path):
        code, _, err = run(capsys, "accuracy", str(tmp_path / "missing.json"))

        assert code == 1
        assert "File not found" in err

    def test_non_object_entries(self, capsys, tmp_path):
        path = tmp_path / "numbers.json"
        path.write_text("[1, 2]")

        code, out, err = run(capsys, "accuracy", str(path))

        assert code == 1
        assert out == ""
        assert "Error: Invalid property data" in err

    def test_unknown_model_rejected_by_parser(self, properties_file):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["forecast", properties_file, "P-1001", "--model", "prophet"])
