"""
Tests for property record parsing

Verifies:
- Monetary strings parse with currency symbols and separators removed
- Scientific notation is read as written
- Unit suffixes and stray text make a field absent, never a different number
"""

import pytest
from pathlib import Path
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.analytics import Property, parse_decimal


# =============================================================================
# Test: parse_decimal
# =============================================================================

class TestParseDecimal:

    @pytest.mark.parametrize("raw, expected", [
        ("250000", 250000.0),
        ("$250,000.00", 250000.0),
        (" £1,200 ", 1200.0),
        ("€99.5", 99.5),
        ("-2,500", -2500.0),
        (425000, 425000.0),
        (12.5, 12.5),
    ])
    def test_formatted_numbers(self, raw, expected):
        assert parse_decimal(raw) == expected

    def test_scientific_notation(self):
        assert parse_decimal("1e6") == 1_000_000.0
        assert parse_decimal("2.5E5") == 250_000.0

    @pytest.mark.parametrize("raw", ["250k", "12abc", "1.2M", "n/a", "about 300000", "", "$", None, True])
    def test_unparseable_is_absent(self, raw):
        assert parse_decimal(raw) is None

    @pytest.mark.parametrize("raw", ["nan", "inf", float("nan"), float("-inf")])
    def test_non_finite_is_absent(self, raw):
        assert parse_decimal(raw) is None


# =============================================================================
# Test: Property
# =============================================================================

class TestPropertyParsing:

    def test_suffixed_value_not_misread(self):
        prop = Property.from_dict({"id": "P-1", "value": "250k", "squareFeet": "1,800"})

        assert prop.numeric_value is None
        assert prop.square_feet == 1800.0
        assert prop.price_per_square_foot is None

    def test_scientific_value(self):
        prop = Property.from_dict({"id": "P-1", "value": "1.2e6", "squareFeet": 2000})
        assert prop.price_per_square_foot == pytest.approx(600.0)
