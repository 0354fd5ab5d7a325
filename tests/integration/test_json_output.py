"""
Tests for JSON formatter output.

Ensures clean JSON output with:
- Human-readable field names
- Only the values a template actually carries
- Embedded decimals rendered with their decimal point
"""

import json

import pytest

from code_templates import CodeMatcher, PriceOverrideCode, ProjectTemplates
from code_templates.formatters.json_formatter import (
    format_override_lookup,
    match_code_to_dict,
    match_code_to_json,
)


PROJECT = "demo-project"


@pytest.fixture
def matcher():
    matcher = CodeMatcher()
    matcher.load_project(ProjectTemplates.builtin(PROJECT))
    matcher.add_template(PROJECT, "scale", "01{code:14}15{_:6}3103{embed:3.3}10{_:*}")
    matcher.add_template(PROJECT, "priced", "96{code:ean13}{embed:6}{price:5}{_}")
    return matcher


class TestJSONOutput:
    """Test JSON output formatting."""

    def test_basic_json_output(self, matcher):
        """Test the output for an in-store code."""
        json_output = match_code_to_json(matcher, "2957783000742", PROJECT)

        # Should be valid JSON
        data = json.loads(json_output)

        assert [d["Template"] for d in data] == ["default", "ean13_instore", "ean13_instore_chk"]

        instore = data[1]
        assert instore == {
            "Template": "ean13_instore",
            "Lookup Code": "95778",
            "Embedded Data": 74,
        }

    def test_absent_values_are_omitted(self, matcher):
        """Test templates without embedded data only report the lookup code."""
        data = match_code_to_dict(matcher, "0885580466732", PROJECT)
        assert data == [{"Template": "default", "Lookup Code": "0885580466732"}]

    def test_embedded_decimal(self, matcher):
        """Test decimals are rendered as strings."""
        data = match_code_to_dict(matcher, "019011531031000815060403310302028810030406", PROJECT)
        scale = next(d for d in data if d["Template"] == "scale")
        assert scale["Lookup Code"] == "90115310310008"
        assert scale["Embedded Decimal"] == "20.288"
        assert "Embedded Data" not in scale

    def test_reference_price(self, matcher):
        """Test the reference price is reported."""
        data = match_code_to_dict(matcher, "960000000000000111111222223", PROJECT)
        priced = next(d for d in data if d["Template"] == "priced")
        assert priced["Embedded Data"] == 111111
        assert priced["Reference Price"] == 22222

    def test_include_fields(self, matcher):
        """Test every matched component can be included."""
        data = json.loads(match_code_to_json(matcher, "0128000017120605", PROJECT, include_fields=True))
        code128 = next(d for d in data if d["Template"] == "ean14_code128")
        assert code128["Fields"] == [
            {"component": "01", "value": "01"},
            {"component": "{code:ean14}", "value": "28000017120605"},
        ]

    def test_no_match(self, matcher):
        """Test codes matching nothing produce an empty list."""
        assert match_code_to_dict(matcher, "0885580466732", "unknown") == []

    def test_unicode_preserved(self, matcher):
        """Test non-ASCII characters are not escaped."""
        json_output = match_code_to_json(matcher, "Käse", PROJECT)
        assert "Käse" in json_output


class TestOverrideOutput:
    """Test price override formatting."""

    def test_override_lookup(self, matcher):
        """Test the override result fields."""
        override = PriceOverrideCode(
            id="discount",
            template="97{code:ean13}{embed:5}{_}",
            lookup_template="ean13_instore",
            transmission_code="4029764001807",
        )
        matcher.add_template(PROJECT, override.id, override.template)

        lookup = matcher.match_override("97402976400180700199" + "0", [override], PROJECT)
        assert format_override_lookup(lookup) == {
            "Lookup Code": "4029764001807",
            "Lookup Template": "ean13_instore",
            "Transmission Code": "4029764001807",
            "Embedded Data": 199,
        }

    def test_no_override(self):
        """Test a missing override formats as None."""
        assert format_override_lookup(None) is None
