"""
JSON Formatter for template matches

Provides clean JSON output for matched codes with:
- Human-readable field names
- Embedded decimals rendered with their decimal point
- One entry per matching template
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from ..core.matcher import CodeMatcher, OverrideLookup
from ..core.template import ParseResult


def format_match(result: ParseResult, include_fields: bool = False) -> Dict[str, Any]:
    """
    Format a single match as a flat dictionary.

    Only the values the template actually carries are included.

    Args:
        result: A successful template match
        include_fields: Include every matched component (default: False)
    """
    output: Dict[str, Any] = {
        "Template": result.template.id,
        "Lookup Code": result.lookup_code,
    }

    if result.embedded_data is not None:
        output["Embedded Data"] = result.embedded_data

    decimal = result.embedded_decimal
    if decimal is not None:
        output["Embedded Decimal"] = str(decimal.decimal_value)

    if result.reference_price is not None:
        output["Reference Price"] = result.reference_price

    if include_fields:
        output["Fields"] = [
            {"component": component.describe(), "value": value}
            for component, value in result.entries
        ]

    return output


def format_matches_json(
    results: List[ParseResult],
    include_fields: bool = False,
) -> str:
    """
    Format all matches of a code as JSON.

    Returns:
        JSON array, one object per matching template, sorted by template id
    """
    output = [
        format_match(r, include_fields=include_fields)
        for r in sorted(results, key=lambda r: r.template.id)
    ]
    return json.dumps(output, ensure_ascii=False, indent=2)


def format_override_lookup(lookup: Optional[OverrideLookup]) -> Optional[Dict[str, Any]]:
    """Format a price override match, or None if nothing matched."""
    if lookup is None:
        return None
    return {
        "Lookup Code": lookup.lookup_code,
        "Lookup Template": lookup.lookup_template,
        "Transmission Code": lookup.transmission_code,
        "Embedded Data": lookup.embedded_data,
    }


def match_code_to_json(
    matcher: CodeMatcher,
    code: str,
    project_id: str,
    include_fields: bool = False,
) -> str:
    """
    Match a code against a project's templates and return JSON output.

    Example:
        >>> matcher = CodeMatcher()
        >>> matcher.add_template("demo", "ean14_code128", "01{code:ean14}")
        >>> print(match_code_to_json(matcher, "0128000017120605", "demo"))
        [
          {
            "Template": "ean14_code128",
            "Lookup Code": "28000017120605"
          }
        ]
    """
    results = matcher.match(code, project_id)
    return format_matches_json(results, include_fields=include_fields)


def match_code_to_dict(
    matcher: CodeMatcher,
    code: str,
    project_id: str,
) -> List[Dict[str, Any]]:
    """Match a code and return the decoded JSON output."""
    return json.loads(match_code_to_json(matcher, code, project_id))
