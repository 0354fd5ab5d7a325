"""
Output formatters for template matches.
"""

from .json_formatter import (
    format_match,
    format_matches_json,
    format_override_lookup,
    match_code_to_json,
    match_code_to_dict,
)

__all__ = [
    "format_match",
    "format_matches_json",
    "format_override_lookup",
    "match_code_to_json",
    "match_code_to_dict",
]
