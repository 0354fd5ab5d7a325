"""
Code Template Matcher

Matches scanned barcodes against per-project code templates such as
"2{code:5}{i}{embed:5}{ec}", extracts lookup codes and embedded
weight/price data, and builds new in-store EAN-13 codes from a template
and a payload.
"""

from .core.components import (
    Code,
    CodeKind,
    CodeType,
    EanChecksum,
    Embed,
    Embed100,
    EmbedDecimal,
    Ignore,
    InternalChecksum,
    PlainText,
    Price,
    TemplateComponent,
)
from .core.grammar import GrammarErrorCode, TemplateGrammarError
from .core.template import DEFAULT_TEMPLATE_ID, CodeTemplate, EmbeddedDecimal, ParseResult
from .core.matcher import CodeMatcher, OverrideLookup
from .metadata import (
    BUILTIN_TEMPLATES,
    MetadataError,
    PriceOverrideCode,
    ProjectTemplates,
    TemplateDefinition,
    load_projects,
)
from .validators.ean import (
    EANCode,
    EANEncoding,
    ean13,
    internal_checksum5,
    parse_ean,
)
from .formatters.json_formatter import (
    format_matches_json,
    match_code_to_json,
    match_code_to_dict,
)

__version__ = "1.0.0"
__all__ = [
    "Code",
    "CodeKind",
    "CodeType",
    "EanChecksum",
    "Embed",
    "Embed100",
    "EmbedDecimal",
    "Ignore",
    "InternalChecksum",
    "PlainText",
    "Price",
    "TemplateComponent",
    "GrammarErrorCode",
    "TemplateGrammarError",
    "DEFAULT_TEMPLATE_ID",
    "CodeTemplate",
    "EmbeddedDecimal",
    "ParseResult",
    "CodeMatcher",
    "OverrideLookup",
    "BUILTIN_TEMPLATES",
    "MetadataError",
    "PriceOverrideCode",
    "ProjectTemplates",
    "TemplateDefinition",
    "load_projects",
    "EANCode",
    "EANEncoding",
    "ean13",
    "internal_checksum5",
    "parse_ean",
    "format_matches_json",
    "match_code_to_json",
    "match_code_to_dict",
]
