"""
Core template compiling and matching modules.
"""

from .components import (
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
from .grammar import (
    GrammarErrorCode,
    TemplateGrammarError,
    compile_components,
    tokenize,
)
from .template import (
    DEFAULT_TEMPLATE_ID,
    CodeTemplate,
    EmbeddedDecimal,
    ParseResult,
)
from .matcher import CodeMatcher, OverrideLookup, ReadWriteLock

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
    "compile_components",
    "tokenize",
    "DEFAULT_TEMPLATE_ID",
    "CodeTemplate",
    "EmbeddedDecimal",
    "ParseResult",
    "CodeMatcher",
    "OverrideLookup",
    "ReadWriteLock",
]
