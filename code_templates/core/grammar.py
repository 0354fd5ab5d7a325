"""
Template Grammar

Compiles template strings like "2{code:5}{i}{embed:5}{ec}" into an
ordered list of template components.

Grammar:
    template := (literal | token)+
    literal  := any run of characters except "{" and "}"
    token    := "{" name [(":" | "=") value] "}"

Token names:
    code       product code; value is ean8, ean13, ean14, * or a length,
               or "=<constant>" for a fixed value
    embed      embedded integer "<n>" or decimal "<int>.<frac>"
    embed100   embedded integer, multiplied by 100 on extraction
    price      embedded reference price
    _          ignored characters; value is a length or *
    i          internal checksum of a 5-digit embed field
    ec         EAN check digit, must be the last component

A missing value defaults to "1", so "{_}" skips a single character.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional, Tuple

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


class GrammarErrorCode(str, Enum):
    """Reasons a template fails to compile."""
    UNKNOWN_TOKEN = "UNKNOWN_TOKEN"
    INVALID_LENGTH = "INVALID_LENGTH"
    UNBALANCED_BRACES = "UNBALANCED_BRACES"
    EMPTY_TEMPLATE = "EMPTY_TEMPLATE"
    DUPLICATE_COMPONENT = "DUPLICATE_COMPONENT"
    MISSING_EMBED_FIELD = "MISSING_EMBED_FIELD"
    MISPLACED_CHECKSUM = "MISPLACED_CHECKSUM"


class TemplateGrammarError(ValueError):
    """Raised when a template string cannot be compiled."""

    def __init__(self, code: GrammarErrorCode, message: str, token: Optional[str] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.token = token

    def __str__(self) -> str:
        if self.token is not None:
            return f"[{self.code.value}] {self.message}: {self.token!r}"
        return f"[{self.code.value}] {self.message}"


@dataclass(frozen=True)
class Token:
    """A raw lexical unit of a template string."""
    text: str
    bracketed: bool
    position: int


def tokenize(template: str) -> Iterator[Token]:
    """
    Split a template string into literal runs and bracketed tokens.

    A bracketed token extends from "{" to the first following "}".

    Raises:
        TemplateGrammarError: on a stray "}" or an unterminated "{"
    """
    pos = 0
    while pos < len(template):
        char = template[pos]
        if char == "{":
            end = template.find("}", pos + 1)
            if end == -1:
                raise TemplateGrammarError(
                    GrammarErrorCode.UNBALANCED_BRACES,
                    f"Unterminated token at position {pos}",
                    template[pos:],
                )
            yield Token(template[pos:end + 1], True, pos)
            pos = end + 1
        elif char == "}":
            raise TemplateGrammarError(
                GrammarErrorCode.UNBALANCED_BRACES,
                f"Unexpected '}}' at position {pos}",
                template[pos:],
            )
        else:
            end = pos
            while end < len(template) and template[end] not in "{}":
                end += 1
            yield Token(template[pos:end], False, pos)
            pos = end


def _split_token(text: str) -> Tuple[str, Optional[str], str]:
    """Split "{name:value}" into (name, separator, value)."""
    body = text[1:-1]
    for index, char in enumerate(body):
        if char in ":=":
            return body[:index], char, body[index + 1:]
    return body, None, "1"


def _positive_int(value: str, token: str) -> int:
    if not value.isdigit() or not value.isascii() or int(value) <= 0:
        raise TemplateGrammarError(
            GrammarErrorCode.INVALID_LENGTH,
            f"Length must be a positive integer, got {value!r}",
            token,
        )
    return int(value)


def _parse_code(value: str, separator: Optional[str], token: str) -> Code:
    if separator == "=":
        return Code(CodeType.match_constant(value))
    if value == "*":
        return Code(CodeType(CodeKind.MATCH_ALL))
    if value in (CodeKind.EAN8.value, CodeKind.EAN13.value, CodeKind.EAN14.value):
        return Code(CodeType(CodeKind(value)))
    return Code(CodeType.fixed(_positive_int(value, token)))


def _parse_embed(value: str, token: str) -> TemplateComponent:
    parts = value.split(".")
    if len(parts) == 1:
        return Embed(_positive_int(parts[0], token))
    if len(parts) == 2:
        return EmbedDecimal(_positive_int(parts[0], token), _positive_int(parts[1], token))
    raise TemplateGrammarError(
        GrammarErrorCode.INVALID_LENGTH,
        "Embed field must be '<n>' or '<int>.<frac>'",
        token,
    )


def _parse_ignore(value: str, token: str) -> Ignore:
    if value == "*":
        return Ignore()
    return Ignore(_positive_int(value, token))


def parse_component(token: Token) -> TemplateComponent:
    """
    Convert a single token into a template component.

    Raises:
        TemplateGrammarError: if the token name or its value is not recognized
    """
    if not token.bracketed:
        return PlainText(token.text)

    name, separator, value = _split_token(token.text)

    if name == "code":
        return _parse_code(value, separator, token.text)
    if name == "embed":
        return _parse_embed(value, token.text)
    if name == "_":
        return _parse_ignore(value, token.text)

    if name == "embed100":
        return Embed100(_positive_int(value, token.text))
    if name == "price":
        return Price(_positive_int(value, token.text))
    if name == "i":
        _positive_int(value, token.text)
        return InternalChecksum()
    if name == "ec":
        _positive_int(value, token.text)
        return EanChecksum()

    raise TemplateGrammarError(
        GrammarErrorCode.UNKNOWN_TOKEN,
        f"Unknown token name {name!r}",
        token.text,
    )


def validate_components(components: List[TemplateComponent]) -> None:
    """
    Check the cross-component rules of a template.

    - at least one component
    - every kind except plain text and ignore occurs at most once
    - {i} requires an integer embed field of width 5
    - {ec} must be the last component

    Raises:
        TemplateGrammarError: if any rule is violated
    """
    if not components:
        raise TemplateGrammarError(GrammarErrorCode.EMPTY_TEMPLATE, "Template is empty")

    counts = Counter(c.key for c in components if not c.repeatable)
    duplicates = sorted(key for key, count in counts.items() if count > 1)
    if duplicates:
        raise TemplateGrammarError(
            GrammarErrorCode.DUPLICATE_COMPONENT,
            f"Components may occur only once: {', '.join(duplicates)}",
        )

    if counts[InternalChecksum.key]:
        embed = next((c for c in components if isinstance(c, Embed)), None)
        if embed is None or embed.length != 5:
            raise TemplateGrammarError(
                GrammarErrorCode.MISSING_EMBED_FIELD,
                "{i} requires an {embed:5} field",
            )

    if counts[EanChecksum.key] and not isinstance(components[-1], EanChecksum):
        raise TemplateGrammarError(
            GrammarErrorCode.MISPLACED_CHECKSUM,
            "{ec} must be the last component",
        )


def compile_components(template: str) -> List[TemplateComponent]:
    """
    Compile a template string into its validated components.

    Raises:
        TemplateGrammarError: if the template is malformed

    Examples:
        >>> compile_components("01{code:ean14}")
        [PlainText(text='01'), Code(code_type=CodeType(kind=<CodeKind.EAN14: 'ean14'>, size=0, constant=''))]
    """
    components = [parse_component(token) for token in tokenize(template)]
    validate_components(components)
    return components
