"""
Code Templates

A `CodeTemplate` is a fully compiled template expression like
"01{code:ean14}". It matches scanned codes and produces `ParseResult`
objects, which expose the lookup code and any embedded data and can
embed a new payload to build a fresh scannable code.

Example:
    >>> template = CodeTemplate.compile("instore", "2{code:5}{_}{embed:5}{ec}")
    >>> result = template.match("2957783000742")
    >>> result.lookup_code, result.embedded_data
    ('95778', 74)
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

import structlog

from .components import (
    Code,
    CodeKind,
    EanChecksum,
    Embed,
    Embed100,
    EmbedDecimal,
    InternalChecksum,
    Price,
    TemplateComponent,
)
from .grammar import TemplateGrammarError, compile_components
from ..validators.ean import (
    EANEncoding,
    ValidationResult,
    ean13,
    internal_checksum5,
    parse_ean,
    validate_ean,
)

logger = structlog.get_logger(__name__)

Entry = Tuple[TemplateComponent, str]


@dataclass(frozen=True)
class CodeTemplate:
    """
    A compiled code template.

    Attributes:
        id: The template's identifier
        template: The original template string
        components: The parsed components in left-to-right order
        expected_length: Length of a string that could possibly match,
            or 0 if the length is undetermined
    """
    id: str
    template: str
    components: Tuple[TemplateComponent, ...]
    expected_length: int = field(init=False)
    pattern: "re.Pattern[str]" = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if any(c.length == 0 for c in self.components):
            expected_length = 0
        else:
            expected_length = sum(c.length for c in self.components)
        regex = "^" + "".join(c.regex for c in self.components) + "$"
        object.__setattr__(self, "expected_length", expected_length)
        object.__setattr__(self, "pattern", re.compile(regex, re.DOTALL | re.ASCII))

    @classmethod
    def compile(cls, template_id: str, template: str) -> "CodeTemplate":
        """
        Compile a template string.

        Raises:
            TemplateGrammarError: if the template is malformed
        """
        return cls(template_id, template, tuple(compile_components(template)))

    @classmethod
    def parse(cls, template_id: str, template: str) -> Optional["CodeTemplate"]:
        """Compile a template string, returning None if it is malformed."""
        try:
            return cls.compile(template_id, template)
        except TemplateGrammarError:
            return None

    def match(self, code: str) -> Optional["ParseResult"]:
        """
        Check if a given string matches this template.

        Args:
            code: The scanned code

        Returns:
            A valid ParseResult, or None if the code didn't match
        """
        if self.expected_length and len(code) != self.expected_length:
            return None

        match = self.pattern.fullmatch(code)
        if match is None:
            return None

        values = match.groups()
        if len(values) != len(self.components):
            return None

        result = ParseResult(self, tuple(zip(self.components, values)))
        validation = result.validate()
        if not validation.valid:
            logger.debug(
                "template_match_rejected",
                template_id=self.id,
                code=code,
                errors=validation.errors,
            )
            return None
        return result

    def describe(self) -> List[str]:
        """Render each component back in template syntax."""
        return [c.describe() for c in self.components]


DEFAULT_TEMPLATE_ID = "default"


@dataclass(frozen=True)
class EmbeddedDecimal:
    """An embedded decimal value, e.g. a weight in kilograms with 3 decimals."""
    integer_digits: int
    fraction_digits: int
    value: int

    @property
    def decimal_value(self) -> Decimal:
        return Decimal(self.value).scaleb(-self.fraction_digits)


@dataclass(frozen=True)
class ParseResult:
    """
    The result of matching a code against a template.

    Attributes:
        template: The template that was matched
        entries: (component, matched text) pairs, one per component
    """
    template: CodeTemplate
    entries: Tuple[Entry, ...]

    def _first(self, kind: type) -> Optional[Entry]:
        return next((e for e in self.entries if isinstance(e[0], kind)), None)

    @property
    def lookup_code(self) -> str:
        """The (part of the) code to use for database lookups."""
        entry = self._first(Code)
        return entry[1] if entry else ""

    @property
    def is_valid(self) -> bool:
        """A result is valid if all of its components are valid."""
        return self.validate().valid

    @property
    def reference_price(self) -> Optional[int]:
        entry = self._first(Price)
        return int(entry[1]) if entry else None

    @property
    def embedded_data(self) -> Optional[int]:
        """The embedded integer; `{embed100}` fields are multiplied by 100."""
        entry = self._first(Embed)
        if entry is None:
            return None
        value = int(entry[1])
        if isinstance(entry[0], Embed100):
            return value * 100
        return value

    @property
    def embedded_decimal(self) -> Optional[EmbeddedDecimal]:
        entry = self._first(EmbedDecimal)
        if entry is None:
            return None
        component, text = entry
        return EmbeddedDecimal(
            integer_digits=component.integer_digits,
            fraction_digits=component.fraction_digits,
            value=int(text),
        )

    def validate(self) -> ValidationResult:
        """Check every component's matched value."""
        result = ValidationResult(valid=True)
        for component, value in self.entries:
            error = self._validate_entry(component, value)
            if error:
                result.valid = False
                result.errors.append(f"{component.describe()}: {error}")
        return result

    def _validate_entry(self, component: TemplateComponent, value: str) -> Optional[str]:
        if isinstance(component, Code):
            code_type = component.code_type
            if code_type.is_ean:
                check = validate_ean(value, EANEncoding(code_type.kind.value))
                if not check.valid:
                    return "; ".join(check.errors)
            elif code_type.kind == CodeKind.FIXED_LENGTH:
                if len(value) != code_type.size:
                    return f"length must be {code_type.size}, got {len(value)}"
            elif code_type.kind == CodeKind.MATCH_CONSTANT:
                if value != code_type.constant:
                    return f"expected {code_type.constant!r}"
            return None

        if isinstance(component, InternalChecksum):
            embed = next(
                (v for c, v in self.entries if isinstance(c, Embed) and c.length == 5),
                None,
            )
            if embed is None:
                return "no 5-digit embed field"
            checksum = internal_checksum5([int(d) for d in embed])
            if str(checksum) != value:
                return f"internal checksum mismatch: expected {checksum}, got {value}"
            return None

        if isinstance(component, EanChecksum):
            ean = parse_ean("".join(v for _, v in self.entries))
            if ean is None:
                return "not a valid EAN"
            if ean.check_digit != int(value):
                return f"check digit mismatch: expected {ean.check_digit}, got {value}"
            return None

        return None

    def embed(self, data: int) -> Optional[str]:
        """
        Embed `data` into the matched code in place of the `{embed}` field.

        Literal, code and ignored fields keep their matched text. The
        internal checksum and the EAN check digit are recalculated.

        Returns:
            The new code, or None if the template has no `{embed}` field,
            `data` does not fit into it, or no valid EAN-13 can be built
        """
        parts: List[str] = []
        embedded: Optional[str] = None
        internal_checksum = False
        ean_checksum = False

        for component, value in self.entries:
            if type(component) is Embed:
                embedded = str(data).zfill(component.length)
                if data < 0 or len(embedded) != component.length:
                    return None
                parts.append(embedded)
            elif isinstance(component, InternalChecksum):
                internal_checksum = True
                parts.append(value)
            elif isinstance(component, EanChecksum):
                ean_checksum = True
                parts.append(value)
            else:
                parts.append(value)

        if embedded is None:
            return None

        result = "".join(parts)

        # the internal checksum sits at position 6 of an in-store EAN-13
        if internal_checksum:
            check = internal_checksum5([int(d) for d in embedded])
            result = result[:6] + str(check) + result[7:]

        if ean_checksum:
            ean = ean13(result[:12])
            return ean.code if ean else None
        return result

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        decimal = self.embedded_decimal
        return {
            'template_id': self.template.id,
            'template': self.template.template,
            'lookup_code': self.lookup_code,
            'embedded_data': self.embedded_data,
            'embedded_decimal': (
                {
                    'integer_digits': decimal.integer_digits,
                    'fraction_digits': decimal.fraction_digits,
                    'value': decimal.value,
                    'decimal': str(decimal.decimal_value),
                }
                if decimal else None
            ),
            'reference_price': self.reference_price,
            'fields': [
                {'component': component.describe(), 'value': value}
                for component, value in self.entries
            ],
        }
