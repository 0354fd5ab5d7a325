"""
Template Components

The closed set of field kinds a code template is built from. Each kind
knows the number of characters it occupies in a scanned code and the
regular expression fragment that captures it.

A length of 0 means "any length" (`{code:*}`, `{_:*}`).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Optional


class CodeKind(str, Enum):
    """Kinds of product-code fields."""
    EAN8 = "ean8"
    EAN13 = "ean13"
    EAN14 = "ean14"
    FIXED_LENGTH = "fixed"
    MATCH_ALL = "*"
    MATCH_CONSTANT = "constant"


_EAN_KIND_LENGTHS = {
    CodeKind.EAN8: 8,
    CodeKind.EAN13: 13,
    CodeKind.EAN14: 14,
}


@dataclass(frozen=True)
class CodeType:
    """
    Describes the product-code field of a template.

    Attributes:
        kind: The kind of code
        size: Field width for FIXED_LENGTH codes
        constant: Required value for MATCH_CONSTANT codes
    """
    kind: CodeKind
    size: int = 0
    constant: str = ""

    @classmethod
    def fixed(cls, size: int) -> "CodeType":
        return cls(CodeKind.FIXED_LENGTH, size=size)

    @classmethod
    def match_constant(cls, constant: str) -> "CodeType":
        return cls(CodeKind.MATCH_CONSTANT, constant=constant)

    @property
    def is_ean(self) -> bool:
        return self.kind in _EAN_KIND_LENGTHS

    @property
    def length(self) -> int:
        if self.kind in _EAN_KIND_LENGTHS:
            return _EAN_KIND_LENGTHS[self.kind]
        if self.kind == CodeKind.FIXED_LENGTH:
            return self.size
        if self.kind == CodeKind.MATCH_CONSTANT:
            return len(self.constant)
        return 0


def _group(fragment: str) -> str:
    return f"({fragment})"


@dataclass(frozen=True)
class TemplateComponent:
    """
    Base class of all template components.

    `key` identifies the component kind for the "at most once" rule;
    kinds with `repeatable = True` may occur any number of times.
    """
    key: ClassVar[str] = ""
    repeatable: ClassVar[bool] = False

    @property
    def length(self) -> int:
        raise NotImplementedError

    @property
    def regex(self) -> str:
        raise NotImplementedError

    def describe(self) -> str:
        """Render the component back in template syntax."""
        raise NotImplementedError


@dataclass(frozen=True)
class PlainText(TemplateComponent):
    """Known literal text, e.g. "01" in "01{code:ean14}"."""
    text: str
    key: ClassVar[str] = "plain_text"
    repeatable: ClassVar[bool] = True

    @property
    def length(self) -> int:
        return len(self.text)

    @property
    def regex(self) -> str:
        return _group(re.escape(self.text))

    def describe(self) -> str:
        return self.text


@dataclass(frozen=True)
class Code(TemplateComponent):
    """The code used to look up products in the database."""
    code_type: CodeType
    key: ClassVar[str] = "code"

    @property
    def length(self) -> int:
        return self.code_type.length

    @property
    def regex(self) -> str:
        if self.code_type.kind == CodeKind.MATCH_ALL:
            return _group(".*")
        if self.code_type.kind == CodeKind.MATCH_CONSTANT:
            return _group(re.escape(self.code_type.constant))
        return _group(f".{{{self.length}}}")

    def describe(self) -> str:
        kind = self.code_type.kind
        if kind == CodeKind.MATCH_CONSTANT:
            return f"{{code={self.code_type.constant}}}"
        if kind == CodeKind.FIXED_LENGTH:
            return f"{{code:{self.code_type.size}}}"
        return f"{{code:{kind.value}}}"


@dataclass(frozen=True)
class Embed(TemplateComponent):
    """Embedded weight, price or amount, used as-is."""
    size: int
    key: ClassVar[str] = "embed"

    @property
    def length(self) -> int:
        return self.size

    @property
    def regex(self) -> str:
        return _group(f"\\d{{{self.size}}}")

    def describe(self) -> str:
        return f"{{embed:{self.size}}}"


@dataclass(frozen=True)
class Embed100(Embed):
    """Embedded data that is multiplied by 100 when extracted."""
    key: ClassVar[str] = "embed100"

    def describe(self) -> str:
        return f"{{embed100:{self.size}}}"


@dataclass(frozen=True)
class EmbedDecimal(TemplateComponent):
    """Embedded decimal with a fixed number of integer and fraction digits."""
    integer_digits: int
    fraction_digits: int
    key: ClassVar[str] = "embed"

    @property
    def length(self) -> int:
        return self.integer_digits + self.fraction_digits

    @property
    def regex(self) -> str:
        return _group(f"\\d{{{self.length}}}")

    def describe(self) -> str:
        return f"{{embed:{self.integer_digits}.{self.fraction_digits}}}"


@dataclass(frozen=True)
class Price(TemplateComponent):
    """Embedded reference price, e.g. the price per kilogram."""
    size: int
    key: ClassVar[str] = "price"

    @property
    def length(self) -> int:
        return self.size

    @property
    def regex(self) -> str:
        return _group(f"\\d{{{self.size}}}")

    def describe(self) -> str:
        return f"{{price:{self.size}}}"


@dataclass(frozen=True)
class Ignore(TemplateComponent):
    """
    Characters that are skipped, e.g. checksums we can't or won't verify.

    `size` is None for `{_:*}`, which matches any number of characters.
    """
    size: Optional[int] = None
    key: ClassVar[str] = "ignore"
    repeatable: ClassVar[bool] = True

    @property
    def ignore_all(self) -> bool:
        return self.size is None

    @property
    def length(self) -> int:
        return self.size or 0

    @property
    def regex(self) -> str:
        if self.size is None:
            return _group(".*")
        return _group(f".{{{self.size}}}")

    def describe(self) -> str:
        return "{_:*}" if self.size is None else f"{{_:{self.size}}}"


@dataclass(frozen=True)
class InternalChecksum(TemplateComponent):
    """The internal checksum of a 5-digit embedded field in an EAN-13."""
    key: ClassVar[str] = "internal_checksum"

    @property
    def length(self) -> int:
        return 1

    @property
    def regex(self) -> str:
        return _group("\\d")

    def describe(self) -> str:
        return "{i}"


@dataclass(frozen=True)
class EanChecksum(TemplateComponent):
    """The EAN check digit; always the last component."""
    key: ClassVar[str] = "ean_checksum"

    @property
    def length(self) -> int:
        return 1

    @property
    def regex(self) -> str:
        return _group("\\d")

    def describe(self) -> str:
        return "{ec}"
