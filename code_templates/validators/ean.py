"""
EAN Validation Functions

Implements the EAN arithmetic the template matcher relies on:
- Check digit calculation (GS1 Mod10) for EAN-8, EAN-13 and EAN-14
- Structural validation and construction of EAN codes
- Internal checksums for 4- and 5-digit price/weight fields embedded
  in in-store EAN-13 codes

Based on GS1 General Specifications.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence


@dataclass
class ValidationResult:
    """Result of a validation operation."""
    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    meta: Dict[str, Any] = field(default_factory=dict)


NUMERIC = frozenset('0123456789')


class EANEncoding(str, Enum):
    """Supported EAN encodings."""
    EAN8 = "ean8"
    EAN13 = "ean13"
    EAN14 = "ean14"


# Full code lengths, including the check digit
EAN_LENGTHS = {
    EANEncoding.EAN8: 8,
    EANEncoding.EAN13: 13,
    EANEncoding.EAN14: 14,
}


@dataclass(frozen=True)
class EANCode:
    """
    A well-formed EAN-8, EAN-13 or EAN-14.

    Attributes:
        code: The full code, including the check digit
        encoding: The EAN encoding of this code
    """
    code: str
    encoding: EANEncoding

    @property
    def digits(self) -> List[int]:
        return [int(c) for c in self.code]

    @property
    def check_digit(self) -> int:
        return int(self.code[-1])


def _is_numeric(value: str) -> bool:
    return bool(value) and set(value) <= NUMERIC


def calculate_check_digit_mod10(digits: str) -> int:
    """
    Calculate GS1 Mod10 check digit.

    Algorithm (GS1 General Specifications):
    1. From right to left, alternate multipliers 3 and 1
    2. Sum all products
    3. Check digit = (10 - (sum mod 10)) mod 10

    Args:
        digits: Numeric string without check digit

    Returns:
        Calculated check digit (0-9)
    """
    if not _is_numeric(digits):
        raise ValueError("Input must be a non-empty numeric string")

    total = 0
    for i, digit in enumerate(reversed(digits)):
        multiplier = 3 if i % 2 == 0 else 1
        total += int(digit) * multiplier

    return (10 - (total % 10)) % 10


def _build(code: str, encoding: EANEncoding, allow_short: bool) -> Optional[EANCode]:
    full_length = EAN_LENGTHS[encoding]
    lengths = (full_length - 1, full_length) if allow_short else (full_length,)
    if len(code) not in lengths or not _is_numeric(code):
        return None

    check = calculate_check_digit_mod10(code[:full_length - 1])
    if len(code) == full_length and int(code[-1]) != check:
        return None

    return EANCode(code=code[:full_length - 1] + str(check), encoding=encoding)


def ean8(code: str) -> Optional[EANCode]:
    """
    Create an EAN-8.

    A 7 digit string gets its check digit appended; an 8 digit string
    must carry the correct check digit.
    """
    return _build(code, EANEncoding.EAN8, allow_short=True)


def ean13(code: str) -> Optional[EANCode]:
    """
    Create an EAN-13.

    A 12 digit string gets its check digit appended; a 13 digit string
    must carry the correct check digit.

    Examples:
        >>> ean13("211111012345").code
        '2111110123454'
        >>> ean13("2001234000001") is None
        True
    """
    return _build(code, EANEncoding.EAN13, allow_short=True)


def ean14(code: str) -> Optional[EANCode]:
    """Create an EAN-14 from a 14 digit string with a correct check digit."""
    return _build(code, EANEncoding.EAN14, allow_short=False)


def parse_ean(code: str) -> Optional[EANCode]:
    """
    Parse an EAN-8, EAN-13 or EAN-14.

    The encoding is chosen by length:
    - 7 or 8 digits: EAN-8
    - 12 or 13 digits: EAN-13
    - 14 digits: EAN-14

    Returns:
        EANCode, or None if `code` is not a well-formed EAN
    """
    if len(code) in (7, 8):
        return ean8(code)
    if len(code) in (12, 13):
        return ean13(code)
    if len(code) == 14:
        return ean14(code)
    return None


def ean_check_digit(code: str) -> Optional[int]:
    """
    Calculate the check digit for an EAN-8, EAN-13 or EAN-14.

    Only the digits preceding the check position are used, so `code`
    may be given with or without its check digit (7, 8, 12, 13 or 14
    digits).
    """
    prefix_lengths = {7: 7, 8: 7, 12: 12, 13: 12, 14: 13}
    prefix_len = prefix_lengths.get(len(code))
    if prefix_len is None or not _is_numeric(code):
        return None
    return calculate_check_digit_mod10(code[:prefix_len])


def validate_ean(value: str, encoding: Optional[EANEncoding] = None) -> ValidationResult:
    """
    Validate an EAN code, optionally requiring a specific encoding.

    Returns:
        ValidationResult with check digit status in meta
    """
    result = ValidationResult(valid=True)

    if not _is_numeric(value):
        result.valid = False
        result.errors.append("EAN must be numeric")
        return result

    if encoding is not None and len(value) != EAN_LENGTHS[encoding]:
        result.valid = False
        result.errors.append(
            f"{encoding.value} must have {EAN_LENGTHS[encoding]} digits, got {len(value)}"
        )
        return result

    calculated = ean_check_digit(value)
    if calculated is None:
        result.valid = False
        result.errors.append(f"Unsupported EAN length: {len(value)}")
        return result

    provided = int(value[-1])
    result.meta['calculated_check_digit'] = calculated
    result.meta['provided_check_digit'] = provided
    result.meta['check_digit_valid'] = (provided == calculated)

    if provided != calculated:
        result.valid = False
        result.errors.append(
            f"Check digit mismatch: expected {calculated}, got {provided}"
        )

    return result


# Weighting tables for the price/weight check digits
CHECK_2_MINUS = (0, 2, 4, 6, 8, 9, 1, 3, 5, 7)
CHECK_3 = (0, 3, 6, 9, 2, 5, 8, 1, 4, 7)
CHECK_5_PLUS = (0, 5, 1, 6, 2, 7, 3, 8, 4, 9)
CHECK_5_MINUS = (0, 5, 9, 4, 8, 3, 7, 2, 6, 1)
CHECK_5_MINUS_REVERSE = tuple(CHECK_5_MINUS.index(i) for i in range(10))

_WEIGHTS_5 = (CHECK_5_PLUS, CHECK_2_MINUS, CHECK_5_MINUS, CHECK_5_PLUS, CHECK_2_MINUS)
_WEIGHTS_4 = (CHECK_2_MINUS, CHECK_2_MINUS, CHECK_3, CHECK_5_MINUS)


def internal_checksum5(digits: Sequence[int]) -> int:
    """
    Calculate the internal checksum for a 5-digit price/weight field.

    Args:
        digits: The five digits of the embedded field

    Returns:
        Check digit (0-9)

    Examples:
        >>> internal_checksum5([0, 0, 0, 7, 4])
        3
    """
    if len(digits) != 5:
        raise ValueError(f"Expected 5 digits, got {len(digits)}")

    total = sum(table[d] for table, d in zip(_WEIGHTS_5, digits))
    mod10 = (10 - (total % 10)) % 10
    return CHECK_5_MINUS_REVERSE[mod10]


def internal_checksum4(digits: Sequence[int]) -> int:
    """Calculate the internal checksum for a 4-digit price/weight field."""
    if len(digits) != 4:
        raise ValueError(f"Expected 4 digits, got {len(digits)}")

    total = sum(table[d] for table, d in zip(_WEIGHTS_4, digits))
    return (total * 3) % 10


def embed_data_in_ean(prefix: str, data: int) -> str:
    """
    Build an in-store EAN-13 carrying a 5-digit payload.

    Uses the first six characters of `prefix`, followed by the internal
    checksum of the payload, the zero-padded payload and the EAN check
    digit.

    Returns:
        The EAN-13 code, or "" if no valid code can be built
    """
    if data < 0 or data >= 99999:
        return ""

    payload = str(data).zfill(5)
    check = internal_checksum5([int(c) for c in payload])
    ean = ean13(prefix[:6] + str(check) + payload)
    return ean.code if ean else ""
