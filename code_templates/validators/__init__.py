"""
Validation modules for EAN codes.
"""

from .ean import (
    calculate_check_digit_mod10,
    ean8,
    ean13,
    ean14,
    ean_check_digit,
    embed_data_in_ean,
    internal_checksum4,
    internal_checksum5,
    parse_ean,
    validate_ean,
    EANCode,
    EANEncoding,
    ValidationResult,
    NUMERIC,
)

__all__ = [
    "calculate_check_digit_mod10",
    "ean8",
    "ean13",
    "ean14",
    "ean_check_digit",
    "embed_data_in_ean",
    "internal_checksum4",
    "internal_checksum5",
    "parse_ean",
    "validate_ean",
    "EANCode",
    "EANEncoding",
    "ValidationResult",
    "NUMERIC",
]
