"""
EIN (Employer Identification Number) utilities.

Provides consistent formatting and validation for EIN numbers.
EIN format: XX-XXXXXXX (9 digits with hyphen after first 2)

ProPublica returns EINs as integers in some endpoints, which drops leading
zeros (e.g. 012345678 comes back as 12345678). Formatting always pads back
to 9 digits.
"""

import re
from typing import Optional, Tuple, Union

# Separators tolerated in caller-supplied EINs
_SEPARATORS = re.compile(r"[-\s]")
_NINE_DIGITS = re.compile(r"^\d{9}$")


def strip_ein(ein: Union[str, int]) -> str:
    """Remove dashes and whitespace from an EIN without validating it."""
    return _SEPARATORS.sub("", str(ein))


def format_ein(ein: Union[str, int]) -> str:
    """
    Format EIN in the canonical XX-XXXXXXX form.

    Args:
        ein: EIN as an integer or string (with or without hyphen/spaces)

    Returns:
        Dashed EIN, left-padded with zeros to 9 digits

    Examples:
        >>> format_ein(953135649)
        '95-3135649'
        >>> format_ein("95 3135649")
        '95-3135649'
        >>> format_ein(12345)
        '00-0012345'
    """
    digits = strip_ein(ein).zfill(9)
    return f"{digits[:2]}-{digits[2:]}"


def ein_to_digits(ein: str) -> Optional[str]:
    """
    Convert EIN to digits-only format for API calls.

    Only dashes and whitespace are stripped; anything else makes the EIN
    invalid so it can never be smuggled into a request path.

    Args:
        ein: EIN in XX-XXXXXXX or XXXXXXXXX format

    Returns:
        9-digit string without hyphen, or None if invalid
    """
    if not ein:
        return None
    digits = strip_ein(ein)
    if not _NINE_DIGITS.match(digits):
        return None
    return digits


def is_valid_ein(ein: str) -> bool:
    """Check if EIN is exactly 9 digits once separators are removed."""
    return ein_to_digits(ein) is not None


def validate_and_format(ein: Optional[str]) -> Tuple[bool, Optional[str], Optional[str]]:
    """
    Validate EIN and return formatted version with error message.

    Args:
        ein: EIN to validate

    Returns:
        Tuple of (is_valid, formatted_ein, error_message)

    Examples:
        >>> validate_and_format("123456789")
        (True, '12-3456789', None)
        >>> validate_and_format("12345")
        (False, None, 'Invalid EIN format: expected 9 digits (got 5)')
    """
    if not ein or not str(ein).strip():
        return False, None, "EIN parameter is required"

    digits = ein_to_digits(str(ein).strip())
    if digits is None:
        count = len(re.sub(r"\D", "", str(ein)))
        return False, None, f"Invalid EIN format: expected 9 digits (got {count})"

    return True, format_ein(digits), None
