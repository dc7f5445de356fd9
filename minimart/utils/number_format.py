"""Number parsing utilities for stored and submitted values."""
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENTS = Decimal('0.01')
PHONE_PATTERN = re.compile(r"^0\d{8,9}$")
PIN_PATTERN = re.compile(r"^\d{4}$")


def parse_decimal(value, default=None):
    """
    Parse a money or price value to Decimal.

    Accepts Decimal, int, float and numeric strings (stored documents keep
    money as strings, older backups as JSON numbers). Floats go through str()
    so 6.1 stays 6.1.

    Raises:
        ValueError: if the value is not numeric and no default is given.
    """
    if value is None or value == '':
        if default is not None:
            return default
        raise ValueError('Invalid number')
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError('Invalid number')
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        if default is not None:
            return default
        raise ValueError(f'Invalid number: {value!r}')


def parse_optional_decimal(value):
    """Like parse_decimal but missing values stay None."""
    if value is None or value == '':
        return None
    return parse_decimal(value)


def parse_int(value, default=0) -> int:
    """Parse an integer quantity; floats and numeric strings are truncated."""
    if value is None or value == '':
        return default
    try:
        return int(Decimal(str(value).strip()))
    except (InvalidOperation, ValueError):
        return default


def parse_optional_int(value):
    if value is None or value == '':
        return None
    return parse_int(value)


def money(value: Decimal) -> Decimal:
    """Quantize to cents."""
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def money_str(value):
    """Serialize money for storage; None stays None."""
    if value is None:
        return None
    return str(value)
