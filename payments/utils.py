"""Amount, timestamp and correlation id helpers."""

import re
from datetime import timezone as dt_timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from django.utils import timezone

CORRELATION_ID_PATTERN = re.compile(
    r'\A[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}\Z',
    re.IGNORECASE,
)

CENT = Decimal('0.01')


def _to_decimal(value):
    """Convert user supplied numbers to Decimal without float artifacts."""
    if isinstance(value, bool):
        raise ValueError(f"Invalid amount: {value!r}")
    if isinstance(value, Decimal):
        number = value
    else:
        # str() of a float is its shortest repr, so 19.995 stays 19.995
        try:
            number = Decimal(str(value).strip())
        except (InvalidOperation, TypeError):
            raise ValueError(f"Invalid amount: {value!r}")
    if not number.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    return number


def to_cents(dollars):
    """
    Convert a dollar amount to integer cents.

    Rounds half away from zero, so 19.995 becomes 2000 and 19.994 becomes 1999.

    Args:
        dollars: int, float, str or Decimal amount in dollars

    Returns:
        int: Amount in cents

    Raises:
        ValueError: If the value is not a finite number
    """
    cents = (_to_decimal(dollars) * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP)
    return int(cents)


def to_dollars(cents):
    """Convert integer cents to a two-place Decimal dollar amount."""
    return (Decimal(int(cents)) / 100).quantize(CENT)


def format_amount(cents):
    """Format cents as a currency string, e.g. 1990 -> '$19.90'."""
    if cents is None:
        return '$0.00'
    return f"${to_dollars(cents)}"


def iso_timestamp(value=None):
    """Return an ISO-8601 UTC timestamp with millisecond precision."""
    value = value or timezone.now()
    if timezone.is_naive(value):
        value = timezone.make_aware(value, dt_timezone.utc)
    value = value.astimezone(dt_timezone.utc)
    return value.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def normalize_correlation_id(value):
    """Strip surrounding whitespace; the id is otherwise kept exactly as sent."""
    if value is None:
        return ''
    return str(value).strip()


def is_valid_correlation_id(value):
    return bool(value) and CORRELATION_ID_PATTERN.match(str(value)) is not None
