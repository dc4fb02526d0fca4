"""Input validation for scores and entity fields."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from . import settings
from .errors import OutOfRange

Number = Union[int, float, str, Decimal]

TWO_PLACES = Decimal("0.01")

SENTIMENT_MIN = Decimal("-1.00")
SENTIMENT_MAX = Decimal("1.00")
ENGAGEMENT_MIN = Decimal("0.00")
ENGAGEMENT_MAX = Decimal("100.00")

MAX_USERNAME_LENGTH = 50
MAX_EMAIL_LENGTH = 100
MAX_TAG_NAME_LENGTH = 50

# posts.file_size is a 32-bit INTEGER
MAX_FILE_SIZE = 2_147_483_647


def to_decimal(value: Number) -> Decimal | None:
    """Convert a score to Decimal, or None if it is not a finite number."""
    if isinstance(value, bool):
        return None
    try:
        # str() avoids binary float artifacts (0.1 -> 0.1000000000000000055...)
        result = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return result if result.is_finite() else None


def bounded_score(field: str, value: Number, low: Decimal, high: Decimal) -> Decimal:
    """
    Check a score against its inclusive bounds and quantize it to 2 places.

    The bound check runs on the value as given, so 1.004 is rejected for a
    [-1, 1] score instead of being rounded into range.
    """
    score = to_decimal(value)
    if score is None or score < low or score > high:
        raise OutOfRange(field, value, low, high)
    return score.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def validate_sentiment(value: Number) -> Decimal:
    return bounded_score("sentiment", value, SENTIMENT_MIN, SENTIMENT_MAX)


def validate_engagement(value: Number) -> Decimal:
    return bounded_score("engagement", value, ENGAGEMENT_MIN, ENGAGEMENT_MAX)


def validate_readability(value: Number) -> Decimal:
    return bounded_score(
        "readability", value, settings.READABILITY_MIN, settings.READABILITY_MAX
    )


def validate_file_size(value: int | None) -> int | None:
    if value is None:
        return None
    if value < 0 or value > MAX_FILE_SIZE:
        raise OutOfRange("file_size", value, 0, MAX_FILE_SIZE)
    return value


def round_average(value: object) -> Decimal | None:
    """Round an AVG() result (float or Decimal depending on the dialect) to 2 places."""
    if value is None:
        return None
    return Decimal(str(value)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
