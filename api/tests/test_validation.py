from __future__ import annotations

from decimal import Decimal

import pytest

from social_analyzer.errors import OutOfRange
from social_analyzer.validation import (
    round_average,
    to_decimal,
    validate_engagement,
    validate_file_size,
    validate_sentiment,
)


@pytest.mark.parametrize(
    "value,expected",
    [
        (0.1, Decimal("0.1")),
        ("  0.25 ", Decimal("0.25")),
        (3, Decimal("3")),
        (Decimal("1.5"), Decimal("1.5")),
        (True, None),
        ("abc", None),
        (float("nan"), None),
        (float("-inf"), None),
    ],
)
def test_to_decimal(value, expected):
    assert to_decimal(value) == expected


def test_sentiment_rounds_half_up():
    assert validate_sentiment(0.125) == Decimal("0.13")
    assert validate_sentiment("-0.125") == Decimal("-0.13")
    assert validate_sentiment(-1) == Decimal("-1.00")


def test_bound_check_happens_before_rounding():
    with pytest.raises(OutOfRange) as excinfo:
        validate_sentiment("1.004")
    assert excinfo.value.field == "sentiment"

    with pytest.raises(OutOfRange):
        validate_engagement("-0.001")


def test_engagement_upper_bound():
    assert validate_engagement(100) == Decimal("100.00")
    with pytest.raises(OutOfRange):
        validate_engagement(100.01)


def test_file_size():
    assert validate_file_size(None) is None
    assert validate_file_size(0) == 0
    assert validate_file_size(2_147_483_647) == 2_147_483_647
    with pytest.raises(OutOfRange):
        validate_file_size(-5)
    with pytest.raises(OutOfRange):
        validate_file_size(2_147_483_648)


def test_round_average():
    assert round_average(None) is None
    assert round_average(0.125) == Decimal("0.13")
    assert round_average(Decimal("33.3333333")) == Decimal("33.33")
