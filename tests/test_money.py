from decimal import Decimal

import pytest

from core.exceptions import InvalidAmount
from core.utils.money import money, parse_amount


@pytest.mark.parametrize("value, expected", [
    ("700", Decimal("700.00")),
    (" 12.5 ", Decimal("12.50")),
    (Decimal("0.01"), Decimal("0.01")),
    (100, Decimal("100.00")),
    (99.99, Decimal("99.99")),
])
def test_parse_amount_accepts(value, expected):
    assert parse_amount(value) == expected


@pytest.mark.parametrize("value", [
    None, True, False, "", "abc", "NaN", "Infinity", 0, "0.00", -5, "-0.01", "10.005",
])
def test_parse_amount_rejects(value):
    with pytest.raises(InvalidAmount):
        parse_amount(value)


def test_money_rounds_half_up():
    assert money("2.345") == Decimal("2.35")
    assert money(None) == Decimal("0.00")
