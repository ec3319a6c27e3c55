from datetime import date
from decimal import Decimal

import pytest

from mortgage_calc.utils import (
    decimal_from_str,
    deposit_percentage_from_value,
    deposit_value_from_percentage,
    loan_amount_from_property,
    parse_amount,
    parse_date,
)


def test_parse_date():
    assert parse_date(" 2024-02-29 ") == date(2024, 2, 29)
    with pytest.raises(ValueError):
        parse_date("2024-02-30")


@pytest.mark.parametrize(
    "text, expected",
    [("500000", Decimal("500000")), ("500k", Decimal("500000")), ("1.2m", Decimal("1200000")), ("1,250.50", Decimal("1250.50"))],
)
def test_parse_amount(text, expected):
    assert parse_amount(text) == expected


@pytest.mark.parametrize("text", ["abc", "NaN", "Infinity", ""])
def test_decimal_from_str_rejects_non_numbers(text):
    with pytest.raises(ValueError):
        decimal_from_str(text)


def test_deposit_conversions():
    assert deposit_value_from_percentage(Decimal("333333"), Decimal("10")) == Decimal("33333")
    assert deposit_percentage_from_value(Decimal("300000"), Decimal("50000")) == Decimal("16.7")
    assert deposit_value_from_percentage(Decimal("0"), Decimal("10")) is None
    assert deposit_percentage_from_value(Decimal("300000"), Decimal("0")) is None


def test_loan_amount_from_property():
    assert loan_amount_from_property(Decimal("1"), Decimal("400000"), Decimal("80000")) == Decimal("320000")
    assert loan_amount_from_property(Decimal("250000"), Decimal("400000"), Decimal("0")) == Decimal("250000")
    assert loan_amount_from_property(Decimal("1"), Decimal("50000"), Decimal("80000")) == Decimal("0")
