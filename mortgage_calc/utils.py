"""Utility functions for the mortgage calculator.

This module provides helpers for parsing user input into Python data types
and the small property/deposit conversions the input form performs before a
loan amount is known.
"""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, getcontext
from typing import Optional

getcontext().prec = 28  # increase decimal precision to avoid rounding errors


def parse_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` string into a ``date`` object.

    Raises
    ------
    ValueError
        If the string is not a valid ISO date.
    """
    try:
        return date.fromisoformat(value.strip())
    except (AttributeError, ValueError) as exc:
        raise ValueError(f"Invalid date string: {value}") from exc


def decimal_from_str(value: str) -> Decimal:
    """Convert a numeric string into a ``Decimal``.

    The function strips any commas and handles both integer and float-like
    strings. It raises ``ValueError`` if conversion fails or the value is not
    finite.
    """
    try:
        result = Decimal(str(value).strip().replace(",", ""))
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc
    if not result.is_finite():
        raise ValueError(f"Invalid numeric value: {value}")
    return result


def parse_amount(value: str) -> Decimal:
    """Parse a money amount with optional ``k``/``m`` suffixes.

    Accepts plain numbers ("500000") and shorthand such as "500k" meaning
    500 000.
    """
    text = str(value).strip().lower().replace(",", "")
    factor = Decimal(1)
    if text.endswith("k"):
        factor = Decimal(1_000)
        text = text[:-1]
    elif text.endswith("m"):
        factor = Decimal(1_000_000)
        text = text[:-1]
    return decimal_from_str(text) * factor


def deposit_value_from_percentage(offer: Decimal, percentage: Decimal) -> Optional[Decimal]:
    """Return the deposit for ``percentage`` of ``offer``, rounded to whole units."""
    if offer > 0 and percentage > 0:
        return (offer * percentage / Decimal(100)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return None


def deposit_percentage_from_value(offer: Decimal, deposit: Decimal) -> Optional[Decimal]:
    """Return the deposit as a percentage of ``offer`` with one decimal place."""
    if offer > 0 and deposit > 0:
        return (deposit / offer * Decimal(100)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    return None


def loan_amount_from_property(loan_amount: Decimal, offer: Decimal, deposit: Decimal) -> Decimal:
    """Return the financed amount.

    When both the property offer and the deposit are set the loan amount is
    ``offer - deposit``; otherwise the entered loan amount is used. The result
    is never negative.
    """
    if offer > 0 and deposit > 0:
        loan_amount = offer - deposit
    return max(Decimal("0"), loan_amount)
