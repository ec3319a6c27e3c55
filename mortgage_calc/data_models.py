"""Data models for the mortgage calculator.

This module defines dataclasses representing the entities used by the
calculator: the loan inputs, the three kinds of extra payment, individual
schedule entries and the derived summary. All models are frozen.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple, Union

ACCRUAL_DAILY = "daily"
ACCRUAL_MONTHLY = "monthly"
ACCRUAL_YEARLY = "yearly"
ACCRUAL_MODES = (ACCRUAL_DAILY, ACCRUAL_MONTHLY, ACCRUAL_YEARLY)

PAYMENT_FREQUENCIES = (1, 12, 26, 52)

RECURRING = "recurring"
CUSTOM_TOTAL = "custom"
LUMP_SUM = "lump"
EXTRA_PAYMENT_TYPES = (RECURRING, CUSTOM_TOTAL, LUMP_SUM)

# Remaining balance at or below this amount counts as paid off.
PAYOFF_EPSILON = Decimal("0.01")


@dataclass(frozen=True)
class RecurringPayment:
    """An extra amount added to every periodic payment.

    Attributes
    ----------
    amount: Decimal
        Extra paid on top of the scheduled payment each period.
    occurrence_limit: Optional[int]
        Number of periods the extra applies to. ``None`` (or ``0``, as entered
        in the form) means every period until the loan is paid off.
    """

    amount: Decimal
    occurrence_limit: Optional[int] = None
    type: str = field(default=RECURRING, init=False)


@dataclass(frozen=True)
class CustomTotalPayment:
    """A fixed total paid each period instead of the scheduled payment.

    The difference between ``total_per_payment`` and the scheduled payment is
    applied as an extra payment.
    """

    total_per_payment: Decimal
    type: str = field(default=CUSTOM_TOTAL, init=False)


@dataclass(frozen=True)
class LumpSumPayment:
    """A one-off payment made on a specific date, outside the periodic cadence."""

    amount: Decimal
    date: date
    type: str = field(default=LUMP_SUM, init=False)


ExtraPaymentIntent = Union[RecurringPayment, CustomTotalPayment, LumpSumPayment]


@dataclass(frozen=True)
class LoanInputs:
    """All user inputs of a single calculation.

    ``loan_amount`` is the financed amount. The property fields are optional
    and only feed the net worth figures and the shareable state; the engine
    itself reads the loan fields and ``extra_payments``.
    """

    loan_amount: Decimal
    annual_rate_percent: Decimal
    term_years: Decimal
    start_date: date
    first_payment_date: date
    payments_per_year: int = 12
    accrual_mode: str = ACCRUAL_DAILY
    property_value: Decimal = Decimal("0")
    property_offer: Decimal = Decimal("0")
    deposit_percentage: Decimal = Decimal("0")
    deposit_value: Decimal = Decimal("0")
    extra_payments: Tuple[ExtraPaymentIntent, ...] = ()

    @property
    def total_periods(self) -> Decimal:
        """Contractual number of periods; may be fractional."""
        return self.term_years * Decimal(self.payments_per_year)

    def without_extra_payments(self) -> "LoanInputs":
        """Return a copy of these inputs with no extra payments."""
        return LoanInputs(
            loan_amount=self.loan_amount,
            annual_rate_percent=self.annual_rate_percent,
            term_years=self.term_years,
            start_date=self.start_date,
            first_payment_date=self.first_payment_date,
            payments_per_year=self.payments_per_year,
            accrual_mode=self.accrual_mode,
            property_value=self.property_value,
            property_offer=self.property_offer,
            deposit_percentage=self.deposit_percentage,
            deposit_value=self.deposit_value,
            extra_payments=(),
        )


@dataclass(frozen=True)
class ScheduleEntry:
    """One row of the amortization schedule.

    Periodic rows carry the scheduled payment plus any extra; lump sum rows
    have ``scheduled_payment`` equal to zero and report the whole lump amount
    as ``extra_payment``.
    """

    payment_number: int
    date: date
    beginning_balance: Decimal
    scheduled_payment: Decimal
    extra_payment: Decimal
    total_payment: Decimal
    principal: Decimal
    interest: Decimal
    ending_balance: Decimal
    cumulative_interest: Decimal
    extra_payment_details: Tuple[str, ...] = ()
    lump_sum: bool = False


@dataclass(frozen=True)
class TimeSaved:
    """Calendar gap between two payoff dates."""

    days: int
    years: int
    months: int

    def describe(self) -> str:
        parts = []
        if self.years > 0:
            parts.append(f"{self.years} year{'s' if self.years > 1 else ''}")
        if self.months > 0:
            parts.append(f"{self.months} month{'s' if self.months > 1 else ''}")
        if not parts:
            return "Less than 1 month"
        return " ".join(parts)


@dataclass(frozen=True)
class Summary:
    """Aggregate metrics of a schedule compared against its baseline."""

    scheduled_payment: Decimal
    contractual_payment_count: int
    actual_payment_count: int
    total_extra_paid: Decimal
    total_interest: Decimal
    total_paid: Decimal
    baseline_total_interest: Decimal
    interest_saved: Decimal
    payoff_date: Optional[date]
    baseline_payoff_date: Optional[date]
    time_saved: Optional[TimeSaved]


@dataclass(frozen=True)
class CalculationResult:
    """Everything a presentation layer needs from one calculation."""

    inputs: LoanInputs
    scheduled_payment: Decimal
    schedule: List[ScheduleEntry]
    baseline_schedule: List[ScheduleEntry]
    summary: Summary
