"""Core calculation engine for the mortgage calculator.

This module implements the financial logic required to build amortization
schedules for fixed-payment loans. It supports recurring extra payments, a
custom total payment per period and one-off lump sums on specific dates.
Results are returned as a list of ``ScheduleEntry`` objects; the
``calculate_mortgage`` entry point also runs the baseline schedule and the
summary.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal, getcontext
from typing import Iterator, List, Optional, Tuple

from .data_models import (
    ACCRUAL_MONTHLY,
    ACCRUAL_YEARLY,
    PAYOFF_EPSILON,
    CalculationResult,
    LoanInputs,
    ScheduleEntry,
)
from .errors import ComputationError
from .plan import ExtraPaymentPlan, LumpSumEvent, check_conflicts
from .summary import calculate_summary

getcontext().prec = 28  # increase precision for financial calculations

logger = logging.getLogger(__name__)

# Upper bound on term_years * payments_per_year (100 years of weekly payments).
MAX_TOTAL_PERIODS = Decimal(5200)

# Calendar days between periodic payments; a month is 30 days, a year 365.
PERIOD_STEP_DAYS = {52: 7, 26: 14, 12: 30, 1: 365}
DEFAULT_PERIOD_STEP_DAYS = 30


def periodic_rate(annual_rate_percent: Decimal, payments_per_year: int) -> Decimal:
    """Return the interest rate per payment period.

    Weekly, fortnightly and monthly frequencies divide the annual rate by the
    frequency, yearly payments use the annual rate as is. Any other frequency
    falls back to the monthly divisor.
    """
    annual_rate = Decimal(annual_rate_percent) / Decimal(100)
    if payments_per_year in (52, 26, 12):
        return annual_rate / Decimal(payments_per_year)
    if payments_per_year == 1:
        return annual_rate
    return annual_rate / Decimal(12)


def accrued_rate_for_days(annual_rate_percent: Decimal, accrual_mode: str, days: int) -> Decimal:
    """Return the interest fraction accrued over ``days`` calendar days.

    Used for lump sum rows. ``monthly`` counts a month as 30 days; unknown
    modes accrue daily.
    """
    annual_rate = Decimal(annual_rate_percent) / Decimal(100)
    days = Decimal(days)
    if accrual_mode == ACCRUAL_MONTHLY:
        return (annual_rate / Decimal(12)) * (days / Decimal(30))
    if accrual_mode == ACCRUAL_YEARLY:
        return annual_rate * (days / Decimal(365))
    return (annual_rate / Decimal(365)) * days


def period_step_days(payments_per_year: int) -> int:
    return PERIOD_STEP_DAYS.get(payments_per_year, DEFAULT_PERIOD_STEP_DAYS)


def calculate_payment_amount(principal: Decimal, rate_per_period: Decimal, total_periods: Decimal) -> Decimal:
    """Return the fixed payment that fully amortizes a loan.

    The formula is:

        payment = P * (i * (1 + i)^n) / ((1 + i)^n - 1)

    where ``P`` is the principal, ``i`` is the periodic interest rate and
    ``n`` is the number of periods (which need not be an integer). When the
    interest rate is zero, the payment simplifies to ``P / n``.
    """
    total_periods = Decimal(total_periods)
    if total_periods <= 0:
        raise ComputationError("Total number of periods must be positive", total_periods=str(total_periods))
    if rate_per_period == 0:
        return principal / total_periods
    factor = (1 + rate_per_period) ** total_periods
    return principal * (rate_per_period * factor) / (factor - 1)


def _check_computable(inputs: LoanInputs) -> None:
    if inputs.loan_amount <= 0:
        raise ComputationError("Loan amount must be positive", loan_amount=str(inputs.loan_amount))
    total_periods = inputs.total_periods
    if total_periods <= 0:
        raise ComputationError("Total number of periods must be positive", total_periods=str(total_periods))
    if total_periods > MAX_TOTAL_PERIODS:
        raise ComputationError(
            f"Total number of periods must not exceed {MAX_TOTAL_PERIODS}",
            total_periods=str(total_periods),
        )


def periodic_dates(inputs: LoanInputs) -> Iterator[date]:
    """Yield the dates of the contractual periodic payments."""
    step = period_step_days(inputs.payments_per_year)
    total_periods = inputs.total_periods
    number = 1
    while number <= total_periods:
        yield inputs.first_payment_date + timedelta(days=(number - 1) * step)
        number += 1


def _periodic_entry(
    number: int,
    when: date,
    balance: Decimal,
    rate: Decimal,
    plan: ExtraPaymentPlan,
    cumulative_interest: Decimal,
) -> ScheduleEntry:
    scheduled = plan.scheduled_payment
    interest = balance * rate
    extra, details = plan.extra_for_period()
    total = scheduled + extra
    principal = total - interest
    row_scheduled = scheduled

    # Principal cannot exceed the remaining balance.
    if principal > balance:
        principal = balance
        total = principal + interest
        extra = max(Decimal("0"), total - scheduled)
        details = [f"Adjusted Extra: +${extra:.2f}"] if extra > 0 else []
        if extra == 0:
            row_scheduled = total

    return ScheduleEntry(
        payment_number=number,
        date=when,
        beginning_balance=balance,
        scheduled_payment=row_scheduled,
        extra_payment=extra,
        total_payment=total,
        principal=principal,
        interest=interest,
        ending_balance=balance - principal,
        cumulative_interest=cumulative_interest + interest,
        extra_payment_details=tuple(details),
    )


def _lump_sum_entry(
    number: int,
    event: LumpSumEvent,
    balance: Decimal,
    previous_date: date,
    inputs: LoanInputs,
    cumulative_interest: Decimal,
) -> ScheduleEntry:
    days = (event.date - previous_date).days
    interest = balance * accrued_rate_for_days(inputs.annual_rate_percent, inputs.accrual_mode, days)
    total = event.amount
    principal = total - interest
    if principal > balance:
        principal = balance

    return ScheduleEntry(
        payment_number=number,
        date=event.date,
        beginning_balance=balance,
        scheduled_payment=Decimal("0"),
        extra_payment=total,
        total_payment=total,
        principal=principal,
        interest=interest,
        ending_balance=balance - principal,
        cumulative_interest=cumulative_interest + interest,
        extra_payment_details=(f"Lump Sum: +${event.amount:.2f}",),
        lump_sum=True,
    )


def _generate_periodic(inputs: LoanInputs, rate: Decimal, plan: ExtraPaymentPlan) -> List[ScheduleEntry]:
    schedule: List[ScheduleEntry] = []
    balance = inputs.loan_amount
    cumulative_interest = Decimal("0")
    for number, when in enumerate(periodic_dates(inputs), start=1):
        if balance <= PAYOFF_EPSILON:
            break
        entry = _periodic_entry(number, when, balance, rate, plan, cumulative_interest)
        schedule.append(entry)
        balance = entry.ending_balance
        cumulative_interest = entry.cumulative_interest
    return schedule


def _generate_merged(inputs: LoanInputs, rate: Decimal, plan: ExtraPaymentPlan) -> List[ScheduleEntry]:
    """Replay periodic payments and lump sums in date order.

    Periodic events come first in the list, so on equal dates the stable sort
    keeps a periodic payment ahead of a lump sum.
    """
    events: List[Tuple[date, Optional[LumpSumEvent]]] = [(when, None) for when in periodic_dates(inputs)]
    events.extend((event.date, event) for event in plan.lump_sums)
    events.sort(key=lambda item: item[0])

    schedule: List[ScheduleEntry] = []
    balance = inputs.loan_amount
    cumulative_interest = Decimal("0")
    for when, lump_sum in events:
        if balance <= PAYOFF_EPSILON:
            break
        number = len(schedule) + 1
        if lump_sum is None:
            entry = _periodic_entry(number, when, balance, rate, plan, cumulative_interest)
        else:
            previous_date = schedule[-1].date if schedule else inputs.start_date
            entry = _lump_sum_entry(number, lump_sum, balance, previous_date, inputs, cumulative_interest)
        schedule.append(entry)
        balance = entry.ending_balance
        cumulative_interest = entry.cumulative_interest
    return schedule


def generate_schedule(inputs: LoanInputs, scheduled_payment: Optional[Decimal] = None) -> List[ScheduleEntry]:
    """Generate the amortization schedule for ``inputs``.

    Parameters
    ----------
    inputs: LoanInputs
        The loan inputs, including any extra payments. Recurring and custom
        total payments are not checked for conflicts here; when both are
        present the custom totals win.
    scheduled_payment: Optional[Decimal]
        The scheduled payment to measure extras against. Computed from the
        inputs when omitted.

    Returns
    -------
    List[ScheduleEntry]
        Rows in payment order, ending when the balance is paid off or the
        contractual number of periods is reached.
    """
    _check_computable(inputs)
    rate = periodic_rate(inputs.annual_rate_percent, inputs.payments_per_year)
    if scheduled_payment is None:
        scheduled_payment = calculate_payment_amount(inputs.loan_amount, rate, inputs.total_periods)

    plan = ExtraPaymentPlan.from_intents(inputs.extra_payments, scheduled_payment)
    if plan.has_lump_sums:
        schedule = _generate_merged(inputs, rate, plan)
    else:
        schedule = _generate_periodic(inputs, rate, plan)

    logger.debug(
        "Generated schedule with %d rows (lump sums: %d, final balance: %s)",
        len(schedule),
        len(plan.lump_sums),
        schedule[-1].ending_balance if schedule else inputs.loan_amount,
    )
    return schedule


def calculate_mortgage(inputs: LoanInputs) -> CalculationResult:
    """Compute the schedule, the baseline schedule and the summary for a loan.

    Raises
    ------
    ConflictError
        If the extra payments mix recurring and custom total payments.
    ComputationError
        If the inputs cannot be amortized (non-positive amount or period count,
        or too many periods).
    """
    check_conflicts(inputs.extra_payments)
    _check_computable(inputs)

    rate = periodic_rate(inputs.annual_rate_percent, inputs.payments_per_year)
    scheduled_payment = calculate_payment_amount(inputs.loan_amount, rate, inputs.total_periods)

    schedule = generate_schedule(inputs, scheduled_payment)
    # The baseline is an independent run without any extra payments.
    baseline_schedule = generate_schedule(inputs.without_extra_payments(), scheduled_payment)

    summary = calculate_summary(schedule, baseline_schedule, inputs, scheduled_payment)
    logger.debug(
        "Calculated mortgage: %d of %d payments, interest saved %s",
        summary.actual_payment_count,
        summary.contractual_payment_count,
        summary.interest_saved,
    )
    return CalculationResult(
        inputs=inputs,
        scheduled_payment=scheduled_payment,
        schedule=schedule,
        baseline_schedule=baseline_schedule,
        summary=summary,
    )
