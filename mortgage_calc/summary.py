"""Summary metrics for a generated schedule."""

from __future__ import annotations

import math
from datetime import date
from decimal import Decimal
from typing import List, Optional

from .data_models import LoanInputs, ScheduleEntry, Summary, TimeSaved


def total_interest(schedule: List[ScheduleEntry]) -> Decimal:
    return schedule[-1].cumulative_interest if schedule else Decimal("0")


def payoff_date(schedule: List[ScheduleEntry]) -> Optional[date]:
    return schedule[-1].date if schedule else None


def time_difference(first: date, second: date) -> TimeSaved:
    """Return the gap between two dates as whole years and months.

    A year is 365 days and a month 30 days, taken over the absolute gap.
    """
    days = abs((second - first).days)
    return TimeSaved(days=days, years=days // 365, months=(days % 365) // 30)


def calculate_summary(
    schedule: List[ScheduleEntry],
    baseline_schedule: List[ScheduleEntry],
    inputs: LoanInputs,
    scheduled_payment: Decimal,
) -> Summary:
    """Reduce a schedule and its baseline into aggregate metrics.

    ``time_saved`` is only reported when extra payments were actually made.
    """
    interest = total_interest(schedule)
    baseline_interest = total_interest(baseline_schedule)
    total_extra = sum((entry.extra_payment for entry in schedule), Decimal("0"))

    end = payoff_date(schedule)
    baseline_end = payoff_date(baseline_schedule)
    time_saved = None
    if total_extra > 0 and end is not None and baseline_end is not None:
        time_saved = time_difference(end, baseline_end)

    return Summary(
        scheduled_payment=scheduled_payment,
        contractual_payment_count=math.ceil(inputs.total_periods),
        actual_payment_count=len(schedule),
        total_extra_paid=total_extra,
        total_interest=interest,
        total_paid=inputs.loan_amount + interest + total_extra,
        baseline_total_interest=baseline_interest,
        interest_saved=baseline_interest - interest,
        payoff_date=end,
        baseline_payoff_date=baseline_end,
        time_saved=time_saved,
    )
