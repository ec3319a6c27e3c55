"""Chart series derived from a schedule.

The balance and net worth charts show one point per year: the balance at the
start of each year while the loan runs, the final balance in the payoff year
and a flat line (zero balance, full property value) afterwards.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from .data_models import LoanInputs, ScheduleEntry


@dataclass(frozen=True)
class YearlySeries:
    labels: List[str]
    values: List[Decimal]


def _sample_yearly(schedule: List[ScheduleEntry], inputs: LoanInputs) -> List[tuple]:
    """Return ``(label, balance, paid_off)`` points, one per year."""
    per_year = inputs.payments_per_year
    total_years = math.ceil(len(schedule) / per_year)
    # Points run to the later of the payoff year and the loan term, which may be fractional.
    last_year = math.floor(max(Decimal(total_years), inputs.term_years))
    start_year = schedule[0].date.year if schedule else inputs.start_date.year

    points = []
    for year in range(last_year + 1):
        index = year * per_year
        label = str(start_year + year)
        if index < len(schedule):
            points.append((label, schedule[index].beginning_balance, False))
        elif year == total_years and schedule:
            points.append((label, schedule[-1].ending_balance, False))
        elif year > total_years and schedule:
            points.append((label, Decimal("0"), True))
    return points


def yearly_balances(schedule: List[ScheduleEntry], inputs: LoanInputs) -> YearlySeries:
    points = _sample_yearly(schedule, inputs)
    return YearlySeries(labels=[p[0] for p in points], values=[p[1] for p in points])


def yearly_net_worth(schedule: List[ScheduleEntry], inputs: LoanInputs) -> YearlySeries:
    """Property equity per year: property value minus balance, never negative."""
    labels = []
    values = []
    for label, balance, paid_off in _sample_yearly(schedule, inputs):
        labels.append(label)
        if paid_off:
            values.append(inputs.property_value)
        else:
            values.append(max(Decimal("0"), inputs.property_value - balance))
    return YearlySeries(labels=labels, values=values)


def net_worth(entry: ScheduleEntry, inputs: LoanInputs) -> Optional[Decimal]:
    """Equity after ``entry``, or None when no property value was given."""
    if inputs.property_value <= 0:
        return None
    return max(Decimal("0"), inputs.property_value - entry.ending_balance)
