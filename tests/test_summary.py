from datetime import date
from decimal import Decimal

from mortgage_calc.data_models import LumpSumPayment, RecurringPayment, TimeSaved
from mortgage_calc.engine import calculate_mortgage
from mortgage_calc.summary import calculate_summary, time_difference


def test_time_difference_years_and_months():
    saved = time_difference(date(2024, 1, 1), date(2026, 4, 1))

    assert saved == TimeSaved(days=821, years=2, months=3)
    assert saved.describe() == "2 years 3 months"


def test_time_difference_is_symmetric():
    assert time_difference(date(2026, 4, 1), date(2024, 1, 1)) == time_difference(date(2024, 1, 1), date(2026, 4, 1))


def test_time_saved_descriptions():
    assert TimeSaved(days=365, years=1, months=0).describe() == "1 year"
    assert TimeSaved(days=31, years=0, months=1).describe() == "1 month"
    assert TimeSaved(days=10, years=0, months=0).describe() == "Less than 1 month"


def test_summary_of_empty_schedules(make_inputs):
    summary = calculate_summary([], [], make_inputs(), Decimal("1000"))

    assert summary.total_interest == 0
    assert summary.total_paid == Decimal("300000")
    assert summary.payoff_date is None
    assert summary.time_saved is None


def test_summary_without_extras(make_inputs):
    summary = calculate_mortgage(make_inputs()).summary

    assert summary.contractual_payment_count == 360
    assert summary.actual_payment_count == 360
    assert summary.total_extra_paid == 0
    assert summary.interest_saved == 0
    assert summary.payoff_date == summary.baseline_payoff_date
    assert summary.time_saved is None
    assert summary.total_paid == Decimal("300000") + summary.total_interest


def test_summary_with_recurring_extra(make_inputs):
    result = calculate_mortgage(make_inputs(extra_payments=[RecurringPayment(amount=Decimal("200"))]))
    summary = result.summary

    assert summary.total_interest == result.schedule[-1].cumulative_interest
    assert summary.total_extra_paid == sum(entry.extra_payment for entry in result.schedule)
    assert summary.total_paid == Decimal("300000") + summary.total_interest + summary.total_extra_paid
    assert summary.interest_saved == summary.baseline_total_interest - summary.total_interest
    assert summary.payoff_date < summary.baseline_payoff_date
    assert summary.time_saved == time_difference(summary.payoff_date, summary.baseline_payoff_date)
    assert summary.time_saved.years > 0


def test_summary_counts_lump_sums_as_extra(make_inputs):
    result = calculate_mortgage(
        make_inputs(extra_payments=[LumpSumPayment(amount=Decimal("10000"), date=date(2024, 2, 15))])
    )

    assert result.summary.total_extra_paid == Decimal("10000")
    assert result.summary.actual_payment_count == len(result.schedule)
    assert result.summary.scheduled_payment == result.scheduled_payment


def test_contractual_count_rounds_up(make_inputs):
    summary = calculate_mortgage(make_inputs(loan_amount=Decimal("10000"), term_years=Decimal("0.3"))).summary

    assert summary.contractual_payment_count == 4
    assert summary.actual_payment_count == 3
