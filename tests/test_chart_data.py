from decimal import Decimal

from mortgage_calc.chart_data import net_worth, yearly_balances, yearly_net_worth
from mortgage_calc.data_models import CustomTotalPayment, RecurringPayment
from mortgage_calc.engine import generate_schedule


def test_yearly_balances_samples_start_of_each_year(make_inputs):
    inputs = make_inputs(loan_amount=Decimal("12000"), term_years=Decimal("2"))
    schedule = generate_schedule(inputs)
    series = yearly_balances(schedule, inputs)

    assert len(schedule) == 24
    assert series.labels == ["2024", "2025", "2026"]
    assert series.values[0] == Decimal("12000")
    assert series.values[1] == schedule[12].beginning_balance
    assert series.values[2] == schedule[-1].ending_balance


def test_yearly_balances_flat_after_early_payoff(make_inputs):
    inputs = make_inputs(
        loan_amount=Decimal("12000"),
        term_years=Decimal("3"),
        extra_payments=[CustomTotalPayment(total_per_payment=Decimal("2000"))],
    )
    schedule = generate_schedule(inputs)
    series = yearly_balances(schedule, inputs)

    assert len(schedule) < 12
    assert series.labels == ["2024", "2025", "2026", "2027"]
    assert series.values == [Decimal("12000"), schedule[-1].ending_balance, Decimal("0"), Decimal("0")]


def test_yearly_net_worth(make_inputs):
    inputs = make_inputs(
        loan_amount=Decimal("12000"),
        term_years=Decimal("3"),
        property_value=Decimal("20000"),
        extra_payments=[CustomTotalPayment(total_per_payment=Decimal("2000"))],
    )
    schedule = generate_schedule(inputs)
    series = yearly_net_worth(schedule, inputs)

    assert series.values[0] == Decimal("8000")
    assert series.values[2:] == [Decimal("20000"), Decimal("20000")]


def test_net_worth_never_negative(make_inputs):
    inputs = make_inputs(property_value=Decimal("1000"))
    entry = generate_schedule(inputs)[0]

    assert net_worth(entry, inputs) == 0


def test_net_worth_requires_property_value(make_inputs):
    inputs = make_inputs()

    assert net_worth(generate_schedule(inputs)[0], inputs) is None


def test_fractional_term_does_not_add_a_year(make_inputs):
    inputs = make_inputs(
        loan_amount=Decimal("10000"),
        term_years=Decimal("2.5"),
        extra_payments=[RecurringPayment(amount=Decimal("5000"))],
    )
    schedule = generate_schedule(inputs)
    series = yearly_balances(schedule, inputs)

    assert len(schedule) == 2
    assert series.labels == ["2024", "2025", "2026"]
    assert series.values == [Decimal("10000"), schedule[-1].ending_balance, Decimal("0")]
