"""Output helpers for the mortgage calculator.

This module provides simple functions to render amortization schedules,
summaries and yearly chart series in a tabular text format, plus the
JSON-ready conversions the exports and the web API share.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

import click

from .chart_data import YearlySeries, net_worth, yearly_balances, yearly_net_worth
from .data_models import CalculationResult, LoanInputs, ScheduleEntry, Summary


def format_currency(amount: Decimal) -> str:
    return f"${amount:,.2f}"


def entry_to_dict(entry: ScheduleEntry, inputs: Optional[LoanInputs] = None) -> Dict[str, Any]:
    """Convert a schedule entry into a JSON-serialisable dictionary."""
    data: Dict[str, Any] = {
        "payment_number": entry.payment_number,
        "date": entry.date.isoformat(),
        "beginning_balance": float(entry.beginning_balance),
        "scheduled_payment": float(entry.scheduled_payment),
        "extra_payment": float(entry.extra_payment),
        "total_payment": float(entry.total_payment),
        "principal": float(entry.principal),
        "interest": float(entry.interest),
        "ending_balance": float(entry.ending_balance),
        "cumulative_interest": float(entry.cumulative_interest),
        "extra_payment_details": list(entry.extra_payment_details),
        "lump_sum": entry.lump_sum,
    }
    if inputs is not None:
        worth = net_worth(entry, inputs)
        if worth is not None:
            data["net_worth"] = float(worth)
    return data


def summary_to_dict(summary: Summary) -> Dict[str, Any]:
    time_saved = summary.time_saved
    return {
        "scheduled_payment": float(summary.scheduled_payment),
        "contractual_payment_count": summary.contractual_payment_count,
        "actual_payment_count": summary.actual_payment_count,
        "total_extra_paid": float(summary.total_extra_paid),
        "total_interest": float(summary.total_interest),
        "total_paid": float(summary.total_paid),
        "baseline_total_interest": float(summary.baseline_total_interest),
        "interest_saved": float(summary.interest_saved),
        "payoff_date": summary.payoff_date.isoformat() if summary.payoff_date else None,
        "baseline_payoff_date": summary.baseline_payoff_date.isoformat() if summary.baseline_payoff_date else None,
        "time_saved": (
            {"years": time_saved.years, "months": time_saved.months, "days": time_saved.days, "text": time_saved.describe()}
            if time_saved
            else None
        ),
    }


def series_to_dict(series: YearlySeries) -> Dict[str, Any]:
    return {"labels": series.labels, "values": [float(v) for v in series.values]}


def chart_payload(result: CalculationResult) -> Dict[str, Any]:
    """Return the yearly balance (and net worth) series with and without extras."""
    inputs = result.inputs
    payload: Dict[str, Any] = {
        "balance": series_to_dict(yearly_balances(result.schedule, inputs)),
        "balance_without_extra": series_to_dict(yearly_balances(result.baseline_schedule, inputs)),
    }
    if inputs.property_value > 0:
        payload["net_worth"] = series_to_dict(yearly_net_worth(result.schedule, inputs))
        payload["net_worth_without_extra"] = series_to_dict(yearly_net_worth(result.baseline_schedule, inputs))
    return payload


def print_summary(summary: Summary) -> None:
    """Print a summary of loan metrics in a human-readable format."""
    click.echo("Summary")
    click.echo("-" * 72)
    click.echo(f"Scheduled payment  : {format_currency(summary.scheduled_payment)}")
    click.echo(f"Scheduled payments : {summary.contractual_payment_count}")
    click.echo(f"Actual payments    : {summary.actual_payment_count}")
    click.echo(f"Total extra paid   : {format_currency(summary.total_extra_paid)}")
    click.echo(f"Total interest     : {format_currency(summary.total_interest)}")
    click.echo(f"Total paid         : {format_currency(summary.total_paid)}")
    click.echo(f"Interest saved     : {format_currency(summary.interest_saved)}")
    if summary.baseline_payoff_date:
        click.echo(f"Last payment date  : {summary.baseline_payoff_date:%B %d, %Y}")
    # The early payoff date only means something when extras were paid.
    if summary.time_saved and summary.payoff_date:
        click.echo(f"Early payoff date  : {summary.payoff_date:%B %d, %Y}")
        click.echo(f"Time saved         : {summary.time_saved.describe()} earlier")
    click.echo("-" * 72)


def print_schedule(schedule: Iterable[ScheduleEntry], inputs: Optional[LoanInputs] = None) -> None:
    """Print the amortization schedule as a simple table.

    A ``NetWorth`` column is added when ``inputs`` carries a property value.
    """
    show_net_worth = inputs is not None and inputs.property_value > 0
    headers = [
        "No",
        "Date",
        "StartBal",
        "Scheduled",
        "Extra",
        "Total",
        "Principal",
        "Interest",
        "EndBal",
        "CumInterest",
    ]
    if show_net_worth:
        headers.append("NetWorth")
    click.echo("\t".join(headers))
    for entry in schedule:
        row = [
            str(entry.payment_number),
            entry.date.isoformat(),
            f"{entry.beginning_balance:.2f}",
            f"{entry.scheduled_payment:.2f}",
            f"+{entry.extra_payment:.2f}" if entry.extra_payment > 0 else f"{entry.extra_payment:.2f}",
            f"{entry.total_payment:.2f}",
            f"{entry.principal:.2f}",
            f"{entry.interest:.2f}",
            f"{entry.ending_balance:.2f}",
            f"{entry.cumulative_interest:.2f}",
        ]
        if show_net_worth:
            row.append(f"{net_worth(entry, inputs):.2f}")
        click.echo("\t".join(row))


def print_series(title: str, series: YearlySeries, baseline: Optional[YearlySeries] = None) -> None:
    """Print a yearly series, optionally next to its baseline."""
    click.echo(title)
    click.echo("=" * 72)
    if baseline is None:
        click.echo(f"{'Year':8s} {'Value':>15s}")
        for label, value in zip(series.labels, series.values):
            click.echo(f"{label:8s} {value:15.2f}")
    else:
        click.echo(f"{'Year':8s} {'With extra':>15s} {'Without extra':>15s}")
        labels: List[str] = list(dict.fromkeys(series.labels + baseline.labels))
        with_extra = dict(zip(series.labels, series.values))
        without_extra = dict(zip(baseline.labels, baseline.values))
        for label in labels:
            first = f"{with_extra[label]:15.2f}" if label in with_extra else f"{'':15s}"
            second = f"{without_extra[label]:15.2f}" if label in without_extra else f"{'':15s}"
            click.echo(f"{label:8s} {first} {second}")
    click.echo("=" * 72)
