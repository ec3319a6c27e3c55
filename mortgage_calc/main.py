"""Command-line interface for the mortgage calculator.

This module uses the ``click`` library to implement a multi-command
interface. Users can compute full amortization schedules, view summaries,
print the yearly chart series or produce a share link query. Results can be
printed to the terminal or exported to JSON/CSV files.
"""

from __future__ import annotations

import csv
import functools
import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import click

from .data_models import ACCRUAL_MODES, CUSTOM_TOTAL, LUMP_SUM, RECURRING, CalculationResult
from .engine import calculate_mortgage
from .errors import CalculatorError, ConflictError, ValidationError
from .formatter import (
    chart_payload,
    entry_to_dict,
    print_schedule,
    print_series,
    print_summary,
    summary_to_dict,
)
from .chart_data import yearly_balances, yearly_net_worth
from .share import decode_state, encode_state
from .utils import parse_amount, parse_date
from .validation import build_inputs

logger = logging.getLogger(__name__)


def parse_recurring_strings(values: Tuple[str, ...]) -> List[Dict[str, Any]]:
    """Parse ``AMOUNT[:COUNT]`` recurring extra payments."""
    entries = []
    for item in values:
        parts = item.split(":")
        if len(parts) > 2:
            raise click.BadParameter(f"Recurring payment must be in AMOUNT[:COUNT] format; got {item}")
        try:
            amount = parse_amount(parts[0])
        except ValueError as exc:
            raise click.BadParameter(str(exc))
        count = parts[1] if len(parts) == 2 else None
        entries.append({"type": RECURRING, "amount": amount, "count": count})
    return entries


def parse_custom_total_strings(values: Tuple[str, ...]) -> List[Dict[str, Any]]:
    entries = []
    for item in values:
        try:
            total = parse_amount(item)
        except ValueError as exc:
            raise click.BadParameter(str(exc))
        entries.append({"type": CUSTOM_TOTAL, "custom_total": total})
    return entries


def parse_lump_strings(values: Tuple[str, ...]) -> List[Dict[str, Any]]:
    """Parse ``YYYY-MM-DD:AMOUNT`` lump sum payments."""
    entries = []
    for item in values:
        parts = item.split(":")
        if len(parts) != 2:
            raise click.BadParameter(f"Lump sum must be in YYYY-MM-DD:AMOUNT format; got {item}")
        when, amount_str = parts
        try:
            parse_date(when)
            amount = parse_amount(amount_str)
        except ValueError as exc:
            raise click.BadParameter(str(exc))
        entries.append({"type": LUMP_SUM, "amount": amount, "date": when})
    return entries


def build_raw_from_options(
    query: Optional[str],
    loan_amount: Optional[str],
    rate: Optional[str],
    accrual: Optional[str],
    term_years: Optional[str],
    frequency: Optional[str],
    start_date: Optional[str],
    first_payment_date: Optional[str],
    property_value: Optional[str],
    property_offer: Optional[str],
    deposit_value: Optional[str],
    deposit_percentage: Optional[str],
    recurring: Tuple[str, ...],
    custom_total: Tuple[str, ...],
    lump: Tuple[str, ...],
) -> Dict[str, Any]:
    """Merge a share query and explicit options into raw input fields.

    Explicit options override values from the query. Extra payment options
    replace the query's extra payments when any is given.
    """
    raw: Dict[str, Any] = decode_state(query) if query else {}
    amounts = {
        "loan_amount": loan_amount,
        "property_value": property_value,
        "property_offer": property_offer,
        "deposit_value": deposit_value,
    }
    for key, value in amounts.items():
        if value is not None:
            try:
                raw[key] = parse_amount(value)
            except ValueError as exc:
                raise click.BadParameter(str(exc), param_hint=f"--{key.replace('_', '-')}")
    plain = {
        "annual_rate_percent": rate,
        "accrual_mode": accrual,
        "term_years": term_years,
        "payments_per_year": frequency,
        "start_date": start_date,
        "first_payment_date": first_payment_date,
        "deposit_percentage": deposit_percentage,
    }
    for key, value in plain.items():
        if value is not None:
            raw[key] = value

    extra = parse_recurring_strings(recurring) + parse_custom_total_strings(custom_total) + parse_lump_strings(lump)
    if extra:
        raw["extra_payments"] = extra
    return raw


def calculate_from_raw(raw: Dict[str, Any]) -> CalculationResult:
    """Validate and calculate, turning input errors into CLI errors."""
    try:
        inputs = build_inputs(raw)
        return calculate_mortgage(inputs)
    except ValidationError as exc:
        lines = [exc.message] + [f"  {error['field']}: {error['message']}" for error in exc.errors]
        raise click.UsageError("\n".join(lines))
    except ConflictError as exc:
        raise click.UsageError(exc.message)
    except CalculatorError as exc:
        logger.error("Calculation failed: %s", exc.to_dict())
        raise click.ClickException(exc.message)


def loan_options(func: Callable) -> Callable:
    """Attach the loan input options shared by every command."""
    options = [
        click.option("--query", "-q", "query", help="Share link or query string to load inputs from"),
        click.option("--loan-amount", "-p", "loan_amount", help="Loan amount (accepts 500k / 1.2m)"),
        click.option("--rate", "-r", "rate", help="Annual interest rate (percent)"),
        click.option("--accrual", "accrual", type=click.Choice(ACCRUAL_MODES), help="Interest accrual for lump sums"),
        click.option("--term-years", "-t", "term_years", help="Loan period in years"),
        click.option("--frequency", "-f", "frequency", type=click.Choice(["1", "12", "26", "52"]), help="Payments per year"),
        click.option("--start-date", "-s", "start_date", help="Loan start date (YYYY-MM-DD)"),
        click.option("--first-payment-date", "first_payment_date", help="First payment date (YYYY-MM-DD)"),
        click.option("--property-value", "property_value", help="Property value for net worth figures"),
        click.option("--property-offer", "property_offer", help="Property offer; with --deposit-value sets the loan amount"),
        click.option("--deposit-value", "deposit_value", help="Deposit amount"),
        click.option("--deposit-percentage", "deposit_percentage", help="Deposit as a percentage of the offer"),
        click.option("--recurring", "recurring", multiple=True, help="Recurring extra payment in AMOUNT[:COUNT] format"),
        click.option("--custom-total", "custom_total", multiple=True, help="Custom total payment per period"),
        click.option("--lump", "lump", multiple=True, help="Lump sum in YYYY-MM-DD:AMOUNT format"),
    ]
    for option in reversed(options):
        func = option(func)

    @functools.wraps(func)
    def wrapper(**kwargs: Any) -> Any:
        loan_keys = (
            "query", "loan_amount", "rate", "accrual", "term_years", "frequency", "start_date",
            "first_payment_date", "property_value", "property_offer", "deposit_value",
            "deposit_percentage", "recurring", "custom_total", "lump",
        )
        loan_kwargs = {key: kwargs.pop(key) for key in loan_keys}
        raw = build_raw_from_options(**loan_kwargs)
        return func(raw=raw, **kwargs)

    return wrapper


def export_to_json(path: Path, result: CalculationResult) -> None:
    """Export schedule and summary to a JSON file."""
    data = {
        "summary": summary_to_dict(result.summary),
        "schedule": [entry_to_dict(e, result.inputs) for e in result.schedule],
        "share": encode_state(result.inputs),
    }
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, result: CalculationResult) -> None:
    """Export schedule to a CSV file."""
    header = [
        "Payment_Number",
        "Date",
        "Beginning_Balance",
        "Scheduled_Payment",
        "Extra_Payment",
        "Total_Payment",
        "Principal",
        "Interest",
        "Ending_Balance",
        "Cumulative_Interest",
        "Extra_Payment_Details",
    ]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for e in result.schedule:
            writer.writerow(
                [
                    e.payment_number,
                    e.date.isoformat(),
                    float(e.beginning_balance),
                    float(e.scheduled_payment),
                    float(e.extra_payment),
                    float(e.total_payment),
                    float(e.principal),
                    float(e.interest),
                    float(e.ending_balance),
                    float(e.cumulative_interest),
                    "; ".join(e.extra_payment_details),
                ]
            )


@click.group()
@click.option(
    "--log-level",
    "log_level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    envvar="MORTGAGE_CALC_LOG_LEVEL",
    help="Logging level",
)
def cli(log_level: str) -> None:
    """A command-line mortgage calculator with extra payment strategies."""
    logging.basicConfig(level=log_level.upper(), format="%(levelname)s %(name)s: %(message)s")


@cli.command()
@loan_options
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
@click.option("--max-rows", "max_rows", type=int, default=120, show_default=True, help="Rows to print (0 for all)")
def schedule(raw: Dict[str, Any], output: Optional[str], max_rows: int) -> None:
    """Compute and print the full amortization schedule."""
    result = calculate_from_raw(raw)
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, result)
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, result)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        click.echo(f"Schedule exported to {path}")
        return

    print_summary(result.summary)
    entries = result.schedule
    # Limit schedule length printed to avoid flooding the terminal
    if max_rows and len(entries) > max_rows:
        click.echo(f"Schedule has {len(entries)} rows; showing first {max_rows} rows.")
        entries = entries[:max_rows]
    print_schedule(entries, result.inputs)


@cli.command()
@loan_options
@click.option("--output", "output", type=str, help="Output file path (.json)")
def summary(raw: Dict[str, Any], output: Optional[str]) -> None:
    """Compute and print only the summary metrics for a loan."""
    result = calculate_from_raw(raw)
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Summary export must use .json extension")
        with path.open("w", encoding="utf-8") as f:
            json.dump({"summary": summary_to_dict(result.summary)}, f, indent=2)
        click.echo(f"Summary exported to {path}")
    else:
        print_summary(result.summary)


@cli.command()
@loan_options
@click.option("--json", "as_json", is_flag=True, help="Print the series as JSON")
def chart(raw: Dict[str, Any], as_json: bool) -> None:
    """Print the yearly balance series with and without extra payments."""
    result = calculate_from_raw(raw)
    if as_json:
        click.echo(json.dumps(chart_payload(result), indent=2))
        return
    inputs = result.inputs
    print_series(
        "Remaining balance",
        yearly_balances(result.schedule, inputs),
        yearly_balances(result.baseline_schedule, inputs),
    )
    if inputs.property_value > 0:
        print_series(
            "Net worth",
            yearly_net_worth(result.schedule, inputs),
            yearly_net_worth(result.baseline_schedule, inputs),
        )


@cli.command()
@loan_options
def share(raw: Dict[str, Any]) -> None:
    """Validate the inputs and print their share query string."""
    result = calculate_from_raw(raw)
    click.echo(encode_state(result.inputs))


if __name__ == "__main__":
    cli()
