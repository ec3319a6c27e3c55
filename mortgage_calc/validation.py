"""Input validation for the mortgage calculator.

``build_inputs`` is the boundary between raw form-like data (strings, as
entered or as decoded from a share link) and the typed ``LoanInputs`` the
engine runs on. Every field is checked and all errors are collected before a
single ``ValidationError`` is raised. Mixing recurring and custom total extra
payments raises ``ConflictError`` instead and skips per-entry checks.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .data_models import (
    ACCRUAL_DAILY,
    ACCRUAL_MODES,
    CUSTOM_TOTAL,
    EXTRA_PAYMENT_TYPES,
    LUMP_SUM,
    PAYMENT_FREQUENCIES,
    RECURRING,
    ExtraPaymentIntent,
    LoanInputs,
)
from .engine import MAX_TOTAL_PERIODS, calculate_payment_amount, periodic_rate
from .errors import ConflictError, ValidationError
from .plan import CONFLICT_MESSAGE, ExtraPaymentPlanBuilder
from .utils import (
    decimal_from_str,
    deposit_percentage_from_value,
    deposit_value_from_percentage,
    loan_amount_from_property,
    parse_date,
)

logger = logging.getLogger(__name__)


class _Collector:
    """Accumulates field errors while values are converted."""

    def __init__(self) -> None:
        self.errors: List[Dict[str, str]] = []

    def add(self, field: str, message: str, code: str = "INVALID_VALUE", entry_id: Optional[str] = None) -> None:
        error = {"field": field, "message": message, "code": code}
        if entry_id is not None:
            error["entry_id"] = entry_id
        self.errors.append(error)

    def has(self, field: str) -> bool:
        return any(error["field"] == field for error in self.errors)

    def decimal(
        self, raw: Mapping[str, Any], key: str, field: Optional[str] = None, entry_id: Optional[str] = None
    ) -> Decimal:
        """Read a number; blank or missing values read as zero.

        A value that is not a number is reported and read as zero. Callers
        skip their range checks for a field that ``has`` an error already.
        """
        value = raw.get(key)
        if value is None or str(value).strip() == "":
            return Decimal("0")
        try:
            return decimal_from_str(str(value))
        except ValueError:
            self.add(field or key, f"Must be a valid number: {value}", "INVALID_DECIMAL", entry_id)
            return Decimal("0")

    def date(
        self, raw: Mapping[str, Any], key: str, field: Optional[str] = None, entry_id: Optional[str] = None
    ) -> Optional[date]:
        value = raw.get(key)
        if isinstance(value, date):
            return value
        if value is None or str(value).strip() == "":
            return None
        try:
            return parse_date(str(value))
        except ValueError:
            self.add(field or key, f"Must be a valid date (YYYY-MM-DD): {value}", "INVALID_DATE", entry_id)
            return None


def _scheduled_payment_or_none(loan_amount: Decimal, rate: Decimal, term_years: Decimal, frequency: int) -> Optional[Decimal]:
    total_periods = term_years * Decimal(frequency)
    if loan_amount <= 0 or total_periods <= 0 or total_periods > MAX_TOTAL_PERIODS:
        return None
    return calculate_payment_amount(loan_amount, periodic_rate(rate, frequency), total_periods)


def _entry_type(entry: Mapping[str, Any]) -> str:
    return str(entry.get("type") or RECURRING).lower()


def _register_entries(entries: Sequence[Mapping[str, Any]], collector: _Collector) -> Tuple[ExtraPaymentPlanBuilder, List[Optional[str]]]:
    """Add one builder entry per raw extra payment, in order.

    Returns the builder and the entry id for each raw entry (None for an
    unknown type, which is reported as a field error).

    Raises
    ------
    ConflictError
        If the entries mix recurring and custom total payments.
    """
    builder = ExtraPaymentPlanBuilder()
    entry_ids: List[Optional[str]] = []
    for index, entry in enumerate(entries):
        payment_type = _entry_type(entry)
        if payment_type not in EXTRA_PAYMENT_TYPES:
            collector.add(
                f"extra_payments[{index}].type",
                f"Extra payment type must be one of {', '.join(EXTRA_PAYMENT_TYPES)}.",
            )
            entry_ids.append(None)
            continue
        if builder.has_conflict():
            break
        entry_ids.append(builder.add(payment_type))
    if builder.has_conflict():
        logger.info("Rejected extra payment plan mixing recurring and custom total payments")
        raise ConflictError(CONFLICT_MESSAGE, field="extra_payments", errors=collector.errors)
    return builder, entry_ids


def _fill_entries(
    entries: Sequence[Mapping[str, Any]],
    builder: ExtraPaymentPlanBuilder,
    entry_ids: Sequence[Optional[str]],
    collector: _Collector,
    start_date: Optional[date],
    scheduled_payment: Optional[Decimal],
) -> Tuple[ExtraPaymentIntent, ...]:
    """Validate each raw entry and copy its values onto the builder entry.

    Entries with errors are left empty, so ``builder.intents()`` skips them.
    """
    for index, (entry, entry_id) in enumerate(zip(entries, entry_ids)):
        if entry_id is None:
            continue
        prefix = f"extra_payments[{index}]"
        payment_type = builder.get(entry_id).type

        def report(name: str, message: str, code: str = "INVALID_VALUE") -> None:
            collector.add(f"{prefix}.{name}", message, code, entry_id=entry_id)

        if payment_type == RECURRING:
            amount = collector.decimal(entry, "amount", f"{prefix}.amount", entry_id)
            amount_ok = not collector.has(f"{prefix}.amount")
            count_value = entry.get("count")
            count: Optional[int] = None
            count_ok = True
            if count_value is not None and str(count_value).strip() != "":
                try:
                    count = int(str(count_value).strip())
                except ValueError:
                    report("count", f"Must be a whole number: {count_value}", "INVALID_INTEGER")
                    count_ok = False
            if amount_ok and amount <= 0:
                report("amount", "Please enter a valid extra payment amount greater than 0.")
                amount_ok = False
            if count is not None and count < 0:
                report("count", "Number of payments cannot be negative.")
                count_ok = False
            if amount_ok and count_ok:
                builder.update(entry_id, amount=amount, count=count or None)

        elif payment_type == CUSTOM_TOTAL:
            total = collector.decimal(entry, "custom_total", f"{prefix}.custom_total", entry_id)
            if collector.has(f"{prefix}.custom_total"):
                continue
            if total <= 0:
                report("custom_total", "Please enter a valid custom total payment greater than 0.")
            elif scheduled_payment is not None and total <= scheduled_payment:
                report(
                    "custom_total",
                    f"Custom total payment must be greater than the scheduled payment (${scheduled_payment:.2f}).",
                )
            else:
                builder.update(entry_id, custom_total=total)

        elif payment_type == LUMP_SUM:
            amount = collector.decimal(entry, "amount", f"{prefix}.amount", entry_id)
            amount_ok = not collector.has(f"{prefix}.amount")
            when = collector.date(entry, "date", f"{prefix}.date", entry_id)
            if amount_ok and amount <= 0:
                report("amount", "Please enter a valid lump sum amount greater than 0.")
                amount_ok = False
            if when is None:
                if not entry.get("date"):
                    report("date", "Please select a lump sum payment date.")
            elif start_date is not None and when < start_date:
                report("date", "Lump sum date cannot be before the loan start date.")
            elif amount_ok:
                builder.update(entry_id, lump_amount=amount, lump_date=when)
    return builder.intents()


def build_inputs(raw: Mapping[str, Any]) -> LoanInputs:
    """Convert raw field values into validated ``LoanInputs``.

    Recognised keys: ``loan_amount``, ``annual_rate_percent``,
    ``accrual_mode``, ``term_years``, ``payments_per_year``, ``start_date``,
    ``first_payment_date``, ``property_value``, ``property_offer``,
    ``deposit_percentage``, ``deposit_value`` and ``extra_payments`` (a list
    of mappings with ``type`` and ``amount``/``count``/``custom_total``/``date``).

    Raises
    ------
    ConflictError
        If the extra payments mix recurring and custom total payments.
    ValidationError
        With every field error found.
    """
    collector = _Collector()

    property_value = collector.decimal(raw, "property_value")
    property_offer = collector.decimal(raw, "property_offer")
    deposit_percentage = collector.decimal(raw, "deposit_percentage")
    deposit_value = collector.decimal(raw, "deposit_value")
    # Whichever of the two deposit fields was left blank follows the other.
    if deposit_value == 0:
        deposit_value = deposit_value_from_percentage(property_offer, deposit_percentage) or deposit_value
    elif deposit_percentage == 0:
        deposit_percentage = deposit_percentage_from_value(property_offer, deposit_value) or deposit_percentage
    loan_amount = loan_amount_from_property(collector.decimal(raw, "loan_amount"), property_offer, deposit_value)
    rate = collector.decimal(raw, "annual_rate_percent")
    term_years = collector.decimal(raw, "term_years")

    frequency_value = raw.get("payments_per_year")
    frequency = 12
    if frequency_value is not None and str(frequency_value).strip() != "":
        try:
            frequency = int(str(frequency_value).strip())
        except ValueError:
            collector.add("payments_per_year", f"Must be a whole number: {frequency_value}", "INVALID_INTEGER")

    accrual_mode = str(raw.get("accrual_mode") or ACCRUAL_DAILY).lower()
    start_date = collector.date(raw, "start_date")
    first_payment_date = collector.date(raw, "first_payment_date") or start_date

    # A field that failed to parse is already reported; skip its range check.
    if loan_amount <= 0 and not collector.has("loan_amount"):
        collector.add("loan_amount", "Please enter a valid loan amount greater than 0.")
    if (rate <= 0 or rate > 100) and not collector.has("annual_rate_percent"):
        collector.add("annual_rate_percent", "Please enter a valid interest rate between 0 and 100%.")
    if collector.has("term_years"):
        pass
    elif term_years <= 0:
        collector.add("term_years", "Please enter a valid loan period greater than 0.")
    elif term_years * Decimal(frequency) > MAX_TOTAL_PERIODS:
        collector.add("term_years", f"Loan period is too long (more than {MAX_TOTAL_PERIODS} payments).")
    if frequency not in PAYMENT_FREQUENCIES:
        collector.add(
            "payments_per_year",
            f"Payment frequency must be one of {', '.join(str(f) for f in PAYMENT_FREQUENCIES)}.",
        )
    if accrual_mode not in ACCRUAL_MODES:
        collector.add("accrual_mode", f"Interest accrual must be one of {', '.join(ACCRUAL_MODES)}.")
    if start_date is None and not raw.get("start_date"):
        collector.add("start_date", "Please select a start date.")
    if first_payment_date is not None and start_date is not None and first_payment_date < start_date:
        collector.add("first_payment_date", "First payment date cannot be before the start date.")
    for key, value in (("property_value", property_value), ("property_offer", property_offer), ("deposit_value", deposit_value)):
        if value < 0:
            collector.add(key, "Must not be negative.")
    if deposit_percentage < 0 or deposit_percentage > 100:
        collector.add("deposit_percentage", "Deposit percentage must be between 0 and 100.")

    entries = list(raw.get("extra_payments") or [])
    builder, entry_ids = _register_entries(entries, collector)

    scheduled_payment = None
    if rate > 0 and frequency in PAYMENT_FREQUENCIES:
        scheduled_payment = _scheduled_payment_or_none(loan_amount, rate, term_years, frequency)
    extra_payments = _fill_entries(entries, builder, entry_ids, collector, start_date, scheduled_payment)

    if collector.errors:
        logger.info("Rejected loan inputs: %s", ", ".join(error["field"] for error in collector.errors))
        raise ValidationError(errors=collector.errors)

    return LoanInputs(
        loan_amount=loan_amount,
        annual_rate_percent=rate,
        term_years=term_years,
        start_date=start_date,
        first_payment_date=first_payment_date,
        payments_per_year=frequency,
        accrual_mode=accrual_mode,
        property_value=property_value,
        property_offer=property_offer,
        deposit_percentage=deposit_percentage,
        deposit_value=deposit_value,
        extra_payments=extra_payments,
    )
