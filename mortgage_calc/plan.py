"""Extra payment plan.

This module turns the user's extra payment intents into the per-period
amounts and date-anchored events the schedule generator consumes. It also
provides ``ExtraPaymentPlanBuilder``, the editing context a form layer uses to
add, retype and remove entries while keeping recurring and custom total
payments mutually exclusive.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from .data_models import (
    CUSTOM_TOTAL,
    EXTRA_PAYMENT_TYPES,
    LUMP_SUM,
    RECURRING,
    CustomTotalPayment,
    ExtraPaymentIntent,
    LumpSumPayment,
    RecurringPayment,
)
from .errors import ConflictError

CONFLICT_MESSAGE = (
    "Cannot have both recurring and custom total payment types. "
    "Please remove one type before calculating."
)


def has_conflict(intents: Iterable[ExtraPaymentIntent]) -> bool:
    """Return True when the intents mix recurring and custom total payments."""
    types = {intent.type for intent in intents}
    return RECURRING in types and CUSTOM_TOTAL in types


def check_conflicts(intents: Iterable[ExtraPaymentIntent]) -> None:
    """Raise ``ConflictError`` if recurring and custom total payments are mixed."""
    if has_conflict(intents):
        raise ConflictError(CONFLICT_MESSAGE, field="extra_payments")


def _money(amount: Decimal) -> str:
    return f"${amount:.2f}"


class RecurringCounter:
    """Remaining occurrences of one recurring extra payment."""

    def __init__(self, amount: Decimal, occurrence_limit: Optional[int]) -> None:
        self.amount = amount
        # A limit of None or 0 means unlimited.
        self.remaining: Optional[int] = occurrence_limit or None

    @property
    def exhausted(self) -> bool:
        return self.remaining is not None and self.remaining <= 0

    def take(self) -> Decimal:
        if self.exhausted:
            return Decimal("0")
        if self.remaining is not None:
            self.remaining -= 1
        return self.amount


@dataclass(frozen=True)
class LumpSumEvent:
    date: date
    amount: Decimal


class ExtraPaymentPlan:
    """Normalized extra payments for one schedule run.

    Recurring counters are consumed as periodic rows are generated, so a plan
    instance belongs to exactly one run of the generator.

    Custom total payments are additive: each contributes
    ``max(0, total - scheduled_payment)``. When custom totals are present the
    recurring payments are skipped entirely.
    """

    def __init__(
        self,
        scheduled_payment: Decimal,
        recurring: List[RecurringCounter],
        custom_totals: List[Decimal],
        lump_sums: List[LumpSumEvent],
    ) -> None:
        self.scheduled_payment = scheduled_payment
        self.recurring = recurring
        self.custom_totals = custom_totals
        self.lump_sums = lump_sums

    @classmethod
    def from_intents(
        cls, intents: Iterable[ExtraPaymentIntent], scheduled_payment: Decimal
    ) -> "ExtraPaymentPlan":
        recurring: List[RecurringCounter] = []
        custom_totals: List[Decimal] = []
        lump_sums: List[LumpSumEvent] = []
        for intent in intents:
            if isinstance(intent, RecurringPayment):
                recurring.append(RecurringCounter(intent.amount, intent.occurrence_limit))
            elif isinstance(intent, CustomTotalPayment):
                custom_totals.append(intent.total_per_payment)
            elif isinstance(intent, LumpSumPayment):
                lump_sums.append(LumpSumEvent(date=intent.date, amount=intent.amount))
            else:
                raise TypeError(f"Unknown extra payment intent: {intent!r}")
        return cls(scheduled_payment, recurring, custom_totals, lump_sums)

    @property
    def has_lump_sums(self) -> bool:
        return bool(self.lump_sums)

    def extra_for_period(self) -> Tuple[Decimal, List[str]]:
        """Return the extra amount for the next periodic row and its details."""
        extra = Decimal("0")
        details: List[str] = []
        if self.custom_totals:
            for total in self.custom_totals:
                if total > self.scheduled_payment:
                    custom_extra = total - self.scheduled_payment
                    extra += custom_extra
                    details.append(f"Custom Total: +{_money(custom_extra)}")
            return extra, details
        for counter in self.recurring:
            if not counter.exhausted:
                amount = counter.take()
                extra += amount
                details.append(f"Recurring: +{_money(amount)}")
        return extra, details


@dataclass
class PlanEntry:
    """An editable extra payment entry as held by a form.

    Only the fields relevant to ``type`` are read when the entry is turned
    into an intent; the others are kept so switching type back and forth does
    not lose input.
    """

    entry_id: str
    type: str
    amount: Decimal = Decimal("0")
    count: Optional[int] = None
    custom_total: Decimal = Decimal("0")
    lump_amount: Decimal = Decimal("0")
    lump_date: Optional[date] = None

    def to_intent(self) -> Optional[ExtraPaymentIntent]:
        """Return the intent for this entry, or None when it is still empty."""
        if self.type == RECURRING:
            if self.amount > 0:
                return RecurringPayment(amount=self.amount, occurrence_limit=self.count)
        elif self.type == CUSTOM_TOTAL:
            if self.custom_total > 0:
                return CustomTotalPayment(total_per_payment=self.custom_total)
        elif self.type == LUMP_SUM:
            if self.lump_amount > 0 and self.lump_date is not None:
                return LumpSumPayment(amount=self.lump_amount, date=self.lump_date)
        return None


@dataclass
class ExtraPaymentPlanBuilder:
    """Editing context for a list of extra payment entries.

    Entries are keyed by a stable identifier (``extra-payment-N``) handed out
    from ``counter``. ``previous_types`` remembers the last type selected for
    each entry so a rejected type switch can be reported against it.
    """

    counter: int = 0
    entries: Dict[str, PlanEntry] = field(default_factory=dict)
    previous_types: Dict[str, str] = field(default_factory=dict)

    def add(self, type: str = RECURRING, **fields) -> str:
        """Add an entry and return its id.

        Raises ``ConflictError`` while the entries already mix recurring and
        custom total payments.
        """
        if type not in EXTRA_PAYMENT_TYPES:
            raise ValueError(f"Unknown extra payment type: {type}")
        if self.has_conflict():
            raise ConflictError(
                "Cannot add more extra payments. You already have both recurring and custom "
                "total payment types. Please remove one type before adding another.",
                field="extra_payments",
            )
        self.counter += 1
        entry_id = f"extra-payment-{self.counter}"
        self.entries[entry_id] = PlanEntry(entry_id=entry_id, type=type, **fields)
        self.previous_types[entry_id] = type
        return entry_id

    def remove(self, entry_id: str) -> None:
        self.entries.pop(entry_id, None)
        self.previous_types.pop(entry_id, None)

    def get(self, entry_id: str) -> PlanEntry:
        return self.entries[entry_id]

    def has_type(self, type: str, exclude_entry_id: Optional[str] = None) -> bool:
        return any(
            entry.type == type
            for entry_id, entry in self.entries.items()
            if entry_id != exclude_entry_id
        )

    def has_conflict(self) -> bool:
        return self.has_type(RECURRING) and self.has_type(CUSTOM_TOTAL)

    def update(self, entry_id: str, **fields) -> PlanEntry:
        """Set field values on an entry, e.g. ``update(entry_id, amount=Decimal("100"))``."""
        entry = self.entries[entry_id]
        for name, value in fields.items():
            if name in ("entry_id", "type") or not hasattr(entry, name):
                raise AttributeError(f"Cannot update {name!r} on an extra payment entry")
            setattr(entry, name, value)
        return entry

    def change_type(self, entry_id: str, new_type: str) -> str:
        """Switch an entry's type and return the type it had before.

        The switch is recorded even when it creates a conflict, so the entry
        shows what the user picked; ``ConflictError`` is raised to report it
        and carries the previous type.
        """
        if new_type not in EXTRA_PAYMENT_TYPES:
            raise ValueError(f"Unknown extra payment type: {new_type}")
        entry = self.entries[entry_id]
        previous_type = self.previous_types.get(entry_id, entry.type)
        entry.type = new_type
        self.previous_types[entry_id] = new_type
        if new_type == RECURRING and self.has_type(CUSTOM_TOTAL, entry_id):
            raise ConflictError(
                "Cannot switch to recurring payment type. You already have a custom "
                "total payment. Please remove the custom total payment first.",
                field="extra_payments",
                entry_id=entry_id,
                previous_type=previous_type,
            )
        if new_type == CUSTOM_TOTAL and self.has_type(RECURRING, entry_id):
            raise ConflictError(
                "Cannot switch to custom total payment type. You already have a "
                "recurring payment. Please remove the recurring payment first.",
                field="extra_payments",
                entry_id=entry_id,
                previous_type=previous_type,
            )
        return previous_type

    def intents(self) -> Tuple[ExtraPaymentIntent, ...]:
        """Return the intents of all non-empty entries, in insertion order."""
        result = []
        for entry in self.entries.values():
            intent = entry.to_intent()
            if intent is not None:
                result.append(intent)
        return tuple(result)
