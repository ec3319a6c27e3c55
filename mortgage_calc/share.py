"""Shareable calculator state.

Loan inputs are encoded into short query parameters so a calculation can be
bookmarked or shared as a link:

    la  loan amount            pv  property value
    ir  interest rate (%)      po  property offer
    ia  interest accrual       dp  deposit percentage
    lp  loan period (years)    dv  deposit value
    pf  payments per year      ep  extra payments
    sd  start date
    fpd first payment date

``ep`` is base64 encoded JSON: a list of compact records with keys ``t``
(type), ``a`` (amount), ``c`` (count), ``ct`` (custom total) and ``d`` (date).
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from decimal import Decimal
from typing import Any, Dict, List, Union
from urllib.parse import parse_qs, urlencode, urlsplit

from .data_models import CustomTotalPayment, LoanInputs, LumpSumPayment, RecurringPayment
from .validation import build_inputs

logger = logging.getLogger(__name__)

FIELD_KEYS = {
    "la": "loan_amount",
    "ir": "annual_rate_percent",
    "ia": "accrual_mode",
    "lp": "term_years",
    "pf": "payments_per_year",
    "sd": "start_date",
    "fpd": "first_payment_date",
    "pv": "property_value",
    "po": "property_offer",
    "dp": "deposit_percentage",
    "dv": "deposit_value",
}


def _number(value: Decimal) -> str:
    return format(Decimal(value).normalize(), "f")


def _json_number(value: Decimal) -> Union[int, float]:
    value = Decimal(value)
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def _encode_extra_payments(inputs: LoanInputs) -> str:
    records: List[Dict[str, Any]] = []
    for intent in inputs.extra_payments:
        if isinstance(intent, RecurringPayment):
            records.append({"t": intent.type, "a": _json_number(intent.amount), "c": intent.occurrence_limit or 0})
        elif isinstance(intent, CustomTotalPayment):
            records.append({"t": intent.type, "ct": _json_number(intent.total_per_payment)})
        elif isinstance(intent, LumpSumPayment):
            records.append({"t": intent.type, "a": _json_number(intent.amount), "d": intent.date.isoformat()})
    payload = json.dumps(records, separators=(",", ":"))
    return base64.b64encode(payload.encode("utf-8")).decode("ascii")


def encode_state(inputs: LoanInputs) -> str:
    """Return the query string (without ``?``) that reproduces ``inputs``."""
    params = [
        ("la", _number(inputs.loan_amount)),
        ("ir", _number(inputs.annual_rate_percent)),
        ("ia", inputs.accrual_mode),
        ("lp", _number(inputs.term_years)),
        ("pf", str(inputs.payments_per_year)),
        ("sd", inputs.start_date.isoformat()),
        ("fpd", inputs.first_payment_date.isoformat()),
        ("pv", _number(inputs.property_value)),
        ("po", _number(inputs.property_offer)),
        ("dp", _number(inputs.deposit_percentage)),
        ("dv", _number(inputs.deposit_value)),
    ]
    if inputs.extra_payments:
        params.append(("ep", _encode_extra_payments(inputs)))
    return urlencode(params)


def decode_extra_payments(encoded: str) -> List[Dict[str, Any]]:
    """Decode the ``ep`` parameter into raw extra payment entries.

    Raises ``ValueError`` if the value is not base64 encoded JSON list.
    """
    # '+' turns into a space when the query was not percent-encoded.
    encoded = encoded.strip().replace(" ", "+")
    try:
        records = json.loads(base64.b64decode(encoded, validate=True).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValueError(f"Invalid extra payments parameter: {exc}") from exc
    if not isinstance(records, list):
        raise ValueError("Invalid extra payments parameter: expected a list")

    entries = []
    for record in records:
        if not isinstance(record, dict):
            continue
        entries.append(
            {
                "type": record.get("t"),
                "amount": record.get("a"),
                "count": record.get("c"),
                "custom_total": record.get("ct"),
                "date": record.get("d"),
            }
        )
    return entries


def decode_state(query: str) -> Dict[str, Any]:
    """Decode a share query (or full URL) into raw fields for ``build_inputs``.

    Unknown keys are ignored. An undecodable ``ep`` value is logged and
    dropped so the rest of the state still loads.
    """
    if "?" in query:
        query = urlsplit(query).query
    params = parse_qs(query.lstrip("?"), keep_blank_values=True)

    raw: Dict[str, Any] = {}
    for key, field in FIELD_KEYS.items():
        if key in params:
            raw[field] = params[key][0]
    if "ep" in params:
        try:
            raw["extra_payments"] = decode_extra_payments(params["ep"][0])
        except ValueError as exc:
            logger.warning("Failed to decode extra payments: %s", exc)
    return raw


def inputs_from_query(query: str) -> LoanInputs:
    """Decode and validate a share query."""
    return build_inputs(decode_state(query))
