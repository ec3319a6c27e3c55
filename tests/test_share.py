import base64
import json
import logging
from datetime import date
from decimal import Decimal
from urllib.parse import parse_qs

import pytest

from mortgage_calc.data_models import CustomTotalPayment, LumpSumPayment, RecurringPayment
from mortgage_calc.share import decode_extra_payments, decode_state, encode_state, inputs_from_query


def _ep(records) -> str:
    return base64.b64encode(json.dumps(records).encode("utf-8")).decode("ascii")


def test_encodes_scalar_fields(make_inputs):
    params = parse_qs(encode_state(make_inputs(property_value=Decimal("350000.50"))))

    assert params["la"] == ["300000"]
    assert params["ir"] == ["6"]
    assert params["ia"] == ["daily"]
    assert params["lp"] == ["30"]
    assert params["pf"] == ["12"]
    assert params["sd"] == ["2024-01-01"]
    assert params["fpd"] == ["2024-02-01"]
    assert params["pv"] == ["350000.5"]
    assert "ep" not in params


def test_encodes_extra_payments_as_compact_records(make_inputs):
    inputs = make_inputs(
        extra_payments=[
            RecurringPayment(amount=Decimal("200"), occurrence_limit=12),
            LumpSumPayment(amount=Decimal("10000.5"), date=date(2024, 6, 1)),
        ]
    )
    encoded = parse_qs(encode_state(inputs))["ep"][0]

    assert json.loads(base64.b64decode(encoded)) == [
        {"t": "recurring", "a": 200, "c": 12},
        {"t": "lump", "a": 10000.5, "d": "2024-06-01"},
    ]


def test_share_query_reproduces_inputs(make_inputs):
    inputs = make_inputs(
        accrual_mode="monthly",
        extra_payments=[
            CustomTotalPayment(total_per_payment=Decimal("2500")),
            LumpSumPayment(amount=Decimal("10000"), date=date(2024, 6, 1)),
        ],
    )

    assert inputs_from_query(encode_state(inputs)) == inputs


def test_decodes_handwritten_query():
    ep = _ep([{"t": "recurring", "a": 150, "c": 0}, {"t": "custom", "ct": 2500}])
    raw = decode_state(f"?la=250000&ir=5.5&lp=25&pf=26&sd=2024-03-01&ep={ep}&unknown=1")

    assert raw["loan_amount"] == "250000"
    assert raw["annual_rate_percent"] == "5.5"
    assert raw["payments_per_year"] == "26"
    assert "first_payment_date" not in raw
    assert raw["extra_payments"][0] == {"type": "recurring", "amount": 150, "count": 0, "custom_total": None, "date": None}
    assert raw["extra_payments"][1]["custom_total"] == 2500


def test_accepts_full_url():
    raw = decode_state("https://example.com/calculator?la=1000&ir=3&lp=1&sd=2024-01-01")

    assert raw["loan_amount"] == "1000"


def test_inputs_from_query_applies_defaults():
    inputs = inputs_from_query("la=100000&ir=4&lp=15&sd=2024-01-01")

    assert inputs.first_payment_date == date(2024, 1, 1)
    assert inputs.payments_per_year == 12
    assert inputs.accrual_mode == "daily"


def test_invalid_extra_payments_are_dropped(caplog):
    with caplog.at_level(logging.WARNING, logger="mortgage_calc.share"):
        raw = decode_state("la=1000&ir=3&lp=1&sd=2024-01-01&ep=not-base64!")

    assert "extra_payments" not in raw
    assert "Failed to decode extra payments" in caplog.text


def test_decode_extra_payments_requires_list():
    with pytest.raises(ValueError):
        decode_extra_payments(_ep({"t": "lump"}))
