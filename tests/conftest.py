from datetime import date
from decimal import Decimal

import pytest

from mortgage_calc.data_models import LoanInputs


@pytest.fixture
def make_inputs():
    """Factory for LoanInputs with a 300k / 6% / 30 year monthly loan by default."""

    def _make(**overrides) -> LoanInputs:
        fields = {
            "loan_amount": Decimal("300000"),
            "annual_rate_percent": Decimal("6"),
            "term_years": Decimal("30"),
            "start_date": date(2024, 1, 1),
            "first_payment_date": date(2024, 2, 1),
            "payments_per_year": 12,
            "accrual_mode": "daily",
            "extra_payments": (),
        }
        fields.update(overrides)
        if "extra_payments" in overrides:
            fields["extra_payments"] = tuple(overrides["extra_payments"])
        return LoanInputs(**fields)

    return _make


@pytest.fixture
def raw_inputs():
    """Raw form fields for the default 300k / 6% / 30 year loan."""
    return {
        "loan_amount": "300000",
        "annual_rate_percent": "6",
        "accrual_mode": "daily",
        "term_years": "30",
        "payments_per_year": "12",
        "start_date": "2024-01-01",
        "first_payment_date": "2024-02-01",
    }
