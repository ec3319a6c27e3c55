import csv
import json

import pytest
from click.testing import CliRunner

from mortgage_calc.main import cli

LOAN = ["-p", "300k", "-r", "6", "-t", "30", "-s", "2024-01-01", "--first-payment-date", "2024-02-01"]


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def test_summary_command(runner):
    result = runner.invoke(cli, ["summary", *LOAN])

    assert result.exit_code == 0, result.output
    assert "Scheduled payment  : $1,798.65" in result.output
    assert "Scheduled payments : 360" in result.output
    assert "Early payoff date" not in result.output


def test_summary_with_recurring_extra(runner):
    result = runner.invoke(cli, ["summary", *LOAN, "--recurring", "200"])

    assert result.exit_code == 0, result.output
    assert "Early payoff date" in result.output
    assert "earlier" in result.output


def test_schedule_command_truncates(runner):
    result = runner.invoke(cli, ["schedule", *LOAN, "--max-rows", "5"])

    assert result.exit_code == 0, result.output
    assert "Schedule has 360 rows; showing first 5 rows." in result.output
    assert "2024-02-01\t300000.00\t1798.65" in result.output


def test_schedule_exports_csv(runner, tmp_path):
    path = tmp_path / "schedule.csv"

    result = runner.invoke(cli, ["schedule", *LOAN, "--lump", "2024-02-15:10000", "--output", str(path)])

    assert result.exit_code == 0, result.output
    with path.open(newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows[0][0] == "Payment_Number"
    assert rows[2][1] == "2024-02-15"
    assert rows[2][-1] == "Lump Sum: +$10000.00"


def test_schedule_exports_json(runner, tmp_path):
    path = tmp_path / "schedule.json"

    result = runner.invoke(cli, ["schedule", *LOAN, "--property-value", "400k", "--output", str(path)])

    assert result.exit_code == 0, result.output
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["summary"]["actual_payment_count"] == 360
    assert len(data["schedule"]) == 360
    assert "net_worth" in data["schedule"][0]
    assert data["share"].startswith("la=300000")


def test_schedule_rejects_unknown_export_format(runner, tmp_path):
    result = runner.invoke(cli, ["schedule", *LOAN, "--output", str(tmp_path / "out.txt")])

    assert result.exit_code != 0
    assert "Unsupported output format" in result.output


def test_conflicting_extras_are_rejected(runner):
    result = runner.invoke(cli, ["summary", *LOAN, "--recurring", "200", "--custom-total", "2500"])

    assert result.exit_code == 2
    assert "Cannot have both recurring and custom total payment types" in result.output


def test_validation_errors_are_listed(runner):
    result = runner.invoke(cli, ["summary", "-p", "0", "-r", "150", "-t", "30", "-s", "2024-01-01"])

    assert result.exit_code == 2
    assert "loan_amount: Please enter a valid loan amount greater than 0." in result.output
    assert "annual_rate_percent:" in result.output


def test_malformed_lump_option(runner):
    result = runner.invoke(cli, ["summary", *LOAN, "--lump", "10000"])

    assert result.exit_code == 2
    assert "YYYY-MM-DD:AMOUNT" in result.output


def test_share_and_query_round_trip(runner):
    shared = runner.invoke(cli, ["share", *LOAN, "--recurring", "200:12"])
    assert shared.exit_code == 0, shared.output
    query = shared.output.strip()

    from_query = runner.invoke(cli, ["summary", "--query", query])
    direct = runner.invoke(cli, ["summary", *LOAN, "--recurring", "200:12"])

    assert from_query.exit_code == 0, from_query.output
    assert from_query.output == direct.output


def test_options_override_query(runner):
    result = runner.invoke(cli, ["summary", "--query", "la=100000&ir=6&lp=30&sd=2024-01-01", "-p", "300000"])

    assert result.exit_code == 0, result.output
    assert "$1,798.65" in result.output


def test_chart_command_json(runner):
    result = runner.invoke(cli, ["chart", *LOAN, "--property-value", "400000", "--json"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["balance"]["values"][0] == 300000.0
    assert len(payload["balance"]["labels"]) == 31
    assert "net_worth_without_extra" in payload


def test_chart_command_table(runner):
    result = runner.invoke(cli, ["chart", *LOAN, "--recurring", "500"])

    assert result.exit_code == 0, result.output
    assert "Remaining balance" in result.output
    assert "Without extra" in result.output
