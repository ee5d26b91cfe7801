"""End-to-end tests for the bilanz command line."""

import json

import pytest

from bilanz.cli.commands.entry import parse_line_spec
from bilanz.cli.commands.tax import parse_adjustments
from bilanz.cli.main import cli
from bilanz.domain.entities import Direction


@pytest.fixture
def run(cli_runner, temp_db):
    """Invoke the CLI against the temporary database."""

    def _run(*args):
        return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args])

    return _run


@pytest.fixture
def company(run):
    """A company with fiscal year 2024 opened with 25.000 EUR capital."""
    assert run("company", "create", "Muster GmbH").exit_code == 0
    assert run("fiscal-year", "create", "2024").exit_code == 0
    return "Muster GmbH"


@pytest.fixture
def opening_file(tmp_path):
    path = tmp_path / "eroeffnung.json"
    path.write_text(
        json.dumps(
            {
                "aktiva": {"bank": [{"account_code": "1200", "balance": 25000.00}]},
                "passiva": {"eigenkapital": [{"account_code": "0800", "balance": 25000.00}]},
            }
        ),
        encoding="utf-8",
    )
    return str(path)


def test_parse_line_spec():
    """Test line specs in English and German notation."""
    line = parse_line_spec("1200:S:1.234,56:Kunde A")
    assert line.account_code == "1200"
    assert line.direction is Direction.DEBIT
    assert str(line.amount) == "1234.56"
    assert line.description == "Kunde A"

    assert parse_line_spec("8400:haben:100").direction is Direction.CREDIT


@pytest.mark.parametrize("spec", ["1200:D", "1200:X:10", "1200:D:zehn"])
def test_parse_line_spec_invalid(spec):
    """Test malformed line specs raise ValueError."""
    with pytest.raises(ValueError):
        parse_line_spec(spec)


def test_parse_adjustments():
    """Test KEY=AMOUNT options."""
    assert str(parse_adjustments(("donations=1.000,50",))["donations"]) == "1000.50"
    with pytest.raises(ValueError, match="KEY=AMOUNT"):
        parse_adjustments(("donations",))


def test_help_does_not_need_database(cli_runner, tmp_path):
    """Test --help works without creating a database."""
    result = cli_runner.invoke(cli, ["--db-path", str(tmp_path / "none.db"), "--help"])
    assert result.exit_code == 0
    assert "Bilanz" in result.output
    assert not (tmp_path / "none.db").exists()


def test_company_create_and_list(run):
    """Test creating and listing companies."""
    result = run("company", "create", "Muster GmbH")
    assert result.exit_code == 0
    assert "Created company 'Muster GmbH'" in result.output

    result = run("company", "list")
    assert "Muster GmbH" in result.output


def test_company_duplicate_fails(run):
    """Test a duplicate company name exits with an error."""
    run("company", "create", "Muster GmbH")
    result = run("company", "create", "Muster GmbH")
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_company_required_with_several(run):
    """Test --company is required once more than one company exists."""
    run("company", "create", "Muster GmbH")
    run("company", "create", "Andere UG")

    result = run("fiscal-year", "create", "2024")
    assert result.exit_code == 1
    assert "--company" in result.output

    result = run("--company", "Andere UG", "fiscal-year", "create", "2024")
    assert result.exit_code == 0


def test_fiscal_year_create_and_list(run, company):
    """Test fiscal years are listed with their state."""
    result = run("fiscal-year", "list")
    assert result.exit_code == 0
    assert "2024 | 2024-01-01 - 2024-12-31 | open" in result.output


def test_account_create_from_template(run, company):
    """Test an SKR03 account is created with its template name and type."""
    result = run("account", "create", "8400")
    assert result.exit_code == 0
    assert "Created account 8400 'Erlöse 19% USt' (revenue)" in result.output

    result = run("account", "list")
    assert "8400" in result.output


def test_entry_add_and_list(run, company):
    """Test posting an entry and listing it."""
    result = run(
        "entry", "add", "--date", "15.03.2024", "--description", "Rechnung 42",
        "--line", "1200:D:119,00", "--line", "8400:C:100,00", "--line", "1776:C:19,00",
    )
    assert result.exit_code == 0
    assert "Posted journal entry 1 (119,00 EUR)" in result.output

    result = run("entry", "list", "--year", "2024")
    assert "Rechnung 42" in result.output
    assert "posted" in result.output


def test_entry_unbalanced_fails(run, company):
    """Test an unbalanced entry is rejected with exit code 1."""
    result = run(
        "entry", "add", "--date", "2024-03-15", "--description", "Falsch",
        "--line", "1200:D:100", "--line", "8400:C:90",
    )
    assert result.exit_code == 1
    assert "do not equal" in result.output


def test_posted_entry_cannot_be_deleted(run, company):
    """Test deleting a posted entry fails with a GoBD error."""
    run("entry", "add", "--date", "2024-03-15", "--description", "Umsatz",
        "--line", "1200:D:50", "--line", "8400:C:50")

    result = run("entry", "delete", "1")
    assert result.exit_code == 1
    assert "GoBD" in result.output


def test_draft_post_flow(run, company):
    """Test a draft can be shown, posted and then no longer deleted."""
    result = run("entry", "add", "--date", "2024-03-15", "--description", "Entwurf",
                 "--line", "1200:D:50", "--line", "8400:C:50", "--draft")
    assert "Saved draft journal entry 1" in result.output

    result = run("entry", "show", "1")
    assert "draft" in result.output
    assert "Entwurf" in result.output

    assert "Posted journal entry 1" in run("entry", "post", "1").output
    assert run("entry", "delete", "1").exit_code == 1


def test_opening_guv_and_balance_sheet(run, company, opening_file):
    """Test opening a year and printing both statements."""
    result = run("fiscal-year", "opening", "2024", "--file", opening_file)
    assert result.exit_code == 0
    assert "Posted opening balance for 2024" in result.output

    run("entry", "add", "--date", "2024-02-01", "--description", "Umsatz",
        "--line", "1200:D:10000", "--line", "4000:C:10000")
    run("entry", "add", "--date", "2024-06-30", "--description", "Aufwand",
        "--line", "6300:D:7000", "--line", "1200:C:7000")

    result = run("report", "guv", "2024")
    assert result.exit_code == 0
    assert "Gewinn- und Verlustrechnung 2024" in result.output
    assert "Jahresüberschuss" in result.output
    assert "3.000,00" in result.output

    result = run("report", "balance-sheet", "2024")
    assert result.exit_code == 0
    assert "Bilanz zum 31.12.2024" in result.output
    assert "AKTIVA" in result.output
    assert "28.000,00" in result.output
    assert "Warning" not in result.output


def test_close_fiscal_year(run, company, opening_file):
    """Test closing prints the result and opens the next year."""
    run("fiscal-year", "opening", "2024", "--file", opening_file)

    result = run("fiscal-year", "close", "2024")
    assert result.exit_code == 0
    assert "Closed fiscal year 2024" in result.output
    assert "Opened fiscal year 2025" in result.output

    result = run("report", "balance-sheet", "2024")
    assert "(festgeschrieben)" in result.output

    result = run("entry", "add", "--date", "2024-05-01", "--description", "Zu spät",
                 "--line", "1200:D:1", "--line", "8400:C:1")
    assert result.exit_code == 1
    assert "closed" in result.output


def test_close_without_opening_fails(run, company):
    """Test closing a year without opening balance fails."""
    result = run("fiscal-year", "close", "2024")
    assert result.exit_code == 1
    assert "Opening balance must be posted" in result.output


def test_report_unknown_year(run, company):
    """Test reports for a missing fiscal year fail."""
    result = run("report", "guv", "2030")
    assert result.exit_code == 1
    assert "Fiscal year 2030 not found" in result.output


def test_ustva_and_report_lifecycle(run, company):
    """Test computing, saving, submitting and accepting a UStVA."""
    run("entry", "add", "--date", "2024-03-15", "--description", "Rechnung",
        "--line", "1200:D:119", "--line", "8400:C:100", "--line", "1776:C:19")

    result = run("tax", "ustva", "--month", "2024-03", "--save")
    assert result.exit_code == 0
    assert "Kz.  81" in result.output
    assert "19,00" in result.output
    assert "Saved tax report 1 (draft)" in result.output

    assert "Submitted tax report 1" in run("tax", "submit", "1").output
    assert run("tax", "regenerate", "1").exit_code == 1
    assert "Accepted tax report 1" in run("tax", "accept", "1").output

    result = run("tax", "list", "--type", "ustva")
    assert "accepted" in result.output


def test_ustva_json(run, company):
    """Test the JSON output carries the net liability."""
    result = run("tax", "ustva", "--start-date", "2024-01-01", "--end-date", "2024-03-31", "--json")
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["net_vat_liability"] == "0.00"
    assert data["period_type"] == "quarterly"


def test_kst_with_adjustment(run, company):
    """Test KSt output with an adjustment."""
    run("entry", "add", "--date", "2024-03-15", "--description", "Umsatz",
        "--line", "1200:D:1000", "--line", "8400:C:1000")

    result = run("tax", "kst", "2024", "--adjust", "non_deductible_expenses=200")
    assert result.exit_code == 0
    assert "Körperschaftsteuer 2024" in result.output
    assert "1.200,00" in result.output
    assert "180,00" in result.output


def test_kst_unknown_adjustment(run, company):
    """Test unknown adjustment keys fail."""
    result = run("tax", "kst", "2024", "--adjust", "bribes=10")
    assert result.exit_code == 1
    assert "Unknown KSt adjustment" in result.output


def test_bank_flow(run, company):
    """Test creating a bank account, adding and booking a transaction."""
    result = run("bank", "account-create", "Geschäftskonto")
    assert "Created bank account 'Geschäftskonto' (ID: 1) on account 1200" in result.output

    result = run("bank", "add", "1", "--date", "2024-03-01", "--amount", "119,00", "--text", "Rechnung 7")
    assert "Added bank transaction 1 (119,00 EUR)" in result.output

    result = run("bank", "book", "1", "--account", "8400", "--vat", "19", "--post")
    assert result.exit_code == 0
    assert "Posted journal entry 1 for bank transaction 1" in result.output

    result = run("bank", "list", "1")
    assert "booked" in result.output
