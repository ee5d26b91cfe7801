"""Tests for the HGB balance sheet builder."""

import logging
from datetime import date
from decimal import Decimal

from bilanz.domain.balance_sheet import build_section
from bilanz.domain.entities import AccountBalance, AccountType
from bilanz.domain.guv import GuVReport

KASSE_BANK = "b.aktiva.umlaufvermoegen.kassenbestand_guthaben"
VB_KREDITINSTITUTE = "b.passiva.verbindlichkeiten.verbindlichkeiten_kreditinstitute"


def balance(code, account_type, debit="0", credit="0"):
    return AccountBalance(
        code=code,
        name=f"Konto {code}",
        account_type=account_type,
        total_debit=Decimal(debit),
        total_credit=Decimal(credit),
    )


def no_result():
    return GuVReport(sections=(), net_income=Decimal("0.00"))


class TestPlacement:
    """Tests for grouping accounts into sections."""

    def test_overdraft_moves_to_passiva(self, bookkeeping):
        """Test a credit bank balance is shown as a liability with a positive amount."""
        grouped = bookkeeping.balance_sheets.place(
            {"1200": balance("1200", AccountType.ASSET, credit="300.00")}
        )
        assert list(grouped) == [VB_KREDITINSTITUTE]
        assert grouped[VB_KREDITINSTITUTE][0]["balance"] == Decimal("300.00")

    def test_pnl_accounts_skipped(self, bookkeeping):
        """Test GuV accounts are not placed."""
        grouped = bookkeeping.balance_sheets.place(
            {"8400": balance("8400", AccountType.REVENUE, credit="300.00")}
        )
        assert grouped == {}


class TestBuild:
    """Tests for building the report tree."""

    def test_totals_roll_up(self, bookkeeping):
        """Test section totals include their children."""
        data = bookkeeping.balance_sheets.build(
            {
                "1000": balance("1000", AccountType.ASSET, debit="100.00"),
                "1200": balance("1200", AccountType.ASSET, debit="400.00"),
                "0800": balance("0800", AccountType.EQUITY, credit="500.00"),
            },
            no_result(),
        )

        umlauf = data["aktiva"]["sections"]["umlaufvermoegen"]
        assert umlauf["own_total"] == Decimal("0")
        assert umlauf["total"] == Decimal("500.00")
        assert umlauf["children"]["kassenbestand_guthaben"]["total"] == Decimal("500.00")
        assert data["aktiva"]["total"] == Decimal("500.00")
        assert data["passiva"]["total"] == Decimal("500.00")
        assert data["balanced"] is True
        assert data["stored"] is False

    def test_net_income_balances_passiva(self, bookkeeping):
        """Test the GuV result is added to the Passiva side."""
        data = bookkeeping.balance_sheets.build(
            {"1200": balance("1200", AccountType.ASSET, debit="700.00"),
             "0800": balance("0800", AccountType.EQUITY, credit="500.00")},
            GuVReport(sections=(), net_income=Decimal("200.00")),
        )
        assert data["passiva"]["total"] == Decimal("500.00")
        assert data["passiva"]["total_with_net_income"] == Decimal("700.00")
        assert data["net_income_label"] == "Jahresüberschuss"
        assert data["balanced"] is True

    def test_unbalanced_is_flagged_not_raised(self, bookkeeping, caplog):
        """Test an unbalanced sheet is returned with balanced False and logged."""
        with caplog.at_level(logging.WARNING, logger="bilanz"):
            data = bookkeeping.balance_sheets.build(
                {"1200": balance("1200", AccountType.ASSET, debit="100.00")}, no_result()
            )

        assert data["balanced"] is False
        assert data["difference"] == Decimal("100.00")
        assert "balance_sheet_unbalanced" in caplog.text

    def test_build_section_mirrors_tree(self, chart):
        """Test the report section tree mirrors the chart tree."""
        root = chart.tree.find("b.aktiva")
        section = build_section(root, {KASSE_BANK: [{"code": "1200", "name": "Bank", "balance": Decimal("5")}]})

        assert section.account_count() == 1
        assert section.find_section("kassenbestand_guthaben").total() == Decimal("5")
        assert not section.is_empty()


class TestCompute:
    """Tests computing the balance sheet from the ledger."""

    def test_open_year_balances(self, bookkeeping, company_id, profitable_year):
        """Test the ledger-derived sheet balances with the year's profit."""
        data = bookkeeping.balance_sheets.compute(company_id, profitable_year.id)

        assert data["aktiva"]["total"] == Decimal("28000.00")
        assert data["passiva"]["total"] == Decimal("25000.00")
        assert data["net_income"] == Decimal("3000.00")
        assert data["balanced"] is True
        assert data["fiscal_year"]["year"] == 2024

    def test_carryforward_accounts_excluded(self, bookkeeping, company_id, opened_fiscal_year):
        """Test the EBK contra account 9000 does not appear on the sheet."""
        data = bookkeeping.balance_sheets.compute(company_id, opened_fiscal_year.id)

        codes = [a["code"] for a in data["aktiva"]["sections"]["umlaufvermoegen"]["children"]
                 ["kassenbestand_guthaben"]["accounts"]]
        assert codes == ["1200"]
        assert data["aktiva"]["total"] == Decimal("25000.00")

    def test_closed_year_returns_stored_snapshot(self, bookkeeping, company_id, profitable_year):
        """Test a closed year reports its frozen closing sheet."""
        bookkeeping.fiscal_years.close_fiscal_year(profitable_year.id, create_next_year_opening=False)

        data = bookkeeping.balance_sheets.compute(company_id, profitable_year.id)

        assert data["stored"] is True
        assert data["source"] == "calculated"
        assert data["fiscal_year"]["state"] == "closed"
        assert data["aktiva"]["total"] == Decimal("28000.00")

    def test_overdraft_on_sheet(self, bookkeeping, company_id, fiscal_year, post):
        """Test an overdrawn bank account is reported under Verbindlichkeiten."""
        post(date(2024, 5, 1), ("6300", "D", "250.00"), ("1200", "C", "250.00"))

        data = bookkeeping.balance_sheets.compute(company_id, fiscal_year.id)
        verbindlichkeiten = data["passiva"]["sections"]["verbindlichkeiten"]
        accounts = verbindlichkeiten["children"]["verbindlichkeiten_kreditinstitute"]["accounts"]
        assert accounts[0]["code"] == "1200"
        assert accounts[0]["balance"] == Decimal("250.00")
        assert data["net_income"] == Decimal("-250.00")
        assert data["net_income_label"] == "Jahresfehlbetrag"
        assert data["balanced"] is True

    def test_compute_balance_sheet_unknown_year(self, bookkeeping, company_id):
        """Test the facade reports a missing fiscal year as an error result."""
        result = bookkeeping.compute_balance_sheet(company_id, 999)
        assert not result.success
        assert "not found" in result.message
