"""Tests for database mappers."""

from datetime import datetime, date, UTC
from decimal import Decimal

from bilanz.database.models import (
    Account as ORMAccount,
    FiscalYear as ORMFiscalYear,
    JournalEntry as ORMJournalEntry,
    LineItem as ORMLineItem,
    BankTransaction as ORMBankTransaction,
    TaxReport as ORMTaxReport,
)
from bilanz.database.mappers import (
    account_to_domain,
    bank_transaction_to_domain,
    fiscal_year_to_domain,
    journal_entry_to_domain,
    ledger_line_to_domain,
    tax_report_to_domain,
)
from bilanz.domain.entities import (
    AccountType,
    BankTransactionStatus,
    Direction,
    EntryType,
    FiscalYearState,
    TaxReportStatus,
    TaxReportType,
)


def orm_account(code="1200", account_type="asset", rule=None):
    return ORMAccount(
        id=7,
        company_id=1,
        code=code,
        name="Bank",
        account_type=account_type,
        tax_rate=None,
        presentation_rule=rule,
        created_at=datetime.now(UTC),
    )


class TestAccountMapper:
    """Tests for Account mapper."""

    def test_account_to_domain(self):
        """Test converting ORM Account to domain Account."""
        domain_account = account_to_domain(orm_account(rule="bank_bidirectional"))

        assert domain_account.id == 7
        assert domain_account.code == "1200"
        assert domain_account.account_type is AccountType.ASSET
        assert domain_account.presentation_rule == "bank_bidirectional"


class TestFiscalYearMapper:
    """Tests for FiscalYear mapper."""

    def test_state_derived_from_timestamps(self):
        """Test the state follows the stored timestamps."""
        row = ORMFiscalYear(
            id=1,
            company_id=1,
            year=2024,
            start_date=date(2024, 1, 1),
            end_date=date(2024, 12, 31),
            closed=False,
            opening_balance_posted_at=datetime.now(UTC),
            created_at=datetime.now(UTC),
        )
        fiscal_year = fiscal_year_to_domain(row)

        assert fiscal_year.state is FiscalYearState.OPEN_WITH_OPENING
        assert fiscal_year.contains(date(2024, 2, 29))
        assert not fiscal_year.contains(date(2025, 1, 1))


class TestJournalEntryMapper:
    """Tests for JournalEntry and LineItem mappers."""

    def _entry(self):
        account = orm_account()
        entry = ORMJournalEntry(
            id=3,
            company_id=1,
            fiscal_year_id=1,
            booking_date=date(2024, 3, 1),
            description="Umsatz",
            entry_type="opening",
            sequence=0,
            posted_at=None,
            created_at=datetime.now(UTC),
        )
        entry.line_items = [
            ORMLineItem(id=1, journal_entry_id=3, account_id=7, account=account,
                        amount=Decimal("10.00"), direction="debit"),
        ]
        return entry

    def test_journal_entry_to_domain(self):
        """Test entry fields, enum conversion and line items."""
        entry = journal_entry_to_domain(self._entry())

        assert entry.entry_type is EntryType.OPENING
        assert not entry.posted
        assert entry.line_items[0].account_code == "1200"
        assert entry.line_items[0].direction is Direction.DEBIT
        assert entry.total_debit == Decimal("10.00")

    def test_ledger_line_to_domain(self):
        """Test a line item joined with its account and entry."""
        entry = self._entry()
        line = ledger_line_to_domain(entry.line_items[0])

        assert line.account_type is AccountType.ASSET
        assert line.entry_type is EntryType.OPENING
        assert line.posted is False
        assert line.journal_entry_id == 3


class TestOtherMappers:
    """Tests for bank transaction and tax report mappers."""

    def test_bank_transaction_to_domain(self):
        """Test the status string becomes an enum."""
        transaction = bank_transaction_to_domain(
            ORMBankTransaction(id=1, bank_account_id=1, booking_date=date(2024, 3, 1),
                               amount=Decimal("-5.00"), status="booked")
        )
        assert transaction.status is BankTransactionStatus.BOOKED
        assert transaction.amount == Decimal("-5.00")

    def test_tax_report_without_adjustments(self):
        """Test missing adjustments map to an empty dict."""
        report = tax_report_to_domain(
            ORMTaxReport(
                id=1,
                company_id=1,
                report_type="ustva",
                start_date=date(2024, 1, 1),
                end_date=date(2024, 3, 31),
                period_type="quarterly",
                status="draft",
                generated_data={},
                adjustments=None,
                created_at=datetime.now(UTC),
            )
        )
        assert report.report_type is TaxReportType.USTVA
        assert report.status is TaxReportStatus.DRAFT
        assert report.adjustments == {}
