"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Optional

# Import entities directly to avoid circular import through domain/__init__.py
from bilanz.domain.entities import (
    Account,
    AccountType,
    BalanceSheet,
    BalanceSheetSource,
    BankAccount,
    BankTransaction,
    BankTransactionStatus,
    Company,
    EntryType,
    FiscalYear,
    JournalEntry,
    LedgerLine,
    SheetType,
    TaxReport,
    TaxReportStatus,
    TaxReportType,
)


class Database(ABC):
    """Abstract database interface for bilanz.

    Line items are passed to ``create_journal_entry`` and
    ``replace_journal_entry`` as dicts with ``account_id``, ``amount``,
    ``direction`` and optional ``bank_transaction_id`` and ``description``.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def transaction(self) -> AbstractContextManager:
        """Group writes into one atomic unit; re-entrant.

        The outermost block commits on success and rolls back on any
        exception. Writes outside a block commit immediately.
        """
        pass

    # Company operations
    @abstractmethod
    def create_company(self, name: str) -> int:
        """Create a new company. Returns company ID."""
        pass

    @abstractmethod
    def get_company(self, company_id: int) -> Optional[Company]:
        """Get company by ID."""
        pass

    @abstractmethod
    def get_company_by_name(self, name: str) -> Optional[Company]:
        """Get company by name."""
        pass

    @abstractmethod
    def list_companies(self) -> list[Company]:
        """List all companies."""
        pass

    @abstractmethod
    def delete_company(self, company_id: int) -> None:
        """Delete a company and everything it owns."""
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        company_id: int,
        code: str,
        name: str,
        account_type: AccountType,
        tax_rate: Optional[Decimal] = None,
        presentation_rule: Optional[str] = None,
    ) -> int:
        """Create a new ledger account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def get_account_by_code(self, company_id: int, code: str) -> Optional[Account]:
        """Get account by company and code."""
        pass

    @abstractmethod
    def list_accounts(self, company_id: int) -> list[Account]:
        """List accounts of a company ordered by code."""
        pass

    @abstractmethod
    def update_account_presentation_rule(self, account_id: int, rule: Optional[str]) -> None:
        """Set or clear the presentation rule override of an account."""
        pass

    @abstractmethod
    def get_account_line_item_count(self, account_id: int) -> int:
        """Get count of line items referencing an account."""
        pass

    @abstractmethod
    def delete_account(self, account_id: int) -> None:
        """Delete an account."""
        pass

    # Fiscal year operations
    @abstractmethod
    def create_fiscal_year(
        self,
        company_id: int,
        year: int,
        start_date: date,
        end_date: date,
    ) -> int:
        """Create a new fiscal year. Returns fiscal year ID."""
        pass

    @abstractmethod
    def get_fiscal_year(self, fiscal_year_id: int) -> Optional[FiscalYear]:
        """Get fiscal year by ID."""
        pass

    @abstractmethod
    def get_fiscal_year_by_year(self, company_id: int, year: int) -> Optional[FiscalYear]:
        """Get fiscal year by company and calendar year."""
        pass

    @abstractmethod
    def list_fiscal_years(self, company_id: int) -> list[FiscalYear]:
        """List fiscal years of a company ordered by year."""
        pass

    @abstractmethod
    def find_fiscal_year_for_date(self, company_id: int, day: date) -> Optional[FiscalYear]:
        """Get the fiscal year whose date range contains a day."""
        pass

    @abstractmethod
    def lock_fiscal_year(self, fiscal_year_id: int) -> Optional[FiscalYear]:
        """Re-read a fiscal year with a row lock held until the transaction ends."""
        pass

    @abstractmethod
    def mark_opening_balance_posted(self, fiscal_year_id: int, posted_at: datetime) -> bool:
        """Set opening_balance_posted_at if unset and the year is open.

        Returns False when the row was already in another state.
        """
        pass

    @abstractmethod
    def mark_fiscal_year_closed(self, fiscal_year_id: int, closed_at: datetime) -> bool:
        """Close an open fiscal year. Returns False if it was already closed."""
        pass

    # Journal entry operations
    @abstractmethod
    def create_journal_entry(
        self,
        company_id: int,
        fiscal_year_id: int,
        booking_date: date,
        description: str,
        entry_type: EntryType,
        sequence: int,
        line_items: Iterable[dict[str, Any]],
        posted_at: Optional[datetime] = None,
    ) -> int:
        """Create a journal entry with its line items. Returns entry ID."""
        pass

    @abstractmethod
    def get_journal_entry(self, entry_id: int) -> Optional[JournalEntry]:
        """Get journal entry with line items by ID."""
        pass

    @abstractmethod
    def list_journal_entries(
        self,
        company_id: int,
        fiscal_year_id: Optional[int] = None,
        entry_type: Optional[EntryType] = None,
    ) -> list[JournalEntry]:
        """List journal entries ordered by booking date, sequence and ID."""
        pass

    @abstractmethod
    def replace_journal_entry(
        self,
        entry_id: int,
        booking_date: date,
        description: str,
        sequence: int,
        line_items: Iterable[dict[str, Any]],
    ) -> None:
        """Replace header fields and all line items of a draft entry."""
        pass

    @abstractmethod
    def mark_journal_entry_posted(self, entry_id: int, posted_at: datetime) -> bool:
        """Set posted_at if unset. Returns False if the entry was already posted."""
        pass

    @abstractmethod
    def delete_journal_entry(self, entry_id: int) -> None:
        """Delete a journal entry and its line items."""
        pass

    @abstractmethod
    def list_ledger_lines(
        self,
        company_id: int,
        fiscal_year_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        entry_types: Optional[Iterable[EntryType]] = None,
        only_posted: bool = False,
        account_codes: Optional[Iterable[str]] = None,
    ) -> list[LedgerLine]:
        """List line items joined with account and entry, filtered."""
        pass

    # Bank operations
    @abstractmethod
    def create_bank_account(
        self, company_id: int, name: str, ledger_account_id: int, iban: Optional[str] = None
    ) -> int:
        """Create a bank account. Returns bank account ID."""
        pass

    @abstractmethod
    def get_bank_account(self, bank_account_id: int) -> Optional[BankAccount]:
        """Get bank account by ID."""
        pass

    @abstractmethod
    def list_bank_accounts(self, company_id: int) -> list[BankAccount]:
        """List bank accounts of a company."""
        pass

    @abstractmethod
    def create_bank_transaction(
        self,
        bank_account_id: int,
        booking_date: date,
        amount: Decimal,
        remittance_information: Optional[str] = None,
    ) -> int:
        """Create a pending bank transaction. Returns transaction ID."""
        pass

    @abstractmethod
    def get_bank_transaction(self, transaction_id: int) -> Optional[BankTransaction]:
        """Get bank transaction by ID."""
        pass

    @abstractmethod
    def list_bank_transactions(
        self, bank_account_id: int, status: Optional[BankTransactionStatus] = None
    ) -> list[BankTransaction]:
        """List bank transactions of a bank account ordered by date."""
        pass

    @abstractmethod
    def update_bank_transaction_status(
        self, transaction_id: int, status: BankTransactionStatus
    ) -> None:
        """Update reconciliation status of a bank transaction."""
        pass

    # Balance sheet snapshot operations
    @abstractmethod
    def create_balance_sheet(
        self,
        fiscal_year_id: int,
        sheet_type: SheetType,
        source: BalanceSheetSource,
        balance_date: date,
        data: dict[str, Any],
        posted_at: Optional[datetime] = None,
    ) -> int:
        """Store a balance sheet snapshot. Returns snapshot ID."""
        pass

    @abstractmethod
    def get_balance_sheet(self, balance_sheet_id: int) -> Optional[BalanceSheet]:
        """Get balance sheet snapshot by ID."""
        pass

    @abstractmethod
    def get_balance_sheet_for_year(
        self, fiscal_year_id: int, sheet_type: SheetType
    ) -> Optional[BalanceSheet]:
        """Get the snapshot of a fiscal year by sheet type."""
        pass

    # Tax report operations
    @abstractmethod
    def create_tax_report(
        self,
        company_id: int,
        report_type: TaxReportType,
        start_date: date,
        end_date: date,
        period_type: str,
        generated_data: dict[str, Any],
        fiscal_year_id: Optional[int] = None,
        adjustments: Optional[dict[str, Any]] = None,
    ) -> int:
        """Store a draft tax report. Returns report ID."""
        pass

    @abstractmethod
    def get_tax_report(self, report_id: int) -> Optional[TaxReport]:
        """Get tax report by ID."""
        pass

    @abstractmethod
    def list_tax_reports(
        self, company_id: int, report_type: Optional[TaxReportType] = None
    ) -> list[TaxReport]:
        """List tax reports of a company, newest period first."""
        pass

    @abstractmethod
    def update_tax_report(
        self,
        report_id: int,
        generated_data: Optional[dict[str, Any]] = None,
        adjustments: Optional[dict[str, Any]] = None,
        status: Optional[TaxReportStatus] = None,
        submitted_at: Optional[datetime] = None,
    ) -> None:
        """Update fields of a tax report; None leaves a field unchanged."""
        pass
