"""Mapper functions to convert SQLAlchemy models into domain entities.

This layer isolates the conversion logic, so services never see ORM rows.
"""

from bilanz.domain import entities as domain
from bilanz.database.models import (
    Company as ORMCompany,
    Account as ORMAccount,
    FiscalYear as ORMFiscalYear,
    JournalEntry as ORMJournalEntry,
    LineItem as ORMLineItem,
    BankAccount as ORMBankAccount,
    BankTransaction as ORMBankTransaction,
    BalanceSheet as ORMBalanceSheet,
    TaxReport as ORMTaxReport,
)


def company_to_domain(orm_company: ORMCompany) -> domain.Company:
    """Convert SQLAlchemy Company model to domain Company entity."""
    return domain.Company(
        id=orm_company.id,
        name=orm_company.name,
        created_at=orm_company.created_at,
    )


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        company_id=orm_account.company_id,
        code=orm_account.code,
        name=orm_account.name,
        account_type=domain.AccountType(orm_account.account_type),
        created_at=orm_account.created_at,
        tax_rate=orm_account.tax_rate,
        presentation_rule=orm_account.presentation_rule,
    )


def fiscal_year_to_domain(orm_fiscal_year: ORMFiscalYear) -> domain.FiscalYear:
    """Convert SQLAlchemy FiscalYear model to domain FiscalYear entity."""
    return domain.FiscalYear(
        id=orm_fiscal_year.id,
        company_id=orm_fiscal_year.company_id,
        year=orm_fiscal_year.year,
        start_date=orm_fiscal_year.start_date,
        end_date=orm_fiscal_year.end_date,
        closed=orm_fiscal_year.closed,
        created_at=orm_fiscal_year.created_at,
        opening_balance_posted_at=orm_fiscal_year.opening_balance_posted_at,
        closing_balance_posted_at=orm_fiscal_year.closing_balance_posted_at,
        closed_at=orm_fiscal_year.closed_at,
    )


def line_item_to_domain(orm_line_item: ORMLineItem) -> domain.LineItem:
    """Convert SQLAlchemy LineItem model to domain LineItem entity."""
    return domain.LineItem(
        id=orm_line_item.id,
        journal_entry_id=orm_line_item.journal_entry_id,
        account_id=orm_line_item.account_id,
        account_code=orm_line_item.account.code,
        amount=orm_line_item.amount,
        direction=domain.Direction(orm_line_item.direction),
        bank_transaction_id=orm_line_item.bank_transaction_id,
        description=orm_line_item.description,
    )


def journal_entry_to_domain(orm_entry: ORMJournalEntry) -> domain.JournalEntry:
    """Convert SQLAlchemy JournalEntry model, with line items, to domain entity."""
    return domain.JournalEntry(
        id=orm_entry.id,
        company_id=orm_entry.company_id,
        fiscal_year_id=orm_entry.fiscal_year_id,
        booking_date=orm_entry.booking_date,
        description=orm_entry.description,
        entry_type=domain.EntryType(orm_entry.entry_type),
        sequence=orm_entry.sequence,
        created_at=orm_entry.created_at,
        posted_at=orm_entry.posted_at,
        line_items=tuple(line_item_to_domain(li) for li in orm_entry.line_items),
    )


def ledger_line_to_domain(orm_line_item: ORMLineItem) -> domain.LedgerLine:
    """Convert a LineItem row joined with account and entry to a LedgerLine."""
    account = orm_line_item.account
    entry = orm_line_item.journal_entry
    return domain.LedgerLine(
        account_code=account.code,
        account_name=account.name,
        account_type=domain.AccountType(account.account_type),
        presentation_rule=account.presentation_rule,
        direction=domain.Direction(orm_line_item.direction),
        amount=orm_line_item.amount,
        journal_entry_id=entry.id,
        entry_type=domain.EntryType(entry.entry_type),
        posted=entry.posted_at is not None,
    )


def bank_account_to_domain(orm_bank_account: ORMBankAccount) -> domain.BankAccount:
    """Convert SQLAlchemy BankAccount model to domain BankAccount entity."""
    return domain.BankAccount(
        id=orm_bank_account.id,
        company_id=orm_bank_account.company_id,
        name=orm_bank_account.name,
        ledger_account_id=orm_bank_account.ledger_account_id,
        iban=orm_bank_account.iban,
    )


def bank_transaction_to_domain(orm_transaction: ORMBankTransaction) -> domain.BankTransaction:
    """Convert SQLAlchemy BankTransaction model to domain BankTransaction entity."""
    return domain.BankTransaction(
        id=orm_transaction.id,
        bank_account_id=orm_transaction.bank_account_id,
        booking_date=orm_transaction.booking_date,
        amount=orm_transaction.amount,
        status=domain.BankTransactionStatus(orm_transaction.status),
        remittance_information=orm_transaction.remittance_information,
    )


def balance_sheet_to_domain(orm_sheet: ORMBalanceSheet) -> domain.BalanceSheet:
    """Convert SQLAlchemy BalanceSheet model to domain BalanceSheet entity."""
    return domain.BalanceSheet(
        id=orm_sheet.id,
        fiscal_year_id=orm_sheet.fiscal_year_id,
        sheet_type=domain.SheetType(orm_sheet.sheet_type),
        source=domain.BalanceSheetSource(orm_sheet.source),
        balance_date=orm_sheet.balance_date,
        data=orm_sheet.data,
        created_at=orm_sheet.created_at,
        posted_at=orm_sheet.posted_at,
    )


def tax_report_to_domain(orm_report: ORMTaxReport) -> domain.TaxReport:
    """Convert SQLAlchemy TaxReport model to domain TaxReport entity."""
    return domain.TaxReport(
        id=orm_report.id,
        company_id=orm_report.company_id,
        report_type=domain.TaxReportType(orm_report.report_type),
        start_date=orm_report.start_date,
        end_date=orm_report.end_date,
        period_type=orm_report.period_type,
        status=domain.TaxReportStatus(orm_report.status),
        generated_data=orm_report.generated_data,
        created_at=orm_report.created_at,
        fiscal_year_id=orm_report.fiscal_year_id,
        adjustments=orm_report.adjustments or {},
        submitted_at=orm_report.submitted_at,
    )
