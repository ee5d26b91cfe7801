"""Domain model entities for bilanz.

These are pure data classes representing bookkeeping concepts, independent
of the database schema. Services exchange these with the persistence layer,
never ORM rows.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

CENT = Decimal("0.01")


class AccountType(str, Enum):
    """Account type in the chart of accounts."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"

    @property
    def debit_natured(self) -> bool:
        """Whether a positive balance of this type sits on the debit side."""
        return self in (AccountType.ASSET, AccountType.EXPENSE)


class Direction(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"

    @property
    def opposite(self) -> "Direction":
        return Direction.CREDIT if self is Direction.DEBIT else Direction.DEBIT


class EntryType(str, Enum):
    NORMAL = "normal"
    OPENING = "opening"
    CLOSING = "closing"


class SheetType(str, Enum):
    OPENING = "opening"
    CLOSING = "closing"


class BalanceSheetSource(str, Enum):
    MANUAL = "manual"
    CALCULATED = "calculated"
    CARRYFORWARD = "carryforward"


class FiscalYearState(str, Enum):
    OPEN = "open"
    OPEN_WITH_OPENING = "open_with_opening"
    CLOSING_POSTED = "closing_posted"
    CLOSED = "closed"


class BankTransactionStatus(str, Enum):
    PENDING = "pending"
    BOOKED = "booked"
    RECONCILED = "reconciled"


class TaxReportType(str, Enum):
    USTVA = "ustva"
    KST = "kst"


class TaxReportStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    ACCEPTED = "accepted"


@dataclass(frozen=True)
class Company:
    """Company domain entity, the root of every bookkeeping aggregate."""

    id: int
    name: str
    created_at: datetime


@dataclass(frozen=True)
class Account:
    """Ledger account domain entity."""

    id: int
    company_id: int
    code: str
    name: str
    account_type: AccountType
    created_at: datetime
    tax_rate: Optional[Decimal] = None
    presentation_rule: Optional[str] = None


@dataclass(frozen=True)
class FiscalYear:
    """Fiscal year domain entity."""

    id: int
    company_id: int
    year: int
    start_date: date
    end_date: date
    closed: bool
    created_at: datetime
    opening_balance_posted_at: Optional[datetime] = None
    closing_balance_posted_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None

    @property
    def state(self) -> FiscalYearState:
        if self.closed:
            return FiscalYearState.CLOSED
        if self.closing_balance_posted_at is not None:
            return FiscalYearState.CLOSING_POSTED
        if self.opening_balance_posted_at is not None:
            return FiscalYearState.OPEN_WITH_OPENING
        return FiscalYearState.OPEN

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True)
class LineItem:
    """Journal entry line item domain entity."""

    id: int
    journal_entry_id: int
    account_id: int
    account_code: str
    amount: Decimal
    direction: Direction
    bank_transaction_id: Optional[int] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class JournalEntry:
    """Journal entry domain entity."""

    id: int
    company_id: int
    fiscal_year_id: int
    booking_date: date
    description: str
    entry_type: EntryType
    sequence: int
    created_at: datetime
    posted_at: Optional[datetime] = None
    line_items: tuple[LineItem, ...] = ()

    @property
    def posted(self) -> bool:
        return self.posted_at is not None

    @property
    def total_debit(self) -> Decimal:
        return sum(
            (li.amount for li in self.line_items if li.direction is Direction.DEBIT),
            Decimal("0"),
        )

    @property
    def total_credit(self) -> Decimal:
        return sum(
            (li.amount for li in self.line_items if li.direction is Direction.CREDIT),
            Decimal("0"),
        )


@dataclass(frozen=True)
class BankAccount:
    """Bank account domain entity linked to a ledger account."""

    id: int
    company_id: int
    name: str
    ledger_account_id: int
    iban: Optional[str] = None


@dataclass(frozen=True)
class BankTransaction:
    """Imported bank transaction; positive amounts are inflows."""

    id: int
    bank_account_id: int
    booking_date: date
    amount: Decimal
    status: BankTransactionStatus
    remittance_information: Optional[str] = None


@dataclass(frozen=True)
class BalanceSheet:
    """Stored balance sheet snapshot (opening or closing)."""

    id: int
    fiscal_year_id: int
    sheet_type: SheetType
    source: BalanceSheetSource
    balance_date: date
    data: dict[str, Any]
    created_at: datetime
    posted_at: Optional[datetime] = None

    @property
    def posted(self) -> bool:
        return self.posted_at is not None


@dataclass(frozen=True)
class TaxReport:
    """Stored tax report (UStVA or KSt)."""

    id: int
    company_id: int
    report_type: TaxReportType
    start_date: date
    end_date: date
    period_type: str
    status: TaxReportStatus
    generated_data: dict[str, Any]
    created_at: datetime
    fiscal_year_id: Optional[int] = None
    adjustments: dict[str, Any] = field(default_factory=dict)
    submitted_at: Optional[datetime] = None


@dataclass(frozen=True)
class DraftLineItem:
    """Line item input for the ledger."""

    account_code: str
    amount: Decimal
    direction: Direction
    description: Optional[str] = None
    bank_transaction_id: Optional[int] = None


@dataclass(frozen=True)
class DraftEntry:
    """Journal entry input for the ledger."""

    booking_date: date
    description: str
    line_items: tuple[DraftLineItem, ...]
    entry_type: EntryType = EntryType.NORMAL
    sequence: Optional[int] = None


@dataclass(frozen=True)
class LedgerLine:
    """A persisted line item joined with its account and entry header."""

    account_code: str
    account_name: str
    account_type: AccountType
    presentation_rule: Optional[str]
    direction: Direction
    amount: Decimal
    journal_entry_id: int
    entry_type: EntryType
    posted: bool


@dataclass(frozen=True)
class AccountBalance:
    """Aggregated debit and credit totals of one account."""

    code: str
    name: str
    account_type: AccountType
    total_debit: Decimal
    total_credit: Decimal
    presentation_rule: Optional[str] = None

    @property
    def debit_balance(self) -> Decimal:
        """Signed balance seen from the debit side (debit minus credit)."""
        return self.total_debit - self.total_credit

    @property
    def balance(self) -> Decimal:
        """Balance with the account type's natural side positive."""
        if self.account_type.debit_natured:
            return self.debit_balance
        return -self.debit_balance
