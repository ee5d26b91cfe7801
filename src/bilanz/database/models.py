"""SQLAlchemy models for bilanz database."""

import json
from datetime import datetime, date, UTC
from decimal import Decimal
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session
from sqlalchemy.types import TypeDecorator

Base = declarative_base()


def _json_default(value):
    if isinstance(value, Decimal):
        # Two-decimal amounts survive the float repr round trip exactly.
        return float(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class JSONDecimal(TypeDecorator):
    """JSON column that reads numbers back as Decimal."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return json.dumps(value, default=_json_default, ensure_ascii=False)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return json.loads(value, parse_float=Decimal)


class Company(Base):
    """Company model."""

    __tablename__ = "companies"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    accounts = relationship("Account", back_populates="company", cascade="all, delete-orphan")
    fiscal_years = relationship("FiscalYear", back_populates="company", cascade="all, delete-orphan")
    journal_entries = relationship("JournalEntry", back_populates="company", cascade="all, delete-orphan")
    bank_accounts = relationship("BankAccount", back_populates="company", cascade="all, delete-orphan")
    tax_reports = relationship("TaxReport", back_populates="company", cascade="all, delete-orphan")


class Account(Base):
    """Ledger account model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    code = Column(String, nullable=False)
    name = Column(String, nullable=False)
    account_type = Column(String, nullable=False)
    tax_rate = Column(Numeric(5, 2), nullable=True)
    presentation_rule = Column(String, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (UniqueConstraint("company_id", "code", name="uq_account_company_code"),)

    # Relationships
    company = relationship("Company", back_populates="accounts")
    line_items = relationship("LineItem", back_populates="account")


class FiscalYear(Base):
    """Fiscal year model."""

    __tablename__ = "fiscal_years"

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    year = Column(Integer, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    closed = Column(Boolean, default=False, nullable=False)
    opening_balance_posted_at = Column(DateTime, nullable=True)
    closing_balance_posted_at = Column(DateTime, nullable=True)
    closed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (UniqueConstraint("company_id", "year", name="uq_fiscal_year_company_year"),)

    # Relationships
    company = relationship("Company", back_populates="fiscal_years")
    journal_entries = relationship("JournalEntry", back_populates="fiscal_year")
    balance_sheets = relationship("BalanceSheet", back_populates="fiscal_year", cascade="all, delete-orphan")


class JournalEntry(Base):
    """Journal entry header model."""

    __tablename__ = "journal_entries"

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    fiscal_year_id = Column(Integer, ForeignKey("fiscal_years.id"), nullable=False)
    booking_date = Column(Date, nullable=False)
    description = Column(String, nullable=False)
    entry_type = Column(String, default="normal", nullable=False)
    sequence = Column(Integer, default=1000, nullable=False)
    posted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    company = relationship("Company", back_populates="journal_entries")
    fiscal_year = relationship("FiscalYear", back_populates="journal_entries")
    line_items = relationship(
        "LineItem",
        back_populates="journal_entry",
        cascade="all, delete-orphan",
        order_by="LineItem.id",
    )


class LineItem(Base):
    """Journal entry line item model."""

    __tablename__ = "line_items"

    id = Column(Integer, primary_key=True)
    journal_entry_id = Column(Integer, ForeignKey("journal_entries.id"), nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    direction = Column(String, nullable=False)
    bank_transaction_id = Column(Integer, ForeignKey("bank_transactions.id"), nullable=True)
    description = Column(String, nullable=True)

    # Relationships
    journal_entry = relationship("JournalEntry", back_populates="line_items")
    account = relationship("Account", back_populates="line_items")
    bank_transaction = relationship("BankTransaction", back_populates="line_items")


class BankAccount(Base):
    """Bank account model linked to a ledger account."""

    __tablename__ = "bank_accounts"

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    name = Column(String, nullable=False)
    iban = Column(String, nullable=True)
    ledger_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)

    # Relationships
    company = relationship("Company", back_populates="bank_accounts")
    ledger_account = relationship("Account")
    transactions = relationship("BankTransaction", back_populates="bank_account", cascade="all, delete-orphan")


class BankTransaction(Base):
    """Bank transaction model."""

    __tablename__ = "bank_transactions"

    id = Column(Integer, primary_key=True)
    bank_account_id = Column(Integer, ForeignKey("bank_accounts.id"), nullable=False)
    booking_date = Column(Date, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    remittance_information = Column(String, nullable=True)
    status = Column(String, default="pending", nullable=False)

    # Relationships
    bank_account = relationship("BankAccount", back_populates="transactions")
    line_items = relationship("LineItem", back_populates="bank_transaction")


class BalanceSheet(Base):
    """Balance sheet snapshot model."""

    __tablename__ = "balance_sheets"

    id = Column(Integer, primary_key=True)
    fiscal_year_id = Column(Integer, ForeignKey("fiscal_years.id"), nullable=False)
    sheet_type = Column(String, nullable=False)
    source = Column(String, nullable=False)
    balance_date = Column(Date, nullable=False)
    data = Column(JSONDecimal, nullable=False)
    posted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (UniqueConstraint("fiscal_year_id", "sheet_type", name="uq_balance_sheet_year_type"),)

    # Relationships
    fiscal_year = relationship("FiscalYear", back_populates="balance_sheets")


class TaxReport(Base):
    """Tax report model (UStVA, KSt)."""

    __tablename__ = "tax_reports"

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    fiscal_year_id = Column(Integer, ForeignKey("fiscal_years.id"), nullable=True)
    report_type = Column(String, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    period_type = Column(String, nullable=False)
    status = Column(String, default="draft", nullable=False)
    generated_data = Column(JSONDecimal, nullable=False)
    adjustments = Column(JSONDecimal, nullable=True)
    submitted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    company = relationship("Company", back_populates="tax_reports")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
