"""Shared pytest fixtures for bilanz tests."""

import logging
import tempfile
import os
from datetime import date
from decimal import Decimal

import pytest

from bilanz.chart.loader import load_chart
from bilanz.database.factories import create_sqlite_database
from bilanz.domain.bookkeeping import Bookkeeping
from bilanz.domain.entities import Direction, DraftEntry, DraftLineItem


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture(scope="session")
def chart():
    """The built-in SKR03 chart table."""
    return load_chart()


@pytest.fixture
def bookkeeping(temp_db, chart):
    """All services wired over the temporary database."""
    return Bookkeeping(temp_db, chart=chart)


@pytest.fixture
def company_id(bookkeeping):
    """Create a sample company."""
    return bookkeeping.companies.create_company("Muster GmbH")


@pytest.fixture
def fiscal_year(bookkeeping, company_id):
    """Create the open fiscal year 2024."""
    return bookkeeping.fiscal_years.create_fiscal_year(company_id, 2024)


@pytest.fixture
def opened_fiscal_year(bookkeeping, fiscal_year):
    """Fiscal year 2024 with an opening balance: 25.000 EUR capital paid into the bank."""
    bookkeeping.fiscal_years.post_opening_balance(
        fiscal_year.id,
        {
            "aktiva": {"bank": [{"account_code": "1200", "balance": "25000.00"}]},
            "passiva": {"eigenkapital": [{"account_code": "0800", "balance": "25000.00"}]},
        },
    )
    return bookkeeping.fiscal_years.require_fiscal_year(fiscal_year.id)


def lines(*specs):
    """Build draft line items from (code, "D"|"C", amount) tuples."""
    return tuple(
        DraftLineItem(
            account_code=code,
            amount=Decimal(str(amount)),
            direction=Direction.DEBIT if side == "D" else Direction.CREDIT,
        )
        for code, side, amount in specs
    )


def entry(booking_date, *specs, description="Buchung"):
    """Build a normal draft entry."""
    return DraftEntry(booking_date=booking_date, description=description, line_items=lines(*specs))


@pytest.fixture
def post(bookkeeping, company_id):
    """Post a balanced entry: post(date(2024, 3, 1), ("1200", "D", 100), ("8400", "C", 100))."""

    def _post(booking_date, *specs, description="Buchung"):
        return bookkeeping.ledger.post_entry(company_id, entry(booking_date, *specs, description=description))

    return _post


@pytest.fixture
def profitable_year(opened_fiscal_year, post):
    """Fiscal year 2024 with 10.000 revenue and 7.000 expenses paid from the bank."""
    post(date(2024, 2, 1), ("1200", "D", "10000.00"), ("4000", "C", "10000.00"), description="Umsatz")
    post(
        date(2024, 6, 30),
        ("5000", "D", "3000.00"),
        ("6000", "D", "2000.00"),
        ("7600", "D", "500.00"),
        ("7000", "D", "1500.00"),
        ("1200", "C", "7000.00"),
        description="Aufwand",
    )
    return opened_fiscal_year


@pytest.fixture(autouse=True)
def reset_bilanz_logger():
    """Undo handlers the CLI attaches so caplog keeps seeing bilanz records."""
    yield
    bilanz_logger = logging.getLogger("bilanz")
    for handler in list(bilanz_logger.handlers):
        bilanz_logger.removeHandler(handler)
    bilanz_logger.propagate = True
    bilanz_logger.setLevel(logging.NOTSET)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
