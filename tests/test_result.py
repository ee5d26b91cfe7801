"""Tests for Ok/Err results returned by the bookkeeping facade."""

from datetime import date

import pytest

from bilanz.domain.errors import (
    ImmutableEntryError,
    NotFoundError,
    ValidationError,
)
from bilanz.domain.result import Err, Ok, capture
from conftest import entry


def test_capture_ok():
    """Test a returned value is wrapped in Ok."""
    result = capture(lambda a, b: a + b, 1, b=2)

    assert isinstance(result, Ok)
    assert result.success
    assert result.value == 3


def test_capture_domain_error():
    """Test a DomainError becomes Err with its type."""

    def fail():
        raise NotFoundError("Account 7 not found")

    result = capture(fail)

    assert isinstance(result, Err)
    assert not result.success
    assert result.errors == ("Account 7 not found",)
    assert result.error_type is NotFoundError
    assert result.message == "Account 7 not found"


def test_capture_propagates_other_errors():
    """Test programming errors are not converted."""

    def broken():
        raise KeyError("oops")

    with pytest.raises(KeyError):
        capture(broken)


def test_err_message_joins_errors():
    """Test several messages are joined."""
    assert Err(errors=("eins", "zwei")).message == "eins; zwei"


class TestFacadeResults:
    """Tests for the result-returning operations of Bookkeeping."""

    def test_post_journal_entry(self, bookkeeping, company_id, opened_fiscal_year):
        """Test a balanced entry posts and an unbalanced one is an Err."""
        ok = bookkeeping.post_journal_entry(
            company_id, entry(date(2024, 3, 1), ("1200", "D", 100), ("8400", "C", 100))
        )
        assert ok.success
        assert ok.value.posted

        err = bookkeeping.post_journal_entry(
            company_id, entry(date(2024, 3, 1), ("1200", "D", 100), ("8400", "C", 90))
        )
        assert not err.success
        assert err.error_type is ValidationError

    def test_delete_posted_entry(self, bookkeeping, company_id, opened_fiscal_year):
        """Test deleting a posted entry returns an immutability Err."""
        posted = bookkeeping.post_journal_entry(
            company_id, entry(date(2024, 3, 1), ("1200", "D", 100), ("8400", "C", 100))
        ).value

        result = bookkeeping.delete_journal_entry(posted.id)

        assert isinstance(result, Err)
        assert result.error_type is ImmutableEntryError
        assert "GoBD" in result.message

    def test_delete_unknown_entry(self, bookkeeping):
        """Test deleting a missing entry returns NotFoundError."""
        result = bookkeeping.delete_journal_entry(999)

        assert result.error_type is NotFoundError

    def test_compute_ustva_ok(self, bookkeeping, company_id, fiscal_year):
        """Test an empty period computes to zero."""
        result = bookkeeping.compute_ustva(company_id, date(2024, 1, 1), date(2024, 1, 31))

        assert result.success
        assert result.value["period_type"] == "monthly"
