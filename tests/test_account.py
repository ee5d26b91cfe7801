"""Tests for ledger accounts."""

import pytest
from datetime import date
from decimal import Decimal

from bilanz.cli.main import cli
from bilanz.domain.entities import AccountType
from bilanz.domain.errors import ConflictError, DependencyError, NotFoundError, ValidationError


class TestAccountService:
    """Tests for AccountService."""

    def test_create_from_template(self, bookkeeping, company_id):
        """Test name and type come from the SKR03 chart."""
        account_id = bookkeeping.accounts.create_account(company_id, "8400")
        account = bookkeeping.accounts.get_account(account_id)

        assert account.name == "Erlöse 19% USt"
        assert account.account_type is AccountType.REVENUE
        assert account.presentation_rule is None

    def test_create_with_explicit_values(self, bookkeeping, company_id):
        """Test explicit name, type, rate and rule are stored."""
        account_id = bookkeeping.accounts.create_account(
            company_id,
            "1210",
            name="Tagesgeld",
            account_type=AccountType.ASSET,
            tax_rate=Decimal("0"),
            presentation_rule="bank_bidirectional",
        )
        account = bookkeeping.accounts.get_account(account_id)

        assert account.name == "Tagesgeld"
        assert account.presentation_rule == "bank_bidirectional"

    def test_duplicate_code(self, bookkeeping, company_id):
        """Test a code exists only once per company."""
        bookkeeping.accounts.create_account(company_id, "1200")
        with pytest.raises(ConflictError):
            bookkeeping.accounts.create_account(company_id, " 1200 ")

    def test_unknown_code_needs_type(self, bookkeeping, company_id):
        """Test an uncategorized code without explicit type is rejected."""
        with pytest.raises(ValidationError, match="Cannot infer"):
            bookkeeping.accounts.create_account(company_id, "2500")

        account_id = bookkeeping.accounts.create_account(
            company_id, "2500", account_type=AccountType.EXPENSE
        )
        assert bookkeeping.accounts.get_account(account_id).name == "Konto 2500"

    def test_unknown_rule(self, bookkeeping, company_id):
        """Test unknown presentation rules are rejected with the known keys."""
        with pytest.raises(ValidationError, match="bank_bidirectional"):
            bookkeeping.accounts.create_account(company_id, "1200", presentation_rule="magic")

    def test_unknown_company(self, bookkeeping):
        """Test accounts need an existing company."""
        with pytest.raises(NotFoundError):
            bookkeeping.accounts.create_account(999, "1200")

    def test_find_or_create(self, bookkeeping, company_id):
        """Test lookup creates the account once from the chart."""
        first = bookkeeping.accounts.find_or_create_account_by_code(company_id, "1776")
        second = bookkeeping.accounts.find_or_create_account_by_code(company_id, "1776")

        assert first.id == second.id
        assert len(bookkeeping.accounts.list_accounts(company_id)) == 1
        with pytest.raises(NotFoundError, match="no template"):
            bookkeeping.accounts.find_or_create_account_by_code(company_id, "2500")

    def test_set_and_clear_rule(self, bookkeeping, company_id):
        """Test the rule override can be set and removed."""
        account_id = bookkeeping.accounts.create_account(company_id, "1200")

        bookkeeping.accounts.set_presentation_rule(account_id, "asset_only")
        assert bookkeeping.accounts.get_account(account_id).presentation_rule == "asset_only"

        bookkeeping.accounts.set_presentation_rule(account_id, None)
        assert bookkeeping.accounts.get_account(account_id).presentation_rule is None

        with pytest.raises(ValidationError):
            bookkeeping.accounts.set_presentation_rule(account_id, "magic")

    def test_delete_unused(self, bookkeeping, company_id):
        """Test an account without line items can be deleted."""
        account_id = bookkeeping.accounts.create_account(company_id, "1200")
        bookkeeping.accounts.delete_account(account_id)

        assert bookkeeping.accounts.get_account(account_id) is None
        with pytest.raises(NotFoundError):
            bookkeeping.accounts.delete_account(account_id)

    def test_delete_used_account_blocked(self, bookkeeping, company_id, opened_fiscal_year, post):
        """Test an account referenced by line items cannot be deleted."""
        post(date(2024, 3, 1), ("1200", "D", 100), ("8400", "C", 100))
        account = bookkeeping.accounts.get_account_by_code(company_id, "8400")

        with pytest.raises(DependencyError):
            bookkeeping.accounts.delete_account(account.id)


class TestAccountCommands:
    """Tests for the account CLI group."""

    @pytest.fixture
    def run(self, cli_runner, temp_db):
        def _run(*args):
            return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args])

        assert _run("company", "create", "Muster GmbH").exit_code == 0
        return _run

    def test_list_empty(self, run):
        """Test listing accounts when none exist."""
        result = run("account", "list")

        assert result.exit_code == 0
        assert "No accounts found" in result.output

    def test_list_shows_effective_rule(self, run):
        """Test the list shows the category default rule."""
        run("account", "create", "1200")
        result = run("account", "list")

        assert "1200" in result.output
        assert "bank_bidirectional" in result.output

    def test_invalid_tax_rate(self, run):
        """Test an unparseable tax rate fails."""
        result = run("account", "create", "8400", "--tax-rate", "neunzehn")

        assert result.exit_code == 1
        assert "Invalid tax rate" in result.output

    def test_rule_override_and_clear(self, run):
        """Test setting and clearing a rule override."""
        run("account", "create", "1200")

        result = run("account", "rule", "1200", "asset_only")
        assert result.exit_code == 0
        assert "now uses presentation rule 'asset_only'" in result.output
        assert "asset_only" in run("account", "list").output

        result = run("account", "rule", "1200", "--clear")
        assert "Cleared presentation rule of account 1200" in result.output

    def test_rule_needs_rule_or_clear(self, run):
        """Test the rule command rejects missing and conflicting arguments."""
        run("account", "create", "1200")

        assert run("account", "rule", "1200").exit_code == 1
        assert run("account", "rule", "1200", "asset_only", "--clear").exit_code == 1

    def test_delete(self, run):
        """Test deleting an account and a missing one."""
        run("account", "create", "1200")

        result = run("account", "delete", "1200")
        assert result.exit_code == 0
        assert "Deleted account 1200" in result.output

        result = run("account", "delete", "1200")
        assert result.exit_code == 1
        assert "not found" in result.output
