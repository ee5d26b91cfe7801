"""Tests for companies."""

import pytest

from bilanz.cli.main import cli
from bilanz.domain.errors import ConflictError, NotFoundError, ValidationError
from bilanz.utils.company_resolver import resolve_company


class TestCompanyService:
    """Tests for CompanyService."""

    def test_create_and_list(self, bookkeeping):
        """Test created companies are listed."""
        company_id = bookkeeping.companies.create_company("  Muster GmbH ")

        companies = bookkeeping.companies.list_companies()
        assert [c.name for c in companies] == ["Muster GmbH"]
        assert companies[0].id == company_id

    def test_empty_name(self, bookkeeping):
        """Test blank names are rejected."""
        with pytest.raises(ValidationError):
            bookkeeping.companies.create_company("   ")

    def test_duplicate_name(self, bookkeeping, company_id):
        """Test company names are unique."""
        with pytest.raises(ConflictError, match="already exists"):
            bookkeeping.companies.create_company("Muster GmbH")

    def test_require_company(self, bookkeeping, company_id):
        """Test require_company raises for unknown IDs."""
        assert bookkeeping.companies.require_company(company_id).name == "Muster GmbH"
        with pytest.raises(NotFoundError, match="Company 999 not found"):
            bookkeeping.companies.require_company(999)

    def test_delete_removes_owned_data(self, bookkeeping, company_id, fiscal_year):
        """Test deleting a company removes its fiscal years and accounts."""
        bookkeeping.accounts.create_account(company_id, "1200")

        bookkeeping.companies.delete_company(company_id)

        assert bookkeeping.companies.list_companies() == []
        assert bookkeeping.fiscal_years.get_fiscal_year(fiscal_year.id) is None
        with pytest.raises(NotFoundError):
            bookkeeping.companies.delete_company(company_id)


class TestResolveCompany:
    """Tests for resolving company names and IDs."""

    def test_by_name_and_id(self, bookkeeping, company_id):
        """Test names, integer IDs and numeric strings resolve."""
        service = bookkeeping.companies
        assert resolve_company(service, "Muster GmbH") == company_id
        assert resolve_company(service, company_id) == company_id
        assert resolve_company(service, str(company_id)) == company_id

    def test_unknown(self, bookkeeping, company_id):
        """Test unknown names raise NotFoundError."""
        with pytest.raises(NotFoundError, match="'Andere UG' not found"):
            resolve_company(bookkeeping.companies, "Andere UG")


class TestCompanyCommands:
    """Tests for the company CLI group."""

    def test_list_empty(self, cli_runner, temp_db):
        """Test listing without companies."""
        result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "company", "list"])

        assert result.exit_code == 0
        assert "No companies found" in result.output

    def test_delete_with_confirmation(self, cli_runner, temp_db):
        """Test declining the prompt keeps the company and --yes deletes it."""
        base = ["--db-path", temp_db.database_path]
        cli_runner.invoke(cli, [*base, "company", "create", "Muster GmbH"])

        result = cli_runner.invoke(cli, [*base, "company", "delete", "Muster GmbH"], input="n\n")
        assert "Deletion cancelled" in result.output

        result = cli_runner.invoke(cli, [*base, "company", "delete", "1", "--yes"])
        assert result.exit_code == 0
        assert "Deleted company 'Muster GmbH'" in result.output

    def test_delete_unknown(self, cli_runner, temp_db):
        """Test deleting a missing company fails."""
        result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "company", "delete", "Nix", "--yes"])

        assert result.exit_code == 1
        assert "not found" in result.output
