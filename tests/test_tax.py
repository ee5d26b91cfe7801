"""Tests for UStVA, Körperschaftsteuer and stored tax reports."""

import pytest
from datetime import date
from decimal import Decimal

from bilanz.domain.entities import TaxReportStatus, TaxReportType
from bilanz.domain.errors import ConflictError, NotFoundError, ValidationError
from bilanz.domain.tax import period_type_for
from bilanz.domain.tax_fields import KST_ADJUSTMENTS, USTVA_FIELDS, ustva_fields_by_section, validate_adjustments


@pytest.fixture
def vat_bookings(fiscal_year, post):
    """One 19% sale and one 19% purchase in March 2024."""
    post(date(2024, 3, 10), ("1200", "D", "119.00"), ("8400", "C", "100.00"), ("1776", "C", "19.00"),
         description="Ausgangsrechnung")
    post(date(2024, 3, 20), ("6300", "D", "50.00"), ("1576", "D", "9.50"), ("1200", "C", "59.50"),
         description="Eingangsrechnung")
    return fiscal_year


class TestPeriodType:
    """Tests for classifying reporting periods."""

    @pytest.mark.parametrize(
        "start,end,expected",
        [
            (date(2024, 2, 1), date(2024, 2, 29), "monthly"),
            (date(2024, 3, 1), date(2024, 3, 31), "monthly"),
            (date(2024, 4, 1), date(2024, 6, 30), "quarterly"),
            (date(2024, 1, 1), date(2024, 12, 31), "annual"),
            (date(2024, 1, 1), date(2024, 1, 10), "custom"),
        ],
    )
    def test_period_type(self, start, end, expected):
        """Test the period type follows the inclusive length in days."""
        assert period_type_for(start, end) == expected


class TestUstva:
    """Tests for the Umsatzsteuervoranmeldung."""

    def test_output_vat_only(self, bookkeeping, company_id, fiscal_year, post):
        """Test 119 EUR gross at 19% yields Kz. 81 = 19.00 and a 19.00 liability."""
        post(date(2024, 3, 10), ("1200", "D", "119.00"), ("8400", "C", "100.00"), ("1776", "C", "19.00"))

        data = bookkeeping.ustva.compute(company_id, date(2024, 3, 1), date(2024, 3, 31))

        assert data["fields"]["kz_81"]["value"] == Decimal("19.00")
        assert data["fields"]["kz_81"]["account"] == "1776"
        assert data["fields"]["kz_66"]["value"] == Decimal("0.00")
        assert data["net_vat_liability"] == Decimal("19.00")
        assert data["fields"]["kz_83"]["value"] == Decimal("19.00")
        assert list(data["sections"]) == ["output_vat", "input_vat", "reverse_charge", "summary"]
        assert [f["key"] for f in data["sections"]["summary"]["fields"]] == ["kz_83"]
        assert data["sections"]["summary"]["subtotal"] == Decimal("19.00")
        assert data["period_type"] == "monthly"
        assert data["metadata"]["journal_entries_count"] == 1

    def test_input_vat_reduces_liability(self, bookkeeping, company_id, vat_bookings):
        """Test input VAT is deducted from output VAT."""
        data = bookkeeping.ustva.compute(company_id, date(2024, 3, 1), date(2024, 3, 31))

        assert data["fields"]["kz_66"]["value"] == Decimal("9.50")
        assert data["output_vat_total"] == Decimal("19.00")
        assert data["input_vat_total"] == Decimal("9.50")
        assert data["net_vat_liability"] == Decimal("9.50")
        assert data["sections"]["input_vat"]["subtotal"] == Decimal("9.50")

    def test_period_outside_bookings(self, bookkeeping, company_id, vat_bookings):
        """Test a period without VAT bookings reports zeros."""
        data = bookkeeping.ustva.compute(company_id, date(2024, 4, 1), date(2024, 4, 30))

        assert data["net_vat_liability"] == Decimal("0.00")
        assert data["metadata"]["journal_entries_count"] == 0

    def test_drafts_not_counted(self, bookkeeping, company_id, fiscal_year):
        """Test only posted entries enter the UStVA."""
        from conftest import entry

        bookkeeping.ledger.save_draft(
            company_id,
            entry(date(2024, 3, 10), ("1200", "D", "119.00"), ("8400", "C", "100.00"), ("1776", "C", "19.00")),
        )
        data = bookkeeping.ustva.compute(company_id, date(2024, 3, 1), date(2024, 3, 31))
        assert data["net_vat_liability"] == Decimal("0.00")

    def test_end_before_start(self, bookkeeping, company_id):
        """Test an inverted period is rejected."""
        with pytest.raises(ValidationError, match="before start"):
            bookkeeping.ustva.compute(company_id, date(2024, 3, 31), date(2024, 3, 1))

    def test_compute_ustva_result(self, bookkeeping, company_id):
        """Test the facade wraps validation errors."""
        result = bookkeeping.compute_ustva(company_id, date(2024, 3, 31), date(2024, 3, 1))
        assert not result.success

    def test_every_field_has_a_section(self):
        """Test every UStVA field belongs to a known section."""
        grouped = ustva_fields_by_section()
        assert sum(len(fields) for fields in grouped.values()) == len(USTVA_FIELDS)
        assert [f.key for f in grouped["summary"]] == ["kz_83"]


class TestKst:
    """Tests for the Körperschaftsteuer calculation."""

    def test_kst_on_profit(self, bookkeeping, company_id, profitable_year):
        """Test 15% KSt on a 3.000 EUR profit without adjustments."""
        data = bookkeeping.kst.compute(company_id, profitable_year.id)

        assert data["base_data"]["net_income"] == Decimal("3000.00")
        assert data["base_data"]["net_income_label"] == "Jahresüberschuss"
        assert data["calculated"]["taxable_income"] == Decimal("3000.00")
        assert data["calculated"]["kst_amount"] == Decimal("450.00")
        assert data["metadata"]["stored_balance_sheet"] is False
        assert [row["key"] for row in data["adjustments"]] == [a.key for a in KST_ADJUSTMENTS]

    def test_adjustments_applied_with_sign(self, bookkeeping, company_id, profitable_year):
        """Test add and subtract adjustments change the taxable income."""
        data = bookkeeping.kst.compute(
            company_id,
            profitable_year.id,
            {"non_deductible_expenses": "500", "loss_carryforward": "1000"},
        )

        assert data["calculated"]["taxable_income"] == Decimal("2500.00")
        assert data["calculated"]["kst_amount"] == Decimal("375.00")
        rows = {row["key"]: row for row in data["adjustments"]}
        assert rows["non_deductible_expenses"]["adjustment_sign"] == "add"
        assert rows["loss_carryforward"]["adjustment_sign"] == "subtract"
        assert rows["loss_carryforward"]["value"] == Decimal("1000.00")

    def test_kst_rounds_half_up(self, bookkeeping, company_id, profitable_year):
        """Test the tax amount is rounded to cents."""
        data = bookkeeping.kst.compute(company_id, profitable_year.id, {"tax_free_income": "0.03"})
        assert data["calculated"]["taxable_income"] == Decimal("2999.97")
        assert data["calculated"]["kst_amount"] == Decimal("450.00")

    def test_kst_never_negative(self, bookkeeping, company_id, fiscal_year, post):
        """Test a loss yields zero tax."""
        post(date(2024, 5, 1), ("6300", "D", "800.00"), ("1200", "C", "800.00"))

        data = bookkeeping.kst.compute(company_id, fiscal_year.id)
        assert data["calculated"]["taxable_income"] == Decimal("-800.00")
        assert data["calculated"]["kst_amount"] == Decimal("0.00")
        assert data["base_data"]["net_income_label"] == "Jahresfehlbetrag"

    def test_closed_year_uses_stored_snapshot(self, bookkeeping, company_id, profitable_year):
        """Test a closed year is taxed on its frozen result."""
        bookkeeping.fiscal_years.close_fiscal_year(profitable_year.id, create_next_year_opening=False)

        data = bookkeeping.kst.compute(company_id, profitable_year.id)
        assert data["metadata"]["stored_balance_sheet"] is True
        assert data["base_data"]["net_income"] == Decimal("3000.00")

    def test_unknown_adjustment(self, bookkeeping, company_id, fiscal_year):
        """Test unknown adjustment keys are rejected."""
        with pytest.raises(ValidationError, match="Unknown KSt adjustment"):
            bookkeeping.kst.compute(company_id, fiscal_year.id, {"bribes": 10})

    def test_validate_adjustments_bad_amount(self):
        """Test non-numeric adjustment values are rejected."""
        with pytest.raises(ValidationError, match="Invalid amount"):
            validate_adjustments({"donations": "viel"})

    def test_unknown_fiscal_year(self, bookkeeping, company_id):
        """Test a missing fiscal year is reported."""
        result = bookkeeping.compute_kst(company_id, 999)
        assert not result.success
        assert "not found" in result.message


class TestTaxReports:
    """Tests for the stored report lifecycle."""

    def test_ustva_report_lifecycle(self, bookkeeping, company_id, vat_bookings):
        """Test draft, submitted and accepted follow each other."""
        report = bookkeeping.tax_reports.create_ustva_report(company_id, date(2024, 3, 1), date(2024, 3, 31))

        assert report.status is TaxReportStatus.DRAFT
        assert report.report_type is TaxReportType.USTVA
        assert report.period_type == "monthly"
        assert report.fiscal_year_id == vat_bookings.id
        assert report.generated_data["net_vat_liability"] == Decimal("9.50")

        submitted = bookkeeping.tax_reports.submit(report.id)
        assert submitted.status is TaxReportStatus.SUBMITTED
        assert submitted.submitted_at is not None

        accepted = bookkeeping.tax_reports.accept(report.id)
        assert accepted.status is TaxReportStatus.ACCEPTED

    def test_submitted_report_is_frozen(self, bookkeeping, company_id, vat_bookings):
        """Test a submitted report cannot be regenerated or submitted again."""
        report = bookkeeping.tax_reports.create_ustva_report(company_id, date(2024, 3, 1), date(2024, 3, 31))
        bookkeeping.tax_reports.submit(report.id)

        with pytest.raises(ConflictError, match="expected draft"):
            bookkeeping.tax_reports.regenerate(report.id)
        with pytest.raises(ConflictError):
            bookkeeping.tax_reports.submit(report.id)

    def test_accept_requires_submitted(self, bookkeeping, company_id, vat_bookings):
        """Test a draft cannot be accepted directly."""
        report = bookkeeping.tax_reports.create_ustva_report(company_id, date(2024, 3, 1), date(2024, 3, 31))
        with pytest.raises(ConflictError, match="expected submitted"):
            bookkeeping.tax_reports.accept(report.id)

    def test_regenerate_picks_up_new_bookings(self, bookkeeping, company_id, vat_bookings, post):
        """Test regenerating a draft recomputes it from the ledger."""
        report = bookkeeping.tax_reports.create_ustva_report(company_id, date(2024, 3, 1), date(2024, 3, 31))
        post(date(2024, 3, 25), ("1200", "D", "119.00"), ("8400", "C", "100.00"), ("1776", "C", "19.00"))

        regenerated = bookkeeping.tax_reports.regenerate(report.id)
        assert regenerated.generated_data["net_vat_liability"] == Decimal("28.50")

    def test_kst_report_adjustments(self, bookkeeping, company_id, profitable_year):
        """Test KSt report adjustments are stored and recomputed."""
        report = bookkeeping.tax_reports.create_kst_report(
            company_id, profitable_year.id, {"donations": "200"}
        )
        assert report.report_type is TaxReportType.KST
        assert report.period_type == "annual"
        assert report.generated_data["calculated"]["taxable_income"] == Decimal("2800.00")

        updated = bookkeeping.tax_reports.update_adjustments(report.id, {"donations": "1000"})
        assert updated.generated_data["calculated"]["taxable_income"] == Decimal("2000.00")
        assert updated.adjustments["donations"] == Decimal("1000")

    def test_ustva_report_has_no_adjustments(self, bookkeeping, company_id, vat_bookings):
        """Test adjustments are a KSt feature."""
        report = bookkeeping.tax_reports.create_ustva_report(company_id, date(2024, 3, 1), date(2024, 3, 31))
        with pytest.raises(ValidationError, match="Only KSt"):
            bookkeeping.tax_reports.update_adjustments(report.id, {"donations": "1"})

    def test_list_and_missing_reports(self, bookkeeping, company_id, vat_bookings):
        """Test listing by type and looking up a missing report."""
        bookkeeping.tax_reports.create_ustva_report(company_id, date(2024, 3, 1), date(2024, 3, 31))
        bookkeeping.tax_reports.create_kst_report(company_id, vat_bookings.id)

        assert len(bookkeeping.tax_reports.list_reports(company_id)) == 2
        kst_reports = bookkeeping.tax_reports.list_reports(company_id, TaxReportType.KST)
        assert [r.report_type for r in kst_reports] == [TaxReportType.KST]
        with pytest.raises(NotFoundError):
            bookkeeping.tax_reports.require_report(999)


class TestAggregateRange:
    """Tests for date-range aggregation used by the UStVA."""

    def test_range_and_codes(self, bookkeeping, company_id, vat_bookings):
        """Test balances are limited to codes and counted per entry."""
        balances, entry_count = bookkeeping.aggregator.aggregate_range(
            company_id, date(2024, 3, 1), date(2024, 3, 31), account_codes=["1576", "1776"]
        )

        assert sorted(balances) == ["1576", "1776"]
        assert balances["1776"].debit_balance == Decimal("-19.00")
        assert balances["1776"].balance == Decimal("19.00")
        assert entry_count == 2

    def test_empty_range(self, bookkeeping, company_id, vat_bookings):
        """Test a range without bookings is empty."""
        balances, entry_count = bookkeeping.aggregator.aggregate_range(
            company_id, date(2024, 4, 1), date(2024, 4, 30)
        )

        assert balances == {}
        assert entry_count == 0
