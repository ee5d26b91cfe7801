"""UStVA and Körperschaftsteuer derivation plus stored tax reports."""

import logging
from datetime import date, datetime, UTC
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Mapping, Optional

from bilanz.chart.loader import Chart
from bilanz.database.base import Database
from bilanz.domain.aggregation import BalanceAggregator
from bilanz.domain.entities import (
    CENT,
    FiscalYear,
    SheetType,
    TaxReport,
    TaxReportStatus,
    TaxReportType,
)
from bilanz.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    fiscal_year_not_found,
)
from bilanz.domain.fiscal_year import source_net_income
from bilanz.domain.guv import GuVBuilder, net_income_label
from bilanz.domain.tax_fields import (
    KST_ADJUSTMENTS,
    KST_RATE,
    USTVA_FIELDS,
    USTVA_SECTIONS,
    ustva_fields_by_section,
    validate_adjustments,
)

logger = logging.getLogger(__name__)

PERIOD_TYPES = (
    (28, 31, "monthly"),
    (89, 92, "quarterly"),
    (365, 366, "annual"),
)


def period_type_for(start_date: date, end_date: date) -> str:
    """Classify a reporting window by its inclusive length in days."""
    days = (end_date - start_date).days + 1
    for low, high, label in PERIOD_TYPES:
        if low <= days <= high:
            return label
    return "custom"


class UstvaService:
    """Computes the Umsatzsteuervoranmeldung for a date range."""

    def __init__(self, aggregator: BalanceAggregator, chart: Chart):
        self.aggregator = aggregator
        self.chart = chart

    def compute(self, company_id: int, start_date: date, end_date: date) -> dict[str, Any]:
        """Sum VAT account activity of normal entries between two dates.

        Every field is reported as an absolute value. The net liability is
        output VAT minus input VAT plus the reverse charge net.

        Args:
            company_id: Company to report for
            start_date: First day of the period
            end_date: Last day of the period (inclusive)

        Returns:
            Dict with fields, sections, net_vat_liability, period_type and metadata

        Raises:
            ValidationError: If end_date is before start_date
        """
        if start_date is None or end_date is None:
            raise ValidationError("Start and end date are required")
        if end_date < start_date:
            raise ValidationError("End date must not be before start date")

        vat_accounts = self.chart.vat_accounts
        codes = [vat_accounts[f.vat_account] for f in USTVA_FIELDS if f.vat_account in vat_accounts]
        balances, entry_count = self.aggregator.aggregate_range(
            company_id, start_date, end_date, account_codes=codes
        )

        values: dict[str, Decimal] = {}
        fields: dict[str, dict[str, Any]] = {}
        for field in USTVA_FIELDS:
            if field.vat_account is None:
                continue
            code = vat_accounts.get(field.vat_account)
            balance = balances.get(code)
            value = abs(balance.debit_balance) if balance is not None else Decimal("0.00")
            values[field.key] = value
            fields[field.key] = {
                "field_number": field.field_number,
                "name": field.name,
                "description": field.description,
                "account": code,
                "value": value,
            }

        output_vat = values["kz_81"] + values["kz_86"]
        input_vat = values["kz_66"] + values["kz_61"]
        reverse_charge_net = values["kz_46"] - values["kz_47"]
        net_vat_liability = output_vat - input_vat + reverse_charge_net
        fields["kz_83"] = {
            "field_number": 83,
            "name": "Verbleibende Umsatzsteuer",
            "description": "Umsatzsteuer-Vorauszahlung (Zahllast) bzw. Überschuss (Erstattung)",
            "account": None,
            "value": net_vat_liability,
        }

        subtotals = {
            "output_vat": output_vat,
            "input_vat": input_vat,
            "reverse_charge": reverse_charge_net,
            "summary": net_vat_liability,
        }
        sections = {
            key: {
                "label": USTVA_SECTIONS[key],
                "fields": [dict(fields[f.key], key=f.key) for f in section_fields],
                "subtotal": subtotals[key],
            }
            for key, section_fields in ustva_fields_by_section().items()
        }

        return {
            "start_date": start_date.isoformat(),
            "end_date": end_date.isoformat(),
            "period_type": period_type_for(start_date, end_date),
            "fields": fields,
            "sections": sections,
            "output_vat_total": output_vat,
            "input_vat_total": input_vat,
            "net_vat_liability": net_vat_liability,
            "metadata": {
                "journal_entries_count": entry_count,
                "calculation_date": date.today().isoformat(),
            },
        }


class KstService:
    """Computes Körperschaftsteuer from the annual result."""

    def __init__(self, db: Database, guv_builder: GuVBuilder):
        self.db = db
        self.guv_builder = guv_builder

    def _fiscal_year(self, company_id: int, fiscal_year_id: int) -> FiscalYear:
        fiscal_year = self.db.get_fiscal_year(fiscal_year_id)
        if fiscal_year is None:
            raise NotFoundError(fiscal_year_not_found(fiscal_year_id))
        if fiscal_year.company_id != company_id:
            raise ValidationError(f"Fiscal year {fiscal_year.year} belongs to another company")
        return fiscal_year

    def net_income_for(self, fiscal_year: FiscalYear) -> tuple[Decimal, bool]:
        """Return (net income, from stored snapshot) for a fiscal year."""
        if fiscal_year.closed:
            snapshot = self.db.get_balance_sheet_for_year(fiscal_year.id, SheetType.CLOSING)
            if snapshot is not None:
                return source_net_income(snapshot.data), True
        guv = self.guv_builder.compute(fiscal_year.company_id, fiscal_year.id)
        return guv.net_income, False

    def compute(
        self,
        company_id: int,
        fiscal_year_id: int,
        adjustments: Optional[Mapping[str, Any]] = None,
    ) -> dict[str, Any]:
        """Compute taxable income and KSt for a fiscal year.

        Args:
            company_id: Company to report for
            fiscal_year_id: Fiscal year whose result is taxed
            adjustments: Off-balance corrections keyed by adjustment name

        Returns:
            Dict with base_data, adjustments, calculated and metadata

        Raises:
            NotFoundError: If the fiscal year does not exist
            ValidationError: For unknown adjustment keys or a foreign fiscal year
        """
        values = validate_adjustments(adjustments)
        fiscal_year = self._fiscal_year(company_id, fiscal_year_id)
        net_income, stored = self.net_income_for(fiscal_year)

        taxable_income = net_income
        rows = []
        for adjustment in KST_ADJUSTMENTS:
            value = values.get(adjustment.key, Decimal("0"))
            taxable_income += adjustment.sign * value
            rows.append(
                {
                    "key": adjustment.key,
                    "name": adjustment.name,
                    "description": adjustment.description,
                    "value": value.quantize(CENT, rounding=ROUND_HALF_UP),
                    "adjustment_sign": "add" if adjustment.sign > 0 else "subtract",
                }
            )

        kst_amount = max(
            Decimal("0.00"),
            (taxable_income * KST_RATE).quantize(CENT, rounding=ROUND_HALF_UP),
        )
        return {
            "fiscal_year_id": fiscal_year.id,
            "year": fiscal_year.year,
            "base_data": {
                "net_income": net_income.quantize(CENT, rounding=ROUND_HALF_UP),
                "net_income_label": net_income_label(net_income),
            },
            "adjustments": rows,
            "calculated": {
                "taxable_income": taxable_income.quantize(CENT, rounding=ROUND_HALF_UP),
                "kst_rate": KST_RATE,
                "kst_amount": kst_amount,
            },
            "metadata": {
                "calculation_date": date.today().isoformat(),
                "stored_balance_sheet": stored,
            },
        }


class TaxReportService:
    """Stores tax reports and drives draft → submitted → accepted."""

    def __init__(self, db: Database, ustva: UstvaService, kst: KstService):
        self.db = db
        self.ustva = ustva
        self.kst = kst

    def create_ustva_report(self, company_id: int, start_date: date, end_date: date) -> TaxReport:
        """Compute and store a draft UStVA report.

        Raises:
            ValidationError: If the period is invalid
        """
        data = self.ustva.compute(company_id, start_date, end_date)
        fiscal_year = self.db.find_fiscal_year_for_date(company_id, start_date)
        report_id = self.db.create_tax_report(
            company_id,
            TaxReportType.USTVA,
            start_date,
            end_date,
            data["period_type"],
            data,
            fiscal_year_id=fiscal_year.id if fiscal_year else None,
        )
        logger.info("tax_report_created", extra={"report_id": report_id, "report_type": "ustva"})
        return self.db.get_tax_report(report_id)

    def create_kst_report(
        self,
        company_id: int,
        fiscal_year_id: int,
        adjustments: Optional[Mapping[str, Any]] = None,
    ) -> TaxReport:
        """Compute and store a draft KSt report for a fiscal year.

        Raises:
            NotFoundError: If the fiscal year does not exist
            ValidationError: For unknown adjustment keys
        """
        data = self.kst.compute(company_id, fiscal_year_id, adjustments)
        fiscal_year = self.db.get_fiscal_year(fiscal_year_id)
        report_id = self.db.create_tax_report(
            company_id,
            TaxReportType.KST,
            fiscal_year.start_date,
            fiscal_year.end_date,
            "annual",
            data,
            fiscal_year_id=fiscal_year.id,
            adjustments=dict(validate_adjustments(adjustments)),
        )
        logger.info("tax_report_created", extra={"report_id": report_id, "report_type": "kst"})
        return self.db.get_tax_report(report_id)

    def get_report(self, report_id: int) -> Optional[TaxReport]:
        return self.db.get_tax_report(report_id)

    def require_report(self, report_id: int) -> TaxReport:
        report = self.db.get_tax_report(report_id)
        if report is None:
            raise NotFoundError(f"Tax report {report_id} not found")
        return report

    def list_reports(self, company_id: int, report_type: Optional[TaxReportType] = None) -> list[TaxReport]:
        return self.db.list_tax_reports(company_id, report_type)

    def update_adjustments(self, report_id: int, adjustments: Mapping[str, Any]) -> TaxReport:
        """Replace the adjustments of a draft KSt report and recompute it.

        Raises:
            NotFoundError: If the report does not exist
            ValidationError: If the report is not a KSt report or a key is unknown
            ConflictError: If the report is no longer a draft
        """
        report = self.require_report(report_id)
        if report.report_type is not TaxReportType.KST:
            raise ValidationError("Only KSt reports have adjustments")
        self._require_status(report, TaxReportStatus.DRAFT)
        values = validate_adjustments(adjustments)
        data = self.kst.compute(report.company_id, report.fiscal_year_id, values)
        self.db.update_tax_report(report.id, generated_data=data, adjustments=dict(values))
        return self.db.get_tax_report(report.id)

    def regenerate(self, report_id: int) -> TaxReport:
        """Recompute a draft report from current ledger data.

        Raises:
            ConflictError: If the report is no longer a draft
        """
        report = self.require_report(report_id)
        self._require_status(report, TaxReportStatus.DRAFT)
        if report.report_type is TaxReportType.USTVA:
            data = self.ustva.compute(report.company_id, report.start_date, report.end_date)
        else:
            data = self.kst.compute(report.company_id, report.fiscal_year_id, report.adjustments)
        self.db.update_tax_report(report.id, generated_data=data)
        return self.db.get_tax_report(report.id)

    def submit(self, report_id: int) -> TaxReport:
        """Mark a draft report as submitted; its data is frozen from then on."""
        report = self.require_report(report_id)
        self._require_status(report, TaxReportStatus.DRAFT)
        self.db.update_tax_report(
            report.id, status=TaxReportStatus.SUBMITTED, submitted_at=datetime.now(UTC)
        )
        logger.info("tax_report_submitted", extra={"report_id": report.id})
        return self.db.get_tax_report(report.id)

    def accept(self, report_id: int) -> TaxReport:
        report = self.require_report(report_id)
        self._require_status(report, TaxReportStatus.SUBMITTED)
        self.db.update_tax_report(report.id, status=TaxReportStatus.ACCEPTED)
        return self.db.get_tax_report(report.id)

    @staticmethod
    def _require_status(report: TaxReport, status: TaxReportStatus) -> None:
        if report.status is not status:
            raise ConflictError(
                f"Tax report {report.id} is {report.status.value}, expected {status.value}"
            )
