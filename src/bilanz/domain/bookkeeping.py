"""Entry point for callers that want results instead of exceptions."""

from datetime import date
from typing import Any, Mapping, Optional

from bilanz.chart.loader import Chart, load_chart
from bilanz.config import Settings
from bilanz.database.base import Database
from bilanz.domain.account import AccountService
from bilanz.domain.aggregation import BalanceAggregator
from bilanz.domain.balance_sheet import BalanceSheetBuilder
from bilanz.domain.bank import BankService
from bilanz.domain.company import CompanyService
from bilanz.domain.entities import BalanceSheetSource, DraftEntry
from bilanz.domain.fiscal_year import FiscalYearService
from bilanz.domain.guv import GuVBuilder
from bilanz.domain.ledger import LedgerService
from bilanz.domain.result import Result, capture
from bilanz.domain.tax import KstService, TaxReportService, UstvaService


class Bookkeeping:
    """Wires the services over one database and chart.

    The services raise DomainError subclasses. The operations below wrap
    them and return ``Ok``/``Err`` results; a broken chart table still
    raises ConfigurationError.
    """

    def __init__(self, db: Database, chart: Optional[Chart] = None, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or Settings()
        self.chart = chart or load_chart(self.settings.category_table)

        self.companies = CompanyService(db)
        self.accounts = AccountService(db, self.chart)
        self.ledger = LedgerService(db, self.accounts)
        self.aggregator = BalanceAggregator(
            db,
            only_posted=self.settings.only_posted,
            carryforward_prefixes=self.settings.carryforward_prefixes,
        )
        self.guv = GuVBuilder(
            self.chart, self.aggregator, include_empty_sections=self.settings.include_empty_guv_sections
        )
        self.balance_sheets = BalanceSheetBuilder(self.chart, self.aggregator, self.guv, db)
        self.fiscal_years = FiscalYearService(db, self.ledger, self.balance_sheets, self.chart)
        self.ustva = UstvaService(self.aggregator, self.chart)
        self.kst = KstService(db, self.guv)
        self.tax_reports = TaxReportService(db, self.ustva, self.kst)
        self.bank = BankService(db, self.accounts, self.ledger, self.chart)

    def post_journal_entry(self, company_id: int, draft: DraftEntry) -> Result:
        return capture(self.ledger.post_entry, company_id, draft)

    def delete_journal_entry(self, entry_id: int) -> Result:
        return capture(self.ledger.delete_entry, entry_id)

    def compute_balance_sheet(self, company_id: int, fiscal_year_id: int) -> Result:
        return capture(self.balance_sheets.compute, company_id, fiscal_year_id)

    def compute_guv(self, company_id: int, fiscal_year_id: int, only_posted: bool = True) -> Result:
        return capture(self._guv_dict, company_id, fiscal_year_id, only_posted)

    def _guv_dict(self, company_id: int, fiscal_year_id: int, only_posted: bool) -> dict[str, Any]:
        fiscal_year = self.balance_sheets.require_fiscal_year(company_id, fiscal_year_id)
        snapshot = self.balance_sheets.stored_closing(fiscal_year)
        if snapshot is not None and "guv" in snapshot.data:
            data = dict(snapshot.data["guv"])
            data["stored"] = True
            return data
        data = self.guv.compute(company_id, fiscal_year_id, only_posted).to_dict()
        data["stored"] = False
        return data

    def post_opening_balance(
        self,
        fiscal_year_id: int,
        source_data: Mapping[str, Any],
        source: BalanceSheetSource = BalanceSheetSource.MANUAL,
    ) -> Result:
        return capture(self.fiscal_years.post_opening_balance, fiscal_year_id, source_data, source)

    def close_fiscal_year(self, fiscal_year_id: int, create_next_year_opening: bool = True) -> Result:
        return capture(self.fiscal_years.close_fiscal_year, fiscal_year_id, create_next_year_opening)

    def compute_ustva(self, company_id: int, start_date: date, end_date: date) -> Result:
        return capture(self.ustva.compute, company_id, start_date, end_date)

    def compute_kst(
        self, company_id: int, fiscal_year_id: int, adjustments: Optional[Mapping[str, Any]] = None
    ) -> Result:
        return capture(self.kst.compute, company_id, fiscal_year_id, adjustments)
