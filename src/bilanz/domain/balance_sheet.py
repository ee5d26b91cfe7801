"""HGB §266 balance sheet built from account balances."""

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Mapping, Optional

from bilanz.chart.loader import Chart
from bilanz.database.base import Database
from bilanz.domain.aggregation import BalanceAggregator
from bilanz.domain.entities import CENT, AccountBalance, BalanceSheet, FiscalYear, SheetType
from bilanz.domain.errors import (
    ConfigurationError,
    NotFoundError,
    ValidationError,
    fiscal_year_not_found,
)
from bilanz.domain.guv import GuVBuilder, GuVReport
from bilanz.domain.presentation import EPSILON, side_of
from bilanz.domain.report_tree import SectionNode

logger = logging.getLogger(__name__)


def round_amount(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass
class ReportSection:
    """A balance sheet section with its own accounts and child sections."""

    section_key: str
    rsid: str
    section_name: str
    level: int
    accounts: list[dict[str, Any]] = field(default_factory=list)
    children: list["ReportSection"] = field(default_factory=list)

    def own_total(self) -> Decimal:
        return sum((a["balance"] for a in self.accounts), Decimal("0"))

    def total(self) -> Decimal:
        """Own accounts plus all descendant sections."""
        return self.own_total() + sum((c.total() for c in self.children), Decimal("0"))

    def flattened_accounts(self) -> list[dict[str, Any]]:
        accounts = list(self.accounts)
        for child in self.children:
            accounts.extend(child.flattened_accounts())
        return accounts

    def account_count(self) -> int:
        return len(self.flattened_accounts())

    def is_empty(self) -> bool:
        return self.account_count() == 0

    def find_section(self, key: str) -> Optional["ReportSection"]:
        """Find a descendant (or this section) by key or RSID."""
        if key in (self.section_key, self.rsid):
            return self
        for child in self.children:
            found = child.find_section(key)
            if found is not None:
                return found
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "section_key": self.section_key,
            "rsid": self.rsid,
            "section_name": self.section_name,
            "level": self.level,
            "accounts": [dict(a) for a in self.accounts],
            "own_total": self.own_total(),
            "total": self.total(),
            "children": {child.section_key: child.to_dict() for child in self.children},
        }


def build_section(node: SectionNode, grouped: Mapping[str, list[dict[str, Any]]]) -> ReportSection:
    """Mirror a tree node as a ReportSection holding the accounts placed on it."""
    return ReportSection(
        section_key=node.key,
        rsid=node.rsid,
        section_name=node.title,
        level=node.level,
        accounts=sorted(grouped.get(node.rsid, []), key=lambda a: a["code"]),
        children=[build_section(child, grouped) for child in node.children],
    )


def fiscal_year_summary(fiscal_year: FiscalYear) -> dict[str, Any]:
    return {
        "id": fiscal_year.id,
        "year": fiscal_year.year,
        "start_date": fiscal_year.start_date.isoformat(),
        "end_date": fiscal_year.end_date.isoformat(),
        "state": fiscal_year.state.value,
    }


class BalanceSheetBuilder:
    """Builds the Aktiva/Passiva report and checks that it balances."""

    def __init__(
        self,
        chart: Chart,
        aggregator: BalanceAggregator,
        guv_builder: GuVBuilder,
        db: Optional[Database] = None,
    ):
        """Initialize the builder.

        Args:
            chart: Validated chart table
            aggregator: Source of account balances
            guv_builder: Computes the net income shown on the Passiva side
            db: Database used to read fiscal years and stored snapshots
        """
        self.chart = chart
        self.aggregator = aggregator
        self.guv_builder = guv_builder
        self.db = db if db is not None else aggregator.db
        self._roots = {}
        for side in ("aktiva", "passiva"):
            node = chart.tree.find(f"{chart.tree.rsid}.{side}")
            if node is None:
                raise ConfigurationError(f"Balance sheet tree has no '{side}' side")
            self._roots[side] = node

    def place(self, balances: Mapping[str, AccountBalance]) -> dict[str, list[dict[str, Any]]]:
        """Group accounts by the RSID they resolve to.

        Aktiva accounts show debit balances positive, Passiva accounts
        credit balances positive.
        """
        grouped: dict[str, list[dict[str, Any]]] = {}
        for code in sorted(balances):
            balance = balances[code]
            rsid = self.chart.rules.resolve_section(balance, balance.debit_balance)
            if rsid is None:
                continue
            amount = balance.debit_balance if side_of(rsid) == "aktiva" else -balance.debit_balance
            grouped.setdefault(rsid, []).append(
                {"code": balance.code, "name": balance.name, "balance": amount, "rsid": rsid}
            )
        return grouped

    def build(
        self,
        balances: Mapping[str, AccountBalance],
        guv: GuVReport,
        fiscal_year: Optional[FiscalYear] = None,
    ) -> dict[str, Any]:
        """Build the balance sheet from already aggregated balances."""
        grouped = self.place(balances)
        aktiva = build_section(self._roots["aktiva"], grouped)
        passiva = build_section(self._roots["passiva"], grouped)

        net_income = guv.net_income
        total_aktiva = round_amount(aktiva.total())
        total_passiva = round_amount(passiva.total())
        total_with_net_income = round_amount(total_passiva + net_income)
        difference = total_aktiva - total_with_net_income
        balanced = abs(difference) < EPSILON

        if not balanced:
            logger.warning(
                "balance_sheet_unbalanced",
                extra={
                    "fiscal_year": fiscal_year.year if fiscal_year else None,
                    "aktiva": str(total_aktiva),
                    "passiva": str(total_with_net_income),
                    "difference": str(difference),
                },
            )

        return {
            "fiscal_year": fiscal_year_summary(fiscal_year) if fiscal_year else None,
            "aktiva": {
                "sections": {c.section_key: c.to_dict() for c in aktiva.children},
                "accounts": [dict(a) for a in aktiva.accounts],
                "total": total_aktiva,
            },
            "passiva": {
                "sections": {c.section_key: c.to_dict() for c in passiva.children},
                "accounts": [dict(a) for a in passiva.accounts],
                "total": total_passiva,
                "net_income": net_income,
                "total_with_net_income": total_with_net_income,
            },
            "guv": guv.to_dict(),
            "net_income": net_income,
            "net_income_label": guv.net_income_label,
            "balanced": balanced,
            "difference": difference,
            "stored": False,
        }

    def require_fiscal_year(self, company_id: int, fiscal_year_id: int) -> FiscalYear:
        fiscal_year = self.db.get_fiscal_year(fiscal_year_id)
        if fiscal_year is None:
            raise NotFoundError(fiscal_year_not_found(fiscal_year_id))
        if fiscal_year.company_id != company_id:
            raise ValidationError(f"Fiscal year {fiscal_year.year} belongs to another company")
        return fiscal_year

    def compute_fresh(
        self, company_id: int, fiscal_year_id: int, only_posted: Optional[bool] = None
    ) -> dict[str, Any]:
        """Compute the balance sheet from the ledger, ignoring stored snapshots."""
        fiscal_year = self.require_fiscal_year(company_id, fiscal_year_id)
        balances = self.aggregator.aggregate_for_balance_sheet(company_id, fiscal_year.id, only_posted)
        guv = self.guv_builder.compute(company_id, fiscal_year.id, only_posted)
        return self.build(balances, guv, fiscal_year)

    def stored_closing(self, fiscal_year: FiscalYear) -> Optional[BalanceSheet]:
        """Return the posted closing snapshot of a closed year, else None."""
        if not fiscal_year.closed:
            return None
        snapshot = self.db.get_balance_sheet_for_year(fiscal_year.id, SheetType.CLOSING)
        if snapshot is None or not snapshot.posted:
            return None
        return snapshot

    def compute(
        self, company_id: int, fiscal_year_id: int, only_posted: Optional[bool] = None
    ) -> dict[str, Any]:
        """Return the balance sheet of a fiscal year.

        A closed fiscal year returns its stored closing snapshot, which is
        immutable; an open year is computed from the ledger.

        Raises:
            NotFoundError: If the fiscal year does not exist
            ValidationError: If the fiscal year belongs to another company
        """
        fiscal_year = self.require_fiscal_year(company_id, fiscal_year_id)
        snapshot = self.stored_closing(fiscal_year)
        if snapshot is not None:
            data = dict(snapshot.data)
            data["stored"] = True
            data["source"] = snapshot.source.value
            data["posted_at"] = snapshot.posted_at.isoformat()
            data["fiscal_year"] = fiscal_year_summary(fiscal_year)
            return data
        return self.compute_fresh(company_id, fiscal_year_id, only_posted)
