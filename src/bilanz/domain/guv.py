"""GuV (Gewinn- und Verlustrechnung) after HGB §275 Abs. 2."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Mapping, Optional

from bilanz.chart.loader import Chart
from bilanz.domain.aggregation import BalanceAggregator
from bilanz.domain.entities import CENT, AccountBalance, AccountType
from bilanz.domain.report_tree import GuVSectionDefinition

PROFIT_LABEL = "Jahresüberschuss"
LOSS_LABEL = "Jahresfehlbetrag"

# Sections receiving revenue/expense accounts whose code has no category.
FALLBACK_SECTION_KEYS = {
    AccountType.REVENUE: "sonstige_betriebliche_ertraege",
    AccountType.EXPENSE: "sonstige_betriebliche_aufwendungen",
}


def net_income_label(net_income: Decimal) -> str:
    return PROFIT_LABEL if net_income >= 0 else LOSS_LABEL


@dataclass(frozen=True)
class GuVSection:
    """One GuV position with its accounts and signed subtotal."""

    key: str
    label: str
    kind: str
    accounts: tuple[dict[str, Any], ...]
    subtotal: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "label": self.label,
            "kind": self.kind,
            "display_type": "positive" if self.kind == "revenue" else "negative",
            "accounts": [dict(a) for a in self.accounts],
            "subtotal": self.subtotal,
        }


@dataclass(frozen=True)
class GuVReport:
    sections: tuple[GuVSection, ...]
    net_income: Decimal

    @property
    def net_income_label(self) -> str:
        return net_income_label(self.net_income)

    def section(self, key: str) -> Optional[GuVSection]:
        for section in self.sections:
            if section.key == key:
                return section
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "sections": [s.to_dict() for s in self.sections],
            "net_income": self.net_income,
            "net_income_label": self.net_income_label,
        }


class GuVBuilder:
    """Partitions account balances into the GuV positions."""

    def __init__(
        self,
        chart: Chart,
        aggregator: Optional[BalanceAggregator] = None,
        include_empty_sections: bool = True,
    ):
        self.chart = chart
        self.aggregator = aggregator
        self.include_empty_sections = include_empty_sections
        self._section_by_code: dict[str, str] = {}
        for definition in chart.guv_sections:
            for code in chart.category_map.report_section_codes(definition.cid):
                self._section_by_code.setdefault(code, definition.key)
        self._fallbacks = {}
        for account_type, key in FALLBACK_SECTION_KEYS.items():
            kind = "revenue" if account_type is AccountType.REVENUE else "expense"
            keys = [d.key for d in chart.guv_sections if d.kind == kind]
            self._fallbacks[account_type] = key if key in keys else (keys[-1] if keys else None)

    def _section_key_for(self, balance: AccountBalance) -> Optional[str]:
        key = self._section_by_code.get(balance.code)
        if key is not None:
            return key
        if self.chart.category_map.category_for(balance.code) is not None:
            return None
        return self._fallbacks.get(balance.account_type)

    def build(self, balances: Mapping[str, AccountBalance]) -> GuVReport:
        """Build the GuV from aggregated balances (pure)."""
        members: dict[str, list[AccountBalance]] = {}
        for code in sorted(balances):
            key = self._section_key_for(balances[code])
            if key is not None:
                members.setdefault(key, []).append(balances[code])

        sections = []
        net_income = Decimal("0")
        for definition in self.chart.guv_sections:
            section = self._build_section(definition, members.get(definition.key, []))
            net_income += section.subtotal
            if section.accounts or self.include_empty_sections:
                sections.append(section)
        return GuVReport(sections=tuple(sections), net_income=net_income.quantize(CENT))

    @staticmethod
    def _build_section(definition: GuVSectionDefinition, balances: list[AccountBalance]) -> GuVSection:
        accounts = []
        total = Decimal("0")
        for balance in balances:
            # Revenue shows credit balances positive, expenses debit balances.
            amount = -balance.debit_balance if definition.is_revenue else balance.debit_balance
            total += amount
            accounts.append({"code": balance.code, "name": balance.name, "balance": amount})
        subtotal = total if definition.is_revenue else -total
        return GuVSection(
            key=definition.key,
            label=definition.title,
            kind=definition.kind,
            accounts=tuple(accounts),
            subtotal=subtotal,
        )

    def compute(self, company_id: int, fiscal_year_id: int, only_posted: Optional[bool] = None) -> GuVReport:
        """Aggregate a fiscal year and build its GuV."""
        if self.aggregator is None:
            raise RuntimeError("GuVBuilder.compute needs an aggregator")
        balances = self.aggregator.aggregate_for_guv(company_id, fiscal_year_id, only_posted)
        return self.build(balances)
