"""Load and validate the chart table."""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

from bilanz.chart import skr03
from bilanz.domain.category_map import CategoryMap
from bilanz.domain.entities import AccountType
from bilanz.domain.errors import ConfigurationError
from bilanz.domain.presentation import PresentationRuleEngine, build_rules
from bilanz.domain.report_tree import (
    GuVSectionDefinition,
    SectionNode,
    build_guv_sections,
    build_tree,
)

logger = logging.getLogger(__name__)

REQUIRED_KEYS = ("BALANCE_SHEET_TREE", "CATEGORIES", "GUV_SECTIONS", "PRESENTATION_RULES")


@dataclass(frozen=True)
class Chart:
    """Validated chart table shared by all services."""

    category_map: CategoryMap
    tree: SectionNode
    rules: PresentationRuleEngine
    guv_sections: tuple[GuVSectionDefinition, ...]
    account_names: Mapping[str, str] = field(default_factory=dict)
    vat_accounts: Mapping[str, str] = field(default_factory=dict)
    closing_accounts: Mapping[str, str] = field(default_factory=dict)
    retained_earnings_accounts: Mapping[str, str] = field(default_factory=dict)

    @property
    def contra_account(self) -> str:
        return self.closing_accounts["ebk_sbk"]

    def account_template(self, code: str) -> Optional[tuple[str, AccountType]]:
        """Return (name, account_type) for an account code the chart knows."""
        account_type = self.category_map.account_type_for(code)
        if account_type is None:
            return None
        name = self.account_names.get(code)
        if name is None:
            cid = self.category_map.category_for(code)
            title = self.category_map.title_for(cid) if cid else "Konto"
            name = f"{title} {code}"
        return name, account_type


def _builtin_table() -> dict[str, Any]:
    return {
        name: getattr(skr03, name)
        for name in (
            *REQUIRED_KEYS,
            "TYPE_FALLBACK_SECTIONS",
            "ACCOUNT_NAMES",
            "VAT_ACCOUNTS",
            "CLOSING_ACCOUNTS",
            "RETAINED_EARNINGS_ACCOUNTS",
        )
    }


def _read_table(path: str) -> dict[str, Any]:
    try:
        table = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Cannot read chart table '{path}': {exc}") from exc
    if not isinstance(table, dict):
        raise ConfigurationError(f"Chart table '{path}' must be a JSON object")
    # Missing optional sections fall back to the built-in values.
    merged = _builtin_table()
    merged.update(table)
    return merged


def build_chart(table: Mapping[str, Any]) -> Chart:
    """Build a Chart from a table mapping and validate it.

    Raises:
        ConfigurationError: If the table is incomplete or inconsistent
    """
    missing = [key for key in REQUIRED_KEYS if key not in table]
    if missing:
        raise ConfigurationError(f"Chart table is missing {', '.join(missing)}")

    tree = build_tree(table["BALANCE_SHEET_TREE"])
    for side in ("aktiva", "passiva"):
        if tree.find(f"{tree.rsid}.{side}") is None:
            raise ConfigurationError(f"Balance sheet tree has no '{side}' side")
    category_map = CategoryMap.from_table(table["CATEGORIES"])
    guv_sections = build_guv_sections(table["GUV_SECTIONS"])
    for section in guv_sections:
        # Raises UnknownCategory for sections the table does not define.
        category_map.report_section_codes(section.cid)

    fallback_sections = {
        AccountType(type_name): rsid
        for type_name, rsid in table.get("TYPE_FALLBACK_SECTIONS", {}).items()
    }
    rules = PresentationRuleEngine(
        build_rules(table["PRESENTATION_RULES"]), category_map, tree, fallback_sections
    )

    closing_accounts = dict(table.get("CLOSING_ACCOUNTS", {}))
    if "ebk_sbk" not in closing_accounts:
        raise ConfigurationError("Chart table defines no EBK/SBK contra account")

    return Chart(
        category_map=category_map,
        tree=tree,
        rules=rules,
        guv_sections=guv_sections,
        account_names=dict(table.get("ACCOUNT_NAMES", {})),
        vat_accounts=dict(table.get("VAT_ACCOUNTS", {})),
        closing_accounts=closing_accounts,
        retained_earnings_accounts=dict(table.get("RETAINED_EARNINGS_ACCOUNTS", {})),
    )


def load_chart(path: Optional[str] = None) -> Chart:
    """Load the chart table from a JSON file, or the built-in SKR03 table."""
    if path is None:
        return build_chart(_builtin_table())
    logger.info("chart_table_loaded", extra={"path": path})
    return build_chart(_read_table(path))
