"""Balance sheet placement of accounts, including saldo-dependent rules.

Every account resolves to one presentation rule: its own override, the
default rule of its category, or a rule inferred from its account type.
A rule compiles to one of two placements. ``FixedPlacement`` always lands in
the same section (or nowhere, for GuV-only accounts). ``BidirectionalPlacement``
lands on the Aktiva side for a debit balance and on the Passiva side for a
credit balance, which is how bank overdrafts or creditor debit balances are
reported under HGB.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Mapping, Optional, Union

from bilanz.domain.category_map import CategoryMap
from bilanz.domain.entities import AccountType
from bilanz.domain.errors import (
    ConfigurationError,
    InvalidSectionReference,
    UnknownPresentationRule,
)
from bilanz.domain.report_tree import SectionNode

EPSILON = Decimal("0.01")

INFERRED_RULES = {
    AccountType.ASSET: "asset_only",
    AccountType.LIABILITY: "liability_only",
    AccountType.EQUITY: "equity_only",
    AccountType.REVENUE: "pnl_only",
    AccountType.EXPENSE: "pnl_only",
}

SIDES = {
    AccountType.ASSET: "aktiva",
    AccountType.LIABILITY: "passiva",
    AccountType.EQUITY: "passiva",
}


@dataclass(frozen=True)
class PresentationRule:
    """Named placement rule from the chart table."""

    key: str
    name: str
    description: str = ""
    debit_rsid: Optional[str] = None
    credit_rsid: Optional[str] = None
    rsid: Optional[str] = None
    account_type: Optional[AccountType] = None

    @property
    def bidirectional(self) -> bool:
        return self.debit_rsid is not None and self.credit_rsid is not None

    @property
    def pnl_only(self) -> bool:
        return not self.bidirectional and self.rsid is None and self.account_type is None


@dataclass(frozen=True)
class FixedPlacement:
    """Always the same section; ``rsid`` is None for GuV-only accounts."""

    rsid: Optional[str]


@dataclass(frozen=True)
class BidirectionalPlacement:
    """Section depends on the sign of the debit balance."""

    debit_rsid: str
    credit_rsid: str


Placement = Union[FixedPlacement, BidirectionalPlacement]


def side_of(rsid: str) -> str:
    """Return ``"aktiva"`` or ``"passiva"`` for a balance sheet RSID."""
    parts = rsid.split(".")
    if len(parts) < 2 or parts[1] not in ("aktiva", "passiva"):
        raise InvalidSectionReference(f"'{rsid}' is not an Aktiva or Passiva section")
    return parts[1]


def build_rules(rows: Iterable[Mapping]) -> dict[str, PresentationRule]:
    rules = {}
    for row in rows:
        account_type = row.get("account_type")
        if account_type and AccountType(account_type) not in SIDES:
            raise ConfigurationError(f"Rule '{row['key']}' cannot pin {account_type} accounts to the balance sheet")
        rule = PresentationRule(
            key=row["key"],
            name=row.get("name", row["key"]),
            description=row.get("description", ""),
            debit_rsid=row.get("debit_rsid"),
            credit_rsid=row.get("credit_rsid"),
            rsid=row.get("rsid"),
            account_type=AccountType(account_type) if account_type else None,
        )
        rules[rule.key] = rule
    return rules


class PresentationRuleEngine:
    """Resolves accounts to balance sheet sections.

    Construction validates the rule table against the balance sheet tree, so
    a resolved RSID always exists in the tree.
    """

    def __init__(
        self,
        rules: Mapping[str, PresentationRule],
        category_map: CategoryMap,
        tree: SectionNode,
        fallback_sections: Mapping[AccountType, str],
    ):
        self.rules = dict(rules)
        self.category_map = category_map
        self.tree = tree
        self.fallback_sections = dict(fallback_sections)
        self._rsids = {node.rsid for node in tree.walk()}
        self._validate()

    def _require_section(self, rsid: str, context: str) -> None:
        if rsid not in self._rsids:
            raise InvalidSectionReference(f"{context} references unknown section '{rsid}'")
        side_of(rsid)

    def _validate(self) -> None:
        for key in INFERRED_RULES.values():
            if key not in self.rules:
                raise UnknownPresentationRule(f"Required presentation rule '{key}' is missing")

        for rule in self.rules.values():
            if rule.bidirectional:
                self._require_section(rule.debit_rsid, f"Rule '{rule.key}'")
                self._require_section(rule.credit_rsid, f"Rule '{rule.key}'")
            elif rule.rsid is not None:
                self._require_section(rule.rsid, f"Rule '{rule.key}'")

        for account_type in SIDES:
            rsid = self.fallback_sections.get(account_type)
            if rsid is None:
                raise InvalidSectionReference(f"No fallback section for {account_type.value} accounts")
            self._require_section(rsid, f"Fallback for {account_type.value}")
            if side_of(rsid) != SIDES[account_type]:
                raise InvalidSectionReference(
                    f"Fallback for {account_type.value} accounts must be on the {SIDES[account_type]} side"
                )

        for category in self.category_map.categories:
            if category.rule is None:
                continue
            rule = self.rules.get(category.rule)
            if rule is None:
                raise UnknownPresentationRule(
                    f"Category '{category.cid}' uses unknown rule '{category.rule}'"
                )
            if rule.account_type is not None and self._semantic_node(category.cid, rule.account_type) is None:
                raise InvalidSectionReference(
                    f"Category '{category.cid}' has no {SIDES[rule.account_type]} section in the balance sheet tree"
                )

    def has_rule(self, key: str) -> bool:
        return key in self.rules

    def rule_for(self, account) -> PresentationRule:
        """Return the effective rule for an account (override, category, type)."""
        key = account.presentation_rule
        if key is None:
            cid = self.category_map.category_for(account.code)
            if cid is not None:
                key = self.category_map.default_rule_for(cid)
        if key is None:
            key = INFERRED_RULES[account.account_type]
        rule = self.rules.get(key)
        if rule is None:
            raise UnknownPresentationRule(f"Account '{account.code}' uses unknown rule '{key}'")
        return rule

    def _semantic_node(self, cid: str, account_type: AccountType) -> Optional[SectionNode]:
        node = self.tree.nearest(cid)
        if node is None or node.level < 1:
            return None
        if node.rsid.split(".")[1] != SIDES[account_type]:
            return None
        return node

    def placement_for(self, account) -> Placement:
        rule = self.rule_for(account)
        if rule.bidirectional:
            return BidirectionalPlacement(debit_rsid=rule.debit_rsid, credit_rsid=rule.credit_rsid)
        if rule.rsid is not None:
            return FixedPlacement(rule.rsid)
        if rule.account_type is None:
            return FixedPlacement(None)

        cid = self.category_map.category_for(account.code)
        node = self._semantic_node(cid, rule.account_type) if cid else None
        if node is not None:
            return FixedPlacement(node.rsid)
        return FixedPlacement(self.fallback_sections[rule.account_type])

    def resolve_section(self, account, debit_balance: Decimal) -> Optional[str]:
        """Return the RSID for an account given its debit balance.

        ``debit_balance`` is total debit minus total credit. Balances within
        one cent of zero are placed on the side of the account's natural type.
        Returns None for accounts that only appear in the GuV.
        """
        placement = self.placement_for(account)
        if isinstance(placement, FixedPlacement):
            return placement.rsid
        if abs(debit_balance) < EPSILON:
            if account.account_type.debit_natured:
                return placement.debit_rsid
            return placement.credit_rsid
        if debit_balance > 0:
            return placement.debit_rsid
        return placement.credit_rsid
