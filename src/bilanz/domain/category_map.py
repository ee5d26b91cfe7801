"""SKR03 account code to category lookups."""

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from bilanz.domain.entities import AccountType
from bilanz.domain.errors import ConfigurationError, UnknownCategory

# Top-level category branches, most specific first.
BRANCH_TYPES = (
    ("b.passiva.eigenkapital", AccountType.EQUITY),
    ("b.passiva", AccountType.LIABILITY),
    ("b.aktiva", AccountType.ASSET),
    ("g.ertraege", AccountType.REVENUE),
    ("g.aufwendungen", AccountType.EXPENSE),
)

CLOSING_RANGE = (9000, 9999)


def expand_account_ranges(specs: Iterable[str]) -> list[str]:
    """Expand codes and ``start-end`` ranges into sorted, unique codes.

    Range members are zero-padded to the width of the range start, so
    ``"0800-0802"`` yields ``["0800", "0801", "0802"]``.
    """
    codes = set()
    for spec in specs:
        spec = str(spec).strip()
        if "-" in spec:
            start, end = (part.strip() for part in spec.split("-", 1))
            if not (start.isdigit() and end.isdigit()) or int(end) < int(start):
                raise ConfigurationError(f"Invalid account range '{spec}'")
            width = len(start)
            codes.update(str(n).rjust(width, "0") for n in range(int(start), int(end) + 1))
        elif spec:
            codes.add(spec)
    return sorted(codes)


def _in_branch(cid: str, prefix: str) -> bool:
    return cid == prefix or cid.startswith(prefix + ".")


@dataclass(frozen=True)
class CategoryDefinition:
    """A category id with its expanded account codes and default rule."""

    cid: str
    title: str
    accounts: tuple[str, ...]
    rule: Optional[str] = None


class CategoryMap:
    """Immutable mapping between account codes and category ids."""

    def __init__(self, categories: Iterable[CategoryDefinition]):
        self._categories: dict[str, CategoryDefinition] = {}
        self._code_to_cid: dict[str, str] = {}

        for category in categories:
            if category.cid in self._categories:
                raise ConfigurationError(f"Duplicate category id '{category.cid}'")
            self._categories[category.cid] = category
            for code in category.accounts:
                existing = self._code_to_cid.get(code)
                if existing is not None:
                    raise ConfigurationError(
                        f"Account code '{code}' is assigned to both '{existing}' and '{category.cid}'"
                    )
                self._code_to_cid[code] = category.cid

        section_codes: dict[str, set[str]] = {}
        for category in self._categories.values():
            parts = category.cid.split(".")
            for depth in range(1, len(parts) + 1):
                section_codes.setdefault(".".join(parts[:depth]), set()).update(category.accounts)
        self._section_codes = {
            section_id: tuple(sorted(codes)) for section_id, codes in section_codes.items()
        }

    @classmethod
    def from_table(cls, rows: Iterable[Mapping]) -> "CategoryMap":
        """Build from ``{cid, title, accounts, rule}`` rows with unexpanded ranges."""
        definitions = []
        for row in rows:
            try:
                definitions.append(
                    CategoryDefinition(
                        cid=row["cid"],
                        title=row.get("title", row["cid"]),
                        accounts=tuple(expand_account_ranges(row.get("accounts", ()))),
                        rule=row.get("rule"),
                    )
                )
            except KeyError as exc:
                raise ConfigurationError(f"Category row is missing {exc}") from exc
        return cls(definitions)

    @property
    def categories(self) -> tuple[CategoryDefinition, ...]:
        return tuple(self._categories.values())

    def category_for(self, code: str) -> Optional[str]:
        """Return the category id of an account code, or None if unmapped."""
        return self._code_to_cid.get(code)

    def has_section(self, section_id: str) -> bool:
        return section_id in self._section_codes

    def report_section_codes(self, section_id: str) -> tuple[str, ...]:
        """Return all account codes filed under a section id, sorted.

        Raises:
            UnknownCategory: If the section id does not exist in the table
        """
        try:
            return self._section_codes[section_id]
        except KeyError:
            raise UnknownCategory(f"Unknown report section '{section_id}'") from None

    def account_type_for(self, code: str) -> Optional[AccountType]:
        """Derive the account type from the category branch of a code."""
        if code.isdigit() and CLOSING_RANGE[0] <= int(code) <= CLOSING_RANGE[1]:
            return AccountType.EQUITY
        cid = self.category_for(code)
        if cid is None:
            return None
        for prefix, account_type in BRANCH_TYPES:
            if _in_branch(cid, prefix):
                return account_type
        return None

    def default_rule_for(self, cid: str) -> Optional[str]:
        category = self._categories.get(cid)
        return category.rule if category else None

    def title_for(self, cid: str) -> str:
        category = self._categories.get(cid)
        if category is None:
            raise UnknownCategory(f"Unknown category '{cid}'")
        return category.title
