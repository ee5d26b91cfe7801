"""Per-account balance aggregation over journal line items."""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from bilanz.database.base import Database
from bilanz.domain.entities import AccountBalance, Direction, EntryType, LedgerLine
from bilanz.domain.presentation import EPSILON

# Closing (SBK) entries zero every balance and never count as activity.
REPORTABLE_ENTRY_TYPES = (EntryType.NORMAL, EntryType.OPENING)

GUV_EXCLUDED_PREFIXES = ("9",)


def sum_lines(lines: Iterable[LedgerLine], exclude_prefixes: Iterable[str] = ()) -> dict[str, AccountBalance]:
    """Sum debit and credit amounts per account code.

    Accounts whose balance is within one cent of zero are dropped.
    """
    prefixes = tuple(exclude_prefixes)
    totals: dict[str, dict] = {}
    for line in lines:
        if prefixes and line.account_code.startswith(prefixes):
            continue
        bucket = totals.get(line.account_code)
        if bucket is None:
            bucket = totals[line.account_code] = {
                "line": line,
                "debit": Decimal("0"),
                "credit": Decimal("0"),
            }
        if line.direction is Direction.DEBIT:
            bucket["debit"] += line.amount
        else:
            bucket["credit"] += line.amount

    balances = {}
    for code in sorted(totals):
        bucket = totals[code]
        line = bucket["line"]
        balance = AccountBalance(
            code=code,
            name=line.account_name,
            account_type=line.account_type,
            total_debit=bucket["debit"],
            total_credit=bucket["credit"],
            presentation_rule=line.presentation_rule,
        )
        if abs(balance.balance) >= EPSILON:
            balances[code] = balance
    return balances


class BalanceAggregator:
    """Computes account balances for a fiscal year or a date range."""

    def __init__(self, db: Database, only_posted: bool = True, carryforward_prefixes: Iterable[str] = ("9",)):
        """Initialize the aggregator.

        Args:
            db: Database instance
            only_posted: Default for excluding draft entries
            carryforward_prefixes: Code prefixes excluded from balance sheet aggregation
        """
        self.db = db
        self.only_posted = only_posted
        self.carryforward_prefixes = tuple(carryforward_prefixes)

    def aggregate(
        self,
        company_id: int,
        fiscal_year_id: int,
        only_posted: Optional[bool] = None,
        exclude_prefixes: Iterable[str] = (),
    ) -> dict[str, AccountBalance]:
        """Return balances per account code for a fiscal year, closing entries excluded."""
        lines = self.db.list_ledger_lines(
            company_id,
            fiscal_year_id=fiscal_year_id,
            entry_types=REPORTABLE_ENTRY_TYPES,
            only_posted=self.only_posted if only_posted is None else only_posted,
        )
        return sum_lines(lines, exclude_prefixes)

    def aggregate_for_guv(
        self, company_id: int, fiscal_year_id: int, only_posted: Optional[bool] = None
    ) -> dict[str, AccountBalance]:
        return self.aggregate(company_id, fiscal_year_id, only_posted, GUV_EXCLUDED_PREFIXES)

    def aggregate_for_balance_sheet(
        self, company_id: int, fiscal_year_id: int, only_posted: Optional[bool] = None
    ) -> dict[str, AccountBalance]:
        return self.aggregate(company_id, fiscal_year_id, only_posted, self.carryforward_prefixes)

    def aggregate_range(
        self,
        company_id: int,
        start_date: date,
        end_date: date,
        account_codes: Optional[Iterable[str]] = None,
        entry_types: Iterable[EntryType] = (EntryType.NORMAL,),
        only_posted: Optional[bool] = None,
    ) -> tuple[dict[str, AccountBalance], int]:
        """Return balances over a booking date range and the number of entries involved."""
        lines = self.db.list_ledger_lines(
            company_id,
            start_date=start_date,
            end_date=end_date,
            entry_types=tuple(entry_types),
            only_posted=self.only_posted if only_posted is None else only_posted,
            account_codes=account_codes,
        )
        entry_count = len({line.journal_entry_id for line in lines})
        return sum_lines(lines), entry_count
