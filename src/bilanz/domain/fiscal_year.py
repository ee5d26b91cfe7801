"""Fiscal year lifecycle: opening balance (EBK), closing (SBK) and import."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, UTC
from decimal import Decimal
from typing import Any, Iterator, Mapping, Optional

from bilanz.chart.loader import Chart
from bilanz.database.base import Database
from bilanz.domain.balance_sheet import BalanceSheetBuilder, round_amount
from bilanz.domain.entities import (
    BalanceSheet,
    BalanceSheetSource,
    Direction,
    DraftEntry,
    DraftLineItem,
    EntryType,
    FiscalYear,
    FiscalYearState,
    JournalEntry,
    SheetType,
)
from bilanz.domain.errors import (
    ConflictError,
    DomainError,
    FiscalYearClosedError,
    FiscalYearStateError,
    NotFoundError,
    UnbalancedReportError,
    ValidationError,
    company_not_found,
    fiscal_year_closed,
    fiscal_year_not_found,
)
from bilanz.domain.guv import net_income_label
from bilanz.domain.ledger import LedgerService, to_amount
from bilanz.domain.presentation import EPSILON

logger = logging.getLogger(__name__)

MIN_YEAR = 1900
MAX_YEAR = 2100

# Passiva rows that only display the year's result.
NET_INCOME_PSEUDO_CODE = "net_income"

NEXT_YEAR_CREATED = "created"
NEXT_YEAR_SKIPPED = "skipped"
NEXT_YEAR_FAILED = "failed"


@dataclass(frozen=True)
class OpeningResult:
    fiscal_year: FiscalYear
    journal_entry: Optional[JournalEntry]
    balance_sheet: BalanceSheet


@dataclass(frozen=True)
class ClosingResult:
    """Outcome of a fiscal year close.

    ``next_year`` reports the carryforward into the following year, which
    runs after the close has committed and never undoes it.
    """

    fiscal_year: FiscalYear
    journal_entry: Optional[JournalEntry]
    balance_sheet: BalanceSheet
    next_year: dict[str, Any] = field(default_factory=dict)


def _code_of(row: Mapping[str, Any]) -> Optional[str]:
    code = row.get("account_code", row.get("code"))
    return str(code) if code is not None else None


def iter_account_rows(node: Any) -> Iterator[Mapping[str, Any]]:
    """Yield every account row of one balance sheet side.

    Accepts the nested ``{sections: {key: {accounts, children}}}`` form
    produced by the balance sheet builder as well as flat
    ``{section_name: [rows]}`` mappings from manual imports.
    """
    if isinstance(node, Mapping):
        if _code_of(node) is not None and "balance" in node:
            yield node
            return
        for value in node.values():
            if isinstance(value, (Mapping, list, tuple)):
                yield from iter_account_rows(value)
    elif isinstance(node, (list, tuple)):
        for item in node:
            yield from iter_account_rows(item)


def side_balances(side: Mapping[str, Any]) -> list[tuple[str, Decimal]]:
    """Return (code, balance) pairs of a side, summed per code."""
    totals: dict[str, Decimal] = {}
    for row in iter_account_rows(side):
        code = _code_of(row)
        if code == NET_INCOME_PSEUDO_CODE:
            continue
        totals[code] = totals.get(code, Decimal("0")) + to_amount(row["balance"])
    return list(totals.items())


def side_total(side: Mapping[str, Any]) -> Decimal:
    if side.get("total") is not None:
        return to_amount(side["total"])
    return sum((balance for _, balance in side_balances(side)), Decimal("0"))


def checked_side_total(side: Mapping[str, Any], label: str) -> Decimal:
    """Sum the account rows of a side; a declared total must agree with them.

    Raises:
        ValidationError: If the declared total differs from the rows
    """
    rows_total = sum((balance for _, balance in side_balances(side)), Decimal("0"))
    declared = side.get("total")
    if declared is not None and abs(to_amount(declared) - rows_total) > EPSILON:
        raise ValidationError(
            f"{label} total ({to_amount(declared)}) does not match the sum of its accounts ({rows_total})"
        )
    return rows_total


def source_net_income(data: Mapping[str, Any]) -> Decimal:
    """Net income carried by a snapshot; zero for manual opening data."""
    value = data.get("net_income")
    if value is None:
        value = (data.get("passiva") or {}).get("net_income")
    return to_amount(value) if value is not None else Decimal("0")


@dataclass(frozen=True)
class CheckedSides:
    aktiva: Mapping[str, Any]
    passiva: Mapping[str, Any]
    total_aktiva: Decimal
    total_passiva: Decimal
    net_income: Decimal


def check_sides(data: Mapping[str, Any], what: str) -> CheckedSides:
    """Validate that balance sheet data has both sides and balances.

    Raises:
        ValidationError: If a side is missing, a declared total disagrees
            with its rows, or Aktiva differs from Passiva plus net income
    """
    aktiva = data.get("aktiva")
    passiva = data.get("passiva")
    if not isinstance(aktiva, Mapping) or not isinstance(passiva, Mapping):
        raise ValidationError(f"{what} needs 'aktiva' and 'passiva' sections")
    net_income = source_net_income(data)
    total_aktiva = checked_side_total(aktiva, "Aktiva")
    total_passiva = checked_side_total(passiva, "Passiva")
    if abs(total_aktiva - (total_passiva + net_income)) > EPSILON:
        raise ValidationError(
            f"Aktiva total ({total_aktiva}) does not equal Passiva total ({total_passiva + net_income})"
        )
    return CheckedSides(aktiva, passiva, total_aktiva, total_passiva, net_income)


SNAPSHOT_AMOUNT_KEYS = frozenset({"balance", "total", "subtotal", "net_income", "total_with_net_income"})


def _coerce_amounts(node: Any) -> Any:
    if isinstance(node, Mapping):
        return {
            key: to_amount(value) if key in SNAPSHOT_AMOUNT_KEYS and value is not None else _coerce_amounts(value)
            for key, value in node.items()
        }
    if isinstance(node, (list, tuple)):
        return [_coerce_amounts(item) for item in node]
    return node


def normalize_imported_sheet(data: Mapping[str, Any], sides: CheckedSides) -> dict[str, Any]:
    """Bring imported balance sheet data into the shape of a computed sheet.

    Amounts become Decimal and the totals, net income, GuV summary and
    balance check are filled in. An import has no account level GuV, so its
    ``guv`` block carries the net income only.
    """
    normalized = _coerce_amounts(data)
    net_income = round_amount(sides.net_income)
    total_aktiva = round_amount(sides.total_aktiva)
    total_passiva = round_amount(sides.total_passiva)
    total_with_net_income = round_amount(total_passiva + net_income)
    difference = total_aktiva - total_with_net_income
    label = net_income_label(net_income)

    normalized["aktiva"]["total"] = total_aktiva
    normalized["passiva"].update(
        total=total_passiva,
        net_income=net_income,
        total_with_net_income=total_with_net_income,
    )
    normalized.update(
        guv={"sections": [], "net_income": net_income, "net_income_label": label},
        net_income=net_income,
        net_income_label=label,
        balanced=abs(difference) < EPSILON,
        difference=difference,
        stored=False,
    )
    return normalized


def _line(code: str, debit_amount: Decimal) -> Optional[DraftLineItem]:
    """Turn a signed debit amount into a line item; near-zero amounts yield None."""
    amount = round_amount(debit_amount)
    if abs(amount) < EPSILON:
        return None
    if amount > 0:
        return DraftLineItem(account_code=code, amount=amount, direction=Direction.DEBIT)
    return DraftLineItem(account_code=code, amount=-amount, direction=Direction.CREDIT)


class FiscalYearService:
    """Service driving the fiscal year state machine."""

    def __init__(
        self,
        db: Database,
        ledger: LedgerService,
        balance_sheets: BalanceSheetBuilder,
        chart: Chart,
    ):
        """Initialize fiscal year service.

        Args:
            db: Database instance
            ledger: Ledger used to post EBK and SBK entries
            balance_sheets: Builder computing the year-end balance sheet
            chart: Chart table with closing and retained earnings accounts
        """
        self.db = db
        self.ledger = ledger
        self.balance_sheets = balance_sheets
        self.chart = chart

    def create_fiscal_year(self, company_id: int, year: int) -> FiscalYear:
        """Create a calendar fiscal year.

        Args:
            company_id: Owning company
            year: Calendar year

        Returns:
            The new fiscal year in state ``open``

        Raises:
            NotFoundError: If the company does not exist
            ValidationError: If the year is outside 1900-2100
            ConflictError: If the company already has this fiscal year
        """
        if self.db.get_company(company_id) is None:
            raise NotFoundError(company_not_found(company_id))
        if not MIN_YEAR <= year <= MAX_YEAR:
            raise ValidationError(f"Year must be between {MIN_YEAR} and {MAX_YEAR}")
        if self.db.get_fiscal_year_by_year(company_id, year) is not None:
            raise ConflictError(f"Fiscal year {year} already exists")

        fiscal_year_id = self.db.create_fiscal_year(
            company_id, year, date(year, 1, 1), date(year, 12, 31)
        )
        logger.info("fiscal_year_created", extra={"company_id": company_id, "fiscal_year": year})
        return self.db.get_fiscal_year(fiscal_year_id)

    def get_fiscal_year(self, fiscal_year_id: int) -> Optional[FiscalYear]:
        return self.db.get_fiscal_year(fiscal_year_id)

    def require_fiscal_year(self, fiscal_year_id: int) -> FiscalYear:
        fiscal_year = self.db.get_fiscal_year(fiscal_year_id)
        if fiscal_year is None:
            raise NotFoundError(fiscal_year_not_found(fiscal_year_id))
        return fiscal_year

    def get_by_year(self, company_id: int, year: int) -> Optional[FiscalYear]:
        return self.db.get_fiscal_year_by_year(company_id, year)

    def list_fiscal_years(self, company_id: int) -> list[FiscalYear]:
        return self.db.list_fiscal_years(company_id)

    def find_for_date(self, company_id: int, day: date) -> Optional[FiscalYear]:
        return self.db.find_fiscal_year_for_date(company_id, day)

    def state_of(self, fiscal_year_id: int) -> FiscalYearState:
        return self.require_fiscal_year(fiscal_year_id).state

    def post_opening_balance(
        self,
        fiscal_year_id: int,
        source_data: Mapping[str, Any],
        source: BalanceSheetSource = BalanceSheetSource.MANUAL,
    ) -> OpeningResult:
        """Post the opening balance (EBK) of a fiscal year.

        Each account gets a line on its natural side (Aktiva debit, Passiva
        credit; negative balances on the opposite side). A carried-forward
        net income goes to the retained earnings accounts. Two lines on the
        EBK contra account absorb the Aktiva and Passiva totals.

        Args:
            fiscal_year_id: Fiscal year to open
            source_data: Balance sheet with ``aktiva`` and ``passiva`` sides
            source: ``manual`` or ``carryforward``

        Returns:
            The updated fiscal year, the EBK entry and the opening snapshot

        Raises:
            NotFoundError: If the fiscal year does not exist
            FiscalYearClosedError: If the fiscal year is closed
            ConflictError: If an opening balance is already posted
            ValidationError: If the data is unbalanced or the source invalid
        """
        source = BalanceSheetSource(source)
        fiscal_year = self.require_fiscal_year(fiscal_year_id)
        if fiscal_year.closed:
            raise FiscalYearClosedError(fiscal_year_closed(fiscal_year.year))
        if fiscal_year.opening_balance_posted_at is not None:
            raise ConflictError(f"Opening balance for {fiscal_year.year} is already posted")
        if source is BalanceSheetSource.CALCULATED:
            raise ValidationError("Opening balance source must be manual or carryforward")
        if self.db.get_balance_sheet_for_year(fiscal_year.id, SheetType.OPENING) is not None:
            raise ConflictError(f"Opening balance sheet for {fiscal_year.year} already exists")

        sides = check_sides(source_data, "Opening balance")

        draft = DraftEntry(
            booking_date=fiscal_year.start_date,
            description=f"Eröffnungsbilanz {fiscal_year.year}",
            line_items=tuple(self._opening_lines(sides.aktiva, sides.passiva, sides.net_income)),
            entry_type=EntryType.OPENING,
            sequence=0,
        )

        posted_at = datetime.now(UTC)
        with self.db.transaction():
            balance_sheet_id = self.db.create_balance_sheet(
                fiscal_year.id,
                SheetType.OPENING,
                source,
                fiscal_year.start_date,
                dict(source_data),
                posted_at=posted_at,
            )
            entry = self._post_if_any(fiscal_year.company_id, draft)
            if not self.db.mark_opening_balance_posted(fiscal_year.id, posted_at):
                raise ConflictError(f"Opening balance for {fiscal_year.year} is already posted")

        logger.info(
            "opening_balance_posted",
            extra={
                "fiscal_year": fiscal_year.year,
                "entry_id": entry.id if entry else None,
                "source": source.value,
            },
        )
        return OpeningResult(
            fiscal_year=self.db.get_fiscal_year(fiscal_year.id),
            journal_entry=entry,
            balance_sheet=self.db.get_balance_sheet(balance_sheet_id),
        )

    def _opening_lines(
        self, aktiva: Mapping[str, Any], passiva: Mapping[str, Any], net_income: Decimal
    ) -> list[DraftLineItem]:
        contra = self.chart.contra_account
        lines = []
        aktiva_sum = Decimal("0")
        for code, balance in side_balances(aktiva):
            if code == contra:
                continue
            aktiva_sum += balance
            lines.append(_line(code, balance))

        passiva_sum = Decimal("0")
        for code, balance in side_balances(passiva):
            if code == contra:
                continue
            passiva_sum += balance
            lines.append(_line(code, -balance))

        if abs(net_income) >= EPSILON:
            retained = self.chart.retained_earnings_accounts
            code = retained["profit"] if net_income > 0 else retained["loss"]
            passiva_sum += net_income
            lines.append(_line(code, -net_income))

        lines.append(_line(contra, -aktiva_sum))
        lines.append(_line(contra, passiva_sum))
        return [line for line in lines if line is not None]

    def post_carryforward_opening(self, fiscal_year_id: int) -> OpeningResult:
        """Open a fiscal year from the previous year's posted closing snapshot.

        Raises:
            NotFoundError: If there is no previous year or no posted closing snapshot
        """
        fiscal_year = self.require_fiscal_year(fiscal_year_id)
        previous = self.db.get_fiscal_year_by_year(fiscal_year.company_id, fiscal_year.year - 1)
        if previous is None:
            raise NotFoundError(f"Fiscal year {fiscal_year.year - 1} not found")
        snapshot = self.db.get_balance_sheet_for_year(previous.id, SheetType.CLOSING)
        if snapshot is None or not snapshot.posted:
            raise NotFoundError(f"Fiscal year {previous.year} has no posted closing balance sheet")
        return self.post_opening_balance(
            fiscal_year.id, snapshot.data, BalanceSheetSource.CARRYFORWARD
        )

    def close_fiscal_year(self, fiscal_year_id: int, create_next_year_opening: bool = True) -> ClosingResult:
        """Close a fiscal year with its SBK entry and closing snapshot.

        Everything up to marking the year closed happens in one transaction
        under a row lock. A concurrent second close sees the closed row and
        fails without writing anything.

        Args:
            fiscal_year_id: Fiscal year to close
            create_next_year_opening: Carry the closing balance into the next year

        Returns:
            ClosingResult with the SBK entry, snapshot and next year outcome

        Raises:
            NotFoundError: If the fiscal year does not exist
            FiscalYearClosedError: If the fiscal year is already closed
            FiscalYearStateError: If no opening balance was posted
            UnbalancedReportError: If the year-end balance sheet does not balance
        """
        fiscal_year = self.require_fiscal_year(fiscal_year_id)
        self._check_closable(fiscal_year)

        with self.db.transaction():
            fiscal_year = self.db.lock_fiscal_year(fiscal_year.id)
            self._check_closable(fiscal_year)

            data = self.balance_sheets.compute_fresh(fiscal_year.company_id, fiscal_year.id)
            if not data["balanced"]:
                raise UnbalancedReportError(
                    f"Balance sheet does not balance (Aktiva: {data['aktiva']['total']}, "
                    f"Passiva: {data['passiva']['total_with_net_income']})"
                )

            entry = self._post_if_any(
                fiscal_year.company_id,
                DraftEntry(
                    booking_date=fiscal_year.end_date,
                    description=f"Schlussbilanz {fiscal_year.year}",
                    line_items=tuple(self._closing_lines(data)),
                    entry_type=EntryType.CLOSING,
                    sequence=9000,
                ),
            )
            closed_at = datetime.now(UTC)
            balance_sheet_id = self.db.create_balance_sheet(
                fiscal_year.id,
                SheetType.CLOSING,
                BalanceSheetSource.CALCULATED,
                fiscal_year.end_date,
                data,
                posted_at=closed_at,
            )
            if not self.db.mark_fiscal_year_closed(fiscal_year.id, closed_at):
                raise FiscalYearClosedError("Fiscal year is already closed")

        logger.info(
            "fiscal_year_closed",
            extra={
                "fiscal_year": fiscal_year.year,
                "entry_id": entry.id if entry else None,
                "net_income": str(data["net_income"]),
            },
        )

        next_year: dict[str, Any] = {"status": NEXT_YEAR_SKIPPED}
        if create_next_year_opening:
            next_year = self._open_next_year(fiscal_year)

        return ClosingResult(
            fiscal_year=self.db.get_fiscal_year(fiscal_year.id),
            journal_entry=entry,
            balance_sheet=self.db.get_balance_sheet(balance_sheet_id),
            next_year=next_year,
        )

    def _post_if_any(self, company_id: int, draft: DraftEntry) -> Optional[JournalEntry]:
        # A sheet without balances has nothing to carry.
        if not draft.line_items:
            return None
        return self.ledger.post_entry(company_id, draft)

    @staticmethod
    def _check_closable(fiscal_year: Optional[FiscalYear]) -> None:
        if fiscal_year is None:
            raise NotFoundError("Fiscal year not found")
        if fiscal_year.closed:
            raise FiscalYearClosedError("Fiscal year is already closed")
        if fiscal_year.opening_balance_posted_at is None:
            raise FiscalYearStateError("Opening balance must be posted before closing")

    def _closing_lines(self, data: Mapping[str, Any]) -> list[DraftLineItem]:
        contra = self.chart.contra_account
        lines = []
        aktiva_sum = Decimal("0")
        for code, balance in side_balances(data["aktiva"]):
            aktiva_sum += balance
            lines.append(_line(code, -balance))

        passiva_sum = Decimal("0")
        for code, balance in side_balances(data["passiva"]):
            passiva_sum += balance
            lines.append(_line(code, balance))

        lines.append(_line(contra, aktiva_sum))
        lines.append(_line(contra, -passiva_sum))
        return [line for line in lines if line is not None]

    def _open_next_year(self, fiscal_year: FiscalYear) -> dict[str, Any]:
        next_year = self.db.get_fiscal_year_by_year(fiscal_year.company_id, fiscal_year.year + 1)
        try:
            if next_year is None:
                next_year = self.create_fiscal_year(fiscal_year.company_id, fiscal_year.year + 1)
            elif next_year.opening_balance_posted_at is not None or next_year.closed:
                return {
                    "status": NEXT_YEAR_SKIPPED,
                    "fiscal_year_id": next_year.id,
                    "year": next_year.year,
                    "reason": "opening balance already posted",
                }
            opening = self.post_carryforward_opening(next_year.id)
        except DomainError as exc:
            logger.warning(
                "carryforward_failed",
                extra={"fiscal_year": fiscal_year.year + 1, "error": str(exc)},
            )
            return {
                "status": NEXT_YEAR_FAILED,
                "fiscal_year_id": next_year.id if next_year else None,
                "year": fiscal_year.year + 1,
                "errors": [str(exc)],
            }
        return {
            "status": NEXT_YEAR_CREATED,
            "fiscal_year_id": opening.fiscal_year.id,
            "year": opening.fiscal_year.year,
            "journal_entry_id": opening.journal_entry.id if opening.journal_entry else None,
        }

    def import_fiscal_year(
        self, company_id: int, year: int, balance_sheet_data: Mapping[str, Any]
    ) -> FiscalYear:
        """Record a historical fiscal year from its final balance sheet.

        The year is created closed with a posted manual closing snapshot, so
        the next year can carry it forward.

        Raises:
            NotFoundError: If the company does not exist
            ConflictError: If the fiscal year already exists
            ValidationError: If the balance sheet does not balance
        """
        sides = check_sides(balance_sheet_data, "Balance sheet")
        snapshot = normalize_imported_sheet(balance_sheet_data, sides)

        with self.db.transaction():
            fiscal_year = self.create_fiscal_year(company_id, year)
            posted_at = datetime.now(UTC)
            self.db.create_balance_sheet(
                fiscal_year.id,
                SheetType.CLOSING,
                BalanceSheetSource.MANUAL,
                fiscal_year.end_date,
                snapshot,
                posted_at=posted_at,
            )
            self.db.mark_fiscal_year_closed(fiscal_year.id, posted_at)

        logger.info("fiscal_year_imported", extra={"company_id": company_id, "fiscal_year": year})
        return self.db.get_fiscal_year(fiscal_year.id)
