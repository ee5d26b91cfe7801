"""Journal entry posting with double-entry and GoBD invariants."""

import logging
from datetime import datetime, UTC
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional

from bilanz.database.base import Database
from bilanz.domain.account import AccountService
from bilanz.domain.entities import (
    CENT,
    BankTransactionStatus,
    Direction,
    DraftEntry,
    DraftLineItem,
    EntryType,
    FiscalYear,
    JournalEntry,
)
from bilanz.domain.errors import (
    FiscalYearClosedError,
    ImmutableEntryError,
    NotFoundError,
    ValidationError,
    fiscal_year_closed,
    fiscal_year_not_found,
    journal_entry_not_found,
    no_fiscal_year_for_date,
    posted_entry_immutable,
)

logger = logging.getLogger(__name__)

DEFAULT_SEQUENCES = {
    EntryType.OPENING: 0,
    EntryType.NORMAL: 1000,
    EntryType.CLOSING: 9000,
}

SEQUENCE_BANDS = {
    EntryType.OPENING: (0, 999),
    EntryType.NORMAL: (1000, 8999),
    EntryType.CLOSING: (9000, 9999),
}


def to_amount(value) -> Decimal:
    """Coerce a line item amount to Decimal without float artifacts."""
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"Invalid amount '{value}'") from exc


def validate_draft(draft: DraftEntry) -> None:
    """Check the structural invariants of a journal entry.

    Raises:
        ValidationError: Listing every violated invariant
    """
    errors = []
    if draft.booking_date is None:
        errors.append("Booking date is required")
    if not draft.description or not draft.description.strip():
        errors.append("Description is required")
    if len(draft.line_items) < 2:
        errors.append("A journal entry needs at least two line items")

    total_debit = Decimal("0")
    total_credit = Decimal("0")
    for index, line in enumerate(draft.line_items, start=1):
        if not line.account_code:
            errors.append(f"Line {index}: account code is required")
        amount = to_amount(line.amount)
        if amount <= 0:
            errors.append(f"Line {index}: amount must be positive")
        elif amount != amount.quantize(CENT):
            errors.append(f"Line {index}: amount has more than two decimals")
        if line.direction == Direction.DEBIT:
            total_debit += amount
        elif line.direction == Direction.CREDIT:
            total_credit += amount
        else:
            errors.append(f"Line {index}: direction must be debit or credit")

    if total_debit != total_credit:
        errors.append(f"Debits ({total_debit}) do not equal credits ({total_credit})")

    if draft.sequence is not None:
        low, high = SEQUENCE_BANDS[draft.entry_type]
        if not low <= draft.sequence <= high:
            errors.append(
                f"Sequence {draft.sequence} is outside {low}-{high} for {draft.entry_type.value} entries"
            )

    linked = [line.bank_transaction_id for line in draft.line_items if line.bank_transaction_id]
    if len(linked) != len(set(linked)):
        errors.append("A bank transaction can be linked to one line item only")

    if errors:
        raise ValidationError("; ".join(errors))


class LedgerService:
    """Service that creates, posts and deletes journal entries."""

    def __init__(self, db: Database, accounts: AccountService):
        """Initialize ledger service.

        Args:
            db: Database instance
            accounts: Account service used to resolve account codes
        """
        self.db = db
        self.accounts = accounts

    def post_entry(self, company_id: int, draft: DraftEntry) -> JournalEntry:
        """Validate and persist a posted journal entry in one transaction.

        Args:
            company_id: Owning company
            draft: Entry header and line items

        Returns:
            The posted journal entry

        Raises:
            ValidationError: If the entry is unbalanced, incomplete, outside all
                fiscal years, or references unknown accounts
            FiscalYearClosedError: If the booking date lies in a closed fiscal year
        """
        return self._create(company_id, draft, post=True)

    def save_draft(self, company_id: int, draft: DraftEntry) -> JournalEntry:
        """Validate and persist a journal entry without posting it.

        Raises:
            ValidationError: As for post_entry
            FiscalYearClosedError: As for post_entry
        """
        return self._create(company_id, draft, post=False)

    def _create(self, company_id: int, draft: DraftEntry, post: bool) -> JournalEntry:
        validate_draft(draft)
        fiscal_year = self._open_fiscal_year_for(company_id, draft)

        with self.db.transaction():
            rows = self._resolve_line_items(company_id, draft.line_items)
            entry_id = self.db.create_journal_entry(
                company_id=company_id,
                fiscal_year_id=fiscal_year.id,
                booking_date=draft.booking_date,
                description=draft.description.strip(),
                entry_type=draft.entry_type,
                sequence=self._sequence_for(draft),
                line_items=rows,
                posted_at=datetime.now(UTC) if post else None,
            )
            self._set_bank_status(
                (row["bank_transaction_id"] for row in rows), BankTransactionStatus.BOOKED
            )
            self._lock_open_year(fiscal_year.id)

        logger.info(
            "journal_entry_posted" if post else "journal_entry_saved",
            extra={
                "company_id": company_id,
                "entry_id": entry_id,
                "fiscal_year": fiscal_year.year,
                "entry_type": draft.entry_type.value,
            },
        )
        return self.db.get_journal_entry(entry_id)

    def post_draft(self, entry_id: int) -> JournalEntry:
        """Post a saved draft, making it immutable.

        Raises:
            NotFoundError: If the entry does not exist
            ImmutableEntryError: If the entry is already posted
            FiscalYearClosedError: If its fiscal year is closed
            ValidationError: If the stored entry violates an invariant
        """
        entry = self.require_entry(entry_id)
        if entry.posted:
            raise ImmutableEntryError(posted_entry_immutable(entry_id))
        self._require_open_year(entry.fiscal_year_id)
        validate_draft(self._as_draft(entry))

        with self.db.transaction():
            if not self.db.mark_journal_entry_posted(entry_id, datetime.now(UTC)):
                raise ImmutableEntryError(posted_entry_immutable(entry_id))
            self._lock_open_year(entry.fiscal_year_id)

        logger.info("journal_entry_posted", extra={"entry_id": entry_id})
        return self.db.get_journal_entry(entry_id)

    def update_draft(self, entry_id: int, draft: DraftEntry) -> JournalEntry:
        """Replace header and line items of a draft entry.

        The booking date must stay inside the entry's fiscal year.

        Raises:
            NotFoundError: If the entry does not exist
            ImmutableEntryError: If the entry is posted
            FiscalYearClosedError: If its fiscal year is closed
            ValidationError: If the new content violates an invariant
        """
        entry = self.require_entry(entry_id)
        if entry.posted:
            raise ImmutableEntryError(posted_entry_immutable(entry_id))
        fiscal_year = self._require_open_year(entry.fiscal_year_id)
        validate_draft(draft)
        if not fiscal_year.contains(draft.booking_date):
            raise ValidationError(
                f"Booking date {draft.booking_date} is outside fiscal year {fiscal_year.year}"
            )

        previous = {li.bank_transaction_id for li in entry.line_items if li.bank_transaction_id}
        with self.db.transaction():
            rows = self._resolve_line_items(entry.company_id, draft.line_items, already_linked=previous)
            self.db.replace_journal_entry(
                entry_id,
                booking_date=draft.booking_date,
                description=draft.description.strip(),
                sequence=draft.sequence if draft.sequence is not None else entry.sequence,
                line_items=rows,
            )
            current = {row["bank_transaction_id"] for row in rows if row["bank_transaction_id"]}
            self._set_bank_status(previous - current, BankTransactionStatus.PENDING)
            self._set_bank_status(current - previous, BankTransactionStatus.BOOKED)
            self._lock_open_year(fiscal_year.id)

        return self.db.get_journal_entry(entry_id)

    def delete_entry(self, entry_id: int) -> None:
        """Delete a draft entry; linked bank transactions revert to pending.

        Raises:
            NotFoundError: If the entry does not exist (or was already deleted)
            ImmutableEntryError: If the entry is posted
            FiscalYearClosedError: If its fiscal year is closed
        """
        entry = self.require_entry(entry_id)
        if entry.posted:
            raise ImmutableEntryError(posted_entry_immutable(entry_id))
        self._require_open_year(entry.fiscal_year_id)

        with self.db.transaction():
            self._set_bank_status(
                (li.bank_transaction_id for li in entry.line_items),
                BankTransactionStatus.PENDING,
            )
            self.db.delete_journal_entry(entry_id)
            self._lock_open_year(entry.fiscal_year_id)

        logger.info("journal_entry_deleted", extra={"entry_id": entry_id})

    def get_entry(self, entry_id: int) -> Optional[JournalEntry]:
        return self.db.get_journal_entry(entry_id)

    def require_entry(self, entry_id: int) -> JournalEntry:
        entry = self.db.get_journal_entry(entry_id)
        if entry is None:
            raise NotFoundError(journal_entry_not_found(entry_id))
        return entry

    def list_entries(self, company_id: int, fiscal_year_id: Optional[int] = None) -> list[JournalEntry]:
        """List entries ordered by booking date, sequence and ID."""
        return self.db.list_journal_entries(company_id, fiscal_year_id=fiscal_year_id)

    def _sequence_for(self, draft: DraftEntry) -> int:
        if draft.sequence is not None:
            return draft.sequence
        return DEFAULT_SEQUENCES[draft.entry_type]

    def _open_fiscal_year_for(self, company_id: int, draft: DraftEntry) -> FiscalYear:
        fiscal_year = self.db.find_fiscal_year_for_date(company_id, draft.booking_date)
        if fiscal_year is None:
            raise ValidationError(no_fiscal_year_for_date(draft.booking_date))
        if fiscal_year.closed:
            raise FiscalYearClosedError(fiscal_year_closed(fiscal_year.year))
        return fiscal_year

    def _require_open_year(self, fiscal_year_id: int) -> FiscalYear:
        fiscal_year = self.db.get_fiscal_year(fiscal_year_id)
        if fiscal_year is None:
            raise NotFoundError(fiscal_year_not_found(fiscal_year_id))
        if fiscal_year.closed:
            raise FiscalYearClosedError(fiscal_year_closed(fiscal_year.year))
        return fiscal_year

    def _lock_open_year(self, fiscal_year_id: int) -> FiscalYear:
        """Re-check the year under its row lock, after this transaction's writes.

        A close committed since the first check raises here, so the
        surrounding transaction rolls back.
        """
        fiscal_year = self.db.lock_fiscal_year(fiscal_year_id)
        if fiscal_year is None:
            raise NotFoundError(fiscal_year_not_found(fiscal_year_id))
        if fiscal_year.closed:
            raise FiscalYearClosedError(fiscal_year_closed(fiscal_year.year))
        return fiscal_year

    def _resolve_line_items(
        self,
        company_id: int,
        line_items: Iterable[DraftLineItem],
        already_linked: Optional[set[int]] = None,
    ) -> list[dict]:
        rows = []
        for line in line_items:
            account = self.accounts.find_or_create_account_by_code(company_id, line.account_code)
            if line.bank_transaction_id is not None:
                self._check_bank_transaction(company_id, line.bank_transaction_id, already_linked or set())
            rows.append(
                {
                    "account_id": account.id,
                    "amount": to_amount(line.amount),
                    "direction": line.direction,
                    "bank_transaction_id": line.bank_transaction_id,
                    "description": line.description,
                }
            )
        return rows

    def _check_bank_transaction(self, company_id: int, transaction_id: int, already_linked: set[int]) -> None:
        transaction = self.db.get_bank_transaction(transaction_id)
        if transaction is None:
            raise ValidationError(f"Bank transaction {transaction_id} not found")
        bank_account = self.db.get_bank_account(transaction.bank_account_id)
        if bank_account is None or bank_account.company_id != company_id:
            raise ValidationError(f"Bank transaction {transaction_id} belongs to another company")
        if transaction.status is not BankTransactionStatus.PENDING and transaction_id not in already_linked:
            raise ValidationError(
                f"Bank transaction {transaction_id} is already {transaction.status.value}"
            )

    def _set_bank_status(self, transaction_ids: Iterable[Optional[int]], status: BankTransactionStatus) -> None:
        for transaction_id in transaction_ids:
            if transaction_id is not None:
                self.db.update_bank_transaction_status(transaction_id, status)

    @staticmethod
    def _as_draft(entry: JournalEntry) -> DraftEntry:
        return DraftEntry(
            booking_date=entry.booking_date,
            description=entry.description,
            entry_type=entry.entry_type,
            sequence=entry.sequence,
            line_items=tuple(
                DraftLineItem(
                    account_code=li.account_code,
                    amount=li.amount,
                    direction=li.direction,
                    description=li.description,
                    bank_transaction_id=li.bank_transaction_id,
                )
                for li in entry.line_items
            ),
        )
