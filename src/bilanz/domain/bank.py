"""Bank accounts, imported bank transactions and booking them to the ledger."""

import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from bilanz.chart.loader import Chart
from bilanz.database.base import Database
from bilanz.domain.account import AccountService
from bilanz.domain.entities import (
    CENT,
    BankAccount,
    BankTransaction,
    BankTransactionStatus,
    Direction,
    DraftEntry,
    DraftLineItem,
    JournalEntry,
)
from bilanz.domain.errors import NotFoundError, ValidationError, company_not_found
from bilanz.domain.ledger import LedgerService, to_amount

logger = logging.getLogger(__name__)

DEFAULT_BANK_ACCOUNT_CODE = "1200"
FULL_VAT_RATE = Decimal("19")


def split_gross(gross: Decimal, vat_rate: Decimal) -> tuple[Decimal, Decimal]:
    """Split a gross amount into (net, vat); net is rounded half-up to cents."""
    net = (gross / (1 + vat_rate / 100)).quantize(CENT, rounding=ROUND_HALF_UP)
    return net, gross - net


class BankService:
    """Service for bank accounts and their transactions."""

    def __init__(self, db: Database, accounts: AccountService, ledger: LedgerService, chart: Chart):
        """Initialize bank service.

        Args:
            db: Database instance
            accounts: Resolves ledger accounts for bank accounts
            ledger: Posts the journal entries created from transactions
            chart: Chart table with the VAT account codes
        """
        self.db = db
        self.accounts = accounts
        self.ledger = ledger
        self.chart = chart

    def create_bank_account(
        self,
        company_id: int,
        name: str,
        account_code: str = DEFAULT_BANK_ACCOUNT_CODE,
        iban: Optional[str] = None,
    ) -> BankAccount:
        """Create a bank account backed by a ledger account.

        Args:
            company_id: Owning company
            name: Display name, e.g. "Geschäftskonto"
            account_code: Ledger account the transactions are booked on
            iban: Optional IBAN

        Returns:
            The new bank account

        Raises:
            NotFoundError: If the company or the ledger account code is unknown
            ValidationError: If the name is empty
        """
        if not name or not name.strip():
            raise ValidationError("Bank account name must not be empty")
        if self.db.get_company(company_id) is None:
            raise NotFoundError(company_not_found(company_id))
        ledger_account = self.accounts.find_or_create_account_by_code(company_id, account_code)
        bank_account_id = self.db.create_bank_account(
            company_id, name.strip(), ledger_account.id, iban.replace(" ", "") if iban else None
        )
        logger.info("bank_account_created", extra={"company_id": company_id, "code": account_code})
        return self.db.get_bank_account(bank_account_id)

    def get_bank_account(self, bank_account_id: int) -> Optional[BankAccount]:
        return self.db.get_bank_account(bank_account_id)

    def require_bank_account(self, bank_account_id: int) -> BankAccount:
        bank_account = self.db.get_bank_account(bank_account_id)
        if bank_account is None:
            raise NotFoundError(f"Bank account {bank_account_id} not found")
        return bank_account

    def list_bank_accounts(self, company_id: int) -> list[BankAccount]:
        return self.db.list_bank_accounts(company_id)

    def add_transaction(
        self,
        bank_account_id: int,
        booking_date: date,
        amount,
        remittance_information: Optional[str] = None,
    ) -> BankTransaction:
        """Record a pending bank transaction; positive amounts are inflows.

        Raises:
            NotFoundError: If the bank account does not exist
            ValidationError: If the amount is zero or has more than two decimals
        """
        self.require_bank_account(bank_account_id)
        amount = to_amount(amount)
        if amount == 0:
            raise ValidationError("Bank transaction amount must not be zero")
        if amount != amount.quantize(CENT):
            raise ValidationError("Bank transaction amount has more than two decimals")
        transaction_id = self.db.create_bank_transaction(
            bank_account_id, booking_date, amount, remittance_information
        )
        return self.db.get_bank_transaction(transaction_id)

    def get_transaction(self, transaction_id: int) -> Optional[BankTransaction]:
        return self.db.get_bank_transaction(transaction_id)

    def require_transaction(self, transaction_id: int) -> BankTransaction:
        transaction = self.db.get_bank_transaction(transaction_id)
        if transaction is None:
            raise NotFoundError(f"Bank transaction {transaction_id} not found")
        return transaction

    def list_transactions(
        self, bank_account_id: int, status: Optional[BankTransactionStatus] = None
    ) -> list[BankTransaction]:
        return self.db.list_bank_transactions(bank_account_id, status)

    def reset_to_pending(self, transaction_id: int) -> BankTransaction:
        """Put a bank transaction back into the unbooked state.

        Raises:
            NotFoundError: If the transaction does not exist
        """
        self.require_transaction(transaction_id)
        self.db.update_bank_transaction_status(transaction_id, BankTransactionStatus.PENDING)
        return self.db.get_bank_transaction(transaction_id)

    def book_transaction(
        self,
        company_id: int,
        transaction_id: int,
        account_code: str,
        description: Optional[str] = None,
        vat_rate=None,
        post: bool = False,
    ) -> JournalEntry:
        """Create a journal entry for a pending bank transaction.

        The bank line is linked to the transaction. With a VAT rate the
        counter amount is split into net and VAT; inflows book output VAT,
        outflows input VAT.

        Args:
            company_id: Company owning the bank account
            transaction_id: Pending bank transaction
            account_code: Counter account (revenue, expense, ...)
            description: Entry description (defaults to the remittance text)
            vat_rate: VAT rate in percent, e.g. 19 or 7
            post: Post the entry immediately instead of saving a draft

        Returns:
            The created journal entry

        Raises:
            NotFoundError: If the transaction or an account code is unknown
            ValidationError: If the transaction is already booked or the entry is invalid
            FiscalYearClosedError: If the booking date lies in a closed fiscal year
        """
        transaction = self.require_transaction(transaction_id)
        bank_account = self.require_bank_account(transaction.bank_account_id)
        if bank_account.company_id != company_id:
            raise ValidationError(f"Bank transaction {transaction_id} belongs to another company")
        if transaction.status is not BankTransactionStatus.PENDING:
            raise ValidationError(
                f"Bank transaction {transaction_id} is already {transaction.status.value}"
            )

        ledger_account = self.db.get_account(bank_account.ledger_account_id)
        inflow = transaction.amount > 0
        gross = abs(transaction.amount)
        bank_direction = Direction.DEBIT if inflow else Direction.CREDIT
        counter_direction = bank_direction.opposite

        lines = [
            DraftLineItem(
                account_code=ledger_account.code,
                amount=gross,
                direction=bank_direction,
                bank_transaction_id=transaction.id,
            )
        ]
        rate = to_amount(vat_rate) if vat_rate is not None else Decimal("0")
        if rate < 0:
            raise ValidationError("VAT rate must not be negative")
        if rate > 0:
            net, vat = split_gross(gross, rate)
            lines.append(DraftLineItem(account_code=account_code, amount=net, direction=counter_direction))
            if vat > 0:
                lines.append(
                    DraftLineItem(
                        account_code=self._vat_account(inflow, rate),
                        amount=vat,
                        direction=counter_direction,
                    )
                )
        else:
            lines.append(DraftLineItem(account_code=account_code, amount=gross, direction=counter_direction))

        draft = DraftEntry(
            booking_date=transaction.booking_date,
            description=description
            or transaction.remittance_information
            or f"Banktransaktion {transaction.id}",
            line_items=tuple(lines),
        )
        if post:
            return self.ledger.post_entry(company_id, draft)
        return self.ledger.save_draft(company_id, draft)

    def _vat_account(self, inflow: bool, rate: Decimal) -> str:
        side = "output" if inflow else "input"
        suffix = "19" if rate >= FULL_VAT_RATE else "7"
        return self.chart.vat_accounts[f"{side}_{suffix}"]
