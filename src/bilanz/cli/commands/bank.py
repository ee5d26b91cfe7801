"""Bank account and bank transaction commands."""

import click
from bilanz.cli.context import get_bookkeeping, resolve_company_or_exit
from bilanz.cli.error_handling import handle_domain_error
from bilanz.cli.formatting import format_amount
from bilanz.domain.bank import DEFAULT_BANK_ACCOUNT_CODE
from bilanz.domain.entities import BankTransactionStatus
from bilanz.domain.errors import DomainError
from bilanz.utils.amount_parser import parse_amount
from bilanz.utils.date_parser import parse_date


@click.group()
def bank_group():
    """Manage bank accounts and book their transactions."""
    pass


@bank_group.command("account-create")
@click.argument("name")
@click.option("--code", default=DEFAULT_BANK_ACCOUNT_CODE, show_default=True, help="Ledger account code")
@click.option("--iban", help="IBAN of the bank account")
@click.pass_context
def create_bank_account(ctx, name: str, code: str, iban: str | None):
    """Create a bank account backed by a ledger account."""
    bookkeeping = get_bookkeeping(ctx)
    company_id = resolve_company_or_exit(ctx)

    try:
        bank_account = bookkeeping.bank.create_bank_account(company_id, name, code, iban)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created bank account '{bank_account.name}' (ID: {bank_account.id}) on account {code}")


@bank_group.command("account-list")
@click.pass_context
def list_bank_accounts(ctx):
    """List bank accounts."""
    bookkeeping = get_bookkeeping(ctx)
    company_id = resolve_company_or_exit(ctx)

    bank_accounts = bookkeeping.bank.list_bank_accounts(company_id)
    if not bank_accounts:
        click.echo("No bank accounts found.")
        return

    click.echo("\nBank accounts:")
    click.echo("-" * 60)
    for bank_account in bank_accounts:
        account = bookkeeping.accounts.get_account(bank_account.ledger_account_id)
        click.echo(
            f"{bank_account.id:4d} | {bank_account.name:25} | {account.code if account else '?':>6} | "
            f"{bank_account.iban or ''}"
        )


@bank_group.command("add")
@click.argument("bank_account_id", type=int)
@click.option("--date", "booking_date", required=True, help="Booking date")
@click.option("--amount", required=True, help="Signed amount, negative for outflows")
@click.option("--text", "remittance", help="Remittance information (Verwendungszweck)")
@click.pass_context
def add_transaction(ctx, bank_account_id: int, booking_date: str, amount: str, remittance: str | None):
    """Record a bank transaction as pending.

    Examples:
        bilanz bank add 1 --date 2024-03-15 --amount 119,00 --text "Rechnung 42"
        bilanz bank add 1 --date 2024-03-20 --amount -59,50 --text "Büromaterial"
    """
    bookkeeping = get_bookkeeping(ctx)

    try:
        day = parse_date(booking_date)
        value = parse_amount(amount)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    try:
        transaction = bookkeeping.bank.add_transaction(bank_account_id, day, value, remittance)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Added bank transaction {transaction.id} ({format_amount(transaction.amount)} EUR)")


@bank_group.command("list")
@click.argument("bank_account_id", type=int)
@click.option(
    "--status",
    type=click.Choice([s.value for s in BankTransactionStatus]),
    help="Only transactions with this status",
)
@click.pass_context
def list_transactions(ctx, bank_account_id: int, status: str | None):
    """List the transactions of a bank account."""
    bookkeeping = get_bookkeeping(ctx)

    try:
        bookkeeping.bank.require_bank_account(bank_account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    transactions = bookkeeping.bank.list_transactions(
        bank_account_id, BankTransactionStatus(status) if status else None
    )
    if not transactions:
        click.echo("No bank transactions found.")
        return

    click.echo(f"\n{'ID':>5} | {'Date':10} | {'Amount':>12} | {'Status':8} | Text")
    click.echo("-" * 70)
    for transaction in transactions:
        click.echo(
            f"{transaction.id:5d} | {transaction.booking_date} | {format_amount(transaction.amount):>12} | "
            f"{transaction.status.value:8} | {transaction.remittance_information or ''}"
        )


@bank_group.command("book")
@click.argument("transaction_id", type=int)
@click.option("--account", "account_code", required=True, help="Counter account code")
@click.option("--vat", "vat_rate", type=click.Choice(["0", "7", "19"]), default="0", show_default=True,
              help="VAT rate in percent")
@click.option("--description", help="Booking text (defaults to the remittance information)")
@click.option("--post", is_flag=True, help="Post the entry instead of saving a draft")
@click.pass_context
def book_transaction(ctx, transaction_id: int, account_code: str, vat_rate: str,
                     description: str | None, post: bool):
    """Book a pending bank transaction against a counter account.

    Examples:
        bilanz bank book 3 --account 8400 --vat 19 --post
    """
    bookkeeping = get_bookkeeping(ctx)
    company_id = resolve_company_or_exit(ctx)

    try:
        entry = bookkeeping.bank.book_transaction(
            company_id, transaction_id, account_code, description, vat_rate=int(vat_rate), post=post
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    state = "Posted" if post else "Saved draft"
    click.echo(f"{state} journal entry {entry.id} for bank transaction {transaction_id}")


def register_commands(cli):
    """Register bank commands with main CLI."""
    cli.add_command(bank_group, name="bank")
