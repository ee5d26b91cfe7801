"""Ledger account commands."""

import click
from bilanz.cli.context import get_bookkeeping, resolve_company_or_exit
from bilanz.cli.error_handling import handle_domain_error
from bilanz.domain.entities import AccountType
from bilanz.domain.errors import DomainError
from bilanz.utils.amount_parser import parse_amount


@click.group()
def account_group():
    """Manage ledger accounts."""
    pass


@account_group.command("create")
@click.argument("code", metavar="CODE")
@click.option("--name", help="Account name (defaults to the SKR03 name)")
@click.option(
    "--type",
    "account_type",
    type=click.Choice([t.value for t in AccountType]),
    help="Account type (inferred from the account code when omitted)",
)
@click.option("--tax-rate", help="VAT rate in percent, e.g. 19")
@click.option("--rule", help="Presentation rule override, e.g. bank_bidirectional")
@click.pass_context
def create_account(ctx, code: str, name: str | None, account_type: str | None, tax_rate: str | None, rule: str | None):
    """Create a ledger account.

    Examples:
        bilanz account create 1200
        bilanz account create 4400 --name "Erlöse 19% USt" --tax-rate 19
        bilanz account create 1210 --name "Tagesgeld" --rule bank_bidirectional
    """
    bookkeeping = get_bookkeeping(ctx)
    company_id = resolve_company_or_exit(ctx)

    rate = None
    if tax_rate is not None:
        try:
            rate = parse_amount(tax_rate)
        except ValueError as e:
            click.echo(f"Error: Invalid tax rate: {e}", err=True)
            ctx.exit(1)

    try:
        account_id = bookkeeping.accounts.create_account(
            company_id,
            code,
            name=name,
            account_type=AccountType(account_type) if account_type else None,
            tax_rate=rate,
            presentation_rule=rule,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    account = bookkeeping.accounts.get_account(account_id)
    click.echo(f"Created account {account.code} '{account.name}' ({account.account_type.value})")


@account_group.command("list")
@click.pass_context
def list_accounts(ctx):
    """List the accounts of the company."""
    bookkeeping = get_bookkeeping(ctx)
    company_id = resolve_company_or_exit(ctx)

    accounts = bookkeeping.accounts.list_accounts(company_id)
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 80)
    for acc in accounts:
        rule = bookkeeping.chart.rules.rule_for(acc).key
        click.echo(f"{acc.code:>6s} | {acc.name[:40]:40s} | {acc.account_type.value:9s} | {rule}")


@account_group.command("rule")
@click.argument("code", metavar="CODE")
@click.argument("rule", metavar="RULE", required=False)
@click.option("--clear", is_flag=True, help="Remove the override and use the category default")
@click.pass_context
def set_rule(ctx, code: str, rule: str | None, clear: bool):
    """Set the presentation rule override of an account.

    Examples:
        bilanz account rule 1210 bank_bidirectional
        bilanz account rule 1210 --clear
    """
    bookkeeping = get_bookkeeping(ctx)
    company_id = resolve_company_or_exit(ctx)

    if (rule is None) == (not clear):
        click.echo("Error: Give either RULE or --clear", err=True)
        ctx.exit(1)

    account = bookkeeping.accounts.get_account_by_code(company_id, code)
    if account is None:
        click.echo(f"Error: Account '{code}' not found", err=True)
        ctx.exit(1)

    try:
        bookkeeping.accounts.set_presentation_rule(account.id, None if clear else rule)
    except DomainError as e:
        handle_domain_error(ctx, e)
    if clear:
        click.echo(f"Cleared presentation rule of account {code}")
    else:
        click.echo(f"Account {code} now uses presentation rule '{rule}'")


@account_group.command("delete")
@click.argument("code", metavar="CODE")
@click.pass_context
def delete_account(ctx, code: str):
    """Delete an account that has no line items."""
    bookkeeping = get_bookkeeping(ctx)
    company_id = resolve_company_or_exit(ctx)

    account = bookkeeping.accounts.get_account_by_code(company_id, code)
    if account is None:
        click.echo(f"Error: Account '{code}' not found", err=True)
        ctx.exit(1)

    try:
        bookkeeping.accounts.delete_account(account.id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted account {code}")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
