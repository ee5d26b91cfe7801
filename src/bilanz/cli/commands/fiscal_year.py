"""Fiscal year commands: create, opening balance, closing and import."""

import json
from decimal import Decimal

import click
from bilanz.cli.context import get_bookkeeping, resolve_company_or_exit, resolve_fiscal_year_or_exit
from bilanz.cli.error_handling import handle_domain_error
from bilanz.cli.formatting import format_amount
from bilanz.domain.entities import BalanceSheetSource
from bilanz.domain.errors import DomainError


def _load_balance_sheet_file(ctx, path: str) -> dict:
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f, parse_float=Decimal)
    except (OSError, json.JSONDecodeError) as e:
        click.echo(f"Error: Cannot read balance sheet file: {e}", err=True)
        ctx.exit(1)
    if not isinstance(data, dict):
        click.echo("Error: Balance sheet file must contain a JSON object", err=True)
        ctx.exit(1)
    return data


@click.group()
def fiscal_year_group():
    """Manage fiscal years."""
    pass


@fiscal_year_group.command("create")
@click.argument("year", type=int)
@click.pass_context
def create_fiscal_year(ctx, year: int):
    """Create a calendar fiscal year.

    Examples:
        bilanz fiscal-year create 2024
    """
    bookkeeping = get_bookkeeping(ctx)
    company_id = resolve_company_or_exit(ctx)

    try:
        fiscal_year = bookkeeping.fiscal_years.create_fiscal_year(company_id, year)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created fiscal year {fiscal_year.year} ({fiscal_year.start_date} to {fiscal_year.end_date})")


@fiscal_year_group.command("list")
@click.pass_context
def list_fiscal_years(ctx):
    """List fiscal years with their state."""
    bookkeeping = get_bookkeeping(ctx)
    company_id = resolve_company_or_exit(ctx)

    fiscal_years = bookkeeping.fiscal_years.list_fiscal_years(company_id)
    if not fiscal_years:
        click.echo("No fiscal years found.")
        return

    click.echo("\nFiscal years:")
    click.echo("-" * 60)
    for fy in fiscal_years:
        click.echo(f"{fy.year} | {fy.start_date} - {fy.end_date} | {fy.state.value}")


@fiscal_year_group.command("opening")
@click.argument("year", type=int)
@click.option("--file", "file_path", required=True, type=click.Path(exists=True, dir_okay=False),
              help="JSON file with 'aktiva' and 'passiva' sections")
@click.option("--source", type=click.Choice(["manual", "carryforward"]), default="manual", show_default=True)
@click.pass_context
def post_opening(ctx, year: int, file_path: str, source: str):
    """Post the opening balance (EBK) of a fiscal year from a JSON file.

    Examples:
        bilanz fiscal-year opening 2024 --file eroeffnungsbilanz.json
    """
    bookkeeping = get_bookkeeping(ctx)
    company_id = resolve_company_or_exit(ctx)
    fiscal_year = resolve_fiscal_year_or_exit(ctx, company_id, year)
    data = _load_balance_sheet_file(ctx, file_path)

    try:
        result = bookkeeping.fiscal_years.post_opening_balance(
            fiscal_year.id, data, BalanceSheetSource(source)
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    _echo_opening(result)


@fiscal_year_group.command("carryforward")
@click.argument("year", type=int)
@click.pass_context
def carryforward(ctx, year: int):
    """Open a fiscal year from the previous year's closing balance sheet."""
    bookkeeping = get_bookkeeping(ctx)
    company_id = resolve_company_or_exit(ctx)
    fiscal_year = resolve_fiscal_year_or_exit(ctx, company_id, year)

    try:
        result = bookkeeping.fiscal_years.post_carryforward_opening(fiscal_year.id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    _echo_opening(result)


def _echo_opening(result) -> None:
    click.echo(f"Posted opening balance for {result.fiscal_year.year}")
    if result.journal_entry is not None:
        click.echo(
            f"EBK entry {result.journal_entry.id}: {len(result.journal_entry.line_items)} lines, "
            f"{format_amount(result.journal_entry.total_debit)} EUR"
        )


@fiscal_year_group.command("close")
@click.argument("year", type=int)
@click.option("--no-next-year", is_flag=True, help="Do not create the next year's opening balance")
@click.pass_context
def close_fiscal_year(ctx, year: int, no_next_year: bool):
    """Close a fiscal year: post the SBK entry and freeze the balance sheet.

    Closing is irreversible. By default the next fiscal year is created
    and opened with the closing balances.
    """
    bookkeeping = get_bookkeeping(ctx)
    company_id = resolve_company_or_exit(ctx)
    fiscal_year = resolve_fiscal_year_or_exit(ctx, company_id, year)

    try:
        result = bookkeeping.fiscal_years.close_fiscal_year(
            fiscal_year.id, create_next_year_opening=not no_next_year
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    data = result.balance_sheet.data
    click.echo(f"Closed fiscal year {year}")
    click.echo(f"{data['net_income_label']}: {format_amount(data['net_income'])} EUR")
    next_year = result.next_year
    if next_year["status"] == "created":
        click.echo(f"Opened fiscal year {next_year['year']} with the closing balances")
    elif next_year["status"] == "failed":
        click.echo(
            f"Warning: Could not open fiscal year {next_year['year']}: {'; '.join(next_year['errors'])}",
            err=True,
        )


@fiscal_year_group.command("import")
@click.argument("year", type=int)
@click.option("--file", "file_path", required=True, type=click.Path(exists=True, dir_okay=False),
              help="JSON file with the year's final balance sheet")
@click.pass_context
def import_fiscal_year(ctx, year: int, file_path: str):
    """Record a historical, already closed fiscal year.

    The balance sheet becomes the closing snapshot the next year can carry
    forward.
    """
    bookkeeping = get_bookkeeping(ctx)
    company_id = resolve_company_or_exit(ctx)
    data = _load_balance_sheet_file(ctx, file_path)

    try:
        fiscal_year = bookkeeping.fiscal_years.import_fiscal_year(company_id, year, data)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Imported fiscal year {fiscal_year.year} (closed)")


def register_commands(cli):
    """Register fiscal year commands with main CLI."""
    cli.add_command(fiscal_year_group, name="fiscal-year")
