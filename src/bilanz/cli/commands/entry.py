"""Journal entry commands."""

import click
from bilanz.cli.context import get_bookkeeping, resolve_company_or_exit, resolve_fiscal_year_or_exit
from bilanz.cli.error_handling import handle_domain_error
from bilanz.cli.formatting import format_amount
from bilanz.domain.entities import Direction, DraftEntry, DraftLineItem
from bilanz.domain.errors import DomainError
from bilanz.utils.amount_parser import parse_amount
from bilanz.utils.date_parser import parse_date

DIRECTION_CODES = {
    "d": Direction.DEBIT,
    "s": Direction.DEBIT,
    "debit": Direction.DEBIT,
    "soll": Direction.DEBIT,
    "c": Direction.CREDIT,
    "h": Direction.CREDIT,
    "credit": Direction.CREDIT,
    "haben": Direction.CREDIT,
}


def parse_line_spec(spec: str) -> DraftLineItem:
    """Parse "CODE:D|C:AMOUNT[:TEXT]" into a draft line item.

    Raises:
        ValueError: If the line spec is malformed
    """
    parts = spec.split(":", 3)
    if len(parts) < 3:
        raise ValueError(f"Line '{spec}' must look like CODE:D|C:AMOUNT[:TEXT]")
    code, direction, amount = (p.strip() for p in parts[:3])
    if direction.lower() not in DIRECTION_CODES:
        raise ValueError(f"Line '{spec}': direction must be D (Soll) or C (Haben)")
    return DraftLineItem(
        account_code=code,
        amount=parse_amount(amount),
        direction=DIRECTION_CODES[direction.lower()],
        description=parts[3].strip() if len(parts) == 4 else None,
    )


@click.group()
def entry_group():
    """Manage journal entries."""
    pass


@entry_group.command("add")
@click.option("--date", "booking_date", required=True, help="Booking date (YYYY-MM-DD or DD.MM.YYYY)")
@click.option("--description", required=True, help="Booking text")
@click.option("--line", "lines", multiple=True, required=True, help="CODE:D|C:AMOUNT[:TEXT], repeatable")
@click.option("--draft", is_flag=True, help="Save as draft instead of posting")
@click.pass_context
def add_entry(ctx, booking_date: str, description: str, lines: tuple[str, ...], draft: bool):
    """Add a journal entry.

    Posted entries are immutable (GoBD). Use --draft to keep the entry
    editable until 'entry post'.

    Examples:
        bilanz entry add --date 2024-03-15 --description "Rechnung 42" \\
            --line 1200:D:119,00 --line 8400:C:100,00 --line 1776:C:19,00
    """
    bookkeeping = get_bookkeeping(ctx)
    company_id = resolve_company_or_exit(ctx)

    try:
        day = parse_date(booking_date)
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)

    try:
        line_items = tuple(parse_line_spec(spec) for spec in lines)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    entry_draft = DraftEntry(booking_date=day, description=description, line_items=line_items)
    try:
        if draft:
            entry = bookkeeping.ledger.save_draft(company_id, entry_draft)
        else:
            entry = bookkeeping.ledger.post_entry(company_id, entry_draft)
    except DomainError as e:
        handle_domain_error(ctx, e)

    state = "Saved draft" if draft else "Posted"
    click.echo(f"{state} journal entry {entry.id} ({format_amount(entry.total_debit)} EUR)")


@entry_group.command("list")
@click.option("--year", type=int, help="Fiscal year")
@click.pass_context
def list_entries(ctx, year: int | None):
    """List journal entries."""
    bookkeeping = get_bookkeeping(ctx)
    company_id = resolve_company_or_exit(ctx)

    fiscal_year_id = None
    if year is not None:
        fiscal_year_id = resolve_fiscal_year_or_exit(ctx, company_id, year).id

    entries = bookkeeping.ledger.list_entries(company_id, fiscal_year_id=fiscal_year_id)
    if not entries:
        click.echo("No journal entries found.")
        return

    click.echo(f"\n{'ID':>5} | {'Date':10} | {'Type':7} | {'State':6} | {'Amount':>12} | Description")
    click.echo("-" * 80)
    for entry in entries:
        state = "posted" if entry.posted else "draft"
        click.echo(
            f"{entry.id:5d} | {entry.booking_date} | {entry.entry_type.value:7} | {state:6} | "
            f"{format_amount(entry.total_debit):>12} | {entry.description}"
        )


@entry_group.command("show")
@click.argument("entry_id", type=int)
@click.pass_context
def show_entry(ctx, entry_id: int):
    """Show a journal entry with its line items."""
    bookkeeping = get_bookkeeping(ctx)

    try:
        entry = bookkeeping.ledger.require_entry(entry_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    state = f"posted {entry.posted_at:%Y-%m-%d %H:%M}" if entry.posted else "draft"
    click.echo(f"Journal entry {entry.id} | {entry.booking_date} | {entry.entry_type.value} | {state}")
    click.echo(entry.description)
    click.echo("-" * 60)
    for li in entry.line_items:
        soll = format_amount(li.amount) if li.direction is Direction.DEBIT else ""
        haben = format_amount(li.amount) if li.direction is Direction.CREDIT else ""
        click.echo(f"{li.account_code:>6} | {soll:>12} | {haben:>12} | {li.description or ''}")


@entry_group.command("post")
@click.argument("entry_id", type=int)
@click.pass_context
def post_entry(ctx, entry_id: int):
    """Post a draft entry, making it immutable."""
    bookkeeping = get_bookkeeping(ctx)

    try:
        bookkeeping.ledger.post_draft(entry_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Posted journal entry {entry_id}")


@entry_group.command("delete")
@click.argument("entry_id", type=int)
@click.pass_context
def delete_entry(ctx, entry_id: int):
    """Delete a draft entry. Posted entries cannot be deleted."""
    result = get_bookkeeping(ctx).delete_journal_entry(entry_id)
    if not result.success:
        click.echo(f"Error: {result.message}", err=True)
        ctx.exit(1)
    click.echo(f"Deleted journal entry {entry_id}")


def register_commands(cli):
    """Register journal entry commands with main CLI."""
    cli.add_command(entry_group, name="entry")
