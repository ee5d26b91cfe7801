"""Financial statement commands: GuV and balance sheet."""

import click
from bilanz.cli.context import get_bookkeeping, resolve_company_or_exit, resolve_fiscal_year_or_exit
from bilanz.cli.formatting import format_amount, to_json
from bilanz.domain.fiscal_year import iter_account_rows, side_total, source_net_income
from bilanz.domain.guv import net_income_label


@click.group()
def report_group():
    """Show the GuV and the balance sheet of a fiscal year."""
    pass


def _echo_error(ctx, result) -> None:
    click.echo(f"Error: {result.message}", err=True)
    ctx.exit(1)


@report_group.command("guv")
@click.argument("year", type=int)
@click.option("--include-drafts", is_flag=True, help="Include unposted draft entries")
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")
@click.pass_context
def guv(ctx, year: int, include_drafts: bool, as_json: bool):
    """Show the Gewinn- und Verlustrechnung (§ 275 Abs. 2 HGB).

    Examples:
        bilanz report guv 2024
        bilanz report guv 2024 --json
    """
    bookkeeping = get_bookkeeping(ctx)
    company_id = resolve_company_or_exit(ctx)
    fiscal_year = resolve_fiscal_year_or_exit(ctx, company_id, year)

    result = bookkeeping.compute_guv(company_id, fiscal_year.id, only_posted=not include_drafts)
    if not result.success:
        _echo_error(ctx, result)
    data = result.value

    if as_json:
        click.echo(to_json(data))
        return

    click.echo(f"\nGewinn- und Verlustrechnung {year}")
    click.echo("=" * 70)
    for section in data["sections"]:
        click.echo(f"{section['label'][:55]:55} {format_amount(section['subtotal']):>14}")
        for account in section["accounts"]:
            click.echo(f"    {account['code']:>6} {account['name'][:43]:43} {format_amount(account['balance']):>14}")
    click.echo("-" * 70)
    click.echo(f"{data['net_income_label']:55} {format_amount(data['net_income']):>14}")


def _echo_sections(sections: dict, indent: int = 0) -> None:
    for section in sections.values():
        if section["total"] == 0 and not section["children"] and not section["accounts"]:
            continue
        prefix = "  " * indent
        click.echo(f"{prefix}{section['section_name'][:55 - len(prefix)]:{55 - len(prefix)}} "
                   f"{format_amount(section['total']):>14}")
        for account in section["accounts"]:
            click.echo(f"{prefix}    {account['code']:>6} {account['name'][:44 - len(prefix)]:{44 - len(prefix)}} "
                       f"{format_amount(account['balance']):>14}")
        _echo_sections(section["children"], indent + 1)


def _echo_side(side: dict) -> None:
    # Imported balance sheets may be flat lists of account rows
    if isinstance(side.get("sections"), dict):
        _echo_sections(side["sections"], 1)
        return
    for row in iter_account_rows({k: v for k, v in side.items() if k != "total"}):
        code = row.get("account_code") or row.get("code")
        click.echo(f"      {code:>6} {str(row.get('name', ''))[:40]:40} {format_amount(row['balance']):>14}")


@report_group.command("balance-sheet")
@click.argument("year", type=int)
@click.option("--json", "as_json", is_flag=True, help="Print the balance sheet as JSON")
@click.pass_context
def balance_sheet(ctx, year: int, as_json: bool):
    """Show the balance sheet (§ 266 HGB).

    Closed years show their stored closing balance sheet.
    """
    bookkeeping = get_bookkeeping(ctx)
    company_id = resolve_company_or_exit(ctx)
    fiscal_year = resolve_fiscal_year_or_exit(ctx, company_id, year)

    result = bookkeeping.compute_balance_sheet(company_id, fiscal_year.id)
    if not result.success:
        _echo_error(ctx, result)
    data = result.value

    if as_json:
        click.echo(to_json(data))
        return

    heading = f"Bilanz zum {fiscal_year.end_date:%d.%m.%Y}"
    if data.get("stored"):
        heading += " (festgeschrieben)"
    click.echo(f"\n{heading}")
    click.echo("=" * 70)

    click.echo("AKTIVA")
    _echo_side(data["aktiva"])
    click.echo(f"{'Summe Aktiva':55} {format_amount(side_total(data['aktiva'])):>14}")
    click.echo("-" * 70)

    net_income = source_net_income(data)
    click.echo("PASSIVA")
    _echo_side(data["passiva"])
    click.echo(f"  {net_income_label(net_income):53} {format_amount(net_income):>14}")
    passiva_total = side_total(data["passiva"]) + net_income
    click.echo(f"{'Summe Passiva':55} {format_amount(passiva_total):>14}")

    if not data.get("balanced", True):
        click.echo(f"Warning: Balance sheet is unbalanced by {format_amount(data['difference'])} EUR", err=True)


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
