"""Tax commands: UStVA, Körperschaftsteuer and stored tax reports."""

import click
from bilanz.cli.context import get_bookkeeping, resolve_company_or_exit, resolve_fiscal_year_or_exit
from bilanz.cli.date_filters import resolve_cli_period
from bilanz.cli.error_handling import handle_domain_error
from bilanz.cli.formatting import format_amount, to_json
from bilanz.domain.entities import TaxReportType
from bilanz.domain.errors import DomainError
from bilanz.domain.tax_fields import KST_ADJUSTMENTS
from bilanz.utils.amount_parser import parse_amount


def parse_adjustments(values: tuple[str, ...]) -> dict:
    """Parse repeated KEY=AMOUNT options into a mapping.

    Raises:
        ValueError: If an option is not KEY=AMOUNT or the amount is invalid
    """
    adjustments = {}
    for value in values:
        key, sep, amount = value.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Adjustment '{value}' must look like KEY=AMOUNT")
        adjustments[key.strip()] = parse_amount(amount)
    return adjustments


@click.group()
def tax_group():
    """Compute and track tax returns."""
    pass


@tax_group.command("ustva")
@click.option("--start-date", help="Period start")
@click.option("--end-date", help="Period end")
@click.option("--month", help="Month, e.g. 2024-03")
@click.option("--quarter", help="Quarter, e.g. 2024-Q1")
@click.option("--year", type=int, help="Calendar year")
@click.option("--period", help="this-month, last-month, this-quarter, last-quarter, this-year, last-year")
@click.option("--save", is_flag=True, help="Store the result as a draft tax report")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def ustva(ctx, start_date, end_date, month, quarter, year, period, save: bool, as_json: bool):
    """Compute the Umsatzsteuer-Voranmeldung for a period.

    Examples:
        bilanz tax ustva --quarter 2024-Q1
        bilanz tax ustva --month 2024-03 --save
    """
    bookkeeping = get_bookkeeping(ctx)
    company_id = resolve_company_or_exit(ctx)
    start, end = resolve_cli_period(
        ctx, start_date=start_date, end_date=end_date, month=month, quarter=quarter, year=year, period=period
    )

    try:
        if save:
            report = bookkeeping.tax_reports.create_ustva_report(company_id, start, end)
            data = report.generated_data
        else:
            data = bookkeeping.ustva.compute(company_id, start, end)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if as_json:
        click.echo(to_json(data))
        return

    click.echo(f"\nUmsatzsteuer-Voranmeldung {start} bis {end} ({data['period_type']})")
    click.echo("=" * 60)
    for section in data["sections"].values():
        click.echo(section["label"])
        for field in section["fields"]:
            click.echo(f"  Kz. {field['field_number']:>3} {field['name'][:36]:36} {format_amount(field['value']):>14}")
    click.echo("-" * 60)
    click.echo(f"{'Umsatzsteuer':44} {format_amount(data['output_vat_total']):>14}")
    click.echo(f"{'Vorsteuer':44} {format_amount(data['input_vat_total']):>14}")
    click.echo(f"{'Kz. 83 Vorauszahlung / Erstattung':44} {format_amount(data['net_vat_liability']):>14}")
    if save:
        click.echo(f"Saved tax report {report.id} (draft)")


@tax_group.command("kst")
@click.argument("year", type=int)
@click.option("--adjust", "adjust", multiple=True, help="KEY=AMOUNT, repeatable")
@click.option("--save", is_flag=True, help="Store the result as a draft tax report")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def kst(ctx, year: int, adjust: tuple[str, ...], save: bool, as_json: bool):
    """Compute the Körperschaftsteuer of a fiscal year.

    Adjustment keys: non_deductible_expenses, tax_free_income,
    loss_carryforward, donations, special_deductions.

    Examples:
        bilanz tax kst 2024 --adjust non_deductible_expenses=1200
    """
    bookkeeping = get_bookkeeping(ctx)
    company_id = resolve_company_or_exit(ctx)
    fiscal_year = resolve_fiscal_year_or_exit(ctx, company_id, year)

    try:
        adjustments = parse_adjustments(adjust)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    try:
        if save:
            report = bookkeeping.tax_reports.create_kst_report(company_id, fiscal_year.id, adjustments)
            data = report.generated_data
        else:
            data = bookkeeping.kst.compute(company_id, fiscal_year.id, adjustments)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if as_json:
        click.echo(to_json(data))
        return

    base = data["base_data"]
    calculated = data["calculated"]
    click.echo(f"\nKörperschaftsteuer {year}")
    click.echo("=" * 60)
    click.echo(f"{base['net_income_label']:44} {format_amount(base['net_income']):>14}")
    for adjustment in data["adjustments"]:
        sign = "+" if adjustment["adjustment_sign"] == "add" else "-"
        click.echo(f"  {sign} {adjustment['name'][:40]:40} {format_amount(adjustment['value']):>14}")
    click.echo("-" * 60)
    click.echo(f"{'Zu versteuerndes Einkommen':44} {format_amount(calculated['taxable_income']):>14}")
    click.echo(f"{'Körperschaftsteuer (15 %)':44} {format_amount(calculated['kst_amount']):>14}")
    if save:
        click.echo(f"Saved tax report {report.id} (draft)")


@tax_group.command("adjustments")
def list_adjustments():
    """List the supported KSt adjustment keys."""
    for adjustment in KST_ADJUSTMENTS:
        sign = "+" if adjustment.sign > 0 else "-"
        click.echo(f"{adjustment.key:25} {sign} {adjustment.name}")


@tax_group.command("list")
@click.option("--type", "report_type", type=click.Choice([t.value for t in TaxReportType]), help="Report type")
@click.pass_context
def list_reports(ctx, report_type: str | None):
    """List stored tax reports."""
    bookkeeping = get_bookkeeping(ctx)
    company_id = resolve_company_or_exit(ctx)

    reports = bookkeeping.tax_reports.list_reports(
        company_id, TaxReportType(report_type) if report_type else None
    )
    if not reports:
        click.echo("No tax reports found.")
        return

    click.echo(f"\n{'ID':>4} | {'Type':5} | {'Period':23} | {'Status':9}")
    click.echo("-" * 50)
    for report in reports:
        click.echo(
            f"{report.id:4d} | {report.report_type.value:5} | {report.start_date} - {report.end_date} | "
            f"{report.status.value:9}"
        )


@tax_group.command("regenerate")
@click.argument("report_id", type=int)
@click.pass_context
def regenerate_report(ctx, report_id: int):
    """Recompute a draft tax report from the current ledger."""
    bookkeeping = get_bookkeeping(ctx)
    try:
        bookkeeping.tax_reports.regenerate(report_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Regenerated tax report {report_id}")


@tax_group.command("submit")
@click.argument("report_id", type=int)
@click.pass_context
def submit_report(ctx, report_id: int):
    """Mark a draft tax report as submitted."""
    bookkeeping = get_bookkeeping(ctx)
    try:
        bookkeeping.tax_reports.submit(report_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Submitted tax report {report_id}")


@tax_group.command("accept")
@click.argument("report_id", type=int)
@click.pass_context
def accept_report(ctx, report_id: int):
    """Mark a submitted tax report as accepted by the tax office."""
    bookkeeping = get_bookkeeping(ctx)
    try:
        bookkeeping.tax_reports.accept(report_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Accepted tax report {report_id}")


def register_commands(cli):
    """Register tax commands with main CLI."""
    cli.add_command(tax_group, name="tax")
