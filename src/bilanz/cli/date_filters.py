"""CLI helpers for reporting period resolution."""

from datetime import date

import click

from bilanz.utils.date_parser import (
    get_date_range,
    parse_date,
    parse_month,
    parse_quarter,
    year_range,
)


def resolve_cli_period(
    ctx,
    *,
    start_date: str | None,
    end_date: str | None,
    month: str | None = None,
    quarter: str | None = None,
    year: int | None = None,
    period: str | None = None,
) -> tuple[date, date]:
    """Resolve a reporting period from exactly one period option or explicit dates."""
    shortcuts = {"--month": month, "--quarter": quarter, "--year": year, "--period": period}
    chosen = [name for name, value in shortcuts.items() if value is not None]

    if len(chosen) > 1:
        click.echo(
            "Error: Only one period option (--month, --quarter, --year, --period) can be specified at a time.",
            err=True,
        )
        ctx.exit(1)

    if chosen and (start_date or end_date):
        click.echo(
            "Error: Period options (--month, --quarter, etc.) cannot be combined with --start-date or --end-date.",
            err=True,
        )
        ctx.exit(1)

    try:
        if month is not None:
            return parse_month(month)
        if quarter is not None:
            return parse_quarter(quarter)
        if year is not None:
            return year_range(year)
        if period is not None:
            return get_date_range(period)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    if not start_date or not end_date:
        click.echo("Error: Give --start-date and --end-date or one period option.", err=True)
        ctx.exit(1)

    try:
        start = parse_date(start_date)
    except ValueError as e:
        click.echo(f"Error: Invalid start date: {e}", err=True)
        ctx.exit(1)

    try:
        end = parse_date(end_date)
    except ValueError as e:
        click.echo(f"Error: Invalid end date: {e}", err=True)
        ctx.exit(1)

    return start, end
