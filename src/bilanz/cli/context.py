"""CLI helpers for building services and resolving the active company."""

from __future__ import annotations

import click

from bilanz.domain.bookkeeping import Bookkeeping
from bilanz.domain.entities import FiscalYear
from bilanz.domain.errors import ConfigurationError, DomainError
from bilanz.utils.company_resolver import resolve_company


def get_bookkeeping(ctx: click.Context) -> Bookkeeping:
    """Return the Bookkeeping facade for this invocation, building it once."""
    obj = ctx.find_root().obj
    if "bookkeeping" not in obj:
        try:
            obj["bookkeeping"] = Bookkeeping(obj["db"], settings=obj["settings"])
        except ConfigurationError as exc:
            click.echo(f"Error: Invalid chart table: {exc}", err=True)
            ctx.exit(1)
    return obj["bookkeeping"]


def resolve_company_or_exit(ctx: click.Context) -> int:
    """Resolve the --company option (name or ID), or exit with a CLI error.

    A database with a single company needs no --company option.
    """
    bookkeeping = get_bookkeeping(ctx)
    company = ctx.find_root().obj.get("company")
    if company is None:
        companies = bookkeeping.companies.list_companies()
        if len(companies) == 1:
            return companies[0].id
        click.echo("Error: Specify the company with --company or BILANZ_COMPANY", err=True)
        ctx.exit(1)
    try:
        return resolve_company(bookkeeping.companies, company)
    except DomainError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)


def resolve_fiscal_year_or_exit(ctx: click.Context, company_id: int, year: int) -> FiscalYear:
    """Look up a company's fiscal year by calendar year, or exit with a CLI error."""
    fiscal_year = get_bookkeeping(ctx).fiscal_years.get_by_year(company_id, year)
    if fiscal_year is None:
        click.echo(f"Error: Fiscal year {year} not found", err=True)
        ctx.exit(1)
    return fiscal_year
