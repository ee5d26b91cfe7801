"""Company management commands."""

import click
from bilanz.cli.context import get_bookkeeping
from bilanz.cli.error_handling import handle_domain_error
from bilanz.domain.errors import DomainError
from bilanz.utils.company_resolver import resolve_company


@click.group()
def company_group():
    """Manage companies."""
    pass


@company_group.command("create")
@click.argument("name", metavar="COMPANY_NAME")
@click.pass_context
def create_company(ctx, name: str):
    """Create a new company.

    Examples:
        bilanz company create "Muster GmbH"
    """
    service = get_bookkeeping(ctx).companies

    try:
        company_id = service.create_company(name)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created company '{name.strip()}' (ID: {company_id})")


@company_group.command("list")
@click.pass_context
def list_companies(ctx):
    """List all companies."""
    service = get_bookkeeping(ctx).companies

    companies = service.list_companies()
    if not companies:
        click.echo("No companies found.")
        return

    click.echo("\nCompanies:")
    click.echo("-" * 60)
    for company in companies:
        click.echo(f"ID: {company.id:3d} | {company.name}")


@company_group.command("delete")
@click.argument("company", metavar="COMPANY")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_company(ctx, company: str, yes: bool):
    """Delete a company with all of its bookkeeping data.

    COMPANY can be a company name or ID.
    """
    service = get_bookkeeping(ctx).companies

    try:
        company_id = resolve_company(service, company)
    except DomainError as e:
        handle_domain_error(ctx, e)

    company_obj = service.get_company(company_id)
    if not yes and not click.confirm(
        f"Are you sure you want to delete company '{company_obj.name}' and all of its data?"
    ):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_company(company_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted company '{company_obj.name}'")


def register_commands(cli):
    """Register company commands with main CLI."""
    cli.add_command(company_group, name="company")
