"""Main CLI entry point."""

import dataclasses
import logging

import click
from bilanz.config import Settings
from bilanz.database.factories import create_sqlite_database
from bilanz.logging_config import configure_logging

# Import and register all commands at module level
from bilanz.cli.commands import (
    account,
    bank,
    company,
    entry,
    fiscal_year,
    report,
    tax,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides BILANZ_DB_PATH environment variable)",
    envvar="BILANZ_DB_PATH",
)
@click.option(
    "--company",
    help="Company name or ID (overrides BILANZ_COMPANY environment variable)",
    envvar="BILANZ_COMPANY",
)
@click.option("-v", "--verbose", count=True, help="Log service events (-vv for debug output)")
@click.pass_context
def cli(ctx, db_path: str | None, company: str | None, verbose: int):
    """Bilanz - Bookkeeping for German GmbH and UG companies.

    Post GoBD-compliant journal entries on SKR03 accounts, open and close
    fiscal years, and derive the HGB balance sheet, the GuV, the UStVA and
    the Körperschaftsteuer from the ledger.
    """
    ctx.ensure_object(dict)

    try:
        settings = Settings.from_env()
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
    if db_path is not None:
        settings = dataclasses.replace(settings, database_path=db_path)

    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = settings.log_level
    configure_logging(level)

    ctx.obj["settings"] = settings
    ctx.obj["company"] = company

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=settings.database_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
company.register_commands(cli)
account.register_commands(cli)
fiscal_year.register_commands(cli)
entry.register_commands(cli)
bank.register_commands(cli)
report.register_commands(cli)
tax.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
