"""Main CLI entry point."""

import logging

import click

from ledgerkit.config import ConfigError, load_config
from ledgerkit.database.factories import DB_PATH_ENV, create_sqlite_database
from ledgerkit.logging_config import setup_logging

# Import and register all commands at module level
from ledgerkit.cli.commands import (
    add,
    booking,
    expense,
    export,
    reconcile,
    summary,
    view,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help=f"Path to database file (overrides {DB_PATH_ENV} environment variable)",
    envvar=DB_PATH_ENV,
)
@click.option("--verbose", "-v", count=True, help="Log reconciliation details (-vv for debug)")
@click.pass_context
def cli(ctx, db_path: str | None, verbose: int):
    """Ledgerkit - Hierarchical expense ledger.

    Record company, client and invoice expenses, group them under root
    entries, and keep every category consistent with its booking and root.
    """
    ctx.ensure_object(dict)

    level = {0: logging.WARNING, 1: logging.INFO}.get(verbose, logging.DEBUG)
    setup_logging(level)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        try:
            config = load_config().with_overrides(database_path=db_path)
        except ConfigError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)

        db = create_sqlite_database(database_path=config.database_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.obj["config"] = config


# Register all commands
add.register_commands(cli)
booking.register_commands(cli)
view.register_commands(cli)
summary.register_commands(cli)
expense.register_commands(cli)
export.register_commands(cli)
reconcile.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
