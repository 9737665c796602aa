"""Main CLI entry point."""

import click
from bubu.database.factories import open_database

# Import and register all commands at module level
from bubu.cli.commands import (
    balance,
    category,
    init_categories,
    serve,
    transaction,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides BUBU_DB_PATH environment variable)",
    envvar="BUBU_DB_PATH",
)
@click.pass_context
def cli(ctx, db_path: str | None):
    """BUBU - conversational personal-finance assistant.

    Manage categories, inspect ledgers and balances, and run the chat API.
    """
    ctx.ensure_object(dict)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = open_database(database_path=db_path)
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
init_categories.register_commands(cli)
category.register_commands(cli)
transaction.register_commands(cli)
balance.register_commands(cli)
serve.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
