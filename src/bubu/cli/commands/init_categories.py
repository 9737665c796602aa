"""Initialize predefined categories."""

import click
from bubu.domain.category import CategoryService, PREDEFINED_CATEGORIES


@click.command("init-categories")
@click.pass_context
def init_categories(ctx):
    """Create the predefined categories that are missing."""
    db = ctx.obj["db"]
    service = CategoryService(db)

    created = service.ensure_predefined()
    if created == 0:
        click.echo(f"All {len(PREDEFINED_CATEGORIES)} predefined categories already exist.")
    else:
        click.echo(f"Created {created} predefined categories.")


def register_commands(cli):
    """Register init-categories command with main CLI."""
    cli.add_command(init_categories)
