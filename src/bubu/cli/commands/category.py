"""Category management commands."""

import click
from bubu.cli.error_handling import handle_domain_error
from bubu.domain.category import CategoryService, is_predefined
from bubu.domain.errors import DomainError
from bubu.domain.user import UserService

TYPE_CHOICE = click.Choice(["expense", "income"], case_sensitive=False)


@click.group()
def category_group():
    """Manage categories."""
    pass


@category_group.command("list")
@click.option("--type", "category_type", type=TYPE_CHOICE, help="Only show expense or income categories")
@click.pass_context
def list_categories(ctx, category_type: str | None):
    """List categories."""
    db = ctx.obj["db"]
    service = CategoryService(db)

    categories = service.list_categories(category_type.lower() if category_type else None)
    if not categories:
        click.echo("No categories found. Run 'init-categories' to create the predefined categories.")
        return

    click.echo(f"\n{'ID':<6} {'Name':<25} {'Type':<10} {'Icon':<6} {'Color':<10}")
    click.echo("-" * 60)
    for cat in categories:
        marker = " *" if is_predefined(cat.name) else ""
        click.echo(
            f"{cat.id:<6} {cat.name + marker:<25} {cat.category_type:<10} {cat.icon or '':<6} {cat.color or '':<10}"
        )
    click.echo("\n* predefined")


@category_group.command("create")
@click.argument("name")
@click.option("--type", "category_type", type=TYPE_CHOICE, default="expense", help="Category type (default: expense)")
@click.option("--icon", help="Emoji icon")
@click.option("--color", help="Hex color, e.g. #10B981")
@click.pass_context
def create_category(ctx, name: str, category_type: str, icon: str | None, color: str | None):
    """Create a new category."""
    db = ctx.obj["db"]
    service = CategoryService(db)

    try:
        category = service.create_category(name=name, category_type=category_type.lower(), color=color, icon=icon)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created category '{category.name}' (ID: {category.id})")


@category_group.command("delete")
@click.argument("name")
@click.pass_context
def delete_category(ctx, name: str):
    """Delete a category, moving its transactions to the fallback category."""
    db = ctx.obj["db"]
    service = CategoryService(db)

    category = service.find_by_name(name)
    if category is None:
        click.echo(f"Error: Category '{name}' not found", err=True)
        ctx.exit(1)

    try:
        result = service.delete_category(category.id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(
        f"Deleted category '{result['deleted']}'; moved {result['moved_count']} "
        f"transaction(s) to '{result['moved_to_name']}'"
    )


@category_group.command("move")
@click.argument("from_name")
@click.argument("to_name")
@click.option("--phone", help="Only move this user's transactions")
@click.pass_context
def move_transactions(ctx, from_name: str, to_name: str, phone: str | None):
    """Move transactions from one category to another (created if missing)."""
    db = ctx.obj["db"]
    service = CategoryService(db)

    try:
        if phone:
            phone = UserService(db).normalize(phone)
        result = service.move_transactions(from_name, to_name, phone=phone)
    except DomainError as e:
        handle_domain_error(ctx, e)
    created = " (created)" if result["created"] else ""
    click.echo(
        f"Moved {result['moved_count']} transaction(s) from '{result['from_name']}' "
        f"to '{result['to_name']}'{created}"
    )


def register_commands(cli):
    """Register category commands with main CLI."""
    cli.add_command(category_group, name="category")
