"""Transaction commands."""

import click
from bubu.cli.error_handling import handle_domain_error
from bubu.domain.category import CategoryService
from bubu.domain.errors import DomainError
from bubu.domain.transaction import TransactionService
from bubu.domain.user import UserService
from bubu.utils.date_parser import get_date_range, parse_date


@click.group()
def transaction_group():
    """Inspect transactions."""
    pass


@transaction_group.command("list")
@click.option("--phone", required=True, help="User phone number")
@click.option("--period", default="all", help="current_month, previous_month, current_week, today or all")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'ayer'); overrides --period")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'hoy'); overrides --period")
@click.option("--type", "transaction_type", type=click.Choice(["expense", "income"], case_sensitive=False))
@click.option("--category", help="Category name")
@click.option("--limit", type=int, default=100, show_default=True, help="Maximum rows to show")
@click.pass_context
def list_transactions(
    ctx,
    phone: str,
    period: str,
    start_date: str | None,
    end_date: str | None,
    transaction_type: str | None,
    category: str | None,
    limit: int,
):
    """List a user's transactions, newest first."""
    db = ctx.obj["db"]
    service = TransactionService(db)
    category_service = CategoryService(db)

    try:
        phone = UserService(db).normalize(phone)
        if start_date or end_date:
            start = parse_date(start_date) if start_date else None
            end = parse_date(end_date) if end_date else None
        else:
            start, end = get_date_range(period, service.today())
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)

    category_id = None
    if category:
        category_obj = category_service.find_by_name(category)
        if category_obj is None:
            click.echo(f"Error: Category '{category}' not found", err=True)
            ctx.exit(1)
        category_id = category_obj.id

    transactions = service.list_for_user(
        phone,
        start_date=start,
        end_date=end,
        transaction_type=transaction_type.lower() if transaction_type else None,
        category_id=category_id,
        limit=limit,
    )
    if not transactions:
        click.echo("No transactions found.")
        return

    click.echo(f"\nFound {len(transactions)} transaction(s):")
    click.echo("-" * 100)
    click.echo(f"{'ID':<6} {'Date':<12} {'Type':<8} {'Amount':<12} {'Category':<22} {'Description':<30}")
    click.echo("-" * 100)
    for txn in transactions:
        amount_str = f"${txn.amount:,.2f}"
        description = (txn.description or "")[:30]
        shared = " (shared)" if txn.is_shared else ""
        click.echo(
            f"{txn.id:<6} {str(txn.transaction_date):<12} {txn.transaction_type:<8} {amount_str:<12} "
            f"{txn.category_name or '':<22} {description}{shared}"
        )

    total_expenses = sum(txn.amount for txn in transactions if txn.transaction_type == "expense")
    total_income = sum(txn.amount for txn in transactions if txn.transaction_type == "income")
    click.echo("-" * 100)
    click.echo(
        f"{'TOTAL':<6} Expenses: ${total_expenses:,.2f} | "
        f"Income: ${total_income:,.2f} | Count: {len(transactions)}"
    )


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
