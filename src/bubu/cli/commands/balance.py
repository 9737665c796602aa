"""Shared-expense balance command."""

import click
from bubu.cli.error_handling import handle_domain_error
from bubu.domain.balance import BalanceService
from bubu.domain.errors import DomainError
from bubu.domain.user import UserService


@click.command("balance")
@click.option("--phone", required=True, help="User phone number")
@click.option("--period", default="current_month", help="current_month, previous_month or all")
@click.option("--history", "months", type=int, help="Show a month-by-month history for this many months instead")
@click.pass_context
def balance(ctx, phone: str, period: str, months: int | None):
    """Show who owes whom between a user and their partner."""
    db = ctx.obj["db"]
    service = BalanceService(db)

    try:
        phone = UserService(db).normalize(phone)
        if months:
            history = service.balance_history(phone, months=months)
        else:
            report = service.calculate_balance(phone, period=period)
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)

    if months:
        click.echo(f"\n{'Month':<10} {'Shared':<14} {'Count':<7} {'You':<14} {'Partner':<14}")
        click.echo("-" * 62)
        for row in history:
            click.echo(
                f"{row['month']:<10} ${row['total_shared_expenses']:<13,.2f} {row['expense_count']:<7} "
                f"${row['user_balance']:<13,.2f} ${row['partner_balance']:<13,.2f}"
            )
        return

    click.echo(f"\nBalance with {report.partner_phone} ({report.period})")
    click.echo("-" * 50)
    click.echo(f"Shared expenses: ${report.total_shared_expenses:,.2f} ({report.expense_count})")
    click.echo(f"You paid:        ${report.user.paid_total:,.2f}  (your share ${report.user.owes_total:,.2f})")
    click.echo(f"Partner paid:    ${report.partner.paid_total:,.2f}  (their share ${report.partner.owes_total:,.2f})")
    click.echo("-" * 50)
    if report.who_owes_whom == "partner_owes_user":
        click.echo(f"Partner owes you ${report.amount_owed:,.2f}")
    elif report.who_owes_whom == "user_owes_partner":
        click.echo(f"You owe partner ${report.amount_owed:,.2f}")
    else:
        click.echo("All settled up")


def register_commands(cli):
    """Register balance command with main CLI."""
    cli.add_command(balance)
