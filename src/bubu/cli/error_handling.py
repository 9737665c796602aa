"""CLI error handling helpers."""

import click
from loguru import logger

from bubu.domain.errors import DomainError, NoRelationshipError

HINTS = {
    NoRelationshipError: "Send a partner request from the chat first (e.g. \"mi pareja es 5512345678\").",
}


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error on stderr, with a hint for known kinds, and exit 1."""
    logger.debug("{} in '{}': {}", type(error).__name__, ctx.command_path, error)
    click.echo(f"Error: {error}", err=True)
    hint = HINTS.get(type(error))
    if hint:
        click.echo(hint, err=True)
    ctx.exit(1)
