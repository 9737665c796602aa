"""Run the HTTP API."""

import click
from bubu.config import get_settings


@click.command("serve")
@click.option("--host", help="Bind address (default from BUBU_HOST)")
@click.option("--port", type=int, help="Port (default from BUBU_PORT)")
@click.pass_context
def serve(ctx, host: str | None, port: int | None):
    """Serve the chat and REST API with uvicorn."""
    import uvicorn

    from bubu.api.app import create_app
    from bubu.api.deps import build_container

    settings = get_settings()
    container = build_container(settings, db=ctx.obj["db"])
    app = create_app(settings, container=container)
    uvicorn.run(app, host=host or settings.host, port=port or settings.port)


def register_commands(cli):
    """Register serve command with main CLI."""
    cli.add_command(serve)
