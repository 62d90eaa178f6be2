from typing import Any

from rich.console import Console
from rich.markup import escape
import typer

from newrelic_apikeys.dispatcher import dispatch
from newrelic_apikeys.errors import ApiKeysError
from newrelic_apikeys.logging_config import get_logger
from newrelic_apikeys.models import Command
from newrelic_apikeys.output import render

err_console = Console(stderr=True)
logger = get_logger(__name__)


def run_command(ctx: typer.Context, command: Command, params: dict[str, Any]) -> None:
    """Dispatch a command and render its result, exiting 1 on any failure."""
    state = ctx.obj
    try:
        result = dispatch(command, params, state["options"], state["settings"])
    except ApiKeysError as e:
        logger.debug("command_failed", command=command.value, error_type=type(e).__name__)
        err_console.print(f"[bold red]Error:[/bold red] {escape(str(e))}", soft_wrap=True)
        raise typer.Exit(code=1) from e

    render(result, state["options"].output_format)


def query(
    ctx: typer.Context,
    account_id: str = typer.Option(None, "--account-id", help="Only keys of this account"),
    key_type: str = typer.Option(
        None, "--key-type", "-k", help="Only keys of this type (USER, INGEST, ...)"
    ),
    key_id: str = typer.Option(None, "--key-id", "-i", help="Only the key with this ID"),
):
    """Query API keys.

    Without filters, lists every key visible to the API key in use.
    """
    run_command(
        ctx,
        Command.QUERY,
        {"account_id": account_id, "key_type": key_type, "key_id": key_id},
    )


def create(
    ctx: typer.Context,
    account_id: str = typer.Option(None, "--account-id", help="Account ID (required)"),
    key_type: str = typer.Option(None, "--key-type", "-k", help="Key type (required)"),
    name: str = typer.Option(None, "--name", "-n", help="Key name (required)"),
    notes: str = typer.Option(None, "--notes", help="Key notes/description"),
):
    """Create a new API key."""
    run_command(
        ctx,
        Command.CREATE,
        {"account_id": account_id, "key_type": key_type, "name": name, "notes": notes},
    )


def update(
    ctx: typer.Context,
    key_id: str = typer.Option(None, "--key-id", "-i", help="Key ID (required)"),
    name: str = typer.Option(None, "--name", "-n", help="New name"),
    notes: str = typer.Option(None, "--notes", help="New notes/description"),
):
    """Update an existing API key.

    At least one of --name or --notes is required.
    """
    run_command(ctx, Command.UPDATE, {"key_id": key_id, "name": name, "notes": notes})


def delete(
    ctx: typer.Context,
    key_id: str = typer.Option(None, "--key-id", "-i", help="Ingest key ID (required)"),
):
    """Delete an ingest API key.

    Only INGEST keys are supported: the ID is sent as an ingest key ID, so a
    USER key ID deletes nothing and the result reports deleted: false.
    """
    run_command(ctx, Command.DELETE, {"key_id": key_id})
