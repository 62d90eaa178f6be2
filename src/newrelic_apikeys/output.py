import json as json_lib
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table
import typer

from newrelic_apikeys.models import (
    ApiKeyRecord,
    Command,
    DecodedResult,
    DeleteResult,
    KeyList,
    KeyRecordResult,
    OutputFormat,
)

console = Console()


def _record_dict(record: ApiKeyRecord) -> dict[str, Any]:
    return record.model_dump(by_alias=True, exclude_none=True)


def to_json_data(result: DecodedResult) -> Any:
    """JSON-compatible view of a result, camelCase keys, nulls omitted."""
    if isinstance(result, KeyList):
        return [_record_dict(k) for k in result.keys]
    if isinstance(result, KeyRecordResult):
        return _record_dict(result.key)
    if isinstance(result, DeleteResult):
        return {"deleted": result.deleted, "ids": result.deleted_ids}
    raise TypeError(f"Unsupported result type: {type(result).__name__}")


def build_table(records: list[ApiKeyRecord], title: str = "API Keys") -> Table:
    table = Table(title=title)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="magenta")
    table.add_column("Type", style="green")
    table.add_column("Account", justify="right")
    table.add_column("Notes")
    table.add_column("Key", style="yellow")

    for r in records:
        table.add_row(
            escape(r.id),
            escape(r.name or ""),
            escape(r.key_type or ""),
            str(r.account_id) if r.account_id is not None else "",
            escape(r.notes or ""),
            escape(r.key or ""),
        )
    return table


def render(result: DecodedResult, output_format: OutputFormat = OutputFormat.JSON) -> None:
    """Print a decoded result to stdout."""
    if output_format == OutputFormat.JSON:
        typer.echo(json_lib.dumps(to_json_data(result), indent=2))
        return

    if isinstance(result, DeleteResult):
        if result.deleted:
            ids = escape(", ".join(result.deleted_ids))
            console.print(f"[bold green]✓ API key deleted:[/bold green] [cyan]{ids}[/cyan]")
        else:
            console.print("[yellow]No API key was deleted[/yellow]")
        return

    if isinstance(result, KeyList):
        if not result.keys:
            console.print("No API keys found")
            return
        console.print(build_table(result.keys))
        return

    title = "Created API Key" if result.command == Command.CREATE else "Updated API Key"
    console.print(build_table([result.key], title=title))
