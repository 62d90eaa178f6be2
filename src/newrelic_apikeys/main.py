from rich.console import Console
from rich.markup import escape
import typer

from newrelic_apikeys import __version__
from newrelic_apikeys.commands import keys
from newrelic_apikeys.config import DEFAULT_ENDPOINT, GlobalOptions, load_settings
from newrelic_apikeys.errors import ConfigError
from newrelic_apikeys.logging_config import setup_logging
from newrelic_apikeys.models import OutputFormat

app = typer.Typer(
    name="newrelic-apikeys",
    help="A CLI tool for managing New Relic API keys through NerdGraph",
    add_completion=False,
    no_args_is_help=True,
)
err_console = Console(stderr=True)


def version_callback(value: bool):
    if value:
        typer.echo(f"newrelic-apikeys {__version__}")
        raise typer.Exit()


@app.callback()
def callback(
    ctx: typer.Context,
    api_key: str = typer.Option(
        None, "--api-key", "-a", help="New Relic API key [env: NEW_RELIC_API_KEY]"
    ),
    endpoint: str = typer.Option(
        None, "--endpoint", "-e", help=f"NerdGraph endpoint (default: {DEFAULT_ENDPOINT})"
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.JSON, "--format", "-f", case_sensitive=False, help="Output format"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log raw requests and responses to stderr"
    ),
    version: bool = typer.Option(
        False, "--version", callback=version_callback, is_eager=True, help="Show version"
    ),
):
    """
    New Relic API keys CLI
    """
    try:
        settings = load_settings()
    except ConfigError as e:
        err_console.print(f"[bold red]Error:[/bold red] {escape(str(e))}", soft_wrap=True)
        raise typer.Exit(code=1) from e

    setup_logging(verbose=verbose, log_format=settings.log_format, log_level=settings.log_level)

    ctx.obj = {
        "options": GlobalOptions(
            api_key=api_key,
            endpoint=endpoint,
            output_format=output_format,
            verbose=verbose,
        ),
        "settings": settings,
    }


app.command()(keys.query)
app.command()(keys.create)
app.command()(keys.update)
app.command()(keys.delete)


if __name__ == "__main__":
    app()
