"""Command-line interface for Transgate."""

import asyncio
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import pydantic
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from transgate.core.output import OutputFormat, TranslationOutput, create_handler
from transgate.core.translation import (
    Dispatcher,
    ErrorKind,
    LiteLLMProvider,
    RequestContext,
    TranslationError,
    TranslationRequest,
    TranslationResponse,
    create_dispatcher,
    display_name,
)
from transgate.core.types import GatewayConfig
from transgate.utils.logging import configure_logging, get_logger

app = typer.Typer(
    name="transgate",
    help="A translation gateway for LLM providers",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)
logger = get_logger()

EXIT_CODES = {
    ErrorKind.VALIDATION: 2,
    ErrorKind.UNSUPPORTED_MODEL: 2,
    ErrorKind.CANCELLED: 3,
    ErrorKind.TIMEOUT: 3,
}


def version_callback(value: bool) -> None:
    """Print version information and exit."""
    if value:
        from transgate import __version__

        console.print(f"Transgate version: {__version__}")
        raise typer.Exit(0)


def mask_secret(value: Optional[str]) -> str:
    """Hide all but the last four characters of a secret."""
    if not value:
        return "(not set)"
    if len(value) <= 4:
        return "****"
    return "****" + value[-4:]


@app.callback()
def main(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version information and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    log_level: str = typer.Option(
        "INFO",
        "--log-level",
        "-l",
        help="Set the logging level.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output logs in JSON format.",
    ),
    openai_api_key: Optional[str] = typer.Option(
        None,
        "--openai-key",
        envvar="OPENAI_API_KEY",
        help="OpenAI API key. Without it the GPT models use stand-in providers.",
        show_default=False,
    ),
    openai_endpoint: Optional[str] = typer.Option(
        None,
        "--openai-endpoint",
        envvar="OPENAI_ENDPOINT",
        help="OpenAI API base URL.",
    ),
    anthropic_api_key: Optional[str] = typer.Option(
        None,
        "--anthropic-key",
        envvar="ANTHROPIC_API_KEY",
        help="Anthropic API key. Without it the Claude models use stand-in providers.",
        show_default=False,
    ),
    anthropic_endpoint: Optional[str] = typer.Option(
        None,
        "--anthropic-endpoint",
        envvar="ANTHROPIC_ENDPOINT",
        help="Anthropic API base URL.",
    ),
    timeout: int = typer.Option(
        30,
        "--timeout",
        envvar="TIMEOUT",
        help="Request deadline in seconds (1-300).",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        envvar="DEBUG",
        help="Enable debug logging.",
    ),
) -> None:
    """Transgate - A translation gateway for LLM providers."""
    configure_logging(level="DEBUG" if debug else log_level, json=json_logs)

    try:
        ctx.obj = GatewayConfig.from_values(
            openai_api_key=openai_api_key,
            openai_endpoint=openai_endpoint,
            anthropic_api_key=anthropic_api_key,
            anthropic_endpoint=anthropic_endpoint,
            timeout=timeout,
            debug=debug,
        )
    except pydantic.ValidationError as e:
        err_console.print(f"[red]Invalid configuration:[/red] {escape(str(e))}")
        raise typer.Exit(2)


async def run_translation(
    dispatcher: Dispatcher,
    request: TranslationRequest,
    timeout: float,
) -> TranslationResponse:
    """Translate one request under a fresh deadline."""
    ctx = RequestContext(timeout=timeout)
    return await dispatcher.translate(request, ctx)


def read_text(text: Optional[str]) -> str:
    """Return the text argument, reading stdin when it is missing or '-'."""
    if text is None or text == "-":
        return sys.stdin.read()
    return text


@app.command()
def translate(
    ctx: typer.Context,
    text: Optional[str] = typer.Argument(
        None,
        help="English text to translate. Reads stdin when omitted or '-'.",
    ),
    model: str = typer.Option(
        ...,
        "--model",
        "-m",
        help="Model identifier (e.g., 'gpt-3.5', 'gpt-4o', 'claude', 'llama').",
    ),
    output_file: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="The output file. If not specified, prints to stdout.",
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.TEXT,
        "--format",
        "-F",
        help="Output format (text, json, or markdown).",
    ),
) -> None:
    """Translate a piece of English text."""
    config: GatewayConfig = ctx.obj
    dispatcher = create_dispatcher(config)
    request = TranslationRequest(text=read_text(text), model=model)

    start_time = datetime.now()
    try:
        response = asyncio.run(run_translation(dispatcher, request, config.timeout))
    except TranslationError as e:
        logger.error("Translation failed", kind=e.kind.value, details=str(e))
        err_console.print(f"[red]Error: {escape(e.public_message)}[/red]")
        raise typer.Exit(EXIT_CODES.get(e.kind, 1))

    output = TranslationOutput(
        response=response,
        time_taken=(datetime.now() - start_time).total_seconds(),
    )
    handler = create_handler(output_format)
    handler.write(output, output_file)


@app.command()
def models(ctx: typer.Context) -> None:
    """List the model identifiers the gateway accepts."""
    config: GatewayConfig = ctx.obj
    registry = create_dispatcher(config).registry

    table = Table(title="Supported Models")
    table.add_column("Model", style="bold blue")
    table.add_column("Name")
    table.add_column("Provider")
    table.add_column("Backend")

    for model in registry:
        provider = registry.resolve(model)
        backend = "upstream" if isinstance(provider, LiteLLMProvider) else "stand-in"
        table.add_row(model, display_name(model), provider.name, backend)

    console.print(table)


@app.command("config")
def show_config(ctx: typer.Context) -> None:
    """Show the effective configuration, with API keys masked."""
    config: GatewayConfig = ctx.obj

    table = Table(title="Configuration", show_header=False)
    table.add_column("Setting", style="bold blue")
    table.add_column("Value")

    table.add_row("OpenAI Endpoint", config.openai.endpoint)
    table.add_row("OpenAI Key", mask_secret(config.openai.api_key))
    table.add_row("Has OpenAI Key", str(config.openai.is_configured))
    table.add_row("Anthropic Endpoint", config.anthropic.endpoint)
    table.add_row("Anthropic Key", mask_secret(config.anthropic.api_key))
    table.add_row("Has Anthropic Key", str(config.anthropic.is_configured))
    table.add_row("Timeout", f"{config.timeout} seconds")
    table.add_row("Debug", str(config.debug))

    console.print(table)


if __name__ == "__main__":
    app()
