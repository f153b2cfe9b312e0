"""Errors subcommand: inspect the error-handler catalogue."""

from typing import Optional

import typer
import yaml
from rich.table import Table

from wpf_build.config import config_service
from wpf_build.registry import CatalogueError, ErrorRegistry
from wpf_build.utils.templating import placeholders
from wpf_build.utils.ui import console, debug, error, info, print_yaml, success, warning

errors_app = typer.Typer(help="Inspect the error-handler catalogue")


def _registry(dev: bool) -> ErrorRegistry:
    config_service.load_config(dev_mode=dev)
    registry = ErrorRegistry(config_service.config.ERROR_HANDLERS_PATH)
    try:
        catalogue = registry.catalogue
    except CatalogueError as e:
        error(str(e))
        raise typer.Exit(1)
    debug(f"Catalogue v{catalogue.version} loaded from {registry.path}")
    return registry


@errors_app.command("list")
def list_handlers(
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Filter by category"),
    dev: bool = typer.Option(False, "--dev", help="Dev mode (.env)"),
):
    """List handlers in match order."""
    registry = _registry(dev)
    handlers = (
        registry.get_handlers_by_category(category) if category else registry.handlers
    )

    table = Table(
        title=f"Error Handlers (v{registry.version})",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("#", style="dim")
    table.add_column("Name", style="green")
    table.add_column("Severity")
    table.add_column("Category")
    table.add_column("Retries", justify="right")
    table.add_column("Description")

    for index, (name, handler) in enumerate(handlers.items(), start=1):
        table.add_row(
            str(index),
            name,
            handler.severity.value,
            handler.category,
            str(handler.max_retries),
            handler.description,
        )
    console.print(table)


@errors_app.command("match")
def match(
    message: str = typer.Argument(..., help="Error message to classify"),
    dev: bool = typer.Option(False, "--dev", help="Dev mode (.env)"),
):
    """Show which handler (if any) would handle an error message."""
    registry = _registry(dev)
    found = registry.find_handler(message)
    if found is None:
        warning("No handler matches; this error would not be retried")
        raise typer.Exit(1)

    name, handler = found
    success(f"Matched handler: {name}")
    info(f"Severity: {handler.severity.value} | Category: {handler.category}")
    info(
        "Recoverable: "
        + ("yes" if registry.is_recoverable(message) else "no")
        + f" (max_retries={handler.max_retries})"
    )


@errors_app.command("show")
def show(
    name: str = typer.Argument(..., help="Handler name"),
    dev: bool = typer.Option(False, "--dev", help="Dev mode (.env)"),
):
    """Print one handler definition."""
    registry = _registry(dev)
    handler = registry.handlers.get(name)
    if handler is None:
        error(f"Unknown handler: {name}")
        raise typer.Exit(1)

    text = yaml.safe_dump(
        {name: handler.model_dump(mode="json")}, sort_keys=False, allow_unicode=True
    )
    print_yaml(text, title=name)

    variables = placeholders(handler.fallback)
    for action in handler.actions:
        for var in placeholders(getattr(action, "cmd", "")):
            if var not in variables:
                variables.append(var)
    if variables:
        info(f"Template variables: {', '.join(variables)}")
