"""
User Interface utilities for wpf-build.
Handles console output (via Rich) and logging integration.
"""

import logging

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax

from wpf_build.constants import PROJECT_NAME

console = Console()
logger = logging.getLogger(PROJECT_NAME)

NOTIFY_STYLES = {
    "info": "cyan",
    "warning": "yellow",
    "error": "red",
    "action": "magenta",
}


# ---------------------------------------------------------
# 1. Output Functions (UI + Logging)
# ---------------------------------------------------------


def debug(message: str) -> None:
    """Log as DEBUG only."""
    logger.debug(message)


def success(message: str) -> None:
    """Print success message to console and log as INFO."""
    console.print(f"[green]✓[/green] {message}")
    logger.info(message)


def error(message: str) -> None:
    """Print error message to console and log as ERROR."""
    console.print(f"[red]✗[/red] {message}")
    logger.error(message)


def warning(message: str) -> None:
    """Print warning message to console and log as WARNING."""
    console.print(f"[yellow]⚠[/yellow] {message}")
    logger.warning(message)


def info(message: str) -> None:
    """Print info message to console and log as INFO."""
    console.print(f"[blue]ℹ[/blue] {message}")
    logger.info(message)


def step(message: str) -> None:
    """Print a step execution message."""
    console.print(f"[bold blue]➤[/bold blue] {message}")
    logger.info(f"Step: {message}")


def detail(message: str) -> None:
    """Print an indented sub-line under the current step."""
    console.print(f"[dim]       └─ {message}[/dim]")
    logger.info(message)


def notify(message: str, kind: str = "info") -> None:
    """Print an operator notification. Never waits for input."""
    style = NOTIFY_STYLES.get(kind, "cyan")
    console.print(
        Panel(message, title=f"📣 {kind}", border_style=style, expand=False)
    )
    logger.warning(f"Notification ({kind}): {message}")


# ---------------------------------------------------------
# 2. Rich Visualization Components
# ---------------------------------------------------------


def banner(title: str, style: str = "cyan") -> None:
    """Print a boxed title line."""
    console.print(Panel(f"[bold]{title}[/bold]", border_style=style, expand=False))


def rule(style: str = "cyan") -> None:
    console.rule(style=style)


def print_yaml(text: str, title: str = "Handler") -> None:
    """Print YAML with syntax highlighting."""
    logger.debug(f"Displaying YAML ({title}):\n{text}")

    syntax = Syntax(text, "yaml", theme="monokai", line_numbers=False)
    console.print(Panel(syntax, title=title, expand=False, border_style="blue"))
