"""Environment subcommand: manage a project's docker-compose environment."""

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from wpf_build.config import config_service
from wpf_build.constants import SITE_CONFIG_FILENAME
from wpf_build.executor import ExecutionError
from wpf_build.lifecycle import EnvironmentController, LifecycleError
from wpf_build.recovery import RecoveryExhaustedError
from wpf_build.schema import EnvironmentOptions
from wpf_build.site_config import load_site_config
from wpf_build.utils.io import format_json
from wpf_build.utils.ui import console, error, info, success, warning

env_app = typer.Typer(help="Manage the Docker environment of a project")

PROJECT_DIR = typer.Option(
    Path("."), "--project-dir", "-p", help="Directory holding docker-compose.yml"
)
PROJECT_NAME = typer.Option(
    None,
    "--name",
    "-n",
    help=f"Container prefix (defaults to project.name in {SITE_CONFIG_FILENAME})",
)
VERBOSE = typer.Option(False, "--verbose", "-v", help="Verbose output")
DEV = typer.Option(False, "--dev", help="Dev mode (.env)")


def _controller(
    project_dir: Path, name: Optional[str], verbose: bool, dev: bool
) -> EnvironmentController:
    config_service.load_config(dev_mode=dev, verbose=verbose)
    settings = config_service.config

    if name is None:
        result = load_site_config(project_dir / SITE_CONFIG_FILENAME)
        if not result.success:
            error("Cannot determine project name: " + "; ".join(result.errors))
            info("Pass --name explicitly")
            raise typer.Exit(1)
        name = result.config.project.name

    return EnvironmentController(
        EnvironmentOptions(project_path=project_dir, project_name=name, verbose=verbose),
        settings=settings,
    )


@env_app.command("up")
def up(
    project_dir: Path = PROJECT_DIR,
    name: Optional[str] = PROJECT_NAME,
    verbose: bool = VERBOSE,
    dev: bool = DEV,
):
    """Start containers and wait until they are healthy."""
    controller = _controller(project_dir, name, verbose, dev)
    try:
        controller.start_environment()
    except (LifecycleError, RecoveryExhaustedError, ExecutionError) as e:
        error(str(e))
        raise typer.Exit(1)
    success("Environment is up and healthy")


@env_app.command("down")
def down(
    project_dir: Path = PROJECT_DIR,
    name: Optional[str] = PROJECT_NAME,
    verbose: bool = VERBOSE,
    dev: bool = DEV,
):
    """Stop containers (best effort)."""
    controller = _controller(project_dir, name, verbose, dev)
    if not controller.stop_environment():
        raise typer.Exit(1)
    success("Environment stopped")


@env_app.command("restart")
def restart(
    project_dir: Path = PROJECT_DIR,
    name: Optional[str] = PROJECT_NAME,
    verbose: bool = VERBOSE,
    dev: bool = DEV,
):
    """Stop, settle, and start again."""
    controller = _controller(project_dir, name, verbose, dev)
    try:
        controller.restart_environment()
    except (LifecycleError, RecoveryExhaustedError, ExecutionError) as e:
        error(str(e))
        raise typer.Exit(1)
    success("Environment restarted")


@env_app.command("status")
def status(
    project_dir: Path = PROJECT_DIR,
    name: Optional[str] = PROJECT_NAME,
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
    dev: bool = DEV,
):
    """Show container status and health."""
    controller = _controller(project_dir, name, False, dev)
    snapshot = controller.get_status()

    if as_json:
        console.print(format_json(snapshot.model_dump(mode="json")), markup=False)
        return

    if not snapshot.containers:
        warning("No containers found" if snapshot.running else "Docker is not running")
        raise typer.Exit(1)

    table = Table(title="Containers", show_header=True, header_style="bold cyan")
    table.add_column("Name", style="green")
    table.add_column("Status")
    table.add_column("Health")
    table.add_column("Ports", style="dim")
    for container in snapshot.containers:
        table.add_row(
            container.name,
            container.status,
            container.health.value,
            ", ".join(container.ports),
        )
    console.print(table)

    if snapshot.healthy:
        success("Environment is healthy")
    else:
        warning("Environment is not healthy")


@env_app.command("logs")
def logs(
    service: str = typer.Argument("wordpress", help="wordpress or db"),
    lines: int = typer.Option(100, "--tail", help="Number of lines"),
    project_dir: Path = PROJECT_DIR,
    name: Optional[str] = PROJECT_NAME,
    dev: bool = DEV,
):
    """Show the last lines of a container's logs."""
    if service not in ("wordpress", "db"):
        error("Service must be 'wordpress' or 'db'")
        raise typer.Exit(1)
    controller = _controller(project_dir, name, False, dev)
    console.print(controller.get_logs(service, lines), markup=False, highlight=False)
