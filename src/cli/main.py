"""Main CLI application for wpf-build."""

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from cli.commands import config_app, env_app, errors_app
from wpf_build.config import config_service
from wpf_build.constants import (
    PROJECT_NAME,
    PROJECTS_DIRNAME,
    SITE_CONFIG_FILENAME,
    CheckStatus,
    ExitCode,
)
from wpf_build.doctor import run_checks
from wpf_build.executor import Executor
from wpf_build.registry import ErrorRegistry
from wpf_build.schema import BuildOptions
from wpf_build.steps import SiteBuild
from wpf_build.utils.io import save_report
from wpf_build.utils.ui import banner, console, error, info, success, warning

app = typer.Typer(
    name=PROJECT_NAME,
    help="WordPress Site Factory - config-driven site provisioning with automated recovery",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# -------------------------------
# Sub-Apps
# -------------------------------

app.add_typer(config_app, name="config")
app.add_typer(env_app, name="env")
app.add_typer(errors_app, name="errors")


# -------------------------------
# Command: build
# -------------------------------
@app.command(name="build", help="Generate and provision a WordPress site from configuration")
def build_command(
    project: Optional[str] = typer.Argument(
        None, help=f"Project name under {PROJECTS_DIRNAME}/ (default: current directory)"
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help=f"Configuration file (default: {SITE_CONFIG_FILENAME})"
    ),
    skip_docker: bool = typer.Option(False, "--skip-docker", help="Skip Docker environment setup"),
    skip_wp: bool = typer.Option(False, "--skip-wp", help="Skip WordPress installation"),
    skip_tests: bool = typer.Option(False, "--skip-tests", help="Skip E2E tests"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    report: Optional[Path] = typer.Option(
        None, "--report", help="Save the build report as JSON"
    ),
    dev: bool = typer.Option(False, "--dev", help="Enable dev mode (.env)"),
):
    """Run the provisioning pipeline."""
    cwd = Path.cwd()
    project_dir = cwd / PROJECTS_DIRNAME / project if project else cwd
    config_path = config or project_dir / SITE_CONFIG_FILENAME

    if not config_path.exists():
        error(f"Configuration file not found: {config_path}")
        info(f"Create {SITE_CONFIG_FILENAME} in the project directory first")
        raise typer.Exit(ExitCode.ERROR_GENERAL)

    config_service.load_config(dev_mode=dev, verbose=verbose)

    options = BuildOptions(
        config_path=config_path,
        output_dir=project_dir,
        skip_docker=skip_docker,
        skip_wordpress=skip_wp,
        skip_tests=skip_tests,
        verbose=verbose,
    )
    result = SiteBuild(options, settings=config_service.config).run()

    if report:
        save_report(result, report)

    raise typer.Exit(ExitCode.SUCCESS if result.success else ExitCode.ERROR_GENERAL)


# -------------------------------
# Command: doctor
# -------------------------------
STATUS_ICONS = {
    CheckStatus.PASS: "[green]✓[/green]",
    CheckStatus.WARN: "[yellow]⚠[/yellow]",
    CheckStatus.FAIL: "[red]✗[/red]",
}


@app.command(name="doctor", help="Diagnose and fix common environment issues")
def doctor_command(
    fix: bool = typer.Option(False, "--fix", help="Automatically fix issues when possible"),
    dev: bool = typer.Option(False, "--dev", help="Enable dev mode (.env)"),
):
    """Run health checks on the local toolchain."""
    config_service.load_config(dev_mode=dev)
    settings = config_service.config

    banner("WPF Environment Doctor")
    results = run_checks(
        Executor(), settings, ErrorRegistry(settings.ERROR_HANDLERS_PATH), Path.cwd()
    )

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("", width=2)
    table.add_column("Check", style="bold")
    table.add_column("Result")
    for result in results:
        table.add_row(STATUS_ICONS[result.status], result.name, result.message)
    console.print(table)

    failed = [r for r in results if r.status == CheckStatus.FAIL]
    warned = [r for r in results if r.status == CheckStatus.WARN]
    fixable = [r for r in results if r.fixable and r.status != CheckStatus.PASS]

    if fix:
        for result in fixable:
            info(f"Fixing: {result.name}")
            try:
                result.fix()
            except OSError as e:
                error(f"Fix failed for {result.name}: {e}")
            else:
                success(f"Fixed: {result.name}")
    elif fixable:
        warning(f"{len(fixable)} issues can be auto-fixed. Run with --fix to attempt repairs.")

    if failed:
        error("Environment has issues that need attention.")
        raise typer.Exit(ExitCode.ERROR_GENERAL)
    if warned:
        warning("Environment is functional with warnings.")
    else:
        success("Environment is healthy!")


# -------------------------------
# Version and main
# -------------------------------
@app.command()
def version() -> None:
    """Show version information."""
    from wpf_build import __version__

    console.print(f"{PROJECT_NAME} version {__version__}")


def main() -> None:
    """Entry point for the CLI."""
    try:
        app()
    except KeyboardInterrupt:
        console.print()
        warning("Interrupted by user")
        raise SystemExit(ExitCode.ERROR_USER_CANCEL)


if __name__ == "__main__":
    main()
