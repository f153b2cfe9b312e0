"""Config CLI"""

import typer
from pydantic import ValidationError
from rich.table import Table

from wpf_build.config import Configs, config_service
from wpf_build.utils.ui import console, error, info, success, warning

config_app = typer.Typer(help="Manage configuration for wpf-build")

VALID_KEYS = Configs.model_fields.keys() - {"dir_configs"}


def _check_key(key: str) -> str:
    key = key.upper()
    if key not in VALID_KEYS:
        error(f"Invalid configuration key: {key}")
        info(f"Valid keys: {', '.join(sorted(VALID_KEYS))}")
        raise typer.Exit(1)
    return key


@config_app.command(name="set")
def config_set(
    key: str = typer.Argument(..., help="Configuration key"),
    value: str = typer.Argument(..., help="Configuration value"),
):
    """Set a configuration value."""
    key = _check_key(key)

    try:
        config_service.load_config()
        setattr(config_service.config, key, value)
        config_service.save_config()
    except ValidationError as e:
        error(f"Invalid value for {key}: {e.errors()[0]['msg']}")
        raise typer.Exit(1)
    except OSError as e:
        error(f"Failed to save configuration: {e}")
        raise typer.Exit(1)

    success(f"Configuration saved: {key} = {value}")


@config_app.command(name="get")
def config_get(key: str = typer.Argument(..., help="Configuration key")):
    """Get a configuration value."""
    key = _check_key(key)
    config_service.load_config()
    info(f"Configuration value for {key}: {getattr(config_service.config, key)}")


@config_app.command(name="list")
def config_list():
    """List all configuration values."""
    table = Table(
        title="Configuration Values",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Key", style="green")
    table.add_column("Value", style="white")

    config_service.load_config()
    for key, value in config_service.config.model_dump(exclude={"dir_configs"}).items():
        table.add_row(key, str(value))

    console.print(table)
    info("Use 'config get <key>' to retrieve specific values")


@config_app.command(name="delete")
def config_delete(
    key: str = typer.Argument(..., help="Configuration key"),
    confirm: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Reset a configuration value to its default."""
    key = _check_key(key)

    if not confirm and not typer.confirm(f"Reset configuration key '{key}'?"):
        warning("Cancelled")
        return

    config_service.load_config()
    setattr(config_service.config, key, Configs.model_fields[key].get_default())
    config_service.save_config()
    success(f"Configuration reset: {key}")


@config_app.command(name="path")
def config_path():
    """Show configuration file and directory paths."""
    config_service.load_config()
    dir_config = config_service.config.dir_configs

    table = Table(
        title="Configuration Paths", show_header=True, header_style="bold cyan"
    )
    table.add_column("Type", style="green")
    table.add_column("Path", style="white")

    table.add_row("Config File", str(dir_config.config_file))
    table.add_row("Config Directory", str(dir_config.config_dir))
    table.add_row("Log Directory", str(dir_config.log_dir))

    console.print(table)
    info(f"File exists: {dir_config.config_file.exists()}")
