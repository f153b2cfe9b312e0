"""
Sub commands
Implemented via sub typers in Typer.
"""

from .config import config_app
from .env import env_app
from .errors import errors_app

__all__ = ["config_app", "env_app", "errors_app"]
