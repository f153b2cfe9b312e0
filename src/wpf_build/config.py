"""
Global configuration settings
Priority:
0. cli settings
1. config profile
2. export environment variables
3. .env file (on dev mode)

"""

import copy
import logging.config
from datetime import datetime
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from wpf_build.constants import (
    CONFIG_FILENAME,
    DEFAULT_ADMIN_PASSWORD,
    DEFAULT_ADMIN_USER,
    DEFAULT_COMPOSE_COMMAND,
    DEFAULT_LOG_LEVEL_INFO,
    DEFAULT_RUNTIME_COMMAND,
    DEFAULT_SITE_URL,
    DEV_ROOT,
    ENV_FILENAME,
    HEALTH_POLL_INTERVAL,
    HEALTH_TIMEOUT,
    LOG_FILENAME,
    PROJECT_NAME,
    USER_CACHE_DIR,
    USER_CONFIG_DIR,
    USER_DATA_DIR,
    USER_LOG_DIR,
    USER_STATE_DIR,
)
from wpf_build.utils import ui


def _load_dotenv(override: bool = False):
    # Load environment variables from .env file
    env_path = DEV_ROOT / ENV_FILENAME
    load_dotenv(
        dotenv_path=env_path,
        override=override,
    )


LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "[%(asctime)s] [%(levelname)s] [%(module)s:%(funcName)s:%(lineno)d] %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
        "simple": {
            "format": "%(message)s",  # Rich adds the time itself
        },
    },
    "handlers": {
        "console": {
            "class": "rich.logging.RichHandler",
            "level": "INFO",
            "formatter": "simple",
            "rich_tracebacks": True,
            "show_path": False,
        },
        "file": {
            "class": "logging.FileHandler",
            "level": "DEBUG",
            "formatter": "standard",
            "filename": None,  # set in setup_logging
            "encoding": "utf-8",
        },
    },
    "loggers": {
        PROJECT_NAME: {
            "handlers": ["console", "file"],
            "level": "DEBUG",  # overridden in setup_logging
            "propagate": False,  # don't hand records to root, avoids double printing
        },
        "root": {
            "handlers": ["console", "file"],
            "level": "WARNING",
        },
    },
}


def setup_logging(log_level: str, log_file: Path, enabled_console: bool = False):
    """Setup logging configuration. Default log saved as file only. If enabled_console is True, also log to console."""
    if not log_file.parent.exists():
        ui.error(f"Log directory {log_file.parent} does not exist. Likely config not loaded.")
        raise FileNotFoundError(f"Log directory {log_file.parent} does not exist.")

    logging_config = copy.deepcopy(LOGGING_CONFIG)
    logging_config["handlers"]["file"]["filename"] = str(log_file)

    if not enabled_console:
        logging_config["loggers"][PROJECT_NAME]["handlers"].remove("console")

    logging_config["loggers"][PROJECT_NAME]["level"] = log_level.upper()
    logging.config.dictConfig(logging_config)
    ui.debug(f"Logging initialized with level {log_level}, file {log_file}")


class DirConfigs(BaseModel):
    """Directory configurations."""

    config_dir: Path = USER_CONFIG_DIR
    cache_dir: Path = USER_CACHE_DIR
    log_dir: Path = USER_LOG_DIR
    data_dir: Path = USER_DATA_DIR
    state_dir: Path = USER_STATE_DIR

    @property
    def config_file(self) -> Path:
        return self.config_dir / CONFIG_FILENAME

    @property
    def log_file(self) -> Path:
        """Per-run log file, e.g. ``<log_dir>/2026/10/19/10-21-03.log``."""
        return self.log_dir / datetime.now().strftime(LOG_FILENAME)


class Configs(BaseSettings):
    """Configuration for the provisioning pipeline using Pydantic Settings."""

    LOG_LEVEL: str = Field(default=DEFAULT_LOG_LEVEL_INFO, description="Logging level")

    # Container runtime
    RUNTIME_COMMAND: str = Field(
        default=DEFAULT_RUNTIME_COMMAND, description="Container runtime CLI"
    )
    COMPOSE_COMMAND: str = Field(
        default=DEFAULT_COMPOSE_COMMAND,
        description="Compose CLI, e.g. 'docker-compose' or 'docker compose'",
    )
    HEALTH_TIMEOUT: float = Field(
        default=HEALTH_TIMEOUT, gt=0, description="Seconds to wait for healthy containers"
    )
    HEALTH_POLL_INTERVAL: float = Field(
        default=HEALTH_POLL_INTERVAL, gt=0, description="Seconds between health polls"
    )

    # Recovery
    ERROR_HANDLERS_PATH: Optional[Path] = Field(
        default=None, description="Custom error-handler catalogue (YAML)"
    )

    # WordPress site
    SITE_URL: str = Field(default=DEFAULT_SITE_URL, description="Public site URL")
    ADMIN_USER: str = Field(default=DEFAULT_ADMIN_USER, description="Admin user name")
    ADMIN_PASSWORD: SecretStr = Field(
        default=SecretStr(DEFAULT_ADMIN_PASSWORD), description="Admin password"
    )

    dir_configs: DirConfigs = Field(default_factory=DirConfigs)

    # .env is loaded into os.environ by python-dotenv in dev mode
    model_config = SettingsConfigDict(
        env_file=None,
        env_file_encoding="utf-8",
        extra="ignore",
        validate_assignment=True,
    )


# ---------------------------------------------------------
# Config Manager
# ---------------------------------------------------------
class ConfigService:
    def __init__(self):
        # Lazy: environment is only read on load_config
        self._settings: Optional[Configs] = None
        self._dir_settings: Optional[DirConfigs] = None

    def _ensure_dirs(self):
        """Make sure every runtime directory exists."""
        for attr in self._dir_settings.model_dump():
            path = getattr(self._dir_settings, attr)
            if isinstance(path, Path) and not path.exists():
                path.mkdir(parents=True, exist_ok=True)

    def load_config(self, *, dev_mode: bool = False, verbose: bool = False, **kwargs):
        """Load configuration from environment, profile file and overrides."""
        if dev_mode:
            _load_dotenv(override=False)

        self._settings = Configs()
        self._dir_settings = self._settings.dir_configs
        self._ensure_dirs()

        config_file = self._dir_settings.config_file
        if config_file.exists():
            ui.debug(f"Loading config file from {config_file}")
            try:
                with config_file.open("r", encoding="utf-8") as f:
                    data = yaml.safe_load(f) or {}
                    _profile_settings = Configs.model_validate(data)
                    for key in data:
                        key = key.upper()
                        if key in Configs.model_fields and key != "dir_configs":
                            setattr(self._settings, key, getattr(_profile_settings, key))
                            ui.debug(f"Loaded config {key} from file")

            except Exception as e:
                ui.error(f"Failed to load config file {config_file}: {e}")
                raise

        for key, value in kwargs.items():
            key = key.upper()
            if value is not None and key in Configs.model_fields:
                setattr(self._settings, key, value)
                ui.debug(f"Overridden config {key} from kwargs")

        log_file = self._dir_settings.log_file
        log_file.parent.mkdir(parents=True, exist_ok=True)
        setup_logging(self._settings.LOG_LEVEL, log_file, enabled_console=verbose)

    @property
    def config(self) -> Configs:
        """Expose the loaded configuration."""
        if self._settings is None:
            ui.warning("Configuration accessed before initialization. May cause issues.")
        return self._settings

    def save_config(self):
        """Persist the current configuration to the profile file (YAML)."""
        dump_settings = self._settings.model_dump(mode="json", exclude={"dir_configs"})
        dump_settings["ADMIN_PASSWORD"] = self._settings.ADMIN_PASSWORD.get_secret_value()

        config_path = self._dir_settings.config_file
        with config_path.open("w", encoding="utf-8") as f:
            yaml.safe_dump(dump_settings, f)


# ---------------------------------------------------------
# Singleton Export
# ---------------------------------------------------------
config_service = ConfigService()
