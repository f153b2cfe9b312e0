"""
Global constants for wpf-build.
This module should NOT import any other internal modules to avoid circular dependencies.
"""

from enum import IntEnum, StrEnum
from pathlib import Path
from typing import Final

from platformdirs import PlatformDirs

# ---------------------------------------------------------
# 1. Basic Metadata
# ---------------------------------------------------------
PROJECT_NAME: Final[str] = "wpf-build"
__version__: Final[str] = "2.0.0"

# ---------------------------------------------------------
# 2. Defaults
# These are code-level defaults; users can't change them through .env
# ---------------------------------------------------------
DEFAULT_ENCODING: Final[str] = "utf-8"
DEFAULT_LOG_LEVEL_INFO: Final[str] = "INFO"

DEFAULT_RUNTIME_COMMAND: Final[str] = "docker"
DEFAULT_COMPOSE_COMMAND: Final[str] = "docker-compose"

HEALTH_POLL_INTERVAL: Final[float] = 5.0  # seconds
HEALTH_TIMEOUT: Final[float] = 90.0  # seconds
RESTART_SETTLE_DELAY: Final[float] = 2.0  # seconds

START_RETRY_BUDGET: Final[int] = 3
PRIVILEGED_RETRY_BUDGET: Final[int] = 2
DEFAULT_RETRY_BUDGET: Final[int] = 3

CRITICAL_STEP_COUNT: Final[int] = 4
DEFAULT_LOG_LINES: Final[int] = 100

PRIMARY_SUFFIX: Final[str] = "_wp"
DATASTORE_SUFFIX: Final[str] = "_db"

DEFAULT_SITE_URL: Final[str] = "http://localhost:8080"
DEFAULT_ADMIN_USER: Final[str] = "admin"
DEFAULT_ADMIN_PASSWORD: Final[str] = "admin123"
DEFAULT_PORT: Final[str] = "8080"

WP_CONTENT_DIR: Final[str] = "/var/www/html/wp-content"
WP_OWNER: Final[str] = "www-data:www-data"

DEFAULT_PLUGINS: Final[tuple[str, ...]] = (
    "wordpress-seo",
    "autoptimize",
    "shortpixel-image-optimiser",
    "contact-form-7",
)

# ---------------------------------------------------------
# 3. Files & Paths
# ---------------------------------------------------------
PKG_ROOT = Path(__file__).resolve().parent
DEV_ROOT: Final[Path] = PKG_ROOT.parent.parent

ERROR_HANDLERS_FILE: Final[Path] = PKG_ROOT / "data" / "error-handlers.yaml"

PLATFORM_DIRS: Final[PlatformDirs] = PlatformDirs(
    appname=PROJECT_NAME, appauthor=PROJECT_NAME, version=__version__
)

USER_DATA_DIR: Final[Path] = Path(PLATFORM_DIRS.user_data_dir)
USER_CONFIG_DIR: Final[Path] = Path(PLATFORM_DIRS.user_config_dir)
USER_CACHE_DIR: Final[Path] = Path(PLATFORM_DIRS.user_cache_dir)
USER_LOG_DIR: Final[Path] = Path(PLATFORM_DIRS.user_log_dir)
USER_STATE_DIR: Final[Path] = Path(PLATFORM_DIRS.user_state_dir)

ENV_FILENAME: Final[str] = ".env"
CONFIG_FILENAME: Final[str] = "config.yaml"
SITE_CONFIG_FILENAME: Final[str] = "wpf-config.yaml"
PROJECTS_DIRNAME: Final[str] = "projects"
COMPOSE_FILENAME: Final[str] = "docker-compose.yml"
LOG_FILENAME: Final[str] = "%Y/%m/%d/%H-%M-%S.log"  # strftime pattern


# ---------------------------------------------------------
# 4. Enums
# ---------------------------------------------------------
class ExitCode(IntEnum):
    """Standard CLI exit codes"""

    SUCCESS = 0
    ERROR_GENERAL = 1
    ERROR_USER_CANCEL = 130  # Ctrl+C


class CheckStatus(StrEnum):
    """Doctor check outcome"""

    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"
