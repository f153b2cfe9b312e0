"""Error handler registry: the catalogue of known failure signatures.

Handlers are tried in the order the catalogue declares them and the first
pattern that matches wins, so more specific patterns must be listed before
more general ones.
"""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from wpf_build.constants import DEFAULT_ENCODING, ERROR_HANDLERS_FILE
from wpf_build.schema import ErrorCatalogue, ErrorHandler, Severity
from wpf_build.utils import ui


class CatalogueError(Exception):
    """Raised when the error-handler catalogue cannot be read or validated."""

    pass


def load_catalogue(path: Path) -> ErrorCatalogue:
    """
    Parse and validate a catalogue file.

    Args:
        path: YAML file with ``version`` and ``handlers`` keys

    Raises:
        CatalogueError: On any read, parse or schema failure
    """
    try:
        data = yaml.safe_load(path.read_text(encoding=DEFAULT_ENCODING))
    except FileNotFoundError as e:
        raise CatalogueError(f"Error catalogue not found: {path}") from e
    except (OSError, yaml.YAMLError) as e:
        raise CatalogueError(f"Failed to read error catalogue {path}: {e}") from e

    try:
        catalogue = ErrorCatalogue.model_validate(data)
    except ValidationError as e:
        raise CatalogueError(f"Invalid error catalogue {path}:\n{e}") from e

    ui.debug(
        f"Loaded error catalogue v{catalogue.version} "
        f"({len(catalogue.handlers)} handlers) from {path}"
    )
    return catalogue


class ErrorRegistry:
    """Lazy, memoized view over one error-handler catalogue."""

    def __init__(
        self,
        path: Optional[Path] = None,
        catalogue: Optional[ErrorCatalogue] = None,
    ):
        self.path = Path(path) if path else ERROR_HANDLERS_FILE
        self._catalogue = catalogue

    @property
    def catalogue(self) -> ErrorCatalogue:
        if self._catalogue is None:
            self._catalogue = load_catalogue(self.path)
        return self._catalogue

    @property
    def version(self) -> str:
        return self.catalogue.version

    @property
    def handlers(self) -> dict[str, ErrorHandler]:
        return self.catalogue.handlers

    def find_handler(self, message: str) -> Optional[tuple[str, ErrorHandler]]:
        """Return the first ``(name, handler)`` whose pattern matches ``message``."""
        for name, handler in self.handlers.items():
            if handler.matches(message):
                return name, handler
        return None

    def get_handlers_by_category(self, category: str) -> dict[str, ErrorHandler]:
        return {
            name: handler
            for name, handler in self.handlers.items()
            if handler.category == category
        }

    def is_recoverable(self, message: str) -> bool:
        match = self.find_handler(message)
        return match is not None and match[1].max_retries > 0

    def get_error_severity(self, message: str) -> Optional[Severity]:
        match = self.find_handler(message)
        return match[1].severity if match else None
