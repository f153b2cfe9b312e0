import json
from pathlib import Path
from typing import Any, Dict

from pydantic import BaseModel

from wpf_build.utils import ui

# ---------------------------------------------------------
# Helper / IO Functions
# ---------------------------------------------------------


def format_json(data: Dict[str, Any]) -> str:
    """Format dictionary as pretty JSON string."""
    return json.dumps(data, indent=2, ensure_ascii=False)


def format_duration(seconds: float) -> str:
    """Human readable duration: ``850ms``, ``4.2s`` or ``2m 5s``."""
    ms = int(round(seconds * 1000))
    if ms < 1000:
        return f"{ms}ms"
    if ms < 60000:
        return f"{ms / 1000:.1f}s"
    minutes, rest = divmod(ms, 60000)
    return f"{minutes}m {rest // 1000}s"


def load_file(file_path: Path) -> str:
    """Load file content with error handling."""
    try:
        content = file_path.read_text(encoding="utf-8")
        ui.debug(f"Loaded file: {file_path}")
        return content
    except FileNotFoundError:
        ui.error(f"File not found: {file_path}")
        raise
    except (IOError, UnicodeDecodeError) as e:
        ui.error(f"Failed to read file {file_path}: {e}")
        raise


def save_report(report: BaseModel, output_file: Path) -> None:
    """Write a model as pretty JSON and print success."""
    try:
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_text(
            report.model_dump_json(indent=2, exclude_none=True), encoding="utf-8"
        )
        ui.success(f"Saved report to {output_file}")
    except IOError as e:
        ui.error(f"Failed to save report {output_file}: {e}")
