"""Environment doctor: pre-flight checks for the build toolchain."""

from pathlib import Path
from typing import Optional

from wpf_build.config import Configs
from wpf_build.constants import PROJECTS_DIRNAME, CheckStatus
from wpf_build.executor import ExecutionError, Executor
from wpf_build.registry import CatalogueError, ErrorRegistry
from wpf_build.schema import CheckResult


def _first_line(executor: Executor, cmd: list[str]) -> Optional[str]:
    """First output line of ``cmd``, or None when it fails."""
    try:
        result = executor.execute(cmd)
    except ExecutionError:
        return None
    if not result.success:
        return None
    lines = (result.stdout or result.stderr).strip().splitlines()
    return lines[0] if lines else ""


def check_runtime(executor: Executor, settings: Configs) -> CheckResult:
    runtime = settings.RUNTIME_COMMAND.split()[0]
    if not executor.which(runtime):
        return CheckResult("Docker", CheckStatus.FAIL, "Not installed")

    if _first_line(executor, [runtime, "info"]) is None:
        return CheckResult(
            "Docker",
            CheckStatus.WARN,
            "Installed but daemon not running. "
            "Start Docker Desktop or run: sudo systemctl start docker",
        )
    version = _first_line(executor, [runtime, "--version"]) or "unknown"
    return CheckResult("Docker", CheckStatus.PASS, version)


def check_compose(executor: Executor, settings: Configs) -> CheckResult:
    compose = settings.COMPOSE_COMMAND.split()
    version = _first_line(executor, [*compose, "version"])
    if version is None and compose != ["docker", "compose"]:
        # compose v2 plugin
        version = _first_line(executor, ["docker", "compose", "version"])
    if version is None:
        return CheckResult("Docker Compose", CheckStatus.FAIL, "Not installed")
    return CheckResult("Docker Compose", CheckStatus.PASS, version)


def check_git(executor: Executor) -> CheckResult:
    version = _first_line(executor, ["git", "--version"])
    if version is None:
        return CheckResult(
            "Git", CheckStatus.WARN, "Not installed (optional but recommended)"
        )
    return CheckResult("Git", CheckStatus.PASS, version)


def check_catalogue(registry: ErrorRegistry) -> CheckResult:
    try:
        count = len(registry.handlers)
    except CatalogueError as e:
        return CheckResult(
            "Error Handlers", CheckStatus.FAIL, f"{e} (auto-recovery disabled)"
        )
    return CheckResult(
        "Error Handlers",
        CheckStatus.PASS,
        f"v{registry.version}, {count} handlers ({registry.path})",
    )


def check_projects_dir(root: Path) -> CheckResult:
    projects_dir = root / PROJECTS_DIRNAME
    if projects_dir.is_dir():
        return CheckResult(
            "Projects Directory", CheckStatus.PASS, f"Found at {PROJECTS_DIRNAME}/"
        )

    def _create() -> None:
        projects_dir.mkdir(parents=True, exist_ok=True)

    return CheckResult(
        "Projects Directory",
        CheckStatus.WARN,
        f"Missing {PROJECTS_DIRNAME}/ directory",
        fix=_create,
    )


def run_checks(
    executor: Executor,
    settings: Configs,
    registry: ErrorRegistry,
    root: Path,
) -> list[CheckResult]:
    return [
        check_runtime(executor, settings),
        check_compose(executor, settings),
        check_git(executor),
        check_catalogue(registry),
        check_projects_dir(root),
    ]
