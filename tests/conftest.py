"""Shared fakes: scripted executor, manual clock and catalogue builders."""

import json
from typing import Callable, Optional

import pytest

from wpf_build.executor import ExecutionError
from wpf_build.registry import ErrorRegistry
from wpf_build.schema import CommandResult, ErrorCatalogue


def ok(stdout: str = "") -> CommandResult:
    return CommandResult(exit_code=0, stdout=stdout, success=True, command="fake")


def failed(stderr: str = "", exit_code: int = 1) -> CommandResult:
    return CommandResult(
        exit_code=exit_code, stderr=stderr, success=False, command="fake"
    )


class FakeExecutor:
    """Records commands and answers them through ``responder(cmd)``."""

    def __init__(self, responder: Optional[Callable[[list[str]], CommandResult]] = None):
        self.responder = responder or (lambda cmd: ok())
        self.calls: list[list[str]] = []
        self.cwds: list[Optional[str]] = []

    def execute(self, cmd, cwd=None, stream=False, check=False, env=None):
        self.calls.append(list(cmd))
        self.cwds.append(cwd)
        result = self.responder(list(cmd))
        if check and not result.success:
            raise ExecutionError(
                f"Command failed with exit code {result.exit_code}: "
                f"{' '.join(cmd)}\n{result.output}",
                result=result,
            )
        return result

    def run_shell(self, script, cwd=None):
        return self.execute(["bash", "-c", script], cwd=cwd)

    def which(self, program):
        return self.execute(["which", program]).success

    def count(self, *prefix: str) -> int:
        return sum(1 for call in self.calls if call[: len(prefix)] == list(prefix))


class FakeClock:
    """Monotonic clock that only moves when ``sleep`` is called."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def make_registry(handlers: dict, version: str = "test") -> ErrorRegistry:
    return ErrorRegistry(
        catalogue=ErrorCatalogue.model_validate({"version": version, "handlers": handlers})
    )


PORT_CONFLICT = {
    "pattern": "address already in use",
    "severity": "error",
    "category": "network",
    "description": "Port in use",
    "actions": [{"action": "wait", "seconds": 5}, {"action": "retry"}],
    "max_retries": 1,
    "fallback": "Port {{port}} is busy in {{project_path}}",
}


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def isolated_dirs(tmp_path, monkeypatch):
    """Point every platformdirs location at tmp_path."""
    dirs = {
        name: str(tmp_path / "user" / name.replace("_dir", ""))
        for name in ("config_dir", "cache_dir", "log_dir", "data_dir", "state_dir")
    }
    monkeypatch.setenv("DIR_CONFIGS", json.dumps(dirs))
    for key in ("LOG_LEVEL", "ERROR_HANDLERS_PATH", "RUNTIME_COMMAND", "COMPOSE_COMMAND"):
        monkeypatch.delenv(key, raising=False)
    return tmp_path

SITE = {
    "project": {"name": "acme-corp", "version": "1.2.0"},
    "company": {"name": "Acme Corp", "tagline": "We build things", "industry": "technology"},
    "contact": {"email": "hello@acme.test", "phone": "+55 11 5555-0000"},
    "branding": {"primary_color": "#112233", "secondary_color": "#445566"},
    "pages": [
        {"slug": "home", "title": "Home", "template": "front-page"},
        {"slug": "about-us", "title": "About Us", "template": "about"},
    ],
    "menu": {"primary": [{"title": "Home", "url": "/"}]},
}
