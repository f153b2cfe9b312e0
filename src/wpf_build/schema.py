"""Data models and schemas for wpf-build."""

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Callable, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ============================================================================
# Enums
# ============================================================================


class Severity(str, Enum):
    """Severity of a catalogued error."""

    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ContainerHealth(str, Enum):
    """Health of a single container as reported by the runtime."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    STARTING = "starting"
    UNKNOWN = "unknown"


# ============================================================================
# Error Catalogue Models
# ============================================================================


class _Action(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class WaitAction(_Action):
    """Pause for a fixed number of seconds."""

    action: Literal["wait"]
    seconds: float = Field(ge=0, description="Seconds to wait")


class CommandAction(_Action):
    """Run a shell command in the project directory."""

    action: Literal["command"]
    cmd: str = Field(min_length=1, description="Command template ({{var}} allowed)")


class RetryAction(_Action):
    """Sentinel: end the recovery cycle and re-attempt the operation."""

    action: Literal["retry"]


class LogAction(_Action):
    """Write a line to the operator log."""

    action: Literal["log"]
    message: str = Field(default="Error logged")


class NotifyAction(_Action):
    """Surface a notification to the operator."""

    action: Literal["notify"]
    message: str = Field(default="Action required")
    type: str = Field(default="info", description="Notification kind")


ErrorAction = Annotated[
    Union[WaitAction, CommandAction, RetryAction, LogAction, NotifyAction],
    Field(discriminator="action"),
]


class ErrorHandler(BaseModel):
    """A catalogue entry: error pattern -> bounded remediation procedure."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    pattern: str = Field(description="Regex, matched case-insensitively")
    severity: Severity
    category: str = Field(description="Grouping tag, introspection only")
    description: str
    actions: list[ErrorAction] = Field(default_factory=list)
    max_retries: int = Field(ge=0)
    fallback: str = Field(description="Message template shown when exhausted")

    @field_validator("pattern")
    @classmethod
    def _compiles(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as e:
            raise ValueError(f"invalid regular expression: {e}") from e
        return value

    def matches(self, message: str) -> bool:
        return re.search(self.pattern, message, re.IGNORECASE) is not None


class ErrorCatalogue(BaseModel):
    """Versioned error-handler catalogue. Handler order is significant."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    version: str
    handlers: dict[str, ErrorHandler] = Field(default_factory=dict)


# ============================================================================
# Recovery Models
# ============================================================================


class RecoveryContext(BaseModel):
    """Substitution variables for one recoverable operation."""

    model_config = ConfigDict(extra="allow")

    container: Optional[str] = None
    port: Optional[str] = None
    plugin: Optional[str] = None
    url: Optional[str] = None
    title: Optional[str] = None
    domain: Optional[str] = None
    project_path: Optional[str] = None
    runtime: Optional[str] = Field(default=None, description="Container runtime CLI")
    compose: Optional[str] = Field(default=None, description="Compose CLI")

    def variables(self) -> dict[str, str]:
        """Flat mapping of every variable that has a value."""
        return {
            key: str(value)
            for key, value in self.model_dump().items()
            if value is not None
        }


class RecoveryResult(BaseModel):
    """Outcome of one recovery attempt."""

    handled: bool = Field(description="A catalogue entry matched")
    recovered: bool = Field(description="Remediation ran (budget not exhausted)")
    retry: bool = Field(
        default=False, description="A retry sentinel ended the cycle"
    )
    handler_name: Optional[str] = None
    retries_used: Optional[int] = None
    message: str


# ============================================================================
# Execution Models (for Executor)
# ============================================================================


class CommandResult(BaseModel):
    """Result of a shell command execution."""

    exit_code: int = Field(description="Exit code of the command")
    stdout: str = Field(default="", description="Standard output")
    stderr: str = Field(default="", description="Standard error")
    success: bool = Field(description="Whether command succeeded")
    command: str = Field(description="Command that was executed")
    cwd: str = Field(default="", description="Working directory where command was run")

    @property
    def output(self) -> str:
        """Get combined output (prefer stderr for errors, stdout otherwise)."""
        if not self.success and self.stderr:
            return self.stderr
        return self.stdout or self.stderr


# ============================================================================
# Environment Models
# ============================================================================


class EnvironmentOptions(BaseModel):
    """Identifies one managed docker-compose environment."""

    project_path: Path = Field(description="Directory holding the compose file")
    project_name: str = Field(description="Container name prefix")
    verbose: bool = Field(default=False, description="Stream command output")


class ContainerInfo(BaseModel):
    """Point-in-time snapshot of one container."""

    name: str
    status: str
    health: ContainerHealth = ContainerHealth.UNKNOWN
    ports: list[str] = Field(default_factory=list)


class EnvironmentStatus(BaseModel):
    running: bool
    containers: list[ContainerInfo] = Field(default_factory=list)
    healthy: bool


# ============================================================================
# Pipeline Models
# ============================================================================


@dataclass
class BuildStep:
    """A named pipeline step.

    ``critical=None`` defers to the pipeline's positional rule.
    """

    name: str
    action: Callable[[], Any]
    skip: bool = False
    critical: Optional[bool] = None


class StepResult(BaseModel):
    name: str
    success: bool
    duration: float = Field(description="Seconds")
    message: Optional[str] = None


class BuildResult(BaseModel):
    """Final report of a pipeline run."""

    success: bool
    duration: float = Field(description="Seconds, wall clock")
    steps: list[StepResult] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    aborted_at: Optional[str] = Field(
        default=None, description="Critical step that stopped the run"
    )
    not_attempted: list[str] = Field(default_factory=list)


@dataclass
class CheckResult:
    """One doctor check."""

    name: str
    status: str
    message: str
    fix: Optional[Callable[[], None]] = field(default=None, repr=False)

    @property
    def fixable(self) -> bool:
        return self.fix is not None


class BuildOptions(BaseModel):
    """Run options for a site build. Skip flags are read once per run."""

    config_path: Path
    output_dir: Path
    skip_docker: bool = False
    skip_wordpress: bool = False
    skip_tests: bool = False
    verbose: bool = False


class GenerationResult(BaseModel):
    """What the project generator reports back."""

    success: bool
    files_generated: int = 0
    errors: list[str] = Field(default_factory=list)
