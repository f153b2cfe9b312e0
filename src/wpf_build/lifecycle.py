"""Managed environment lifecycle: docker-compose up/down, health and exec."""

import shlex
import time
from typing import Callable, Optional

from wpf_build.config import Configs
from wpf_build.constants import (
    DATASTORE_SUFFIX,
    DEFAULT_LOG_LINES,
    DEFAULT_PORT,
    PRIMARY_SUFFIX,
    PRIVILEGED_RETRY_BUDGET,
    RESTART_SETTLE_DELAY,
    START_RETRY_BUDGET,
    WP_CONTENT_DIR,
    WP_OWNER,
)
from wpf_build.executor import ExecutionError, Executor
from wpf_build.recovery import RecoveryExecutor
from wpf_build.registry import ErrorRegistry
from wpf_build.schema import (
    ContainerHealth,
    ContainerInfo,
    EnvironmentOptions,
    EnvironmentStatus,
    RecoveryContext,
)
from wpf_build.utils import ui

STATUS_FORMAT = "{{.Names}}|{{.Status}}|{{.Ports}}"


class LifecycleError(Exception):
    """Base class for environment lifecycle failures."""

    pass


class RuntimeUnavailableError(LifecycleError):
    """The container runtime daemon is not running."""

    pass


class UnhealthyEnvironmentError(LifecycleError):
    """Containers did not report healthy before the timeout."""

    pass


def infer_health(status: str) -> ContainerHealth:
    """
    Derive container health from the runtime's status text.

    ``docker ps`` reports health inside the status column, for example
    ``Up 2 minutes (healthy)`` or ``Up 5 seconds (health: starting)``.
    "unhealthy" is checked first since it contains "healthy".
    """
    text = status.lower()
    if "unhealthy" in text:
        return ContainerHealth.UNHEALTHY
    if "healthy" in text:
        return ContainerHealth.HEALTHY
    if "starting" in text:
        return ContainerHealth.STARTING
    return ContainerHealth.UNKNOWN


def parse_container_line(line: str) -> ContainerInfo:
    """Parse one ``Names|Status|Ports`` line."""
    name, _, rest = line.partition("|")
    status, _, ports = rest.partition("|")
    return ContainerInfo(
        name=name.strip(),
        status=status.strip(),
        health=infer_health(status),
        ports=[p.strip() for p in ports.split(",") if p.strip()],
    )


class EnvironmentController:
    """Controls one project's docker-compose environment."""

    def __init__(
        self,
        options: EnvironmentOptions,
        settings: Optional[Configs] = None,
        recovery: Optional[RecoveryExecutor] = None,
        executor: Optional[Executor] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.options = options
        self.settings = settings or Configs()
        self.executor = executor or Executor(verbose=options.verbose)
        self.recovery = recovery or RecoveryExecutor(
            registry=ErrorRegistry(self.settings.ERROR_HANDLERS_PATH),
            executor=self.executor,
            sleep=sleep,
        )
        self.clock = clock
        self.sleep = sleep

    # ------------------------------------------------------------------
    # Names & commands
    # ------------------------------------------------------------------

    @property
    def primary_container(self) -> str:
        return f"{self.options.project_name}{PRIMARY_SUFFIX}"

    @property
    def datastore_container(self) -> str:
        return f"{self.options.project_name}{DATASTORE_SUFFIX}"

    @property
    def cwd(self) -> str:
        return str(self.options.project_path)

    def _runtime(self, *args: str) -> list[str]:
        return [*shlex.split(self.settings.RUNTIME_COMMAND), *args]

    def _compose(self, *args: str) -> list[str]:
        return [*shlex.split(self.settings.COMPOSE_COMMAND), *args]

    def _context(self, **extra) -> RecoveryContext:
        """Recovery variables for this project. Caller values take precedence."""
        variables = {
            "project_path": self.cwd,
            "container": self.primary_container,
            "port": DEFAULT_PORT,
            "runtime": self.settings.RUNTIME_COMMAND,
            "compose": self.settings.COMPOSE_COMMAND,
        }
        variables.update(extra)
        return RecoveryContext(**variables)

    def _require_runtime(self) -> None:
        if not self.is_running():
            raise RuntimeUnavailableError("Docker daemon is not running")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_running(self) -> bool:
        """Check that the container runtime daemon answers."""
        try:
            return self.executor.execute(self._runtime("info")).success
        except ExecutionError:
            return False

    def get_container_status(self) -> list[ContainerInfo]:
        """Query every container of this project. Empty list on failure."""
        cmd = self._runtime(
            "ps",
            "-a",
            "--filter",
            f"name={self.options.project_name}",
            "--format",
            STATUS_FORMAT,
        )
        try:
            result = self.executor.execute(cmd)
        except ExecutionError as e:
            ui.debug(f"Container status query failed: {e}")
            return []

        if not result.success or not result.stdout.strip():
            return []

        return [
            parse_container_line(line)
            for line in result.stdout.strip().splitlines()
            if line.strip()
        ]

    def _find(
        self, containers: list[ContainerInfo], name: str
    ) -> Optional[ContainerInfo]:
        # ps --filter name= is a substring match, sibling projects show up too
        return next((c for c in containers if c.name == name), None)

    def is_healthy(self, timeout: Optional[float] = None) -> bool:
        """
        Poll until both primary and datastore containers are healthy.

        Args:
            timeout: Seconds to wait (defaults to HEALTH_TIMEOUT)

        Returns:
            True as soon as both are healthy, False once the timeout elapses
        """
        if timeout is None:
            timeout = self.settings.HEALTH_TIMEOUT
        interval = self.settings.HEALTH_POLL_INTERVAL
        start = self.clock()

        while self.clock() - start < timeout:
            containers = self.get_container_status()
            primary = self._find(containers, self.primary_container)
            datastore = self._find(containers, self.datastore_container)

            if (
                primary is not None
                and datastore is not None
                and primary.health == ContainerHealth.HEALTHY
                and datastore.health == ContainerHealth.HEALTHY
            ):
                return True

            ui.debug(
                "Waiting for containers: "
                + ", ".join(f"{c.name}={c.health.value}" for c in containers)
            )
            self.sleep(interval)

        return False

    def get_status(self) -> EnvironmentStatus:
        """Snapshot of the environment. Never cached."""
        if not self.is_running():
            return EnvironmentStatus(running=False, containers=[], healthy=False)

        containers = self.get_container_status()
        running = any("Up" in c.status for c in containers)
        healthy = all(
            c.health in (ContainerHealth.HEALTHY, ContainerHealth.UNKNOWN)
            for c in containers
        )
        return EnvironmentStatus(
            running=running, containers=containers, healthy=running and healthy
        )

    def get_logs(self, service: str = "wordpress", lines: int = DEFAULT_LOG_LINES) -> str:
        """Tail logs of the primary (``wordpress``) or datastore (``db``) container."""
        container = (
            self.datastore_container if service == "db" else self.primary_container
        )
        try:
            result = self.executor.execute(
                self._runtime("logs", "--tail", str(lines), container)
            )
        except ExecutionError:
            return ""
        return result.stdout + result.stderr if result.success else ""

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start_environment(self) -> bool:
        """
        Bring the environment up and wait for it to become healthy.

        Raises:
            RuntimeUnavailableError: The daemon is down (not retried)
            RecoveryExhaustedError: A known failure ran out of retries
            UnhealthyEnvironmentError / ExecutionError: Unknown failures
        """
        self._require_runtime()

        def _start() -> bool:
            ui.debug("Starting Docker containers...")
            self.executor.execute(
                self._compose("up", "-d"),
                cwd=self.cwd,
                stream=self.options.verbose,
                check=True,
            )
            ui.debug("Waiting for containers to be healthy...")
            if not self.is_healthy(self.settings.HEALTH_TIMEOUT):
                raise UnhealthyEnvironmentError("Containers failed to become healthy")
            return True

        return self.recovery.with_recovery(
            _start, self._context(), START_RETRY_BUDGET
        )

    def stop_environment(self) -> bool:
        """Best-effort ``compose down``. Failures are logged, not raised."""
        try:
            ui.debug("Stopping Docker containers...")
            self.executor.execute(
                self._compose("down"),
                cwd=self.cwd,
                stream=self.options.verbose,
                check=True,
            )
            return True
        except ExecutionError as e:
            ui.warning(f"Failed to stop containers: {e}")
            return False

    def restart_environment(self) -> bool:
        self.stop_environment()
        self.sleep(RESTART_SETTLE_DELAY)
        return self.start_environment()

    # ------------------------------------------------------------------
    # Commands inside the primary container
    # ------------------------------------------------------------------

    def run_privileged_command(self, args: list[str], **context) -> str:
        """
        Run a WP-CLI command as root inside the primary container.

        Args:
            args: WP-CLI arguments, e.g. ``["core", "is-installed"]``
            context: Extra recovery variables (``plugin``, ``title``...)

        Returns:
            Captured stdout
        """
        self._require_runtime()
        cmd = self._runtime("exec", self.primary_container, "wp", *args, "--allow-root")

        def _run() -> str:
            result = self.executor.execute(cmd, cwd=self.cwd, check=True)
            return result.stdout or ""

        return self.recovery.with_recovery(
            _run, self._context(**context), PRIVILEGED_RETRY_BUDGET
        )

    def exec_in_container(self, command: str) -> str:
        """Run a shell command inside the primary container. No recovery."""
        self._require_runtime()
        result = self.executor.execute(
            self._runtime("exec", self.primary_container, "bash", "-c", command),
            cwd=self.cwd,
            check=True,
        )
        return result.stdout or ""

    def copy_to_container(self, local_path: str, container_path: str) -> bool:
        try:
            self._require_runtime()
            self.executor.execute(
                self._runtime(
                    "cp", local_path, f"{self.primary_container}:{container_path}"
                ),
                check=True,
            )
            return True
        except (LifecycleError, ExecutionError) as e:
            ui.warning(f"Copy failed: {e}")
            return False

    def fix_permissions(self) -> bool:
        """Reset ownership and mode of wp-content. Best effort."""
        try:
            self._require_runtime()
            self.executor.execute(
                self._runtime(
                    "exec", self.primary_container, "chown", "-R", WP_OWNER, WP_CONTENT_DIR
                ),
                check=True,
            )
            self.executor.execute(
                self._runtime(
                    "exec", self.primary_container, "chmod", "-R", "755", WP_CONTENT_DIR
                ),
                check=True,
            )
            return True
        except (LifecycleError, ExecutionError) as e:
            ui.warning(f"Permission fix failed: {e}")
            return False
