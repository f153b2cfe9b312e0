"""Executor module - The Hand (subprocess operations)."""

import shlex
import subprocess
import sys
from pathlib import Path
from typing import Optional

from wpf_build.schema import CommandResult
from wpf_build.utils import ui


class ExecutionError(Exception):
    """Raised when a command cannot be launched or exits non-zero under check."""

    def __init__(self, message: str, result: Optional[CommandResult] = None):
        super().__init__(message)
        self.result = result


class Executor:
    """
    Handles all subprocess calls.

    The executor knows nothing about containers or recovery.
    It only executes commands and captures output.
    """

    def __init__(self, verbose: bool = False):
        """
        Initialize the executor.

        Args:
            verbose: Enable verbose output
        """
        self.verbose = verbose

    def execute(
        self,
        cmd: list[str],
        cwd: Optional[str] = None,
        stream: bool = False,
        check: bool = False,
        env: Optional[dict] = None,
    ) -> CommandResult:
        """
        Execute a command and capture output.

        Args:
            cmd: Command to execute as a list
            cwd: Working directory for the command
            stream: Whether to echo stdout in real-time
            check: Raise ExecutionError on a non-zero exit code
            env: Environment variables (defaults to the current environment)

        Returns:
            CommandResult with exit code and captured output
        """
        cmd_str = shlex.join(cmd)
        ui.debug(f"Executing command: {cmd_str} (cwd={cwd or Path.cwd()})")

        try:
            if stream:
                process = subprocess.Popen(
                    cmd,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.PIPE,
                    cwd=cwd,
                    env=env,
                    text=True,
                    bufsize=1,
                )

                stdout_lines = []
                while True:
                    stdout_line = process.stdout.readline()
                    if stdout_line:
                        stdout_lines.append(stdout_line)
                        ui.console.print(stdout_line.rstrip(), markup=False)
                        sys.stdout.flush()

                    if process.poll() is not None:
                        break

                remaining = process.stdout.read()
                if remaining:
                    stdout_lines.append(remaining)
                    ui.console.print(remaining.rstrip(), markup=False)

                stderr = process.stderr.read() or ""
                exit_code = process.wait()
                stdout = "".join(stdout_lines)

            else:
                result = subprocess.run(
                    cmd,
                    cwd=cwd,
                    env=env,
                    capture_output=True,
                    text=True,
                )
                exit_code = result.returncode
                stdout = result.stdout
                stderr = result.stderr

        except FileNotFoundError as e:
            raise ExecutionError(f"Command not found: {cmd[0]}") from e
        except OSError as e:
            raise ExecutionError(f"Failed to execute command: {e}") from e

        command_result = CommandResult(
            exit_code=exit_code,
            stdout=stdout,
            stderr=stderr,
            success=(exit_code == 0),
            command=cmd_str,
            cwd=cwd or str(Path.cwd()),
        )

        if check and not command_result.success:
            detail = command_result.output.strip()
            message = f"Command failed with exit code {exit_code}: {cmd_str}"
            if detail:
                message = f"{message}\n{detail}"
            raise ExecutionError(message, result=command_result)

        return command_result

    def run_shell(self, script: str, cwd: Optional[str] = None) -> CommandResult:
        """Run ``script`` through ``bash -c``; never raises on a non-zero exit."""
        return self.execute(["bash", "-c", script], cwd=cwd, stream=False)

    def which(self, program: str) -> bool:
        """Check whether ``program`` resolves on PATH."""
        try:
            return self.execute(["which", program]).success
        except ExecutionError:
            return False
