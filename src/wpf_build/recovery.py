"""Recovery executor: runs catalogued remediation for failed operations.

Failures are classified against the error-handler registry:

- unknown (no handler matches): re-raised untouched, never retried
- exhausted (handler matched, retry budget spent): raised as
  ``RecoveryExhaustedError`` carrying the handler's fallback message
- in progress (budget left): the handler's actions run and, when they end
  with a ``retry`` sentinel, the operation is attempted again

The per-handler ``max_retries`` and the wrapper's own ``max_retries`` both
apply; whichever is smaller governs.
"""

import functools
import time
from typing import Callable, Optional, TypeVar

from wpf_build.constants import DEFAULT_RETRY_BUDGET
from wpf_build.executor import ExecutionError, Executor
from wpf_build.registry import ErrorRegistry
from wpf_build.schema import (
    CommandAction,
    ErrorHandler,
    LogAction,
    NotifyAction,
    RecoveryContext,
    RecoveryResult,
    RetryAction,
    WaitAction,
)
from wpf_build.utils import ui
from wpf_build.utils.templating import render

T = TypeVar("T")


class RecoveryExhaustedError(Exception):
    """A known failure whose retry budget is spent."""

    def __init__(self, message: str, handler_name: Optional[str] = None):
        super().__init__(message)
        self.handler_name = handler_name


class RecoveryExecutor:
    """Matches failures to catalogue handlers and executes their actions."""

    def __init__(
        self,
        registry: Optional[ErrorRegistry] = None,
        executor: Optional[Executor] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.registry = registry or ErrorRegistry()
        self.executor = executor or Executor()
        self.sleep = sleep

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def _run_action(self, action, context: RecoveryContext) -> bool:
        """Execute one concrete action. Returns False when it did not succeed."""
        variables = context.variables()

        if isinstance(action, WaitAction):
            ui.info(f"⏳ Waiting {action.seconds:g}s...")
            self.sleep(action.seconds)
            return True

        if isinstance(action, CommandAction):
            cmd = render(action.cmd, variables)
            ui.info(f"🔧 Running: {cmd}")
            try:
                result = self.executor.run_shell(cmd, cwd=context.project_path)
            except ExecutionError as e:
                ui.warning(f"Remediation command could not start: {e}")
                return False
            if not result.success:
                ui.warning(
                    f"Remediation command failed (exit {result.exit_code}): {cmd}"
                )
                ui.debug(result.output)
                return False
            return True

        if isinstance(action, LogAction):
            ui.info(f"📝 {render(action.message, variables)}")
            return True

        if isinstance(action, NotifyAction):
            ui.notify(render(action.message, variables), action.type)
            return True

        return False

    def _run_cycle(self, handler: ErrorHandler, context: RecoveryContext) -> bool:
        """Run actions up to the first retry sentinel. True if one was reached."""
        for action in handler.actions:
            if isinstance(action, RetryAction):
                return True
            self._run_action(action, context)
        return False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def attempt_recovery(
        self,
        error_message: str,
        context: Optional[RecoveryContext] = None,
        retry_count: int = 0,
    ) -> RecoveryResult:
        """
        Try to recover from a failure described by ``error_message``.

        Args:
            error_message: Text of the failure
            context: Variables for command and fallback templates
            retry_count: Recovery cycles already spent on this operation

        Returns:
            RecoveryResult describing whether the caller should retry
        """
        context = context or RecoveryContext()
        match = self.registry.find_handler(error_message)

        if match is None:
            return RecoveryResult(
                handled=False,
                recovered=False,
                message="No handler found for this error",
            )

        name, handler = match

        if retry_count >= handler.max_retries:
            return RecoveryResult(
                handled=True,
                recovered=False,
                handler_name=name,
                retries_used=retry_count,
                message=render(handler.fallback, context.variables()),
            )

        ui.info(f"🔄 Attempting recovery: {handler.description}")
        ui.debug(f"Handler {name} matched (severity={handler.severity.value})")

        if self._run_cycle(handler, context):
            return RecoveryResult(
                handled=True,
                recovered=True,
                retry=True,
                handler_name=name,
                retries_used=retry_count + 1,
                message=f"Recovery attempt {retry_count + 1}/{handler.max_retries}",
            )

        return RecoveryResult(
            handled=True,
            recovered=True,
            retry=False,
            handler_name=name,
            retries_used=retry_count,
            message="Recovery actions completed",
        )

    def with_recovery(
        self,
        operation: Callable[[], T],
        context: Optional[RecoveryContext] = None,
        max_retries: int = DEFAULT_RETRY_BUDGET,
    ) -> T:
        """
        Call ``operation`` and retry it through catalogued recovery.

        Raises:
            The original exception for unknown failures, for handlers without a
            retry sentinel, and when ``max_retries`` runs out.
            RecoveryExhaustedError when the matched handler's budget is spent.
        """
        last_error: Optional[Exception] = None
        retry_count = 0

        while retry_count < max_retries:
            try:
                return operation()
            except Exception as e:
                last_error = e
                result = self.attempt_recovery(str(e), context, retry_count)

                if not result.handled:
                    raise

                if not result.recovered:
                    ui.error(f"Recovery failed: {result.message}")
                    raise RecoveryExhaustedError(
                        result.message, handler_name=result.handler_name
                    ) from e

                if not result.retry:
                    raise

                retry_count += 1
                ui.info(f"↻ Retry {retry_count}/{max_retries}...")

        if last_error is None:
            raise RecoveryExhaustedError("Max retries exceeded")
        raise last_error

    def recoverable(
        self,
        context: Optional[RecoveryContext] = None,
        max_retries: int = DEFAULT_RETRY_BUDGET,
    ):
        """Decorator form of :meth:`with_recovery`."""

        def decorator(func: Callable[..., T]) -> Callable[..., T]:
            @functools.wraps(func)
            def wrapper(*args, **kwargs) -> T:
                return self.with_recovery(
                    lambda: func(*args, **kwargs), context, max_retries
                )

            return wrapper

        return decorator
