"""Step pipeline orchestrator.

Runs a fixed, ordered list of steps. Each step is timed and recorded; a
failing critical step aborts the rest of the run, any other failure is
recorded and the run continues.
"""

import time
from typing import Callable, Optional

from wpf_build.constants import CRITICAL_STEP_COUNT
from wpf_build.schema import BuildResult, BuildStep, StepResult
from wpf_build.utils import ui
from wpf_build.utils.io import format_duration


class Pipeline:
    """Sequential step runner."""

    def __init__(
        self,
        steps: list[BuildStep],
        critical_step_count: int = CRITICAL_STEP_COUNT,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.steps = steps
        self.critical_step_count = critical_step_count
        self.clock = clock

    def is_critical(self, step: BuildStep, position: int) -> bool:
        """
        Whether a failure of ``step`` aborts the run.

        Args:
            step: The step that failed
            position: 1-based position among executed (non-skipped) steps
        """
        if step.critical is not None:
            return step.critical
        return position <= self.critical_step_count

    def execute_step(self, step: BuildStep, number: int, total: int) -> StepResult:
        """Run one step with timing. Exceptions become a failed StepResult."""
        label = f"[{number}/{total}] {step.name}"
        ui.step(label)
        started = self.clock()

        try:
            step.action()
        except Exception as e:
            duration = self.clock() - started
            message = str(e) or e.__class__.__name__
            ui.error(f"{label} - {message}")
            ui.debug(f"{step.name} failed with {e!r}")
            return StepResult(
                name=step.name, success=False, duration=duration, message=message
            )

        duration = self.clock() - started
        ui.success(f"{label} ({format_duration(duration)})")
        return StepResult(name=step.name, success=True, duration=duration)

    def run(self) -> BuildResult:
        """Execute every non-skipped step in order and build the report."""
        started = self.clock()
        executed = [step for step in self.steps if not step.skip]
        total = len(executed)

        results: list[StepResult] = []
        errors: list[str] = []
        aborted_at: Optional[str] = None
        not_attempted: list[str] = []

        for position, step in enumerate(executed, start=1):
            result = self.execute_step(step, position, total)
            results.append(result)

            if result.success:
                continue

            errors.append(f"{step.name}: {result.message}")

            if self.is_critical(step, position):
                aborted_at = step.name
                not_attempted = [s.name for s in executed[position:]]
                if not_attempted:
                    ui.warning(
                        f"Aborting after critical step '{step.name}'. "
                        f"Not attempted: {', '.join(not_attempted)}"
                    )
                break

        return BuildResult(
            success=all(r.success for r in results),
            duration=self.clock() - started,
            steps=results,
            errors=errors,
            aborted_at=aborted_at,
            not_attempted=not_attempted,
        )
