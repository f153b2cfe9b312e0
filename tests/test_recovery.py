"""Tests for the recovery executor."""

import pytest

from wpf_build.executor import ExecutionError
from wpf_build.recovery import RecoveryExecutor, RecoveryExhaustedError
from wpf_build.schema import RecoveryContext

from tests.conftest import PORT_CONFLICT, FakeExecutor, failed, make_registry, ok

CONTEXT = RecoveryContext(port="8080", container="acme_wp", project_path="/srv/acme")


def _recovery(handlers: dict, clock, executor=None) -> RecoveryExecutor:
    return RecoveryExecutor(
        registry=make_registry(handlers),
        executor=executor or FakeExecutor(),
        sleep=clock.sleep,
    )


def _failing(message: str, calls: list, succeed_after: int = -1):
    def operation():
        calls.append(1)
        if len(calls) <= succeed_after or succeed_after < 0:
            raise RuntimeError(message)
        return "ok"

    return operation


class TestAttemptRecovery:
    """Test a single recovery attempt."""

    def test_unknown_error(self, clock):
        recovery = _recovery({"port-conflict": PORT_CONFLICT}, clock)
        result = recovery.attempt_recovery("kernel panic", CONTEXT)

        assert not result.handled
        assert not result.recovered
        assert result.handler_name is None
        assert result.message == "No handler found for this error"
        assert clock.sleeps == []

    def test_actions_run_until_retry(self, clock):
        recovery = _recovery({"port-conflict": PORT_CONFLICT}, clock)
        result = recovery.attempt_recovery("bind: address already in use", CONTEXT)

        assert result.handled
        assert result.recovered
        assert result.retry
        assert result.handler_name == "port-conflict"
        assert result.retries_used == 1
        assert result.message == "Recovery attempt 1/1"
        assert clock.sleeps == [5]

    def test_exhausted_substitutes_fallback(self, clock):
        recovery = _recovery({"port-conflict": PORT_CONFLICT}, clock)
        result = recovery.attempt_recovery("address already in use", CONTEXT, retry_count=1)

        assert result.handled
        assert not result.recovered
        assert result.retries_used == 1
        assert result.message == "Port 8080 is busy in /srv/acme"
        assert "{{" not in result.message
        assert clock.sleeps == []

    def test_fallback_with_missing_variable(self, clock):
        recovery = _recovery({"port-conflict": PORT_CONFLICT}, clock)
        result = recovery.attempt_recovery(
            "address already in use", RecoveryContext(), retry_count=5
        )
        assert result.message == "Port  is busy in "

    def test_retries_used_never_exceeds_budget(self, clock):
        recovery = _recovery({"port-conflict": dict(PORT_CONFLICT, max_retries=3)}, clock)
        for count in range(6):
            result = recovery.attempt_recovery("address already in use", CONTEXT, count)
            assert result.retries_used <= 3

    def test_handler_without_retry_is_terminal(self, clock):
        handlers = {
            "log-only": {
                "pattern": "not installed",
                "severity": "info",
                "category": "wordpress",
                "description": "Nothing to do",
                "actions": [{"action": "log", "message": "noted {{container}}"}],
                "max_retries": 1,
                "fallback": "n/a",
            }
        }
        result = _recovery(handlers, clock).attempt_recovery("WordPress is not installed", CONTEXT)

        assert result.handled
        assert result.recovered
        assert not result.retry
        assert result.message == "Recovery actions completed"

    def test_command_rendered_and_run_in_project(self, clock):
        handlers = {
            "name-conflict": {
                "pattern": "already in use by container",
                "severity": "error",
                "category": "docker",
                "description": "Stale container",
                "actions": [
                    {"action": "command", "cmd": "docker rm -f {{container}}"},
                    {"action": "retry"},
                ],
                "max_retries": 2,
                "fallback": "gave up",
            }
        }
        executor = FakeExecutor()
        recovery = _recovery(handlers, clock, executor)
        recovery.attempt_recovery('name "/acme_wp" is already in use by container', CONTEXT)

        assert executor.calls == [["bash", "-c", "docker rm -f acme_wp"]]
        assert executor.cwds == ["/srv/acme"]

    def test_failing_command_does_not_stop_the_cycle(self, clock):
        handlers = {
            "flaky": {
                "pattern": "flaky",
                "severity": "error",
                "category": "docker",
                "description": "Flaky",
                "actions": [
                    {"action": "command", "cmd": "exit 3"},
                    {"action": "command", "cmd": "missing-binary"},
                    {"action": "wait", "seconds": 2},
                    {"action": "notify", "message": "check {{port}}", "type": "action"},
                    {"action": "retry"},
                ],
                "max_retries": 1,
                "fallback": "gave up",
            }
        }

        def responder(cmd):
            if cmd[-1] == "missing-binary":
                raise ExecutionError("Command not found: missing-binary")
            return failed("boom", exit_code=3)

        executor = FakeExecutor(responder)
        result = _recovery(handlers, clock, executor).attempt_recovery("flaky", CONTEXT)

        assert len(executor.calls) == 2
        assert clock.sleeps == [2]
        assert result.retry

    def test_actions_after_retry_are_not_run(self, clock):
        handlers = {
            "x": {
                "pattern": "x",
                "severity": "error",
                "category": "docker",
                "description": "x",
                "actions": [{"action": "retry"}, {"action": "wait", "seconds": 9}],
                "max_retries": 1,
                "fallback": "gave up",
            }
        }
        result = _recovery(handlers, clock).attempt_recovery("x", CONTEXT)
        assert result.retry
        assert clock.sleeps == []


class TestWithRecovery:
    """Test the retry wrapper."""

    def test_success_passes_through(self, clock):
        recovery = _recovery({"port-conflict": PORT_CONFLICT}, clock)
        assert recovery.with_recovery(lambda: 42, CONTEXT) == 42

    def test_unknown_error_reraised_unchanged(self, clock):
        recovery = _recovery({"port-conflict": PORT_CONFLICT}, clock)
        original = ValueError("totally unexpected")
        calls = []

        def operation():
            calls.append(1)
            raise original

        with pytest.raises(ValueError) as exc_info:
            recovery.with_recovery(operation, CONTEXT)

        assert exc_info.value is original
        assert len(calls) == 1

    def test_fails_twice_then_succeeds(self, clock):
        handlers = {
            "db": {
                "pattern": "database connection",
                "severity": "error",
                "category": "database",
                "description": "DB not ready",
                "actions": [{"action": "wait", "seconds": 10}, {"action": "retry"}],
                "max_retries": 3,
                "fallback": "db down",
            }
        }
        calls = []
        recovery = _recovery(handlers, clock)
        operation = _failing("Error establishing a database connection", calls, succeed_after=2)

        assert recovery.with_recovery(operation, CONTEXT, max_retries=3) == "ok"
        assert len(calls) == 3
        assert clock.sleeps == [10, 10]

    def test_port_conflict_exhausts_after_one_cycle(self, clock):
        executor = FakeExecutor()
        recovery = _recovery({"port-conflict": PORT_CONFLICT}, clock, executor)
        calls = []

        with pytest.raises(RecoveryExhaustedError) as exc_info:
            recovery.with_recovery(
                _failing("bind: address already in use", calls), CONTEXT, max_retries=3
            )

        assert len(calls) == 2
        assert clock.sleeps == [5]
        assert str(exc_info.value) == "Port 8080 is busy in /srv/acme"
        assert exc_info.value.handler_name == "port-conflict"
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_handler_without_retry_reraises(self, clock):
        handlers = {
            "note": {
                "pattern": "note",
                "severity": "info",
                "category": "wordpress",
                "description": "Only log",
                "actions": [{"action": "log"}],
                "max_retries": 3,
                "fallback": "n/a",
            }
        }
        calls = []
        with pytest.raises(RuntimeError, match="note this"):
            _recovery(handlers, clock).with_recovery(_failing("note this", calls), CONTEXT)
        assert len(calls) == 1

    def test_wrapper_budget_smaller_than_handler(self, clock):
        handlers = {"port-conflict": dict(PORT_CONFLICT, max_retries=5)}
        calls = []

        with pytest.raises(RuntimeError, match="address already in use"):
            _recovery(handlers, clock).with_recovery(
                _failing("address already in use", calls), CONTEXT, max_retries=2
            )

        assert len(calls) == 2
        assert clock.sleeps == [5, 5]

    def test_zero_budget_never_calls(self, clock):
        recovery = _recovery({"port-conflict": PORT_CONFLICT}, clock)
        calls = []
        with pytest.raises(RecoveryExhaustedError, match="Max retries exceeded"):
            recovery.with_recovery(_failing("x", calls), CONTEXT, max_retries=0)
        assert calls == []

    def test_decorator(self, clock):
        recovery = _recovery({"port-conflict": PORT_CONFLICT}, clock)
        calls = []

        @recovery.recoverable(CONTEXT, max_retries=2)
        def start(label):
            calls.append(label)
            if len(calls) == 1:
                raise RuntimeError("bind: address already in use")
            return label.upper()

        assert start("up") == "UP"
        assert calls == ["up", "up"]
        assert start.__name__ == "start"
