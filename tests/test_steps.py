"""Tests for the site build steps."""

import pytest
import yaml

from wpf_build.config import Configs
from wpf_build.executor import ExecutionError
from wpf_build.recovery import RecoveryExhaustedError
from wpf_build.schema import BuildOptions, GenerationResult
from wpf_build.steps import SiteBuild, StepError, parse_test_summary, verify_project_tree

from tests.conftest import SITE, FakeExecutor, ok


class FakeController:
    """Stands in for EnvironmentController and records WP-CLI calls."""

    def __init__(self, installed=False, start_error=None, home_id="7"):
        self.installed = installed
        self.start_error = start_error
        self.home_id = home_id
        self.wp_calls: list[list[str]] = []
        self.started = False

    def start_environment(self):
        if self.start_error is not None:
            raise self.start_error
        self.started = True
        return True

    def fix_permissions(self):
        return True

    def run_privileged_command(self, args, **context):
        self.wp_calls.append(list(args))
        if args[:2] == ["core", "is-installed"] and not self.installed:
            raise ExecutionError("Command failed with exit code 1: wp core is-installed")
        if args[:2] == ["plugin", "install"] and args[2] == "autoptimize":
            raise RecoveryExhaustedError("Could not download autoptimize")
        if args[:2] == ["post", "list"]:
            return f"{self.home_id}\n"
        return ""


@pytest.fixture
def project(tmp_path):
    (tmp_path / "wpf-config.yaml").write_text(yaml.safe_dump(SITE), encoding="utf-8")
    (tmp_path / "docker-compose.yml").write_text("services: {}\n", encoding="utf-8")
    return tmp_path


def _build(project, controller=None, executor=None, **flags) -> SiteBuild:
    options = BuildOptions(
        config_path=project / "wpf-config.yaml", output_dir=project, **flags
    )
    return SiteBuild(
        options,
        settings=Configs(),
        executor=executor or FakeExecutor(),
        controller=controller or FakeController(),
    )


class TestHelpers:
    """Test standalone helpers."""

    def test_parse_test_summary(self):
        output = "Running 12 tests using 4 workers\n\n  10 passed (8.1s)\n  2 failed\n"
        assert parse_test_summary(output) == (10, 2)

    def test_parse_test_summary_empty(self):
        assert parse_test_summary("") == (0, 0)

    def test_verify_project_tree(self, project):
        result = verify_project_tree(project, None)
        assert result.success
        assert result.files_generated == 2

    def test_verify_project_tree_without_compose(self, tmp_path):
        result = verify_project_tree(tmp_path, None)
        assert not result.success
        assert "docker-compose.yml" in result.errors[0]


class TestSteps:
    """Test the declared step list."""

    def test_eight_steps_first_four_critical(self, project):
        steps = _build(project).steps()
        assert len(steps) == 8
        assert [s.critical for s in steps] == [True] * 4 + [False] * 4
        assert not any(s.skip for s in steps)

    def test_skip_docker(self, project):
        steps = _build(project, skip_docker=True).steps()
        assert [s.skip for s in steps] == [False, False] + [True] * 6

    def test_skip_wordpress(self, project):
        steps = _build(project, skip_wordpress=True).steps()
        assert [s.skip for s in steps] == [False] * 3 + [True] * 4 + [False]

    def test_skip_tests(self, project):
        steps = _build(project, skip_tests=True).steps()
        assert [s.skip for s in steps] == [False] * 7 + [True]


class TestRun:
    """Test full pipeline runs against fakes."""

    def test_skip_docker_run(self, project):
        controller = FakeController()
        result = _build(project, controller=controller, skip_docker=True).run()

        assert result.success
        assert [s.name for s in result.steps] == ["Loading configuration", "Generating assets"]
        assert not controller.started

    def test_full_run(self, project):
        controller = FakeController()
        build = _build(project, controller=controller)
        result = build.run()

        assert result.success
        assert len(result.steps) == 8
        assert controller.started

        install = next(c for c in controller.wp_calls if c[:2] == ["core", "install"])
        assert "--title=Acme Corp" in install
        assert "--admin_email=hello@acme.test" in install
        assert "--admin_password=admin123" in install

        assert ["theme", "activate", "acme-corp-theme"] in controller.wp_calls
        assert ["option", "update", "page_on_front", "7"] in controller.wp_calls
        created = [c for c in controller.wp_calls if c[:2] == ["post", "create"]]
        assert len(created) == 2

    def test_already_installed_skips_install(self, project):
        controller = FakeController(installed=True)
        _build(project, controller=controller).run()
        assert not any(c[:2] == ["core", "install"] for c in controller.wp_calls)

    def test_no_home_page(self, project):
        controller = FakeController(home_id="")
        _build(project, controller=controller).run()
        assert not any(c[:2] == ["option", "update"] for c in controller.wp_calls)

    def test_invalid_config_aborts(self, project):
        (project / "wpf-config.yaml").write_text("project: {name: Bad Name}\n", encoding="utf-8")
        result = _build(project).run()

        assert not result.success
        assert len(result.steps) == 1
        assert result.aborted_at == "Loading configuration"
        assert "project.name" in result.errors[0]

    def test_environment_failure_aborts(self, project):
        controller = FakeController(start_error=RecoveryExhaustedError("Port 8080 is in use"))
        result = _build(project, controller=controller).run()

        assert not result.success
        assert result.aborted_at == "Starting Docker environment"
        assert result.errors == ["Starting Docker environment: Port 8080 is in use"]
        assert result.not_attempted == [
            "Installing WordPress",
            "Activating theme and plugin",
            "Installing and configuring plugins",
            "Creating pages and menus",
            "Running E2E tests",
        ]

    def test_custom_generator(self, project):
        def generator(output_dir, config):
            return GenerationResult(success=False, errors=["template missing"])

        build = _build(project)
        build.generator = generator
        result = build.run()

        assert result.aborted_at == "Generating assets"
        assert result.errors == ["Generating assets: template missing"]

    def test_theme_assets_built(self, project):
        theme = project / "theme"
        theme.mkdir()
        (theme / "package.json").write_text("{}", encoding="utf-8")
        executor = FakeExecutor()

        result = _build(project, executor=executor, skip_docker=True).run()

        assert result.success
        assert executor.calls == [["npm", "install"], ["npm", "run", "build"]]
        assert executor.cwds == [str(theme), str(theme)]

    def test_failing_e2e_tests(self, project):
        (project / "tests").mkdir()

        def responder(cmd):
            if cmd == ["npx", "playwright", "test"]:
                return ok("  3 passed\n  2 failed\n")
            return ok()

        result = _build(project, executor=FakeExecutor(responder)).run()

        assert not result.success
        assert result.errors == ["Running E2E tests: 2 tests failed"]
        assert result.aborted_at is None

    def test_passing_e2e_tests(self, project):
        (project / "tests").mkdir()
        executor = FakeExecutor(lambda cmd: ok("  5 passed (3.0s)\n"))

        assert _build(project, executor=executor).run().success
        assert ["npx", "playwright", "install", "chromium"] in executor.calls

    def test_steps_need_configuration(self, project):
        with pytest.raises(StepError, match="Configuration not loaded"):
            _build(project).install_wordpress()
