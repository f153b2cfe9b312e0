"""WordPress site build: the concrete, ordered provisioning steps."""

import re
from pathlib import Path
from typing import Callable, Optional

from wpf_build.config import Configs
from wpf_build.constants import COMPOSE_FILENAME
from wpf_build.executor import ExecutionError, Executor
from wpf_build.lifecycle import EnvironmentController
from wpf_build.pipeline import Pipeline
from wpf_build.recovery import RecoveryExecutor, RecoveryExhaustedError
from wpf_build.registry import ErrorRegistry
from wpf_build.schema import (
    BuildOptions,
    BuildResult,
    BuildStep,
    EnvironmentOptions,
    GenerationResult,
)
from wpf_build.site_config import SiteConfig, load_site_config
from wpf_build.utils import ui
from wpf_build.utils.io import format_duration

ProjectGenerator = Callable[[Path, SiteConfig], GenerationResult]

PASSED = re.compile(r"(\d+) passed")
FAILED = re.compile(r"(\d+) failed")


class StepError(Exception):
    """A build step could not complete."""

    pass


def verify_project_tree(output_dir: Path, config: SiteConfig) -> GenerationResult:
    """Default generator: accept a pre-generated project tree as is."""
    if not (output_dir / COMPOSE_FILENAME).exists():
        return GenerationResult(
            success=False,
            errors=[f"{COMPOSE_FILENAME} not found in {output_dir}"],
        )
    files = sum(1 for p in output_dir.rglob("*") if p.is_file())
    return GenerationResult(success=True, files_generated=files)


def parse_test_summary(output: str) -> tuple[int, int]:
    """Extract ``(passed, failed)`` counts from a Playwright summary."""
    passed = PASSED.search(output)
    failed = FAILED.search(output)
    return (
        int(passed.group(1)) if passed else 0,
        int(failed.group(1)) if failed else 0,
    )


class SiteBuild:
    """Declares and runs the site provisioning pipeline."""

    def __init__(
        self,
        options: BuildOptions,
        settings: Optional[Configs] = None,
        generator: ProjectGenerator = verify_project_tree,
        executor: Optional[Executor] = None,
        recovery: Optional[RecoveryExecutor] = None,
        controller: Optional[EnvironmentController] = None,
    ):
        self.options = options
        self.settings = settings or Configs()
        self.generator = generator
        self.executor = executor or Executor(verbose=options.verbose)
        self.recovery = recovery or RecoveryExecutor(
            registry=ErrorRegistry(self.settings.ERROR_HANDLERS_PATH),
            executor=self.executor,
        )
        self._controller = controller
        self.config: Optional[SiteConfig] = None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_config(self) -> SiteConfig:
        if self.config is None:
            raise StepError("Configuration not loaded")
        return self.config

    @property
    def controller(self) -> EnvironmentController:
        if self._controller is None:
            config = self._require_config()
            self._controller = EnvironmentController(
                EnvironmentOptions(
                    project_path=self.options.output_dir,
                    project_name=config.project.name,
                    verbose=self.options.verbose,
                ),
                settings=self.settings,
                recovery=self.recovery,
                executor=self.executor,
            )
        return self._controller

    def _wp(self, *args: str, **context) -> str:
        return self.controller.run_privileged_command(list(args), **context)

    def _npm(self, cwd: Path, *args: str) -> None:
        self.executor.execute(
            list(args), cwd=str(cwd), stream=self.options.verbose, check=True
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def load_configuration(self) -> None:
        result = load_site_config(self.options.config_path)
        if not result.success or result.config is None:
            raise StepError(", ".join(result.errors) or "Failed to load configuration")
        self.config = result.config
        for warning in result.warnings:
            ui.warning(warning)

    def generate_assets(self) -> None:
        config = self._require_config()
        result = self.generator(self.options.output_dir, config)
        if not result.success:
            raise StepError(", ".join(result.errors) or "Project generation failed")
        ui.detail(f"{result.files_generated} files generated")

        theme_dir = self.options.output_dir / "theme"
        if not (theme_dir / "package.json").exists():
            ui.detail("No theme package.json, asset build skipped")
            return
        self._npm(theme_dir, "npm", "install")
        self._npm(theme_dir, "npm", "run", "build")

    def start_environment(self) -> None:
        self._require_config()
        self.controller.start_environment()

    def install_wordpress(self) -> None:
        config = self._require_config()
        try:
            self._wp("core", "is-installed")
            ui.detail("WordPress already installed, skipping")
            return
        except (ExecutionError, RecoveryExhaustedError):
            pass

        self._wp(
            "core",
            "install",
            f"--url={self.settings.SITE_URL}",
            f"--title={config.company.name}",
            f"--admin_user={self.settings.ADMIN_USER}",
            f"--admin_password={self.settings.ADMIN_PASSWORD.get_secret_value()}",
            f"--admin_email={config.contact.email}",
            "--skip-email",
            url=self.settings.SITE_URL,
            title=config.company.name,
        )

    def activate_theme(self) -> None:
        config = self._require_config()
        name = config.project.name
        self.controller.fix_permissions()
        self._wp("theme", "activate", f"{name}-theme")
        try:
            self._wp("plugin", "activate", f"{name}-plugin", plugin=f"{name}-plugin")
        except (ExecutionError, RecoveryExhaustedError):
            ui.detail("Plugin activation skipped")

    def install_plugins(self) -> None:
        config = self._require_config()
        for plugin in config.plugins.slugs():
            try:
                self._wp("plugin", "install", plugin, "--activate", plugin=plugin)
            except (ExecutionError, RecoveryExhaustedError):
                ui.detail(f"{plugin} install skipped")

    def create_content(self) -> None:
        config = self._require_config()
        for page in config.pages:
            try:
                self._wp(
                    "post",
                    "create",
                    "--post_type=page",
                    f"--post_title={page.title}",
                    f"--post_name={page.slug}",
                    "--post_status=publish",
                    title=page.title,
                )
            except (ExecutionError, RecoveryExhaustedError):
                ui.debug(f"Page {page.slug} not created (may already exist)")

        self._wp("rewrite", "structure", "/%postname%/")

        home_id = self._wp(
            "post", "list", "--post_type=page", "--name=home", "--format=ids"
        ).strip()
        if home_id:
            self._wp("option", "update", "show_on_front", "page")
            self._wp("option", "update", "page_on_front", home_id)

    def run_tests(self) -> None:
        tests_dir = self.options.output_dir / "tests"
        if not tests_dir.exists():
            ui.detail("Tests directory not found, skipping")
            return

        self._npm(tests_dir, "npm", "install")
        self._npm(tests_dir, "npx", "playwright", "install", "chromium")
        result = self.executor.execute(
            ["npx", "playwright", "test"], cwd=str(tests_dir)
        )

        passed, failed = parse_test_summary(result.stdout)
        if failed > 0:
            raise StepError(f"{failed} tests failed")
        ui.detail(f"{passed} tests passed")

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def steps(self) -> list[BuildStep]:
        """The ordered step list. Each step's skip flag is fixed here."""
        opts = self.options
        no_wp = opts.skip_docker or opts.skip_wordpress
        return [
            BuildStep("Loading configuration", self.load_configuration, critical=True),
            BuildStep("Generating assets", self.generate_assets, critical=True),
            BuildStep(
                "Starting Docker environment",
                self.start_environment,
                skip=opts.skip_docker,
                critical=True,
            ),
            BuildStep(
                "Installing WordPress",
                self.install_wordpress,
                skip=no_wp,
                critical=True,
            ),
            BuildStep(
                "Activating theme and plugin",
                self.activate_theme,
                skip=no_wp,
                critical=False,
            ),
            BuildStep(
                "Installing and configuring plugins",
                self.install_plugins,
                skip=no_wp,
                critical=False,
            ),
            BuildStep(
                "Creating pages and menus",
                self.create_content,
                skip=no_wp,
                critical=False,
            ),
            BuildStep(
                "Running E2E tests",
                self.run_tests,
                skip=opts.skip_docker or opts.skip_tests,
                critical=False,
            ),
        ]

    def run(self) -> BuildResult:
        ui.banner("WPF v2.0 Build Pipeline")
        result = Pipeline(self.steps()).run()
        self.print_summary(result)
        return result

    def print_summary(self, result: BuildResult) -> None:
        ui.rule()
        if result.success:
            ui.success(f"Build complete in {format_duration(result.duration)}")
            if self.config is not None and not self.options.skip_docker:
                url = self.settings.SITE_URL.rstrip("/")
                ui.console.print(f"  Site URL:    [cyan]{url}[/cyan]")
                ui.console.print(f"  Admin URL:   [cyan]{url}/wp-admin[/cyan]")
                ui.console.print(f"  Username:    [cyan]{self.settings.ADMIN_USER}[/cyan]")
                ui.console.print(
                    "  Password:    "
                    f"[cyan]{self.settings.ADMIN_PASSWORD.get_secret_value()}[/cyan]"
                )
            return

        ui.error(f"Build failed after {format_duration(result.duration)}")
        for message in result.errors:
            ui.console.print(f"  • {message}", style="red", markup=False)
        if result.aborted_at:
            ui.warning(f"Aborted at critical step: {result.aborted_at}")
            for name in result.not_attempted:
                ui.console.print(f"  [dim]- not attempted: {name}[/dim]")
