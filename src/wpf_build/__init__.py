"""Recovery-driven provisioning pipeline for WordPress docker environments."""

import wpf_build.constants

__version__ = wpf_build.constants.__version__

from wpf_build.config import ConfigService, Configs, config_service

from .executor import ExecutionError, Executor
from .lifecycle import (
    EnvironmentController,
    LifecycleError,
    RuntimeUnavailableError,
    UnhealthyEnvironmentError,
)
from .pipeline import Pipeline
from .recovery import RecoveryExecutor, RecoveryExhaustedError
from .registry import CatalogueError, ErrorRegistry
from .schema import (
    BuildOptions,
    BuildResult,
    BuildStep,
    ContainerInfo,
    EnvironmentOptions,
    RecoveryContext,
    RecoveryResult,
    StepResult,
)
from .steps import SiteBuild

__all__ = [
    "BuildOptions",
    "BuildResult",
    "BuildStep",
    "CatalogueError",
    "ConfigService",
    "Configs",
    "ContainerInfo",
    "EnvironmentController",
    "EnvironmentOptions",
    "ErrorRegistry",
    "ExecutionError",
    "Executor",
    "LifecycleError",
    "Pipeline",
    "RecoveryContext",
    "RecoveryExecutor",
    "RecoveryExhaustedError",
    "RecoveryResult",
    "RuntimeUnavailableError",
    "SiteBuild",
    "StepResult",
    "UnhealthyEnvironmentError",
    "config_service",
]
