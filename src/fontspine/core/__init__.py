"""Core primitives: errors, logging, settings and hashing."""

from fontspine.core.errors import (
    BuildAbortedError,
    BuildError,
    ConfigError,
    CycleDetectedError,
    DependencyFailedError,
    ErrorCategory,
    ErrorContext,
    ExternalToolError,
    FontSpineError,
    InvalidConfigError,
    MissingConfigError,
    MissingOutputError,
    MissingSourceError,
    TaskFailedError,
    root_cause,
)
from fontspine.core.logging import LogContext, configure_logging, get_logger
from fontspine.core.settings import BuildSettings, ToolPaths, get_settings

__all__ = [
    "BuildAbortedError",
    "BuildError",
    "BuildSettings",
    "ConfigError",
    "CycleDetectedError",
    "DependencyFailedError",
    "ErrorCategory",
    "ErrorContext",
    "ExternalToolError",
    "FontSpineError",
    "InvalidConfigError",
    "LogContext",
    "MissingConfigError",
    "MissingOutputError",
    "MissingSourceError",
    "TaskFailedError",
    "ToolPaths",
    "configure_logging",
    "get_logger",
    "get_settings",
    "root_cause",
]
