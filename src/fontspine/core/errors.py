"""
Structured error types for fontspine.

Every failure in a build run is one of a small set of typed errors. Each
carries a category (what kind of failure), a context (which task, which
tool, which file) and an optional chained cause, so the CLI can report the
offending key and command without re-parsing messages.

Manifesto:
    - **Typed hierarchy:** configuration, source, tool and graph failures are
      distinct types with distinct handling
    - **Never retried:** no stage is safe to re-run silently against
      half-written outputs, so nothing here carries retry semantics
    - **Rich context:** errors carry the task key and tool argv for logging
    - **Error chaining:** the root cause is kept as ``__cause__``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                     FontSpineError                          │
        │           (category, context, cause, to_dict())             │
        ├─────────────────────────────────────────────────────────────┤
        │  ConfigError          SourceError         ToolError         │
        │  (CONFIG)             (SOURCE)            (TOOL)            │
        │     │                    │                   │              │
        │  InvalidConfig        MissingSource       ExternalTool      │
        │  MissingConfig                            MissingOutput     │
        │                                                             │
        │  BuildError           GraphError                            │
        │  (BUILD)              (GRAPH)                               │
        │     │                    │                                  │
        │  TaskFailed           CycleDetected                         │
        │  DependencyFailed     DuplicateRule                         │
        │  BuildAborted         UnknownRule                           │
        └─────────────────────────────────────────────────────────────┘

Examples:
    >>> error = InvalidConfigError("styles.italic.uprightStyleMap", "oblique")
    >>> error.category
    <ErrorCategory.CONFIG: 'CONFIG'>
    >>> error.with_context(key="dep::config").context.key
    'dep::config'

Tags:
    error-handling, exception-hierarchy, error-context, fontspine

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and reporting."""

    CONFIG = "CONFIG"  # Malformed or inconsistent build configuration
    SOURCE = "SOURCE"  # Expected source asset absent
    TOOL = "TOOL"  # External process failure
    BUILD = "BUILD"  # Task failure and its propagation
    GRAPH = "GRAPH"  # Rule registry / dependency graph misuse
    INTERNAL = "INTERNAL"  # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Only non-empty fields are serialized by :meth:`to_dict`, so the log
    line for a config error does not carry empty tool fields.

    Attributes:
        key: Task key string of the failing task (``stage::p1::p2``)
        stage: Stage name of the failing rule
        path: Filesystem path involved (source, output, config file)
        command: Argument vector of the external process
        exit_code: Exit status of the external process
        metadata: Free-form extra fields
    """

    key: str | None = None
    stage: str | None = None
    path: str | None = None
    command: list[str] | None = None
    exit_code: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, omitting unset fields."""
        result: dict[str, Any] = {}
        for name in ("key", "stage", "path", "command", "exit_code"):
            value = getattr(self, name)
            if value is not None:
                result[name] = value
        result.update(self.metadata)
        return result


class FontSpineError(Exception):
    """
    Base exception for all fontspine errors.

    Subclasses set ``default_category``. The original exception, when one
    exists, is passed as ``cause=`` and chained as ``__cause__``.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> FontSpineError:
        """
        Add context to this error (fluent API).

        Usage:
            raise MissingSourceError(path).with_context(key=str(target.key))
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(FontSpineError):
    """
    Configuration error.

    Fatal: raised while loading the configuration, before any external
    process runs.
    """

    default_category = ErrorCategory.CONFIG


class MissingConfigError(ConfigError):
    """Configuration or metadata file is missing or unreadable."""

    def __init__(self, path: str, message: str | None = None, *, cause: BaseException | None = None):
        self.path = path
        super().__init__(
            message or f"Missing configuration file: {path}",
            context=ErrorContext(path=path),
            cause=cause,
        )


class InvalidConfigError(ConfigError):
    """Configuration value is invalid or references an undefined entry."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}")


# =============================================================================
# SOURCE ERRORS
# =============================================================================


class SourceError(FontSpineError):
    """Source asset error."""

    default_category = ErrorCategory.SOURCE


class MissingSourceError(SourceError):
    """A required source file does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Missing source file: {path}", context=ErrorContext(path=path))


# =============================================================================
# TOOL ERRORS
# =============================================================================


class ToolError(FontSpineError):
    """External tool error."""

    default_category = ErrorCategory.TOOL


class ExternalToolError(ToolError):
    """
    An external process exited with a non-zero status.

    The captured output is kept on the error so it reaches the operator
    instead of being swallowed.
    """

    def __init__(
        self,
        command: list[str],
        exit_code: int,
        *,
        stdout: str = "",
        stderr: str = "",
        cwd: str | None = None,
    ):
        self.command = command
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        self.cwd = cwd
        tool = command[0] if command else "<empty>"
        super().__init__(
            f"{tool} exited with status {exit_code}",
            context=ErrorContext(command=command, exit_code=exit_code, path=cwd),
        )

    @property
    def output(self) -> str:
        """Combined diagnostics, stderr first."""
        return "\n".join(part for part in (self.stderr.strip(), self.stdout.strip()) if part)


class MissingOutputError(ToolError):
    """A file task finished without producing its output file."""

    def __init__(self, path: str, key: str | None = None):
        self.path = path
        super().__init__(
            f"Task finished without producing {path}",
            context=ErrorContext(path=path, key=key),
        )


# =============================================================================
# BUILD ERRORS
# =============================================================================


class BuildError(FontSpineError):
    """Task execution or propagation error."""

    default_category = ErrorCategory.BUILD


class TaskFailedError(BuildError):
    """A task's own action failed."""

    def __init__(self, key: str, cause: BaseException):
        self.key = key
        super().__init__(f"Task {key} failed: {cause}", context=ErrorContext(key=key), cause=cause)

    @property
    def root(self) -> BaseException:
        """The exception raised by the action itself."""
        return self.cause if self.cause is not None else self


class DependencyFailedError(BuildError):
    """A task could not run because something it needs failed."""

    def __init__(self, key: str | None, failed: list[BuildError]):
        self.key = key
        self.failed = failed
        first = failed[0]
        requester = key or "<top-level>"
        super().__init__(
            f"{requester}: {len(failed)} dependency failure(s), first: {first.message}",
            context=ErrorContext(key=key),
            cause=first,
        )

    @property
    def root(self) -> BaseException:
        """The first root cause along the chain of dependency failures."""
        first = self.failed[0]
        if isinstance(first, (TaskFailedError, DependencyFailedError)):
            return first.root
        return first


class BuildAbortedError(BuildError):
    """The run was aborted by an earlier failure (fail-fast mode)."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Task {key} not started: build aborted", context=ErrorContext(key=key))


# =============================================================================
# GRAPH ERRORS
# =============================================================================


class GraphError(FontSpineError):
    """Rule registry or dependency graph error."""

    default_category = ErrorCategory.GRAPH


class CycleDetectedError(GraphError):
    """The dependency graph contains a cycle."""

    def __init__(self, cycle: list[str]):
        self.cycle = cycle
        super().__init__(f"Cycle detected in dependency graph: {' -> '.join(cycle)}")


class DuplicateRuleError(GraphError):
    """A stage name was registered twice."""

    def __init__(self, stage: str):
        self.stage = stage
        super().__init__(f"Rule already registered for stage: {stage}")


class UnknownRuleError(GraphError):
    """A stage name has no registered rule."""

    def __init__(self, stage: str):
        self.stage = stage
        super().__init__(f"No rule registered for stage: {stage}")


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def root_cause(error: BaseException) -> BaseException:
    """Unwrap task/dependency failures down to the exception that started them."""
    while isinstance(error, (TaskFailedError, DependencyFailedError)):
        nxt = error.root
        if nxt is error:
            break
        error = nxt
    return error


def categorize_error(error: BaseException) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, FontSpineError):
        return error.category
    if isinstance(error, FileNotFoundError):
        return ErrorCategory.SOURCE
    if isinstance(error, OSError):
        return ErrorCategory.TOOL
    return ErrorCategory.INTERNAL


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "FontSpineError",
    # Config
    "ConfigError",
    "MissingConfigError",
    "InvalidConfigError",
    # Source
    "SourceError",
    "MissingSourceError",
    # Tool
    "ToolError",
    "ExternalToolError",
    "MissingOutputError",
    # Build
    "BuildError",
    "TaskFailedError",
    "DependencyFailedError",
    "BuildAbortedError",
    # Graph
    "GraphError",
    "CycleDetectedError",
    "DuplicateRuleError",
    "UnknownRuleError",
    # Utilities
    "root_cause",
    "categorize_error",
]
