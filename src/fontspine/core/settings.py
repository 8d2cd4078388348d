"""
Centralized settings for fontspine.

Manifesto:
    One validated, cached settings object replaces scattered constants for
    directories, prefixes and tool locations. Every value can come from a
    ``FONTSPINE_*`` environment variable or a ``.env`` file, so CI can point
    the build at a different toolchain without touching code.

:class:`BuildSettings` is deliberately separate from
:class:`~fontspine.config.models.BuildConfig`: settings describe *where*
and *with what* the build runs, the config describes *what* is built.

Tags:
    fontspine, configuration, settings, pydantic, caching

Doc-Types:
    api-reference
"""

from __future__ import annotations

import os
import shlex
import sys
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_NPX_SUFFIX = ".cmd" if sys.platform == "win32" else ""


class ToolPaths(BaseModel):
    """Executables for every external program the pipeline invokes.

    Each entry is a command line prefix, so wrappers such as
    ``node script.js`` are written as one string and split with
    :func:`shlex.split` when the tool is launched.
    """

    node: str = "node"
    seven_zip: str = "7z"
    otfccdump: str = "otfccdump"
    otfccbuild: str = "otfccbuild"
    otf2ttf: str = "otf2ttf"
    otc2otf: str = "otc2otf"
    ttx: str = "ttx"
    ttfautohint: str = "ttfautohint"
    ttcize: str = f"node_modules/.bin/otfcc-ttcize{_NPX_SUFFIX}"
    chlorophytum: str = "node ./node_modules/@chlorophytum/cli/bin/_startup"

    def argv(self, tool: str) -> list[str]:
        """Return the argv prefix for ``tool``."""
        return shlex.split(getattr(self, tool), posix=sys.platform != "win32")


class BuildSettings(BaseSettings):
    """fontspine build configuration.

    All fields can be set via ``FONTSPINE_*`` environment variables (e.g.
    ``FONTSPINE_JOBS=8``); nested tool paths use ``__`` (e.g.
    ``FONTSPINE_TOOLS__SEVEN_ZIP=7za``).
    """

    model_config = SettingsConfigDict(
        env_prefix="FONTSPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    # ── Directories ──────────────────────────────────────────────
    root: Path = Field(default_factory=Path.cwd, description="Project root; relative paths resolve here")
    build_dir: str = Field(default="build")
    out_dir: str = Field(default="out")
    sources_dir: str = Field(default="sources")
    hinting_params_dir: str = Field(default="hinting-params")
    recipe_dir: str = Field(default="make")
    recipe_pattern: str = Field(default="**/*.js")
    recipe_runner: str = Field(default="run", description="Script that dispatches --recipe to a build recipe")

    # ── Project files ────────────────────────────────────────────
    config_file: str = Field(default="config.json")
    metadata_file: str = Field(default="package.json", description="JSON file holding the version string")
    journal_file: str = Field(default="build/.fontspine-journal.json")

    # ── Naming ───────────────────────────────────────────────────
    prefix: str = Field(default="sarasa")
    ttf_archive_name: str = Field(default="sarasa-gothic-ttf-{version}.7z")
    ttc_archive_name: str = Field(default="sarasa-gothic-ttc-{version}.7z")

    # ── Execution ────────────────────────────────────────────────
    jobs: int | None = Field(default=None, description="Concurrent external processes (default: CPU count)")
    hint_jobs: int | None = Field(default=None, description="--jobs passed to the hinting engine")
    fail_fast: bool = Field(default=False, description="Stop starting new tasks after the first failure")
    strict_source_metrics: bool = Field(
        default=False,
        description="Re-derive outlines and side bearings of container sources instead of trusting them",
    )

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: Literal["console", "json"] | None = Field(
        default=None, description="Default: console on a terminal, JSON otherwise"
    )

    # ── Tools ────────────────────────────────────────────────────
    tools: ToolPaths = Field(default_factory=ToolPaths)

    @field_validator("root", mode="after")
    @classmethod
    def _resolve_root(cls, value: Path) -> Path:
        return value.resolve()

    # ── Derived properties ───────────────────────────────────────

    @property
    def effective_jobs(self) -> int:
        return self.jobs or os.cpu_count() or 1

    def resolve(self, relative: str | Path) -> Path:
        """Resolve a project-relative path against :attr:`root`."""
        path = Path(relative)
        return path if path.is_absolute() else self.root / path


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, BuildSettings] = {}


def get_settings(*, root: Path | None = None, _force_reload: bool = False, **overrides: object) -> BuildSettings:
    """Load, validate, and cache a :class:`BuildSettings` instance.

    Parameters
    ----------
    root:
        Project root. Defaults to ``FONTSPINE_ROOT`` or the current directory.
    overrides:
        Field values that win over environment variables (CLI flags).
        Overridden settings are never cached.
    """
    explicit = {key: value for key, value in overrides.items() if value is not None}
    cache_key = str(root.resolve()) if root is not None else ""
    cacheable = not explicit

    if cacheable and not _force_reload and cache_key in _settings_cache:
        return _settings_cache[cache_key]

    if root is not None:
        explicit["root"] = root
    settings = BuildSettings(**explicit)  # type: ignore[arg-type]
    if cacheable:
        _settings_cache[cache_key] = settings
    return settings


def clear_settings_cache() -> None:
    """Drop cached settings (for testing)."""
    _settings_cache.clear()


__all__ = ["BuildSettings", "ToolPaths", "get_settings", "clear_settings_cache"]
